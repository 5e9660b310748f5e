import logging
import threading
from typing import List, Optional

import requests

from upi_fraud.config import Config
from upi_fraud.data.generator import TransactionGenerator
from upi_fraud.data.parser import parse_transactions
from upi_fraud.data.records import ParseReport, TransactionRecord
from upi_fraud.exceptions import InsufficientDataError, ParseError, TrainingInProgressError
from upi_fraud.features.encoders import Encoders, build_encoders
from upi_fraud.models.architectures import ModelType
from upi_fraud.models.trained import TrainedModel
from upi_fraud.prediction.predictor import Prediction, Predictor
from upi_fraud.training.trainer import ModelTrainer

logger = logging.getLogger(__name__)


class FraudDetectionSession:
    """
    State for one dashboard session: the loaded dataset, its encoders and
    the live trained model.

    The live model is only ever replaced by a single assignment after a
    training run has fully succeeded, so readers see either the old model
    or the new one.
    """

    def __init__(self, trainer: ModelTrainer = None, predictor: Predictor = None):
        self.trainer = trainer or ModelTrainer()
        self.predictor = predictor or Predictor()

        self.dataset: List[TransactionRecord] = []
        self.encoders: Optional[Encoders] = None
        self.last_report: Optional[ParseReport] = None
        self.model: Optional[TrainedModel] = None

        self._train_lock = threading.Lock()
        # Guards claiming or releasing the training slot together with its cancel event
        self._state_lock = threading.Lock()
        self._cancel_event: Optional[threading.Event] = None

    @property
    def is_training(self) -> bool:
        return self._train_lock.locked()

    @property
    def preview(self) -> List[TransactionRecord]:
        return self.dataset[:Config.PREVIEW_ROWS]

    def load_csv(self, csv_text: str) -> ParseReport:
        """
        Parse CSV text and make it the session dataset.

        Rebuilds the encoders from scratch. An unusable CSV raises
        ParseError and leaves the current dataset in place. The live model
        keeps its own encoders snapshot, so it stays usable after a reload.
        """
        result = parse_transactions(csv_text)
        if not result.report.success:
            raise ParseError("; ".join(result.report.errors), report=result.report)

        self.dataset = result.records
        self.encoders = build_encoders(result.records)
        self.last_report = result.report

        logger.info(f"Dataset loaded: {result.report.row_count} rows, {result.report.labeled_count} labeled")
        return result.report

    def load_sample_dataset(self) -> ParseReport:
        """Load the bundled demo dataset, from SAMPLE_DATASET_URL when set"""
        if Config.SAMPLE_DATASET_URL:
            response = requests.get(Config.SAMPLE_DATASET_URL, timeout=30)
            response.raise_for_status()
            csv_text = response.text
        else:
            csv_text = TransactionGenerator().generate_csv()
        return self.load_csv(csv_text)

    def train(self, model_type=ModelType.LOGISTIC, seed: Optional[int] = None) -> TrainedModel:
        """
        Train a new model on the current dataset and make it live.

        Raises TrainingInProgressError if another run is active. On any
        failure the previous model is kept.
        """
        with self._state_lock:
            if not self._train_lock.acquire(blocking=False):
                raise TrainingInProgressError("A model is already being trained")
            cancel_event = self._cancel_event = threading.Event()
        try:
            if not self.dataset or self.encoders is None:
                raise InsufficientDataError("No dataset loaded. Upload a CSV or load the sample dataset first.")

            model = self.trainer.train_model(
                self.dataset, self.encoders, model_type,
                seed=seed, cancel_event=cancel_event,
            )
            self.model = model
            return model
        finally:
            with self._state_lock:
                self._cancel_event = None
                self._train_lock.release()

    def cancel_training(self) -> bool:
        """Ask the active training run to stop after its current epoch"""
        with self._state_lock:
            event = self._cancel_event
        if event is None:
            return False
        event.set()
        logger.info("Training cancellation requested")
        return True

    def predict(self, record: TransactionRecord) -> Prediction:
        return self.predictor.predict(record, self.model)
