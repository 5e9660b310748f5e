import logging
import threading
from typing import List, Optional, Sequence, Tuple

import numpy as np

from upi_fraud.config import Config
from upi_fraud.data.records import TransactionRecord
from upi_fraud.exceptions import InsufficientDataError
from upi_fraud.features.encoders import Encoders
from upi_fraud.features.engineering import FeatureVectorizer
from upi_fraud.models.architectures import ModelType, build_network
from upi_fraud.models.trained import TrainedModel
from upi_fraud.training.evaluator import evaluate
from upi_fraud.training.splitter import split_train_test

logger = logging.getLogger(__name__)


class ModelTrainer:
    """Handle feature preparation, model fitting and evaluation"""

    def __init__(self, test_ratio: float = None):
        self.test_ratio = Config.TEST_SIZE if test_ratio is None else test_ratio

    def train_model(self, records: Sequence[TransactionRecord], encoders: Encoders,
                    model_type=ModelType.LOGISTIC, seed: Optional[int] = None,
                    cancel_event: Optional[threading.Event] = None) -> TrainedModel:
        """
        Train and evaluate a fraud classifier on the labeled records.

        Args:
            records: Loaded dataset; unlabeled rows are ignored
            encoders: Encoders built from the same dataset
            model_type: "logistic" or "random_forest"
            seed: Seeds the split, weight init, shuffling and dropout
            cancel_event: Set it to stop training between epochs

        Returns:
            A new TrainedModel; nothing is modified on failure
        """
        model_type = ModelType(model_type)
        labeled = [r for r in records if r.is_labeled]
        if len(labeled) < Config.MIN_LABELED_ROWS:
            raise InsufficientDataError(
                f"Not enough labeled data. Need at least {Config.MIN_LABELED_ROWS} "
                f"rows with FraudLabel, got {len(labeled)}."
            )

        logger.info(f"Starting {model_type.value} training on {len(labeled)} labeled transactions...")

        split = split_train_test(labeled, self.test_ratio, seed=seed)
        vectorizer = FeatureVectorizer(encoders)

        X_train, y_train = self._prepare_training_features(split.train, vectorizer)
        X_test, y_test = self._prepare_training_features(split.test, vectorizer)

        network = build_network(model_type, vectorizer.width, seed=seed)
        should_stop = cancel_event.is_set if cancel_event is not None else None
        network.fit(X_train, y_train, should_stop=should_stop)

        evaluation = evaluate(network, X_test, y_test)

        model = TrainedModel(
            model_type=model_type,
            network=network,
            vectorizer=vectorizer,
            evaluation=evaluation,
            train_samples=len(split.train),
        )

        m = evaluation.metrics
        logger.info(
            f"Training complete. {model_type.value}: accuracy={m.accuracy:.3f} "
            f"precision={m.precision:.3f} recall={m.recall:.3f} f1={m.f1:.3f}"
        )
        return model

    def _prepare_training_features(self, records: List[TransactionRecord],
                                   vectorizer: FeatureVectorizer) -> Tuple[np.ndarray, np.ndarray]:
        """Vectorize records and collect their labels"""
        X = vectorizer.transform(records)
        y = np.array([r.fraud_label for r in records], dtype=float)
        return X, y
