import logging
from datetime import datetime
from typing import Callable, List, Optional

from pydantic import BaseModel

from upi_fraud.config import Config
from upi_fraud.data.records import TransactionRecord
from upi_fraud.exceptions import UntrainedModelError
from upi_fraud.models.trained import TrainedModel

logger = logging.getLogger(__name__)

FRAUD = "Fraud"
GENUINE = "Genuine"


class Prediction(BaseModel):
    probability: float
    label: str

    @property
    def is_fraud(self) -> bool:
        return self.label == FRAUD


class FraudAlert(BaseModel):
    """Payload handed to alert listeners when a prediction resolves to Fraud"""

    transaction_id: Optional[str] = None
    user_id: Optional[str] = None
    amount: float
    timestamp: datetime
    location: Optional[str] = None
    transaction_type: str
    fraud_probability: float


FraudListener = Callable[[FraudAlert], None]


class Predictor:
    """
    Score single transactions against a trained model.

    Fraud results are announced to listeners after the prediction is
    computed. A failing listener is logged and does not affect the result.
    """

    def __init__(self, listeners: Optional[List[FraudListener]] = None):
        self.listeners: List[FraudListener] = list(listeners or [])

    def add_listener(self, listener: FraudListener):
        self.listeners.append(listener)

    def predict(self, record: TransactionRecord, model: Optional[TrainedModel]) -> Prediction:
        """
        Predict fraud probability for one transaction.

        Args:
            record: Transaction to score; label and ids are optional
            model: The model to use, normally the session's live model

        Returns:
            Prediction with probability and "Fraud" / "Genuine" label
        """
        if model is None:
            raise UntrainedModelError("Model not trained yet. Load a dataset and train a model first.")

        model.check_compatible()
        features = model.vectorizer.vectorize(record)
        probability = float(model.predict_proba(features)[0])
        label = FRAUD if probability >= Config.DECISION_THRESHOLD else GENUINE

        result = Prediction(probability=probability, label=label)
        logger.info(
            f"Prediction: {record.transaction_id or 'manual'} -> {label} (score: {probability:.3f})"
        )

        if result.is_fraud:
            self._notify(FraudAlert(
                transaction_id=record.transaction_id,
                user_id=record.user_id,
                amount=record.amount,
                timestamp=record.timestamp,
                location=record.location,
                transaction_type=record.transaction_type,
                fraud_probability=probability,
            ))

        return result

    def _notify(self, alert: FraudAlert):
        for listener in self.listeners:
            try:
                listener(alert)
            except Exception:
                logger.exception("Fraud alert listener failed")
