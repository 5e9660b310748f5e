from datetime import datetime
from typing import Any, Dict

import numpy as np

from upi_fraud.exceptions import FeatureMismatchError
from upi_fraud.features.engineering import FeatureVectorizer
from upi_fraud.models.architectures import MODEL_DESCRIPTIONS, ModelType
from upi_fraud.models.network import DenseNetwork
from upi_fraud.training.evaluator import EvaluationResult, Metrics


class TrainedModel:
    """
    A fitted classifier together with the encoders snapshot it was trained
    on and its held-out evaluation. Instances are never mutated after
    training; retraining produces a new one.
    """

    def __init__(self, model_type: ModelType, network: DenseNetwork,
                 vectorizer: FeatureVectorizer, evaluation: EvaluationResult,
                 train_samples: int):
        self.model_type = ModelType(model_type)
        self.network = network
        self.vectorizer = vectorizer
        self.evaluation = evaluation
        self.train_samples = train_samples
        self.trained_at = datetime.now()
        # Fixed per model so cosmetic display banding is stable across reads
        self.display_seed = int(np.random.default_rng().integers(2**32))

    @property
    def metrics(self) -> Metrics:
        return self.evaluation.metrics

    @property
    def accuracy(self) -> float:
        return self.metrics.accuracy

    @property
    def precision(self) -> float:
        return self.metrics.precision

    @property
    def recall(self) -> float:
        return self.metrics.recall

    @property
    def f1(self) -> float:
        return self.metrics.f1

    @property
    def input_dim(self) -> int:
        return self.network.input_dim

    def check_compatible(self):
        """Fail if the stored vectorizer no longer produces the trained width"""
        if self.vectorizer.width != self.network.input_dim:
            raise FeatureMismatchError(
                f"Model expects {self.network.input_dim} features but the vectorizer "
                f"produces {self.vectorizer.width}"
            )

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        X = np.atleast_2d(X)
        if X.shape[1] != self.network.input_dim:
            raise FeatureMismatchError(
                f"Model expects {self.network.input_dim} features, got {X.shape[1]}"
            )
        return self.network.predict_proba(X)

    def summary(self) -> Dict[str, Any]:
        return {
            "model_type": self.model_type.value,
            "description": MODEL_DESCRIPTIONS[self.model_type],
            "accuracy": self.accuracy,
            "precision": self.precision,
            "recall": self.recall,
            "f1": self.f1,
            "roc_auc": self.evaluation.roc_auc,
            "confusion_matrix": self.evaluation.confusion_matrix.model_dump(),
            "training_samples": self.train_samples,
            "test_samples": self.evaluation.test_samples,
            "fraud_rate": self.evaluation.fraud_rate,
            "feature_count": self.input_dim,
            "last_trained": self.trained_at.isoformat(),
        }
