import logging
from typing import Optional

import numpy as np
from pydantic import BaseModel
from sklearn.metrics import confusion_matrix, roc_auc_score

from upi_fraud.config import Config

logger = logging.getLogger(__name__)


class ConfusionMatrix(BaseModel):
    tp: int
    tn: int
    fp: int
    fn: int

    @property
    def total(self) -> int:
        return self.tp + self.tn + self.fp + self.fn


class Metrics(BaseModel):
    accuracy: float
    precision: float
    recall: float
    f1: float


class EvaluationResult(BaseModel):
    """Measured performance on the held-out set"""

    metrics: Metrics
    confusion_matrix: ConfusionMatrix
    roc_auc: Optional[float] = None
    test_samples: int
    fraud_rate: float


def compute_confusion_matrix(y_true, y_pred) -> ConfusionMatrix:
    y_true = np.asarray(y_true, dtype=int)
    y_pred = np.asarray(y_pred, dtype=int)
    if len(y_true) == 0:
        return ConfusionMatrix(tp=0, tn=0, fp=0, fn=0)
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    return ConfusionMatrix(tp=int(tp), tn=int(tn), fp=int(fp), fn=int(fn))


def metrics_from_confusion(cm: ConfusionMatrix) -> Metrics:
    """Accuracy, precision, recall and F1 from raw confusion counts"""
    accuracy = (cm.tp + cm.tn) / max(1, cm.total)
    precision = cm.tp / (cm.tp + cm.fp) if cm.tp + cm.fp else 0.0
    recall = cm.tp / (cm.tp + cm.fn) if cm.tp + cm.fn else 0.0
    f1 = 2 * precision * recall / max(1e-8, precision + recall)
    return Metrics(accuracy=accuracy, precision=precision, recall=recall, f1=f1)


def compute_metrics(y_true, y_pred) -> Metrics:
    return metrics_from_confusion(compute_confusion_matrix(y_true, y_pred))


def threshold(probabilities, cutoff: float = None) -> np.ndarray:
    if cutoff is None:
        cutoff = Config.DECISION_THRESHOLD
    return (np.asarray(probabilities) >= cutoff).astype(int)


def evaluate_probabilities(probabilities, y_true) -> EvaluationResult:
    """
    Score predicted probabilities against ground truth.

    Args:
        probabilities: Predicted fraud probabilities for the test set
        y_true: True labels (0=genuine, 1=fraud)

    Returns:
        EvaluationResult with unadjusted confusion-matrix metrics
    """
    probabilities = np.asarray(probabilities, dtype=float)
    y_true = np.asarray(y_true, dtype=int)

    cm = compute_confusion_matrix(y_true, threshold(probabilities))
    metrics = metrics_from_confusion(cm)

    roc_auc = None
    if len(np.unique(y_true)) == 2:
        roc_auc = float(roc_auc_score(y_true, probabilities))

    return EvaluationResult(
        metrics=metrics,
        confusion_matrix=cm,
        roc_auc=roc_auc,
        test_samples=len(y_true),
        fraud_rate=float(y_true.mean()) if len(y_true) else 0.0,
    )


def evaluate(network, X_test: np.ndarray, y_test) -> EvaluationResult:
    """Run the fitted network over the held-out set and score it"""
    logger.info("Evaluating model...")
    return evaluate_probabilities(network.predict_proba(X_test), y_test)
