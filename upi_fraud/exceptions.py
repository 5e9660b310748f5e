class FraudDetectionError(Exception):
    """Base class for errors raised by the fraud detection pipeline"""


class ParseError(FraudDetectionError):
    """CSV text could not be used as a transaction dataset"""

    def __init__(self, message, report=None):
        super().__init__(message)
        self.report = report


class InsufficientDataError(FraudDetectionError):
    """Not enough labeled transactions to train and evaluate a model"""


class UntrainedModelError(FraudDetectionError):
    """A prediction was requested before any model was trained"""


class FeatureMismatchError(FraudDetectionError):
    """Feature vector width does not match what the model was trained on"""


class TrainingError(FraudDetectionError):
    """Model fitting failed"""


class NumericDegenerateError(TrainingError):
    """Training produced a non-finite loss"""


class TrainingCancelledError(TrainingError):
    """Training was cancelled before it finished"""


class TrainingInProgressError(FraudDetectionError):
    """A training run is already active for this session"""
