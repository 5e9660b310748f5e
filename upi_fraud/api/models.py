from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from upi_fraud.data.records import ParseReport, TransactionRecord
from upi_fraud.models.architectures import ModelType
from upi_fraud.training.evaluator import ConfusionMatrix, Metrics


class DatasetUpload(BaseModel):
    """Raw CSV text uploaded from the dashboard"""
    csv_text: str


class DatasetResponse(BaseModel):
    report: ParseReport
    preview: List[TransactionRecord]


class EncodersResponse(BaseModel):
    transaction_types: List[str]
    locations: List[str]
    devices: List[str]
    mean_std: Dict[str, Dict[str, float]]


class TrainRequest(BaseModel):
    model_type: ModelType = ModelType.LOGISTIC
    seed: Optional[int] = None


class ModelMetricsResponse(BaseModel):
    """Measured model performance; display_metrics is cosmetic and optional"""
    model_type: str
    description: str
    metrics: Metrics
    confusion_matrix: ConfusionMatrix
    roc_auc: Optional[float] = None
    training_samples: int
    test_samples: int
    fraud_rate: float
    feature_count: int
    last_trained: datetime
    display_metrics: Optional[Metrics] = None


class Transaction(BaseModel):
    """Transaction data model for prediction requests"""
    amount: float = Field(ge=0)
    timestamp: datetime
    transaction_type: str = Field(min_length=1)
    location: Optional[str] = None
    device_id: Optional[str] = None
    transaction_id: Optional[str] = None
    user_id: Optional[str] = None


class FraudPrediction(BaseModel):
    """Fraud prediction response model"""
    transaction_id: Optional[str] = None
    probability: float
    label: str
    confidence: int
    risk_level: str
    patterns: Dict[str, bool]
    risk_factors: List[str]
    model_type: str
    processing_time_ms: int
    timestamp: datetime
