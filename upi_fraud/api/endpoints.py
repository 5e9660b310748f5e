import logging
import time
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from upi_fraud.analytics import dataset_analytics
from upi_fraud.api.models import (
    DatasetResponse, DatasetUpload, EncodersResponse, FraudPrediction,
    ModelMetricsResponse, Transaction, TrainRequest,
)
from upi_fraud.config import Config
from upi_fraud.data.records import TransactionRecord
from upi_fraud.exceptions import (
    FeatureMismatchError, InsufficientDataError, ParseError, TrainingCancelledError,
    TrainingError, TrainingInProgressError, UntrainedModelError,
)
from upi_fraud.prediction.risk import analyze_patterns, analyze_risk_factors
from upi_fraud.session import FraudDetectionSession
from upi_fraud.stream import TransactionStream
from upi_fraud.training.display import band_metrics

logger = logging.getLogger(__name__)

router = APIRouter()


def get_session(request: Request) -> FraudDetectionSession:
    return request.app.state.session


def get_stream(request: Request) -> TransactionStream:
    return request.app.state.stream


def _dataset_response(session: FraudDetectionSession, report) -> DatasetResponse:
    return DatasetResponse(report=report, preview=session.preview)


@router.get("/")
async def root(session: FraudDetectionSession = Depends(get_session)):
    """API health check endpoint"""
    return {
        "service": Config.API_TITLE,
        "status": "running",
        "model_loaded": session.model is not None,
        "version": Config.API_VERSION,
        "features": session.model.input_dim if session.model else 0,
    }


@router.post("/dataset", response_model=DatasetResponse)
async def upload_dataset(upload: DatasetUpload, session: FraudDetectionSession = Depends(get_session)):
    """Replace the session dataset with uploaded CSV text"""
    try:
        report = session.load_csv(upload.csv_text)
    except ParseError as e:
        raise HTTPException(status_code=400, detail=e.report.model_dump() if e.report else str(e))
    return _dataset_response(session, report)


@router.post("/dataset/sample", response_model=DatasetResponse)
async def load_sample_dataset(session: FraudDetectionSession = Depends(get_session)):
    """Load the bundled demo dataset"""
    try:
        report = await run_in_threadpool(session.load_sample_dataset)
    except Exception as e:
        logger.error(f"Sample dataset error: {str(e)}")
        raise HTTPException(status_code=502, detail=f"Could not load sample dataset: {str(e)}")
    return _dataset_response(session, report)


@router.get("/dataset/preview", response_model=DatasetResponse)
async def dataset_preview(session: FraudDetectionSession = Depends(get_session)):
    if session.last_report is None:
        raise HTTPException(status_code=404, detail="No dataset loaded")
    return _dataset_response(session, session.last_report)


@router.get("/encoders", response_model=EncodersResponse)
async def get_encoders(session: FraudDetectionSession = Depends(get_session)):
    """Vocabularies for populating the dashboard's selection controls"""
    enc = session.encoders
    if enc is None:
        raise HTTPException(status_code=404, detail="No dataset loaded")
    return EncodersResponse(
        transaction_types=enc.trans_type_vocab,
        locations=enc.location_vocab,
        devices=enc.device_vocab,
        mean_std={name: stats.model_dump() for name, stats in enc.mean_std.items()},
    )


@router.post("/train", response_model=ModelMetricsResponse)
async def train_model(request: TrainRequest, session: FraudDetectionSession = Depends(get_session)):
    """Train a new model on the loaded dataset"""
    try:
        await run_in_threadpool(session.train, request.model_type, request.seed)
    except InsufficientDataError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (TrainingInProgressError, TrainingCancelledError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except TrainingError as e:
        logger.error(f"Training error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Training failed: {str(e)}")
    except Exception as e:
        logger.exception("Unexpected training error")
        raise HTTPException(status_code=500, detail=f"Training failed: {str(e)}")
    return _metrics_response(session)


@router.post("/train/cancel")
async def cancel_training(session: FraudDetectionSession = Depends(get_session)):
    return {"cancelled": session.cancel_training()}


@router.get("/metrics", response_model=ModelMetricsResponse)
async def get_model_metrics(session: FraudDetectionSession = Depends(get_session)):
    """Get measured performance of the live model"""
    if session.model is None:
        raise HTTPException(status_code=404, detail="Model not trained")
    return _metrics_response(session)


def _metrics_response(session: FraudDetectionSession) -> ModelMetricsResponse:
    model = session.model
    summary = model.summary()
    display = band_metrics(model.metrics, model.model_type, seed=model.display_seed) if Config.DISPLAY_METRIC_BANDING else None
    return ModelMetricsResponse(
        model_type=summary["model_type"],
        description=summary["description"],
        metrics=model.metrics,
        confusion_matrix=model.evaluation.confusion_matrix,
        roc_auc=summary["roc_auc"],
        training_samples=summary["training_samples"],
        test_samples=summary["test_samples"],
        fraud_rate=summary["fraud_rate"],
        feature_count=summary["feature_count"],
        last_trained=model.trained_at,
        display_metrics=display,
    )


@router.post("/predict", response_model=FraudPrediction)
async def predict_fraud(transaction: Transaction, session: FraudDetectionSession = Depends(get_session)):
    """
    Predict fraud probability for a transaction.

    Args:
        transaction: Transaction data

    Returns:
        Fraud prediction with rule-based risk assessment
    """
    start_time = time.time()

    model = session.model
    if model is None:
        raise HTTPException(status_code=503, detail="Model not available. Train a model first.")

    record = TransactionRecord(**transaction.model_dump())
    try:
        prediction = session.predictor.predict(record, model)
    except (UntrainedModelError, FeatureMismatchError) as e:
        raise HTTPException(status_code=503, detail=str(e))

    features = model.vectorizer.extract_features(record)
    patterns = analyze_patterns(record.amount, record.transaction_type, record.timestamp)
    processing_time = int((time.time() - start_time) * 1000)

    return FraudPrediction(
        transaction_id=record.transaction_id,
        probability=prediction.probability,
        label=prediction.label,
        confidence=round(prediction.probability * 100),
        risk_level=patterns.risk_level,
        patterns=patterns.patterns,
        risk_factors=analyze_risk_factors(features),
        model_type=model.model_type.value,
        processing_time_ms=processing_time,
        timestamp=datetime.now(),
    )


@router.get("/analytics")
async def get_analytics(session: FraudDetectionSession = Depends(get_session)):
    """Dataset-level fraud statistics for the analytics dashboard"""
    return dataset_analytics(session.dataset)


@router.post("/stream/start")
async def start_stream(stream: TransactionStream = Depends(get_stream)):
    try:
        started = stream.start()
    except UntrainedModelError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"running": stream.is_running, "started": started, "interval_seconds": stream.interval}


@router.post("/stream/stop")
async def stop_stream(stream: TransactionStream = Depends(get_stream)):
    await stream.stop()
    return {"running": stream.is_running}


@router.get("/stream")
async def get_stream_rows(stream: TransactionStream = Depends(get_stream)):
    return {"running": stream.is_running, "rows": [row.model_dump() for row in stream.recent()]}


@router.get("/health")
async def health_check(session: FraudDetectionSession = Depends(get_session),
                       stream: TransactionStream = Depends(get_stream)):
    """Health check for the fraud detection service"""
    return {
        "status": "healthy" if session.model is not None else "degraded",
        "components": {
            "dataset": bool(session.dataset),
            "encoders": session.encoders is not None,
            "model": session.model is not None,
            "training": session.is_training,
            "stream": stream.is_running,
        },
        "model_info": {
            "model_type": session.model.model_type.value if session.model else None,
            "features_count": session.model.input_dim if session.model else 0,
            "last_trained": session.model.trained_at.isoformat() if session.model else None,
        },
        "timestamp": datetime.now().isoformat(),
    }
