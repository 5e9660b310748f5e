import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from upi_fraud.alerts.service import AlertService
from upi_fraud.api.endpoints import router
from upi_fraud.config import Config
from upi_fraud.session import FraudDetectionSession
from upi_fraud.stream import TransactionStream

# Configure logging
logging.basicConfig(level=Config.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(session: FraudDetectionSession = None, alert_service: AlertService = None) -> FastAPI:
    """Wire the session, alerting and stream together behind the API"""
    session = session or FraudDetectionSession()
    alert_service = alert_service or AlertService()
    session.predictor.add_listener(alert_service.dispatch)
    stream = TransactionStream(session)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting UPI fraud detection service...")
        yield
        await stream.stop()
        alert_service.shutdown()
        logger.info("Service stopped")

    app = FastAPI(
        title=Config.API_TITLE,
        description=Config.API_DESCRIPTION,
        version=Config.API_VERSION,
        lifespan=lifespan,
    )
    app.state.session = session
    app.state.stream = stream
    app.state.alert_service = alert_service
    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=Config.API_HOST, port=Config.API_PORT)
