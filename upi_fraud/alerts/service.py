import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Literal, Optional

import requests
from pydantic import BaseModel

from upi_fraud.config import Config
from upi_fraud.prediction.predictor import FraudAlert
from upi_fraud.prediction.risk import determine_alert_risk_level

logger = logging.getLogger(__name__)


class AlertSettings(BaseModel):
    email_alerts: bool = True
    sms_alerts: bool = False
    whatsapp_alerts: bool = False
    email_address: str = ""
    phone_number: str = ""
    priority: Literal["high", "medium-high", "all"] = "high"


class AlertResult(BaseModel):
    success: bool
    risk_level: Optional[str] = None
    alert_id: Optional[str] = None
    skipped: bool = False
    error: Optional[str] = None


def should_send_alert(priority: str, risk_level: str) -> bool:
    """Apply the user's alert priority filter to a risk level"""
    if priority == "all":
        return True
    if priority == "medium-high":
        return risk_level in ("high", "medium")
    return risk_level == "high"


class AlertService:
    """
    Forward fraud alerts to the alert webhook, which delivers them over
    email/SMS/WhatsApp. Delivery problems are reported, never raised.
    """

    def __init__(self, webhook_url: str = None, settings: AlertSettings = None,
                 timeout: float = None):
        self.webhook_url = Config.ALERT_WEBHOOK_URL if webhook_url is None else webhook_url
        self.settings = settings or AlertSettings(**Config.DEFAULT_ALERT_SETTINGS)
        self.timeout = Config.ALERT_TIMEOUT_SECONDS if timeout is None else timeout
        self._executor: Optional[ThreadPoolExecutor] = None

    def send_fraud_alert(self, alert: FraudAlert) -> AlertResult:
        risk_level = determine_alert_risk_level(alert.fraud_probability, alert.amount, alert.timestamp)

        if not should_send_alert(self.settings.priority, risk_level):
            logger.info(f"Alert not sent due to priority settings (risk: {risk_level})")
            return AlertResult(success=True, risk_level=risk_level, skipped=True)

        if not self.webhook_url:
            logger.warning("Alert webhook not configured; fraud alert not delivered")
            return AlertResult(success=False, risk_level=risk_level, error="Alert webhook not configured")

        payload = {
            "transactionId": alert.transaction_id,
            "userId": alert.user_id,
            "amount": alert.amount,
            "timestamp": alert.timestamp.isoformat(),
            "location": alert.location,
            "transactionType": alert.transaction_type,
            "fraudProbability": alert.fraud_probability,
            "riskLevel": risk_level,
            "alertSettings": {
                "emailAlerts": self.settings.email_alerts,
                "smsAlerts": self.settings.sms_alerts,
                "whatsappAlerts": self.settings.whatsapp_alerts,
                "emailAddress": self.settings.email_address,
                "phoneNumber": self.settings.phone_number,
                "priority": self.settings.priority,
            },
        }

        try:
            response = requests.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json() if response.content else {}
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error sending fraud alert: {e}")
            return AlertResult(success=False, risk_level=risk_level, error=str(e))

        logger.info(f"Fraud alert sent ({risk_level}) for transaction {alert.transaction_id or 'manual'}")
        alert_id = data.get("alertId") if isinstance(data, dict) else None
        return AlertResult(success=True, risk_level=risk_level, alert_id=alert_id)

    def dispatch(self, alert: FraudAlert) -> Future:
        """Send an alert in the background and return immediately"""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fraud-alert")
        return self._executor.submit(self.send_fraud_alert, alert)

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
