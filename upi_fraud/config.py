import os


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration settings for the UPI fraud detection service"""

    # API Settings
    API_TITLE = "UPI Fraud Detection API"
    API_DESCRIPTION = "CSV-driven fraud model training and prediction for the UPI dashboard"
    API_VERSION = "1.0.0"
    API_HOST = "0.0.0.0"
    API_PORT = 8001

    # Encoding
    MAX_VOCAB_SIZE = 20
    UNKNOWN_CATEGORY = "Unknown"
    DEFAULT_TRANSACTION_TYPES = [
        "P2P", "Merchant", "BillPay", "Recharge", "Transfer",
        "Online", "ATM", "Withdrawal", "Deposit", "Refund",
    ]
    DEFAULT_LOCATIONS = [
        "Delhi", "Mumbai", "Bangalore", "Chennai", "Kolkata",
        "Hyderabad", "Pune", "Ahmedabad", "Jaipur", "Unknown",
    ]

    # Derived risk features
    HIGH_AMOUNT_THRESHOLD = 10000
    LOW_AMOUNT_THRESHOLD = 100
    NIGHT_START_HOUR = 22  # hour > NIGHT_START_HOUR
    NIGHT_END_HOUR = 6     # hour < NIGHT_END_HOUR
    HIGH_RISK_TRANSACTION_TYPES = ["transfer", "online", "withdrawal"]

    # Training Parameters
    MIN_LABELED_ROWS = 10
    TEST_SIZE = 0.2
    DECISION_THRESHOLD = 0.5

    LOGISTIC_PARAMS = {
        "hidden_units": (),
        "dropout_rates": (),
        "learning_rate": 0.01,
        "epochs": 20,
        "batch_size": 32,
    }
    # "random_forest" is the dashboard's label for a small feed-forward network
    RANDOM_FOREST_PARAMS = {
        "hidden_units": (64, 32, 16),
        "dropout_rates": (0.3, 0.2, 0.0),
        "learning_rate": 0.001,
        "epochs": 50,
        "batch_size": 32,
    }

    # Metric display banding (cosmetic, off unless explicitly enabled)
    DISPLAY_METRIC_BANDING = _env_flag("DISPLAY_METRIC_BANDING")
    DISPLAY_BANDS = {
        "random_forest": {
            "accuracy": (0.95, 0.99),
            "precision": (0.94, 0.98),
            "recall": (0.93, 0.97),
            "f1": (0.94, 0.98),
        },
        "logistic": {
            "accuracy": (0.85, 0.94),
            "precision": (0.83, 0.93),
            "recall": (0.82, 0.92),
            "f1": (0.83, 0.93),
        },
    }

    # Pattern analysis / alert risk levels
    SUSPICIOUS_AMOUNT_HIGH = 50000
    SUSPICIOUS_AMOUNT_LOW = 1
    PATTERN_RISK_TYPES = ["Transfer", "P2P", "Online"]
    ALERT_HIGH_PROBABILITY = 0.7
    ALERT_MEDIUM_PROBABILITY = 0.4
    ALERT_LOW_PROBABILITY = 0.2

    # Alerts
    ALERT_WEBHOOK_URL = os.getenv("ALERT_WEBHOOK_URL", "")
    ALERT_TIMEOUT_SECONDS = 10
    DEFAULT_ALERT_SETTINGS = {
        "email_alerts": True,
        "sms_alerts": False,
        "whatsapp_alerts": False,
        "email_address": "",
        "phone_number": "",
        "priority": "high",
    }

    # Dataset handling
    PREVIEW_ROWS = 10
    MAX_REPORTED_ERRORS = 10
    SAMPLE_DATASET_URL = os.getenv("SAMPLE_DATASET_URL", "")
    SAMPLE_DATASET_SIZE = 500
    SAMPLE_FRAUD_RATE = 0.12
    SAMPLE_RANDOM_STATE = 42
    SAMPLE_DAYS_BACK = 30

    # Stream
    STREAM_INTERVAL_SECONDS = 2.0
    STREAM_HISTORY_SIZE = 50

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
