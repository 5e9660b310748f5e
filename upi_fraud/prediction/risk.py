from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel

from upi_fraud.config import Config


class PatternAnalysis(BaseModel):
    risk_level: str
    patterns: Dict[str, bool]


def analyze_patterns(amount: float, transaction_type: str, timestamp: datetime) -> PatternAnalysis:
    """Rule-based pattern flags shown alongside a manual prediction"""
    hour = timestamp.hour
    patterns = {
        "suspicious_amount": amount > Config.SUSPICIOUS_AMOUNT_HIGH or amount < Config.SUSPICIOUS_AMOUNT_LOW,
        "odd_timing": hour < 6 or hour > 23,
        "risk_type": transaction_type in Config.PATTERN_RISK_TYPES,
        "weekend_transaction": timestamp.weekday() >= 5,
    }

    risk_factors = sum(patterns.values())
    if risk_factors > 2:
        risk_level = "HIGH"
    elif risk_factors > 1:
        risk_level = "MEDIUM"
    else:
        risk_level = "LOW"

    return PatternAnalysis(risk_level=risk_level, patterns=patterns)


def determine_alert_risk_level(fraud_probability: float, amount: float, timestamp: datetime) -> str:
    """Risk level attached to an outgoing fraud alert"""
    hour = timestamp.hour
    is_high_amount = amount > Config.SUSPICIOUS_AMOUNT_HIGH
    is_odd_timing = hour < 6 or hour > 23
    is_high_probability = fraud_probability > Config.ALERT_HIGH_PROBABILITY
    is_medium_probability = fraud_probability > Config.ALERT_MEDIUM_PROBABILITY

    if is_high_probability or (is_medium_probability and (is_high_amount or is_odd_timing)):
        return "high"
    elif is_medium_probability or (fraud_probability > Config.ALERT_LOW_PROBABILITY and is_high_amount):
        return "medium"
    else:
        return "low"


def analyze_risk_factors(features: Dict[str, float]) -> List[str]:
    """Human-readable reasons from the derived feature flags"""
    risk_factors = []

    if features.get('is_high_amount', 0):
        risk_factors.append("Amount above high-value threshold")

    if features.get('is_night', 0):
        risk_factors.append("Transaction at night")

    if features.get('is_weekend', 0):
        risk_factors.append("Weekend transaction")

    if features.get('is_high_risk_type', 0):
        risk_factors.append("High-risk transaction type")

    if abs(features.get('amount_z', 0)) > 3:
        risk_factors.append("Amount far outside the dataset's usual range")

    return risk_factors
