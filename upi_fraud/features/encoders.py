import logging
from typing import Dict, Iterable, List, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict

from upi_fraud.config import Config
from upi_fraud.data.records import TransactionRecord

logger = logging.getLogger(__name__)

NUMERIC_FEATURES = ("Amount", "hour", "dow")


class FeatureStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    mean: float
    std: float


class Encoders(BaseModel):
    """Normalization statistics and categorical vocabularies for one dataset"""

    model_config = ConfigDict(frozen=True)

    trans_type_vocab: List[str]
    location_vocab: List[str]
    device_vocab: List[str]
    mean_std: Dict[str, FeatureStats]


def _distinct(values: Iterable[str]) -> List[str]:
    """Distinct values in first-seen order"""
    return list(dict.fromkeys(values))


def build_vocabulary(observed: Sequence[str], defaults: Sequence[str] = (), limit: int = None) -> List[str]:
    """
    Merge observed values with defaults and cap the result.

    Dataset values come first in dataset order, then defaults not already
    present. Membership is exact-string.
    """
    if limit is None:
        limit = Config.MAX_VOCAB_SIZE
    return _distinct(list(observed) + list(defaults))[:limit]


def _feature_stats(values: np.ndarray, name: str) -> FeatureStats:
    if len(values) == 0:
        return FeatureStats(mean=0.0, std=1.0)
    mean = float(values.mean())
    std = float(values.std())  # population std
    if std == 0 or not np.isfinite(std):
        logger.warning(f"Feature '{name}' has zero variance; using std=1")
        std = 1.0
    return FeatureStats(mean=mean, std=std)


def build_encoders(records: Sequence[TransactionRecord]) -> Encoders:
    """
    Derive encoders from the full loaded record set.

    Args:
        records: All parsed transactions, labeled or not

    Returns:
        Encoders with vocabularies and numeric mean/std
    """
    unknown = Config.UNKNOWN_CATEGORY

    trans_type_vocab = build_vocabulary(
        [r.transaction_type for r in records], Config.DEFAULT_TRANSACTION_TYPES
    )
    location_vocab = build_vocabulary(
        [r.location or unknown for r in records], Config.DEFAULT_LOCATIONS
    )
    device_vocab = build_vocabulary([r.device_id or unknown for r in records])

    numeric = {
        "Amount": np.array([r.amount for r in records], dtype=float),
        "hour": np.array([r.hour for r in records], dtype=float),
        "dow": np.array([r.day_of_week for r in records], dtype=float),
    }
    mean_std = {name: _feature_stats(numeric[name], name) for name in NUMERIC_FEATURES}

    logger.info(
        f"Built encoders: {len(trans_type_vocab)} types, "
        f"{len(location_vocab)} locations, {len(device_vocab)} devices"
    )

    return Encoders(
        trans_type_vocab=trans_type_vocab,
        location_vocab=location_vocab,
        device_vocab=device_vocab,
        mean_std=mean_std,
    )
