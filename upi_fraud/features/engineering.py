from typing import Dict, List, Sequence

import numpy as np

from upi_fraud.config import Config
from upi_fraud.data.records import TransactionRecord
from upi_fraud.features.encoders import Encoders

BASE_FEATURES = [
    # Normalized numeric features
    'amount_z', 'hour_z', 'dow_z',
    # Derived risk flags
    'is_high_amount', 'is_low_amount', 'is_night', 'is_weekend',
    # Transaction type heuristic
    'is_high_risk_type',
]


class FeatureVectorizer:
    """
    Feature engineering for UPI transactions.
    Bundles one Encoders snapshot with the function that turns a
    transaction into its fixed-width numeric vector.
    """

    def __init__(self, encoders: Encoders):
        self.encoders = encoders

    @property
    def width(self) -> int:
        enc = self.encoders
        return len(BASE_FEATURES) + len(enc.trans_type_vocab) + len(enc.location_vocab) + len(enc.device_vocab)

    def extract_features(self, record: TransactionRecord) -> Dict[str, float]:
        """Named scalar features for one transaction (one-hot blocks excluded)"""
        features = {}
        features.update(self._extract_numeric_features(record))
        features.update(self._extract_risk_flags(record))
        features.update(self._extract_type_features(record))
        return features

    def vectorize(self, record: TransactionRecord) -> np.ndarray:
        """
        Map one transaction to its feature vector.

        Layout: the BASE_FEATURES in order, then one-hot blocks for
        transaction type, location and device id. Values missing from a
        vocabulary produce an all-zero block.
        """
        features = self.extract_features(record)
        base = [features[name] for name in BASE_FEATURES]

        return np.concatenate([
            np.array(base, dtype=float),
            self._one_hot_transaction_type(record),
            self._one_hot_location(record),
            self._one_hot_device(record),
        ])

    def transform(self, records: Sequence[TransactionRecord]) -> np.ndarray:
        """Stack vectors for many records into a (n, width) matrix"""
        if not records:
            return np.zeros((0, self.width))
        return np.vstack([self.vectorize(r) for r in records])

    def _normalize(self, value: float, name: str) -> float:
        stats = self.encoders.mean_std[name]
        return (value - stats.mean) / stats.std

    def _extract_numeric_features(self, record: TransactionRecord) -> Dict[str, float]:
        return {
            'amount_z': self._normalize(record.amount, 'Amount'),
            'hour_z': self._normalize(record.hour, 'hour'),
            'dow_z': self._normalize(record.day_of_week, 'dow'),
        }

    def _extract_risk_flags(self, record: TransactionRecord) -> Dict[str, float]:
        hour = record.hour
        return {
            'is_high_amount': float(record.amount > Config.HIGH_AMOUNT_THRESHOLD),
            'is_low_amount': float(record.amount < Config.LOW_AMOUNT_THRESHOLD),
            'is_night': float(hour < Config.NIGHT_END_HOUR or hour > Config.NIGHT_START_HOUR),
            'is_weekend': float(record.is_weekend),
        }

    def _extract_type_features(self, record: TransactionRecord) -> Dict[str, float]:
        return {
            'is_high_risk_type': float(
                record.transaction_type.lower() in Config.HIGH_RISK_TRANSACTION_TYPES
            ),
        }

    def _one_hot_transaction_type(self, record: TransactionRecord) -> np.ndarray:
        value = record.transaction_type.lower()
        return np.array([float(t.lower() == value) for t in self.encoders.trans_type_vocab])

    def _one_hot_location(self, record: TransactionRecord) -> np.ndarray:
        value = (record.location or Config.UNKNOWN_CATEGORY).lower()
        return np.array([float(t.lower() == value) for t in self.encoders.location_vocab])

    def _one_hot_device(self, record: TransactionRecord) -> np.ndarray:
        # Device ids match case-sensitively, unlike type and location
        value = record.device_id or Config.UNKNOWN_CATEGORY
        return np.array([float(t == value) for t in self.encoders.device_vocab])

    def get_feature_names(self) -> List[str]:
        """Return list of all feature names in vector order"""
        enc = self.encoders
        return (
            list(BASE_FEATURES)
            + [f'type={t}' for t in enc.trans_type_vocab]
            + [f'location={t}' for t in enc.location_vocab]
            + [f'device={t}' for t in enc.device_vocab]
        )
