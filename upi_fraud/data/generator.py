import logging
import random
from datetime import datetime, timedelta

import pandas as pd

from upi_fraud.config import Config

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "TransactionID", "UserID", "Amount", "Timestamp", "Location",
    "DeviceID", "TransactionType", "FraudLabel",
]


class TransactionGenerator:
    """Generate a synthetic labeled UPI transaction dataset for demos"""

    def __init__(self, seed: int = None):
        self.seed = Config.SAMPLE_RANDOM_STATE if seed is None else seed

        self.transaction_types = {
            'low_risk': ["P2P", "Merchant", "BillPay", "Recharge", "Deposit", "Refund"],
            'high_risk': ["Transfer", "Online", "Withdrawal", "ATM"],
        }
        self.locations = [loc for loc in Config.DEFAULT_LOCATIONS if loc != Config.UNKNOWN_CATEGORY]
        self.n_users = 150
        self.n_devices = 12

    def generate_training_data(self, n_samples: int = None, fraud_rate: float = None) -> pd.DataFrame:
        """Generate synthetic UPI transactions with a FraudLabel column"""
        if n_samples is None:
            n_samples = Config.SAMPLE_DATASET_SIZE
        if fraud_rate is None:
            fraud_rate = Config.SAMPLE_FRAUD_RATE

        logger.info(f"Generating {n_samples} synthetic transactions...")

        rng = random.Random(self.seed)
        base_time = datetime(2024, 6, 30, 23, 59)
        transactions = []

        for i in range(n_samples):
            is_fraud = rng.random() < fraud_rate

            if is_fraud:
                transaction_data = self._generate_fraud_transaction(rng)
            else:
                transaction_data = self._generate_normal_transaction(rng)

            timestamp = base_time - timedelta(
                days=rng.randint(0, Config.SAMPLE_DAYS_BACK),
                minutes=rng.randint(0, 59),
            )
            timestamp = timestamp.replace(hour=transaction_data['hour'])

            transactions.append({
                "TransactionID": f"UPI{i + 1:06d}",
                "UserID": f"U{rng.randint(1, self.n_users):04d}",
                "Amount": round(transaction_data['amount'], 2),
                "Timestamp": timestamp.isoformat(),
                "Location": transaction_data['location'],
                "DeviceID": transaction_data['device'],
                "TransactionType": transaction_data['transaction_type'],
                "FraudLabel": int(is_fraud),
            })

        df = pd.DataFrame(transactions, columns=CSV_COLUMNS)
        fraud_count = df['FraudLabel'].sum()

        logger.info(f"Generated {len(df)} transactions: {fraud_count} frauds ({fraud_count/len(df)*100:.1f}%)")

        return df

    def generate_csv(self, n_samples: int = None, fraud_rate: float = None) -> str:
        return self.generate_training_data(n_samples, fraud_rate).to_csv(index=False)

    def _generate_fraud_transaction(self, rng: random.Random) -> dict:
        """Generate fraudulent transaction patterns"""
        if rng.random() < 0.7:  # Obvious fraud
            return {
                'amount': rng.uniform(15000, 95000),
                'hour': rng.choice([0, 1, 2, 3, 4, 23]),
                'transaction_type': rng.choice(self.transaction_types['high_risk']),
                'location': rng.choice(self.locations),
                'device': f"DEV{rng.randint(self.n_devices + 1, self.n_devices + 40):03d}",
            }
        else:  # Subtle fraud
            return {
                'amount': rng.uniform(2000, 15000),
                'hour': rng.choice([6, 9, 13, 19, 22, 23]),
                'transaction_type': rng.choice(
                    self.transaction_types['high_risk'] + self.transaction_types['low_risk']
                ),
                'location': rng.choice(self.locations),
                'device': f"DEV{rng.randint(1, self.n_devices):03d}",
            }

    def _generate_normal_transaction(self, rng: random.Random) -> dict:
        """Generate normal transaction patterns"""
        amount = max(10, rng.gauss(1200, 900))
        hour = rng.randint(8, 21) if rng.random() < 0.9 else rng.randint(6, 22)
        transaction_type = (
            rng.choice(self.transaction_types['low_risk']) if rng.random() < 0.75
            else rng.choice(self.transaction_types['high_risk'])
        )

        return {
            'amount': amount,
            'hour': hour,
            'transaction_type': transaction_type,
            'location': rng.choice(self.locations[:6]),
            'device': f"DEV{rng.randint(1, self.n_devices):03d}",
        }
