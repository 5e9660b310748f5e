from typing import Any, Dict, List, Sequence

import pandas as pd

from upi_fraud.data.records import TransactionRecord


def records_to_frame(records: Sequence[TransactionRecord]) -> pd.DataFrame:
    columns = list(TransactionRecord.model_fields)
    return pd.DataFrame([r.model_dump() for r in records], columns=columns)


def _counts(series: pd.Series, key: str, value: str) -> List[Dict[str, Any]]:
    counts = series.value_counts(sort=False)
    return [{key: k, value: int(v)} for k, v in counts.items()]


def dataset_analytics(records: Sequence[TransactionRecord]) -> Dict[str, Any]:
    """
    Aggregate the loaded dataset for the analytics dashboard.

    Returns:
        Dict with summary counts, fraud per day, fraud by transaction type
        and transaction volume over time
    """
    df = records_to_frame(records)
    if df.empty:
        return {
            "summary": {"total_transactions": 0, "labeled_transactions": 0,
                        "fraud_count": 0, "fraud_rate": 0.0, "genuine_rate": 0.0},
            "fraud_per_day": [],
            "fraud_by_type": [],
            "volume_over_time": [],
        }

    df["date"] = df["timestamp"].apply(lambda ts: ts.date().isoformat())
    fraud = df[df["fraud_label"] == 1]

    total = len(df)
    fraud_count = len(fraud)

    volume = sorted(_counts(df["date"], "date", "count"), key=lambda row: row["date"])

    return {
        "summary": {
            "total_transactions": total,
            "labeled_transactions": int(df["fraud_label"].notna().sum()),
            "fraud_count": fraud_count,
            "fraud_rate": fraud_count / total,
            "genuine_rate": 1 - fraud_count / total,
        },
        "fraud_per_day": _counts(fraud["date"], "date", "count"),
        "fraud_by_type": _counts(fraud["transaction_type"], "name", "value"),
        "volume_over_time": volume,
    }
