import numpy as np
import pytest

from conftest import make_record
from upi_fraud.config import Config
from upi_fraud.features.encoders import build_encoders, build_vocabulary


def test_transaction_types_dataset_order_then_defaults(encoders):
    assert encoders.trans_type_vocab == [
        "P2P", "Merchant", "BillPay", "Recharge", "Transfer", "Online", "Withdrawal",
        "ATM", "Deposit", "Refund",
    ]


def test_locations_dataset_order_then_defaults(encoders):
    assert encoders.location_vocab == [
        "Mumbai", "Delhi", "Pune", "Chennai", "Jaipur", "Kolkata", "Hyderabad",
        "Bangalore", "Ahmedabad", "Unknown",
    ]


def test_devices_are_dataset_only(encoders):
    assert encoders.device_vocab == [f"D{i}" for i in range(1, 12)]


def test_vocabulary_order_follows_dataset_order():
    forward = build_encoders([make_record(transaction_type="Online"), make_record(transaction_type="P2P")])
    reverse = build_encoders([make_record(transaction_type="P2P"), make_record(transaction_type="Online")])

    assert forward.trans_type_vocab[:2] == ["Online", "P2P"]
    assert reverse.trans_type_vocab[:2] == ["P2P", "Online"]


def test_vocabulary_is_capped():
    records = [make_record(transaction_type=f"type-{i}") for i in range(1000)]
    encoders = build_encoders(records)

    assert len(encoders.trans_type_vocab) == Config.MAX_VOCAB_SIZE
    assert encoders.trans_type_vocab[0] == "type-0"
    assert encoders.trans_type_vocab[-1] == "type-19"


def test_device_vocabulary_is_capped():
    records = [make_record(device_id=f"dev-{i}") for i in range(50)]

    assert len(build_encoders(records).device_vocab) == 20


def test_missing_location_and_device_become_unknown():
    encoders = build_encoders([make_record(location=None, device_id=None)])

    assert encoders.location_vocab[0] == "Unknown"
    assert encoders.location_vocab.count("Unknown") == 1
    assert encoders.device_vocab == ["Unknown"]


def test_vocabulary_dedup_is_case_sensitive():
    vocab = build_vocabulary(["transfer"], ["Transfer"])

    assert vocab == ["transfer", "Transfer"]


def test_numeric_stats_are_population_mean_and_std(records, encoders):
    amounts = np.array([r.amount for r in records])
    hours = np.array([r.hour for r in records])

    assert encoders.mean_std["Amount"].mean == pytest.approx(amounts.mean())
    assert encoders.mean_std["Amount"].std == pytest.approx(amounts.std(ddof=0))
    assert encoders.mean_std["hour"].mean == pytest.approx(hours.mean())


def test_day_of_week_counts_sunday_as_zero(records, encoders):
    # 2024-03-10 is a Sunday
    sunday = [r for r in records if r.transaction_id == "T008"][0]

    assert sunday.day_of_week == 0
    assert set(encoders.mean_std) == {"Amount", "hour", "dow"}


def test_zero_variance_std_floored_to_one():
    records = [make_record(amount=100.0) for _ in range(5)]
    encoders = build_encoders(records)

    assert encoders.mean_std["Amount"].mean == 100.0
    assert encoders.mean_std["Amount"].std == 1.0
    assert encoders.mean_std["hour"].std == 1.0


def test_empty_dataset_uses_defaults():
    encoders = build_encoders([])

    assert encoders.trans_type_vocab == Config.DEFAULT_TRANSACTION_TYPES
    assert encoders.location_vocab == Config.DEFAULT_LOCATIONS
    assert encoders.device_vocab == []
    assert encoders.mean_std["Amount"].mean == 0.0
    assert encoders.mean_std["Amount"].std == 1.0
