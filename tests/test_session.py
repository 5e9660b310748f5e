import threading
import time

import pytest

from conftest import make_record
from upi_fraud.config import Config
from upi_fraud.exceptions import (
    InsufficientDataError, ParseError, TrainingCancelledError, TrainingInProgressError,
    UntrainedModelError,
)
from upi_fraud.session import FraudDetectionSession

FEW_LABELS_CSV = """Amount,Timestamp,TransactionType,FraudLabel
100,2024-03-04T10:00:00,P2P,0
200,2024-03-04T11:00:00,P2P,1
300,2024-03-04T12:00:00,Merchant,0
400,2024-03-04T13:00:00,Transfer,1
500,2024-03-04T14:00:00,Online,
"""


def test_load_csv_builds_dataset_and_encoders(sample_csv):
    session = FraudDetectionSession()
    report = session.load_csv(sample_csv)

    assert report.row_count == 12
    assert len(session.dataset) == 12
    assert len(session.preview) == Config.PREVIEW_ROWS
    assert session.encoders.device_vocab[0] == "D1"
    assert session.last_report is report


def test_unusable_csv_keeps_previous_dataset(sample_csv):
    session = FraudDetectionSession()
    session.load_csv(sample_csv)

    with pytest.raises(ParseError) as excinfo:
        session.load_csv("foo,bar\n1,2\n")

    assert not excinfo.value.report.success
    assert len(session.dataset) == 12


def test_train_without_dataset():
    with pytest.raises(InsufficientDataError):
        FraudDetectionSession().train("logistic")


def test_train_sets_live_model(sample_csv):
    session = FraudDetectionSession()
    session.load_csv(sample_csv)
    model = session.train("logistic", seed=0)

    assert session.model is model
    assert not session.is_training


def test_failed_training_keeps_previous_model(sample_csv):
    session = FraudDetectionSession()
    session.load_csv(sample_csv)
    previous = session.train("logistic", seed=0)

    session.load_csv(FEW_LABELS_CSV)
    with pytest.raises(InsufficientDataError):
        session.train("logistic")

    assert session.model is previous
    assert session.predict(make_record()).label in {"Fraud", "Genuine"}


def test_overlapping_training_rejected(sample_csv):
    session = FraudDetectionSession()
    session.load_csv(sample_csv)
    session._train_lock.acquire()
    try:
        assert session.is_training
        with pytest.raises(TrainingInProgressError):
            session.train("logistic")
    finally:
        session._train_lock.release()


def test_cancel_without_training():
    assert FraudDetectionSession().cancel_training() is False


def test_predict_without_model():
    with pytest.raises(UntrainedModelError):
        FraudDetectionSession().predict(make_record())


def test_load_generated_sample_dataset(monkeypatch):
    monkeypatch.setattr(Config, "SAMPLE_DATASET_URL", "")
    session = FraudDetectionSession()
    report = session.load_sample_dataset()

    assert report.row_count == Config.SAMPLE_DATASET_SIZE
    assert report.labeled_count == Config.SAMPLE_DATASET_SIZE
    assert 0 < sum(r.fraud_label for r in session.dataset) < Config.SAMPLE_DATASET_SIZE


def test_load_sample_dataset_from_url(monkeypatch, sample_csv):
    requested = []

    class FakeResponse:
        text = sample_csv

        def raise_for_status(self):
            pass

    def fake_get(url, timeout):
        requested.append(url)
        return FakeResponse()

    monkeypatch.setattr(Config, "SAMPLE_DATASET_URL", "http://example.test/upi.csv")
    monkeypatch.setattr("upi_fraud.session.requests.get", fake_get)

    report = FraudDetectionSession().load_sample_dataset()

    assert requested == ["http://example.test/upi.csv"]
    assert report.row_count == 12


def test_sample_dataset_trains_both_architectures(monkeypatch):
    monkeypatch.setattr(Config, "SAMPLE_DATASET_URL", "")
    session = FraudDetectionSession()
    session.load_sample_dataset()

    logistic = session.train("logistic", seed=0)
    network = session.train("random_forest", seed=0)

    assert session.model is network
    assert logistic.accuracy > 0.8
    assert network.accuracy > 0.8


class BlockingTrainer:
    """Waits for cancellation instead of fitting anything"""

    def train_model(self, records, encoders, model_type, seed=None, cancel_event=None):
        assert cancel_event.wait(timeout=5)
        raise TrainingCancelledError("Training cancelled")


def test_cancel_is_never_lost_once_training_started(sample_csv):
    session = FraudDetectionSession(trainer=BlockingTrainer())
    session.load_csv(sample_csv)
    errors = []

    def run():
        try:
            session.train("logistic")
        except TrainingCancelledError as e:
            errors.append(e)

    worker = threading.Thread(target=run)
    worker.start()
    deadline = time.monotonic() + 5
    while not session.is_training and time.monotonic() < deadline:
        time.sleep(0.001)

    assert session.cancel_training() is True
    worker.join(timeout=5)

    assert len(errors) == 1
    assert session.model is None
    assert not session.is_training
