import threading

import numpy as np
import pytest

from conftest import make_labeled_records, make_record
from upi_fraud.exceptions import InsufficientDataError, TrainingCancelledError
from upi_fraud.features.encoders import build_encoders
from upi_fraud.models.architectures import ModelType
from upi_fraud.prediction.predictor import Predictor
from upi_fraud.training.trainer import ModelTrainer


def test_nine_labeled_rows_rejected():
    records = make_labeled_records(9)

    with pytest.raises(InsufficientDataError):
        ModelTrainer().train_model(records, build_encoders(records), "logistic")


def test_ten_labeled_rows_train():
    records = make_labeled_records(10)
    model = ModelTrainer().train_model(records, build_encoders(records), "logistic", seed=0)

    assert model.train_samples == 8
    assert model.evaluation.test_samples == 2


def test_unlabeled_rows_are_ignored():
    records = make_labeled_records(9) + [make_record(fraud_label=None) for _ in range(5)]

    with pytest.raises(InsufficientDataError):
        ModelTrainer().train_model(records, build_encoders(records), "logistic")


def test_end_to_end_logistic(records, encoders):
    model = ModelTrainer().train_model(records, encoders, "logistic", seed=11)

    assert model.model_type == ModelType.LOGISTIC
    assert model.model_type.value == "logistic"
    for value in (model.accuracy, model.precision, model.recall, model.f1):
        assert 0.0 <= value <= 1.0
    assert model.train_samples + model.evaluation.test_samples == 12

    outlier = make_record(amount=10_000_000.0, transaction_type="Transfer")
    prediction = Predictor().predict(outlier, model)
    assert prediction.label in {"Fraud", "Genuine"}
    assert 0.0 <= prediction.probability <= 1.0


def test_end_to_end_random_forest_label(records, encoders):
    model = ModelTrainer().train_model(records, encoders, "random_forest", seed=3)

    assert model.model_type == ModelType.RANDOM_FOREST
    assert model.network.hidden_units == (64, 32, 16)
    assert model.summary()["model_type"] == "random_forest"


def test_seeded_training_is_reproducible(records, encoders):
    a = ModelTrainer().train_model(records, encoders, "logistic", seed=4)
    b = ModelTrainer().train_model(records, encoders, "logistic", seed=4)
    X = a.vectorizer.transform(records)

    np.testing.assert_allclose(a.predict_proba(X), b.predict_proba(X))


def test_model_keeps_its_encoders_snapshot(records, encoders):
    model = ModelTrainer().train_model(records, encoders, "logistic", seed=0)

    assert model.vectorizer.encoders is encoders
    assert model.input_dim == model.vectorizer.width


def test_old_model_unchanged_by_new_training(records, encoders):
    trainer = ModelTrainer()
    old = trainer.train_model(records, encoders, "logistic", seed=1)
    X = old.vectorizer.transform(records)
    before = old.predict_proba(X).copy()

    other = make_labeled_records(30)
    new = trainer.train_model(other, build_encoders(other), "random_forest", seed=2)

    np.testing.assert_array_equal(old.predict_proba(X), before)
    assert new is not old
    assert new.network is not old.network


def test_cancel_event_stops_training(records, encoders):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(TrainingCancelledError):
        ModelTrainer().train_model(records, encoders, "random_forest", cancel_event=cancel)


def test_unknown_model_type(records, encoders):
    with pytest.raises(ValueError):
        ModelTrainer().train_model(records, encoders, "xgboost")
