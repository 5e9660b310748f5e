from datetime import datetime, timedelta

import pytest

from upi_fraud.data.parser import parse_transactions
from upi_fraud.data.records import TransactionRecord
from upi_fraud.features.encoders import build_encoders
from upi_fraud.features.engineering import FeatureVectorizer
from upi_fraud.models.architectures import ModelType
from upi_fraud.models.network import DenseNetwork
from upi_fraud.models.trained import TrainedModel
from upi_fraud.training.evaluator import evaluate_probabilities

SAMPLE_CSV = """TransactionID,UserID,Amount,Timestamp,Location,DeviceID,TransactionType,FraudLabel
T001,U1,250.00,2024-03-04T10:15:00,Mumbai,D1,P2P,0
T002,U2,1200.50,2024-03-04T13:40:00,Delhi,D2,Merchant,0
T003,U3,85.00,2024-03-05T09:05:00,Pune,D3,BillPay,0
T004,U1,560.00,2024-03-06T18:30:00,Mumbai,D1,Recharge,0
T005,U4,2300.00,2024-03-07T11:00:00,Chennai,D4,Merchant,0
T006,U5,150.00,2024-03-08T16:20:00,Jaipur,D5,P2P,0
T007,U6,45000.00,2024-03-09T02:10:00,Kolkata,D6,Transfer,1
T008,U7,32000.00,2024-03-10T03:45:00,Delhi,D7,Online,1
T009,U8,18000.00,2024-03-09T23:30:00,Hyderabad,D8,Withdrawal,1
T010,U9,52000.00,2024-03-10T01:05:00,Mumbai,D9,Transfer,1
T011,U10,27500.00,2024-03-11T04:50:00,Bangalore,D10,Online,1
T012,U11,61000.00,2024-03-12T00:30:00,Ahmedabad,D11,Withdrawal,1
"""


def make_record(**overrides) -> TransactionRecord:
    fields = {
        "amount": 500.0,
        "timestamp": datetime(2024, 3, 4, 10, 0),
        "transaction_type": "P2P",
        "location": "Mumbai",
        "device_id": "D1",
    }
    fields.update(overrides)
    return TransactionRecord(**fields)


def make_labeled_records(n: int):
    start = datetime(2024, 3, 4, 9, 0)
    records = []
    for i in range(n):
        fraud = i % 2
        records.append(make_record(
            transaction_id=f"L{i:03d}",
            amount=40000.0 + i if fraud else 300.0 + i,
            timestamp=start + timedelta(hours=7 * i),
            transaction_type="Transfer" if fraud else "Merchant",
            fraud_label=fraud,
        ))
    return records


def make_fixed_model(encoders, bias: float) -> TrainedModel:
    """A model whose output ignores its inputs: sigmoid(bias)"""
    vectorizer = FeatureVectorizer(encoders)
    network = DenseNetwork(vectorizer.width, seed=0)
    network.weights[0][:] = 0.0
    network.biases[0][:] = bias
    evaluation = evaluate_probabilities([0.9, 0.1], [1, 0])
    return TrainedModel(ModelType.LOGISTIC, network, vectorizer, evaluation, train_samples=8)


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture
def records():
    return parse_transactions(SAMPLE_CSV).records


@pytest.fixture
def encoders(records):
    return build_encoders(records)


@pytest.fixture
def vectorizer(encoders):
    return FeatureVectorizer(encoders)
