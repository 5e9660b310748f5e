import asyncio

import pytest

from upi_fraud.exceptions import UntrainedModelError
from upi_fraud.session import FraudDetectionSession
from upi_fraud.stream import TransactionStream


@pytest.fixture
def trained_session(sample_csv):
    session = FraudDetectionSession()
    session.load_csv(sample_csv)
    session.train("logistic", seed=0)
    return session


def test_tick_replays_dataset_in_order(trained_session):
    stream = TransactionStream(trained_session)

    first = stream.tick()
    second = stream.tick()

    assert first.id == "T001"
    assert second.id == "T002"
    assert [row.id for row in stream.recent()] == ["T002", "T001"]
    assert first.prediction in {"Fraud", "Genuine"}


def test_tick_wraps_around_and_keeps_bounded_history(trained_session):
    stream = TransactionStream(trained_session, history_size=5)

    rows = [stream.tick() for _ in range(14)]

    assert rows[12].id == "T001"
    assert len(stream.recent()) == 5
    assert stream.recent()[0].id == "T002"


def test_tick_uses_current_live_model(trained_session):
    stream = TransactionStream(trained_session)
    stream.tick()

    replacement = trained_session.train("random_forest", seed=1)
    row = stream.tick()

    expected = trained_session.predict(trained_session.dataset[1])
    assert trained_session.model is replacement
    assert row.probability == pytest.approx(expected.probability)


def test_start_requires_trained_model(sample_csv):
    session = FraudDetectionSession()
    session.load_csv(sample_csv)

    async def start():
        TransactionStream(session).start()

    with pytest.raises(UntrainedModelError):
        asyncio.run(start())


def test_start_and_stop(trained_session):
    async def run():
        stream = TransactionStream(trained_session, interval=0.01)
        assert stream.start()
        assert not stream.start()
        await asyncio.sleep(0.1)
        await stream.stop()
        return stream

    stream = asyncio.run(run())

    assert not stream.is_running
    assert len(stream.recent()) >= 1


def test_failing_tick_ends_stream_and_stop_succeeds(trained_session):
    async def run():
        stream = TransactionStream(trained_session, interval=0.01)

        def broken_tick():
            raise RuntimeError("scoring failed")

        stream.tick = broken_tick
        stream.start()
        await asyncio.sleep(0.1)
        running = stream.is_running
        await stream.stop()
        return running

    assert asyncio.run(run()) is False
