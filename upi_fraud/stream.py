import asyncio
import logging
from collections import deque
from datetime import datetime
from typing import Deque, List, Optional

from pydantic import BaseModel

from upi_fraud.config import Config
from upi_fraud.data.records import TransactionRecord
from upi_fraud.exceptions import UntrainedModelError
from upi_fraud.session import FraudDetectionSession

logger = logging.getLogger(__name__)


class StreamRow(BaseModel):
    id: str
    amount: float
    time: datetime
    type: str
    prediction: str
    probability: float


class TransactionStream:
    """
    Replay the loaded dataset through the live model on a fixed interval,
    simulating a real-time transaction feed.
    """

    def __init__(self, session: FraudDetectionSession, interval: float = None,
                 history_size: int = None):
        self.session = session
        self.interval = Config.STREAM_INTERVAL_SECONDS if interval is None else interval
        self.rows: Deque[StreamRow] = deque(maxlen=history_size or Config.STREAM_HISTORY_SIZE)
        self._index = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def recent(self) -> List[StreamRow]:
        """Most recent rows first"""
        return list(self.rows)

    def tick(self) -> StreamRow:
        """Predict the next dataset row and record the result"""
        dataset = self.session.dataset
        if not dataset:
            raise UntrainedModelError("No dataset loaded for streaming")

        source = dataset[self._index % len(dataset)]
        self._index += 1
        record = TransactionRecord(
            transaction_id=source.transaction_id,
            amount=source.amount,
            timestamp=source.timestamp,
            location=source.location,
            device_id=source.device_id,
            transaction_type=source.transaction_type,
        )
        prediction = self.session.predict(record)

        row = StreamRow(
            id=source.transaction_id or str(self._index),
            amount=source.amount,
            time=source.timestamp,
            type=source.transaction_type,
            prediction=prediction.label,
            probability=prediction.probability,
        )
        self.rows.appendleft(row)
        return row

    def start(self) -> bool:
        """Start ticking on the running event loop; False if already running"""
        if self.is_running:
            return False
        if self.session.model is None or not self.session.dataset:
            raise UntrainedModelError("Train a model on a loaded dataset before starting the stream")
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Transaction stream started (every {self.interval}s)")
        return True

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Transaction stream stopped")

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.tick()
            except UntrainedModelError as e:
                logger.warning(f"Stream stopped: {e}")
                return
            except Exception:
                logger.exception("Stream tick failed; stream stopped")
                return
