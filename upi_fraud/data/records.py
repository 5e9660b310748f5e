from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TransactionRecord(BaseModel):
    """One UPI transaction row, as parsed from CSV or entered manually"""

    model_config = ConfigDict(frozen=True)

    transaction_id: Optional[str] = None
    user_id: Optional[str] = None
    amount: float = Field(ge=0)
    timestamp: datetime
    location: Optional[str] = None
    device_id: Optional[str] = None
    transaction_type: str = Field(min_length=1)
    fraud_label: Optional[int] = None

    @property
    def hour(self) -> int:
        return self.timestamp.hour

    @property
    def day_of_week(self) -> int:
        """Day of week with Sunday as 0 and Saturday as 6"""
        return (self.timestamp.weekday() + 1) % 7

    @property
    def is_weekend(self) -> bool:
        return self.day_of_week in (0, 6)

    @property
    def is_labeled(self) -> bool:
        return self.fraud_label is not None


class ParseReport(BaseModel):
    """Summary of a CSV load: what was kept, what was dropped and why"""

    success: bool
    row_count: int = 0
    labeled_count: int = 0
    dropped_count: int = 0
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ParseResult(BaseModel):
    records: List[TransactionRecord]
    report: ParseReport
