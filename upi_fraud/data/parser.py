import io
import logging
import math
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from upi_fraud.config import Config
from upi_fraud.data.records import ParseReport, ParseResult, TransactionRecord

logger = logging.getLogger(__name__)

# Canonical field -> accepted CSV header spellings, in lookup order
COLUMN_ALIASES: Dict[str, List[str]] = {
    "transaction_id": ["TransactionID", "transactionid", "id"],
    "user_id": ["UserID", "userid"],
    "amount": ["Amount", "amount"],
    "timestamp": ["Timestamp", "timestamp"],
    "location": ["Location", "location"],
    "device_id": ["DeviceID", "deviceid"],
    "transaction_type": ["TransactionType", "transactiontype"],
    "fraud_label": ["FraudLabel", "fraudlabel"],
}

REQUIRED_FIELDS = ("timestamp", "transaction_type")

# Stands in for a row with too many fields
_MALFORMED_ROW = "\x00malformed"


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse a timestamp string, keeping the wall-clock time as written"""
    value = value.strip()
    if not value:
        return None
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    try:
        parsed = pd.to_datetime(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def resolve_columns(columns: List[str]) -> Dict[str, int]:
    """Map canonical field names to the position of their header in the CSV"""
    present = {}
    for position, name in enumerate(columns):
        present.setdefault(str(name).strip(), position)
    resolved = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in present:
                resolved[field] = present[alias]
                break
    return resolved


class _ReportBuilder:
    def __init__(self, limit: int):
        self.limit = limit
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.dropped = 0

    def drop(self, message: str):
        self.dropped += 1
        if len(self.errors) < self.limit:
            self.errors.append(message)

    def warn(self, message: str):
        if len(self.warnings) < self.limit:
            self.warnings.append(message)


def _cell(value) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def _coerce_amount(raw: str, line: int, report: _ReportBuilder) -> float:
    try:
        amount = float(raw)
    except ValueError:
        report.warn(f"Line {line}: Amount {raw!r} is not a number, using 0")
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        report.warn(f"Line {line}: Amount {raw!r} is out of range, using 0")
        return 0.0
    return amount


def _coerce_label(raw: str, line: int, report: _ReportBuilder) -> Optional[int]:
    if raw == "":
        return None
    try:
        label = float(raw)
    except ValueError:
        report.warn(f"Line {line}: FraudLabel {raw!r} is not a number, row left unlabeled")
        return None
    if label not in (0.0, 1.0):
        report.warn(f"Line {line}: FraudLabel {raw!r} is not 0 or 1, row left unlabeled")
        return None
    return int(label)


def parse_transactions(csv_text: str) -> ParseResult:
    """
    Parse CSV text into transaction records.

    Rows without a usable timestamp or transaction type are dropped and
    reported; bad amounts and labels are coerced with a warning. Rows with
    more fields than the header are dropped as malformed. Reported line
    numbers are physical lines of the input, blank lines included.

    Args:
        csv_text: CSV content with a header row

    Returns:
        ParseResult with the kept records and a ParseReport
    """
    report = _ReportBuilder(Config.MAX_REPORTED_ERRORS)
    bad_lines: List[List[str]] = []

    def on_bad_line(fields: List[str]) -> List[str]:
        # Keep a placeholder so later rows stay on their own line numbers
        bad_lines.append(fields)
        return [_MALFORMED_ROW]

    if not csv_text or not csv_text.strip():
        return ParseResult(records=[], report=ParseReport(success=False, errors=["CSV is empty"]))

    text = csv_text.lstrip("\r\n")
    skipped_lines = csv_text[:len(csv_text) - len(text)].count("\n")

    try:
        # header=None: an over-long first data row must not turn the first
        # column into an implicit index
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            engine="python",
            on_bad_lines=on_bad_line,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        return ParseResult(records=[], report=ParseReport(success=False, errors=[f"Could not read CSV: {e}"]))

    rows = [[_cell(v) for v in row] for row in df.itertuples(index=False, name=None)]
    header_pos = next((pos for pos, row in enumerate(rows) if any(row)), None)
    if header_pos is None:
        return ParseResult(records=[], report=ParseReport(success=False, errors=["CSV is empty"]))

    header = rows[header_pos]
    columns = resolve_columns(header)
    missing = [f for f in REQUIRED_FIELDS if f not in columns]
    if missing:
        headers = ", ".join(COLUMN_ALIASES[f][0] for f in missing)
        return ParseResult(
            records=[],
            report=ParseReport(success=False, errors=[f"Missing required column(s): {headers}"]),
        )

    malformed = iter(bad_lines)
    records = []
    for pos in range(header_pos + 1, len(rows)):
        row = rows[pos]
        line = pos + 1 + skipped_lines

        if row and row[0] == _MALFORMED_ROW:
            fields = next(malformed)
            report.drop(
                f"Line {line}: Malformed row skipped ({len(fields)} fields, "
                f"header has {len(header)}): {','.join(fields)[:80]}"
            )
            continue
        if not any(row):
            continue

        def get(field: str) -> str:
            position = columns.get(field)
            return row[position] if position is not None and position < len(row) else ""

        timestamp_raw = get("timestamp")
        transaction_type = get("transaction_type")

        if not timestamp_raw:
            report.drop(f"Line {line}: missing Timestamp")
            continue
        if not transaction_type:
            report.drop(f"Line {line}: missing TransactionType")
            continue
        timestamp = parse_timestamp(timestamp_raw)
        if timestamp is None:
            report.drop(f"Line {line}: unparseable Timestamp {timestamp_raw!r}")
            continue

        records.append(TransactionRecord(
            transaction_id=get("transaction_id") or None,
            user_id=get("user_id") or None,
            amount=_coerce_amount(get("amount"), line, report),
            timestamp=timestamp,
            location=get("location") or None,
            device_id=get("device_id") or None,
            transaction_type=transaction_type,
            fraud_label=_coerce_label(get("fraud_label"), line, report),
        ))

    errors = list(report.errors)
    if not records:
        errors.append("No valid transactions found")

    labeled = sum(1 for r in records if r.is_labeled)
    parse_report = ParseReport(
        success=bool(records),
        row_count=len(records),
        labeled_count=labeled,
        dropped_count=report.dropped,
        errors=errors,
        warnings=report.warnings,
    )

    if report.dropped:
        logger.warning(f"Dropped {report.dropped} unusable CSV rows")
    logger.info(f"Parsed {len(records)} transactions ({labeled} labeled)")

    return ParseResult(records=records, report=parse_report)
