"""
Row-level parsing and aging classification for receivable records.
"""

import re
from datetime import date
from typing import Optional, Sequence

from audit_assistant.config import CONFIG
from audit_assistant.core.models import AgingStatus, AuditRecord

_DECIMAL_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_PREFIX = re.compile(r"^[+-]?\d+")

FIELD_COUNT = 4
# Longer prefixes are past int()'s string conversion limit; treated as unparseable.
MAX_AGING_DIGITS = 4300


def classify_aging(
    aging_days: int,
    overdue_after: int = CONFIG.rules.overdue_after_days,
    impaired_after: int = CONFIG.rules.impaired_after_days,
) -> AgingStatus:
    """Map aging days to a bucket. Later rules override earlier ones."""
    status = AgingStatus.CURRENT
    if overdue_after < aging_days <= impaired_after:
        status = AgingStatus.OVERDUE
    if aging_days > impaired_after:
        status = AgingStatus.IMPAIRED
    return status


def parse_balance(text: str) -> Optional[float]:
    """Parse the leading decimal number of a field; None if there is none."""
    match = _DECIMAL_PREFIX.match((text or "").strip())
    if not match:
        return None
    return float(match.group(0))


def parse_aging(text: str) -> int:
    """Parse the leading integer of a field, defaulting to 0."""
    match = _INTEGER_PREFIX.match((text or "").strip())
    if not match:
        return 0
    digits = match.group(0)
    if len(digits.lstrip("+-")) > MAX_AGING_DIGITS:
        return 0
    return int(digits)


def classify_row(
    fields: Sequence[str],
    record_id: str,
    today: Optional[date] = None,
) -> Optional[AuditRecord]:
    """Build a record from positional (name, balance, aging, date) fields.

    Returns None when the balance cannot be parsed, the only reason a row
    is rejected. Absent or empty name and date fall back to defaults.
    """
    padded = [str(value).strip() for value in list(fields)[:FIELD_COUNT]]
    padded.extend([""] * (FIELD_COUNT - len(padded)))
    name_text, balance_text, aging_text, date_text = padded

    balance = parse_balance(balance_text)
    if balance is None:
        return None

    aging_days = parse_aging(aging_text)
    invoice_date = date_text if date_text != "" else (today or date.today()).isoformat()

    return AuditRecord(
        id=record_id,
        customer_name=name_text if name_text != "" else CONFIG.rules.unknown_customer,
        total_balance=balance,
        aging_days=aging_days,
        status=classify_aging(aging_days),
        invoice_date=invoice_date,
    )
