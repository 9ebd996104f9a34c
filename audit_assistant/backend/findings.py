"""
Findings and exceptions: fixed audit flags plus free-text record search.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from audit_assistant.core.models import AgingStatus, AuditRecord


@dataclass
class FindingFlag:
    """One automatic audit flag and the records it raised."""
    key: str
    title: str
    message: str
    severity: str  # alert, ok
    records: List[AuditRecord] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.records)


@dataclass
class FindingsReport:
    negative_balance: FindingFlag
    impairment_risk: FindingFlag

    @property
    def flags(self) -> List[FindingFlag]:
        return [self.negative_balance, self.impairment_risk]

    @property
    def has_exceptions(self) -> bool:
        return any(flag.count for flag in self.flags)


def negative_balances(records: Sequence[AuditRecord]) -> List[AuditRecord]:
    """Credit balances, an anomaly for a receivables ledger."""
    return [record for record in records if record.total_balance < 0]


def impairment_risks(records: Sequence[AuditRecord]) -> List[AuditRecord]:
    return [record for record in records if record.status == AgingStatus.IMPAIRED]


def filter_records(records: Sequence[AuditRecord], query: str) -> List[AuditRecord]:
    """Case-insensitive match on customer name or status; an empty query keeps all."""
    needle = (query or "").lower()
    if not needle:
        return list(records)
    return [
        record
        for record in records
        if needle in record.customer_name.lower() or needle in record.status.value.lower()
    ]


def build_findings(records: Sequence[AuditRecord]) -> FindingsReport:
    negatives = negative_balances(records)
    impaired = impairment_risks(records)

    if negatives:
        negative_message = f"Found {len(negatives)} accounts with negative balance. Potential classification error."
    else:
        negative_message = "No negative balances found."

    if impaired:
        impaired_message = f"Found {len(impaired)} accounts exceeding 90 days. Requires PSAK 71 assessment."
    else:
        impaired_message = "No significantly overdue accounts."

    return FindingsReport(
        negative_balance=FindingFlag(
            key="negative_balance",
            title="Credit Balances (Negative)",
            message=negative_message,
            severity="alert" if negatives else "ok",
            records=negatives,
        ),
        impairment_risk=FindingFlag(
            key="impairment_risk",
            title="Impairment Risk (>90 Days)",
            message=impaired_message,
            severity="alert" if impaired else "ok",
            records=impaired,
        ),
    )
