"""
Receivable audit data model.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List


class AgingStatus(str, Enum):
    """Aging bucket of a receivable, derived from its aging days."""
    CURRENT = "Current"
    OVERDUE = "Overdue"
    IMPAIRED = "Impaired"

    @classmethod
    def canonical_names(cls) -> List[str]:
        return [status.value for status in cls]


class ViewState(Enum):
    """Pages of the audit workspace."""
    LANDING = "LANDING"
    UPLOAD = "UPLOAD"
    DASHBOARD = "DASHBOARD"
    ANALYSIS = "ANALYSIS"
    FINDINGS = "FINDINGS"
    REPORT = "REPORT"


# Views that need an ingested collection before they can be opened.
DATA_VIEWS = (ViewState.DASHBOARD, ViewState.ANALYSIS, ViewState.FINDINGS, ViewState.REPORT)


@dataclass(frozen=True)
class AuditRecord:
    """One receivable line item."""
    id: str
    customer_name: str
    total_balance: float
    aging_days: int
    status: AgingStatus
    invoice_date: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "totalBalance": self.total_balance,
            "agingDays": self.aging_days,
            "status": self.status.value,
            "invoiceDate": self.invoice_date,
        }


@dataclass
class AnalysisMessage:
    """A single turn of the analysis conversation."""
    role: str  # user, ai
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
