"""
Dashboard aggregates: exposure, impairment, NPL ratio, aging buckets, top debtors.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from audit_assistant.backend.csv_ingest import records_to_frame
from audit_assistant.config import CONFIG
from audit_assistant.core.models import AgingStatus, AuditRecord

BUCKET_COLORS = {
    AgingStatus.CURRENT.value: "#0ea5e9",
    AgingStatus.OVERDUE.value: "#f59e0b",
    AgingStatus.IMPAIRED.value: "#ef4444",
}


@dataclass
class KpiSummary:
    total_exposure: float
    total_customers: int
    impaired_total: float
    npl_ratio: float


@dataclass
class AgingBucket:
    name: str
    value: float
    color: str


@dataclass
class DebtorBar:
    label: str
    balance: float
    record: AuditRecord


@dataclass
class DashboardView:
    kpis: KpiSummary
    buckets: List[AgingBucket] = field(default_factory=list)
    top_debtors: List[DebtorBar] = field(default_factory=list)


def total_exposure(records: Iterable[AuditRecord]) -> float:
    """Gross receivables; credit balances reduce the total."""
    return float(sum(record.total_balance for record in records))


def impaired_total(records: Iterable[AuditRecord]) -> float:
    return float(sum(r.total_balance for r in records if r.status == AgingStatus.IMPAIRED))


def npl_ratio(impaired: float, exposure: float) -> float:
    """Impaired share of exposure in percent.

    Defined as 0.0 when there is no positive exposure to divide by. This is
    a reporting policy, not an arithmetic identity.
    """
    if exposure > 0:
        return impaired / exposure * 100
    return 0.0


def compute_kpis(records: Sequence[AuditRecord]) -> KpiSummary:
    exposure = total_exposure(records)
    impaired = impaired_total(records)
    return KpiSummary(
        total_exposure=exposure,
        total_customers=len(records),
        impaired_total=impaired,
        npl_ratio=npl_ratio(impaired, exposure),
    )


def aging_buckets(records: Sequence[AuditRecord]) -> List[AgingBucket]:
    """Balance per canonical status; unknown statuses are left out."""
    frame = records_to_frame(records)
    sums = frame.groupby("status")["totalBalance"].sum() if not frame.empty else {}
    return [
        AgingBucket(name=name, value=float(sums.get(name, 0.0)), color=BUCKET_COLORS[name])
        for name in AgingStatus.canonical_names()
    ]


def truncate_label(name: str, width: int = CONFIG.rules.debtor_label_width) -> str:
    if len(name) > width:
        return name[:width] + "..."
    return name


def top_debtors(
    records: Sequence[AuditRecord],
    limit: int = CONFIG.rules.top_debtors,
    label_width: int = CONFIG.rules.debtor_label_width,
) -> List[DebtorBar]:
    """Largest balances first; equal balances keep their input order."""
    ranked = sorted(records, key=lambda record: record.total_balance, reverse=True)
    return [
        DebtorBar(label=truncate_label(record.customer_name, label_width), balance=record.total_balance, record=record)
        for record in ranked[:limit]
    ]


def build_dashboard(records: Sequence[AuditRecord]) -> DashboardView:
    return DashboardView(
        kpis=compute_kpis(records),
        buckets=aging_buckets(records),
        top_debtors=top_debtors(records),
    )


def format_currency(value: float) -> str:
    """Dollar amount with thousands separators, e.g. $1,250,000 or -$1,500."""
    sign = "-" if value < 0 else ""
    amount = abs(value)
    if float(amount).is_integer():
        return f"{sign}${amount:,.0f}"
    return f"{sign}${amount:,.2f}"


def format_percent(value: float) -> str:
    return f"{value:.2f}%"
