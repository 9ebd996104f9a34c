"""
Aggregation engine and findings engine tests.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def _record(record_id, name, balance, aging):
    from audit_assistant.backend.record_classifier import classify_aging
    from audit_assistant.core.models import AuditRecord
    return AuditRecord(
        id=record_id,
        customer_name=name,
        total_balance=balance,
        aging_days=aging,
        status=classify_aging(aging),
        invoice_date="2023-10-01",
    )


def _sample():
    from audit_assistant.backend.csv_ingest import CsvIngestor
    return CsvIngestor().ingest_sample()


class TestKpis:
    """Exposure, impairment and NPL ratio."""

    def test_sample_kpis(self):
        from audit_assistant.backend.aggregation import compute_kpis
        kpis = compute_kpis(_sample())
        assert kpis.total_exposure == 1_264_500_000
        assert kpis.total_customers == 8
        assert kpis.impaired_total == 321_000_000
        assert abs(kpis.npl_ratio - 321_000_000 / 1_264_500_000 * 100) < 1e-9

    def test_negative_balances_reduce_exposure(self):
        from audit_assistant.backend.aggregation import total_exposure
        records = [_record("REC-1", "A", 100.0, 0), _record("REC-2", "B", -40.0, 0)]
        assert total_exposure(records) == 60.0

    def test_npl_ratio_is_zero_without_exposure(self):
        from audit_assistant.backend.aggregation import compute_kpis, npl_ratio
        assert npl_ratio(0.0, 0.0) == 0.0
        assert npl_ratio(500.0, 0.0) == 0.0

        records = [_record("REC-1", "A", 100.0, 120), _record("REC-2", "B", -100.0, 0)]
        kpis = compute_kpis(records)
        assert kpis.total_exposure == 0.0
        assert kpis.impaired_total == 100.0
        assert kpis.npl_ratio == 0.0

    def test_empty_collection(self):
        from audit_assistant.backend.aggregation import build_dashboard
        view = build_dashboard([])
        assert view.kpis.total_exposure == 0.0
        assert view.kpis.npl_ratio == 0.0
        assert [b.value for b in view.buckets] == [0.0, 0.0, 0.0]
        assert view.top_debtors == []


class TestAgingBuckets:
    """Balance per status bucket."""

    def test_sample_buckets(self):
        from audit_assistant.backend.aggregation import aging_buckets
        buckets = aging_buckets(_sample())
        assert [b.name for b in buckets] == ["Current", "Overdue", "Impaired"]
        assert [b.value for b in buckets] == [898_500_000, 45_000_000, 321_000_000]
        assert [b.color for b in buckets] == ["#0ea5e9", "#f59e0b", "#ef4444"]

    def test_non_canonical_status_is_excluded(self):
        from unittest.mock import patch
        import pandas as pd
        from audit_assistant.backend import aggregation

        frame = pd.DataFrame(
            [{"status": "Current", "totalBalance": 10.0}, {"status": "Written Off", "totalBalance": 99.0}]
        )
        with patch.object(aggregation, "records_to_frame", return_value=frame):
            buckets = aggregation.aging_buckets([object()])
        assert [b.value for b in buckets] == [10.0, 0.0, 0.0]


class TestTopDebtors:
    """Top-N ranking."""

    def test_sample_ranking_and_labels(self):
        from audit_assistant.backend.aggregation import top_debtors
        bars = top_debtors(_sample())
        assert [bar.balance for bar in bars] == [500_000_000, 300_000_000, 250_000_000, 150_000_000, 45_000_000]
        assert [bar.label for bar in bars] == [
            "Global Cor...",
            "Mega Const...",
            "PT. Teknol...",
            "PT. Maju J...",
            "CV. Sumber...",
        ]
        assert bars[1].record.customer_name == "Mega Construction"

    def test_ties_keep_input_order(self):
        from audit_assistant.backend.aggregation import top_debtors
        records = [
            _record("REC-1", "First", 100.0, 0),
            _record("REC-2", "Second", 200.0, 0),
            _record("REC-3", "Third", 100.0, 0),
            _record("REC-4", "Fourth", 100.0, 0),
        ]
        bars = top_debtors(records, limit=4)
        assert [bar.record.id for bar in bars] == ["REC-2", "REC-1", "REC-3", "REC-4"]

    def test_short_names_are_not_truncated(self):
        from audit_assistant.backend.aggregation import truncate_label
        assert truncate_label("Toko Abadi") == "Toko Abadi"
        assert truncate_label("Toko Abadi!") == "Toko Abadi..."


class TestFormatting:

    def test_currency(self):
        from audit_assistant.backend.aggregation import format_currency
        assert format_currency(1_264_500_000) == "$1,264,500,000"
        assert format_currency(-1_500_000) == "-$1,500,000"
        assert format_currency(12.5) == "$12.50"

    def test_percent(self):
        from audit_assistant.backend.aggregation import format_percent
        assert format_percent(25.3859) == "25.39%"
        assert format_percent(0.0) == "0.00%"


class TestFindings:
    """Automatic flags and free-text search."""

    def test_flags_on_sample(self):
        from audit_assistant.backend.findings import build_findings
        report = build_findings(_sample())

        assert [r.customer_name for r in report.negative_balance.records] == ["Local Trader"]
        assert [r.customer_name for r in report.impairment_risk.records] == [
            "Toko Abadi",
            "UD. Sejahtera",
            "Mega Construction",
        ]
        assert report.negative_balance.message == (
            "Found 1 accounts with negative balance. Potential classification error."
        )
        assert report.impairment_risk.message == (
            "Found 3 accounts exceeding 90 days. Requires PSAK 71 assessment."
        )
        assert report.has_exceptions

    def test_flags_are_independent(self):
        from audit_assistant.backend.findings import impairment_risks, negative_balances
        records = [_record("REC-1", "Both", -10.0, 120)]
        assert negative_balances(records) == records
        assert impairment_risks(records) == records

    def test_clean_ledger(self):
        from audit_assistant.backend.findings import build_findings
        report = build_findings([_record("REC-1", "Clean", 10.0, 5)])
        assert report.negative_balance.message == "No negative balances found."
        assert report.impairment_risk.message == "No significantly overdue accounts."
        assert [flag.severity for flag in report.flags] == ["ok", "ok"]
        assert not report.has_exceptions

    def test_empty_query_returns_everything_in_order(self):
        from audit_assistant.backend.findings import filter_records
        records = _sample()
        assert filter_records(records, "") == records
        assert filter_records(records, None) == records

    def test_whitespace_query_is_matched_literally(self):
        from audit_assistant.backend.findings import filter_records
        records = _sample()
        assert filter_records(records, "   ") == []
        assert [r.customer_name for r in filter_records(records, "u j")] == ["PT. Maju Jaya"]

    def test_query_matches_name_or_status(self):
        from audit_assistant.backend.findings import filter_records
        records = _sample()
        assert [r.customer_name for r in filter_records(records, "pt.")] == ["PT. Maju Jaya", "PT. Teknologi Baru"]
        assert [r.customer_name for r in filter_records(records, "OVERDUE")] == ["CV. Sumber Rejeki"]
        assert len(filter_records(records, "impaired")) == 3
        assert filter_records(records, "nobody") == []
