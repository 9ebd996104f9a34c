"""
CSV ingestion for receivable working papers (Name, Balance, AgingDays, InvoiceDate).
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from audit_assistant.backend.record_classifier import classify_row
from audit_assistant.config import CONFIG
from audit_assistant.core.models import AuditRecord

logger = logging.getLogger(__name__)

EXPECTED_FORMAT = "Name,Balance,AgingDays,Date"

RECORD_COLUMNS = ["id", "customerName", "totalBalance", "agingDays", "status", "invoiceDate"]

SAMPLE_CSV = """Name,Balance,AgingDays,InvoiceDate
PT. Maju Jaya,150000000,15,2023-10-01
CV. Sumber Rejeki,45000000,45,2023-09-01
Toko Abadi,12500000,120,2023-06-01
PT. Teknologi Baru,250000000,5,2023-10-10
UD. Sejahtera,8500000,200,2023-03-01
Global Corp,500000000,10,2023-10-05
Local Trader,-1500000,30,2023-09-15
Mega Construction,300000000,95,2023-07-01"""


class IngestionError(ValueError):
    """Raised when an uploaded file cannot produce a record collection."""


class EmptyIngestionError(IngestionError):
    """Raised when no row of the file survives classification."""


class CsvIngestor:
    """Turn raw CSV text into an immutable list of audit records."""

    def __init__(self, delimiter: str = CONFIG.rules.delimiter):
        self.delimiter = delimiter

    def ingest(self, text: str, today: Optional[date] = None) -> List[AuditRecord]:
        """Parse every data row; the first line is always the header."""
        lines = (text or "").split("\n")
        records: List[AuditRecord] = []
        dropped = 0

        for index in range(1, len(lines)):
            line = lines[index].strip()
            if not line:
                continue

            record = classify_row(line.split(self.delimiter), record_id=f"REC-{index}", today=today)
            if record is None:
                dropped += 1
                continue
            records.append(record)

        if dropped:
            logger.debug(f"Dropped {dropped} row(s) with unparseable balance")

        if not records:
            raise EmptyIngestionError("No valid records found in CSV.")

        logger.info(f"Ingested {len(records)} receivable record(s)")
        return records

    def ingest_bytes(self, payload: bytes, today: Optional[date] = None) -> List[AuditRecord]:
        """Decode an uploaded file and ingest it."""
        try:
            text = payload.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = payload.decode("latin-1")
        return self.ingest(text, today=today)

    def ingest_sample(self, today: Optional[date] = None) -> List[AuditRecord]:
        """Load the bundled sample receivables ledger."""
        return self.ingest(SAMPLE_CSV, today=today)


def records_to_frame(records: Iterable[AuditRecord]) -> pd.DataFrame:
    """Tabular view of a record collection with a fixed column order."""
    rows = [record.to_dict() for record in records]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)
