"""
Report Agent: assembles the downloadable audit findings report (PDF).
"""

import html
import io
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from audit_assistant.agents.base_agent import BaseAgent, AgentResult
from audit_assistant.backend.aggregation import build_dashboard, format_currency, format_percent
from audit_assistant.backend.findings import FindingFlag, FindingsReport, build_findings
from audit_assistant.config import CONFIG
from audit_assistant.core.models import AnalysisMessage, AuditRecord
from audit_assistant.utils.audit_standards import (
    AUDIT_STANDARDS_MAP,
    BUCKET_GUIDANCE,
    FINDING_RECOMMENDATIONS,
    aging_policy_text,
)

RECORD_HEADER = ["Customer Name", "Balance", "Aging (Days)", "Status", "Invoice Date"]


class AuditReportAgent(BaseAgent):
    """Builds the branded findings report from the active ledger."""

    def __init__(self):
        super().__init__("AuditReportAgent")

    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Render `task["records"]` (and optional `task["messages"]`) to PDF bytes."""
        start = datetime.now()

        try:
            records = task.get("records", [])
            if not records:
                raise ValueError("No records to report on")

            pdf_bytes = self.build_pdf(records, analysis_notes=task.get("messages"))
            duration = (datetime.now() - start).total_seconds()

            return AgentResult(
                agent_name=self.name,
                success=True,
                data={"pdf": pdf_bytes, "size_bytes": len(pdf_bytes), "record_count": len(records)},
                duration_seconds=duration,
            )

        except Exception as e:
            self.log_error(f"PDF generation failed: {str(e)}")
            return AgentResult(agent_name=self.name, success=False, data={}, error=str(e))

    def build_pdf(
        self,
        records: Sequence[AuditRecord],
        analysis_notes: Optional[Sequence[AnalysisMessage]] = None,
    ) -> bytes:
        self.log_step(f"Generating findings report for {len(records)} record(s)")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, title=CONFIG.branding.report_title)
        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "ReportTitle",
            parent=styles["Heading1"],
            fontSize=22,
            textColor=colors.HexColor(CONFIG.branding.primary_color),
            alignment=TA_CENTER,
            spaceAfter=20,
        )

        dashboard = build_dashboard(records)
        findings = build_findings(records)
        kpis = dashboard.kpis

        story: List[Any] = [
            Paragraph(html.escape(CONFIG.branding.report_title), title_style),
            Paragraph(f"<b>{html.escape(CONFIG.branding.company_name)}</b>", styles["Normal"]),
            Paragraph(f"Generated {datetime.now():%Y-%m-%d %H:%M}", styles["Normal"]),
            Spacer(1, 0.3 * inch),
        ]

        story.append(Paragraph("Key Indicators", styles["Heading2"]))
        story.append(self._table([
            ["Total Exposure", format_currency(kpis.total_exposure)],
            ["Total Customers", str(kpis.total_customers)],
            ["Impaired (>90 Days)", format_currency(kpis.impaired_total)],
            ["NPL Ratio", format_percent(kpis.npl_ratio)],
        ]))
        story.append(Spacer(1, 0.2 * inch))

        story.append(Paragraph("Aging Analysis", styles["Heading2"]))
        story.append(Paragraph(html.escape(aging_policy_text()), styles["Normal"]))
        story.append(Spacer(1, 0.1 * inch))
        story.append(self._table(
            [["Bucket", "Balance", "Audit Focus"]]
            + [[b.name, format_currency(b.value), BUCKET_GUIDANCE.get(b.name, "")] for b in dashboard.buckets],
            header=True,
        ))
        story.append(Spacer(1, 0.2 * inch))

        story.append(Paragraph("Top Debtors", styles["Heading2"]))
        story.append(self._table(
            [["Customer Name", "Balance"]]
            + [[bar.record.customer_name, format_currency(bar.balance)] for bar in dashboard.top_debtors],
            header=True,
        ))
        story.append(Spacer(1, 0.2 * inch))

        story.extend(self._findings_section(findings, styles))
        story.extend(self._standards_section(styles))

        if analysis_notes:
            story.append(Paragraph("AI Analysis Notes", styles["Heading2"]))
            for message in analysis_notes:
                speaker = "Auditor" if message.role == "user" else "Professor Audit"
                story.append(Paragraph(f"<b>{speaker}:</b> {html.escape(message.content)}", styles["Normal"]))
                story.append(Spacer(1, 0.05 * inch))

        story.append(Spacer(1, 0.4 * inch))
        story.append(Paragraph(f"<i>{html.escape(CONFIG.branding.footer_text)}</i>", styles["Normal"]))

        doc.build(story)
        self.log_step("PDF generated successfully")
        return buffer.getvalue()

    def _findings_section(self, findings: FindingsReport, styles) -> List[Any]:
        section: List[Any] = [Paragraph("Findings &amp; Exceptions", styles["Heading2"])]
        if not findings.has_exceptions:
            section.append(Paragraph("No exceptions were identified in this ledger.", styles["Normal"]))
            section.append(Spacer(1, 0.1 * inch))
        for flag in findings.flags:
            section.extend(self._flag_section(flag, styles))
        return section

    @staticmethod
    def _standards_section(styles) -> List[Any]:
        section: List[Any] = [Paragraph("Standards Referenced", styles["Heading2"])]
        for entry in AUDIT_STANDARDS_MAP:
            section.append(Paragraph(
                f"<b>{html.escape(entry['standard'])}</b>: "
                f"{html.escape(entry['purpose'])} {html.escape(entry['focus'])}",
                styles["Normal"],
            ))
            section.append(Spacer(1, 0.05 * inch))
        section.append(Spacer(1, 0.15 * inch))
        return section

    def _flag_section(self, flag: FindingFlag, styles) -> List[Any]:
        section: List[Any] = [
            Paragraph(f"<b>{html.escape(flag.title)}</b>", styles["Heading3"]),
            Paragraph(html.escape(flag.message), styles["Normal"]),
        ]
        if flag.records:
            section.append(Paragraph(html.escape(FINDING_RECOMMENDATIONS.get(flag.key, "")), styles["Italic"]))
            section.append(Spacer(1, 0.1 * inch))
            section.append(self._table([RECORD_HEADER] + [self._record_row(r) for r in flag.records], header=True))
        section.append(Spacer(1, 0.2 * inch))
        return section

    @staticmethod
    def _record_row(record: AuditRecord) -> List[str]:
        return [
            record.customer_name,
            format_currency(record.total_balance),
            str(record.aging_days),
            record.status.value,
            record.invoice_date,
        ]

    @staticmethod
    def _table(rows: List[List[str]], header: bool = False) -> Table:
        table = Table(rows, hAlign="LEFT")
        style = [
            ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#cbd5e1")),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]
        if header:
            style.extend([
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(CONFIG.branding.primary_color)),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ])
        table.setStyle(TableStyle(style))
        return table
