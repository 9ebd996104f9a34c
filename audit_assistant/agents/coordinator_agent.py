"""
Coordinator Agent: owns the audit session and routes UI requests to the engines.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from audit_assistant.agents.analyst_agent import GREETING_MESSAGE, AuditAnalystAgent
from audit_assistant.agents.base_agent import BaseAgent, AgentResult
from audit_assistant.agents.report_agent import AuditReportAgent
from audit_assistant.backend.aggregation import DashboardView, build_dashboard
from audit_assistant.backend.csv_ingest import EXPECTED_FORMAT, CsvIngestor, IngestionError
from audit_assistant.backend.findings import FindingsReport, build_findings, filter_records
from audit_assistant.core.llm_interface import LLMInterface
from audit_assistant.core.models import AuditRecord, ViewState
from audit_assistant.core.state import AppState, AuditSession

UPLOAD_ERROR_MESSAGE = f"Failed to parse CSV. Please ensure format: {EXPECTED_FORMAT}"


class AuditCoordinatorAgent(BaseAgent):
    """Single owner of the application state for one browser session."""

    def __init__(self, state: Optional[AppState] = None, llm_client: Optional[LLMInterface] = None):
        super().__init__("AuditCoordinatorAgent")
        self.session = AuditSession(state)
        self.ingestor = CsvIngestor()
        self.analyst = AuditAnalystAgent(llm_client=llm_client)
        self.reporter = AuditReportAgent()

    @property
    def state(self) -> AppState:
        return self.session.state

    @property
    def records(self) -> List[AuditRecord]:
        return list(self.session.records)

    # Ingestion

    def load_text(self, text: str, today: Optional[date] = None) -> bool:
        return self._load(lambda: self.ingestor.ingest(text, today=today))

    def load_bytes(self, payload: bytes, today: Optional[date] = None) -> bool:
        return self._load(lambda: self.ingestor.ingest_bytes(payload, today=today))

    def load_sample(self, today: Optional[date] = None) -> bool:
        return self._load(lambda: self.ingestor.ingest_sample(today=today))

    def _load(self, ingest) -> bool:
        try:
            records = ingest()
        except IngestionError as e:
            self.log_error(f"Upload rejected: {str(e)}")
            self.session.fail_upload(UPLOAD_ERROR_MESSAGE)
            return False

        self.session.replace_records(records, greeting=GREETING_MESSAGE)
        self.log_step(f"Loaded ledger #{self.state.uploads} with {len(records)} record(s)")
        return True

    # Navigation

    def start(self):
        self.session.start()

    def exit(self):
        self.session.exit()

    def navigate(self, view: ViewState) -> bool:
        return self.session.navigate(view)

    # Views

    def dashboard(self) -> DashboardView:
        return build_dashboard(self.session.records)

    def findings(self) -> FindingsReport:
        return build_findings(self.session.records)

    def search(self, query: str) -> List[AuditRecord]:
        return filter_records(self.session.records, query)

    def ask(self, question: str) -> Optional[str]:
        """Record the question and the answer in the conversation."""
        text = (question or "").strip()
        if not text:
            return None
        self.session.add_message("user", text)
        answer = self.analyst.answer(self.session.records, text)
        self.session.add_message("ai", answer)
        return answer

    def report_pdf(self, include_conversation: bool = True) -> Optional[bytes]:
        result = self.reporter.run({
            "records": self.records,
            "messages": self.state.messages if include_conversation else None,
        })
        if not result.success:
            return None
        return result.data["pdf"]

    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Run a full audit pass over `task["csv_text"]`.

        Optional keys: `question` (asked once), `include_report` (PDF bytes).
        """
        start = datetime.now()

        if not self.load_text(task.get("csv_text", "")):
            return AgentResult(agent_name=self.name, success=False, data={}, error=self.state.error)

        dashboard = self.dashboard()
        findings = self.findings()
        result: Dict[str, Any] = {
            "record_count": len(self.session.records),
            "kpis": dashboard.kpis,
            "buckets": dashboard.buckets,
            "top_debtors": dashboard.top_debtors,
            "findings": findings,
        }

        if task.get("question"):
            result["answer"] = self.ask(task["question"])
        if task.get("include_report"):
            result["report_pdf"] = self.report_pdf()

        duration = (datetime.now() - start).total_seconds()
        return AgentResult(agent_name=self.name, success=True, data=result, duration_seconds=duration)
