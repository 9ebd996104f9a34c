"""
Analyst Agent: answers auditor questions about the uploaded receivables ledger.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from audit_assistant.agents.base_agent import BaseAgent, AgentResult
from audit_assistant.backend.aggregation import total_exposure
from audit_assistant.config import CONFIG
from audit_assistant.core.llm_interface import LLMInterface, llm
from audit_assistant.core.models import AuditRecord

MISSING_CREDENTIAL_MESSAGE = "Error: API Key is missing. Please configure the LLM_API_KEY environment variable."
SERVICE_ERROR_MESSAGE = "I encountered an error connecting to the Audit AI brain. Please try again."
EMPTY_RESPONSE_MESSAGE = "I could not generate an analysis at this time."
GREETING_MESSAGE = (
    "Hello Auditor. I am Professor Audit. I have analyzed the receivables ledger you uploaded. "
    "Ask me about risks, aging, or specific customers."
)

ANALYST_PREAMBLE = """You are an expert Audit Professor specializing in Receivables and PSAK 71 / IFRS 9."""

ANALYST_INSTRUCTIONS = """Instructions:
1. Answer the user's question based on the provided data context.
2. Be concise, professional, and authoritative.
3. If asked about risks, refer to "Expected Credit Loss" (ECL) and PSAK 71.
4. Speak naturally as if you are talking to a junior auditor.
5. Do not use markdown formatting like bold or lists extensively, as this will be read out loud via Text-to-Speech. Keep it conversational text."""


def plain_number(value: float) -> str:
    """Render a balance without float noise: 150000000.0 -> 150000000."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


@dataclass
class AnalysisContext:
    """Bounded summary of the ledger handed to the model."""
    total_exposure: float
    high_risk_count: int
    sample_lines: List[str] = field(default_factory=list)
    record_count: int = 0

    def to_text(self) -> str:
        return (
            "Context Data Summary:\n"
            f"Total Exposure: {plain_number(self.total_exposure)}\n"
            f"High Risk Accounts (>{CONFIG.rules.impaired_after_days} days): {self.high_risk_count}\n\n"
            f"Sample Data (First {CONFIG.rules.analysis_context_limit} records):\n"
            + "\n".join(self.sample_lines)
        )


def summarize_record(record: AuditRecord) -> str:
    return (
        f"- {record.customer_name}: ${plain_number(record.total_balance)} "
        f"({record.aging_days} days) [{record.status.value}]"
    )


def build_context(
    records: Sequence[AuditRecord],
    limit: int = CONFIG.rules.analysis_context_limit,
) -> AnalysisContext:
    """Summarize the first `limit` records; totals cover the whole ledger."""
    return AnalysisContext(
        total_exposure=total_exposure(records),
        high_risk_count=sum(1 for r in records if r.aging_days > CONFIG.rules.impaired_after_days),
        sample_lines=[summarize_record(record) for record in list(records)[:limit]],
        record_count=len(records),
    )


def build_prompt(context: AnalysisContext, question: str) -> str:
    return f"{ANALYST_PREAMBLE}\n\n{context.to_text()}\n\n{ANALYST_INSTRUCTIONS}\n\nUser Question: {question}"


class AuditAnalystAgent(BaseAgent):
    """Question answering over the ledger through the configured LLM."""

    def __init__(self, llm_client: Optional[LLMInterface] = None):
        super().__init__("AuditAnalystAgent")
        self.llm = llm_client or llm

    def answer(self, records: Sequence[AuditRecord], question: str) -> str:
        """Return the model's answer, or a fallback message; never raises."""
        if not self.llm.has_credentials():
            self.log_error("No API key configured, skipping model call")
            return MISSING_CREDENTIAL_MESSAGE

        prompt = build_prompt(build_context(records), question)
        self.log_step(f"Asking {self.llm.backend.value}/{self.llm.model_name} ({len(prompt)} chars)")

        try:
            response = self.llm.generate(prompt)
        except Exception as e:
            self.log_error(f"Analysis request failed: {str(e)}")
            return SERVICE_ERROR_MESSAGE

        return response or EMPTY_RESPONSE_MESSAGE

    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Answer `task["question"]` against `task["records"]`."""
        start = datetime.now()
        question = str(task.get("question", "")).strip()
        if not question:
            return AgentResult(agent_name=self.name, success=False, data={}, error="No question provided")

        answer = self.answer(task.get("records", []), question)
        duration = (datetime.now() - start).total_seconds()

        return AgentResult(
            agent_name=self.name,
            success=True,
            data={"question": question, "answer": answer},
            duration_seconds=duration,
        )
