"""
Session state for the audit workspace: current view, active ledger, conversation.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from audit_assistant.core.models import DATA_VIEWS, AnalysisMessage, AuditRecord, ViewState

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Everything the UI renders from. Owned by a single AuditSession."""
    view: ViewState = ViewState.LANDING
    records: Tuple[AuditRecord, ...] = ()
    messages: List[AnalysisMessage] = field(default_factory=list)
    error: Optional[str] = None
    uploads: int = 0

    @property
    def has_data(self) -> bool:
        return len(self.records) > 0


class AuditSession:
    """Applies state transitions; views only read `state`."""

    def __init__(self, state: Optional[AppState] = None):
        self.state = state or AppState()

    @property
    def records(self) -> Tuple[AuditRecord, ...]:
        return self.state.records

    def can_open(self, view: ViewState) -> bool:
        return view not in DATA_VIEWS or self.state.has_data

    def navigate(self, view: ViewState) -> bool:
        """Switch view; data views stay closed until a ledger is loaded."""
        if not self.can_open(view):
            logger.debug(f"Refused navigation to {view.value}: no records loaded")
            return False
        self.state.view = view
        return True

    def start(self):
        self.state.view = ViewState.UPLOAD

    def exit(self):
        self.state.view = ViewState.LANDING

    def replace_records(self, records: Sequence[AuditRecord], greeting: Optional[str] = None):
        """Swap in a freshly ingested ledger and reset the conversation."""
        self.state.records = tuple(records)
        self.state.messages = [AnalysisMessage(role="ai", content=greeting)] if greeting else []
        self.state.error = None
        self.state.uploads += 1
        self.state.view = ViewState.DASHBOARD

    def fail_upload(self, message: str):
        self.state.error = message

    def add_message(self, role: str, content: str) -> AnalysisMessage:
        message = AnalysisMessage(role=role, content=content)
        self.state.messages.append(message)
        return message
