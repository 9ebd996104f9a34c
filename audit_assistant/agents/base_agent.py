"""
Base agent class for the audit workspace agents.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class AgentResult:
    """Outcome of one agent task; failures carry `error` instead of raising."""
    agent_name: str
    success: bool
    data: Dict[str, Any]
    error: Optional[str] = None
    duration_seconds: float = 0


class BaseAgent(ABC):
    """Common logging and timing for agents."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

    @abstractmethod
    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Execute the agent's primary task."""

    def run(self, task: Dict[str, Any]) -> AgentResult:
        """Execute with timing; unexpected errors become a failed result."""
        start = datetime.now()
        try:
            result = self.execute(task)
        except Exception as e:
            self.log_error(f"Task failed: {str(e)}")
            result = AgentResult(agent_name=self.name, success=False, data={}, error=str(e))
        if not result.duration_seconds:
            result.duration_seconds = (datetime.now() - start).total_seconds()
        return result

    def log_step(self, message: str):
        self.logger.info(f"[{self.name}] {message}")

    def log_error(self, message: str):
        self.logger.error(f"[{self.name}] {message}")
