"""
AI query bridge and LLM transport tests. No test reaches a real model.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def _records(count, aging=10, balance=100.0):
    from audit_assistant.backend.record_classifier import classify_aging
    from audit_assistant.core.models import AuditRecord
    return [
        AuditRecord(
            id=f"REC-{i + 1}",
            customer_name=f"Customer {i + 1}",
            total_balance=balance,
            aging_days=aging,
            status=classify_aging(aging),
            invoice_date="2023-10-01",
        )
        for i in range(count)
    ]


def _llm(backend="gemini", api_key=""):
    from audit_assistant.config import LLMBackend, LLMConfig
    from audit_assistant.core.llm_interface import LLMInterface
    return LLMInterface(LLMConfig(backend=LLMBackend(backend), model_name="test-model", api_key=api_key))


class TestContextBuilding:
    """Bounded ledger summary for the prompt."""

    def test_context_is_bounded_to_fifty_records(self):
        from audit_assistant.agents.analyst_agent import build_context
        records = _records(45, aging=10) + _records(15, aging=120, balance=50.0)
        context = build_context(records)

        assert len(context.sample_lines) == 50
        assert context.record_count == 60
        assert context.total_exposure == 45 * 100.0 + 15 * 50.0
        assert context.high_risk_count == 15

    def test_summary_line_format(self):
        from audit_assistant.agents.analyst_agent import summarize_record
        from audit_assistant.backend.csv_ingest import CsvIngestor
        records = CsvIngestor().ingest("H\nToko Abadi,12500000,120,2023-06-01\nKecil,12.5,3,2023-06-01")
        assert summarize_record(records[0]) == "- Toko Abadi: $12500000 (120 days) [Impaired]"
        assert summarize_record(records[1]) == "- Kecil: $12.5 (3 days) [Current]"

    def test_prompt_contains_preamble_context_and_question(self):
        from audit_assistant.agents.analyst_agent import build_context, build_prompt
        prompt = build_prompt(build_context(_records(2)), "Which accounts need an ECL assessment?")

        assert prompt.startswith("You are an expert Audit Professor")
        assert "Total Exposure: 200" in prompt
        assert "High Risk Accounts (>90 days): 0" in prompt
        assert "- Customer 1: $100 (10 days) [Current]" in prompt
        assert "PSAK 71" in prompt
        assert prompt.endswith("User Question: Which accounts need an ECL assessment?")


class TestAuditAnalystAgent:
    """Fallback policy of the question answering bridge."""

    def test_missing_credential_makes_no_call(self):
        from audit_assistant.agents.analyst_agent import MISSING_CREDENTIAL_MESSAGE, AuditAnalystAgent
        client = _llm(api_key="")
        client._get_client = MagicMock()

        with patch.object(client, "generate", wraps=client.generate) as generate:
            answer = AuditAnalystAgent(llm_client=client).answer(_records(3), "Any risks?")

        assert answer == MISSING_CREDENTIAL_MESSAGE
        generate.assert_not_called()
        client._get_client.assert_not_called()

    def test_successful_answer(self):
        from audit_assistant.agents.analyst_agent import AuditAnalystAgent
        client = _llm(api_key="secret")
        client.generate = MagicMock(return_value="Two accounts look impaired.")

        answer = AuditAnalystAgent(llm_client=client).answer(_records(3), "Any risks?")

        assert answer == "Two accounts look impaired."
        prompt = client.generate.call_args[0][0]
        assert prompt.endswith("User Question: Any risks?")

    def test_transport_failure_returns_apology(self):
        from audit_assistant.agents.analyst_agent import SERVICE_ERROR_MESSAGE, AuditAnalystAgent
        client = _llm(backend="openai", api_key="secret")
        broken = MagicMock()
        broken.chat.completions.create.side_effect = ConnectionError("network down")
        client._get_client = MagicMock(return_value=broken)

        answer = AuditAnalystAgent(llm_client=client).answer(_records(3), "Any risks?")

        assert answer == SERVICE_ERROR_MESSAGE
        assert broken.chat.completions.create.call_count == 1
        assert "network down" in client.last_error

    def test_empty_response_returns_fallback(self):
        from audit_assistant.agents.analyst_agent import EMPTY_RESPONSE_MESSAGE, AuditAnalystAgent
        client = _llm(api_key="secret")
        client.generate = MagicMock(return_value="")
        assert AuditAnalystAgent(llm_client=client).answer(_records(1), "Hello?") == EMPTY_RESPONSE_MESSAGE

    def test_execute_requires_question(self):
        from audit_assistant.agents.analyst_agent import AuditAnalystAgent
        result = AuditAnalystAgent(llm_client=_llm()).execute({"records": _records(1), "question": "  "})
        assert not result.success
        assert result.error == "No question provided"

    def test_execute_wraps_answer(self):
        from audit_assistant.agents.analyst_agent import MISSING_CREDENTIAL_MESSAGE, AuditAnalystAgent
        result = AuditAnalystAgent(llm_client=_llm()).execute({"records": _records(1), "question": "Risks?"})
        assert result.success
        assert result.data["answer"] == MISSING_CREDENTIAL_MESSAGE


class TestLLMInterface:
    """Backend routing and credentials."""

    def test_openai_compatible_generate(self):
        client = _llm(backend="openai", api_key="secret")
        fake = MagicMock()
        fake.chat.completions.create.return_value.choices = [MagicMock(message=MagicMock(content="  OK  "))]
        client._get_client = MagicMock(return_value=fake)

        assert client.generate("ping") == "OK"
        kwargs = fake.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"] == [{"role": "user", "content": "ping"}]

    def test_gemini_generate(self):
        client = _llm(backend="gemini", api_key="secret")
        genai = MagicMock()
        genai.GenerativeModel.return_value.generate_content.return_value.text = "Answer text"
        client._get_client = MagicMock(return_value=genai)

        assert client.generate("question") == "Answer text"
        genai.GenerativeModel.assert_called_once_with("test-model")

    def test_local_backends_need_no_key(self):
        assert _llm(backend="ollama").has_credentials()
        assert _llm(backend="lm_studio").has_credentials()
        assert not _llm(backend="gemini").has_credentials()
        assert not _llm(backend="anthropic").has_credentials()
        assert _llm(backend="anthropic", api_key="k").has_credentials()

    def test_runtime_settings_switch_backend(self):
        client = _llm(backend="gemini", api_key="secret")
        client.apply_runtime_settings({"backend": "openai", "api_key": ""})
        assert client.backend.value == "openai"
        assert client.model_name == "gpt-4o-mini"
        assert client.api_key == "secret"

        client.apply_runtime_settings({"backend": "openai", "model_name": "gpt-4o", "api_key": "other"})
        assert client.model_name == "gpt-4o"
        assert client.api_key == "other"

    def test_health_check_without_key(self):
        client = _llm(backend="gemini")
        assert client.health_check() is False
        assert client.last_error == "No API key configured"
