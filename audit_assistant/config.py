"""
System configuration: LLM backends, audit rules, voice, branding.
"""

import os
from dataclasses import dataclass, field
from enum import Enum

from dotenv import load_dotenv

load_dotenv()


class LLMBackend(Enum):
    """Supported LLM backends."""
    GEMINI = "gemini"
    OPENAI = "openai"
    OLLAMA = "ollama"
    LM_STUDIO = "lm_studio"
    ANTHROPIC = "anthropic"


# Backends that run locally and accept any placeholder key.
LOCAL_BACKENDS = (LLMBackend.OLLAMA, LLMBackend.LM_STUDIO)


def _env_api_key() -> str:
    for name in ("LLM_API_KEY", "GEMINI_API_KEY", "API_KEY"):
        value = os.getenv(name, "").strip()
        if value:
            return value
    return ""


@dataclass
class LLMConfig:
    """LLM configuration."""
    backend: LLMBackend = LLMBackend.GEMINI
    model_name: str = "gemini-2.5-flash"
    api_key: str = ""
    base_url: str = "https://generativelanguage.googleapis.com"
    temperature: float = 0.4
    max_tokens: int = 1024
    timeout: int = 60

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        backend_str = os.getenv("LLM_BACKEND", "gemini").lower()
        backend = LLMBackend[backend_str.upper()] if backend_str.upper() in LLMBackend.__members__ else LLMBackend.GEMINI

        config_map = {
            LLMBackend.GEMINI: {"model_name": "gemini-2.5-flash", "base_url": "https://generativelanguage.googleapis.com"},
            LLMBackend.OPENAI: {"model_name": "gpt-4o-mini", "base_url": "https://api.openai.com/v1"},
            LLMBackend.OLLAMA: {"model_name": "mistral:latest", "base_url": "http://localhost:11434/v1"},
            LLMBackend.LM_STUDIO: {"model_name": "local-model", "base_url": "http://localhost:1234/v1"},
            LLMBackend.ANTHROPIC: {"model_name": "claude-3-5-sonnet-20241022", "base_url": "https://api.anthropic.com"},
        }

        defaults = config_map.get(backend, {})
        return cls(
            backend=backend,
            model_name=os.getenv("LLM_MODEL", defaults.get("model_name")),
            api_key=_env_api_key(),
            base_url=os.getenv("LLM_BASE_URL", defaults.get("base_url")),
            temperature=float(os.getenv("LLM_TEMPERATURE", "0.4")),
            max_tokens=int(os.getenv("LLM_MAX_TOKENS", "1024")),
            timeout=int(os.getenv("LLM_TIMEOUT", "60")),
        )


@dataclass
class AuditRulesConfig:
    """Receivable classification and dashboard rules."""
    overdue_after_days: int = 30
    impaired_after_days: int = 90
    top_debtors: int = 5
    debtor_label_width: int = 10
    analysis_context_limit: int = 50
    unknown_customer: str = "Unknown"
    delimiter: str = ","


@dataclass
class VoiceConfig:
    """Voice I/O preferences."""
    language: str = "en"
    accent: str = "com"
    slow: bool = False
    speak_answers: bool = True
    transcription_enabled: bool = True


@dataclass
class BrandingConfig:
    """PDF branding configuration."""
    company_name: str = "Audit Assistant"
    report_title: str = "Receivables Audit Findings"
    primary_color: str = "#0ea5e9"
    secondary_color: str = "#f59e0b"
    accent_color: str = "#ef4444"
    footer_text: str = "Confidential - AI Assisted Audit Working Paper"


@dataclass
class SystemConfig:
    """Master system configuration."""
    llm: LLMConfig = field(default_factory=LLMConfig.from_env)
    rules: AuditRulesConfig = field(default_factory=AuditRulesConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    branding: BrandingConfig = field(default_factory=BrandingConfig)

    # Runtime
    debug_mode: bool = bool(os.getenv("DEBUG", "False").lower() == "true")
    ingest_delay_seconds: float = 1.0

    @classmethod
    def from_env(cls):
        """Load complete config from environment."""
        return cls(
            llm=LLMConfig.from_env(),
            voice=VoiceConfig(
                language=os.getenv("VOICE_LANGUAGE", "en"),
                accent=os.getenv("VOICE_ACCENT", "com"),
                speak_answers=os.getenv("VOICE_SPEAK_ANSWERS", "true").lower() == "true",
                transcription_enabled=os.getenv("VOICE_TRANSCRIPTION", "true").lower() == "true",
            ),
            branding=BrandingConfig(
                company_name=os.getenv("COMPANY_NAME", "Audit Assistant"),
                primary_color=os.getenv("PRIMARY_COLOR", "#0ea5e9"),
            ),
            ingest_delay_seconds=float(os.getenv("INGEST_DELAY_SECONDS", "1.0")),
        )


# Global config instance
CONFIG = SystemConfig.from_env()
