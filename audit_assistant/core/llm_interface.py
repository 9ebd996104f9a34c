"""
Unified LLM interface over the supported hosted and local backends.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from audit_assistant.config import CONFIG, LLMBackend, LLMConfig, LOCAL_BACKENDS

logger = logging.getLogger(__name__)


class LLMInterface:
    """Single request/response text generation against one configured backend."""

    DEFAULT_MODELS = {
        LLMBackend.GEMINI: "gemini-2.5-flash",
        LLMBackend.OPENAI: "gpt-4o-mini",
        LLMBackend.OLLAMA: "mistral:latest",
        LLMBackend.LM_STUDIO: "local-model",
        LLMBackend.ANTHROPIC: "claude-3-5-sonnet-20241022",
    }

    DEFAULT_BASE_URLS = {
        LLMBackend.GEMINI: "https://generativelanguage.googleapis.com",
        LLMBackend.OPENAI: "https://api.openai.com/v1",
        LLMBackend.OLLAMA: "http://localhost:11434/v1",
        LLMBackend.LM_STUDIO: "http://localhost:1234/v1",
        LLMBackend.ANTHROPIC: "https://api.anthropic.com",
    }

    def __init__(self, config: Optional[LLMConfig] = None):
        self.config = config or CONFIG.llm
        self.backend = self._normalize_backend(self.config.backend, fallback=LLMBackend.GEMINI)
        self.model_name = self.config.model_name or self.DEFAULT_MODELS[self.backend]
        self.api_key = self.config.api_key or ""
        self.base_url = self.config.base_url or self.DEFAULT_BASE_URLS[self.backend]
        self.temperature = self.config.temperature
        self.max_tokens = self.config.max_tokens
        self.timeout = self.config.timeout
        self.last_error = ""

        self._client_cache: Dict[Tuple[str, str, str], Any] = {}

    def _normalize_backend(self, backend: Any, fallback: LLMBackend) -> LLMBackend:
        """Normalize backend values from enum/string."""
        if isinstance(backend, LLMBackend):
            return backend
        if backend is None:
            return fallback

        backend_value = str(backend).strip().lower()
        for candidate in LLMBackend:
            if candidate.value == backend_value:
                return candidate
        return fallback

    def apply_runtime_settings(self, settings: Optional[Dict[str, Any]]) -> None:
        """Apply backend/model/credential settings chosen in the UI."""
        if not settings:
            return

        backend = self._normalize_backend(settings.get("backend"), fallback=self.backend)
        if backend != self.backend:
            self.model_name = self.DEFAULT_MODELS[backend]
            self.base_url = self.DEFAULT_BASE_URLS[backend]
        self.backend = backend

        self.model_name = settings.get("model_name") or settings.get("model") or self.model_name
        self.base_url = settings.get("base_url") or self.base_url
        if "api_key" in settings:
            self.api_key = (settings.get("api_key") or "").strip() or self.api_key

        if "temperature" in settings:
            self.temperature = float(settings["temperature"])
        if "max_tokens" in settings:
            self.max_tokens = int(settings["max_tokens"])
        if "timeout" in settings:
            self.timeout = int(settings["timeout"])

    def has_credentials(self) -> bool:
        """True when the backend can be called; local backends need no key."""
        if self.backend in LOCAL_BACKENDS:
            return True
        return bool(self.api_key)

    def _get_client(self, backend: LLMBackend, api_key: str, base_url: str) -> Any:
        """Create or fetch cached client for backend."""
        cache_key = (backend.value, base_url or "", api_key or "")

        if backend == LLMBackend.GEMINI:
            try:
                import google.generativeai as genai
            except ImportError as e:
                raise ImportError("google-generativeai package required") from e
            if not api_key:
                raise ValueError("Gemini requires an API key")
            genai.configure(api_key=api_key)
            return genai

        if cache_key in self._client_cache:
            return self._client_cache[cache_key]

        if backend in (LLMBackend.OPENAI, LLMBackend.OLLAMA, LLMBackend.LM_STUDIO):
            try:
                from openai import OpenAI
            except ImportError as e:
                raise ImportError("openai package required") from e

            resolved_base_url = base_url or self.DEFAULT_BASE_URLS[backend]
            if backend == LLMBackend.OPENAI:
                resolved_api_key = api_key
                if not resolved_api_key:
                    raise ValueError("OpenAI backend requires an API key")
            elif backend == LLMBackend.OLLAMA:
                resolved_api_key = api_key or "ollama"
            else:
                resolved_api_key = api_key or "lm-studio"

            client = OpenAI(api_key=resolved_api_key, base_url=resolved_base_url)
            self._client_cache[cache_key] = client
            return client

        if backend == LLMBackend.ANTHROPIC:
            try:
                from anthropic import Anthropic
            except ImportError as e:
                raise ImportError("anthropic package required") from e
            if not api_key:
                raise ValueError("Anthropic backend requires an API key")
            client = Anthropic(api_key=api_key)
            self._client_cache[cache_key] = client
            return client

        raise ValueError(f"Unsupported backend: {backend}")

    def generate(self, prompt: str, system_prompt: str = "", temperature: Optional[float] = None) -> str:
        """Generate text with the configured backend/model."""
        temp = self.temperature if temperature is None else temperature
        backend = self.backend
        model_name = self.model_name

        try:
            client = self._get_client(backend=backend, api_key=self.api_key, base_url=self.base_url)

            if backend in (LLMBackend.OPENAI, LLMBackend.OLLAMA, LLMBackend.LM_STUDIO):
                messages = [{"role": "user", "content": prompt}]
                if system_prompt:
                    messages.insert(0, {"role": "system", "content": system_prompt})
                response = client.chat.completions.create(
                    model=model_name,
                    messages=messages,
                    temperature=temp,
                    max_tokens=self.max_tokens,
                    timeout=self.timeout,
                )
                return (response.choices[0].message.content or "").strip()

            if backend == LLMBackend.GEMINI:
                full_prompt = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
                model = client.GenerativeModel(model_name)
                response = model.generate_content(
                    full_prompt,
                    generation_config=client.types.GenerationConfig(
                        temperature=temp,
                        max_output_tokens=self.max_tokens,
                    ),
                    request_options={"timeout": self.timeout},
                )
                return (getattr(response, "text", "") or "").strip()

            if backend == LLMBackend.ANTHROPIC:
                response = client.messages.create(
                    model=model_name,
                    max_tokens=self.max_tokens,
                    system=system_prompt or "You are a helpful assistant.",
                    messages=[{"role": "user", "content": prompt}],
                    temperature=temp,
                )
                if response.content:
                    return (response.content[0].text or "").strip()
                return ""

            raise ValueError(f"Unsupported backend: {backend.value}")

        except Exception as e:
            self.last_error = f"LLM generation failed ({backend.value}/{model_name}): {str(e)}"
            logger.error(self.last_error)
            raise RuntimeError(self.last_error) from e

    def health_check(self) -> bool:
        """Check if the configured backend/model is reachable."""
        if not self.has_credentials():
            self.last_error = "No API key configured"
            return False
        try:
            response = self.generate("Respond only with OK.", temperature=0.0)
            return "ok" in response.lower()
        except RuntimeError:
            return False


# Global LLM instance
llm = LLMInterface()
