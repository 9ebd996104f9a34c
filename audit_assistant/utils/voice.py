"""
Optional voice capabilities: speech synthesis (gTTS) and transcription (Gemini).

Both are detected once per session. A missing capability degrades the
analysis page to text-only input and output.
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional

from audit_assistant.config import CONFIG, LLMBackend, VoiceConfig
from audit_assistant.core.llm_interface import LLMInterface

logger = logging.getLogger(__name__)

UNSUPPORTED_RECOGNITION_MESSAGE = "Speech recognition not supported in this environment."
UNSUPPORTED_SYNTHESIS_MESSAGE = "Speech synthesis not available; answers are shown as text only."

TRANSCRIBE_INSTRUCTION = (
    "Transcribe this spoken question from an auditor exactly as said. "
    "Return only the transcript text."
)


class SpeechSynthesizer:
    """Text to MP3 speech with a language/accent voice preference."""

    def __init__(self, config: VoiceConfig):
        from gtts import gTTS

        self._engine = gTTS
        self.language = config.language
        self.accent = config.accent
        self.slow = config.slow

    def synthesize(self, text: str) -> bytes:
        buffer = io.BytesIO()
        self._engine(text=text, lang=self.language, tld=self.accent, slow=self.slow).write_to_fp(buffer)
        return buffer.getvalue()


class SpeechTranscriber:
    """One recorded utterance in, one final transcript out."""

    def __init__(self, llm_client: LLMInterface):
        if llm_client.backend != LLMBackend.GEMINI or not llm_client.has_credentials():
            raise ValueError("Transcription requires the Gemini backend with an API key")
        import google.generativeai as genai

        genai.configure(api_key=llm_client.api_key)
        self._model = genai.GenerativeModel(llm_client.model_name)

    def transcribe(self, audio: bytes, mime_type: str = "audio/wav") -> str:
        response = self._model.generate_content([TRANSCRIBE_INSTRUCTION, {"mime_type": mime_type, "data": audio}])
        return (getattr(response, "text", "") or "").strip()


@dataclass
class SpokenClip:
    text: str
    audio: bytes


class VoicePlayer:
    """Holds the clip currently being spoken; new speech cancels the old clip."""

    def __init__(self, synthesizer: Optional[SpeechSynthesizer]):
        self.synthesizer = synthesizer
        self.current: Optional[SpokenClip] = None

    def cancel(self):
        self.current = None

    def speak(self, text: str) -> Optional[SpokenClip]:
        self.cancel()
        if self.synthesizer is None or not text.strip():
            return None
        try:
            self.current = SpokenClip(text=text, audio=self.synthesizer.synthesize(text))
        except Exception as e:
            logger.error(f"Speech synthesis failed: {str(e)}")
        return self.current


@dataclass
class VoiceCapabilities:
    synthesizer: Optional[SpeechSynthesizer] = None
    transcriber: Optional[SpeechTranscriber] = None

    @property
    def can_speak(self) -> bool:
        return self.synthesizer is not None

    @property
    def can_listen(self) -> bool:
        return self.transcriber is not None


def detect_voice_capabilities(llm_client: LLMInterface, config: Optional[VoiceConfig] = None) -> VoiceCapabilities:
    """Probe the environment once; absent capabilities are left as None."""
    config = config or CONFIG.voice
    capabilities = VoiceCapabilities()

    if config.speak_answers:
        try:
            capabilities.synthesizer = SpeechSynthesizer(config)
        except ImportError:
            logger.warning("gTTS not installed, speech synthesis disabled")

    if config.transcription_enabled:
        try:
            capabilities.transcriber = SpeechTranscriber(llm_client)
        except (ImportError, ValueError) as e:
            logger.info(f"Speech recognition unavailable: {str(e)}")

    return capabilities
