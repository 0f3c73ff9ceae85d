from __future__ import annotations

from dataclasses import dataclass, asdict, fields
import base64
import logging

from interview_coach.config import settings


logger = logging.getLogger(__name__)


@dataclass
class TTSConfig:
	voice_id: str
	model_id: str
	stability: float
	similarity_boost: float


class TTSService:
	"""Question read-aloud. Voice synthesis is not integrated: this never calls a provider."""

	def __init__(self) -> None:
		self._provider = settings.tts_provider
		self._enabled = self._provider != "none"
		self.config = TTSConfig(
			voice_id=settings.tts_voice_id,
			model_id=settings.tts_model_id,
			stability=settings.tts_stability,
			similarity_boost=settings.tts_similarity_boost,
		)

	@property
	def enabled(self) -> bool:
		return self._enabled

	async def synthesize(self, text: str) -> str:
		if not self._enabled:
			logger.warning("TTS provider not configured, skipping audio generation")
			return ""
		if not text.strip():
			return ""
		# Placeholder payload; a real provider would return audio bytes here
		payload = base64.b64encode(f"{self.config.voice_id}:{len(text)}".encode()).decode()
		return f"data:audio/mpeg;base64,{payload}"

	def update_config(self, **changes) -> TTSConfig:
		known = {f.name for f in fields(TTSConfig)}
		unknown = set(changes) - known
		if unknown:
			raise ValueError(f"unknown TTS setting(s): {', '.join(sorted(unknown))}")
		current = asdict(self.config)
		current.update({k: v for k, v in changes.items() if v is not None})
		self.config = TTSConfig(**current)
		logger.info("Updated TTS configuration")
		return self.config


tts_service = TTSService()
