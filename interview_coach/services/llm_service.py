from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from typing import Optional, List, Dict
import logging

import anyio
from groq import Groq
try:
	import google.generativeai as genai
except Exception:
	genai = None

from interview_coach.config import settings


logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
	"""No provider is configured, or the configured provider cannot be reached."""


@dataclass
class LLMConfig:
	groq_model: str
	gemini_model: str
	temperature: float
	max_tokens: int
	top_p: float


class LLMService:
	def __init__(self) -> None:
		self._client: Groq | None = None
		self.config = LLMConfig(
			groq_model=settings.groq_model,
			gemini_model=settings.gemini_model,
			temperature=settings.analysis_temperature,
			max_tokens=settings.analysis_max_tokens,
			top_p=settings.analysis_top_p,
		)

	@property
	def provider(self) -> str:
		return (settings.llm_provider or "groq").lower()

	@property
	def model(self) -> str:
		return self.config.gemini_model if self.provider == "gemini" else self.config.groq_model

	def _ensure_client(self):
		provider = self.provider
		if provider == "groq":
			api_key = settings.groq_api_key
			if not api_key:
				self._client = None
				return None
			if self._client is None or not isinstance(self._client, Groq):
				self._client = Groq(api_key=api_key)
			return self._client
		elif provider == "gemini":
			if genai is None:
				return None
			api_key = settings.gemini_api_key
			if not api_key:
				return None
			# For gemini we return a configured module handle to keep usage simple
			genai.configure(api_key=api_key)
			return genai
		else:
			return None

	@property
	def enabled(self) -> bool:
		provider = self.provider
		if provider == "groq":
			return bool(settings.groq_api_key)
		if provider == "gemini":
			return genai is not None and bool(settings.gemini_api_key)
		return False

	def update_config(self, **changes) -> LLMConfig:
		known = {f.name for f in fields(LLMConfig)}
		unknown = set(changes) - known
		if unknown:
			raise ValueError(f"unknown LLM setting(s): {', '.join(sorted(unknown))}")
		current = asdict(self.config)
		current.update({k: v for k, v in changes.items() if v is not None})
		current["temperature"] = max(0.0, min(1.0, float(current["temperature"])))
		self.config = LLMConfig(**current)
		logger.info("Updated LLM configuration: model=%s temperature=%s", self.model, self.config.temperature)
		return self.config

	async def complete(self, system_prompt: str, user_prompt: str, *, max_tokens: Optional[int] = None) -> str:
		"""Single chat completion; returns the raw assistant text.

		Raises LLMUnavailableError when no provider is configured.
		"""
		client = self._ensure_client()
		if client is None:
			raise LLMUnavailableError(f"LLM provider '{self.provider}' is not configured")

		provider = self.provider
		config = self.config
		token_limit = max_tokens or config.max_tokens

		def _call() -> str:
			if provider == "groq":
				messages: List[Dict[str, str]] = [
					{"role": "system", "content": system_prompt},
					{"role": "user", "content": user_prompt},
				]
				resp = client.chat.completions.create(
					model=config.groq_model,
					messages=messages,
					temperature=config.temperature,
					max_tokens=token_limit,
					top_p=config.top_p,
				)
				return (resp.choices[0].message.content or "").strip()
			elif provider == "gemini":
				gmodel = client.GenerativeModel(config.gemini_model)
				# Join to a single prompt: system + user, keeping system first
				full_prompt = (system_prompt + "\n\nUser:\n" + user_prompt).strip()
				resp = gmodel.generate_content(
					full_prompt,
					generation_config={
						"temperature": config.temperature,
						"top_p": config.top_p,
						"max_output_tokens": token_limit,
					},
				)
				raw_text = getattr(resp, "text", None) or (resp.candidates[0].content.parts[0].text if getattr(resp, "candidates", None) else "")
				return (raw_text or "").strip()
			raise LLMUnavailableError(f"Unsupported LLM provider: {provider}")

		logger.debug("Sending prompt to %s (%s)", provider, self.model)
		return await anyio.to_thread.run_sync(_call)


llm_service = LLMService()
