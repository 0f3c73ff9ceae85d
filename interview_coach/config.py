from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Optional
from dotenv import load_dotenv


# Ensure .env is loaded eagerly
load_dotenv(dotenv_path=".env")


class Settings(BaseSettings):
	# Server
	host: str = "0.0.0.0"
	port: int = 8000
	cors_allow_origins: List[str] = [
		"http://localhost:3000",
		"http://localhost:5173",
		"http://localhost:8080",
		"http://127.0.0.1:3000",
		"http://127.0.0.1:5173",
		"http://127.0.0.1:8080",
	]

	# Auth
	api_key: Optional[str] = None  # simple bearer key if provided

	# LLM Provider Selection
	llm_provider: str = "groq"  # options: groq, gemini

	# Groq
	groq_api_key: Optional[str] = None
	groq_model: str = "llama-3.3-70b-versatile"

	# Google Gemini
	gemini_api_key: Optional[str] = None
	gemini_model: str = "models/gemini-2.5-pro"

	# Answer analysis
	analysis_temperature: float = 0.3
	analysis_max_tokens: int = 1000
	analysis_top_p: float = 0.9

	# TTS (stubbed, never calls a provider)
	tts_provider: str = "none"
	tts_voice_id: str = "9BWtsMINqrJLrRacOk9x"
	tts_model_id: str = "eleven_multilingual_v2"
	tts_stability: float = 0.5
	tts_similarity_boost: float = 0.75

	# Interview flow
	next_question_delay: float = 1.0  # seconds between feedback and next question
	route_retry_delay: float = 5.0
	route_max_retries: int = 1
	max_questions: Optional[int] = None  # None = whole bank

	# Logging
	log_level: str = "INFO"
	analytics_path: Optional[str] = None  # e.g., logs/coach.jsonl

	@field_validator("analysis_temperature")
	@classmethod
	def clamp_temperature(cls, v: float) -> float:
		return max(0.0, min(1.0, v))

	@field_validator("cors_allow_origins", mode="before")
	@classmethod
	def parse_cors_origins(cls, v):
		# Allow environment variable override
		if isinstance(v, str):
			return [origin.strip() for origin in v.split(",")]
		return v

	class Config:
		env_file = ".env"
		env_file_encoding = "utf-8"


settings = Settings()
