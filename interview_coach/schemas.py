from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional


class CandidateProfile(BaseModel):
	name: Optional[str] = None
	role: Optional[str] = Field(default=None, description="Target role, e.g. Senior Backend Engineer")
	experience: Optional[str] = Field(default=None, description="Years or level of experience")
	industry: Optional[str] = None


class SessionConfig(BaseModel):
	candidate_profile: CandidateProfile = Field(default_factory=CandidateProfile)
	interview_type: Literal["general", "technical", "behavioral", "leadership"] = "general"
	difficulty: Literal["easy", "medium", "hard"] = "easy"
	duration: Optional[int] = Field(default=None, ge=1, description="Planned length in minutes")


class StartSessionResponse(BaseModel):
	success: bool = True
	session_id: str
	messages_url: str
	message: str


class SessionSummary(BaseModel):
	session_id: str
	status: str
	last_update: str
	message_count: int


class SessionList(BaseModel):
	items: List[SessionSummary]


class AnswerIn(BaseModel):
	question_id: str = Field(..., min_length=1)
	answer: str = Field(..., description="Candidate's answer text")


class AudioIn(BaseModel):
	text: str = Field(..., min_length=1, description="Text to read aloud")


class CustomQuestionIn(BaseModel):
	category: str = Field(..., min_length=1)
	difficulty: Literal["easy", "medium", "hard"]
	question: str = Field(..., min_length=1)
	context: str = ""
	expected_elements: List[str] = Field(default_factory=list)


class QuestionOut(BaseModel):
	id: str
	category: str
	difficulty: str
	question: str
	context: str
	expected_elements: List[str]


class LLMConfigIn(BaseModel):
	groq_model: Optional[str] = None
	gemini_model: Optional[str] = None
	temperature: Optional[float] = Field(default=None, ge=0.0, le=1.0)
	max_tokens: Optional[int] = Field(default=None, ge=1)
	top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class TTSConfigIn(BaseModel):
	voice_id: Optional[str] = None
	model_id: Optional[str] = None
	stability: Optional[float] = Field(default=None, ge=0.0, le=1.0)
	similarity_boost: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class CriteriaIn(BaseModel):
	criteria: List[str] = Field(default_factory=list, description="Extra points the analyzer should weigh")


class AnalyzeAnswerIn(BaseModel):
	"""Stateless single-answer analysis.

	- question / answer: required, non-empty
	- category: used to tailor the feedback (default: general)
	- expected_elements: what a strong answer would mention
	"""
	question: str = Field(..., min_length=1)
	answer: str = Field(..., min_length=1)
	category: str = "general"
	expected_elements: List[str] = Field(default_factory=list)


class QuickAnalysis(BaseModel):
	score: float = Field(..., ge=1.0, le=10.0)
	strengths: List[str]
	weaknesses: List[str]
	improvements: List[str]
	category: str
	overall_feedback: str


class AnalyzeAnswerOut(BaseModel):
	success: bool = True
	analysis: QuickAnalysis


class StatsOut(BaseModel):
	session_stats: Dict[str, Any]
	progress: Dict[str, Any]
