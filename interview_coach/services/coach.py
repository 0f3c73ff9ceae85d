from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging
import random

from interview_coach.agents.analyzer import AnalyzerAgent
from interview_coach.agents.base import AgentDescriptor, BaseAgent, ANALYZER, FRONTEND, INTERVIEWER, MASTER
from interview_coach.agents.frontend import FrontendAgent
from interview_coach.agents.interviewer import InterviewerAgent
from interview_coach.agents.master import MasterAgent
from interview_coach.config import settings
from interview_coach.services.llm_service import LLMService
from interview_coach.services.question_bank import InterviewQuestion, QuestionBank
from interview_coach.services.session_manager import InterviewSession, SessionManager
from interview_coach.services.tts_service import TTSService
from interview_coach.utils.audit import auditor


logger = logging.getLogger(__name__)

AGENT_DESCRIPTORS = {
	FRONTEND: AgentDescriptor(
		id=FRONTEND,
		name="Frontend Agent",
		description="Bridges the candidate's client and the agent network",
		capabilities=["client-events", "message-buffering"],
		endpoints=["/api/sessions/{id}/messages"],
	),
	INTERVIEWER: AgentDescriptor(
		id=INTERVIEWER,
		name="Interviewer Agent",
		description="Asks adaptive interview questions and tracks difficulty",
		capabilities=["question-selection", "difficulty-adaptation", "question-audio"],
		endpoints=["/api/sessions/{id}/answer", "/api/sessions/{id}/audio"],
	),
	ANALYZER: AgentDescriptor(
		id=ANALYZER,
		name="Analyzer Agent",
		description="Scores candidate answers and aggregates session statistics",
		capabilities=["answer-analysis", "session-statistics"],
		endpoints=["/api/sessions/{id}/stats", "/api/analyze-answer"],
	),
}


class InterviewCoach:
	"""One master agent plus the three specialist agents, wired together."""

	def __init__(
		self,
		sessions: Optional[SessionManager] = None,
		question_bank: Optional[QuestionBank] = None,
		llm: Optional[LLMService] = None,
		tts: Optional[TTSService] = None,
		rng: Optional[random.Random] = None,
		next_question_delay: Optional[float] = None,
		max_questions: Optional[int] = None,
		registration_delay: float = 0.1,
	) -> None:
		if next_question_delay is None:
			next_question_delay = settings.next_question_delay
		if max_questions is None:
			max_questions = settings.max_questions
		self.master = MasterAgent(
			sessions,
			retry_delay=settings.route_retry_delay,
			max_retries=settings.route_max_retries,
			registration_delay=registration_delay,
		)
		self.frontend = FrontendAgent(next_question_delay=next_question_delay)
		self.interviewer = InterviewerAgent(question_bank=question_bank, tts=tts, rng=rng, max_questions=max_questions)
		self.analyzer = AnalyzerAgent(llm=llm, rng=rng)
		self._started = False

	@property
	def agents(self) -> Dict[str, BaseAgent]:
		return {
			MASTER: self.master,
			FRONTEND: self.frontend,
			INTERVIEWER: self.interviewer,
			ANALYZER: self.analyzer,
		}

	async def startup(self) -> None:
		if self._started:
			return
		await self.master.initialize()
		for agent_id in (FRONTEND, INTERVIEWER, ANALYZER):
			await self.master.register_agent(AGENT_DESCRIPTORS[agent_id], self.agents[agent_id])
		self._started = True
		logger.info("AI Interview Coach agents initialized")

	async def close(self) -> None:
		await self.frontend.close()
		await self.master.close()

	# ------------------------------------------------------------------
	# Interview flow
	# ------------------------------------------------------------------

	def _require(self, session_id: str) -> InterviewSession:
		return self.master.sessions.get_required(session_id)

	async def start_session(self, config: Dict[str, Any]) -> InterviewSession:
		await self.startup()
		session = await self.master.create_session(config)
		await auditor.log("session_start", session.id, config=config)
		return session

	async def submit_answer(self, session_id: str, question_id: str, answer: str) -> None:
		self._require(session_id)
		if not answer.strip():
			raise ValueError("Answer is empty")
		state = self.frontend.get_state(session_id)
		if state is None or state.status != "active":
			raise ValueError(f"Interview is not active: {session_id}")

		before = len(self.analyzer.get_analyses(session_id))
		await self.frontend.emit("frontend-message", "submit-answer", session_id, {"question_id": question_id, "answer": answer})
		await auditor.log("answer", session_id, question_id=question_id, answer=answer)

		analyses = self.analyzer.get_analyses(session_id)
		if len(analyses) > before:
			await auditor.log("analysis", session_id, question_id=question_id, analysis=analyses[-1].to_dict())

	async def request_audio(self, session_id: str, text: str) -> None:
		self._require(session_id)
		await self.frontend.emit("frontend-message", "request-audio", session_id, {"text": text})

	async def end_session(self, session_id: str) -> Dict[str, Any]:
		self._require(session_id)
		await self.frontend.emit("frontend-message", "end-interview", session_id, {})
		await self.master.update_session(session_id, status="completed")
		stats = self.analyzer.get_session_stats(session_id)
		await auditor.log("session_end", session_id, stats=stats)
		return stats

	def drain_messages(self, session_id: str) -> List[Dict[str, Any]]:
		self._require(session_id)
		return self.frontend.drain(session_id)

	# ------------------------------------------------------------------
	# Queries
	# ------------------------------------------------------------------

	def get_session_detail(self, session_id: str) -> Dict[str, Any]:
		session = self._require(session_id)
		state = self.frontend.get_state(session_id)
		return {
			"session": session.to_dict(),
			"frontend_state": state.to_dict() if state else None,
			"message_history": list(session.message_history),
		}

	def get_stats(self, session_id: str) -> Dict[str, Any]:
		session = self._require(session_id)
		stats = self.analyzer.get_session_stats(session_id)
		context = self.interviewer.sessions.get(session_id)
		asked = len(context.asked) if context else 0
		answered = len(context.answers) if context else 0
		return {
			"session_stats": stats,
			"progress": {
				"total_questions": asked,
				"answered_questions": answered,
				"average_score": stats["average_score"],
				"session_duration_ms": int((datetime.utcnow() - session.start_time).total_seconds() * 1000),
				"completion_rate": round(answered / asked * 100, 1) if asked else 0,
			},
		}

	def list_sessions(self) -> List[dict]:
		return self.master.list_sessions()

	async def delete_session(self, session_id: str) -> bool:
		return await self.master.delete_session(session_id)

	def get_agents(self) -> List[AgentDescriptor]:
		return self.master.get_agents()

	def agent_health(self, agent_id: str) -> Dict[str, Any]:
		agent = self.agents.get(agent_id)
		if agent is None:
			raise KeyError(f"Unknown agent: {agent_id}")
		return agent.health_check()

	def health(self) -> Dict[str, Any]:
		return {
			"status": "healthy",
			"service": "AI Interview Coach Backend",
			"timestamp": datetime.utcnow().isoformat(),
			"agents": {
				"master": self.master.health_check(),
				"frontend": self.frontend.health_check(),
				"interviewer": self.interviewer.health_check(),
				"analyzer": self.analyzer.health_check(),
			},
		}

	# ------------------------------------------------------------------
	# Configuration
	# ------------------------------------------------------------------

	def questions(self) -> List[InterviewQuestion]:
		return self.interviewer.question_bank.all()

	def add_custom_question(self, **question: Any) -> InterviewQuestion:
		return self.interviewer.add_custom_question(**question)

	def update_llm_config(self, **changes: Any):
		return self.analyzer.update_llm_config(**changes)

	def update_tts_config(self, **changes: Any):
		return self.interviewer.update_tts_config(**changes)

	def update_analysis_criteria(self, criteria: List[str]) -> List[str]:
		return self.analyzer.update_analysis_criteria(criteria)


coach = InterviewCoach()
