"""Interviewer agent: question flow, difficulty progression and answer hand-off."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging
import random

from interview_coach.agents.base import BaseAgent, AgentMessage, INTERVIEWER, ANALYZER, FRONTEND
from interview_coach.services.question_bank import QuestionBank, InterviewQuestion, DIFFICULTIES
from interview_coach.services.tts_service import TTSService, tts_service


logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
	session_id: str
	difficulty: str = "easy"
	candidate_profile: Dict[str, Any] = field(default_factory=dict)
	start_time: datetime = field(default_factory=datetime.utcnow)
	asked: List[Dict[str, Any]] = field(default_factory=list)
	answers: List[Dict[str, Any]] = field(default_factory=list)

	@property
	def asked_ids(self) -> List[str]:
		return [q["question_id"] for q in self.asked]

	@property
	def last_category(self) -> Optional[str]:
		return self.asked[-1]["category"] if self.asked else None


def difficulty_for_score(score: float) -> str:
	if score >= 8:
		return "hard"
	if score >= 6:
		return "medium"
	return "easy"


class InterviewerAgent(BaseAgent):
	agent_id = INTERVIEWER

	def __init__(
		self,
		question_bank: Optional[QuestionBank] = None,
		tts: Optional[TTSService] = None,
		rng: Optional[random.Random] = None,
		max_questions: Optional[int] = None,
	) -> None:
		super().__init__()
		self.question_bank = question_bank or QuestionBank()
		self.tts = tts or tts_service
		self.rng = rng or random.Random()
		self.max_questions = max_questions
		self.sessions: Dict[str, SessionContext] = {}
		self.on("start-session", self.handle_start_session)
		self.on("candidate-answer", self.handle_candidate_answer)
		self.on("next-question", self.handle_next_question)
		self.on("generate-audio", self.handle_generate_audio)

	async def receive(self, message: AgentMessage) -> None:
		content = message.content or {}
		if message.type == "answer":
			await self.emit("candidate-answer", message.session_id, content.get("question_id"), content.get("answer", ""))
			return
		if message.type != "command":
			logger.warning("Interviewer ignoring %s message %s", message.type, message.id)
			return
		command = content.get("command")
		if command == "session-created":
			await self.emit("start-session", message.session_id, content.get("config") or {})
		elif command == "next-question":
			await self.emit("next-question", message.session_id, content.get("previous_feedback"))
		elif command == "generate-audio":
			await self.emit("generate-audio", message.session_id, content.get("text", ""))
		else:
			logger.warning("Interviewer received unknown command: %s", command)

	def _context(self, session_id: str) -> SessionContext:
		context = self.sessions.get(session_id)
		if context is None:
			raise KeyError(f"No session context found for: {session_id}")
		return context

	async def handle_start_session(self, session_id: str, config: Dict[str, Any]) -> None:
		try:
			difficulty = config.get("difficulty") or "easy"
			if difficulty not in DIFFICULTIES:
				difficulty = "easy"
			context = SessionContext(
				session_id=session_id,
				difficulty=difficulty,
				candidate_profile=dict(config.get("candidate_profile") or {}),
			)
			self.sessions[session_id] = context
			question = self.select_next_question(session_id)
			if question is None:
				await self._complete(session_id)
				return
			await self._ask(context, question)
			logger.info("Asked first question for session: %s", session_id)
		except Exception as e:
			logger.exception("Failed to start interview session %s", session_id)
			await self.send_error(session_id, "session-start", e)

	async def handle_candidate_answer(self, session_id: str, question_id: Optional[str], answer: str) -> None:
		try:
			context = self._context(session_id)
			question = self.question_bank.get(question_id or "")
			if question is None or question.id not in context.asked_ids:
				raise ValueError(f"Question {question_id!r} was not asked in this session")
			if any(a["question_id"] == question.id for a in context.answers):
				raise ValueError(f"Question {question_id!r} has already been answered")

			session_context = {
				"questions_asked": len(context.answers),
				"current_difficulty": context.difficulty,
			}
			# Recorded before routing: analysis and the next question run inside this call
			context.answers.append({
				"question_id": question.id,
				"question": question.question,
				"answer": answer,
				"timestamp": datetime.utcnow().isoformat(),
			})
			await self.send_message(
				ANALYZER,
				"answer",
				{
					"question_id": question.id,
					"question": question.question,
					"answer": answer,
					"expected_elements": list(question.expected_elements),
					"category": question.category,
					"session_context": session_context,
				},
				session_id,
			)
			logger.info("Forwarded answer to analyzer for session: %s", session_id)
		except Exception as e:
			logger.error("Failed to handle candidate answer for %s: %s", session_id, e)
			await self.send_error(session_id, "answer-handling", e, recoverable=True)

	async def handle_next_question(self, session_id: str, previous_feedback: Optional[Dict[str, Any]] = None) -> None:
		try:
			context = self._context(session_id)
			score = (previous_feedback or {}).get("score")
			if score:
				context.difficulty = difficulty_for_score(float(score))

			question = self.select_next_question(session_id)
			if question is None:
				await self._complete(session_id)
				return
			await self._ask(context, question)
			logger.info("Asked next question for session: %s (difficulty=%s)", session_id, context.difficulty)
		except Exception as e:
			logger.exception("Failed to generate next question for %s", session_id)
			await self.send_error(session_id, "next-question", e)

	async def handle_generate_audio(self, session_id: str, text: str) -> None:
		try:
			audio_url = await self.generate_question_audio(text)
			await self.send_message(
				FRONTEND,
				"command",
				{"command": "audio-generated", "audio_url": audio_url, "original_text": text},
				session_id,
				prefix="audio",
			)
		except Exception as e:
			logger.exception("Failed to generate audio for %s", session_id)
			await self.send_error(session_id, "audio-generation", e, recoverable=True)

	def select_next_question(self, session_id: str) -> Optional[InterviewQuestion]:
		context = self.sessions.get(session_id)
		if context is None:
			return None
		if self.max_questions is not None and len(context.asked) >= self.max_questions:
			return None

		asked = set(context.asked_ids)
		remaining = [q for q in self.question_bank.all() if q.id not in asked]
		if not remaining:
			return None

		# First question ignores difficulty
		available = [q for q in remaining if not context.asked or q.difficulty == context.difficulty]
		if not available:
			return remaining[0]

		# Prefer a different category for variety
		different = [q for q in available if q.category != context.last_category]
		pool = different or available
		return self.rng.choice(pool)

	async def generate_question_audio(self, text: str) -> str:
		return await self.tts.synthesize(text)

	async def _ask(self, context: SessionContext, question: InterviewQuestion) -> None:
		context.asked.append({
			"question_id": question.id,
			"category": question.category,
			"difficulty": question.difficulty,
			"asked_at": datetime.utcnow().isoformat(),
		})
		audio_url = await self.generate_question_audio(question.question)
		await self.send_message(
			FRONTEND,
			"question",
			{
				"question_id": question.id,
				"question": question.question,
				"category": question.category,
				"difficulty": question.difficulty,
				"audio_url": audio_url,
				"context": question.context,
			},
			context.session_id,
			prefix="q",
		)

	async def _complete(self, session_id: str) -> None:
		await self.send_message(
			FRONTEND,
			"command",
			{"command": "interview-complete", "summary": self.generate_interview_summary(session_id)},
			session_id,
			prefix="end",
		)
		logger.info("Interview complete for session: %s", session_id)

	def generate_interview_summary(self, session_id: str) -> Optional[Dict[str, Any]]:
		context = self.sessions.get(session_id)
		if context is None:
			return None
		categories: List[str] = []
		for q in context.asked:
			if q["category"] not in categories:
				categories.append(q["category"])
		return {
			"session_id": session_id,
			"total_questions": len(context.asked),
			"answered_questions": len(context.answers),
			"duration_ms": int((datetime.utcnow() - context.start_time).total_seconds() * 1000),
			"categories_covered": categories,
			"final_difficulty": context.difficulty,
		}

	def update_tts_config(self, **changes):
		return self.tts.update_config(**changes)

	def add_custom_question(self, **question) -> InterviewQuestion:
		return self.question_bank.add_custom_question(**question)

	def end_session(self, session_id: str) -> None:
		self.sessions.pop(session_id, None)

	def health_check(self) -> Dict[str, Any]:
		return {
			"status": "healthy",
			"questions_available": len(self.question_bank),
			"active_sessions": len(self.sessions),
			"tts_configured": self.tts.enabled,
			"timestamp": datetime.utcnow().isoformat(),
		}
