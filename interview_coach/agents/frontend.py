"""Frontend agent: translates client actions into agent messages and agent output into client events.

There is no socket server; client events are delivered to a registered
connection (any object with an async ``send(dict)``) or buffered until the
client drains them over HTTP.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Set
import asyncio
import logging

from interview_coach.agents.base import BaseAgent, AgentMessage, FRONTEND, INTERVIEWER, ANALYZER


logger = logging.getLogger(__name__)

CLIENT_MESSAGE_TYPES = ("start-interview", "submit-answer", "request-audio", "end-interview")


class Connection(Protocol):
	async def send(self, message: Dict[str, Any]) -> None: ...


@dataclass
class FrontendState:
	status: str = "active"
	start_time: datetime = field(default_factory=datetime.utcnow)
	end_time: Optional[datetime] = None
	current_question: Optional[Dict[str, Any]] = None
	answer_count: int = 0
	last_answer: Optional[str] = None

	def to_dict(self) -> dict:
		return {
			"status": self.status,
			"start_time": self.start_time.isoformat(),
			"end_time": self.end_time.isoformat() if self.end_time else None,
			"current_question": self.current_question,
			"answer_count": self.answer_count,
			"last_answer": self.last_answer,
		}


class FrontendAgent(BaseAgent):
	agent_id = FRONTEND

	def __init__(self, next_question_delay: float = 1.0) -> None:
		super().__init__()
		self.next_question_delay = next_question_delay
		self.states: Dict[str, FrontendState] = {}
		self.connections: Dict[str, Connection] = {}
		self.outbox: Dict[str, List[Dict[str, Any]]] = {}
		self.history: Dict[str, List[AgentMessage]] = {}
		self._pending: Set[asyncio.Task] = set()
		self.on("frontend-message", self.handle_frontend_message)
		self.on("backend-message", self.handle_backend_message)
		self.on("session-update", self.handle_session_update)

	async def receive(self, message: AgentMessage) -> None:
		content = message.content or {}
		if message.type == "command" and content.get("command") == "session-created":
			await self.emit("frontend-message", "start-interview", message.session_id, content.get("config") or {})
			return
		await self.emit("backend-message", message)

	# ------------------------------------------------------------------
	# Client -> agents
	# ------------------------------------------------------------------

	async def handle_frontend_message(self, type: str, session_id: str, content: Optional[Dict[str, Any]] = None) -> None:
		content = content or {}
		logger.info("Frontend message received: %s for session %s", type, session_id)
		try:
			if type == "start-interview":
				await self._start_interview(session_id, content)
			elif type == "submit-answer":
				await self._submit_answer(session_id, content)
			elif type == "request-audio":
				await self._request_audio(session_id, content)
			elif type == "end-interview":
				await self._end_interview(session_id)
			else:
				logger.warning("Unknown frontend message type: %s", type)
		except Exception as e:
			logger.error("Failed to handle frontend message %s for %s: %s", type, session_id, e)
			await self.send_error_to_frontend(session_id, e)

	async def _start_interview(self, session_id: str, content: Dict[str, Any]) -> None:
		self.states[session_id] = FrontendState()
		self.outbox.setdefault(session_id, [])
		await self.send_to_frontend(session_id, {
			"type": "session-started",
			"content": {
				"session_id": session_id,
				"status": "Initializing AI Interview Coach...",
				"message": "Your interview session is being prepared by our multi-agent system.",
				"config": content,
			},
		})
		logger.info("Started interview session: %s", session_id)

	async def _submit_answer(self, session_id: str, content: Dict[str, Any]) -> None:
		state = self.states.get(session_id)
		if state is None or state.status != "active":
			raise ValueError(f"No active session found: {session_id}")
		answer = (content.get("answer") or "").strip()
		if not answer:
			raise ValueError("Answer is empty")

		state.answer_count += 1
		state.last_answer = answer
		await self.send_to_frontend(session_id, {
			"type": "answer-received",
			"content": {"message": "Answer received. AI is analyzing your response...", "status": "processing"},
		})
		await self.send_message(
			INTERVIEWER,
			"answer",
			{
				"question_id": content.get("question_id"),
				"answer": answer,
				"metadata": {
					"answer_length": len(answer),
					"submission_time": datetime.utcnow().isoformat(),
					"answer_index": state.answer_count,
				},
			},
			session_id,
		)
		logger.info("Submitted answer for analysis: %s", session_id)

	async def _request_audio(self, session_id: str, content: Dict[str, Any]) -> None:
		await self.send_message(
			INTERVIEWER,
			"command",
			{"command": "generate-audio", "text": content.get("text", "")},
			session_id,
			prefix="audio-req",
		)

	async def _end_interview(self, session_id: str) -> None:
		state = self.states.get(session_id)
		if state is not None:
			state.status = "completed"
			state.end_time = datetime.utcnow()
		await self.send_to_frontend(session_id, {
			"type": "interview-ended",
			"content": {
				"message": "Interview session completed. Generating final report...",
				"session_summary": state.to_dict() if state else None,
			},
		})
		await self.send_message(ANALYZER, "command", {"command": "generate-session-summary"}, session_id, prefix="end")
		logger.info("Ended interview session: %s", session_id)

	# ------------------------------------------------------------------
	# Agents -> client
	# ------------------------------------------------------------------

	async def handle_backend_message(self, message: AgentMessage) -> None:
		session_id = message.session_id
		content = message.content or {}
		logger.debug("Backend message: %s -> frontend (%s)", message.sender, message.type)
		self.history.setdefault(session_id, []).append(message)
		try:
			if message.type == "question":
				await self._incoming_question(session_id, content)
			elif message.type == "feedback":
				await self._incoming_feedback(session_id, content)
			elif message.type == "command":
				await self._incoming_command(session_id, content)
			elif message.type == "error":
				await self._incoming_error(session_id, content)
			else:
				logger.warning("Unknown backend message type: %s", message.type)
		except Exception as e:
			logger.exception("Failed to handle backend message %s", message.id)
			await self.send_error_to_frontend(session_id, e)

	async def _incoming_question(self, session_id: str, content: Dict[str, Any]) -> None:
		state = self.states.get(session_id)
		if state is not None:
			state.current_question = content
		await self.send_to_frontend(session_id, {
			"type": "new-question",
			"content": {
				"question_id": content.get("question_id"),
				"question": content.get("question"),
				"category": content.get("category"),
				"difficulty": content.get("difficulty"),
				"audio_url": content.get("audio_url"),
				"context": content.get("context"),
			},
		})

	async def _incoming_feedback(self, session_id: str, content: Dict[str, Any]) -> None:
		await self.send_to_frontend(session_id, {
			"type": "feedback-received",
			"content": {
				"question_id": content.get("question_id"),
				"analysis": content.get("analysis"),
				"session_stats": content.get("session_stats"),
			},
		})
		previous_feedback = content.get("analysis")
		if self.next_question_delay > 0:
			task = asyncio.create_task(self._request_next_question(session_id, previous_feedback, self.next_question_delay))
			self._pending.add(task)
			task.add_done_callback(self._pending.discard)
		else:
			await self._request_next_question(session_id, previous_feedback)

	async def _request_next_question(self, session_id: str, previous_feedback: Optional[Dict[str, Any]], delay: float = 0) -> None:
		if delay:
			await asyncio.sleep(delay)
		state = self.states.get(session_id)
		if state is None or state.status != "active":
			return
		await self.send_message(
			INTERVIEWER,
			"command",
			{"command": "next-question", "previous_feedback": previous_feedback},
			session_id,
			prefix="next-q",
		)

	async def _incoming_command(self, session_id: str, content: Dict[str, Any]) -> None:
		command = content.get("command")
		if command == "audio-generated":
			await self.send_to_frontend(session_id, {
				"type": "audio-ready",
				"content": {"audio_url": content.get("audio_url"), "original_text": content.get("original_text")},
			})
		elif command == "interview-complete":
			state = self.states.get(session_id)
			if state is not None:
				state.status = "completed"
				state.end_time = datetime.utcnow()
			await self.send_to_frontend(session_id, {"type": "interview-complete", "content": content.get("summary")})
		elif command == "session-summary":
			await self.send_to_frontend(session_id, {
				"type": "session-summary",
				"content": {"stats": content.get("stats"), "analyses": content.get("analyses")},
			})
		else:
			logger.warning("Unknown command: %s", command)

	async def _incoming_error(self, session_id: str, content: Dict[str, Any]) -> None:
		logger.error("Backend error for session %s: %s", session_id, content)
		await self.send_to_frontend(session_id, {
			"type": "error",
			"content": {
				"message": "An error occurred during the interview session.",
				"error": content.get("error"),
				"recoverable": bool(content.get("recoverable", False)),
			},
		})

	# ------------------------------------------------------------------
	# Delivery
	# ------------------------------------------------------------------

	async def send_to_frontend(self, session_id: str, message: Dict[str, Any]) -> None:
		message = {**message, "timestamp": datetime.utcnow().isoformat()}
		connection = self.connections.get(session_id)
		if connection is not None:
			try:
				await connection.send(message)
				return
			except Exception:
				logger.exception("Send failed for session %s, buffering", session_id)
		self.outbox.setdefault(session_id, []).append(message)

	async def send_error_to_frontend(self, session_id: str, error: Exception) -> None:
		await self.send_to_frontend(session_id, {
			"type": "error",
			"content": {
				"message": str(error) or "An unexpected error occurred",
				"error": type(error).__name__,
				"recoverable": True,
			},
		})

	async def connect(self, session_id: str, connection: Connection) -> int:
		"""Attach a live connection and flush anything buffered for it. Returns the flushed count."""
		self.connections[session_id] = connection
		logger.info("Connection established for session: %s", session_id)
		buffered = self.outbox.pop(session_id, [])
		for message in buffered:
			await connection.send(message)
		return len(buffered)

	def disconnect(self, session_id: str) -> None:
		self.connections.pop(session_id, None)

	def drain(self, session_id: str) -> List[Dict[str, Any]]:
		messages = self.outbox.get(session_id, [])
		self.outbox[session_id] = []
		return messages

	def handle_session_update(self, session_id: str, update: Dict[str, Any]) -> None:
		state = self.states.get(session_id)
		if state is None:
			return
		for key, value in update.items():
			if hasattr(state, key):
				setattr(state, key, value)
		logger.info("Session updated: %s", session_id)

	def get_state(self, session_id: str) -> Optional[FrontendState]:
		return self.states.get(session_id)

	def get_history(self, session_id: str) -> List[dict]:
		return [m.to_dict() for m in self.history.get(session_id, [])]

	def end_session(self, session_id: str) -> None:
		for store in (self.states, self.connections, self.outbox, self.history):
			store.pop(session_id, None)

	async def close(self) -> None:
		for task in list(self._pending):
			task.cancel()
		self._pending.clear()

	def health_check(self) -> Dict[str, Any]:
		return {
			"status": "healthy",
			"active_sessions": sum(1 for s in self.states.values() if s.status == "active"),
			"connections": len(self.connections),
			"buffered_messages": sum(len(v) for v in self.outbox.values()),
			"timestamp": datetime.utcnow().isoformat(),
		}
