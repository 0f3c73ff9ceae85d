from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import asyncio

from interview_coach.services.question_bank import generate_id


# Broadcast order: the frontend must hold session state before the first question arrives
DEFAULT_PARTICIPANTS = ["frontend-agent", "interviewer-agent", "analyzer-agent"]


@dataclass
class InterviewSession:
	id: str
	config: Dict[str, Any] = field(default_factory=dict)
	status: str = "initialized"
	start_time: datetime = field(default_factory=datetime.utcnow)
	last_update: datetime = field(default_factory=datetime.utcnow)
	participants: List[str] = field(default_factory=lambda: list(DEFAULT_PARTICIPANTS))
	message_history: List[dict] = field(default_factory=list)

	def to_dict(self) -> dict:
		return {
			"session_id": self.id,
			"status": self.status,
			"start_time": self.start_time.isoformat(),
			"last_update": self.last_update.isoformat(),
			"config": self.config,
			"participants": list(self.participants),
			"message_count": len(self.message_history),
		}


class SessionManager:
	"""In-memory session store. Nothing is persisted or evicted."""

	def __init__(self) -> None:
		self._sessions: Dict[str, InterviewSession] = {}
		self._lock = asyncio.Lock()

	def __len__(self) -> int:
		return len(self._sessions)

	def __contains__(self, session_id: object) -> bool:
		return session_id in self._sessions

	async def create_session(self, config: Optional[Dict[str, Any]] = None) -> InterviewSession:
		async with self._lock:
			session_id = generate_id("session")
			while session_id in self._sessions:
				session_id = generate_id("session")
			state = InterviewSession(id=session_id, config=dict(config or {}))
			self._sessions[session_id] = state
			return state

	def get(self, session_id: str) -> Optional[InterviewSession]:
		return self._sessions.get(session_id)

	def get_required(self, session_id: str) -> InterviewSession:
		state = self.get(session_id)
		if state is None:
			raise KeyError(f"session not found: {session_id}")
		return state

	def update(self, session_id: str, **changes: Any) -> InterviewSession:
		state = self.get_required(session_id)
		for key, value in changes.items():
			if not hasattr(state, key) or key == "id":
				raise AttributeError(f"unknown session field: {key}")
			setattr(state, key, value)
		state.last_update = datetime.utcnow()
		return state

	def append_message(self, session_id: str, message: dict) -> None:
		state = self.get_required(session_id)
		state.message_history.append(message)
		state.last_update = datetime.utcnow()

	def list_sessions(self) -> List[dict]:
		"""Return lightweight session summaries for frontend lists."""
		items = [
			{
				"session_id": s.id,
				"status": s.status,
				"last_update": s.last_update.isoformat(),
				"message_count": len(s.message_history),
			}
			for s in self._sessions.values()
		]
		# Newest first
		items.sort(key=lambda x: x["last_update"], reverse=True)
		return items

	async def delete_session(self, session_id: str) -> bool:
		"""Delete an entire session. Returns True if deleted."""
		async with self._lock:
			return self._sessions.pop(session_id, None) is not None
