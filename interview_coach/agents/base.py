from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
import inspect
import itertools
import logging
import time


logger = logging.getLogger(__name__)

MESSAGE_TYPES = ("question", "answer", "feedback", "command", "error")

INTERVIEWER = "interviewer-agent"
ANALYZER = "analyzer-agent"
FRONTEND = "frontend-agent"
MASTER = "master-agent"
BROADCAST = "all"

Handler = Callable[..., Union[None, Awaitable[None]]]

_counter = itertools.count(1)


def message_id(prefix: str) -> str:
	# ms timestamp alone collides when several messages go out in the same tick
	return f"{prefix}-{int(time.time() * 1000)}-{next(_counter)}"


@dataclass
class AgentMessage:
	id: str
	sender: str
	to: str
	type: str
	content: Dict[str, Any]
	session_id: str
	timestamp: datetime = field(default_factory=datetime.utcnow)
	attempts: int = 0

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"from": self.sender,
			"to": self.to,
			"type": self.type,
			"content": self.content,
			"session_id": self.session_id,
			"timestamp": self.timestamp.isoformat(),
		}

	def readdressed(self, to: str) -> "AgentMessage":
		return AgentMessage(
			id=self.id,
			sender=self.sender,
			to=to,
			type=self.type,
			content=self.content,
			session_id=self.session_id,
			timestamp=self.timestamp,
		)


@dataclass
class AgentDescriptor:
	id: str
	name: str
	description: str
	capabilities: List[str] = field(default_factory=list)
	endpoints: List[str] = field(default_factory=list)

	def to_dict(self) -> dict:
		return asdict(self)


class BaseAgent:
	"""In-process event emitter with a role name.

	Outbound messages go through the ``send-message`` event; the master agent
	subscribes to it on registration and routes them.
	"""

	agent_id: str = ""

	def __init__(self) -> None:
		self._handlers: Dict[str, List[Handler]] = {}

	def on(self, event: str, handler: Handler) -> None:
		self._handlers.setdefault(event, []).append(handler)

	def off(self, event: str, handler: Handler) -> None:
		if event in self._handlers:
			self._handlers[event] = [h for h in self._handlers[event] if h != handler]

	def listeners(self, event: str) -> List[Handler]:
		return list(self._handlers.get(event, []))

	async def emit(self, event: str, *args: Any) -> None:
		for handler in self.listeners(event):
			try:
				result = handler(*args)
				if inspect.isawaitable(result):
					await result
			except Exception:
				logger.exception("Error in %s handler for '%s'", self.agent_id or type(self).__name__, event)

	async def send_message(
		self,
		to: str,
		type: str,
		content: Dict[str, Any],
		session_id: str,
		prefix: Optional[str] = None,
	) -> AgentMessage:
		message = AgentMessage(
			id=message_id(prefix or type),
			sender=self.agent_id,
			to=to,
			type=type,
			content=content,
			session_id=session_id,
		)
		await self.emit("send-message", message)
		return message

	async def send_error(self, session_id: str, kind: str, error: Exception, recoverable: bool = False) -> None:
		await self.send_message(
			FRONTEND,
			"error",
			{"kind": kind, "error": str(error), "recoverable": recoverable},
			session_id,
		)

	async def receive(self, message: AgentMessage) -> None:
		raise NotImplementedError

	def health_check(self) -> Dict[str, Any]:
		return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}
