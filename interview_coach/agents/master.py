"""Master agent: agent registry, session lifecycle and message routing.

Registration with the Coral Protocol is a logged no-op; routing is a direct
``receive()`` call on the in-process recipient.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Set
import asyncio
import logging

import anyio

from interview_coach.agents.base import (
	AgentDescriptor,
	AgentMessage,
	BaseAgent,
	BROADCAST,
	MASTER,
	message_id,
)
from interview_coach.services.session_manager import InterviewSession, SessionManager


logger = logging.getLogger(__name__)

MASTER_DESCRIPTOR = AgentDescriptor(
	id=MASTER,
	name="AI Interview Coach Master Agent",
	description="Orchestrates interview coaching session with specialized AI agents",
	capabilities=["orchestration", "routing", "session-management"],
	endpoints=["/api/master/route", "/api/master/session"],
)


class MasterAgent(BaseAgent):
	agent_id = MASTER

	def __init__(
		self,
		sessions: Optional[SessionManager] = None,
		retry_delay: float = 5.0,
		max_retries: int = 1,
		registration_delay: float = 0.1,
	) -> None:
		super().__init__()
		self.sessions = sessions or SessionManager()
		self.retry_delay = retry_delay
		self.max_retries = max_retries
		self.registration_delay = registration_delay
		self.descriptors: Dict[str, AgentDescriptor] = {}
		self.agents: Dict[str, BaseAgent] = {}
		self.retry_queue: List[AgentMessage] = []
		self._pending: Set[asyncio.Task] = set()
		self._initialized = False

	async def initialize(self) -> None:
		if self._initialized:
			return
		logger.info("Initializing Coral Protocol for AI Interview Coach...")
		await self._register_with_coral(MASTER_DESCRIPTOR)
		self._initialized = True
		logger.info("Master agent initialized")

	async def _register_with_coral(self, descriptor: AgentDescriptor) -> None:
		# Mock registration; there is no Coral endpoint to talk to
		logger.info("Registering with Coral Protocol: %s (%s)", descriptor.name, descriptor.id)
		if self.registration_delay > 0:
			await anyio.sleep(self.registration_delay)

	async def register_agent(self, descriptor: AgentDescriptor, agent: Optional[BaseAgent] = None) -> None:
		await self._register_with_coral(descriptor)
		self.descriptors[descriptor.id] = descriptor
		if agent is not None:
			self.agents[descriptor.id] = agent
			agent.on("send-message", self.route_message)
		logger.info("Registered agent: %s (%s)", descriptor.name, descriptor.id)
		await self.emit("agent-registered", descriptor)

	async def create_session(self, config: Optional[Dict[str, Any]] = None) -> InterviewSession:
		session = await self.sessions.create_session(config)
		logger.info("Created interview session: %s", session.id)
		await self.broadcast(AgentMessage(
			id=message_id("msg"),
			sender=MASTER,
			to=BROADCAST,
			type="command",
			content={"command": "session-created", "session_id": session.id, "config": session.config},
			session_id=session.id,
		))
		await self.update_session(session.id, status="active")
		return session

	async def route_message(self, message: AgentMessage) -> None:
		logger.info("Routing message: %s -> %s (%s)", message.sender, message.to, message.type)
		try:
			if message.session_id not in self.sessions:
				raise KeyError(f"Invalid session ID: {message.session_id}")
			self.sessions.append_message(message.session_id, message.to_dict())

			if message.to == BROADCAST:
				await self.broadcast(message)
			elif message.to in self.agents:
				await self.agents[message.to].receive(message)
			else:
				logger.warning("Unknown recipient: %s", message.to)
			await self.emit("message-routed", message)
		except Exception as e:
			logger.error("Failed to route message %s: %s", message.id, e)
			await self.emit("routing-error", message, e)
			self._requeue(message)

	async def broadcast(self, message: AgentMessage) -> None:
		session = self.sessions.get(message.session_id)
		participants = session.participants if session else list(self.agents)
		for agent_id in participants:
			if agent_id in self.agents:
				await self.route_message(message.readdressed(agent_id))
		logger.debug("Broadcast completed for %s", message.id)

	def _requeue(self, message: AgentMessage) -> None:
		if message.attempts >= self.max_retries:
			logger.error("Dropping message %s after %d retries", message.id, message.attempts)
			return
		message.attempts += 1
		self.retry_queue.append(message)
		task = asyncio.create_task(self._retry_later(message))
		self._pending.add(task)
		task.add_done_callback(self._pending.discard)

	async def _retry_later(self, message: AgentMessage) -> None:
		await asyncio.sleep(self.retry_delay)
		if message in self.retry_queue:
			self.retry_queue.remove(message)
			logger.info("Retrying message: %s (attempt %d)", message.id, message.attempts)
			await self.route_message(message)

	async def update_session(self, session_id: str, **changes: Any) -> Optional[InterviewSession]:
		session = self.sessions.get(session_id)
		if session is None:
			return None
		self.sessions.update(session_id, **changes)
		logger.info("Session updated: %s %s", session_id, changes)
		for agent in self.agents.values():
			await agent.emit("session-update", session_id, changes)
		return session

	def get_session(self, session_id: str) -> Optional[InterviewSession]:
		return self.sessions.get(session_id)

	def list_sessions(self) -> List[dict]:
		return self.sessions.list_sessions()

	async def delete_session(self, session_id: str) -> bool:
		deleted = await self.sessions.delete_session(session_id)
		if deleted:
			for agent in self.agents.values():
				end = getattr(agent, "end_session", None)
				if end is not None:
					end(session_id)
			self.retry_queue = [m for m in self.retry_queue if m.session_id != session_id]
		return deleted

	def get_agents(self) -> List[AgentDescriptor]:
		return list(self.descriptors.values())

	async def close(self) -> None:
		for task in list(self._pending):
			task.cancel()
		self._pending.clear()
		self.retry_queue.clear()

	def health_check(self) -> Dict[str, Any]:
		return {
			"status": "healthy",
			"agents_count": len(self.descriptors),
			"active_sessions": len(self.sessions),
			"queue_length": len(self.retry_queue),
			"timestamp": datetime.utcnow().isoformat(),
		}
