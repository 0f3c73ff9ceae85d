"""Analyzer agent: scores candidate answers and keeps per-session analysis history."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging
import random

from interview_coach.agents.base import BaseAgent, AgentMessage, ANALYZER, FRONTEND
from interview_coach.services.analysis import (
	AnalysisRequest,
	AnalysisResult,
	analyze_answer,
	compute_session_stats,
)
from interview_coach.services.llm_service import LLMService, llm_service


logger = logging.getLogger(__name__)


class AnalyzerAgent(BaseAgent):
	agent_id = ANALYZER

	def __init__(self, llm: Optional[LLMService] = None, rng: Optional[random.Random] = None) -> None:
		super().__init__()
		self.llm = llm or llm_service
		self.rng = rng or random.Random()
		self.history: Dict[str, List[AnalysisResult]] = {}
		self.criteria: List[str] = []
		self.on("analyze-answer", self.handle_analyze_answer)
		self.on("get-session-analysis", self.handle_get_session_analysis)
		self.on("update-analysis-criteria", self.update_analysis_criteria)

	async def receive(self, message: AgentMessage) -> None:
		content = message.content or {}
		if message.type == "answer":
			await self.emit("analyze-answer", message.session_id, content)
		elif message.type == "command":
			command = content.get("command")
			if command == "generate-session-summary":
				await self.emit("get-session-analysis", message.session_id)
			elif command == "update-analysis-criteria":
				await self.emit("update-analysis-criteria", content.get("criteria") or [])
			elif command != "session-created":
				logger.warning("Analyzer received unknown command: %s", command)
		else:
			logger.warning("Analyzer ignoring %s message %s", message.type, message.id)

	async def handle_analyze_answer(self, session_id: str, content: Dict[str, Any]) -> None:
		try:
			logger.info("Analyzing answer for session: %s", session_id)
			request = AnalysisRequest(
				question_id=content["question_id"],
				question=content.get("question") or "",
				answer=content.get("answer") or "",
				category=content.get("category") or "general",
				expected_elements=list(content.get("expected_elements") or []),
				session_context=dict(content.get("session_context") or {}),
			)
			result = await analyze_answer(request, self.criteria, self.rng, self.llm)
			self.history.setdefault(session_id, []).append(result)

			await self.send_message(
				FRONTEND,
				"feedback",
				{
					"question_id": request.question_id,
					"analysis": result.to_dict(),
					"session_stats": self.get_session_stats(session_id),
				},
				session_id,
			)
			logger.info("Analysis complete for session: %s (score=%s, source=%s)", session_id, result.score, result.source)
		except Exception as e:
			logger.exception("Failed to analyze answer for %s", session_id)
			await self.send_error(session_id, "analysis-failed", e, recoverable=True)

	async def handle_get_session_analysis(self, session_id: str) -> None:
		try:
			await self.send_message(
				FRONTEND,
				"command",
				{
					"command": "session-summary",
					"stats": self.get_session_stats(session_id),
					"analyses": [a.to_dict() for a in self.history.get(session_id, [])],
				},
				session_id,
				prefix="summary",
			)
			logger.info("Generated session analysis for: %s", session_id)
		except Exception as e:
			logger.exception("Failed to generate session analysis for %s", session_id)
			await self.send_error(session_id, "session-analysis-failed", e)

	def update_analysis_criteria(self, criteria: List[str]) -> List[str]:
		self.criteria = [c.strip() for c in criteria if c and c.strip()]
		logger.info("Updated analysis criteria: %s", self.criteria)
		return list(self.criteria)

	def update_llm_config(self, **changes):
		return self.llm.update_config(**changes)

	def get_session_stats(self, session_id: str) -> Dict[str, Any]:
		return compute_session_stats(self.history.get(session_id, []))

	def get_analyses(self, session_id: str) -> List[AnalysisResult]:
		return list(self.history.get(session_id, []))

	def end_session(self, session_id: str) -> None:
		self.history.pop(session_id, None)

	def health_check(self) -> Dict[str, Any]:
		return {
			"status": "healthy",
			"total_analyses": sum(len(v) for v in self.history.values()),
			"active_sessions": len(self.history),
			"llm_configured": self.llm.enabled,
			"timestamp": datetime.utcnow().isoformat(),
		}
