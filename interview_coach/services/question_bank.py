from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional
import logging
import random
import string
import time


logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")


@dataclass
class InterviewQuestion:
	id: str
	category: str
	difficulty: str
	question: str
	context: str
	expected_elements: List[str] = field(default_factory=list)

	def to_dict(self) -> dict:
		return asdict(self)


DEFAULT_QUESTIONS: List[InterviewQuestion] = [
	InterviewQuestion(
		id="intro-1",
		category="introduction",
		difficulty="easy",
		question=(
			"Tell me about yourself and why you're interested in this position. I'm looking for insights into "
			"your background, motivations, and how your experience aligns with the role."
		),
		context="Opening question to assess communication skills and self-awareness",
		expected_elements=["background summary", "relevant experience", "motivation", "role connection"],
	),
	InterviewQuestion(
		id="experience-1",
		category="experience",
		difficulty="medium",
		question=(
			"Can you describe a challenging project you've worked on and how you overcame obstacles? I'm "
			"particularly interested in your problem-solving approach and collaboration skills."
		),
		context="Behavioral question to assess problem-solving and teamwork",
		expected_elements=["specific example", "challenges identified", "actions taken", "results achieved", "lessons learned"],
	),
	InterviewQuestion(
		id="technical-1",
		category="technical",
		difficulty="medium",
		question=(
			"Walk me through your approach to debugging a complex technical issue. What tools and "
			"methodologies do you use?"
		),
		context="Technical competency and systematic thinking assessment",
		expected_elements=["systematic approach", "tools mentioned", "debugging strategies", "documentation practices"],
	),
	InterviewQuestion(
		id="leadership-1",
		category="leadership",
		difficulty="hard",
		question=(
			"Describe a time when you had to lead a team through a difficult situation or major change. How "
			"did you ensure everyone stayed motivated and aligned?"
		),
		context="Leadership and change management capabilities",
		expected_elements=["leadership style", "communication strategies", "team motivation", "change management", "outcomes"],
	),
	InterviewQuestion(
		id="conflict-1",
		category="behavioral",
		difficulty="hard",
		question=(
			"Tell me about a time when you disagreed with your manager or team lead on an important decision. "
			"How did you handle the situation?"
		),
		context="Conflict resolution and professional maturity assessment",
		expected_elements=["specific situation", "communication approach", "compromise or resolution", "relationship preservation"],
	),
	InterviewQuestion(
		id="growth-1",
		category="development",
		difficulty="medium",
		question=(
			"What's the most significant skill or knowledge area you've developed in the past year? How did "
			"you approach learning it?"
		),
		context="Continuous learning and growth mindset evaluation",
		expected_elements=["specific skill/knowledge", "learning approach", "application examples", "impact on work"],
	),
	InterviewQuestion(
		id="innovation-1",
		category="innovation",
		difficulty="hard",
		question=(
			"Describe a time when you had to think outside the box to solve a problem. What was your creative "
			"process and what was the outcome?"
		),
		context="Creative thinking and innovation capabilities",
		expected_elements=["creative problem-solving", "process description", "innovative solution", "measurable outcome"],
	),
	InterviewQuestion(
		id="pressure-1",
		category="behavioral",
		difficulty="medium",
		question=(
			"Tell me about a time when you had to work under significant pressure or tight deadlines. How did "
			"you manage the stress and ensure quality?"
		),
		context="Stress management and performance under pressure",
		expected_elements=["pressure situation", "stress management", "quality maintenance", "time management"],
	),
]


def _suffix(length: int = 9) -> str:
	alphabet = string.ascii_lowercase + string.digits
	return "".join(random.choice(alphabet) for _ in range(length))


def generate_id(prefix: str) -> str:
	"""``<prefix>-<epoch ms>-<9 base36 chars>``, the id shape used for sessions and custom questions."""
	return f"{prefix}-{int(time.time() * 1000)}-{_suffix()}"


class QuestionBank:
	"""Ordered, in-memory question store. Bank order matters for the exhausted-difficulty fallback."""

	def __init__(self, questions: Optional[List[InterviewQuestion]] = None) -> None:
		source = DEFAULT_QUESTIONS if questions is None else questions
		self._questions: List[InterviewQuestion] = list(source)
		self._by_id: Dict[str, InterviewQuestion] = {q.id: q for q in self._questions}
		logger.info("Question bank initialized with %d questions", len(self._questions))

	def __len__(self) -> int:
		return len(self._questions)

	def all(self) -> List[InterviewQuestion]:
		return list(self._questions)

	def get(self, question_id: str) -> Optional[InterviewQuestion]:
		return self._by_id.get(question_id)

	def add_custom_question(
		self,
		category: str,
		difficulty: str,
		question: str,
		context: str = "",
		expected_elements: Optional[List[str]] = None,
	) -> InterviewQuestion:
		if difficulty not in DIFFICULTIES:
			raise ValueError(f"difficulty must be one of {', '.join(DIFFICULTIES)}")
		if not question.strip():
			raise ValueError("question text is empty")
		custom = InterviewQuestion(
			id=generate_id("custom"),
			category=category.strip() or "general",
			difficulty=difficulty,
			question=question.strip(),
			context=context,
			expected_elements=list(expected_elements or []),
		)
		self._questions.append(custom)
		self._by_id[custom.id] = custom
		logger.info("Added custom question: %s", custom.id)
		return custom
