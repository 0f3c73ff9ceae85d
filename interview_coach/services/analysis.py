from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence
import json
import logging
import random
import re

from interview_coach.services.llm_service import LLMService, LLMUnavailableError, llm_service


logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
	"You are an expert interview coach and talent assessment specialist with over 15 years of experience in "
	"evaluating candidates across various industries. Your role is to provide constructive, actionable feedback "
	"that helps candidates improve their interview performance.\n\n"
	"Key principles for your analysis:\n"
	"- Be constructive and encouraging while being honest about areas for improvement\n"
	"- Provide specific, actionable feedback rather than generic comments\n"
	"- Consider both content and delivery aspects of the answer\n"
	"- Recognize cultural and individual differences in communication styles\n"
	"- Focus on helping the candidate succeed in their next interview\n"
	"- Use professional language appropriate for career coaching\n"
	"- Balance praise for strengths with specific guidance for improvement\n\n"
	"Your analysis should be thorough, fair, and designed to build the candidate's confidence while identifying "
	"clear paths for improvement. Return ONLY the JSON object requested, with no prose around it."
)

QUICK_SYSTEM_PROMPT = (
	"You are an expert interview coach. Analyze the candidate's answer to the interview question and provide "
	"structured feedback. Return ONLY a JSON object with this exact structure:\n"
	"{\n"
	'  "score": number (1-10),\n'
	'  "strengths": ["strength1", "strength2"],\n'
	'  "weaknesses": ["weakness1", "weakness2"],\n'
	'  "improvements": ["tip1", "tip2"],\n'
	'  "category": "{category}",\n'
	'  "overall_feedback": "brief summary"\n'
	"}"
)

FOCUS_POINTS = [
	"Content quality and relevance",
	"Structure and clarity of communication",
	"Specific examples and evidence provided",
	"Alignment with expected elements",
	"Professional presentation and confidence",
]

DEFAULT_STRENGTHS = ["Clear communication"]
DEFAULT_WEAKNESSES = ["Could provide more specific examples"]
DEFAULT_TIPS = ["Practice the STAR method for structured answers"]
DEFAULT_IMPROVEMENT_AREAS = ["Answer structure"]
DEFAULT_FEEDBACK = "Good overall response with room for improvement."

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass
class AnalysisRequest:
	question_id: str
	question: str
	answer: str
	category: str = "general"
	expected_elements: List[str] = field(default_factory=list)
	session_context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AnalysisResult:
	score: float
	strengths: List[str]
	weaknesses: List[str]
	tips: List[str]
	detailed_feedback: str
	category_score: float
	improvement_areas: List[str]
	source: str = "llm"  # llm | fallback

	def to_dict(self) -> dict:
		return asdict(self)


# Canned per-category feedback used whenever the model is unavailable or unparseable.
FALLBACK_TEMPLATES: Dict[str, Dict[str, Any]] = {
	"introduction": {
		"keywords": ["background", "experience", "motivation"],
		"strengths": [
			"Clear structure and logical flow",
			"Relevant experience mentioned",
			"Confident tone and enthusiasm",
		],
		"weaknesses": [
			"Could provide more specific examples",
			"Consider mentioning quantifiable achievements",
			"Opportunity to better connect experience to role",
		],
		"tips": [
			"Use the STAR method (Situation, Task, Action, Result) for stronger examples",
			"Quantify your achievements with numbers and metrics when possible",
			"Research the company more deeply to show specific interest",
		],
		"improvement_areas": ["Specificity", "Quantification", "Company research"],
		"feedback": (
			"Your response shows good self-awareness and enthusiasm for the role. The structure is logical, moving "
			"from background to motivation. To strengthen your answer, consider adding more specific examples of "
			"your achievements and quantifiable results."
		),
	},
	"experience": {
		"keywords": ["challenge", "solution", "result", "collaboration"],
		"strengths": [
			"Specific project example provided",
			"Clear problem identification",
			"Good demonstration of problem-solving skills",
			"Mentioned collaboration effectively",
		],
		"weaknesses": [
			"Could elaborate more on the results achieved",
			"Missing discussion of lessons learned",
			"Limited mention of stakeholder management",
		],
		"tips": [
			"Always conclude with measurable results and impact",
			"Include what you learned from the experience",
			"Mention how you managed different stakeholders during challenges",
		],
		"improvement_areas": ["Results quantification", "Lessons learned", "Stakeholder management"],
		"feedback": (
			"Excellent use of a specific example to demonstrate your experience. You clearly articulated the "
			"challenge and your approach to solving it. To make this even stronger, emphasize the concrete results "
			"of your efforts and what you learned from the experience."
		),
	},
	"technical": {
		"keywords": ["systematic", "tools", "process", "testing"],
		"strengths": [
			"Methodical approach to problem-solving",
			"Good understanding of debugging tools",
			"Clear explanation of technical concepts",
		],
		"weaknesses": [
			"Could provide more specific tool examples",
			"Missing discussion of prevention strategies",
			"Limited mention of documentation practices",
		],
		"tips": [
			"Name specific debugging tools and their use cases",
			"Discuss how you prevent similar issues in the future",
			"Mention the importance of documenting solutions for team knowledge",
		],
		"improvement_areas": ["Tooling detail", "Prevention", "Documentation"],
		"feedback": (
			"Your technical explanation demonstrates solid understanding. The methodical approach you described is "
			"valuable. Consider adding more details about specific tools and prevention strategies."
		),
	},
	"leadership": {
		"keywords": ["leadership", "communication", "motivation", "change"],
		"strengths": [
			"Strong leadership qualities demonstrated",
			"Effective communication strategies mentioned",
			"Good understanding of change management",
		],
		"weaknesses": [
			"Could provide more specific examples of team motivation",
			"Missing discussion of individual team member needs",
			"Limited mention of measuring success",
		],
		"tips": [
			"Describe specific techniques for motivating different personality types",
			"Explain how you adapt your leadership style to individual needs",
			"Include metrics or indicators you use to measure team success",
		],
		"improvement_areas": ["Team motivation", "Individual needs", "Success metrics"],
		"feedback": (
			"Strong demonstration of leadership capabilities. Your communication strategies are well-thought-out. "
			"To enhance this further, include specific examples of how you measure team success."
		),
	},
}
DEFAULT_TEMPLATE = "introduction"

QUICK_FALLBACK = {
	"score": 7,
	"strengths": ["Clear communication", "Relevant experience mentioned"],
	"weaknesses": ["Could provide more specific examples", "Answer could be more structured"],
	"improvements": ["Use the STAR method (Situation, Task, Action, Result)", "Practice providing concrete examples"],
	"overall_feedback": "Good foundation but could be more detailed and structured.",
}


def _clamp_score(value: Any, default: float = 7) -> float:
	try:
		score = float(value) if value else float(default)
	except (TypeError, ValueError):
		score = float(default)
	return round(max(1.0, min(10.0, score)), 1)


def _string_list(value: Any, default: List[str]) -> List[str]:
	if not isinstance(value, list):
		return list(default)
	return [str(item).strip() for item in value if str(item).strip()]


def _text(value: Any, default: str) -> str:
	if isinstance(value, str) and value.strip():
		return value.strip()
	return default


def extract_json_object(text: str) -> Optional[dict]:
	"""Decode the outermost ``{...}`` span of a model reply, or None."""
	match = _JSON_OBJECT.search(text or "")
	if not match:
		return None
	blob = match.group(0)
	try:
		parsed = json.loads(blob)
	except json.JSONDecodeError:
		# Fix trailing commas
		try:
			parsed = json.loads(re.sub(r",\s*([}\]])", r"\1", blob))
		except json.JSONDecodeError:
			return None
	return parsed if isinstance(parsed, dict) else None


def build_analysis_prompt(request: AnalysisRequest, criteria: Sequence[str] = ()) -> str:
	context = request.session_context or {}
	expected = ", ".join(request.expected_elements) or "N/A"
	lines = [
		"Please analyze this interview answer and provide detailed feedback:",
		"",
		f"**Interview Question:** {request.question}",
		f"**Question Category:** {request.category}",
		f"**Expected Elements:** {expected}",
		"",
		"**Candidate's Answer:**",
		request.answer,
		"",
		"**Session Context:**",
		f"- Questions asked so far: {context.get('questions_asked', 0)}",
		f"- Current difficulty level: {context.get('current_difficulty', 'easy')}",
		"",
		"Please provide your analysis in the following JSON format:",
		"{",
		'  "score": [number between 1-10],',
		'  "strengths": ["strength 1", "strength 2", "strength 3"],',
		'  "weaknesses": ["weakness 1", "weakness 2"],',
		'  "tips": ["improvement tip 1", "improvement tip 2", "improvement tip 3"],',
		'  "detailed_feedback": "A paragraph of detailed feedback",',
		'  "category_score": [number between 1-10 for this specific category],',
		'  "improvement_areas": ["area 1", "area 2"]',
		"}",
		"",
		"Focus on:",
	]
	lines.extend(f"{i}. {point}" for i, point in enumerate(FOCUS_POINTS, start=1))
	if criteria:
		lines.append("")
		lines.append("Additional criteria:")
		lines.extend(f"- {c}" for c in criteria)
	return "\n".join(lines)


def calculate_score(answer: str, keywords: Sequence[str]) -> float:
	"""Heuristic 0-9 score from answer length and keyword coverage."""
	lowered = answer.lower()
	word_count = len(answer.split())
	score = min(5.0, word_count / 20)
	for keyword in keywords:
		if keyword.lower() in lowered:
			score += 1
	if word_count > 100:
		score += 0.5
	if word_count > 200:
		score += 0.5
	# Cap at 9 (perfect 10 is rare)
	return min(9.0, score)


def generate_fallback_analysis(request: AnalysisRequest, rng: Optional[random.Random] = None) -> AnalysisResult:
	rng = rng or random.Random()
	template = FALLBACK_TEMPLATES.get(request.category) or FALLBACK_TEMPLATES[DEFAULT_TEMPLATE]
	base = calculate_score(request.answer, template["keywords"])
	adjusted = round(max(1.0, min(10.0, base + rng.uniform(-0.5, 0.5))), 1)
	return AnalysisResult(
		score=adjusted,
		strengths=list(template["strengths"]),
		weaknesses=list(template["weaknesses"]),
		tips=list(template["tips"]),
		detailed_feedback=template["feedback"],
		category_score=adjusted,
		improvement_areas=list(template["improvement_areas"]),
		source="fallback",
	)


def parse_analysis_response(text: str, request: AnalysisRequest, rng: Optional[random.Random] = None) -> AnalysisResult:
	parsed = extract_json_object(text)
	if parsed is None:
		logger.error("Failed to parse analysis response, using fallback: %.200s", text)
		return generate_fallback_analysis(request, rng)

	score = _clamp_score(parsed.get("score"))
	# Accept both our shape and the short edge shape (improvements / overall_feedback)
	tips_raw = parsed.get("tips", parsed.get("improvements"))
	areas_raw = parsed.get("improvement_areas", parsed.get("improvementAreas", parsed.get("improvements")))
	feedback = (
		parsed.get("detailed_feedback")
		or parsed.get("detailedFeedback")
		or parsed.get("overall_feedback")
		or DEFAULT_FEEDBACK
	)
	category_score = _clamp_score(parsed.get("category_score") or parsed.get("categoryScore") or parsed.get("score"))
	return AnalysisResult(
		score=score,
		strengths=_string_list(parsed.get("strengths"), DEFAULT_STRENGTHS),
		weaknesses=_string_list(parsed.get("weaknesses"), DEFAULT_WEAKNESSES),
		tips=_string_list(tips_raw, DEFAULT_TIPS),
		detailed_feedback=str(feedback),
		category_score=category_score,
		improvement_areas=_string_list(areas_raw, DEFAULT_IMPROVEMENT_AREAS),
	)


async def analyze_answer(
	request: AnalysisRequest,
	criteria: Sequence[str] = (),
	rng: Optional[random.Random] = None,
	llm: Optional[LLMService] = None,
) -> AnalysisResult:
	"""Prompt -> LLM -> parse; any failure degrades to the canned analysis. Never raises."""
	prompt = build_analysis_prompt(request, criteria)
	try:
		text = await (llm or llm_service).complete(SYSTEM_PROMPT, prompt)
	except LLMUnavailableError as e:
		logger.warning("LLM unavailable, using fallback analysis: %s", e)
		return generate_fallback_analysis(request, rng)
	except Exception:
		logger.exception("LLM analysis failed for question %s", request.question_id)
		return generate_fallback_analysis(request, rng)
	return parse_analysis_response(text, request, rng)


async def quick_analysis(question: str, answer: str, category: str = "general", expected_elements: Sequence[str] = ()) -> dict:
	"""Stateless short-form analysis.

	Unlike ``analyze_answer`` this propagates provider errors; only an unparseable
	reply is replaced by the canned short analysis.
	"""
	if not question.strip() or not answer.strip():
		raise ValueError("Question and answer are required")
	user_prompt = (
		f"Interview Question: {question}\n"
		f"Candidate Answer: {answer}\n"
		f"Expected Elements: {', '.join(expected_elements) or 'N/A'}\n"
		"Please analyze this answer and provide feedback."
	)
	logger.info("Analyzing answer for question: %.100s", question)
	text = await llm_service.complete(QUICK_SYSTEM_PROMPT.replace("{category}", category), user_prompt, max_tokens=500)
	parsed = extract_json_object(text)
	if parsed is None:
		logger.error("Failed to parse quick analysis response: %.200s", text)
		return {**QUICK_FALLBACK, "category": category}
	return {
		"score": _clamp_score(parsed.get("score")),
		"strengths": _string_list(parsed.get("strengths"), QUICK_FALLBACK["strengths"]),
		"weaknesses": _string_list(parsed.get("weaknesses"), QUICK_FALLBACK["weaknesses"]),
		"improvements": _string_list(parsed.get("improvements", parsed.get("tips")), QUICK_FALLBACK["improvements"]),
		"category": _text(parsed.get("category"), category),
		"overall_feedback": _text(parsed.get("overall_feedback"), QUICK_FALLBACK["overall_feedback"]),
	}


def _most_common(items: List[str], default: str) -> str:
	if not items:
		return default
	return Counter(items).most_common(1)[0][0]


def _mean(values: Sequence[float]) -> float:
	return sum(values) / len(values)


def compute_session_stats(analyses: Sequence[AnalysisResult]) -> Dict[str, Any]:
	if not analyses:
		return {
			"average_score": 0,
			"total_questions": 0,
			"strongest_area": "N/A",
			"weakest_area": "N/A",
			"overall_trend": "N/A",
		}

	scores = [a.score for a in analyses]
	strengths = [s for a in analyses for s in a.strengths]
	weaknesses = [w for a in analyses for w in a.weaknesses]

	trend = "stable"
	if len(scores) >= 3:
		mid = len(scores) // 2
		first_avg = _mean(scores[:mid])
		second_avg = _mean(scores[mid:])
		if second_avg > first_avg + 0.5:
			trend = "improving"
		elif second_avg < first_avg - 0.5:
			trend = "declining"

	return {
		"average_score": round(_mean(scores), 1),
		"total_questions": len(analyses),
		"strongest_area": _most_common(strengths, "Communication"),
		"weakest_area": _most_common(weaknesses, "Specificity"),
		"overall_trend": trend,
	}
