from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, Response, Depends
from fastapi.responses import JSONResponse
import logging

from interview_coach.schemas import AnalyzeAnswerIn, AnalyzeAnswerOut, QuickAnalysis
from interview_coach.services.analysis import quick_analysis
from interview_coach.utils.audit import auditor
from interview_coach.utils.security import verify_api_key


logger = logging.getLogger(__name__)

router = APIRouter()


@router.options("/analyze-answer")
async def analyze_cors_options(request: Request) -> Response:
	origin = request.headers.get("origin", "*")
	acr_headers = request.headers.get("access-control-request-headers", "*")
	headers = {
		"Access-Control-Allow-Origin": origin,
		"Vary": "Origin",
		"Access-Control-Allow-Headers": acr_headers,
		"Access-Control-Allow-Methods": "POST, OPTIONS",
		"Access-Control-Max-Age": "3600",
	}
	return Response(status_code=204, headers=headers)


@router.post("/analyze-answer", response_model=AnalyzeAnswerOut, dependencies=[Depends(verify_api_key)])
async def analyze(payload: AnalyzeAnswerIn):
	if not payload.question.strip() or not payload.answer.strip():
		raise HTTPException(status_code=400, detail="Question and answer are required")
	try:
		result = await quick_analysis(
			payload.question,
			payload.answer,
			category=payload.category,
			expected_elements=payload.expected_elements,
		)
		analysis = QuickAnalysis(**result)
	except Exception as e:
		logger.error("Error in analyze-answer: %s", e)
		return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

	await auditor.log("analyze_answer", category=payload.category, score=result["score"])
	return AnalyzeAnswerOut(analysis=analysis)
