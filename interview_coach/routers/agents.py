from fastapi import APIRouter, HTTPException, Depends
from typing import List

from interview_coach.schemas import QuestionOut, CustomQuestionIn, LLMConfigIn, TTSConfigIn, CriteriaIn
from interview_coach.services.coach import coach
from interview_coach.utils.security import verify_api_key


router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("/health")
async def api_health():
	return coach.health()


@router.get("/agents")
async def list_agents():
	return {"agents": [d.to_dict() for d in coach.get_agents()]}


@router.get("/agents/{agent_id}/health")
async def agent_health(agent_id: str):
	try:
		return coach.agent_health(agent_id)
	except KeyError:
		raise HTTPException(status_code=404, detail=f"Unknown agent: {agent_id}")


@router.get("/questions", response_model=List[QuestionOut])
async def list_questions():
	return [q.to_dict() for q in coach.questions()]


@router.post("/questions", response_model=QuestionOut)
async def add_question(payload: CustomQuestionIn):
	try:
		question = coach.add_custom_question(**payload.model_dump())
	except ValueError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return question.to_dict()


@router.post("/config/llm")
async def update_llm_config(payload: LLMConfigIn):
	config = coach.update_llm_config(**payload.model_dump(exclude_none=True))
	return {"status": "ok", "config": config}


@router.post("/config/tts")
async def update_tts_config(payload: TTSConfigIn):
	config = coach.update_tts_config(**payload.model_dump(exclude_none=True))
	return {"status": "ok", "config": config}


@router.post("/analysis/criteria")
async def update_criteria(payload: CriteriaIn):
	return {"status": "ok", "criteria": coach.update_analysis_criteria(payload.criteria)}
