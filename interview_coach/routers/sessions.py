from fastapi import APIRouter, HTTPException, Depends

from interview_coach.schemas import SessionConfig, StartSessionResponse, SessionList, SessionSummary, AnswerIn, AudioIn, StatsOut
from interview_coach.services.coach import coach
from interview_coach.utils.security import verify_api_key


router = APIRouter(dependencies=[Depends(verify_api_key)])

NOT_FOUND = "Session not found. Start one via POST /api/sessions/start and reuse its session_id."


@router.post("/sessions/start", response_model=StartSessionResponse)
async def start_session(payload: SessionConfig):
	session = await coach.start_session(payload.model_dump())
	return StartSessionResponse(
		session_id=session.id,
		messages_url=f"/api/sessions/{session.id}/messages",
		message="Interview session started. Poll messages_url for questions and feedback.",
	)


@router.get("/sessions", response_model=SessionList)
async def list_sessions():
	return SessionList(items=[SessionSummary(**i) for i in coach.list_sessions()])


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
	try:
		return coach.get_session_detail(session_id)
	except KeyError:
		raise HTTPException(status_code=404, detail=NOT_FOUND)


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
	deleted = await coach.delete_session(session_id)
	if not deleted:
		raise HTTPException(status_code=404, detail="Session not found")
	return {"status": "ok", "deleted": True}


@router.post("/sessions/{session_id}/answer")
async def submit_answer(session_id: str, payload: AnswerIn):
	if not payload.answer.strip():
		raise HTTPException(status_code=400, detail="Empty answer")
	try:
		await coach.submit_answer(session_id, payload.question_id, payload.answer)
	except KeyError:
		raise HTTPException(status_code=404, detail=NOT_FOUND)
	except ValueError as e:
		raise HTTPException(status_code=409, detail=str(e))
	return {"success": True, "message": "Answer submitted for analysis"}


@router.post("/sessions/{session_id}/audio")
async def request_audio(session_id: str, payload: AudioIn):
	if not payload.text.strip():
		raise HTTPException(status_code=400, detail="Empty text")
	try:
		await coach.request_audio(session_id, payload.text)
	except KeyError:
		raise HTTPException(status_code=404, detail=NOT_FOUND)
	return {"success": True, "message": "Audio requested"}


@router.post("/sessions/{session_id}/end")
async def end_session(session_id: str):
	try:
		stats = await coach.end_session(session_id)
	except KeyError:
		raise HTTPException(status_code=404, detail=NOT_FOUND)
	return {"success": True, "session_stats": stats}


@router.get("/sessions/{session_id}/messages")
async def drain_messages(session_id: str):
	try:
		messages = coach.drain_messages(session_id)
	except KeyError:
		raise HTTPException(status_code=404, detail=NOT_FOUND)
	return {"session_id": session_id, "messages": messages}


@router.get("/sessions/{session_id}/stats", response_model=StatsOut)
async def session_stats(session_id: str):
	try:
		return coach.get_stats(session_id)
	except KeyError:
		raise HTTPException(status_code=404, detail=NOT_FOUND)
