#!/usr/bin/env python3
"""
HTTP surface: sessions, agents, configuration, stateless analysis and CORS.
"""
import pytest
from fastapi.testclient import TestClient

from interview_coach.config import settings
from interview_coach.main import app
from interview_coach.services.coach import coach
from interview_coach.services.llm_service import LLMUnavailableError, llm_service


FRONTEND_ORIGIN = "http://localhost:5173"

REPLY = '{"score": 7.5, "strengths": ["Structured"], "weaknesses": ["Few numbers"], "improvements": ["Quantify results"], "overall_feedback": "Good."}'


@pytest.fixture
def client(monkeypatch):
    async def complete(system_prompt, user_prompt, *, max_tokens=None):
        return REPLY

    monkeypatch.setattr(llm_service, "complete", complete)
    monkeypatch.setattr(coach.frontend, "next_question_delay", 0)
    with TestClient(app) as c:
        yield c


def start(client, **config):
    response = client.post("/api/sessions/start", json=config)
    assert response.status_code == 200
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "provider" in body["llm"]

    agents = client.get("/api/health").json()["agents"]
    assert set(agents) == {"master", "frontend", "interviewer", "analyzer"}


def test_start_session_and_poll_messages(client):
    body = start(client, difficulty="medium", candidate_profile={"name": "Ada", "role": "Engineer"})
    assert body["success"] is True
    assert body["session_id"].startswith("session-")
    assert body["messages_url"] == f"/api/sessions/{body['session_id']}/messages"

    messages = client.get(body["messages_url"]).json()["messages"]
    assert [m["type"] for m in messages] == ["session-started", "new-question"]
    assert messages[0]["content"]["config"]["candidate_profile"]["name"] == "Ada"

    detail = client.get(f"/api/sessions/{body['session_id']}").json()
    assert detail["session"]["status"] == "active"
    assert detail["frontend_state"]["status"] == "active"
    assert detail["message_history"]


def test_invalid_session_config_is_rejected(client):
    response = client.post("/api/sessions/start", json={"difficulty": "extreme"})
    assert response.status_code == 422


def test_answer_round_trip_and_stats(client):
    body = start(client)
    sid = body["session_id"]
    question = client.get(body["messages_url"]).json()["messages"][1]["content"]

    response = client.post(f"/api/sessions/{sid}/answer", json={"question_id": question["question_id"], "answer": "I shipped a payments API."})
    assert response.status_code == 200

    messages = client.get(body["messages_url"]).json()["messages"]
    assert [m["type"] for m in messages] == ["answer-received", "feedback-received", "new-question"]

    stats = client.get(f"/api/sessions/{sid}/stats").json()
    assert stats["session_stats"]["total_questions"] == 1
    assert stats["progress"]["answered_questions"] == 1
    assert stats["progress"]["total_questions"] == 2

    ended = client.post(f"/api/sessions/{sid}/end").json()
    assert ended["success"] is True
    messages = client.get(body["messages_url"]).json()["messages"]
    assert [m["type"] for m in messages] == ["interview-ended", "session-summary"]


def test_empty_answer_is_rejected(client):
    sid = start(client)["session_id"]
    response = client.post(f"/api/sessions/{sid}/answer", json={"question_id": "intro-1", "answer": "   "})
    assert response.status_code == 400


def test_unknown_session_is_404(client):
    assert client.get("/api/sessions/session-missing").status_code == 404
    assert client.get("/api/sessions/session-missing/messages").status_code == 404
    assert client.get("/api/sessions/session-missing/stats").status_code == 404
    assert client.post("/api/sessions/session-missing/end").status_code == 404
    assert client.post("/api/sessions/session-missing/audio", json={"text": "hi"}).status_code == 404
    response = client.post("/api/sessions/session-missing/answer", json={"question_id": "intro-1", "answer": "Hi"})
    assert response.status_code == 404
    assert client.delete("/api/sessions/session-missing").status_code == 404


def test_list_and_delete_sessions(client):
    sid = start(client)["session_id"]
    listed = client.get("/api/sessions").json()["items"]
    assert sid in [i["session_id"] for i in listed]

    assert client.delete(f"/api/sessions/{sid}").json()["deleted"] is True
    assert client.get(f"/api/sessions/{sid}").status_code == 404


def test_agents_endpoints(client):
    agents = client.get("/api/agents").json()["agents"]
    assert {a["id"] for a in agents} == {"frontend-agent", "interviewer-agent", "analyzer-agent"}

    health = client.get("/api/agents/analyzer-agent/health")
    assert health.status_code == 200
    assert "total_analyses" in health.json()
    assert client.get("/api/agents/master-agent/health").json()["status"] == "healthy"
    assert client.get("/api/agents/unknown/health").status_code == 404


def test_questions_endpoints(client):
    questions = client.get("/api/questions").json()
    assert len(questions) >= 8
    assert {"id", "category", "difficulty", "question", "context", "expected_elements"} <= set(questions[0])

    created = client.post("/api/questions", json={"category": "technical", "difficulty": "hard", "question": "Design a cache."})
    assert created.status_code == 200
    assert created.json()["id"].startswith("custom-")

    bad = client.post("/api/questions", json={"category": "technical", "difficulty": "extreme", "question": "Why?"})
    assert bad.status_code == 422


def test_configuration_endpoints(client):
    llm = client.post("/api/config/llm", json={"temperature": 0.4})
    assert llm.status_code == 200
    assert llm.json()["config"]["temperature"] == 0.4

    tts = client.post("/api/config/tts", json={"stability": 0.6})
    assert tts.status_code == 200
    assert tts.json()["config"]["stability"] == 0.6

    criteria = client.post("/api/analysis/criteria", json={"criteria": ["Mentions metrics", "  "]})
    assert criteria.json()["criteria"] == ["Mentions metrics"]
    client.post("/api/analysis/criteria", json={"criteria": []})


def test_analyze_answer(client):
    response = client.post("/api/analyze-answer", json={"question": "Why us?", "answer": "Your mission.", "category": "behavioral"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["analysis"]["score"] == 7.5
    assert body["analysis"]["improvements"] == ["Quantify results"]
    assert body["analysis"]["category"] == "behavioral"


def test_analyze_answer_requires_question_and_answer(client):
    assert client.post("/api/analyze-answer", json={"question": "Why us?"}).status_code == 422


def test_analyze_answer_failure_is_500(client, monkeypatch):
    async def unavailable(system_prompt, user_prompt, *, max_tokens=None):
        raise LLMUnavailableError("LLM provider 'groq' is not configured")

    monkeypatch.setattr(llm_service, "complete", unavailable)
    response = client.post("/api/analyze-answer", json={"question": "Why us?", "answer": "Your mission."})
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "LLM provider 'groq' is not configured"}


def test_api_key_is_enforced_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "api_key", "secret")
    assert client.get("/api/sessions").status_code == 401
    assert client.get("/api/sessions", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.get("/api/sessions", headers={"Authorization": "Bearer secret"}).status_code == 200
    assert client.get("/api/sessions", headers={"X-API-Key": "secret"}).status_code == 200
    assert client.get("/health").status_code == 200


def test_cors_preflight(client):
    headers = {
        "Origin": FRONTEND_ORIGIN,
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "Content-Type,Authorization",
    }
    response = client.options("/api/sessions/start", headers=headers)
    assert response.status_code == 200
    assert response.headers.get("access-control-allow-origin") == FRONTEND_ORIGIN


def test_cors_actual_request(client):
    response = client.get("/health", headers={"Origin": FRONTEND_ORIGIN})
    assert response.headers.get("access-control-allow-origin") == FRONTEND_ORIGIN


def test_analyze_answer_blank_input_is_400(client):
    assert client.post("/api/analyze-answer", json={"question": "   ", "answer": "Your mission."}).status_code == 400
    assert client.post("/api/analyze-answer", json={"question": "Why us?", "answer": "\n\t "}).status_code == 400


def test_analyze_answer_coerces_odd_model_fields(client, monkeypatch):
    async def odd_reply(system_prompt, user_prompt, *, max_tokens=None):
        return '{"score": 8, "strengths": ["Clear"], "weaknesses": [], "improvements": [], "category": 3, "overall_feedback": {"x": 1}}'

    monkeypatch.setattr(llm_service, "complete", odd_reply)
    response = client.post("/api/analyze-answer", json={"question": "Why us?", "answer": "Your mission.", "category": "behavioral"})
    assert response.status_code == 200
    analysis = response.json()["analysis"]
    assert analysis["category"] == "behavioral"
    assert analysis["overall_feedback"] == "Good foundation but could be more detailed and structured."
    assert analysis["score"] == 8
