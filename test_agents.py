#!/usr/bin/env python3
"""
End-to-end agent flow through the master router, without HTTP.
"""
import asyncio
import random

import pytest

from interview_coach.agents.base import AgentMessage, BaseAgent
from interview_coach.agents.master import MasterAgent
from interview_coach.services.coach import InterviewCoach
from interview_coach.services.question_bank import QuestionBank
from interview_coach.services.session_manager import SessionManager
from interview_coach.services.tts_service import TTSService
from interview_coach.utils.audit import auditor


REPLY = (
    '{"score": 8.5, "strengths": ["Specific examples"], "weaknesses": ["Too long"], '
    '"tips": ["Be concise"], "detailed_feedback": "Solid.", "category_score": 8, '
    '"improvement_areas": ["Brevity"]}'
)

ANSWER = "In my last role I led the migration of our billing service, cutting latency by 40 percent."


class FixedLLM:
    enabled = True

    async def complete(self, system_prompt, user_prompt, *, max_tokens=None):
        return REPLY

    def update_config(self, **changes):
        return changes


async def make_coach(max_questions=None, next_question_delay=0):
    coach = InterviewCoach(
        sessions=SessionManager(),
        question_bank=QuestionBank(),
        llm=FixedLLM(),
        tts=TTSService(),
        rng=random.Random(7),
        next_question_delay=next_question_delay,
        max_questions=max_questions,
        registration_delay=0,
    )
    await coach.startup()
    return coach


def types(messages):
    return [m["type"] for m in messages]


@pytest.mark.anyio
async def test_start_session_asks_first_question():
    coach = await make_coach()
    session = await coach.start_session({"difficulty": "easy", "candidate_profile": {"name": "Ada"}})

    assert session.id.startswith("session-")
    assert session.status == "active"
    messages = coach.drain_messages(session.id)
    assert types(messages) == ["session-started", "new-question"]
    question = messages[1]["content"]
    assert question["question_id"]
    assert question["audio_url"] == ""
    assert coach.drain_messages(session.id) == []


@pytest.mark.anyio
async def test_answer_feedback_and_harder_next_question():
    coach = await make_coach()
    session = await coach.start_session({"difficulty": "easy"})
    first = coach.drain_messages(session.id)[1]["content"]["question_id"]

    await coach.submit_answer(session.id, first, ANSWER)
    messages = coach.drain_messages(session.id)
    assert types(messages) == ["answer-received", "feedback-received", "new-question"]

    feedback = messages[1]["content"]
    assert feedback["question_id"] == first
    assert feedback["analysis"]["score"] == 8.5
    assert feedback["session_stats"]["average_score"] == 8.5
    assert messages[2]["content"]["difficulty"] == "hard"

    progress = coach.get_stats(session.id)["progress"]
    assert progress["total_questions"] == 2
    assert progress["answered_questions"] == 1
    assert progress["average_score"] == 8.5
    assert progress["completion_rate"] == 50.0


@pytest.mark.anyio
async def test_repeated_answer_surfaces_recoverable_error():
    coach = await make_coach()
    session = await coach.start_session({})
    first = coach.drain_messages(session.id)[1]["content"]["question_id"]
    await coach.submit_answer(session.id, first, ANSWER)
    coach.drain_messages(session.id)

    await coach.submit_answer(session.id, first, ANSWER)
    messages = coach.drain_messages(session.id)
    assert types(messages) == ["answer-received", "error"]
    assert messages[1]["content"]["recoverable"] is True


@pytest.mark.anyio
async def test_interview_completes_when_questions_run_out():
    coach = await make_coach(max_questions=1)
    session = await coach.start_session({})
    first = coach.drain_messages(session.id)[1]["content"]["question_id"]

    await coach.submit_answer(session.id, first, ANSWER)
    messages = coach.drain_messages(session.id)
    assert types(messages) == ["answer-received", "feedback-received", "interview-complete"]
    assert messages[-1]["content"]["answered_questions"] == 1
    assert coach.frontend.get_state(session.id).status == "completed"

    with pytest.raises(ValueError):
        await coach.submit_answer(session.id, first, ANSWER)


@pytest.mark.anyio
async def test_end_session_sends_summary():
    coach = await make_coach()
    session = await coach.start_session({})
    first = coach.drain_messages(session.id)[1]["content"]["question_id"]
    await coach.submit_answer(session.id, first, ANSWER)
    coach.drain_messages(session.id)

    stats = await coach.end_session(session.id)
    assert stats["total_questions"] == 1
    messages = coach.drain_messages(session.id)
    assert types(messages) == ["interview-ended", "session-summary"]
    assert len(messages[1]["content"]["analyses"]) == 1
    assert coach.master.get_session(session.id).status == "completed"


@pytest.mark.anyio
async def test_connected_client_receives_messages_directly():
    class Recorder:
        def __init__(self):
            self.received = []

        async def send(self, message):
            self.received.append(message)

    coach = await make_coach()
    session = await coach.start_session({})
    client = Recorder()
    flushed = await coach.frontend.connect(session.id, client)
    assert flushed == 2

    await coach.request_audio(session.id, "Read this aloud")
    assert types(client.received)[-1] == "audio-ready"
    assert client.received[-1]["content"]["original_text"] == "Read this aloud"
    assert coach.drain_messages(session.id) == []


@pytest.mark.anyio
async def test_delete_session_clears_agent_state():
    coach = await make_coach()
    session = await coach.start_session({})
    assert await coach.delete_session(session.id) is True
    assert session.id not in coach.interviewer.sessions
    assert coach.frontend.get_state(session.id) is None
    with pytest.raises(KeyError):
        coach.get_stats(session.id)
    assert await coach.delete_session(session.id) is False


@pytest.mark.anyio
async def test_routing_to_unknown_session_is_retried_then_dropped():
    master = MasterAgent(SessionManager(), retry_delay=0, max_retries=1, registration_delay=0)
    errors = []
    master.on("routing-error", lambda message, error: errors.append(error))

    message = AgentMessage(id="m-1", sender="frontend-agent", to="interviewer-agent", type="answer", content={}, session_id="nope")
    await master.route_message(message)
    assert master.health_check()["queue_length"] == 1

    for _ in range(5):
        await asyncio.sleep(0.01)
    assert len(errors) == 2
    assert all(isinstance(e, KeyError) for e in errors)
    assert master.health_check()["queue_length"] == 0


@pytest.mark.anyio
async def test_unknown_recipient_is_logged_and_recorded():
    master = MasterAgent(SessionManager(), registration_delay=0)
    session = await master.sessions.create_session({})
    routed = []
    master.on("message-routed", routed.append)

    message = AgentMessage(id="m-2", sender="analyzer-agent", to="nobody", type="feedback", content={}, session_id=session.id)
    await master.route_message(message)
    assert routed == [message]
    assert session.message_history[-1]["to"] == "nobody"
    assert session.message_history[-1]["from"] == "analyzer-agent"


@pytest.mark.anyio
async def test_failing_handler_does_not_stop_other_listeners():
    agent = BaseAgent()
    calls = []

    def broken(value):
        raise RuntimeError("handler failed")

    agent.on("ping", broken)
    agent.on("ping", calls.append)
    await agent.emit("ping", 1)
    assert calls == [1]

    agent.off("ping", broken)
    assert agent.listeners("ping") == [calls.append]


@pytest.mark.anyio
async def test_health_checks_and_registry():
    coach = await make_coach()
    health = coach.health()
    assert health["agents"]["master"]["agents_count"] == 3
    assert health["agents"]["analyzer"]["llm_configured"] is True
    assert {d.id for d in coach.get_agents()} == {"frontend-agent", "interviewer-agent", "analyzer-agent"}
    with pytest.raises(KeyError):
        coach.agent_health("unknown-agent")


@pytest.mark.anyio
async def test_interview_events_are_audited(tmp_path):
    path = tmp_path / "audit.jsonl"
    auditor.configure(str(path))
    try:
        coach = await make_coach()
        session = await coach.start_session({"difficulty": "medium"})
        first = coach.drain_messages(session.id)[1]["content"]["question_id"]
        await coach.submit_answer(session.id, first, ANSWER)
        await coach.end_session(session.id)
        records = auditor.read(session.id)
    finally:
        auditor.configure(None)

    assert [r["type"] for r in records] == ["session_start", "answer", "analysis", "session_end"]
    assert records[2]["analysis"]["score"] == 8.5


async def settle(seconds=0.15):
    for _ in range(int(seconds / 0.01)):
        await asyncio.sleep(0.01)


@pytest.mark.anyio
async def test_next_question_waits_for_the_delay():
    coach = await make_coach(next_question_delay=0.05)
    session = await coach.start_session({})
    first = coach.drain_messages(session.id)[1]["content"]["question_id"]

    await coach.submit_answer(session.id, first, ANSWER)
    assert types(coach.drain_messages(session.id)) == ["answer-received", "feedback-received"]
    assert coach.frontend.health_check()["status"] == "healthy"

    await settle()
    messages = coach.drain_messages(session.id)
    assert types(messages) == ["new-question"]
    assert messages[0]["content"]["question_id"] != first
    await coach.close()


@pytest.mark.anyio
async def test_no_next_question_after_interview_ends():
    coach = await make_coach(next_question_delay=0.05)
    requested = []
    coach.master.on(
        "message-routed",
        lambda m: requested.append(m) if m.type == "command" and m.content.get("command") == "next-question" else None,
    )
    session = await coach.start_session({})
    first = coach.drain_messages(session.id)[1]["content"]["question_id"]

    await coach.submit_answer(session.id, first, ANSWER)
    await coach.end_session(session.id)
    await settle()

    assert requested == []
    assert "new-question" not in types(coach.drain_messages(session.id))
    assert len(coach.interviewer.sessions[session.id].asked) == 1
    await coach.close()


@pytest.mark.anyio
async def test_disconnected_client_messages_are_buffered():
    class Recorder:
        def __init__(self):
            self.received = []

        async def send(self, message):
            self.received.append(message)

    coach = await make_coach()
    session = await coach.start_session({})
    client = Recorder()
    await coach.frontend.connect(session.id, client)
    coach.frontend.disconnect(session.id)

    await coach.request_audio(session.id, "Read this aloud")
    assert client.received and types(client.received) == ["session-started", "new-question"]
    assert types(coach.drain_messages(session.id)) == ["audio-ready"]


@pytest.mark.anyio
async def test_client_errors_carry_message_error_and_recoverable():
    coach = await make_coach()
    await coach.frontend.handle_frontend_message("submit-answer", "session-unknown", {"answer": "Hi"})
    [error] = coach.frontend.drain("session-unknown")
    assert error["type"] == "error"
    assert set(error["content"]) == {"message", "error", "recoverable"}
    assert error["content"]["error"] == "ValueError"
    assert error["content"]["recoverable"] is True
