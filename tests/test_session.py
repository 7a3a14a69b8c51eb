import asyncio
from unittest.mock import patch

import pytest
import requests

from interview_prep.config import Config
from interview_prep.interview.errors import GatewayFailure, ParseFailure, SessionValidationError
from interview_prep.interview.events import EventType
from interview_prep.interview.session import InterviewSession
from interview_prep.interview.models import (
    InterviewConfiguration, ResumeDocument, SessionView, Turn, TurnRole,
)
from interview_prep.interview.testing import create_sample_evaluation


def gateway_failure(operation="analyze_resume"):
    return GatewayFailure(operation, requests.ConnectionError("offline"))


def test_start_produces_analysis_and_one_interviewer_turn(make_session, analysis):
    session, gateway = make_session(analyses=[analysis], replies=["Tell me about yourself."])

    assert asyncio.run(session.start()) is True

    assert session.state.view == SessionView.CHAT_ACTIVE
    assert session.state.analysis == analysis
    assert session.state.turns == [Turn(TurnRole.INTERVIEWER, "Tell me about yourself.")]
    assert session.state.busy is False
    assert session.state.error is None
    assert [c["operation"] for c in gateway.calls] == ["analyze_resume", "next_interviewer_message"]
    assert gateway.calls[1]["history"] == []


@pytest.mark.parametrize("role,resume", [("", ""), ("   ", "resume"), ("SRE", "  ")])
def test_start_without_role_or_resume_makes_no_calls(make_session, role, resume):
    session, gateway = make_session(role=role, resume=resume)

    with pytest.raises(SessionValidationError):
        asyncio.run(session.start())

    assert gateway.call_count == 0
    assert session.state.view == SessionView.INTAKE
    assert session.state.error


def test_start_with_document_only(make_session, analysis):
    session, gateway = make_session(resume="", analyses=[analysis], replies=["Hello"])
    document = ResumeDocument(mime_type="application/pdf", data=b"%PDF", filename="cv.pdf")
    session.update_intake(resume_document=document)

    assert asyncio.run(session.start()) is True

    assert gateway.calls[0]["resume_input"] is document
    summary = gateway.calls[1]["resume_summary"]
    assert "cv.pdf" in summary
    assert "Kubernetes" in summary


def test_resume_summary_is_truncated(make_session, analysis):
    session, gateway = make_session(resume="r" * 3000, analyses=[analysis], replies=["Hello"])

    asyncio.run(session.start())

    assert gateway.calls[1]["resume_summary"] == "r" * 1000


def test_gateway_failure_during_start_stays_in_intake(make_session):
    session, gateway = make_session(analyses=[gateway_failure()])
    events = []
    session.event_bus.subscribe(EventType.ERROR_OCCURRED, events.append)

    assert asyncio.run(session.start()) is False

    assert session.state.view == SessionView.INTAKE
    assert session.state.error
    assert session.state.busy is False
    assert session.state.turns == []
    assert events[0].data["error_type"] == "GatewayFailure"


def test_opening_failure_after_analysis_returns_to_intake(make_session, analysis):
    session, _ = make_session(analyses=[analysis], replies=[gateway_failure("next_interviewer_message")])

    assert asyncio.run(session.start()) is False

    assert session.state.view == SessionView.INTAKE
    assert session.state.analysis is None
    assert session.export() is None


def test_parse_failure_during_start_is_reported_like_gateway_failure(make_session):
    session, _ = make_session(analyses=[ParseFailure("bad json")])

    assert asyncio.run(session.start()) is False

    assert session.state.view == SessionView.INTAKE
    assert session.state.error
    assert session.metrics.get_metrics()["errors_occurred"] == 1


def test_send_appends_candidate_and_reply_in_order(make_session, analysis):
    session, gateway = make_session(analyses=[analysis], replies=["Q1", "Q2", "Q3"])

    async def run():
        await session.start()
        assert await session.send("Answer one") is True
        assert await session.send("Answer two") is True

    asyncio.run(run())

    assert [(t.role, t.text) for t in session.state.turns] == [
        (TurnRole.INTERVIEWER, "Q1"),
        (TurnRole.CANDIDATE, "Answer one"),
        (TurnRole.INTERVIEWER, "Q2"),
        (TurnRole.CANDIDATE, "Answer two"),
        (TurnRole.INTERVIEWER, "Q3"),
    ]
    # Each request sees the transcript including the reply to the previous one
    assert [t.text for t in gateway.calls[2]["history"]] == ["Q1", "Answer one"]
    assert [t.text for t in gateway.calls[3]["history"]] == ["Q1", "Answer one", "Q2", "Answer two"]


def test_send_is_ignored_outside_chat_or_when_empty(make_session, analysis):
    session, gateway = make_session(analyses=[analysis], replies=["Q1"])

    async def run():
        assert await session.send("too early") is False
        await session.start()
        assert await session.send("   ") is False

    asyncio.run(run())

    assert len(session.state.turns) == 1
    assert gateway.call_count == 2


def test_send_failure_keeps_session_usable(make_session, analysis):
    session, _ = make_session(
        analyses=[analysis],
        replies=["Q1", gateway_failure("next_interviewer_message"), "Q2"],
    )

    async def run():
        await session.start()
        assert await session.send("first") is False
        assert session.state.error
        assert session.state.busy is False
        assert await session.send("second") is True

    asyncio.run(run())

    assert session.state.view == SessionView.CHAT_ACTIVE
    assert session.state.error is None
    assert [t.text for t in session.state.turns] == ["Q1", "first", "second", "Q2"]


def test_send_while_busy_is_ignored(make_session, analysis):
    session, gateway = make_session(analyses=[analysis], replies=["Q1", "Q2"])

    async def run():
        await session.start()
        gateway.hold = True
        gateway.release.clear()
        first = asyncio.create_task(session.send("answer"))
        await asyncio.to_thread(gateway.entered.wait, 5)

        assert session.state.busy is True
        assert await session.send("impatient second message") is False
        assert await session.evaluate() is None

        gateway.release.set()
        assert await first is True

    asyncio.run(run())

    assert [t.text for t in session.state.turns] == ["Q1", "answer", "Q2"]
    assert session.state.busy is False


def test_evaluate_without_candidate_turn_is_a_no_op(make_session, analysis):
    session, gateway = make_session(analyses=[analysis], replies=["Q1"])

    async def run():
        await session.start()
        return await session.evaluate()

    assert asyncio.run(run()) is None
    assert session.state.evaluations == {}
    assert gateway.call_count == 2


def test_evaluate_stores_result_after_the_question(make_session, analysis):
    evaluation = create_sample_evaluation(score=6)
    session, gateway = make_session(
        analyses=[analysis], replies=["What is a hash map?", "Next one"], evaluations=[evaluation],
    )
    events = []
    session.event_bus.subscribe(EventType.EVALUATION_STORED, events.append)

    async def run():
        await session.start()
        await session.send("A key-value store with O(1) lookups.")
        return await session.evaluate()

    result = asyncio.run(run())

    assert result == evaluation
    assert session.state.evaluations == {1: evaluation}
    assert session.state.turns[1].role == TurnRole.CANDIDATE
    assert session.state.last_evaluation == evaluation
    assert session.state.view == SessionView.CHAT_ACTIVE
    assert gateway.calls[-1]["question"] == "What is a hash map?"
    assert gateway.calls[-1]["answer"] == "A key-value store with O(1) lookups."
    assert events[0].data == {"turn_idx": 1, "score": 6}


def test_evaluate_pairs_answer_with_the_question_before_it(make_session, analysis):
    session, gateway = make_session(
        analyses=[analysis],
        replies=["Q1", "Q2", "Q3"],
        evaluations=[create_sample_evaluation(score=3), create_sample_evaluation(score=9)],
    )

    async def run():
        await session.start()
        await session.send("A1")
        await session.evaluate()
        await session.send("A2")
        await session.evaluate()

    asyncio.run(run())

    assert sorted(session.state.evaluations) == [1, 3]
    assert session.state.evaluations[3].score == 9
    assert gateway.calls[-1]["question"] == "Q2"
    for key in session.state.evaluations:
        assert session.state.turns[key].role == TurnRole.CANDIDATE


def test_evaluate_failure_stores_nothing(make_session, analysis):
    session, _ = make_session(
        analyses=[analysis], replies=["Q1", "Q2"], evaluations=[ParseFailure("truncated")],
    )

    async def run():
        await session.start()
        await session.send("A1")
        return await session.evaluate()

    assert asyncio.run(run()) is None
    assert session.state.evaluations == {}
    assert session.state.error
    assert session.state.view == SessionView.CHAT_ACTIVE
    assert session.state.busy is False


def test_export_is_none_without_transcript(make_session):
    session, _ = make_session()

    assert session.export() is None


def test_export_interleaves_evaluations(make_session, analysis):
    session, _ = make_session(
        analyses=[analysis], replies=["Q1", "Q2"], evaluations=[create_sample_evaluation()],
    )

    async def run():
        await session.start()
        await session.send("A1")
        await session.evaluate()

    asyncio.run(run())
    lines = session.export().splitlines()

    transcript = [line for line in lines if line.startswith(("INTERVIEWER:", "CANDIDATE:"))]
    assert transcript == ["INTERVIEWER: Q1", "CANDIDATE: A1", "INTERVIEWER: Q2"]
    assert sum("[EVALUATION]" in line for line in lines) == 1
    answer_line = lines.index("CANDIDATE: A1")
    assert "[EVALUATION]" in lines[answer_line + 1]


def test_export_to_writes_role_named_file(make_session, analysis, tmp_path):
    session, _ = make_session(role="Backend Engineer", analyses=[analysis], replies=["Q1"])
    asyncio.run(session.start())

    path = session.export_to(str(tmp_path))

    assert path == str(tmp_path / "Interview_Report_Backend_Engineer.txt")
    assert "INTERVIEWER: Q1" in (tmp_path / "Interview_Report_Backend_Engineer.txt").read_text()


def test_reset_discards_session_but_keeps_intake(make_session, analysis):
    session, _ = make_session(
        analyses=[analysis], replies=["Q1", "Q2"], evaluations=[create_sample_evaluation()],
    )

    async def run():
        await session.start()
        await session.send("A1")
        await session.evaluate()

    asyncio.run(run())
    session.reset()

    assert session.state.view == SessionView.INTAKE
    assert session.state.turns == []
    assert session.state.evaluations == {}
    assert session.state.analysis is None
    assert session.intake.role == "Backend Engineer"


def test_reset_then_start_twice_gives_independent_sessions(make_session, analysis):
    session, gateway = make_session(
        analyses=[analysis, analysis], replies=["First opening", "Second opening"],
    )

    async def run():
        await session.start()
        session.reset()
        assert session.state.turns == []
        assert session.state.evaluations == {}

        gateway.hold = True
        gateway.release.clear()
        pending = asyncio.create_task(session.start())
        await asyncio.to_thread(gateway.entered.wait, 5)
        assert session.state.view == SessionView.ANALYZING
        assert session.state.turns == []
        assert session.state.evaluations == {}
        gateway.release.set()
        assert await pending is True

    asyncio.run(run())

    assert [t.text for t in session.state.turns] == ["Second opening"]


def test_reply_to_abandoned_request_is_dropped(make_session, analysis):
    session, gateway = make_session(analyses=[analysis], replies=["Q1", "late reply"])

    async def run():
        await session.start()
        gateway.hold = True
        gateway.release.clear()
        pending = asyncio.create_task(session.send("answer"))
        await asyncio.to_thread(gateway.entered.wait, 5)
        session.reset()
        assert session.state.busy is False
        gateway.release.set()
        return await pending

    assert asyncio.run(run()) is False
    assert session.state.turns == []
    assert session.state.view == SessionView.INTAKE


def test_configuration_is_frozen_during_chat(make_session, analysis):
    session, _ = make_session(analyses=[analysis], replies=["Q1"])
    session.update_intake(configuration=InterviewConfiguration(difficulty="beginner"))
    asyncio.run(session.start())

    with pytest.raises(SessionValidationError):
        session.update_intake(configuration=InterviewConfiguration(difficulty="advanced"))

    session.reset()
    session.update_intake(configuration=InterviewConfiguration(difficulty="advanced"))
    assert session.intake.configuration.difficulty.value == "advanced"


def test_events_track_the_session(make_session, analysis):
    session, _ = make_session(analyses=[analysis], replies=["Q1", "Q2"])
    seen = []
    session.event_bus.subscribe_all(lambda event: seen.append(event.event_type))

    async def run():
        await session.start()
        await session.send("A1")

    asyncio.run(run())
    session.reset()

    assert seen == [
        EventType.SESSION_STARTED,
        EventType.TURN_APPENDED,
        EventType.TURN_APPENDED,
        EventType.TURN_APPENDED,
        EventType.SESSION_RESET,
    ]
    assert session.metrics.get_metrics()["turns_appended"] == 3


def test_from_config_wires_the_gemini_client(tmp_path):
    config = Config(api_key="k", model_name="gemini-test", llm_timeout=12.0,
                    report_dir=str(tmp_path), log_file=str(tmp_path / "prep.log"))

    with patch("interview_prep.interview.session.setup_logging") as setup:
        session = InterviewSession.from_config(config)

    setup.assert_called_once_with(str(tmp_path / "prep.log"), "INFO")
    client = session.gateway.llm_client
    assert client.endpoint.endswith("/models/gemini-test:generateContent")
    assert client.timeout == 12.0
    assert session.report_dir == str(tmp_path)


def test_start_is_ignored_once_the_chat_is_running(make_session, analysis):
    session, gateway = make_session(
        analyses=[analysis, gateway_failure()], replies=["Q1", "Q2"],
    )

    async def run():
        await session.start()
        await session.send("A1")
        return await session.start()

    assert asyncio.run(run()) is False

    assert gateway.call_count == 3
    assert session.state.view == SessionView.CHAT_ACTIVE
    assert session.state.analysis == analysis
    assert [t.text for t in session.state.turns] == ["Q1", "A1", "Q2"]
    assert session.state.error is None


def test_abandoned_request_blocks_new_requests_until_it_returns(make_session, analysis):
    session, gateway = make_session(analyses=[analysis, analysis], replies=["Fresh opening"])

    async def run():
        gateway.hold = True
        gateway.release.clear()
        abandoned = asyncio.create_task(session.start())
        await asyncio.to_thread(gateway.entered.wait, 5)

        session.reset()
        assert session.state.view == SessionView.INTAKE
        # The abandoned analysis call is still running
        assert await session.start() is False
        assert gateway.call_count == 1

        gateway.hold = False
        gateway.release.set()
        assert await abandoned is False
        return await session.start()

    assert asyncio.run(run()) is True

    assert gateway.call_count == 3
    assert [t.text for t in session.state.turns] == ["Fresh opening"]
