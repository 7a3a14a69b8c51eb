from datetime import datetime

from interview_prep.interview.models import InterviewConfiguration, Turn, TurnRole
from interview_prep.interview.report import render_session_report, report_filename, write_report
from interview_prep.interview.testing import create_sample_analysis, create_sample_evaluation


TURNS = [
    Turn(TurnRole.INTERVIEWER, "Walk me through your last project."),
    Turn(TurnRole.CANDIDATE, "I built a payments API.\nIt handled 2k rps."),
    Turn(TurnRole.INTERVIEWER, "How did you test it?"),
    Turn(TurnRole.CANDIDATE, "Contract tests and load tests."),
    Turn(TurnRole.INTERVIEWER, "Thanks, next question."),
]


def render(evaluations, analysis=None):
    return render_session_report(
        "Backend Engineer",
        InterviewConfiguration(difficulty="advanced", category="technical", duration="60m", style="startup"),
        analysis if analysis is not None else create_sample_analysis(),
        TURNS,
        evaluations,
        generated_at=datetime(2026, 1, 2, 3, 4, 5),
    )


def test_header_and_analysis_block():
    lines = render({}).splitlines()

    assert lines[0] == "INTERVIEW SESSION REPORT"
    assert "Role: Backend Engineer" in lines
    assert "Difficulty: advanced" in lines
    assert "Style: startup" in lines
    assert "Duration: 60m" in lines
    assert "Date: 2026-01-02 03:04:05" in lines
    assert "Missing Skills: Kubernetes, GraphQL" in lines
    assert "DSA: 72%" in lines
    assert "System Design: 55%" in lines
    assert "Communication: 80%" in lines


def test_skill_percentages_are_clamped():
    analysis = create_sample_analysis(skillMap={"dsa": 250, "systemDesign": -1, "communication": 50})

    lines = render({}, analysis=analysis).splitlines()

    assert "DSA: 100%" in lines
    assert "System Design: 0%" in lines


def test_transcript_lines_and_evaluation_blocks():
    evaluations = {1: create_sample_evaluation(score=4), 3: create_sample_evaluation(score=9)}

    lines = render(evaluations).splitlines()

    transcript = [line for line in lines if line.startswith(("INTERVIEWER:", "CANDIDATE:"))]
    assert len(transcript) == len(TURNS)
    assert "CANDIDATE: I built a payments API. It handled 2k rps." in transcript

    markers = [idx for idx, line in enumerate(lines) if "[EVALUATION]" in line]
    assert len(markers) == 2
    assert lines[markers[0] - 1].startswith("CANDIDATE: I built")
    assert "Score: 4/10" in lines[markers[0]]
    assert lines[markers[1] - 1] == "CANDIDATE: Contract tests and load tests."
    assert "Score: 9/10" in lines[markers[1]]


def test_report_filename_sanitises_role():
    assert report_filename("Senior Frontend Engineer (React)") == "Interview_Report_Senior_Frontend_Engineer_React.txt"
    assert report_filename("   ") == "Interview_Report_Interview.txt"


def test_write_report(tmp_path):
    path = write_report(str(tmp_path / "reports"), "SRE", "body\n")

    assert path.endswith("Interview_Report_SRE.txt")
    with open(path, encoding="utf-8") as fh:
        assert fh.read() == "body\n"
