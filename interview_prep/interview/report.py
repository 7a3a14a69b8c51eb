"""
Plain-text session report.
"""
import os
import re
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .models import InterviewConfiguration, Turn
from .schemas import ResumeAnalysis, EvaluationResult

EVALUATION_MARKER = "[EVALUATION]"
SECTION_RULE = "-" * 40


def _one_line(text: str) -> str:
    # Each turn must stay on a single report line
    return " ".join((text or "").split())


def _evaluation_block(evaluation: EvaluationResult) -> List[str]:
    lines = [
        f"  {EVALUATION_MARKER} Score: {evaluation.score}/10",
        f"  Feedback: {_one_line(evaluation.feedback)}",
    ]
    for tip in evaluation.improvement_tips:
        lines.append(f"  - {_one_line(tip)}")
    if evaluation.model_answer_outline:
        lines.append(f"  Model answer: {_one_line(evaluation.model_answer_outline)}")
    return lines


def render_session_report(role: str,
                          config: InterviewConfiguration,
                          analysis: Optional[ResumeAnalysis],
                          turns: Sequence[Turn],
                          evaluations: Dict[int, EvaluationResult],
                          generated_at: Optional[datetime] = None) -> str:
    """
    Render the downloadable session report.

    Layout: header, resume analysis, then the transcript with each stored
    evaluation placed right after the turn it scores.
    """
    generated_at = generated_at or datetime.now()

    lines = [
        "INTERVIEW SESSION REPORT",
        SECTION_RULE,
        f"Role: {role}",
        f"Difficulty: {config.difficulty.value}",
        f"Category: {config.category.value}",
        f"Duration: {config.duration.value}",
        f"Style: {config.style.value}",
        f"Date: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "RESUME ANALYSIS",
        SECTION_RULE,
    ]

    if analysis is not None:
        skills = analysis.skillMap.clamped()
        missing = ", ".join(analysis.missingSkills) if analysis.missingSkills else "None"
        lines.extend([
            f"Missing Skills: {missing}",
            f"DSA: {skills.dsa}%",
            f"System Design: {skills.systemDesign}%",
            f"Communication: {skills.communication}%",
        ])
    else:
        lines.append("Not available")

    lines.extend(["", "TRANSCRIPT", SECTION_RULE])
    for idx, turn in enumerate(turns):
        lines.append(f"{turn.role.value.upper()}: {_one_line(turn.text)}")
        if idx in evaluations:
            lines.extend(_evaluation_block(evaluations[idx]))

    return "\n".join(lines) + "\n"


def report_filename(role: str) -> str:
    """File name for the downloaded report, derived from the role."""
    safe_role = re.sub(r"[^A-Za-z0-9._-]+", "_", role.strip()).strip("_") or "Interview"
    return f"Interview_Report_{safe_role}.txt"


def write_report(directory: str, role: str, report_text: str) -> str:
    """Write the report into ``directory`` and return its path."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, report_filename(role))
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(report_text)
    return path
