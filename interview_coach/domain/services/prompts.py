"""Prompt and fixed-message construction for the interviewer."""

from typing import Optional

from ..entities.interview_session import Message

DEFAULT_CANDIDATE_NAME = "Candidate"

CLOSING_MESSAGE = "Thank you for your time. I'm now generating your feedback..."

ROLES_AND_STACKS: dict[str, list[str]] = {
    "Frontend Developer": ["React", "Angular", "Vue.js", "Svelte"],
    "Backend Developer": ["Node.js (Express)", "Python (Django)", "Java (Spring)", "Go", "Rust"],
    "Full Stack Developer": ["MERN", "MEAN", "MEVN", ".NET Core + React"],
    "Data Scientist": ["Python (Pandas, NumPy)", "R", "SQL", "Machine Learning Concepts"],
    "QA Engineer": ["Selenium", "Cypress", "Playwright", "Manual Testing Concepts"],
    "DevOps Engineer": ["AWS", "Docker & Kubernetes", "Terraform", "CI/CD Pipelines"],
}


def render_transcript(messages: list[Message]) -> str:
    """One ``sender: text`` line per message."""
    return "\n".join(f"{m.sender.value}: {m.text}" for m in messages)


def greeting(role: str, tech_stack: str, candidate_name: Optional[str] = None) -> str:
    name = candidate_name or DEFAULT_CANDIDATE_NAME
    return (
        f"Hello {name}! I'll be your interviewer today for a {role} position "
        f"focusing on {tech_stack}. Let's begin."
    )


def first_question_prompt(role: str, tech_stack: str) -> str:
    return (
        f"You are a technical interviewer. Start an interview for a {role} "
        f"position on {tech_stack}. Ask the first question."
    )


def next_question_prompt(messages: list[Message]) -> str:
    return (
        "This is a technical interview. Here is the transcript so far:\n"
        f"{render_transcript(messages)}\n\n"
        "Based on the candidate's last answer, ask the next single, relevant technical question."
    )


def feedback_prompt(messages: list[Message]) -> str:
    return (
        "The interview is over. Here is the transcript:\n"
        f"{render_transcript(messages)}\n\n"
        "Provide a detailed performance review in Markdown format. Cover technical "
        "knowledge, problem-solving skills, and communication. Include strengths, "
        "weaknesses, and areas for improvement."
    )
