"""Tests for interviewer prompts."""

from interview_coach.domain.entities import Message, Sender
from interview_coach.domain.services import prompts


def test_greeting_uses_candidate_name():
    assert prompts.greeting("Backend Developer", "Go", "Ada") == (
        "Hello Ada! I'll be your interviewer today for a Backend Developer position "
        "focusing on Go. Let's begin."
    )


def test_greeting_without_name():
    assert prompts.greeting("QA Engineer", "Cypress").startswith("Hello Candidate!")


def test_first_question_prompt():
    assert prompts.first_question_prompt("Frontend Developer", "React") == (
        "You are a technical interviewer. Start an interview for a Frontend Developer "
        "position on React. Ask the first question."
    )


def test_next_question_prompt_includes_transcript():
    messages = [
        Message(sender=Sender.AI, text="What is a closure?"),
        Message(sender=Sender.USER, text="A function with its scope."),
    ]

    prompt = prompts.next_question_prompt(messages)

    assert "ai: What is a closure?\nuser: A function with its scope." in prompt
    assert prompt.endswith("ask the next single, relevant technical question.")


def test_feedback_prompt_asks_for_markdown_review():
    prompt = prompts.feedback_prompt([Message(sender=Sender.USER, text="Done.")])

    assert prompt.startswith("The interview is over.")
    assert "user: Done." in prompt
    assert "Markdown" in prompt


def test_catalog_has_stacks_for_every_role():
    assert prompts.ROLES_AND_STACKS
    assert all(prompts.ROLES_AND_STACKS.values())
