"""Scripted implementation of ResponseGenerator for testing and development."""

import logging
import random

logger = logging.getLogger(__name__)

_QUESTIONS = [
    "Can you walk me through a recent project you're proud of and your role in it?",
    "How would you design a service that has to handle a sudden 10x spike in traffic?",
    "What is the difference between a process and a thread?",
    "How do you approach debugging a problem you can't reproduce locally?",
    "Explain how you would test a function that depends on the current time.",
    "What trade-offs do you consider when choosing between SQL and NoSQL storage?",
    "How do you keep a long-running codebase maintainable as the team grows?",
]

_FEEDBACK = """## Strengths
- Answered every question and stayed on topic.

## Weaknesses
- Some answers could use concrete examples.

## Areas for Improvement
- Practice structuring answers: context, approach, result.
"""


class SimpleInterviewer:
    """
    A stub ``ResponseGenerator`` that needs no network access.

    It answers feedback prompts with a fixed review and every other prompt
    with a question from a small bank, without repeating until the bank is
    exhausted.
    """

    def __init__(self, seed=None):
        self._random = random.Random(seed)
        self._remaining: list[str] = []

    async def generate(self, prompt: str) -> str:
        if prompt.startswith("The interview is over."):
            logger.info("SimpleInterviewer returning canned feedback")
            return _FEEDBACK

        if not self._remaining:
            self._remaining = list(_QUESTIONS)
            self._random.shuffle(self._remaining)

        question = self._remaining.pop()
        logger.info(f"SimpleInterviewer asking: {question}")
        return question
