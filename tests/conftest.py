import json

import pytest

from interview_readiness.config import Settings
from interview_readiness.models import Answer, Interview, Question


class FakeCompleter:
    """Stands in for the OpenAI client; replays canned responses in order."""

    def __init__(self, responses=None, error=None):
        self.responses = [r if isinstance(r, str) else json.dumps(r) for r in (responses or [])]
        self.error = error
        self.prompts = []

    def complete(self, prompt, temperature=0.2, max_tokens=500):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if not self.responses:
            return ""
        return self.responses[min(len(self.prompts), len(self.responses)) - 1]


@pytest.fixture
def fake():
    return FakeCompleter


@pytest.fixture
def online():
    return Settings(openai_api_key="sk-test")


@pytest.fixture
def offline():
    return Settings(offline_mode=True)


@pytest.fixture
def tech_q():
    return Question(id="q1", text="How would you optimize a slow database query?", type="technical", weight=2)


@pytest.fixture
def behav_q():
    return Question(id="q2", text="Tell me about a time you resolved a conflict.", type="behavioral", weight=1)


@pytest.fixture
def interview(tech_q, behav_q):
    q3 = Question(id="q3", text="Explain how a hash map handles collisions.", type="technical", weight=2)
    return Interview(
        [tech_q, behav_q, q3],
        [
            Answer("q1", "I would read the execution plan, add an index on the filtered columns and "
                         "rewrite the join so the planner can avoid a full table scan."),
            Answer("q2", "", skipped=True),
            Answer("q3", "Chaining with linked lists or open addressing with probing."),
        ],
        interview_id="int-1",
    )
