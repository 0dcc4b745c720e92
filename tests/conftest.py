"""
Shared fixtures: a throwaway SQLite database per test, default settings and a
scripted focus classifier
"""

from typing import List, Optional

import pytest

from agents.focus_session_agent import FocusSessionAgent
from core.db import DatabaseManager
from core.events import clear_focus_listeners
from core.settings import FocusSettings
from processing.activity_aggregator import ActivityAggregator


class ScriptedClassifier:
    """Returns whatever the test sets and records every question asked"""

    def __init__(self, topic: Optional[str] = "Rust", drift: bool = False):
        self.topic = topic
        self.drift = drift
        self.summary: Optional[str] = None
        self.drift_calls: List[tuple] = []
        self.topic_calls: List = []
        self.summarize_calls: List[List[str]] = []

    @property
    def model_name(self) -> str:
        return "scripted-model"

    async def detect_drift(self, previous_item, previous_keywords, bundle) -> bool:
        self.drift_calls.append((previous_item, list(previous_keywords)))
        return self.drift

    async def detect_topic(self, bundle) -> Optional[str]:
        self.topic_calls.append(bundle)
        return self.topic

    async def summarize(self, keywords) -> str:
        self.summarize_calls.append(list(keywords))
        return self.summary or keywords[0]


@pytest.fixture(autouse=True)
def reset_focus_listeners():
    clear_focus_listeners()
    yield
    clear_focus_listeners()


@pytest.fixture
def db(tmp_path):
    return DatabaseManager(tmp_path / "focus.db")


@pytest.fixture
def settings():
    return FocusSettings()


@pytest.fixture
def classifier():
    return ScriptedClassifier()


@pytest.fixture
def agent(db, classifier, settings):
    return FocusSessionAgent(
        store=db.focus_sessions,
        aggregator=ActivityAggregator(db.attention, settings=settings),
        classifier=classifier,
        settings=settings,
    )
