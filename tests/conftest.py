"""
District Reports - test configuration and fixtures
"""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from app.db import Base, SessionLocal, engine
from app import models  # noqa: F401
from main import app


@pytest.fixture(autouse=True)
def _schema():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def llm_reply(monkeypatch):
    """
    Make the completion call answer with fixed text; returns the list of
    (system, user, kwargs) calls made.
    """
    calls = []

    def install(text: str):
        def fake(system, user, **kwargs):
            calls.append((system, user, kwargs))
            return text
        monkeypatch.setattr("app.ai.llm.chat_completion", fake)
        return calls

    return install


@pytest.fixture
def llm_down(monkeypatch):
    import openai

    def boom(system, user, **kwargs):
        raise openai.OpenAIError("upstream timeout")

    monkeypatch.setattr("app.ai.llm.chat_completion", boom)

