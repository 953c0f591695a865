"""
Shared fixtures: a scripted in-memory session and a clean configuration.
"""

import json
import os

import pytest

from llm_codable.config import reset_settings
from llm_codable.sessions.base import LanguageModelSession, Response


class ScriptedSession(LanguageModelSession):
    """
    Session that replays canned engine output.

    ``responses`` are consumed one per ``respond`` call: dicts and lists are
    serialized to JSON and decoded through ``parse_content`` like real engine
    output, strings are used as raw text, exceptions are raised. ``chunks`` are
    the text pieces replayed by ``stream_response``.
    """

    def __init__(self, responses=None, chunks=None, **kwargs):
        super().__init__(**kwargs)
        self.responses = list(responses or [])
        self.chunks = list(chunks or [])
        self.calls = []

    async def respond(self, prompt, generating, options=None):
        self.calls.append({'prompt': prompt, 'generating': generating, 'options': options})
        if not self.responses:
            raise AssertionError("ScriptedSession ran out of responses")

        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item

        raw_content = item if isinstance(item, str) else json.dumps(item)
        content = self.parse_content(raw_content, generating)
        self.record_turn(prompt, raw_content)
        return Response(content=content, raw_content=raw_content)

    def stream_response(self, prompt, generating, options=None):
        self.calls.append({'prompt': prompt, 'generating': generating, 'options': options})
        return self.snapshots_from_chunks(prompt, self._replay_chunks(), generating)

    async def _replay_chunks(self):
        for chunk in self.chunks:
            yield chunk

    def get_model_info(self):
        return {'model_id': 'scripted', 'backend': 'memory'}


@pytest.fixture
def make_session():
    """Factory for scripted sessions."""
    def factory(responses=None, chunks=None, **kwargs):
        return ScriptedSession(responses=responses, chunks=chunks, **kwargs)
    return factory


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Run every test without LLM_CODABLE_* configuration from the environment."""
    for key in list(os.environ):
        if key.startswith("LLM_CODABLE_") and key != "LLM_CODABLE_TEST_MODEL":
            monkeypatch.delenv(key)
    reset_settings()
    yield
    reset_settings()
