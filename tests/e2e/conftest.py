"""Shared fixtures for end-to-end tests against the real server process."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from realtor.config import default_server_command
from realtor.llm.models import Candidate, Message, Part


@pytest.fixture
def server_command() -> str:
    """Command that starts the bundled server with the test interpreter."""
    return default_server_command()


@pytest.fixture
def scripted_completion() -> MagicMock:
    """A completion service whose replies are queued with ``queue(*parts)``."""
    replies: list[list[Candidate]] = []

    async def _complete(_conversation: object, _tools: object) -> list[Candidate]:
        return replies.pop(0)

    service = MagicMock()
    service.complete = AsyncMock(side_effect=_complete)

    def _queue(*parts: Part) -> None:
        replies.append([Candidate(content=Message(role="model", parts=list(parts)))])

    service.queue = _queue
    return service
