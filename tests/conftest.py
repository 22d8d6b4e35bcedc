"""Shared fixtures: a MagicMock graph store and a hand-driven clock."""

from unittest.mock import MagicMock

import pytest

from turngraph.clock import FixedTimeProvider
from turngraph.events import ParsedStreamEvent
from turngraph.handlers.base import HandlerContext, TurnState

START_MS = 1_700_000_000_000


@pytest.fixture
def graph():
    """Graph client whose queries succeed and return no rows."""
    client = MagicMock()
    client.query.return_value = []
    return client


@pytest.fixture
def clock():
    return FixedTimeProvider(current_ms=START_MS)


@pytest.fixture
def turn():
    return TurnState(turn_id="turn-1", session_id="sess-1", created_at=START_MS)


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def context(graph, clock, notifications):
    return HandlerContext(
        session_id="sess-1",
        turn_id="turn-1",
        graph_client=graph,
        logger=MagicMock(),
        emit_node_created=notifications.append,
        clock=clock,
    )


def event(**fields) -> ParsedStreamEvent:
    fields.setdefault("session_id", "sess-1")
    return ParsedStreamEvent(**fields)


def queries_issued(graph) -> list[str]:
    return [c.args[0] for c in graph.query.call_args_list]
