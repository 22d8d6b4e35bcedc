"""End-to-end tests: raw events through ingestion and the engine."""

import pytest

from turngraph.engine import TurnEngine
from turngraph.graph import queries
from turngraph.ingestion import IngestionProcessor
from turngraph.pipeline import Pipeline

from .test_engine import route


def anthropic(payload, n):
    return {
        "event_id": f"evt-{n}",
        "ingest_timestamp": "2024-01-01T00:00:00Z",
        "provider": "anthropic",
        "payload": payload,
        "headers": {"x-session-id": "sess-1"},
    }


STREAM = [
    {"type": "message_start", "message": {"usage": {"input_tokens": 12}}},
    {"type": "content_block_start", "index": 0, "content_block": {"type": "thinking"}},
    {"type": "content_block_delta", "index": 0, "delta": {"type": "thinking_delta", "thinking": "Read it"}},
    {
        "type": "content_block_start",
        "index": 1,
        "content_block": {"type": "tool_use", "id": "toolu_1", "name": "Read"},
    },
    {"type": "content_block_delta", "index": 1, "delta": {"type": "input_json_delta", "partial_json": '{"file_path":'}},
    {"type": "content_block_delta", "index": 1, "delta": {"type": "input_json_delta", "partial_json": ' "main.py"}'}},
    {"type": "content_block_delta", "index": 2, "delta": {"type": "text_delta", "text": "Done."}},
    {"type": "message_delta", "delta": {"stop_reason": "tool_use"}, "usage": {"output_tokens": 30}},
    {"type": "message_stop"},
]


@pytest.fixture
def pipeline(graph, clock):
    graph.query.side_effect = route()
    return Pipeline(IngestionProcessor(clock=clock), TurnEngine(graph, clock=clock))


class TestPipeline:
    def test_anthropic_stream_builds_one_turn(self, pipeline, graph):
        stats = pipeline.run(anthropic(p, i) for i, p in enumerate(STREAM))
        turn = pipeline.engine.current_turn("sess-1")

        assert stats.received == len(STREAM)
        assert stats.dropped == 0
        assert stats.actions["turn_finalized"] == 1
        assert turn.is_finalized
        assert (turn.input_tokens, turn.output_tokens) == (12, 30)
        assert turn.assistant_content == "Done."
        assert turn.tool_calls[0].arguments_json == '{"file_path": "main.py"}'
        assert turn.tool_calls[0].file_path == "main.py"
        assert turn.tool_calls[0].triggering_reasoning_ids == [turn.reasoning_blocks[0].id]
        finalize = [c for c in graph.query.call_args_list if c.args[0] == queries.FINALIZE_TURN]
        assert len(finalize) == 1

    def test_malformed_event_dropped(self, pipeline):
        events = [
            {"event_id": "bad", "provider": "anthropic"},
            anthropic({"type": "content_block_delta", "delta": {"type": "text_delta", "text": "x"}}, 1),
        ]
        stats = pipeline.run(events)
        assert stats.dropped == 1
        assert stats.handled == 1

    def test_graph_errors_propagate(self, pipeline, graph):
        graph.query.side_effect = RuntimeError("down")
        with pytest.raises(RuntimeError):
            pipeline.run([anthropic({"type": "content_block_delta", "delta": {"type": "text_delta", "text": "x"}}, 1)])

    def test_flush_applies_buffered_text(self, pipeline):
        event = anthropic(
            {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "end <thi"}}, 1
        )
        pipeline.run([event])
        assert pipeline.engine.current_turn("sess-1").assistant_content == "end <thi"
