"""Tests for raw event validation, thinking extraction, redaction and usage holding."""

from unittest.mock import MagicMock

import pytest

from turngraph.errors import ParseError
from turngraph.events import EventType, Provider, RawStreamEvent
from turngraph.ingestion import IngestionProcessor


def raw(provider, payload, *, event_id="evt-1", session="sess-1"):
    return {
        "event_id": event_id,
        "ingest_timestamp": "2024-01-01T00:00:00Z",
        "provider": provider,
        "payload": payload,
        "headers": {"x-session-id": session} if session else None,
    }


def openai_text(text, **kw):
    return raw("openai", {"choices": [{"delta": {"content": text}}]}, **kw)


@pytest.fixture
def processor():
    return IngestionProcessor()


class TestEnvelope:
    def test_invalid_envelope_raises_parse_error(self, processor):
        with pytest.raises(ParseError) as exc:
            processor.process({"event_id": "e1", "provider": "openai"})
        assert exc.value.event_id == "e1"

    def test_unknown_provider_rejected(self, processor):
        with pytest.raises(ParseError):
            processor.process(raw("cohere", {}))

    def test_session_from_header(self, processor):
        [ev] = processor.process(openai_text("hi", session="abc"))
        assert ev.session_id == "abc"
        assert ev.original_event_id == "evt-1"
        assert ev.timestamp == "2024-01-01T00:00:00Z"
        assert ev.provider == Provider.OPENAI

    def test_session_falls_back_to_event_id(self):
        envelope = RawStreamEvent.model_validate(raw("openai", {}, event_id="e9", session=None))
        assert envelope.session_id == "e9"

    def test_payload_error_tagged_with_event_id(self, processor):
        with pytest.raises(ParseError) as exc:
            processor.process(raw("openai", {"usage": {"prompt_tokens": "many"}}, event_id="e7"))
        assert exc.value.event_id == "e7"

    def test_ignored_payload_yields_nothing(self, processor):
        assert processor.process(raw("anthropic", {"type": "ping"})) == []


class TestThinkingAndRedaction:
    def test_thinking_split_out_of_content(self, processor):
        events = processor.process(openai_text("Hello <thinking>plan</thinking> world"))
        assert [(e.event_type(), e.content or e.thought) for e in events] == [
            (EventType.CONTENT, "Hello "),
            (EventType.THOUGHT, "plan"),
            (EventType.CONTENT, " world"),
        ]

    def test_leading_thinking_block_comes_first(self, processor):
        """A chunk that opens with a thinking block yields the thought first."""
        events = processor.process(openai_text("<thinking>plan</thinking>Answer"))
        assert [e.event_type() for e in events] == [EventType.THOUGHT, EventType.CONTENT]
        assert [e.thought or e.content for e in events] == ["plan", "Answer"]

    def test_claude_code_blocks_each_become_events(self, processor):
        """Text and tool_use blocks of one assistant line are both delivered."""
        events = processor.process(
            raw(
                "claude_code",
                {
                    "type": "assistant",
                    "message": {
                        "content": [
                            {"type": "text", "text": "Let me look."},
                            {"type": "tool_use", "id": "t1", "name": "Read", "input": {"file_path": "a.py"}},
                        ]
                    },
                },
            )
        )
        assert [e.event_type() for e in events] == [EventType.CONTENT, EventType.TOOL_CALL]
        assert events[1].tool_call.name == "Read"
        assert all(e.original_event_id == "evt-1" for e in events)

    def test_tag_split_across_events(self, processor):
        first = processor.process(openai_text("ok <think", event_id="a"))
        second = processor.process(openai_text("ing>deep</thinking>", event_id="b"))
        assert [e.content for e in first] == ["ok "]
        assert [e.thought for e in second] == ["deep"]

    def test_extractor_state_is_per_session(self, processor):
        processor.process(openai_text("<thinking>half", session="s1"))
        [ev] = processor.process(openai_text("plain", session="s2"))
        assert ev.content == "plain"

    def test_secrets_redacted(self, processor):
        [ev] = processor.process(openai_text("contact bob@example.com"))
        assert ev.content == "contact [REDACTED:email]"

    def test_end_session_flushes_held_text(self, processor):
        processor.process(openai_text("tail <thin"))
        [ev] = processor.end_session("sess-1")
        assert ev.content == "<thin"
        assert "sess-1" not in processor.active_sessions()

    def test_publish_called_per_event(self):
        publish = MagicMock()
        processor = IngestionProcessor(publish=publish)
        [ev] = processor.process(openai_text("hi"))
        publish.assert_called_once_with("sess-1", ev)


class TestUsageHolding:
    def test_anthropic_input_usage_held_until_output(self, processor):
        """message_start usage is merged into the final message_delta usage."""
        start = processor.process(
            raw("anthropic", {"type": "message_start", "message": {"usage": {"input_tokens": 40}}})
        )
        assert start == []
        [final] = processor.process(
            raw(
                "anthropic",
                {
                    "type": "message_delta",
                    "delta": {"stop_reason": "end_turn"},
                    "usage": {"output_tokens": 7},
                },
            )
        )
        assert final.event_type() == EventType.USAGE
        assert (final.usage.input, final.usage.output) == (40, 7)
        assert final.stop_reason == "end_turn"

    def test_complete_usage_passes_through(self, processor):
        [ev] = processor.process(
            raw("openai", {"usage": {"prompt_tokens": 1, "completion_tokens": 2}})
        )
        assert (ev.usage.input, ev.usage.output) == (1, 2)
