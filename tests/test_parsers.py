"""Tests for provider payload normalization."""

import pytest

from turngraph.errors import ParseError
from turngraph.events import EventType, Provider
from turngraph.parsers import PARSERS, parse, parse_all


class TestDispatch:
    def test_every_provider_has_a_parser(self):
        """The dispatch table covers all providers."""
        assert set(PARSERS) == set(Provider)

    def test_accepts_string_provider(self):
        """Provider tags may be given as plain strings."""
        delta = parse("openai", {"choices": [{"delta": {"content": "hi"}}]})
        assert delta is not None and delta.content == "hi"

    def test_unknown_provider(self):
        """Unknown providers raise ParseError."""
        with pytest.raises(ParseError):
            parse("mistral", {})

    def test_parse_all_wraps_single_delta_providers(self):
        assert [d.content for d in parse_all("openai", {"choices": [{"delta": {"content": "hi"}}]})] == ["hi"]
        assert parse_all("anthropic", {"type": "ping"}) == []

    @pytest.mark.parametrize("provider", list(Provider))
    def test_non_object_payload(self, provider):
        """A payload that is not an object is structurally invalid."""
        with pytest.raises(ParseError) as exc:
            parse(provider, ["not", "an", "object"])
        assert exc.value.provider == provider.value


class TestOpenAI:
    def test_content(self):
        """choices[0].delta.content becomes assistant content."""
        delta = parse(Provider.OPENAI, {"choices": [{"delta": {"content": "Hello"}}]})
        assert delta.type == EventType.CONTENT
        assert delta.role == "assistant"
        assert delta.content == "Hello"

    def test_tool_call_fragment(self):
        """Tool-call fragments keep index, id, name and raw argument text."""
        payload = {
            "choices": [
                {
                    "delta": {
                        "tool_calls": [
                            {
                                "index": 0,
                                "id": "call_1",
                                "function": {"name": "Read", "arguments": '{"file_'},
                            }
                        ]
                    }
                }
            ]
        }
        delta = parse(Provider.OPENAI, payload)
        assert delta.type == EventType.TOOL_CALL
        assert delta.tool_call.index == 0
        assert delta.tool_call.id == "call_1"
        assert delta.tool_call.name == "Read"
        assert delta.tool_call.arguments_delta == '{"file_'

    def test_usage_first(self):
        """A usage block wins over anything else in the chunk."""
        payload = {"choices": [], "usage": {"prompt_tokens": 12, "completion_tokens": 34}}
        delta = parse(Provider.OPENAI, payload)
        assert delta.type == EventType.USAGE
        assert (delta.usage.input, delta.usage.output) == (12, 34)

    def test_finish_reason(self):
        """finish_reason alone becomes a stop delta."""
        delta = parse(Provider.OPENAI, {"choices": [{"delta": {}, "finish_reason": "stop"}]})
        assert delta.type == EventType.STOP
        assert delta.stop_reason == "stop"

    def test_nothing_actionable(self):
        """An empty delta yields None."""
        assert parse(Provider.OPENAI, {"choices": [{"delta": {}}]}) is None

    def test_negative_tokens_rejected(self):
        """Token counts must be non-negative integers."""
        with pytest.raises(ParseError):
            parse(Provider.OPENAI, {"usage": {"prompt_tokens": -1}})


class TestAnthropic:
    def test_message_start_input_only(self):
        """message_start carries only the input count."""
        delta = parse(
            Provider.ANTHROPIC,
            {"type": "message_start", "message": {"usage": {"input_tokens": 25}}},
        )
        assert delta.type == EventType.USAGE
        assert delta.usage.input == 25
        assert delta.usage.output is None
        assert not delta.usage.is_complete

    def test_text_delta(self):
        delta = parse(
            Provider.ANTHROPIC,
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Hi"}},
        )
        assert delta.type == EventType.CONTENT
        assert delta.content == "Hi"

    def test_thinking_delta(self):
        delta = parse(
            Provider.ANTHROPIC,
            {
                "type": "content_block_delta",
                "index": 0,
                "delta": {"type": "thinking_delta", "thinking": "hmm"},
            },
        )
        assert delta.type == EventType.THOUGHT
        assert delta.thought == "hmm"

    def test_tool_use_start_and_json_delta(self):
        """tool_use opens a call; input_json_delta extends it by index."""
        start = parse(
            Provider.ANTHROPIC,
            {
                "type": "content_block_start",
                "index": 1,
                "content_block": {"type": "tool_use", "id": "toolu_1", "name": "Edit"},
            },
        )
        assert start.tool_call.id == "toolu_1"
        assert start.tool_call.name == "Edit"
        assert start.tool_call.arguments_delta == ""
        frag = parse(
            Provider.ANTHROPIC,
            {
                "type": "content_block_delta",
                "index": 1,
                "delta": {"type": "input_json_delta", "partial_json": '{"a": 1'},
            },
        )
        assert frag.tool_call.index == 1
        assert frag.tool_call.id is None
        assert frag.tool_call.arguments_delta == '{"a": 1'

    def test_thinking_block_start_ignored(self):
        payload = {"type": "content_block_start", "index": 0, "content_block": {"type": "thinking"}}
        assert parse(Provider.ANTHROPIC, payload) is None

    def test_message_delta_usage_and_stop(self):
        """message_delta carries output tokens and the stop reason together."""
        delta = parse(
            Provider.ANTHROPIC,
            {
                "type": "message_delta",
                "delta": {"stop_reason": "end_turn"},
                "usage": {"output_tokens": 15},
            },
        )
        assert delta.type == EventType.USAGE
        assert delta.usage.output == 15
        assert delta.stop_reason == "end_turn"

    def test_message_delta_stop_only(self):
        delta = parse(Provider.ANTHROPIC, {"type": "message_delta", "delta": {"stop_reason": "x"}})
        assert delta.type == EventType.STOP

    def test_ping_ignored(self):
        assert parse(Provider.ANTHROPIC, {"type": "ping"}) is None


class TestOpenCode:
    def test_text(self):
        """text parts carry timing and session references."""
        delta = parse(
            Provider.OPENCODE,
            {
                "type": "text",
                "sessionID": "ses_1",
                "part": {
                    "id": "prt_1",
                    "messageID": "msg_1",
                    "text": "done",
                    "time": {"start": 1, "end": 2},
                },
            },
        )
        assert delta.content == "done"
        assert delta.timing.start == 1 and delta.timing.end == 2
        assert delta.session.id == "ses_1"
        assert delta.session.message_id == "msg_1"

    def test_tool_use_full_input(self):
        """tool_use parts carry the complete input as JSON text."""
        delta = parse(
            Provider.OPENCODE,
            {
                "type": "tool_use",
                "sessionID": "ses_1",
                "part": {
                    "callID": "c1",
                    "tool": "Read",
                    "state": {"input": {"file_path": "/tmp/a.py"}},
                },
            },
        )
        assert delta.tool_call.id == "c1"
        assert delta.tool_call.name == "Read"
        assert delta.tool_call.arguments_delta == '{"file_path":"/tmp/a.py"}'

    def test_tool_use_without_call_id(self):
        delta = parse(
            Provider.OPENCODE,
            {"type": "tool_use", "part": {"tool": "Bash", "state": {"input": {"command": "ls"}}}},
        )
        assert delta.tool_call.id is None
        assert delta.tool_call.index is None

    def test_step_finish(self):
        """step_finish becomes usage with cost, snapshot and stop reason."""
        delta = parse(
            Provider.OPENCODE,
            {
                "type": "step_finish",
                "sessionID": "ses_1",
                "part": {
                    "reason": "stop",
                    "snapshot": "abc123",
                    "cost": 0.01,
                    "tokens": {
                        "input": 100,
                        "output": 20,
                        "reasoning": 5,
                        "cache": {"read": 50, "write": 0},
                    },
                },
            },
        )
        assert delta.type == EventType.USAGE
        assert delta.usage.input == 100
        assert delta.usage.output == 20
        assert delta.usage.reasoning == 5
        assert delta.usage.cache_read == 50
        assert delta.cost == 0.01
        assert delta.git_snapshot == "abc123"
        assert delta.stop_reason == "stop"

    def test_step_start_ignored(self):
        assert parse(Provider.OPENCODE, {"type": "step_start", "part": {"id": "p"}}) is None


class TestClaudeCode:
    def test_thinking_block(self):
        delta = parse(
            Provider.CLAUDE_CODE,
            {
                "type": "assistant",
                "session_id": "s1",
                "message": {"content": [{"type": "thinking", "thinking": "plan"}]},
            },
        )
        assert delta.type == EventType.THOUGHT
        assert delta.thought == "plan"
        assert delta.session.id == "s1"

    def test_tool_use_block(self):
        delta = parse(
            Provider.CLAUDE_CODE,
            {
                "type": "assistant",
                "message": {
                    "content": [
                        {"type": "tool_use", "id": "t1", "name": "Write", "input": {"file_path": "x"}}
                    ]
                },
            },
        )
        assert delta.tool_call.name == "Write"
        assert delta.tool_call.arguments_delta == '{"file_path":"x"}'

    def test_text_and_tool_use_blocks(self):
        """Every block of an assistant message becomes its own delta, in order."""
        payload = {
            "type": "assistant",
            "message": {
                "content": [
                    {"type": "text", "text": "Reading it."},
                    {"type": "tool_use", "id": "t1", "name": "Read", "input": {"file_path": "a.py"}},
                ]
            },
        }
        deltas = parse_all(Provider.CLAUDE_CODE, payload)
        assert [d.type for d in deltas] == [EventType.CONTENT, EventType.TOOL_CALL]
        assert deltas[0].content == "Reading it."
        assert deltas[1].tool_call.id == "t1"
        assert deltas[1].tool_call.name == "Read"
        assert parse(Provider.CLAUDE_CODE, payload).content == "Reading it."

    def test_tool_use_without_id(self):
        """A missing id is left unset so the call is never merged by position."""
        [delta] = parse_all(
            Provider.CLAUDE_CODE,
            {"type": "assistant", "message": {"content": [{"type": "tool_use", "name": "Bash"}]}},
        )
        assert delta.tool_call.id is None
        assert delta.tool_call.index is None

    def test_result_usage(self):
        delta = parse(
            Provider.CLAUDE_CODE,
            {
                "type": "result",
                "subtype": "success",
                "total_cost_usd": 0.2,
                "usage": {"input_tokens": 3, "output_tokens": 4},
            },
        )
        assert delta.type == EventType.USAGE
        assert (delta.usage.input, delta.usage.output) == (3, 4)
        assert delta.cost == 0.2
        assert delta.stop_reason == "success"

    def test_system_ignored(self):
        assert parse(Provider.CLAUDE_CODE, {"type": "system", "subtype": "init"}) is None

    def test_content_must_be_list(self):
        with pytest.raises(ParseError):
            parse(Provider.CLAUDE_CODE, {"type": "assistant", "message": {"content": 5}})
