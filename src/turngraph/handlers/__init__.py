from .base import (
    EventHandler,
    FileTouch,
    HandlerContext,
    HandlerResult,
    ReasoningBlock,
    ToolCallRecord,
    TurnState,
)
from .content import ContentEventHandler
from .control import ControlEventHandler
from .diff import DiffEventHandler
from .registry import EventHandlerRegistry, create_default_handler_registry
from .thought import ThoughtEventHandler
from .tool_call import ToolCallEventHandler
from .tools import infer_tool_type
from .usage import UsageEventHandler

__all__ = [
    "ContentEventHandler",
    "ControlEventHandler",
    "DiffEventHandler",
    "EventHandler",
    "EventHandlerRegistry",
    "FileTouch",
    "HandlerContext",
    "HandlerResult",
    "ReasoningBlock",
    "ThoughtEventHandler",
    "ToolCallEventHandler",
    "ToolCallRecord",
    "TurnState",
    "UsageEventHandler",
    "create_default_handler_registry",
    "infer_tool_type",
]
