"""turngraph: streamed LLM provider events into a bitemporal turn graph."""

from .engine import TurnEngine
from .errors import GraphOperationError, ParseError, StorageError, TurngraphError, ValidationError
from .events import (
    EventType,
    ParsedStreamEvent,
    Provider,
    RawStreamEvent,
    StreamDelta,
    ToolCallDelta,
    Usage,
)
from .extract import TagExtractor
from .ingestion import IngestionProcessor
from .pipeline import Pipeline, PipelineStats
from .pruner import GraphPruner, PruneResult, PruneScheduler
from .redact import Redactor
from .storage import BlobStore, FileSystemBlobStore

__all__ = [
    "BlobStore",
    "EventType",
    "FileSystemBlobStore",
    "GraphOperationError",
    "GraphPruner",
    "IngestionProcessor",
    "ParseError",
    "ParsedStreamEvent",
    "Pipeline",
    "PipelineStats",
    "Provider",
    "PruneResult",
    "PruneScheduler",
    "RawStreamEvent",
    "Redactor",
    "StorageError",
    "StreamDelta",
    "TagExtractor",
    "ToolCallDelta",
    "TurnEngine",
    "TurngraphError",
    "Usage",
    "ValidationError",
]
