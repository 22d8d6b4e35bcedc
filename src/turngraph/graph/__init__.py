from .client import FalkorGraphClient, GraphClient, Row, normalize_value
from .session import SessionInitializer
from .timeline import DEFAULT_MAX_HOPS, linear_timeline

__all__ = [
    "DEFAULT_MAX_HOPS",
    "FalkorGraphClient",
    "GraphClient",
    "Row",
    "SessionInitializer",
    "linear_timeline",
    "normalize_value",
]
