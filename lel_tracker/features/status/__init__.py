"""Status feature module: effective rider status and the stall override."""

from .classifier import (
    StatusResult,
    classify,
    effective_status,
    is_stalled,
    last_parseable_instant,
)

__all__ = [
    "StatusResult",
    "classify",
    "effective_status",
    "is_stalled",
    "last_parseable_instant",
]
