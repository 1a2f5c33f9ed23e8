from labloop.schemas.counter import (
    CounterInfoResponse,
    CounterResetRequest,
    NextIdResponse,
)

__all__ = [
    "CounterInfoResponse",
    "CounterResetRequest",
    "NextIdResponse",
]
