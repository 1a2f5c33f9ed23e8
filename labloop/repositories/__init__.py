"""
Repository layer for LabLoop.

Repositories encapsulate database query logic.
"""

from labloop.repositories.counter_repository import (
    get_counter,
    get_sequence,
    list_counters,
    ensure_counter,
    increment_below_ceiling,
    set_sequence,
)

__all__ = [
    "get_counter",
    "get_sequence",
    "list_counters",
    "ensure_counter",
    "increment_below_ceiling",
    "set_sequence",
]
