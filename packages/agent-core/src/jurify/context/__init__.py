"""Shared Context: bounded, expiring per-lead state for the agents."""

from jurify.context.lead import (
    ConversationTurn,
    DecisionRecord,
    LeadContext,
    LeadStage,
    LeadState,
)
from jurify.context.runtime import ContextRuntime, get_instance, shutdown_instance
from jurify.context.store import SharedContextStore, StoreLimits, StoreStats
from jurify.context.sweeper import SweepHandle, start_background_sweep

__all__ = [
    "ContextRuntime",
    "ConversationTurn",
    "DecisionRecord",
    "LeadContext",
    "LeadStage",
    "LeadState",
    "SharedContextStore",
    "StoreLimits",
    "StoreStats",
    "SweepHandle",
    "get_instance",
    "shutdown_instance",
    "start_background_sweep",
]
