"""Typed view over the per-lead conversation state kept in the shared store.

The store holds plain JSON-compatible mappings; this module validates what
the agents read and write through it (stage, history, decisions, metadata).
Each write only patches the fields it changes, so fields written by other
callers under the same lead id are left alone.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from jurify.context.store import SharedContextStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeadStage(Enum):
    NEW = "new"
    ANALYZING = "analyzing"
    QUALIFIED = "qualified"
    LEGAL_VALIDATION = "legal_validation"
    PROPOSAL_CREATED = "proposal_created"
    PROPOSAL_SENT = "proposal_sent"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    agent_name: str | None = None


class DecisionRecord(BaseModel):
    decision_maker: str
    decision: str
    reasoning: str = ""
    confidence: float = Field(ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=_utcnow)


class LeadState(BaseModel):
    lead_id: str
    current_stage: LeadStage = LeadStage.NEW
    conversation_history: list[ConversationTurn] = Field(default_factory=list)
    decisions: dict[str, DecisionRecord] = Field(default_factory=dict)
    lead_data: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


class LeadContext:
    """Reads and patches lead state in a ``SharedContextStore``."""

    def __init__(self, store: SharedContextStore, history_limit: int = 50) -> None:
        if history_limit <= 0:
            raise ValueError(f"history_limit must be positive, got {history_limit}")
        self._store = store
        self.history_limit = history_limit

    def load(self, lead_id: str) -> LeadState:
        return LeadState.model_validate({**self._store.get(lead_id), "lead_id": lead_id})

    def _write(self, state: LeadState, *fields: str) -> None:
        patch = state.model_dump(mode="json", include={"lead_id", *fields})
        self._store.set(state.lead_id, patch)

    def update_metadata(self, lead_id: str, updates: dict[str, Any]) -> LeadState:
        state = self.load(lead_id)
        state.metadata = {**state.metadata, **updates}
        self._write(state, "metadata")
        return state

    def update_lead_data(self, lead_id: str, updates: dict[str, Any]) -> LeadState:
        state = self.load(lead_id)
        state.lead_data = {**state.lead_data, **updates}
        self._write(state, "lead_data")
        return state

    def set_stage(self, lead_id: str, stage: LeadStage | str) -> LeadState:
        state = self.load(lead_id)
        state.current_stage = LeadStage(stage)
        self._write(state, "current_stage")
        return state

    def record_decision(
        self,
        lead_id: str,
        decision_maker: str,
        decision: str,
        reasoning: str = "",
        confidence: float = 1.0,
    ) -> DecisionRecord:
        record = DecisionRecord(
            decision_maker=decision_maker,
            decision=decision,
            reasoning=reasoning,
            confidence=confidence,
        )
        state = self.load(lead_id)
        state.decisions = {**state.decisions, decision_maker: record}
        self._write(state, "decisions")
        return record

    def append_turn(
        self,
        lead_id: str,
        role: str,
        content: str,
        agent_name: str | None = None,
    ) -> ConversationTurn:
        turn = ConversationTurn(role=role, content=content, agent_name=agent_name)
        state = self.load(lead_id)
        # Oldest turns drop off first
        state.conversation_history = [*state.conversation_history, turn][-self.history_limit:]
        self._write(state, "conversation_history")
        return turn

    def reset(self, lead_id: str) -> None:
        self._store.clear(lead_id)
