"""Tests for the typed lead state view over the shared context store."""

import pytest
from pydantic import ValidationError

from jurify.context.lead import LeadContext, LeadStage
from jurify.context.store import SharedContextStore, StoreLimits


class TestLeadContext:

    @pytest.fixture
    def store(self):
        return SharedContextStore(limits=StoreLimits(max_entries=100))

    @pytest.fixture
    def leads(self, store):
        return LeadContext(store, history_limit=3)

    def test_load_defaults_for_unknown_lead(self, leads):
        state = leads.load("lead-1")
        assert state.lead_id == "lead-1"
        assert state.current_stage == LeadStage.NEW
        assert state.conversation_history == []
        assert state.decisions == {}
        assert state.metadata == {}

    def test_rejects_non_positive_history_limit(self, store):
        with pytest.raises(ValueError, match="history_limit"):
            LeadContext(store, history_limit=0)

    def test_update_metadata_merges(self, leads):
        leads.update_metadata("lead-1", {"channel": "whatsapp", "tenant_id": "t1"})
        leads.update_metadata("lead-1", {"channel": "email"})
        state = leads.load("lead-1")
        assert state.metadata == {"channel": "email", "tenant_id": "t1"}

    def test_update_lead_data_merges(self, leads):
        leads.update_lead_data("lead-1", {"name": "Maria", "legal_area": "trabalhista"})
        leads.update_lead_data("lead-1", {"phone": "+5511999990000"})
        assert leads.load("lead-1").lead_data == {
            "name": "Maria",
            "legal_area": "trabalhista",
            "phone": "+5511999990000",
        }

    def test_set_stage_accepts_string(self, leads):
        leads.set_stage("lead-1", "qualified")
        assert leads.load("lead-1").current_stage == LeadStage.QUALIFIED

    def test_set_stage_rejects_unknown(self, leads):
        with pytest.raises(ValueError):
            leads.set_stage("lead-1", "archived")

    def test_stage_stored_as_plain_value(self, leads, store):
        leads.set_stage("lead-1", LeadStage.PROPOSAL_SENT)
        assert store.get("lead-1")["current_stage"] == "proposal_sent"

    def test_record_decision(self, leads):
        record = leads.record_decision(
            "lead-1", "qualifier", "qualified", reasoning="clear labor claim", confidence=0.9,
        )
        state = leads.load("lead-1")
        assert state.decisions["qualifier"].decision == "qualified"
        assert state.decisions["qualifier"].confidence == 0.9
        assert record.decision_maker == "qualifier"

    def test_record_decision_keeps_other_agents(self, leads):
        leads.record_decision("lead-1", "qualifier", "qualified", confidence=0.8)
        leads.record_decision("lead-1", "legal", "viable", confidence=0.7)
        leads.record_decision("lead-1", "qualifier", "requalified", confidence=0.95)
        decisions = leads.load("lead-1").decisions
        assert set(decisions) == {"qualifier", "legal"}
        assert decisions["qualifier"].decision == "requalified"

    def test_record_decision_rejects_bad_confidence(self, leads):
        with pytest.raises(ValidationError):
            leads.record_decision("lead-1", "qualifier", "qualified", confidence=1.5)

    def test_append_turn_keeps_newest(self, leads):
        for i in range(5):
            leads.append_turn("lead-1", "user", f"msg {i}")
        history = leads.load("lead-1").conversation_history
        assert [t.content for t in history] == ["msg 2", "msg 3", "msg 4"]

    def test_append_turn_records_agent(self, leads):
        leads.append_turn("lead-1", "assistant", "Olá!", agent_name="communicator")
        turn = leads.load("lead-1").conversation_history[0]
        assert turn.role == "assistant"
        assert turn.agent_name == "communicator"

    def test_append_turn_rejects_unknown_role(self, leads):
        with pytest.raises(ValidationError):
            leads.append_turn("lead-1", "robot", "beep")

    def test_writes_preserve_foreign_fields(self, leads, store):
        store.set("lead-1", {"execution_id": "exec-42"})
        leads.set_stage("lead-1", "analyzing")
        leads.append_turn("lead-1", "user", "preciso de ajuda")
        assert store.get("lead-1")["execution_id"] == "exec-42"

    def test_stored_values_are_json_compatible(self, leads, store):
        leads.append_turn("lead-1", "user", "hi")
        leads.record_decision("lead-1", "coordinator", "route", confidence=0.5)
        raw = store.get("lead-1")
        assert isinstance(raw["conversation_history"][0]["timestamp"], str)
        assert isinstance(raw["decisions"]["coordinator"]["timestamp"], str)

    def test_reset_clears_lead(self, leads, store):
        leads.set_stage("lead-1", "negotiation")
        leads.reset("lead-1")
        assert store.get("lead-1") == {}
        assert leads.load("lead-1").current_stage == LeadStage.NEW
