"""Tests for event and batch types."""

import json

import pytest

from analytics_relay.events import AnalyticEvent, EventBatch


class TestAnalyticEvent:
    def test_defaults_are_empty_strings(self):
        event = AnalyticEvent()
        assert event.type == ""
        assert event.data == ""

    def test_none_becomes_empty(self):
        event = AnalyticEvent(type="levelStart", data=None)
        assert event.data == ""

    def test_equality_ignores_event_id(self):
        assert AnalyticEvent("a", "1", event_id=1) == AnalyticEvent("a", "1", event_id=2)

    def test_to_dict_has_no_event_id(self):
        assert AnalyticEvent("a", "1", event_id=7).to_dict() == {"type": "a", "data": "1"}


class TestEventBatch:
    def test_wire_format(self):
        batch = EventBatch.of([
            AnalyticEvent("levelStart", "level:3"),
            AnalyticEvent("rewardReceived", "coins:100"),
        ])

        assert json.loads(batch.to_json()) == {
            "events": [
                {"type": "levelStart", "data": "level:3"},
                {"type": "rewardReceived", "data": "coins:100"},
            ]
        }

    def test_empty_batch(self):
        batch = EventBatch()
        assert len(batch) == 0
        assert not batch
        assert batch.to_dict() == {"events": []}

    def test_from_dict_fills_missing_fields(self):
        batch = EventBatch.from_dict({"events": [{"type": "a"}, {"data": "x"}, {"type": None, "data": None}]})
        assert [(e.type, e.data) for e in batch] == [("a", ""), ("", "x"), ("", "")]

    def test_from_dict_missing_events(self):
        assert len(EventBatch.from_dict({})) == 0
        assert len(EventBatch.from_dict({"events": None})) == 0
        assert len(EventBatch.from_dict(None)) == 0

    def test_from_json_blank(self):
        assert len(EventBatch.from_json("  \n")) == 0

    @pytest.mark.parametrize("payload", [
        [1, 2, 3],
        {"events": "nope"},
        {"events": ["a"]},
    ])
    def test_from_dict_rejects_wrong_shape(self, payload):
        with pytest.raises(ValueError):
            EventBatch.from_dict(payload)

    def test_from_json_preserves_order(self):
        text = json.dumps({"events": [{"type": str(i), "data": ""} for i in range(5)]}, indent=2)
        assert [e.type for e in EventBatch.from_json(text)] == ["0", "1", "2", "3", "4"]
