"""
Tests for routing configuration loading.

Tests cover:
- the shipped default.yaml
- parse_routing_config defaults, steps, allow-lists
- InvalidRoutingConfigError on wrong types and bad slots
- deterministic checksum
"""

from pathlib import Path
from uuid import uuid4

import pytest

from routing_config import get_routing_config
from routing_config.loader import compute_checksum, load_yaml_file, parse_routing_config
from routing_kernel.domain.slots import HierarchicalSlot, UserSlot
from routing_kernel.exceptions import InvalidRoutingConfigError


class TestDefaultConfig:

    def test_loads(self, captured_logs):
        config = get_routing_config()
        assert config.cache_ttl_seconds == 300
        assert config.max_ancestor_depth == 64
        assert config.peer_escalation is True
        assert config.apply_delegations is True
        assert config.step("director_review").slots == (HierarchicalSlot(70),)
        assert any(r["message"] == "routing_config_loaded" for r in captured_logs())

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_routing_config(tmp_path / "nope.yaml")


class TestParseRoutingConfig:

    def test_empty_document_uses_defaults(self):
        config = parse_routing_config({})
        assert config.cache_ttl_seconds == 300
        assert config.steps == {}

    def test_steps_and_allow_lists(self):
        uid, sector = uuid4(), uuid4()
        config = parse_routing_config({
            "peer_escalation": False,
            "steps": {
                "procurement_review": {
                    "slots": [
                        {"approver_type": "user", "approver_id": str(uid)},
                        {"approver_type": "hierarchical", "min_authority_level": 80},
                    ],
                    "sector_allow_list": [str(sector)],
                },
            },
        })
        step = config.step("procurement_review")
        assert step.slots == (UserSlot(uid), HierarchicalSlot(80))
        assert step.sector_allow_list == frozenset({sector})
        assert step.unit_allow_list is None
        assert config.peer_escalation is False

    @pytest.mark.parametrize("doc,key", [
        ({"cache_ttl_seconds": 0}, "cache_ttl_seconds"),
        ({"cache_ttl_seconds": "300"}, "cache_ttl_seconds"),
        ({"max_ancestor_depth": True}, "max_ancestor_depth"),
        ({"peer_escalation": "yes"}, "peer_escalation"),
        ({"steps": ["a"]}, "steps"),
        ({"steps": {"s": {"slots": {}}}}, "steps.s.slots"),
        ({"steps": {"s": {"slots": [{"approver_type": "committee"}]}}}, "steps.s.slots[0]"),
        ({"steps": {"s": {"unit_allow_list": ["not-a-uuid"]}}}, "steps.s.unit_allow_list"),
    ])
    def test_invalid_values(self, doc, key):
        with pytest.raises(InvalidRoutingConfigError) as exc_info:
            parse_routing_config(doc)
        assert exc_info.value.key == key
        assert exc_info.value.code == "INVALID_ROUTING_CONFIG"


class TestLoader:

    def test_non_mapping_document(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(InvalidRoutingConfigError):
            load_yaml_file(path)

    def test_custom_file(self, tmp_path: Path):
        path = tmp_path / "routing.yaml"
        path.write_text("cache_ttl_seconds: 60\nsteps:\n  quick:\n    slots:\n      - approver_type: hierarchical\n")
        config = get_routing_config(path)
        assert config.cache_ttl_seconds == 60
        assert config.step_names == ("quick",)

    def test_checksum_deterministic(self):
        a = {"b": 1, "a": [1, 2]}
        b = {"a": [1, 2], "b": 1}
        assert compute_checksum(a) == compute_checksum(b)
        assert compute_checksum(a) != compute_checksum({"a": [2, 1], "b": 1})
