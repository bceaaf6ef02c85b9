"""
Routing configuration loader (``routing_config.loader``).

Responsibility
--------------
Reads a routing YAML file and parses it into ``routing_config.schema``
dataclasses.  Callers go through ``routing_config.get_routing_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass.
* Wrong types and malformed slots raise ``InvalidRoutingConfigError``
  naming the offending key; no silent defaults for values that are
  present but wrong.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any
from uuid import UUID

import yaml

from routing_config.schema import ApprovalStepDefinition, RoutingConfig
from routing_kernel.domain.slots import parse_slot
from routing_kernel.exceptions import InvalidRoutingConfigError, SlotConfigurationError
from routing_kernel.utils.ttl_cache import DEFAULT_TTL_SECONDS
from routing_engines.hierarchy import DEFAULT_MAX_ANCESTOR_DEPTH


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidRoutingConfigError("<root>", "top level must be a mapping")
    return data


def _positive_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidRoutingConfigError(key, f"expected a positive integer, got {value!r}")
    return value


def _flag(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise InvalidRoutingConfigError(key, f"expected true/false, got {value!r}")
    return value


def _uuid_set(key: str, value: Any) -> frozenset[UUID] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise InvalidRoutingConfigError(key, "expected a list of ids")
    try:
        return frozenset(UUID(str(v)) for v in value)
    except ValueError as exc:
        raise InvalidRoutingConfigError(key, str(exc)) from exc


def parse_step(name: str, data: dict[str, Any]) -> ApprovalStepDefinition:
    """Parse one entry of the ``steps`` mapping."""
    key = f"steps.{name}"
    if not isinstance(data, dict):
        raise InvalidRoutingConfigError(key, "expected a mapping")
    raw_slots = data.get("slots", [])
    if not isinstance(raw_slots, list):
        raise InvalidRoutingConfigError(f"{key}.slots", "expected a list")

    slots = []
    for i, raw in enumerate(raw_slots):
        if not isinstance(raw, dict):
            raise InvalidRoutingConfigError(f"{key}.slots[{i}]", "expected a mapping")
        try:
            slots.append(parse_slot(raw))
        except SlotConfigurationError as exc:
            raise InvalidRoutingConfigError(f"{key}.slots[{i}]", str(exc)) from exc

    return ApprovalStepDefinition(
        name=name,
        slots=tuple(slots),
        sector_allow_list=_uuid_set(f"{key}.sector_allow_list", data.get("sector_allow_list")),
        unit_allow_list=_uuid_set(f"{key}.unit_allow_list", data.get("unit_allow_list")),
    )


def parse_routing_config(data: dict[str, Any]) -> RoutingConfig:
    """Build a ``RoutingConfig`` from a loaded YAML document."""
    raw_steps = data.get("steps") or {}
    if not isinstance(raw_steps, dict):
        raise InvalidRoutingConfigError("steps", "expected a mapping of step name to step")

    return RoutingConfig(
        cache_ttl_seconds=_positive_int(data, "cache_ttl_seconds", DEFAULT_TTL_SECONDS),
        max_ancestor_depth=_positive_int(data, "max_ancestor_depth", DEFAULT_MAX_ANCESTOR_DEPTH),
        peer_escalation=_flag(data, "peer_escalation", True),
        apply_delegations=_flag(data, "apply_delegations", True),
        steps={str(name): parse_step(str(name), step) for name, step in raw_steps.items()},
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
