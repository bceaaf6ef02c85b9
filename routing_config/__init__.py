"""
routing_config -- single entry point for approval routing configuration.

Responsibility:
    ``get_routing_config()`` loads the routing YAML (cache TTL, ancestor
    walk cap, peer policy, delegation switch and the named approval steps)
    and returns a frozen ``RoutingConfig``.

Architecture position:
    Configuration layer.  Sits above ``routing_kernel`` and
    ``routing_engines`` and below ``routing_services``.  The kernel never
    imports from here.

Failure modes:
    - ``FileNotFoundError`` -- config path does not exist.
    - ``InvalidRoutingConfigError`` -- a value has the wrong type or shape.
"""

from __future__ import annotations

from pathlib import Path

from routing_config.loader import compute_checksum, load_yaml_file, parse_routing_config
from routing_config.schema import ApprovalStepDefinition, RoutingConfig
from routing_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_routing_config(path: Path | str | None = None) -> RoutingConfig:
    """Load and parse the routing configuration.

    Args:
        path: YAML file to read.  Defaults to ``routing_config/sets/default.yaml``.
    """
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    config = parse_routing_config(load_yaml_file(config_path))
    _logger.info(
        "routing_config_loaded",
        extra={
            "path": str(config_path),
            "checksum": config.checksum,
            "step_count": len(config.steps),
            "cache_ttl_seconds": config.cache_ttl_seconds,
            "max_ancestor_depth": config.max_ancestor_depth,
            "peer_escalation": config.peer_escalation,
        },
    )
    return config


__all__ = [
    "ApprovalStepDefinition",
    "RoutingConfig",
    "compute_checksum",
    "get_routing_config",
    "load_yaml_file",
    "parse_routing_config",
]
