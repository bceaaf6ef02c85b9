"""
routing_engines.tracer -- DEBUG trace for pure routing calculations.

``@traced_engine(name, version)`` logs one ``routing_engine_trace`` record
per call with the engine name and version, how long the call took, how
many items it returned and, when ``fingerprint_fields`` names keyword
arguments, a short hash of those arguments.  Two traces with the same
fingerprint and version saw the same inputs for those fields.

The wrapped function's arguments and result are passed through untouched.
"""

from __future__ import annotations

import functools
import hashlib
import json
import logging
import time
from collections.abc import Callable, Sized
from typing import Any

from routing_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

FINGERPRINT_LENGTH = 16


def fingerprint(values: dict[str, Any]) -> str:
    """Hex SHA-256 prefix of ``values`` in canonical JSON form."""
    canonical = json.dumps(values, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000

            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    "routing_engine_trace",
                    extra={
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "function": func.__qualname__,
                        "input_fingerprint": (
                            fingerprint({f: kwargs.get(f) for f in fingerprint_fields})
                            if fingerprint_fields else None
                        ),
                        "result_size": len(result) if isinstance(result, Sized) else None,
                        "duration_ms": round(elapsed_ms, 3),
                    },
                )
            return result

        wrapper.engine_name = engine_name
        wrapper.engine_version = engine_version
        return wrapper

    return decorator
