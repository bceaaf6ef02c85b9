"""
Pytest fixtures for the approval routing test suite.

Provides:
- Structured logging setup and a ``captured_logs`` fixture
- ``deterministic_clock`` pinned to 2024-01-01 12:00 UTC
- ``org``: an in-memory org graph builder
- ``session``: an SQLite in-memory database with the org-graph schema

Environment Variables:
- ROUTING_TEST_DATABASE_URL: run the selector tests against another
  database (e.g. PostgreSQL) instead of in-memory SQLite.
"""

import json
import logging
import os
from datetime import date
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from routing_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from routing_kernel.domain.clock import DeterministicClock
from routing_kernel.domain.org import (
    Designation,
    Employee,
    Position,
    Sector,
    Unit,
)
from routing_kernel.domain.org_graph import InMemoryOrgGraph
from routing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from routing_kernel.utils.ttl_cache import TTLCache
from routing_services.authority_resolver import AuthorityResolver


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture routing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, resolver):
            resolver.find_approver(emp.id)
            logs = captured_logs()
            assert any(r["message"] == "approver_resolved" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("routing_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =========================================================================
# Org graph builder
# =========================================================================

DEFAULT_START = date(2020, 1, 1)


class OrgBuilder:
    """Small DSL over ``InMemoryOrgGraph`` for readable test setup."""

    def __init__(self) -> None:
        self.graph = InMemoryOrgGraph()
        self.sector = self.add_sector("Academic")

    def add_sector(self, name: str) -> Sector:
        return self.graph.add_sector(Sector(id=uuid4(), name=name))

    def add_unit(
        self,
        name: str,
        parent: Unit | None = None,
        sector: Sector | None = None,
    ) -> Unit:
        return self.graph.add_unit(
            Unit(
                id=uuid4(),
                sector_id=(sector or self.sector).id,
                parent_unit_id=parent.id if parent else None,
                name=name,
            )
        )

    def add_position(
        self,
        name: str,
        level: int | None,
        *,
        system_wide: bool = False,
        sector: Sector | None = None,
    ) -> Position:
        sector_id = None if system_wide else (sector or self.sector).id
        return self.graph.add_position(
            Position(id=uuid4(), authority_level=level, sector_id=sector_id, name=name)
        )

    def add_person(
        self,
        name: str,
        unit: Unit | None,
        position: Position,
        *,
        primary: bool = True,
        with_user: bool = True,
        start: date | None = DEFAULT_START,
        end: date | None = None,
    ) -> Employee:
        employee = self.graph.add_employee(
            Employee(id=uuid4(), name=name, user_id=uuid4() if with_user else None)
        )
        self.designate(employee, unit, position, primary=primary, start=start, end=end)
        return employee

    def designate(
        self,
        employee: Employee,
        unit: Unit | None,
        position: Position,
        *,
        primary: bool = False,
        start: date | None = DEFAULT_START,
        end: date | None = None,
    ) -> Designation:
        return self.graph.add_designation(
            Designation(
                id=uuid4(),
                employee_id=employee.id,
                position_id=position.id,
                unit_id=unit.id if unit else None,
                is_primary=primary,
                start_date=start,
                end_date=end,
            )
        )

    def add_role(self, name: str) -> UUID:
        return self.graph.add_role(uuid4(), name)

    def grant(self, employee: Employee, role_id: UUID) -> None:
        self.graph.grant_role(employee.user_id, role_id)


@pytest.fixture
def org() -> OrgBuilder:
    return OrgBuilder()


@pytest.fixture
def deterministic_clock():
    """Deterministic clock for reproducible date windows and cache expiry."""
    return DeterministicClock()


@pytest.fixture
def routing_cache(deterministic_clock) -> TTLCache:
    return TTLCache(ttl_seconds=300, clock=deterministic_clock)


@pytest.fixture
def resolver(org, deterministic_clock) -> AuthorityResolver:
    """Uncached authority resolver over the ``org`` graph."""
    return AuthorityResolver(org.graph, clock=deterministic_clock)


# =========================================================================
# Database
# =========================================================================


def get_database_url() -> str:
    return os.environ.get("ROUTING_TEST_DATABASE_URL", "sqlite://")


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Fresh org-graph schema per test; dropped afterwards."""
    init_engine_from_url(get_database_url())
    create_tables()
    db = get_session()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        drop_tables()
        reset_engine()
