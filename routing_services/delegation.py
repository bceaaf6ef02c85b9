"""
routing_services.delegation -- Apply active approval delegations.

Responsibility:
    Replace resolved approvers who have handed their approval authority to
    someone else (vacation, leave) with the delegate effective at the
    resolution instant.

Invariants enforced:
    - Single hop: a delegate's own delegation is not followed.
    - A delegate who is the requester's own login is ignored; the original
      approver stands.
    - Unresolved entries pass through untouched.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from uuid import UUID

from routing_engines.dedupe import deduplicate_approvers
from routing_kernel.domain.clock import Clock, SystemClock
from routing_kernel.domain.org_graph import OrgGraphReader
from routing_kernel.domain.resolution import ResolvedApprover
from routing_kernel.logging_config import get_logger

logger = get_logger("services.delegation")


class DelegationResolver:
    """Rewrites approver lists according to active delegations."""

    def __init__(self, reader: OrgGraphReader, clock: Clock | None = None) -> None:
        self._reader = reader
        self._clock = clock or SystemClock()

    def delegate_for(self, user_id: UUID) -> UUID | None:
        """The user currently acting for ``user_id``, if any."""
        return self._reader.get_active_delegate(user_id, self._clock.now())

    def apply(
        self,
        approvers: Sequence[ResolvedApprover],
        requester_id: UUID,
    ) -> list[ResolvedApprover]:
        """Swap in delegates, then deduplicate again.

        A delegate can coincide with another entry in the same step, so the
        result is re-deduplicated with the first occurrence kept.
        """
        requester = self._reader.get_employee(requester_id)
        requester_user_id = requester.user_id if requester is not None else None

        rewritten: list[ResolvedApprover] = []
        for entry in approvers:
            if entry.user_id is None:
                rewritten.append(entry)
                continue
            delegate = self.delegate_for(entry.user_id)
            if delegate is None or delegate == entry.user_id:
                rewritten.append(entry)
                continue
            if delegate == requester_user_id:
                logger.info(
                    "delegation_skipped_self",
                    extra={
                        "requester_id": str(requester_id),
                        "delegator_user_id": str(entry.user_id),
                    },
                )
                rewritten.append(entry)
                continue
            logger.info(
                "approver_delegated",
                extra={
                    "delegator_user_id": str(entry.user_id),
                    "delegate_user_id": str(delegate),
                },
            )
            delegate_user = self._reader.get_user(delegate)
            rewritten.append(
                replace(
                    entry,
                    user_id=delegate,
                    employee_id=delegate_user.employee_id if delegate_user else None,
                    delegated_from_user_id=entry.user_id,
                )
            )
        return deduplicate_approvers(rewritten)
