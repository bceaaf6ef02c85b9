"""Preview of every approver above a requester, most junior first."""

from __future__ import annotations

from uuid import UUID

from routing_kernel.domain.resolution import ResolvedApprover
from routing_kernel.logging_config import get_logger
from routing_services.authority_resolver import AuthorityResolver

logger = get_logger("services.chain_builder")


class ApprovalChainBuilder:
    """Builds the potential approver chain shown before a submission.

    The chain is informational: it lists everyone who could approve at
    the requester's next level, not the approvals a step will demand.
    """

    def __init__(self, authority: AuthorityResolver) -> None:
        self._authority = authority

    def build_chain(self, requester_id: UUID) -> list[ResolvedApprover]:
        """All qualifying approvers, ascending by authority level.

        The sort is stable, so equal levels keep search-tier order.
        """
        approvers = self._authority.find_approvers(requester_id)
        chain = sorted(approvers, key=lambda a: a.authority_level or 0)
        logger.info(
            "approval_chain_built",
            extra={"requester_id": str(requester_id), "length": len(chain)},
        )
        return chain
