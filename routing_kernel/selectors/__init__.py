"""Read-only selectors over the org-graph tables."""

from routing_kernel.selectors.base import BaseSelector
from routing_kernel.selectors.org_graph_selector import SqlOrgGraphReader

__all__ = ["BaseSelector", "SqlOrgGraphReader"]
