"""
Routing Kernel

Read-only core of the hierarchical approval router:
- Org-graph value objects and reader protocol
- Approval slot union and resolution results
- Structured logging and typed exceptions
- SQLAlchemy models and selectors for the org structure
"""

__version__ = "0.1.0"
