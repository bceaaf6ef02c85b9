"""
Module: routing_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors over the
    org-graph tables.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/ (for the DTOs it returns).  MUST NOT import from outer layers.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.
    - DTO return convention: selectors return frozen domain dataclasses,
      never ORM instances.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from routing_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries and return DTOs.
    """

    def __init__(self, session: Session):
        self.session = session
