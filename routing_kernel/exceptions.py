"""
Typed Exception Hierarchy for the Routing Kernel.

===============================================================================
WHAT RAISES AND WHAT DOES NOT
===============================================================================

Approval routing has two kinds of "failure":

  1. Routing outcomes -- the requester has no primary designation, nobody
     above them holds the required authority, a slot references a role
     that no longer exists.  These are NOT exceptions.  Resolvers return
     ``None``, an empty tuple, or a ``ResolvedApprover`` carrying an
     ``UnresolvedReason`` tag, and the caller decides what to do.

  2. Programming and configuration-load errors -- an approval slot dict
     with an unknown ``approver_type``, an authority level of 250, a YAML
     file that names a step twice.  These raise the typed exceptions below.

Example - WRONG way to check for "no approver":
    try:
        approver = resolver.find_approver(requester)
    except Exception:
        notify_admin()

Example - RIGHT way:
    approver = resolver.find_approver(requester)
    if approver is None:
        notify_admin()

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from RoutingKernelError:

    RoutingKernelError (base)
    |
    +-- SlotConfigurationError
    |   +-- UnknownSlotTypeError
    |   +-- InvalidSlotFieldError
    |
    +-- AuthorityLevelError
    |   +-- InvalidAuthorityLevelError
    |
    +-- RoutingConfigError
        +-- UnknownApprovalStepError
        +-- InvalidRoutingConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Slot            | UNKNOWN_SLOT_TYPE           | approver_type not user/role/position/hierarchical
                | INVALID_SLOT_FIELD          | Slot field is not a valid identifier
----------------|-----------------------------|-----------------------------------------
Authority       | INVALID_AUTHORITY_LEVEL     | Level outside 0..100 or not an int
----------------|-----------------------------|-----------------------------------------
Config          | UNKNOWN_APPROVAL_STEP       | Step name not defined in routing config
                | INVALID_ROUTING_CONFIG      | YAML value has the wrong type/shape

===============================================================================
"""

from __future__ import annotations

from typing import Any


class RoutingKernelError(Exception):
    """
    Base exception for all routing kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "ROUTING_KERNEL_ERROR"


# Slot configuration exceptions


class SlotConfigurationError(RoutingKernelError):
    """Base exception for malformed approval slot configuration."""

    code: str = "SLOT_CONFIGURATION_ERROR"


class UnknownSlotTypeError(SlotConfigurationError):
    """Slot dict names an approver type the router does not know."""

    code: str = "UNKNOWN_SLOT_TYPE"

    def __init__(self, approver_type: Any):
        self.approver_type = approver_type
        super().__init__(f"Unknown approver type: {approver_type!r}")


class InvalidSlotFieldError(SlotConfigurationError):
    """Slot field is present but cannot be read as an identifier or level."""

    code: str = "INVALID_SLOT_FIELD"

    def __init__(self, approver_type: str, field_name: str, value: Any):
        self.approver_type = approver_type
        self.field_name = field_name
        self.value = value
        super().__init__(
            f"Approver slot of type {approver_type!r} has invalid {field_name!r}: {value!r}"
        )


# Authority level exceptions


class AuthorityLevelError(RoutingKernelError):
    """Base exception for authority level problems."""

    code: str = "AUTHORITY_LEVEL_ERROR"


class InvalidAuthorityLevelError(AuthorityLevelError):
    """Authority level is not an integer within the allowed range."""

    code: str = "INVALID_AUTHORITY_LEVEL"

    def __init__(self, level: Any, minimum: int, maximum: int):
        self.level = level
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"Authority level {level!r} must be an integer in [{minimum}, {maximum}]"
        )


# Routing configuration exceptions


class RoutingConfigError(RoutingKernelError):
    """Base exception for routing configuration errors."""

    code: str = "ROUTING_CONFIG_ERROR"


class UnknownApprovalStepError(RoutingConfigError):
    """Requested approval step is not defined in the routing config."""

    code: str = "UNKNOWN_APPROVAL_STEP"

    def __init__(self, step_name: str, known_steps: tuple[str, ...] = ()):
        self.step_name = step_name
        self.known_steps = known_steps
        super().__init__(f"Approval step not defined: {step_name}")


class InvalidRoutingConfigError(RoutingConfigError):
    """Routing config value has the wrong type or shape."""

    code: str = "INVALID_ROUTING_CONFIG"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid routing config at {key!r}: {reason}")
