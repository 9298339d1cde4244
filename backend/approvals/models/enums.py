from __future__ import annotations

import enum


class RequestType(enum.StrEnum):
    """Kinds of request a manager can receive."""

    LEAVE = "LEAVE"
    OVERTIME = "OVERTIME"
    MEAL = "MEAL"
    CARDLESS_ENTRY = "CARDLESS_ENTRY"


class RequestStatus(enum.StrEnum):
    """Status reported by the HR backend.

    ORDERED and CANCELLED are type-specific synonyms of APPROVED and
    REJECTED when grouping for display.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    ORDERED = "ORDERED"
    POTENTIAL = "POTENTIAL"


class Provenance(enum.StrEnum):
    """Why a request is visible to the viewer."""

    DIRECT = "DIRECT"
    INDIRECT = "INDIRECT"
    SUBSTITUTE = "SUBSTITUTE"


class SourceStream(enum.StrEnum):
    """Backend collections folded into the incoming aggregate."""

    TEAM = "TEAM"
    HISTORY = "HISTORY"
    SUBSTITUTE = "SUBSTITUTE"


class DecisionAction(enum.StrEnum):
    """Action recorded in the backend decision log."""

    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    OVERRIDDEN = "OVERRIDDEN"
    REVISED = "REVISED"
    CANCELLED = "CANCELLED"


class ManagerAction(enum.StrEnum):
    """Action a manager can take on an incoming request."""

    APPROVE = "approve"
    REJECT = "reject"
    OVERRIDE = "override"
    CANCEL = "cancel"


class OverrideOutcome(enum.StrEnum):
    """Outcome imposed by an override."""

    APPROVE = "approve"
    REJECT = "reject"


class LockSource(enum.StrEnum):
    """Where a time-lock date came from."""

    EXPLICIT = "EXPLICIT"
    FALLBACK = "FALLBACK"
    NONE = "NONE"
