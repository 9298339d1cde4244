from approvals.models.enums import (
    DecisionAction,
    LockSource,
    ManagerAction,
    OverrideOutcome,
    Provenance,
    RequestStatus,
    RequestType,
    SourceStream,
)

__all__ = [
    "DecisionAction",
    "LockSource",
    "ManagerAction",
    "OverrideOutcome",
    "Provenance",
    "RequestStatus",
    "RequestType",
    "SourceStream",
]
