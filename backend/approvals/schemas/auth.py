from __future__ import annotations

from pydantic import BaseModel


class ViewerContext(BaseModel):
    """The manager looking at the incoming queue, resolved from the HR backend."""

    employee_id: int
    full_name: str = ""
    department: str = ""
    permissions: frozenset[str] = frozenset()
    direct_ids: frozenset[int] = frozenset()
    extended_ids: frozenset[int] = frozenset()

    def has_permission(self, code: str) -> bool:
        return code in self.permissions
