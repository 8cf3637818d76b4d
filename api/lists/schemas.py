"""
Schemas for list write requests.
"""

from __future__ import annotations

from pydantic import BaseModel


class ListItemWrite(BaseModel):
    """
    Validated values of a POST/PUT body, plus the item it targets.

    Optional text fields are None when absent or empty; the store never
    receives empty strings for them.
    """

    argument: str
    enabled: bool
    comment: str | None = None
    description: str | None = None
    name: str | None = None
    oldtype: str | None = None
    groups: list[int] | None = None

    def echo_fields(self) -> dict:
        """Fields echoed back in a database_error body."""
        echoed: dict = {"enabled": self.enabled}
        for key in ("comment", "description", "name", "oldtype"):
            value = getattr(self, key)
            if value is not None:
                echoed[key] = value
        return echoed
