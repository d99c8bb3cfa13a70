"""Result type returned by service actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class ActionResult:
    """Outcome of a service action, shown to the agent as-is."""

    success: bool
    message: str
    error: str | None = None
    input_error: bool = False
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    @classmethod
    def ok(cls, message: str, **data: Any) -> "ActionResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, error: str | None = None, input_error: bool = False) -> "ActionResult":
        return cls(success=False, message=message, error=error, input_error=input_error)
