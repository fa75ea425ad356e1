"""Error values carried by failed results."""

from __future__ import annotations

from dataclasses import dataclass

ERROR_INVALID_ARGUMENT = 1
ERROR_OBJECT_DESTROYED = 2


@dataclass(frozen=True)
class Error:
    """An error code with an optional context code and description."""

    code: int
    context: int = 0
    info: str | None = None

    def __str__(self) -> str:
        text = f"error {self.code} (context {self.context})"
        if self.info is not None:
            text = f"{text}: {self.info}"
        return text