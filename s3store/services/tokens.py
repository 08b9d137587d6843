from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VersionToken:
    """Opaque identity of an object's current content, as issued by the service.

    Only equality is meaningful. The wrapped value is passed back to the
    service verbatim and never parsed, ordered or used as a mapping key.
    """

    value: str

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value:
            raise ValueError("VersionToken requires a non-empty string")

    def __str__(self) -> str:
        return self.value
