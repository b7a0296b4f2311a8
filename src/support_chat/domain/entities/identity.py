from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Customer:
    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None

    @property
    def display_name(self) -> str:
        full_name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full_name or self.email


@dataclass(frozen=True, slots=True)
class AdminUser:
    id: int
    email: str

    @property
    def display_name(self) -> str:
        return self.email
