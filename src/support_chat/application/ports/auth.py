from __future__ import annotations

from typing import Any, Protocol


class SessionDecoder(Protocol):
    """Turns a session token into its verified claims; raises on bad tokens."""

    def decode(self, token: str) -> dict[str, Any]: ...
