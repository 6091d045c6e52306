"""Target location resolution."""

from __future__ import annotations

from typing import Optional

from safe_wallet.errors import NoTargetError


class TargetResolver:
    """Resolves an optional location, falling back to a configured default."""

    def __init__(self, default_location: Optional[str] = None) -> None:
        self.default_location = default_location or None

    def resolve(self, location: Optional[str] = None) -> str:
        if location:
            return location
        if self.default_location:
            return self.default_location
        raise NoTargetError()
