from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Credential:
    """OAuth access token obtained through the client-credentials grant."""

    access_token: str
    token_type: str
    scope: str
    expires_at: datetime

    def is_valid_at(self, now: datetime) -> bool:
        return now < self.expires_at

    @property
    def authorization(self) -> str:
        """Value for the ``Authorization`` header."""
        return f"Bearer {self.access_token}"
