"""Domain models for authenticated users."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthUser:
    """A user reported by the authentication provider."""

    id: str
    email: str | None = None
