"""Authorization gate backed by the external auth provider."""

from dataclasses import dataclass
from typing import Protocol

from master_valley.domain.auth import AuthUser
from master_valley.domain.errors import NotAuthorizedError


class AuthProvider(Protocol):
    """Interface for the external authentication provider."""

    def get_user(self, access_token: str) -> AuthUser | None:
        """Return the user owning the token, if it is valid."""

    def sign_out(self, access_token: str) -> None:
        """Invalidate the token with the provider."""


@dataclass
class AuthService:
    """Resolve access tokens to users and sign them out."""

    provider: AuthProvider

    def authorize(self, access_token: str | None) -> AuthUser:
        """Return the authenticated user or raise NotAuthorizedError."""
        if not access_token:
            raise NotAuthorizedError("Missing access token")
        user = self.provider.get_user(access_token)
        if user is None:
            raise NotAuthorizedError("Invalid access token")
        return user

    def sign_out(self, access_token: str) -> None:
        self.provider.sign_out(access_token)
