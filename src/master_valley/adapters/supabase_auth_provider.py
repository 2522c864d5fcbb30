"""Supabase Auth provider."""

import logging
from dataclasses import dataclass

from supabase import AuthError, Client

from master_valley.domain.auth import AuthUser
from master_valley.services.auth import AuthProvider

logger = logging.getLogger(__name__)


@dataclass
class SupabaseAuthProvider(AuthProvider):
    """Validate access tokens with Supabase Auth."""

    client: Client

    def get_user(self, access_token: str) -> AuthUser | None:
        """Return the user for a JWT, or None if Supabase rejects it."""
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError as exc:
            logger.info("Rejected access token: %s", exc)
            return None
        if response is None or response.user is None:
            return None
        return AuthUser(id=str(response.user.id), email=response.user.email)

    def sign_out(self, access_token: str) -> None:
        """Revoke the user's sessions."""
        self.client.auth.admin.sign_out(access_token)
