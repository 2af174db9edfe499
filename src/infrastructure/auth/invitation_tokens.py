"""Signed invitation tokens.

Tokens are compact HS256 JWS strings carrying:
    {
        "rt": "team" | "project",
        "rid": "resource-uuid",
        "email": "invitee@example.com",
        "exp": 1234567890,
        "jti": "invitation-uuid"
    }

They are URL-safe and verifiable without a database round-trip. Only their
SHA-256 is persisted.
"""

import calendar
import hashlib
from datetime import datetime, timezone
from uuid import UUID

from jose import jws, jwt
from jose.exceptions import JOSEError, JWSError

from core.config import settings
from core.exceptions import InvitationTokenError, TokenErrorKind
from domain.entities.invitation import Invitation, InvitationClaims, ResourceType


class InvitationTokenSigner:
    """Issues and verifies invitation tokens with a shared secret."""

    def __init__(
        self,
        secret_key: str = settings.invitation_secret_key,
        algorithm: str = settings.invitation_algorithm,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm

    def sign(self, invitation: Invitation) -> str:
        """Create the token for a persisted (or about to be persisted) invitation."""
        claims = {
            "rt": invitation.resource_type.value,
            "rid": str(invitation.resource_id),
            "email": invitation.email,
            "exp": calendar.timegm(invitation.expires_at.utctimetuple()),
            "jti": str(invitation.id),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str, now: datetime | None = None) -> InvitationClaims:
        """Check signature, structure and expiry, in that order.

        Raises:
            InvitationTokenError: ``reason`` tells MALFORMED, SIGNATURE_INVALID
                and EXPIRED apart.
        """
        try:
            header = jws.get_unverified_header(token)
            payload = jwt.get_unverified_claims(token)
        except JOSEError:
            raise InvitationTokenError(TokenErrorKind.MALFORMED) from None

        # Reject "none" and any algorithm we did not issue with
        if header.get("alg") != self._algorithm:
            raise InvitationTokenError(TokenErrorKind.MALFORMED)

        try:
            jws.verify(token, self._secret_key, algorithms=[self._algorithm])
        except JWSError:
            raise InvitationTokenError(TokenErrorKind.SIGNATURE_INVALID) from None

        claims = self._parse_claims(payload)

        current = now if now is not None else datetime.utcnow()
        if calendar.timegm(current.utctimetuple()) >= calendar.timegm(
            claims.expires_at.utctimetuple()
        ):
            raise InvitationTokenError(TokenErrorKind.EXPIRED)

        return claims

    @staticmethod
    def hash_token(token: str) -> str:
        """Hash a raw invitation token using SHA-256."""
        return hashlib.sha256(token.encode()).hexdigest()

    @staticmethod
    def _parse_claims(payload: dict) -> InvitationClaims:
        try:
            exp = payload["exp"]
            if isinstance(exp, bool) or not isinstance(exp, int):
                raise TypeError("exp must be an integer timestamp")
            email = payload["email"]
            if not isinstance(email, str) or not email:
                raise TypeError("email must be a non-empty string")
            return InvitationClaims(
                resource_type=ResourceType(payload["rt"]),
                resource_id=UUID(payload["rid"]),
                email=email.strip().lower(),
                expires_at=datetime.fromtimestamp(exp, tz=timezone.utc).replace(tzinfo=None),
                invitation_id=UUID(payload["jti"]),
            )
        except (KeyError, TypeError, ValueError, AttributeError, OverflowError, OSError):
            raise InvitationTokenError(TokenErrorKind.MALFORMED) from None
