"""
Session token verification.

Sign-in happens at the external identity provider, which issues an HS256 JWT
whose ``sub`` is the user id.  This service only needs to turn that token
back into a user id; token creation is kept for the provider bridge and tests.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt


@dataclass
class TokenPayload:
    """JWT session payload structure."""

    sub: str  # Subject (user ID)
    exp: datetime
    iat: datetime
    type: str


class TokenService:
    """Creates and validates session JWTs."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 60,
    ):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._access_token_expire_minutes = access_token_expire_minutes

    def create_access_token(self, user_id: str) -> str:
        """Create a session token for ``user_id``."""
        now = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "exp": now + timedelta(minutes=self._access_token_expire_minutes),
            "iat": now,
            "type": "access",
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenPayload | None:
        """
        Decode and validate a JWT.

        Returns:
            TokenPayload if valid, None if invalid, expired or incomplete
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except JWTError:
            return None

        if not all(payload.get(field) for field in ("sub", "exp", "type")):
            return None

        return TokenPayload(
            sub=payload["sub"],
            exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
            iat=datetime.fromtimestamp(payload.get("iat", 0), tz=UTC),
            type=payload["type"],
        )

    def verify_access_token(self, token: str) -> TokenPayload | None:
        """Return the payload of a valid session token, None otherwise."""
        payload = self.decode_token(token)
        if payload and payload.type == "access":
            return payload
        return None
