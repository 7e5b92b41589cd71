import time
from datetime import timedelta
from typing import Optional, Dict, Any, Callable

import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError

from projecthub.core.exceptions import (
    TokenMalformed,
    TokenExpired,
    TokenSignatureInvalid,
)

DEFAULT_BCRYPT_ROUNDS = 12
DEFAULT_TOKEN_TTL = timedelta(hours=1)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash password with the given bcrypt cost"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


class TokenService:
    """
    Issues and verifies signed, time-limited session tokens (JWT).

    Tokens carry the user id in ``sub`` plus ``iat``/``exp`` as integer epoch
    seconds. There is no revocation: a token is valid until it expires.

    Args:
        secret_key: HMAC signing secret
        algorithm: JWT algorithm (HS256 by default)
        ttl: lifetime of issued tokens
        clock: returns the current epoch time; injectable for tests
    """

    TOKEN_TYPE = "access"

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttl: timedelta = DEFAULT_TOKEN_TTL,
        clock: Callable[[], float] = time.time,
    ):
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl
        self._clock = clock

    def issue(self, user_id: str, extra_claims: Optional[Dict[str, Any]] = None) -> str:
        """Create a token for ``user_id`` expiring exactly ``ttl`` after issuance"""
        now = int(self._clock())
        payload: Dict[str, Any] = dict(extra_claims or {})
        payload.update({
            "sub": str(user_id),
            "iat": now,
            "exp": now + int(self.ttl.total_seconds()),
            "type": self.TOKEN_TYPE,
        })
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Verify ``token`` and return its claims.

        Raises:
            TokenMalformed: not a JWT, or missing the subject/type claims
            TokenExpired: signature is fine but ``exp`` has passed
            TokenSignatureInvalid: signature (or algorithm) does not match
        """
        if not token or not isinstance(token, str):
            raise TokenMalformed("Empty token")

        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as e:
            raise TokenMalformed(str(e)) from e

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpired(str(e)) from e
        except JWTError as e:
            raise TokenSignatureInvalid(str(e)) from e

        if not payload.get("sub") or payload.get("type") != self.TOKEN_TYPE:
            raise TokenMalformed("Token payload is missing required claims")

        return payload

    def verify(self, token: str) -> str:
        """Verify ``token`` and return the user id it was issued for"""
        return str(self.decode(token)["sub"])
