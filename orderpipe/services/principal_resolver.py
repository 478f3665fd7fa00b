# orderpipe/services/principal_resolver.py
from datetime import datetime, timedelta, timezone

import jwt

from orderpipe.domain.errors import Unauthenticated
from orderpipe.services.access_guard import Principal, Role
from orderpipe.utils.settings import JWT_SECRET, JWT_ALGORITHM, JWT_TTL_SECONDS
from orderpipe.utils.logging import get_logger

logger = get_logger(__name__)

# token role claims as issued by the auth service
_ROLE_CLAIMS = {
    "ROLE_USER": Role.CUSTOMER,
    "ROLE_OWNER": Role.OWNER,
}
_CLAIM_FOR_ROLE = {role: claim for claim, role in _ROLE_CLAIMS.items()}


class PrincipalResolver:
    """Maps a bearer credential (HS256 JWT) to the acting principal."""

    def __init__(self, secret: str | None = None, algorithm: str | None = None):
        self.secret = secret or JWT_SECRET
        self.algorithm = algorithm or JWT_ALGORITHM

    def resolve(self, credential: str | None) -> Principal:
        if not credential:
            raise Unauthenticated("Missing credential")

        token = credential.strip()
        if token.lower().startswith("bearer "):
            token = token[7:].strip()

        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise Unauthenticated("Token expired")
        except jwt.InvalidTokenError as e:
            logger.info(f"Rejected token: {e}")
            raise Unauthenticated("Invalid token")

        role = _ROLE_CLAIMS.get(claims.get("role"))
        if role is None:
            raise Unauthenticated("Unknown role")

        try:
            user_id = int(claims.get("userId", claims["sub"]))
        except (TypeError, ValueError):
            raise Unauthenticated("Invalid subject")

        return Principal(user_id=user_id, role=role)

    def issue(self, user_id: int, role: Role, ttl_seconds: int | None = None) -> str:
        now = datetime.now(timezone.utc)
        ttl = ttl_seconds if ttl_seconds is not None else JWT_TTL_SECONDS
        payload = {
            "sub": str(user_id),
            "userId": user_id,
            "role": _CLAIM_FOR_ROLE[Role(role)],
            "iat": now,
            "exp": now + timedelta(seconds=ttl),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)
