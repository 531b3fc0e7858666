from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import jwt
from jwt import InvalidTokenError

from ..domain.repositories import AuthProvider, CurrentUser


def create_access_token(
    *,
    user_id: int,
    secret: str,
    algorithm: str = "HS256",
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=30))
    payload = {"sub": str(user_id), "iat": now, "exp": exp}
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(
    token: str,
    *,
    secret: str,
    algorithms: Sequence[str],
) -> int:
    try:
        payload = jwt.decode(token, secret, algorithms=list(algorithms))
    except InvalidTokenError as exc:  # includes ExpiredSignatureError
        raise ValueError("invalid token") from exc

    sub = payload.get("sub")
    if sub is None:
        raise ValueError("token missing sub")
    try:
        return int(sub)
    except (TypeError, ValueError) as exc:
        raise ValueError("token sub is not an integer") from exc


class BearerTokenAuthProvider(AuthProvider):
    """Resolves the caller from a bearer token; any token problem means no user."""

    def __init__(self, token: Optional[str], *, secret: str, algorithms: Sequence[str]) -> None:
        self.token = token
        self.secret = secret
        self.algorithms = tuple(algorithms)

    async def get_current_user(self) -> CurrentUser | None:
        if not self.token:
            return None
        try:
            user_id = decode_access_token(self.token, secret=self.secret, algorithms=self.algorithms)
        except ValueError:
            return None
        return CurrentUser(id=user_id)
