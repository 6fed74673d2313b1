import uuid
from datetime import datetime, timedelta, timezone

import structlog
from bson import ObjectId
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError

from app.models.user import User
from app.services.denylist import is_token_revoked
from app.utils.base import ApiError, ErrorKind
from app.utils.config import settings


logger = structlog.get_logger()
bearer_scheme = HTTPBearer(auto_error=False)


class AuthRejected(Exception):
    """Internal reason for a rejected token; never shown to the client."""


def issue_token(user: User) -> str:
    """Create a signed JWT bound to the user's id and token version."""
    now = datetime.now(timezone.utc)
    payload = {
        "userId": str(user.id),
        "tv": user.token_version,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
    }
    if settings.access_token_expires_minutes is not None:
        payload["exp"] = int((now + timedelta(minutes=settings.access_token_expires_minutes)).timestamp())
    return jwt.encode(
        payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        headers={"kid": settings.jwt_key_id},
    )


def decode_token(token: str) -> dict:
    """Verify a token against the key named by its `kid` header and return its claims."""
    try:
        key_id = jwt.get_unverified_header(token).get("kid")
    except JWTError as exc:
        raise AuthRejected("malformed") from exc

    if key_id is not None and not isinstance(key_id, str):
        raise AuthRejected("malformed")

    key = settings.signing_key(key_id)
    if key is None:
        raise AuthRejected("unknown_key")

    try:
        payload = jwt.decode(token, key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthRejected("invalid_signature_or_expired") from exc

    if not payload.get("userId") or not payload.get("tv") or not payload.get("jti"):
        raise AuthRejected("missing_claims")
    return payload


def resolve_user(token: str) -> tuple[User, dict]:
    """Map a bearer token to its stored user, or raise AuthRejected."""
    payload = decode_token(token)

    if is_token_revoked(payload["jti"]):
        raise AuthRejected("revoked")

    user_id = payload["userId"]
    if not ObjectId.is_valid(user_id):
        raise AuthRejected("bad_user_id")
    user = User.objects(id=user_id).first()
    if not user:
        raise AuthRejected("user_missing")
    if user.token_version != payload["tv"]:
        raise AuthRejected("stale_token_version")
    return user, payload


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    """Auth dependency that resolves the bearer token to a user.

    Every failure is the same 401 so callers cannot tell a bad token
    from a deleted user. The resolved user and claims are kept on
    request.state for downstream handlers.
    """
    try:
        if credentials is None:
            raise AuthRejected("missing_token")
        user, claims = resolve_user(credentials.credentials)
    except AuthRejected as exc:
        logger.info("auth.rejected", reason=str(exc), path=request.url.path)
        raise ApiError(ErrorKind.UNAUTHORIZED)

    request.state.user = user
    request.state.token_claims = claims
    return user


def get_token_claims(request: Request, current_user: User = Depends(get_current_user)) -> dict:
    return request.state.token_claims
