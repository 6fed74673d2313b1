from __future__ import annotations

from datetime import datetime, timezone

from app.connections.redis import get_redis


REVOKED_PREFIX = "revoked:"


def revoke_token(claims: dict) -> None:
    """Denylist a token id until the token would have expired anyway."""
    key = f"{REVOKED_PREFIX}{claims['jti']}"
    client = get_redis()
    if claims.get("exp") is None:
        client.set(name=key, value="1")
        return
    remaining = int(claims["exp"] - datetime.now(timezone.utc).timestamp())
    if remaining > 0:
        client.setex(name=key, time=remaining, value="1")


def is_token_revoked(jti: str) -> bool:
    return bool(get_redis().exists(f"{REVOKED_PREFIX}{jti}"))
