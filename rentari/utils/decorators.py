from functools import wraps

from flask import g, request

from rentari.exceptions import UnauthorizedError
from rentari.utils.security import decode_token


def auth_required(fn):
    """Require 'Authorization: Bearer <jwt>'; exposes the claims on flask.g."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise UnauthorizedError("Unauthorized request")
        claims = decode_token(token.strip())
        if not claims.get("accountId"):
            raise UnauthorizedError("Invalid token")
        g.account_id = claims["accountId"]
        g.username = claims.get("username")
        g.role = claims.get("role") or "user"
        return fn(*args, **kwargs)

    return wrapper
