from datetime import timedelta

from flask import current_app
from jose import ExpiredSignatureError, JWTError, jwt
from werkzeug.security import generate_password_hash, check_password_hash

from rentari.exceptions import UnauthorizedError
from rentari.utils.filters import utcnow


def generate_hash(password: str) -> str:
    return generate_password_hash(password)


def check_hash(password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return check_password_hash(hashed, password)
    except (TypeError, ValueError):
        return False


def create_token(claims: dict) -> str:
    """Sign `claims` with the app's JWT secret; expires after JWT_EXPIRE_DAYS."""
    cfg = current_app.config
    payload = dict(claims)
    payload["exp"] = utcnow() + timedelta(days=cfg["JWT_EXPIRE_DAYS"])
    return jwt.encode(payload, cfg["JWT_SECRET"], algorithm=cfg["JWT_ALGORITHM"])


def decode_token(token: str) -> dict:
    cfg = current_app.config
    try:
        return jwt.decode(token, cfg["JWT_SECRET"], algorithms=[cfg["JWT_ALGORITHM"]])
    except ExpiredSignatureError as exc:
        raise UnauthorizedError(
            "Expired token. If you have an open session, log out and log in again."
        ) from exc
    except JWTError as exc:
        raise UnauthorizedError("Invalid token") from exc


def decode_identity_token(id_token: str) -> dict:
    """
    Verify an Auth0 ID token (HS256, signed with the client secret) and
    return the normalized identity: provider, subject, email, username.
    """
    cfg = current_app.config
    secret = cfg.get("AUTH0_CLIENT_SECRET")
    if not secret:
        raise UnauthorizedError("Federated login is not configured")
    options = {"verify_aud": bool(cfg.get("AUTH0_AUDIENCE"))}
    try:
        claims = jwt.decode(
            id_token,
            secret,
            algorithms=["HS256"],
            audience=cfg.get("AUTH0_AUDIENCE") or None,
            issuer=cfg.get("AUTH0_ISSUER") or None,
            options=options,
        )
    except JWTError as exc:
        raise UnauthorizedError("Invalid identity token") from exc
    if not claims.get("sub") or not claims.get("email"):
        raise UnauthorizedError("Identity token lacks subject or email")
    return {
        "provider": "auth0",
        "subject": claims["sub"],
        "email": claims["email"].lower(),
        "username": claims.get("nickname") or claims.get("name") or claims["email"].split("@")[0],
    }
