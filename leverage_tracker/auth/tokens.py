"""Signed, time-limited bearer tokens carrying the user id and name."""

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..errors import InvalidTokenError

TOKEN_SALT = "leverage-tracker-auth"


def _serializer():
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(account):
    return _serializer().dumps({"user_id": account.id, "name": account.name})


def read_token(token):
    try:
        claims = _serializer().loads(token, max_age=current_app.config["TOKEN_MAX_AGE"])
    except SignatureExpired as exc:
        raise InvalidTokenError("Token expired") from exc
    except BadSignature as exc:
        raise InvalidTokenError("Invalid token") from exc
    if not isinstance(claims, dict) or not isinstance(claims.get("user_id"), int):
        raise InvalidTokenError("Invalid token")
    return claims


def bearer_token(request):
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
