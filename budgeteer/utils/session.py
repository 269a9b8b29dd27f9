"""Signed cookies: the user session and the GoCardless token pair.

Both cookies are Fernet tokens, so they are authenticated and opaque to the
browser. The session cookie is additionally rejected after 24 hours.
"""
from typing import Optional

from fastapi import Request, Response

from budgeteer.config import Settings
from budgeteer.utils.crypto import decrypt_json, encrypt_json
from budgeteer.utils.gocardless_client import TokenStore

SESSION_COOKIE = "__session"
GOCARDLESS_COOKIE = "__gocardless"
OAUTH_STATE_COOKIE = "__oauth_state"

SESSION_MAX_AGE = 60 * 60 * 24 # 24 hours
GOCARDLESS_MAX_AGE = 60 * 60 * 24 * 30 # refresh token lifetime
OAUTH_STATE_MAX_AGE = 60 * 10


def set_signed_cookie(response: Response, name: str, payload: dict, settings: Settings, max_age: int):
    response.set_cookie(
        name,
        encrypt_json(payload),
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def read_signed_cookie(request: Request, name: str, max_age: Optional[int] = None) -> Optional[dict]:
    return decrypt_json(request.cookies.get(name), ttl=max_age)


def start_session(response: Response, user, settings: Settings):
    set_signed_cookie(response, SESSION_COOKIE, {"user_id": user.id, "email": user.email}, settings, SESSION_MAX_AGE)


def read_session(request: Request) -> Optional[dict]:
    return read_signed_cookie(request, SESSION_COOKIE, SESSION_MAX_AGE)


def end_session(response: Response):
    for name in (SESSION_COOKIE, GOCARDLESS_COOKIE):
        response.delete_cookie(name, path="/")


def load_gocardless_tokens(request: Request) -> TokenStore:
    return TokenStore(read_signed_cookie(request, GOCARDLESS_COOKIE))


def save_gocardless_tokens(response: Response, tokens: TokenStore, settings: Settings):
    if tokens.changed:
        set_signed_cookie(response, GOCARDLESS_COOKIE, tokens.to_dict(), settings, GOCARDLESS_MAX_AGE)


def carry_cookies(source: Response, target: Response) -> Response:
    """Copy Set-Cookie headers onto a response built inside the handler."""
    for value in source.headers.getlist("set-cookie"):
        target.headers.append("set-cookie", value)
    return target
