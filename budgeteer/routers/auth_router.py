import secrets

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from budgeteer.config import Settings, get_settings
from budgeteer.db import get_db
from budgeteer.dependencies import get_current_user, get_google_oauth
from budgeteer.models import User
from budgeteer.services.user_service import login_google_user, serialize_user
from budgeteer.utils.google_oauth import GoogleOAuth
from budgeteer.utils.session import (
    OAUTH_STATE_COOKIE,
    OAUTH_STATE_MAX_AGE,
    end_session,
    read_signed_cookie,
    set_signed_cookie,
    start_session,
)

auth_router = APIRouter()


def callback_url(settings: Settings) -> str:
    return f"{settings.public_base_url.rstrip('/')}/auth/google/callback"


@auth_router.get("/auth/login")
def login(settings: Settings = Depends(get_settings), oauth: GoogleOAuth = Depends(get_google_oauth)):
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(oauth.authorization_url(state, callback_url(settings)), status_code=303)
    set_signed_cookie(response, OAUTH_STATE_COOKIE, {"state": state}, settings, OAUTH_STATE_MAX_AGE)
    return response


@auth_router.get("/auth/google/callback")
def google_callback(
    request: Request,
    code: str = "",
    state: str = "",
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    oauth: GoogleOAuth = Depends(get_google_oauth),
):
    stored = read_signed_cookie(request, OAUTH_STATE_COOKIE, OAUTH_STATE_MAX_AGE)
    if not code or not stored or not secrets.compare_digest(stored.get("state", ""), state):
        raise HTTPException(status_code=400, detail="Invalid OAuth state")

    access_token = oauth.exchange_code(code, callback_url(settings))
    profile = oauth.fetch_profile(access_token)
    user = login_google_user(db, profile)

    response = RedirectResponse("/", status_code=303)
    start_session(response, user, settings)
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/")
    return response


@auth_router.post("/auth/logout")
def logout(response: Response):
    end_session(response)
    return {"message": "Logged out"}


@auth_router.get("/profile")
def profile(user: User = Depends(get_current_user)):
    return serialize_user(user)
