from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from budgeteer.config import Settings, get_settings
from budgeteer.db import get_db
from budgeteer.models import User
from budgeteer.utils.gocardless_client import GoCardlessClient
from budgeteer.utils.google_oauth import GoogleOAuth
from budgeteer.utils.session import load_gocardless_tokens, read_session, save_gocardless_tokens


class NotAuthenticated(Exception):
    """No valid session; the app answers with a redirect to the login page."""


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    session = read_session(request)
    if not session:
        raise NotAuthenticated()
    user = db.get(User, session.get("user_id"))
    if not user:
        raise NotAuthenticated()
    return user


def get_gocardless_client(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> GoCardlessClient:
    tokens = load_gocardless_tokens(request)
    # a refreshed pair goes back to the browser with this response
    tokens.on_change = lambda store: save_gocardless_tokens(response, store, settings)
    return GoCardlessClient(settings, tokens)


def get_google_oauth(settings: Settings = Depends(get_settings)) -> GoogleOAuth:
    return GoogleOAuth(settings)
