import logging
from typing import Optional
from urllib.parse import urlencode

import requests
from pydantic import BaseModel, ValidationError

from budgeteer.config import Settings

logger = logging.getLogger(__name__)

AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
DEFAULT_SCOPES = "openid profile email"


class OAuthError(RuntimeError):
    pass


class GoogleProfile(BaseModel):
    sub: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None


class GoogleOAuth:
    """Authorization-code flow against Google's OAuth2 endpoints."""

    def __init__(self, settings: Settings, http: Optional[requests.Session] = None):
        self.client_id = settings.google_client_id
        self.client_secret = settings.google_client_secret
        self.timeout = settings.gocardless_timeout
        self.http = http or requests.Session()

    def authorization_url(self, state: str, redirect_uri: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": DEFAULT_SCOPES,
            "access_type": "online",
            "include_granted_scopes": "false",
            "state": state,
        }
        return f"{AUTHORIZATION_URL}?{urlencode(params)}"

    def exchange_code(self, code: str, redirect_uri: str) -> str:
        response = self._call("POST", TOKEN_URL, data={
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        })
        access_token = response.get("access_token")
        if not access_token:
            raise OAuthError("Token response without access_token")
        return access_token

    def fetch_profile(self, access_token: str) -> GoogleProfile:
        data = self._call("GET", USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"})
        try:
            return GoogleProfile.model_validate(data)
        except ValidationError as e:
            raise OAuthError("Unexpected userinfo payload") from e

    def _call(self, method, url, **kwargs) -> dict:
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise OAuthError(f"{method} {url} failed: {e}") from e
        if response.status_code >= 400:
            raise OAuthError(f"{method} {url} returned {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise OAuthError(f"{method} {url} returned invalid JSON") from e
