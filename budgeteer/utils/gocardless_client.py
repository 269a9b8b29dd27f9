"""Thin client for the GoCardless Bank Account Data REST API.

Every call goes through ``_request`` which makes sure a valid access token is
present (refreshing or re-obtaining it when needed), applies the configured
timeout and records the call in the ``gocardless_calls`` log.
"""
import logging
import os
import threading
import time
from datetime import date
from typing import Callable, List, Optional

import requests
from pydantic import ValidationError

from budgeteer.config import Settings
from budgeteer.schemas.gocardless_schemas import (
    AccountBalances,
    AccountDetails,
    AccountTransactions,
    Institution,
    Requisition,
    TokenPair,
)

# Set up logger
call_logger = logging.getLogger("gocardless_calls")
call_logger.setLevel(logging.INFO)
formatter = logging.Formatter('%(asctime)s - %(message)s')

def configure_call_log(path: Optional[str]):
    """Mirror aggregator calls into a file in addition to the root handlers."""
    if not path:
        return
    if any(isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(path) for h in call_logger.handlers):
        return
    handler = logging.FileHandler(path)
    handler.setFormatter(formatter)
    call_logger.addHandler(handler)

def log_gocardless_call(endpoint_name, details=""):
    call_logger.info(f"GOCARDLESS API CALL: {endpoint_name} | {details}")
# ------------------------


class GoCardlessError(RuntimeError):
    """Any failed aggregator call. Surfaced to users as an opaque 500."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GoCardlessAuthError(GoCardlessError):
    """The integration could not obtain or refresh its access token."""


class TokenStore:
    """Access/refresh token pair with absolute expiry times (epoch seconds)."""

    def __init__(self, data: Optional[dict] = None, now: Callable[[], float] = time.time):
        data = data or {}
        self.access = data.get("access")
        self.access_expires = data.get("access_expires") or 0
        self.refresh = data.get("refresh")
        self.refresh_expires = data.get("refresh_expires") or 0
        self.changed = False
        self.on_change = None
        self.lock = threading.Lock()
        self._now = now

    def access_valid(self) -> bool:
        return bool(self.access) and self.access_expires > self._now()

    def refresh_valid(self) -> bool:
        return bool(self.refresh) and self.refresh_expires > self._now()

    def store(self, pair: TokenPair):
        now = self._now()
        self.access = pair.access
        self.access_expires = now + pair.access_expires
        # /token/refresh/ only returns a new access token
        if pair.refresh:
            self.refresh = pair.refresh
            self.refresh_expires = now + (pair.refresh_expires or 0)
        self.changed = True
        if self.on_change:
            self.on_change(self)

    def to_dict(self) -> dict:
        return {
            "access": self.access,
            "access_expires": self.access_expires,
            "refresh": self.refresh,
            "refresh_expires": self.refresh_expires,
        }


class GoCardlessClient:
    def __init__(self, settings: Settings, tokens: TokenStore, http: Optional[requests.Session] = None):
        self.settings = settings
        self.tokens = tokens
        self.base_url = settings.gocardless_base_url.rstrip("/")
        self.timeout = settings.gocardless_timeout
        self.http = http or requests.Session()

    # Tokens
    def obtain_token(self) -> TokenPair:
        data = self._request("POST", "/token/new/", auth=False, json={
            "secret_id": self.settings.gocardless_secret_id,
            "secret_key": self.settings.gocardless_secret_key,
        })
        return self._parse(TokenPair, data)

    def refresh_access_token(self, refresh: str) -> TokenPair:
        data = self._request("POST", "/token/refresh/", auth=False, json={"refresh": refresh})
        return self._parse(TokenPair, data)

    def ensure_access_token(self) -> str:
        with self.tokens.lock:
            if self.tokens.access_valid():
                return self.tokens.access
            try:
                if self.tokens.refresh_valid():
                    pair = self.refresh_access_token(self.tokens.refresh)
                else:
                    pair = self.obtain_token()
            except GoCardlessError as e:
                raise GoCardlessAuthError("Could not authenticate with GoCardless", e.status_code) from e
            self.tokens.store(pair)
            return self.tokens.access

    # Institutions
    def list_institutions(self, country: str) -> List[Institution]:
        data = self._request("GET", "/institutions/", params={"country": country})
        return [self._parse(Institution, item) for item in data]

    def get_institution(self, institution_id: str) -> Optional[Institution]:
        data = self._request("GET", f"/institutions/{institution_id}/", allow_404=True)
        return self._parse(Institution, data) if data is not None else None

    # Requisitions
    def create_requisition(self, institution_id: str, redirect: str) -> Requisition:
        data = self._request("POST", "/requisitions/", json={
            "institution_id": institution_id,
            "redirect": redirect,
        })
        return self._parse(Requisition, data)

    def get_requisition(self, requisition_id: Optional[str]) -> Optional[Requisition]:
        if not requisition_id:
            return None
        data = self._request("GET", f"/requisitions/{requisition_id}/", allow_404=True)
        return self._parse(Requisition, data) if data is not None else None

    # Accounts
    def get_account_details(self, account_id: str) -> AccountDetails:
        return self._parse(AccountDetails, self._request("GET", f"/accounts/{account_id}/details/"))

    def get_account_balances(self, account_id: str) -> AccountBalances:
        return self._parse(AccountBalances, self._request("GET", f"/accounts/{account_id}/balances/"))

    def get_account_transactions(self, account_id: str, date_from: Optional[date] = None) -> AccountTransactions:
        params = {"date_from": date_from.isoformat()} if date_from else None
        data = self._request("GET", f"/accounts/{account_id}/transactions/", params=params)
        return self._parse(AccountTransactions, (data or {}).get("transactions") or {})

    @staticmethod
    def _parse(model, data):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise GoCardlessError(f"Unexpected {model.__name__} payload ({e.error_count()} errors)") from e

    def _request(self, method, path, *, auth=True, params=None, json=None, allow_404=False):
        headers = {"Accept": "application/json"}
        if auth:
            headers["Authorization"] = f"Bearer {self.ensure_access_token()}"

        log_gocardless_call(f"{method} {path}", f"params={params}" if params else "")
        try:
            response = self.http.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GoCardlessError(f"{method} {path} failed: {e}") from e

        if allow_404 and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise GoCardlessError(
                f"{method} {path} returned {response.status_code}: {response.text[:200]}",
                response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise GoCardlessError(f"{method} {path} returned invalid JSON") from e
