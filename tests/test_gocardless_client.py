import pytest
import requests

from budgeteer.config import Settings
from budgeteer.utils.gocardless_client import GoCardlessAuthError, GoCardlessClient, GoCardlessError, TokenStore

NOW = 1_700_000_000


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeHttp:
    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        path = url.split("/api/v2", 1)[1]
        self.calls.append({"method": method, "path": path, "headers": headers, "params": params, "json": json, "timeout": timeout})
        route = self.routes.get((method, path))
        if isinstance(route, Exception):
            raise route
        if route is None:
            return FakeResponse(404, {"detail": "Not found"})
        return route


def make_client(routes, tokens):
    settings = Settings(gocardless_secret_id="id", gocardless_secret_key="key", gocardless_timeout=7)
    http = FakeHttp(routes)
    return GoCardlessClient(settings, tokens, http=http), http


INSTITUTIONS = FakeResponse(200, [{"id": "DNB_DNBANOKK", "name": "DNB", "countries": ["NO"]}])


def test_valid_access_token_is_used_as_is():
    tokens = TokenStore({"access": "a1", "access_expires": NOW + 60, "refresh": "r1", "refresh_expires": NOW + 3600}, now=lambda: NOW)
    client, http = make_client({("GET", "/institutions/"): INSTITUTIONS}, tokens)

    institutions = client.list_institutions("no")

    assert [i.id for i in institutions] == ["DNB_DNBANOKK"]
    assert [c["path"] for c in http.calls] == ["/institutions/"]
    assert http.calls[0]["headers"]["Authorization"] == "Bearer a1"
    assert http.calls[0]["params"] == {"country": "no"}
    assert http.calls[0]["timeout"] == 7
    assert tokens.changed is False


def test_expired_access_token_is_refreshed():
    tokens = TokenStore({"access": "old", "access_expires": NOW - 1, "refresh": "r1", "refresh_expires": NOW + 3600}, now=lambda: NOW)
    saved = []
    tokens.on_change = lambda store: saved.append(store.to_dict())
    client, http = make_client({
        ("POST", "/token/refresh/"): FakeResponse(200, {"access": "a2", "access_expires": 86400}),
        ("GET", "/institutions/"): INSTITUTIONS,
    }, tokens)

    client.list_institutions("no")

    assert [c["path"] for c in http.calls] == ["/token/refresh/", "/institutions/"]
    assert http.calls[0]["json"] == {"refresh": "r1"}
    assert "Authorization" not in http.calls[0]["headers"]
    assert http.calls[1]["headers"]["Authorization"] == "Bearer a2"
    assert saved == [{"access": "a2", "access_expires": NOW + 86400, "refresh": "r1", "refresh_expires": NOW + 3600}]


def test_expired_refresh_token_obtains_new_pair():
    tokens = TokenStore({"access": "old", "access_expires": NOW - 1, "refresh": "r-old", "refresh_expires": NOW - 1}, now=lambda: NOW)
    client, http = make_client({
        ("POST", "/token/new/"): FakeResponse(200, {
            "access": "a3", "access_expires": 86400, "refresh": "r3", "refresh_expires": 2592000,
        }),
        ("GET", "/institutions/"): INSTITUTIONS,
    }, tokens)

    client.list_institutions("no")

    assert http.calls[0]["path"] == "/token/new/"
    assert http.calls[0]["json"] == {"secret_id": "id", "secret_key": "key"}
    assert tokens.access == "a3"
    assert tokens.refresh == "r3"
    assert tokens.refresh_expires == NOW + 2592000
    assert tokens.changed is True


def test_token_failure_is_an_auth_error():
    client, http = make_client({("POST", "/token/new/"): FakeResponse(401, {"detail": "bad secret"})}, TokenStore(now=lambda: NOW))

    with pytest.raises(GoCardlessAuthError):
        client.list_institutions("no")
    # never retried
    assert len(http.calls) == 1


def test_missing_institution_and_requisition_are_none():
    tokens = TokenStore({"access": "a1", "access_expires": NOW + 60}, now=lambda: NOW)
    client, http = make_client({}, tokens)

    assert client.get_institution("NOPE") is None
    assert client.get_requisition("req-x") is None
    assert client.get_requisition(None) is None
    assert len(http.calls) == 2


def test_upstream_errors_raise():
    tokens = TokenStore({"access": "a1", "access_expires": NOW + 60}, now=lambda: NOW)
    client, _ = make_client({
        ("GET", "/accounts/acc-1/details/"): FakeResponse(500, {"detail": "boom"}),
        ("GET", "/accounts/acc-1/balances/"): requests.Timeout("read timed out"),
        ("GET", "/accounts/acc-2/details/"): FakeResponse(200, {"unexpected": True}),
    }, tokens)

    with pytest.raises(GoCardlessError) as error:
        client.get_account_details("acc-1")
    assert error.value.status_code == 500

    with pytest.raises(GoCardlessError):
        client.get_account_balances("acc-1")

    with pytest.raises(GoCardlessError):
        client.get_account_details("acc-2")


def test_transactions_are_parsed_with_date_from():
    from datetime import date

    tokens = TokenStore({"access": "a1", "access_expires": NOW + 60}, now=lambda: NOW)
    client, http = make_client({
        ("GET", "/accounts/acc-1/transactions/"): FakeResponse(200, {"transactions": {
            "booked": [{
                "transactionId": "t1",
                "bookingDate": "2024-03-01",
                "transactionAmount": {"amount": "-12.50", "currency": "EUR"},
                "currencyExchange": {"exchangeRate": "11.5", "sourceCurrency": "NOK"},
                "remittanceInformationUnstructuredArray": ["TESCO", "EXPRESS"],
            }],
            "pending": [],
        }}),
    }, tokens)

    result = client.get_account_transactions("acc-1", date(2024, 2, 28))

    assert http.calls[0]["params"] == {"date_from": "2024-02-28"}
    booked = result.booked[0]
    assert booked.transaction_amount.amount == "-12.50"
    assert booked.currency_exchange[0].exchange_rate == "11.5"
    assert booked.description == "TESCO EXPRESS"
    assert result.pending == []
