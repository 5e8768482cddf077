"""
Tests for the Horizon client facade.
"""

from urllib.parse import parse_qs

import httpx
import pytest

from horizonkit import (
    Asset,
    ClientConfig,
    ErrorKind,
    HorizonClient,
    HorizonError,
    Order,
    for_account,
)

BASE = "https://horizon.example.org"
ACCOUNT = "GCW667JUHCOP5Y7KY6KGDHNPHFM4CS3FCBQ7QWDUALXTX3PGXLSOEALY"


def make_client(handler, **kwargs):
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return HorizonClient(BASE, http_client=http_client, **kwargs)


class Capture:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return self.response


class TestConfiguration:
    """Tests for client and config setup."""

    def test_base_url_overrides_config(self):
        config = ClientConfig(horizon_url="https://other.example.org")
        client = HorizonClient(f"{BASE}/", config=config)
        assert client.base_url == BASE
        assert config.horizon_url == "https://other.example.org"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("HORIZON_URL", "https://horizon-testnet.stellar.org/")
        monkeypatch.setenv("HORIZON_TIMEOUT", "5")
        config = ClientConfig.from_env()
        assert config.horizon_url == "https://horizon-testnet.stellar.org"
        assert config.timeout == 5.0

    def test_client_headers_sent(self):
        capture = Capture(httpx.Response(200, json={"sequence": 1, "hash": "h"}))
        client = make_client(capture, config=ClientConfig(client_version="9.9.9"))
        client.ledger(1)
        headers = capture.requests[0].headers
        assert headers["X-Client-Name"] == "horizonkit"
        assert headers["X-Client-Version"] == "9.9.9"


class TestBuilders:
    """Tests for the resource builder factories."""

    @pytest.mark.parametrize(
        "factory,path",
        [
            ("accounts", "/accounts"),
            ("effects", "/effects"),
            ("ledgers", "/ledgers"),
            ("offers", "/offers"),
            ("operations", "/operations"),
            ("payments", "/payments"),
            ("transactions", "/transactions"),
            ("trades", "/order_book/trades"),
            ("paths", "/paths"),
            ("order_book", "/order_book"),
        ],
    )
    def test_default_paths(self, factory, path):
        client = HorizonClient(BASE)
        assert getattr(client, factory)().build_uri() == BASE + path

    def test_builders_are_independent(self):
        client = HorizonClient(BASE)
        first = client.payments().where(for_account(ACCOUNT))
        second = client.payments()
        assert second.build_uri() == f"{BASE}/payments"
        assert first.build_uri() == f"{BASE}/accounts/{ACCOUNT}/payments"

    def test_execute_payments_for_account(self):
        body = {
            "_embedded": {
                "records": [
                    {"id": "1", "type": "payment", "amount": "10.0"},
                    {"id": "2", "type": "create_account", "starting_balance": "1.0"},
                ]
            },
            "_links": {"next": {"href": f"{BASE}/accounts/{ACCOUNT}/payments?cursor=2"}},
        }
        capture = Capture(httpx.Response(200, json=body))
        client = make_client(capture)

        page = client.payments().where(for_account(ACCOUNT)).order(Order.DESC).limit(2).execute()

        url = capture.requests[0].url
        assert url.path == f"/accounts/{ACCOUNT}/payments"
        assert url.params["order"] == "desc"
        assert url.params["limit"] == "2"
        assert [op.type for op in page] == ["payment", "create_account"]
        assert page.records[0].attributes["amount"] == "10.0"
        assert page.has_next

    def test_order_book_record(self):
        body = {
            "base": {"asset_type": "native"},
            "counter": {
                "asset_type": "credit_alphanum4",
                "asset_code": "USD",
                "asset_issuer": ACCOUNT,
            },
            "bids": [{"amount": "5.0", "price": "0.2"}],
            "asks": [],
        }
        capture = Capture(httpx.Response(200, json=body))
        client = make_client(capture)

        book = client.order_book(
            selling=Asset.native(), buying=Asset.credit("USD", ACCOUNT)
        ).record()

        params = capture.requests[0].url.params
        assert params["selling_asset_type"] == "native"
        assert "selling_asset_code" not in params
        assert params["buying_asset_code"] == "USD"
        assert params["buying_asset_issuer"] == ACCOUNT
        assert book.bids[0].amount == "5.0"


class TestSingleResources:
    """Tests for single record lookups."""

    def test_account(self):
        capture = Capture(
            httpx.Response(
                200,
                json={
                    "id": ACCOUNT,
                    "account_id": ACCOUNT,
                    "sequence": "42",
                    "balances": [{"asset_type": "native", "balance": "9.5"}],
                },
            )
        )
        account = make_client(capture).account(ACCOUNT)
        assert capture.requests[0].url.path == f"/accounts/{ACCOUNT}"
        assert account.sequence == "42"
        assert account.balances[0].balance == "9.5"

    @pytest.mark.parametrize(
        "method,arg,path",
        [
            ("ledger", 7, "/ledgers/7"),
            ("transaction", "abc", "/transactions/abc"),
            ("operation", 12884905985, "/operations/12884905985"),
        ],
    )
    def test_paths(self, method, arg, path):
        capture = Capture(httpx.Response(404, json={"title": "Resource Missing"}))
        with pytest.raises(HorizonError) as exc:
            getattr(make_client(capture), method)(arg)
        assert exc.value.kind == ErrorKind.NOT_FOUND
        assert capture.requests[0].url.path == path


class TestSubmitTransaction:
    """Tests for transaction submission."""

    def test_success(self):
        capture = Capture(
            httpx.Response(
                200,
                json={"hash": "abc", "ledger": 100, "envelope_xdr": "AAAA", "result_xdr": "BBBB"},
                headers={"X-Ratelimit-Remaining": "10"},
            )
        )
        response = make_client(capture).submit_transaction("AAAA")

        request = capture.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/transactions"
        assert parse_qs(request.content.decode()) == {"tx": ["AAAA"]}
        assert response.success
        assert response.hash == "abc"
        assert response.ledger == 100
        assert response.rate_limit.remaining == 10

    def test_rejected_transaction_decodes(self):
        body = {
            "type": "https://stellar.org/horizon-errors/transaction_failed",
            "status": 400,
            "extras": {
                "envelope_xdr": "AAAA",
                "result_xdr": "CCCC",
                "result_codes": {"transaction": "tx_bad_seq"},
            },
        }
        response = make_client(Capture(httpx.Response(400, json=body))).submit_transaction("AAAA")
        assert response.success is False
        assert response.result_codes["transaction"] == "tx_bad_seq"
        assert response.result_xdr == "CCCC"

    def test_server_error(self):
        client = make_client(Capture(httpx.Response(500)))
        with pytest.raises(HorizonError) as exc:
            client.submit_transaction("AAAA")
        assert exc.value.kind == ErrorKind.SERVER_ERROR

    def test_too_many_requests(self):
        client = make_client(Capture(httpx.Response(429)))
        with pytest.raises(HorizonError) as exc:
            client.submit_transaction("AAAA")
        assert exc.value.kind == ErrorKind.TOO_MANY_REQUESTS

    @pytest.mark.parametrize(
        "status,kind",
        [(429, ErrorKind.TOO_MANY_REQUESTS), (503, ErrorKind.SERVER_ERROR)],
    )
    def test_bad_rate_limit_header_keeps_status_kind(self, status, kind):
        response = httpx.Response(status, headers={"X-Ratelimit-Remaining": "n/a"})
        client = make_client(Capture(response))
        with pytest.raises(HorizonError) as exc:
            client.submit_transaction("AAAA")
        assert exc.value.kind == kind

    def test_empty_envelope_rejected(self):
        capture = Capture(httpx.Response(200))
        with pytest.raises(HorizonError) as exc:
            make_client(capture).submit_transaction("")
        assert exc.value.kind == ErrorKind.BUILDER_MISUSE
        assert capture.requests == []


class TestFederation:
    def test_resolve_address_uses_client_transport(self):
        def handler(request):
            if request.url.path == "/.well-known/stellar.toml":
                return httpx.Response(
                    200, text='FEDERATION_SERVER = "https://fed.example.org/federation"'
                )
            return httpx.Response(
                200, json={"stellar_address": "bob*example.org", "account_id": ACCOUNT}
            )

        record = make_client(handler).resolve_address("bob*example.org")
        assert record.account_id == ACCOUNT


class TestErrors:
    def test_retryable_only_for_rate_limit(self):
        assert HorizonError("x", kind=ErrorKind.TOO_MANY_REQUESTS).retryable
        assert not HorizonError("x", kind=ErrorKind.SERVER_ERROR).retryable

    def test_kind_is_data(self):
        error = HorizonError("gone", kind=ErrorKind.NOT_FOUND, status_code=404)
        assert error.kind.value == "not_found"
        assert "not_found" in repr(error)
