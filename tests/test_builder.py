"""
Tests for the request builder and filter values.
"""

from unittest.mock import MagicMock

import pytest

from horizonkit.builder import RequestBuilder, RequestDescriptor
from horizonkit.exceptions import ErrorKind, HorizonError
from horizonkit.filters import (
    buying_asset,
    destination_account,
    destination_amount,
    destination_asset,
    for_account,
    for_ledger,
    for_operation,
    for_transaction,
    selling_asset,
    source_account,
)
from horizonkit.models import Asset, OperationRecord, Order

BASE = "https://horizon.example.org"
ACCOUNT = "GCW667JUHCOP5Y7KY6KGDHNPHFM4CS3FCBQ7QWDUALXTX3PGXLSOEALY"


def make_builder(resource="payments", base=BASE):
    return RequestBuilder(MagicMock(), base, resource, OperationRecord.from_dict)


class TestDefaults:
    """Tests for a fresh builder."""

    def test_default_segment(self):
        builder = make_builder()
        assert builder.segments == ("payments",)
        assert builder.build_uri() == f"{BASE}/payments"

    def test_nested_default_resource(self):
        builder = make_builder("order_book/trades")
        assert builder.build_uri() == f"{BASE}/order_book/trades"

    def test_base_path_is_kept(self):
        builder = make_builder("ledgers", base="https://example.org/horizon/")
        assert builder.build_uri() == "https://example.org/horizon/ledgers"


class TestQueryParameters:
    """Tests for cursor, limit and order."""

    def test_cursor_limit_order(self):
        uri = make_builder().cursor("now").limit(20).order(Order.DESC).build_uri()
        assert uri == f"{BASE}/payments?cursor=now&limit=20&order=desc"

    def test_order_accepts_string(self):
        assert make_builder().order("asc").params == {"order": "asc"}

    def test_last_write_wins(self):
        builder = make_builder().limit(10).cursor("a").limit(50)
        assert builder.params == {"limit": "50", "cursor": "a"}

    def test_invalid_order(self):
        with pytest.raises(HorizonError) as exc:
            make_builder().order("sideways")
        assert exc.value.kind == ErrorKind.BUILDER_MISUSE

    @pytest.mark.parametrize("limit", [0, -5])
    def test_invalid_limit(self, limit):
        with pytest.raises(HorizonError) as exc:
            make_builder().limit(limit)
        assert exc.value.kind == ErrorKind.BUILDER_MISUSE


class TestSegments:
    """Tests for the write-once path."""

    def test_set_segments_replaces_default(self):
        builder = make_builder("accounts").set_segments("accounts", ACCOUNT)
        assert builder.build_uri() == f"{BASE}/accounts/{ACCOUNT}"

    def test_second_set_fails_and_keeps_first(self):
        builder = make_builder().where(for_account(ACCOUNT))
        with pytest.raises(HorizonError) as exc:
            builder.where(for_ledger(5))
        assert exc.value.kind == ErrorKind.BUILDER_MISUSE
        assert builder.build_uri() == f"{BASE}/accounts/{ACCOUNT}/payments"

    def test_invalid_segment_leaves_path_unset(self):
        builder = make_builder()
        with pytest.raises(HorizonError):
            builder.set_segments("accounts", "a/b")
        builder.set_segments("ledgers")
        assert builder.segments == ("ledgers",)

    def test_segments_are_percent_encoded(self):
        builder = make_builder().set_segments("transactions", "a b")
        assert builder.build_uri() == f"{BASE}/transactions/a%20b"


class TestBuild:
    """Tests for the finalized descriptor."""

    def test_build_is_repeatable(self):
        builder = make_builder().limit(5)
        assert builder.build() == builder.build()
        assert isinstance(builder.build(), RequestDescriptor)

    def test_descriptor_is_detached_from_builder(self):
        builder = make_builder().limit(5)
        descriptor = builder.build()
        builder.cursor("later")
        assert "cursor" not in descriptor.uri

    def test_descriptor_is_immutable(self):
        descriptor = make_builder().build()
        with pytest.raises(AttributeError):
            descriptor.segments = ("ledgers",)


class TestPathFilters:
    """Tests for filters that nest the resource under a parent."""

    @pytest.mark.parametrize(
        "request_filter,expected",
        [
            (for_account(ACCOUNT), f"/accounts/{ACCOUNT}/effects"),
            (for_ledger(123), "/ledgers/123/effects"),
            (for_transaction("abc123"), "/transactions/abc123/effects"),
            (for_operation(456), "/operations/456/effects"),
        ],
    )
    def test_nested_paths(self, request_filter, expected):
        builder = make_builder("effects").where(request_filter)
        assert builder.build_uri() == BASE + expected

    def test_missing_id_rejected(self):
        with pytest.raises(HorizonError):
            for_account(None)


class TestAssetFilters:
    """Tests for asset-shaped query parameters."""

    def test_native_asset_has_only_type(self):
        builder = make_builder("order_book").where(selling_asset(Asset.native()))
        assert builder.params == {"selling_asset_type": "native"}

    def test_credit_asset_has_code_and_issuer(self):
        builder = make_builder("order_book").where(buying_asset(Asset.credit("USD", ACCOUNT)))
        assert builder.params == {
            "buying_asset_type": "credit_alphanum4",
            "buying_asset_code": "USD",
            "buying_asset_issuer": ACCOUNT,
        }

    def test_paths_query(self):
        builder = make_builder("paths").where(
            source_account(ACCOUNT),
            destination_account(ACCOUNT),
            destination_asset(Asset.credit("EURT", ACCOUNT)),
            destination_amount("20.5"),
        )
        assert builder.params == {
            "source_account": ACCOUNT,
            "destination_account": ACCOUNT,
            "destination_asset_type": "credit_alphanum4",
            "destination_asset_code": "EURT",
            "destination_asset_issuer": ACCOUNT,
            "destination_amount": "20.5",
        }
        assert builder.segments == ("paths",)
