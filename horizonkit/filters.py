"""
Horizonkit - Filter values for request builders.

Each function returns a callable that mutates a ``RequestBuilder``; apply
them with ``builder.where(...)``. Path filters nest the builder's resource
under a parent, e.g. ``for_account(id)`` on payments builds
``/accounts/{id}/payments``.
"""

from typing import Any

from .builder import RequestBuilder, RequestFilter
from .models import Asset
from .validation import validate_required


def _nested(parent: str, parent_id: Any) -> RequestFilter:
    validate_required(parent_id, f"{parent} id")

    def apply(builder: RequestBuilder[Any]) -> None:
        builder.set_segments(parent, str(parent_id), *builder.resource.split("/"))

    return apply


def for_account(account_id: str) -> RequestFilter:
    """``/accounts/{account_id}/{resource}``"""
    return _nested("accounts", account_id)


def for_ledger(sequence: int) -> RequestFilter:
    """``/ledgers/{sequence}/{resource}``"""
    return _nested("ledgers", sequence)


def for_transaction(transaction_hash: str) -> RequestFilter:
    """``/transactions/{hash}/{resource}``"""
    return _nested("transactions", transaction_hash)


def for_operation(operation_id: int) -> RequestFilter:
    """``/operations/{operation_id}/{resource}``"""
    return _nested("operations", operation_id)


def _asset(prefix: str, asset: Asset) -> RequestFilter:
    params = asset.to_params(prefix)

    def apply(builder: RequestBuilder[Any]) -> None:
        for name, value in params.items():
            builder.param(name, value)

    return apply


def buying_asset(asset: Asset) -> RequestFilter:
    return _asset("buying", asset)


def selling_asset(asset: Asset) -> RequestFilter:
    return _asset("selling", asset)


def destination_asset(asset: Asset) -> RequestFilter:
    return _asset("destination", asset)


def _param(name: str, value: Any) -> RequestFilter:
    validate_required(value, name)

    def apply(builder: RequestBuilder[Any]) -> None:
        builder.param(name, value)

    return apply


def destination_account(account_id: str) -> RequestFilter:
    return _param("destination_account", account_id)


def source_account(account_id: str) -> RequestFilter:
    return _param("source_account", account_id)


def destination_amount(amount: str) -> RequestFilter:
    return _param("destination_amount", amount)
