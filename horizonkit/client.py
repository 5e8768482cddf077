"""
Horizonkit - HTTP client for the Horizon API.

Every collection method returns a fresh ``RequestBuilder`` bound to the
resource's record type; nothing is shared between builders except the
transport.
"""

import logging
from dataclasses import replace
from typing import Any, Optional, Union

import httpx

from .builder import RequestBuilder
from .config import ClientConfig
from .exceptions import ErrorKind, HorizonError
from .federation import FederationServer, resolve
from .filters import buying_asset, selling_asset
from .models import (
    AccountRecord,
    Asset,
    EffectRecord,
    FederationRecord,
    LedgerRecord,
    OfferRecord,
    OperationRecord,
    OrderBookRecord,
    PathRecord,
    RateLimit,
    SubmitTransactionResponse,
    TradeRecord,
    TransactionRecord,
)
from .pagination import PageFetcher
from .transport import HorizonTransport, decode_json, raise_for_status

logger = logging.getLogger("horizonkit.client")


class HorizonClient:
    """
    Synchronous client for a Horizon server.

    Example:
        ```python
        client = HorizonClient("https://horizon-testnet.stellar.org")

        # Latest payments of an account, newest first
        page = (
            client.payments()
            .where(for_account("GABC..."))
            .order(Order.DESC)
            .limit(10)
            .execute()
        )
        for payment in page:
            print(payment.type, payment.attributes.get("amount"))

        # Walk forward from a previously seen page
        older = client.next_page(page)

        # Live ledgers
        session = client.ledgers().cursor("now").stream(print)
        session.close()
        ```
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        config = config or ClientConfig()
        if base_url is not None:
            config = replace(config, horizon_url=base_url)
        self.config = config
        self.base_url = self.config.horizon_url
        self.transport = HorizonTransport(self.config, http_client)
        self.fetcher = PageFetcher(self.transport)

    def _builder(self, resource: str, decoder: Any) -> RequestBuilder[Any]:
        return RequestBuilder(self.fetcher, self.base_url, resource, decoder)

    # ==================== Collections ====================

    def accounts(self) -> RequestBuilder[AccountRecord]:
        return self._builder("accounts", AccountRecord.from_dict)

    def effects(self) -> RequestBuilder[EffectRecord]:
        return self._builder("effects", EffectRecord.from_dict)

    def ledgers(self) -> RequestBuilder[LedgerRecord]:
        return self._builder("ledgers", LedgerRecord.from_dict)

    def offers(self) -> RequestBuilder[OfferRecord]:
        return self._builder("offers", OfferRecord.from_dict)

    def operations(self) -> RequestBuilder[OperationRecord]:
        return self._builder("operations", OperationRecord.from_dict)

    def payments(self) -> RequestBuilder[OperationRecord]:
        return self._builder("payments", OperationRecord.from_dict)

    def transactions(self) -> RequestBuilder[TransactionRecord]:
        return self._builder("transactions", TransactionRecord.from_dict)

    def trades(self) -> RequestBuilder[TradeRecord]:
        return self._builder("order_book/trades", TradeRecord.from_dict)

    def paths(self) -> RequestBuilder[PathRecord]:
        return self._builder("paths", PathRecord.from_dict)

    def order_book(
        self, selling: Optional[Asset] = None, buying: Optional[Asset] = None
    ) -> RequestBuilder[OrderBookRecord]:
        """
        Builder for ``GET /order_book``. Fetch it with ``.record()``; the
        order book is a single snapshot, not a page.
        """
        builder = self._builder("order_book", OrderBookRecord.from_dict)
        if selling is not None:
            builder.where(selling_asset(selling))
        if buying is not None:
            builder.where(buying_asset(buying))
        return builder

    # ==================== Single resources ====================

    def account(self, account_id: str) -> AccountRecord:
        """``GET /accounts/{account_id}``"""
        return self.accounts().set_segments("accounts", account_id).record()

    def ledger(self, sequence: int) -> LedgerRecord:
        """``GET /ledgers/{sequence}``"""
        return self.ledgers().set_segments("ledgers", sequence).record()

    def transaction(self, transaction_hash: str) -> TransactionRecord:
        """``GET /transactions/{hash}``"""
        return self.transactions().set_segments("transactions", transaction_hash).record()

    def operation(self, operation_id: Union[int, str]) -> OperationRecord:
        """``GET /operations/{operation_id}``"""
        return self.operations().set_segments("operations", operation_id).record()

    # ==================== Pagination ====================

    def next_page(self, page):
        """The page after ``page``, or None when there is none."""
        return self.fetcher.next_page(page)

    def previous_page(self, page):
        return self.fetcher.previous_page(page)

    # ==================== Transactions ====================

    def submit_transaction(self, envelope_xdr: str) -> SubmitTransactionResponse:
        """
        Submit a signed transaction envelope.

        Args:
            envelope_xdr: Base64-encoded XDR of the signed envelope.

        Returns:
            The submission result. ``success`` is False when the network
            rejected the transaction (HTTP 400); ``result_codes`` say why.
        """
        if not envelope_xdr:
            raise HorizonError(
                "envelope_xdr is required", kind=ErrorKind.BUILDER_MISUSE
            )
        response = self.transport.post(
            f"{self.base_url}/transactions", data={"tx": envelope_xdr}
        )
        if response.status_code == 400 and response.content:
            data = decode_json(response)
            if isinstance(data, dict) and "extras" in data:
                logger.debug("Transaction rejected: %s", data.get("extras"))
                return SubmitTransactionResponse.from_dict(
                    data, False, RateLimit.from_headers(response.headers)
                )
        raise_for_status(response)
        rate_limit = RateLimit.from_headers(response.headers)
        data = decode_json(response)
        if not isinstance(data, dict):
            raise HorizonError(
                "Transaction response must be a JSON object",
                kind=ErrorKind.DECODE_ERROR,
                response=data,
            )
        return SubmitTransactionResponse.from_dict(data, True, rate_limit)

    # ==================== Federation ====================

    def federation_server(self, domain: str) -> FederationServer:
        """Discover the federation server of ``domain``."""
        return FederationServer.create_for_domain(domain, transport=self.transport)

    def resolve_address(self, address: str) -> FederationRecord:
        """Resolve a ``name*domain`` federation address."""
        return resolve(address, transport=self.transport)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "HorizonClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
