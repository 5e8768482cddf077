"""
Horizonkit - Python client for the Stellar Horizon API and federation protocol.

Query builders, cursor pagination and SSE streaming for Horizon resources,
plus ``name*domain`` address resolution.
"""

from .builder import RequestBuilder, RequestDescriptor, RequestFilter
from .client import HorizonClient
from .config import ClientConfig
from .exceptions import ErrorKind, HorizonError
from .federation import FederationServer, resolve, split_address
from .filters import (
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
from .models import (
    AccountRecord,
    Asset,
    Balance,
    EffectRecord,
    FederationRecord,
    LedgerRecord,
    Link,
    OfferRecord,
    OperationRecord,
    Order,
    OrderBookRecord,
    OrderBookRow,
    Page,
    PageLinks,
    PathRecord,
    RateLimit,
    StreamState,
    SubmitTransactionResponse,
    TradeRecord,
    TransactionRecord,
)
from .pagination import PageFetcher
from .streaming import RecordQueue, SSEEvent, StreamSession, is_keepalive
from .transport import HorizonTransport
from .validation import InputValidationError

__version__ = "0.3.0"
__all__ = [
    "HorizonClient",
    "ClientConfig",
    "HorizonTransport",
    "HorizonError",
    "ErrorKind",
    "InputValidationError",
    # Building and paging
    "RequestBuilder",
    "RequestDescriptor",
    "RequestFilter",
    "PageFetcher",
    "Page",
    "PageLinks",
    "Link",
    "Order",
    "RateLimit",
    # Filters
    "for_account",
    "for_ledger",
    "for_transaction",
    "for_operation",
    "buying_asset",
    "selling_asset",
    "destination_asset",
    "destination_account",
    "source_account",
    "destination_amount",
    # Streaming
    "StreamSession",
    "StreamState",
    "RecordQueue",
    "SSEEvent",
    "is_keepalive",
    # Federation
    "FederationServer",
    "FederationRecord",
    "resolve",
    "split_address",
    # Records
    "Asset",
    "Balance",
    "AccountRecord",
    "LedgerRecord",
    "TransactionRecord",
    "OperationRecord",
    "EffectRecord",
    "OfferRecord",
    "TradeRecord",
    "OrderBookRecord",
    "OrderBookRow",
    "PathRecord",
    "SubmitTransactionResponse",
]
