"""
Horizonkit - Data models for Horizon resources and the federation protocol.

Resource records keep the fields most callers need as attributes and the full
decoded payload in ``raw``.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

from .exceptions import ErrorKind, HorizonError
from .validation import validate_asset_code, validate_required

T = TypeVar("T")

RATE_LIMIT_LIMIT_HEADER = "X-Ratelimit-Limit"
RATE_LIMIT_REMAINING_HEADER = "X-Ratelimit-Remaining"
RATE_LIMIT_RESET_HEADER = "X-Ratelimit-Reset"


class Order(str, Enum):
    """Sort direction for collection endpoints."""

    ASC = "asc"
    DESC = "desc"


class StreamState(str, Enum):
    """Lifecycle of a stream session."""

    OPEN = "open"
    RECEIVING = "receiving"
    CLOSED = "closed"


@dataclass(frozen=True)
class RateLimit:
    """
    Quota headers of the response that produced a result.

    Absent headers leave the matching value at zero.
    """

    limit: int = 0
    remaining: int = 0
    reset: int = 0

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimit":
        return cls(
            limit=_header_int(headers, RATE_LIMIT_LIMIT_HEADER),
            remaining=_header_int(headers, RATE_LIMIT_REMAINING_HEADER),
            reset=_header_int(headers, RATE_LIMIT_RESET_HEADER),
        )


def _header_int(headers: Mapping[str, str], name: str) -> int:
    value = headers.get(name)
    if value is None:
        return 0
    try:
        return int(value.strip())
    except ValueError as e:
        raise HorizonError(
            f"Header {name} is not an integer: {value!r}",
            kind=ErrorKind.DECODE_ERROR,
        ) from e


@dataclass(frozen=True)
class Link:
    href: str
    templated: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["Link"]:
        if data is None:
            return None
        href = data.get("href") if isinstance(data, dict) else None
        if not isinstance(data, dict) or not isinstance(href, (str, type(None))):
            raise HorizonError(
                f"Link must be an object with a string href: {data!r}",
                kind=ErrorKind.DECODE_ERROR,
                response=data,
            )
        if not href:
            return None
        return cls(href=href, templated=bool(data.get("templated", False)))


@dataclass(frozen=True)
class PageLinks:
    """Navigation links of a page envelope. ``None`` means no such page."""

    self: Optional[Link] = None
    next: Optional[Link] = None
    prev: Optional[Link] = None

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "PageLinks":
        data = data or {}
        return cls(
            self=Link.from_dict(data.get("self")),
            next=Link.from_dict(data.get("next")),
            prev=Link.from_dict(data.get("prev")),
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    One decoded page of a collection.

    ``decoder`` is the record decoder the page was built with, so that the
    neighbouring pages can be fetched with the same record type.
    """

    records: list[T]
    links: PageLinks = field(default_factory=PageLinks)
    rate_limit: RateLimit = field(default_factory=RateLimit)
    decoder: Optional[Callable[[dict[str, Any]], T]] = field(
        default=None, repr=False, compare=False
    )

    @property
    def has_next(self) -> bool:
        return self.links.next is not None

    @property
    def has_prev(self) -> bool:
        return self.links.prev is not None

    def __iter__(self) -> Iterator[T]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class Asset:
    """A ledger asset: the native lumen or a credit issued by an account."""

    code: Optional[str] = None
    issuer: Optional[str] = None

    def __post_init__(self):
        if self.code is None and self.issuer is None:
            return
        validate_asset_code(self.code, "asset code")
        validate_required(self.issuer, "asset issuer")

    @classmethod
    def native(cls) -> "Asset":
        return cls()

    @classmethod
    def credit(cls, code: str, issuer: str) -> "Asset":
        return cls(code=code, issuer=issuer)

    @property
    def is_native(self) -> bool:
        return self.code is None

    @property
    def type(self) -> str:
        if self.is_native:
            return "native"
        if len(self.code) <= 4:
            return "credit_alphanum4"
        return "credit_alphanum12"

    def to_params(self, prefix: str) -> dict[str, str]:
        """Query parameters for this asset, e.g. ``buying_asset_type``."""
        params = {f"{prefix}_asset_type": self.type}
        if not self.is_native:
            params[f"{prefix}_asset_code"] = self.code
            params[f"{prefix}_asset_issuer"] = self.issuer
        return params

    @classmethod
    def from_dict(cls, data: dict[str, Any], prefix: str = "") -> "Asset":
        key = f"{prefix}_" if prefix else ""
        if data.get(f"{key}asset_type", "native") == "native":
            return cls.native()
        return cls.credit(data[f"{key}asset_code"], data[f"{key}asset_issuer"])

    def __str__(self) -> str:
        return "native" if self.is_native else f"{self.code}:{self.issuer}"


# ==================== Resource records ====================


@dataclass
class Balance:
    asset: Asset
    balance: str
    limit: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Balance":
        return cls(
            asset=Asset.from_dict(data),
            balance=data["balance"],
            limit=data.get("limit"),
        )


@dataclass
class AccountRecord:
    account_id: str
    sequence: str
    paging_token: str = ""
    subentry_count: int = 0
    balances: list[Balance] = field(default_factory=list)
    thresholds: dict[str, int] = field(default_factory=dict)
    flags: dict[str, bool] = field(default_factory=dict)
    signers: list[dict[str, Any]] = field(default_factory=list)
    data: dict[str, str] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountRecord":
        return cls(
            account_id=data.get("account_id") or data["id"],
            sequence=str(data["sequence"]),
            paging_token=data.get("paging_token", ""),
            subentry_count=data.get("subentry_count", 0),
            balances=[Balance.from_dict(b) for b in data.get("balances", [])],
            thresholds=data.get("thresholds", {}),
            flags=data.get("flags", {}),
            signers=data.get("signers", []),
            data=data.get("data", {}),
            raw=data,
        )


@dataclass
class LedgerRecord:
    sequence: int
    hash: str
    paging_token: str = ""
    prev_hash: Optional[str] = None
    transaction_count: int = 0
    operation_count: int = 0
    closed_at: Optional[str] = None
    total_coins: Optional[str] = None
    fee_pool: Optional[str] = None
    base_fee: Optional[int] = None
    base_reserve: Optional[str] = None
    max_tx_set_size: Optional[int] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LedgerRecord":
        return cls(
            sequence=int(data["sequence"]),
            hash=data["hash"],
            paging_token=data.get("paging_token", ""),
            prev_hash=data.get("prev_hash"),
            transaction_count=data.get("transaction_count", 0),
            operation_count=data.get("operation_count", 0),
            closed_at=data.get("closed_at"),
            total_coins=data.get("total_coins"),
            fee_pool=data.get("fee_pool"),
            base_fee=data.get("base_fee"),
            base_reserve=data.get("base_reserve"),
            max_tx_set_size=data.get("max_tx_set_size"),
            raw=data,
        )


@dataclass
class TransactionRecord:
    hash: str
    ledger: int
    source_account: str
    paging_token: str = ""
    created_at: Optional[str] = None
    source_account_sequence: Optional[str] = None
    fee_paid: Optional[int] = None
    operation_count: int = 0
    envelope_xdr: Optional[str] = None
    result_xdr: Optional[str] = None
    result_meta_xdr: Optional[str] = None
    memo_type: Optional[str] = None
    memo: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransactionRecord":
        return cls(
            hash=data["hash"],
            ledger=int(data["ledger"]),
            source_account=data["source_account"],
            paging_token=data.get("paging_token", ""),
            created_at=data.get("created_at"),
            source_account_sequence=data.get("source_account_sequence"),
            fee_paid=data.get("fee_paid"),
            operation_count=data.get("operation_count", 0),
            envelope_xdr=data.get("envelope_xdr"),
            result_xdr=data.get("result_xdr"),
            result_meta_xdr=data.get("result_meta_xdr"),
            memo_type=data.get("memo_type"),
            memo=data.get("memo"),
            raw=data,
        )


@dataclass
class OperationRecord:
    """
    An operation. Payments are operations too.

    Type-specific fields (``amount``, ``to``, ``starting_balance``...) are
    available through ``attributes``.
    """

    id: str
    type: str
    paging_token: str = ""
    type_i: Optional[int] = None
    source_account: Optional[str] = None
    transaction_hash: Optional[str] = None
    created_at: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def attributes(self) -> dict[str, Any]:
        return self.raw

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OperationRecord":
        return cls(
            id=str(data["id"]),
            type=data["type"],
            paging_token=data.get("paging_token", ""),
            type_i=data.get("type_i"),
            source_account=data.get("source_account"),
            transaction_hash=data.get("transaction_hash"),
            created_at=data.get("created_at"),
            raw=data,
        )


@dataclass
class EffectRecord:
    id: str
    type: str
    account: Optional[str] = None
    paging_token: str = ""
    type_i: Optional[int] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def attributes(self) -> dict[str, Any]:
        return self.raw

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EffectRecord":
        return cls(
            id=str(data["id"]),
            type=data["type"],
            account=data.get("account"),
            paging_token=data.get("paging_token", ""),
            type_i=data.get("type_i"),
            raw=data,
        )


@dataclass
class OfferRecord:
    id: str
    seller: str
    selling: Asset
    buying: Asset
    amount: str
    price: str
    paging_token: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OfferRecord":
        return cls(
            id=str(data["id"]),
            seller=data["seller"],
            selling=Asset.from_dict(data["selling"]),
            buying=Asset.from_dict(data["buying"]),
            amount=data["amount"],
            price=data["price"],
            paging_token=data.get("paging_token", ""),
            raw=data,
        )


@dataclass
class TradeRecord:
    id: str
    seller: str
    sold_amount: str
    sold_asset: Asset
    buyer: str
    bought_amount: str
    bought_asset: Asset
    paging_token: str = ""
    created_at: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TradeRecord":
        return cls(
            id=str(data["id"]),
            seller=data["seller"],
            sold_amount=data["sold_amount"],
            sold_asset=Asset.from_dict(data, "sold"),
            buyer=data["buyer"],
            bought_amount=data["bought_amount"],
            bought_asset=Asset.from_dict(data, "bought"),
            paging_token=data.get("paging_token", ""),
            created_at=data.get("created_at"),
            raw=data,
        )


@dataclass
class OrderBookRow:
    amount: str
    price: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderBookRow":
        return cls(amount=data["amount"], price=data["price"])


@dataclass
class OrderBookRecord:
    base: Asset
    counter: Asset
    bids: list[OrderBookRow] = field(default_factory=list)
    asks: list[OrderBookRow] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderBookRecord":
        return cls(
            base=Asset.from_dict(data["base"]),
            counter=Asset.from_dict(data["counter"]),
            bids=[OrderBookRow.from_dict(row) for row in data.get("bids", [])],
            asks=[OrderBookRow.from_dict(row) for row in data.get("asks", [])],
            raw=data,
        )


@dataclass
class PathRecord:
    source_asset: Asset
    source_amount: str
    destination_asset: Asset
    destination_amount: str
    path: list[Asset] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PathRecord":
        return cls(
            source_asset=Asset.from_dict(data, "source"),
            source_amount=data["source_amount"],
            destination_asset=Asset.from_dict(data, "destination"),
            destination_amount=data["destination_amount"],
            path=[Asset.from_dict(hop) for hop in data.get("path", [])],
            raw=data,
        )


@dataclass
class SubmitTransactionResponse:
    """
    Result of posting a transaction envelope.

    A transaction rejected by the network (HTTP 400) still decodes; its
    ``result_codes`` explain the failure.
    """

    success: bool
    hash: Optional[str] = None
    ledger: Optional[int] = None
    envelope_xdr: Optional[str] = None
    result_xdr: Optional[str] = None
    result_codes: dict[str, Any] = field(default_factory=dict)
    rate_limit: RateLimit = field(default_factory=RateLimit)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], success: bool, rate_limit: Optional[RateLimit] = None
    ) -> "SubmitTransactionResponse":
        extras = data.get("extras") or {}
        return cls(
            success=success,
            hash=data.get("hash"),
            ledger=data.get("ledger"),
            envelope_xdr=data.get("envelope_xdr") or extras.get("envelope_xdr"),
            result_xdr=data.get("result_xdr") or extras.get("result_xdr"),
            result_codes=extras.get("result_codes", {}),
            rate_limit=rate_limit or RateLimit(),
            raw=data,
        )


# ==================== Federation ====================


@dataclass(frozen=True)
class FederationRecord:
    """
    A resolved federation address.

    ``memo_type`` and ``memo`` are either both set or both ``None``.
    """

    stellar_address: str
    account_id: str
    memo_type: Optional[str] = None
    memo: Optional[str] = None

    @property
    def has_memo(self) -> bool:
        return self.memo_type is not None

    def to_dict(self) -> dict[str, Any]:
        result = {
            "stellar_address": self.stellar_address,
            "account_id": self.account_id,
        }
        if self.has_memo:
            result["memo_type"] = self.memo_type
            result["memo"] = self.memo
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FederationRecord":
        memo_type = data.get("memo_type")
        memo = data.get("memo")
        if (memo_type is None) != (memo is None):
            raise HorizonError(
                "Federation response must carry both memo_type and memo, or neither",
                kind=ErrorKind.DECODE_ERROR,
                response=data,
            )
        stellar_address = data.get("stellar_address")
        account_id = data.get("account_id")
        if not isinstance(stellar_address, str) or not isinstance(account_id, str):
            raise HorizonError(
                "Federation response is missing stellar_address or account_id",
                kind=ErrorKind.DECODE_ERROR,
                response=data,
            )
        return cls(
            stellar_address=stellar_address,
            account_id=account_id,
            memo_type=memo_type,
            memo=str(memo) if memo is not None else None,
        )
