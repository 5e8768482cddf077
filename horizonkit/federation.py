"""
Horizonkit - Federation protocol client.

Resolves addresses like ``bob*stellar.org`` into account IDs. The federation
server for a domain is discovered from the ``FEDERATION_SERVER`` entry of the
domain's ``/.well-known/stellar.toml``.
"""

import logging
import tomllib
from typing import Any, Optional
from urllib.parse import urlsplit

from .config import ClientConfig
from .exceptions import ErrorKind, HorizonError
from .models import FederationRecord
from .transport import HorizonTransport, decode_json
from .validation import validate_domain

logger = logging.getLogger("horizonkit.federation")

ADDRESS_DELIMITER = "*"
FEDERATION_SERVER_KEY = "FEDERATION_SERVER"


def split_address(address: str) -> tuple[str, str]:
    """
    Split ``name*domain`` into its two parts.

    Raises ``MALFORMED_ADDRESS`` unless there is exactly one delimiter.
    """
    if not isinstance(address, str) or address.count(ADDRESS_DELIMITER) != 1:
        raise HorizonError(
            f"Malformed federation address: {address!r}",
            kind=ErrorKind.MALFORMED_ADDRESS,
        )
    name, domain = address.split(ADDRESS_DELIMITER)
    return name, domain


class FederationServer:
    """
    A federation server and the domain it is responsible for.

    The server URI must use ``https``; anything else is rejected on
    construction. A server can be kept and reused for many lookups on the
    same domain.

    Example:
        ```python
        server = FederationServer.create_for_domain("stellar.org")
        record = server.resolve_address("bob*stellar.org")
        print(record.account_id)
        ```
    """

    def __init__(
        self,
        server_uri: str,
        domain: str,
        transport: Optional[HorizonTransport] = None,
    ):
        parts = urlsplit(server_uri) if isinstance(server_uri, str) else None
        if parts is None or parts.scheme != "https" or not parts.netloc:
            raise HorizonError(
                f"Federation server must be an https URL: {server_uri!r}",
                kind=ErrorKind.FEDERATION_SERVER_INVALID,
            )
        self._server_uri = server_uri
        self._domain = domain
        self._owns_transport = transport is None
        self._transport = transport or HorizonTransport()

    @property
    def server_uri(self) -> str:
        return self._server_uri

    @property
    def domain(self) -> str:
        return self._domain

    def __repr__(self) -> str:
        return f"FederationServer(server_uri={self._server_uri!r}, domain={self._domain!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FederationServer):
            return NotImplemented
        return (self._server_uri, self._domain) == (other._server_uri, other._domain)

    def __hash__(self) -> int:
        return hash((self._server_uri, self._domain))

    def close(self) -> None:
        if self._owns_transport:
            self._transport.close()

    def __enter__(self) -> "FederationServer":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @classmethod
    def create_for_domain(
        cls,
        domain: str,
        transport: Optional[HorizonTransport] = None,
        config: Optional[ClientConfig] = None,
    ) -> "FederationServer":
        """
        Discover the federation server of ``domain`` from its stellar.toml.

        Raises:
            HorizonError: ``CONFIG_DOCUMENT_NOT_FOUND`` when the document is
                missing or unreadable, ``NO_FEDERATION_SERVER`` when it has no
                federation entry, ``FEDERATION_SERVER_INVALID`` when the entry
                is not an https URL, ``CONNECTION_ERROR`` on I/O failure.
        """
        validate_domain(domain)
        owns_transport = transport is None
        transport = transport or HorizonTransport(config)
        try:
            federation_server = _discover_server_uri(domain, transport, config)
            server = cls(federation_server, domain, transport)
        except HorizonError:
            if owns_transport:
                transport.close()
            raise
        server._owns_transport = owns_transport
        return server

    def resolve_address(self, address: str) -> FederationRecord:
        """
        Look up a ``name*domain`` address on this server.

        The address is validated before any request is made.

        Raises:
            HorizonError: ``MALFORMED_ADDRESS``, ``NOT_FOUND``,
                ``SERVER_ERROR``, ``CONNECTION_ERROR`` or ``DECODE_ERROR``.
        """
        split_address(address)

        response = self._transport.get(
            self._server_uri, params={"type": "name", "q": address}
        )
        if response.status_code == 404:
            raise HorizonError(
                f"Federation address not found: {address}",
                kind=ErrorKind.NOT_FOUND,
                status_code=404,
            )
        if not response.is_success:
            raise HorizonError(
                f"Federation server responded with status {response.status_code}",
                kind=ErrorKind.SERVER_ERROR,
                status_code=response.status_code,
            )

        data = decode_json(response)
        if not isinstance(data, dict):
            raise HorizonError(
                "Federation response must be a JSON object",
                kind=ErrorKind.DECODE_ERROR,
                response=data,
            )
        return FederationRecord.from_dict(data)


def _discover_server_uri(
    domain: str, transport: HorizonTransport, config: Optional[ClientConfig]
) -> Any:
    document = (config or transport.config).config_document
    url = f"https://{domain}/.well-known/{document}"

    response = transport.get(url)
    if response.status_code >= 300 or not response.content:
        raise HorizonError(
            f"{document} not found for {domain} (status {response.status_code})",
            kind=ErrorKind.CONFIG_DOCUMENT_NOT_FOUND,
            status_code=response.status_code,
        )

    try:
        toml = tomllib.loads(response.text)
    except tomllib.TOMLDecodeError as e:
        raise HorizonError(
            f"{document} for {domain} is malformed: {e}",
            kind=ErrorKind.CONFIG_DOCUMENT_NOT_FOUND,
            status_code=response.status_code,
        ) from e

    federation_server = toml.get(FEDERATION_SERVER_KEY)
    if federation_server is None:
        raise HorizonError(
            f"{document} for {domain} has no {FEDERATION_SERVER_KEY}",
            kind=ErrorKind.NO_FEDERATION_SERVER,
        )
    logger.debug("Federation server for %s is %s", domain, federation_server)
    return federation_server


def resolve(
    address: str,
    transport: Optional[HorizonTransport] = None,
    config: Optional[ClientConfig] = None,
) -> FederationRecord:
    """
    Resolve ``name*domain`` without knowing the federation server.

    Discovers the domain's federation server, then queries it. Nothing is
    cached between the two steps; keep a ``FederationServer`` to reuse one.
    """
    _, domain = split_address(address)
    server = FederationServer.create_for_domain(domain, transport=transport, config=config)
    with server:
        return server.resolve_address(address)
