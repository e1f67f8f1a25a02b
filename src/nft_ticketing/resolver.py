"""
Content resolution for off-ledger ticket metadata.

Documents are fetched through an ordered list of IPFS HTTP gateways, one
attempt per gateway, first usable document wins.
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

import httpx
from prometheus_client import Counter
from pydantic import ValidationError

from .config import TicketingSettings, get_settings
from .metadata import validate_metadata
from .models import MetadataDocument
from .types import (
    ContentResolutionError, GatewayUnavailable, GatewayTimeout,
    InvalidDocument, ResolutionFailed
)
from .utils import ipfs_to_http

logger = logging.getLogger(__name__)

GATEWAY_ATTEMPTS_TOTAL = Counter(
    'ticket_metadata_gateway_attempts_total',
    'Metadata fetch attempts per gateway',
    ['gateway', 'outcome']
)
PLACEHOLDERS_SERVED_TOTAL = Counter(
    'ticket_metadata_placeholders_total',
    'Placeholder documents returned because every gateway failed'
)

DIRECT = "direct"


class ContentResolver:
    """
    Resolves content-addressed locators to metadata documents.

    The gateway list and timeout are injected so the resolver can be pointed
    at fake endpoints.
    """

    def __init__(self, gateways: Sequence[str], timeout: float = 10.0,
                 placeholder_image: str = "/placeholder-ticket.png",
                 client: Optional[httpx.AsyncClient] = None):
        if not gateways:
            raise ValueError("At least one gateway is required")
        self.gateways = list(gateways)
        self.timeout = timeout
        self.placeholder_image = placeholder_image
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Optional[TicketingSettings] = None,
                      client: Optional[httpx.AsyncClient] = None) -> "ContentResolver":
        settings = settings or get_settings()
        return cls(
            gateways=settings.ipfs_gateways,
            timeout=settings.gateway_timeout,
            placeholder_image=settings.placeholder_image,
            client=client
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ContentResolver":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def candidate_urls(self, locator: str,
                       gateways: Optional[Sequence[str]] = None) -> List[Tuple[str, str]]:
        """(gateway, url) pairs in attempt order"""
        if locator.startswith(("http://", "https://")):
            return [(DIRECT, locator)]
        return [(gateway, ipfs_to_http(locator, gateway)) for gateway in (gateways or self.gateways)]

    async def _fetch(self, gateway: str, url: str) -> MetadataDocument:
        try:
            response = await self.client.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise GatewayTimeout(f"Timed out after {self.timeout}s", gateway=gateway) from e
        except httpx.HTTPError as e:
            raise GatewayUnavailable(f"{type(e).__name__}: {e}", gateway=gateway) from e

        if not response.is_success:
            raise GatewayUnavailable(
                f"HTTP {response.status_code}: {response.reason_phrase}", gateway=gateway
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidDocument("Response body is not valid JSON", gateway=gateway) from e

        if not isinstance(payload, dict) or not payload.get("name") or not payload.get("image"):
            raise InvalidDocument("Invalid metadata: missing required fields", gateway=gateway)

        try:
            return MetadataDocument.model_validate(payload)
        except ValidationError as e:
            # name and image are present, so the document is still usable as served
            logger.warning(f"Metadata from {gateway} has {e.error_count()} malformed field(s)")
            return MetadataDocument.model_construct(**payload)

    async def resolve(self, locator: str,
                      gateways: Optional[Sequence[str]] = None) -> MetadataDocument:
        """Fetch a metadata document, trying each gateway in order"""
        if not locator:
            raise ResolutionFailed("Token URI is empty")

        attempts: List[ContentResolutionError] = []

        for gateway, url in self.candidate_urls(locator, gateways):
            try:
                document = await self._fetch(gateway, url)
            except ContentResolutionError as e:
                attempts.append(e)
                GATEWAY_ATTEMPTS_TOTAL.labels(gateway=gateway, outcome=type(e).__name__).inc()
                logger.warning(f"Gateway {gateway} failed for {locator}: {e}")
                continue

            GATEWAY_ATTEMPTS_TOTAL.labels(gateway=gateway, outcome="success").inc()
            self._report_schema_problems(locator, document)
            return document

        summary = "; ".join(f"{e.gateway}: {e}" for e in attempts)
        raise ResolutionFailed(f"Failed to fetch metadata from all gateways: {summary}", attempts)

    def _report_schema_problems(self, locator: str, document: MetadataDocument) -> None:
        result = validate_metadata(document)
        if not result.valid:
            logger.warning(f"Metadata at {locator} violates schema: {'; '.join(result.errors)}")

    def placeholder(self, token_id: Union[int, str]) -> MetadataDocument:
        """Deterministic stand-in for unreachable metadata"""
        return MetadataDocument(
            name=f"Ticket #{token_id}",
            description="Metadata is currently unavailable",
            image=self.placeholder_image,
            attributes=[]
        )

    async def resolve_or_placeholder(self, locator: str,
                                     token_id: Union[int, str]) -> MetadataDocument:
        """Resolve metadata, degrading to the placeholder when every gateway fails"""
        try:
            return await self.resolve(locator)
        except ResolutionFailed as e:
            logger.error(f"Failed to fetch metadata for token {token_id}: {e}")
            PLACEHOLDERS_SERVED_TOTAL.inc()
            return self.placeholder(token_id)
