"""
Pinata content publisher.

Pins ticket artwork and metadata documents to IPFS through the Pinata
pinning API. All content is pinned as CID v1.
"""

import json
import logging
import mimetypes
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from ..config import TicketingSettings, get_settings
from ..models import MetadataDocument, PublishResult, TicketUpload
from ..types import PublishFailure
from ..utils import format_ipfs_uri

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 100 * 1024 * 1024

PIN_OPTIONS = {"cidVersion": 1}


class PinataPublisher:
    """Content publisher backed by the Pinata REST API"""

    def __init__(self, jwt: Optional[str], api_url: str = "https://api.pinata.cloud",
                 gateway: str = "https://gateway.pinata.cloud/ipfs/",
                 client: Optional[httpx.AsyncClient] = None,
                 timeout: float = 60.0):
        self.jwt = jwt
        self.api_url = api_url.rstrip("/")
        self.gateway = gateway if gateway.endswith("/") else f"{gateway}/"
        self.timeout = timeout
        self.client = client or httpx.AsyncClient()
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Optional[TicketingSettings] = None,
                      client: Optional[httpx.AsyncClient] = None) -> "PinataPublisher":
        settings = settings or get_settings()
        jwt = settings.pinata_jwt.get_secret_value() if settings.pinata_jwt else None
        return cls(jwt, api_url=settings.pinata_api_url, gateway=settings.pinata_gateway,
                   client=client)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "PinataPublisher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _headers(self) -> Dict[str, str]:
        if not self.jwt:
            raise PublishFailure(
                "Pinata JWT is not configured; set TICKETING_PINATA_JWT",
                error_code="not_configured"
            )
        return {"Authorization": f"Bearer {self.jwt}"}

    def _result(self, cid: str) -> PublishResult:
        return PublishResult(cid=cid, locator=format_ipfs_uri(cid), gateway_url=f"{self.gateway}{cid}")

    async def _pin(self, endpoint: str, what: str, **request: Any) -> PublishResult:
        headers = self._headers()
        try:
            response = await self.client.post(
                f"{self.api_url}/pinning/{endpoint}",
                headers=headers,
                timeout=self.timeout,
                **request
            )
        except httpx.HTTPError as e:
            raise PublishFailure(f"{what} failed: {e}") from e

        if not response.is_success:
            raise PublishFailure(
                f"{what} failed: HTTP {response.status_code}: {response.text}",
                error_code=str(response.status_code)
            )

        try:
            cid = response.json()["IpfsHash"]
        except (ValueError, KeyError, TypeError) as e:
            raise PublishFailure(f"{what} failed: unexpected response from Pinata") from e

        logger.info(f"{what} pinned as {cid}")
        return self._result(cid)

    async def publish_binary(self, data: bytes, name: str,
                             keyvalues: Optional[Mapping[str, str]] = None) -> PublishResult:
        """Pin raw bytes such as ticket artwork"""
        if not data:
            raise PublishFailure("Refusing to upload an empty file")
        if len(data) > MAX_FILE_SIZE:
            raise PublishFailure(
                f"File size {len(data) / 1024 / 1024:.2f}MB exceeds maximum "
                f"{MAX_FILE_SIZE // (1024 * 1024)}MB"
            )

        content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        metadata = {"name": name, "keyvalues": dict(keyvalues or {})}

        return await self._pin(
            "pinFileToIPFS",
            "Upload",
            files={"file": (name, data, content_type)},
            data={
                "pinataMetadata": json.dumps(metadata),
                "pinataOptions": json.dumps(PIN_OPTIONS),
            }
        )

    async def publish_json(self, document: Union[MetadataDocument, Mapping[str, Any]],
                           name: str) -> PublishResult:
        """Pin a JSON document"""
        content = document.to_dict() if isinstance(document, MetadataDocument) else dict(document)
        return await self._pin(
            "pinJSONToIPFS",
            "JSON upload",
            json={
                "pinataContent": content,
                "pinataMetadata": {"name": name or "metadata.json"},
                "pinataOptions": PIN_OPTIONS,
            }
        )

    async def publish_ticket(self, image: bytes, metadata: Union[MetadataDocument, Mapping[str, Any]],
                             name: str, image_filename: str = "ticket.png") -> TicketUpload:
        """Upload the artwork, then the metadata pointing at it"""
        image_result = await self.publish_binary(
            image,
            f"{name}-{image_filename}",
            keyvalues={"type": "ticket-image", "ticket": name}
        )

        content = metadata.to_dict() if isinstance(metadata, MetadataDocument) else dict(metadata)
        content["image"] = image_result.locator

        metadata_result = await self.publish_json(content, f"{name}-metadata")
        logger.info(f"Ticket {name} uploaded: image {image_result.cid}, metadata {metadata_result.cid}")
        return TicketUpload(image=image_result, metadata=metadata_result)
