import json

import httpx
import pytest

from nft_ticketing.adapters.pinata import MAX_FILE_SIZE, PinataPublisher
from nft_ticketing.models import MetadataDocument
from nft_ticketing.types import PublishFailure


class PinataStub:
    """Answers pin requests with sequential CIDs"""

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="Invalid authentication")
        return httpx.Response(200, json={"IpfsHash": f"bafy{len(self.requests)}", "PinSize": 10})


def publisher_for(stub, jwt="test-jwt"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    return PinataPublisher(jwt, client=client)


class TestPinataPublisher:

    @pytest.mark.asyncio
    async def test_publish_json(self):
        stub = PinataStub()
        publisher = publisher_for(stub)

        result = await publisher.publish_json({"name": "Ticket"}, "ticket-metadata")

        assert result.cid == "bafy1"
        assert result.locator == "ipfs://bafy1"
        assert result.gateway_url == "https://gateway.pinata.cloud/ipfs/bafy1"

        request = stub.requests[0]
        assert str(request.url) == "https://api.pinata.cloud/pinning/pinJSONToIPFS"
        assert request.headers["Authorization"] == "Bearer test-jwt"
        body = json.loads(request.content)
        assert body == {
            "pinataContent": {"name": "Ticket"},
            "pinataMetadata": {"name": "ticket-metadata"},
            "pinataOptions": {"cidVersion": 1},
        }

    @pytest.mark.asyncio
    async def test_publish_binary(self):
        stub = PinataStub()
        publisher = publisher_for(stub)

        result = await publisher.publish_binary(b"png-bytes", "ticket.png")

        assert result.locator == "ipfs://bafy1"
        request = stub.requests[0]
        assert str(request.url) == "https://api.pinata.cloud/pinning/pinFileToIPFS"
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        body = request.read()
        assert b"png-bytes" in body
        assert b'"cidVersion": 1' in body
        assert b'filename="ticket.png"' in body

    @pytest.mark.asyncio
    async def test_publish_ticket_points_metadata_at_image(self):
        stub = PinataStub()
        publisher = publisher_for(stub)
        metadata = MetadataDocument(name="Ticket", description="d", image="placeholder")

        upload = await publisher.publish_ticket(b"png-bytes", metadata, "rock-a42")

        assert upload.image.cid == "bafy1"
        assert upload.metadata.cid == "bafy2"
        body = json.loads(stub.requests[1].content)
        assert body["pinataContent"]["image"] == "ipfs://bafy1"
        assert body["pinataMetadata"]["name"] == "rock-a42-metadata"

    @pytest.mark.asyncio
    async def test_error_status(self):
        publisher = publisher_for(PinataStub(status_code=401))

        with pytest.raises(PublishFailure, match="HTTP 401") as exc_info:
            await publisher.publish_json({"name": "Ticket"}, "x")
        assert exc_info.value.error_code == "401"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("refused")

        publisher = publisher_for(refuse)

        with pytest.raises(PublishFailure, match="refused"):
            await publisher.publish_json({"name": "Ticket"}, "x")

    @pytest.mark.asyncio
    async def test_missing_jwt(self):
        stub = PinataStub()
        publisher = publisher_for(stub, jwt=None)

        with pytest.raises(PublishFailure, match="JWT"):
            await publisher.publish_binary(b"data", "ticket.png")
        assert stub.requests == []

    @pytest.mark.asyncio
    async def test_rejects_empty_and_oversized_files(self):
        publisher = publisher_for(PinataStub())

        with pytest.raises(PublishFailure):
            await publisher.publish_binary(b"", "ticket.png")
        with pytest.raises(PublishFailure, match="exceeds maximum"):
            await publisher.publish_binary(b"0" * (MAX_FILE_SIZE + 1), "ticket.png")

    @pytest.mark.asyncio
    async def test_context_manager_leaves_injected_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(PinataStub()))

        async with PinataPublisher("test-jwt", client=client) as publisher:
            await publisher.publish_json({"name": "Ticket"}, "ticket-metadata")

        assert not client.is_closed
        await client.aclose()
