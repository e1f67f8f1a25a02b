import httpx
import pytest

from fakes import FakeLedger, FakePublisher, FakeRenderer, json_response, make_resolver, metadata_payload


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def ok_resolver():
    """Resolver whose every gateway serves a valid document"""
    return make_resolver(lambda request: json_response(metadata_payload()))


@pytest.fixture
def down_resolver():
    """Resolver whose every gateway fails"""
    return make_resolver(lambda request: httpx.Response(503, text="unavailable"))
