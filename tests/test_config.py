from nft_ticketing.config import DEFAULT_IPFS_GATEWAYS, TicketingSettings
from nft_ticketing.resolver import ContentResolver
from nft_ticketing.adapters.pinata import PinataPublisher


class TestTicketingSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TICKETING_CONTRACT_ADDRESS", raising=False)
        settings = TicketingSettings(_env_file=None)

        assert settings.deployment_block == 27983078
        assert settings.gateway_timeout == 10.0
        assert settings.ipfs_gateways == DEFAULT_IPFS_GATEWAYS
        assert not settings.is_contract_configured()

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("TICKETING_CONTRACT_ADDRESS", "0x" + "c3" * 20)
        monkeypatch.setenv("TICKETING_GATEWAY_TIMEOUT", "2.5")
        monkeypatch.setenv("TICKETING_PINATA_JWT", "secret-jwt")

        settings = TicketingSettings(_env_file=None)

        assert settings.is_contract_configured()
        assert settings.gateway_timeout == 2.5
        assert settings.pinata_jwt.get_secret_value() == "secret-jwt"
        assert "secret-jwt" not in repr(settings)

    def test_collaborators_from_settings(self):
        settings = TicketingSettings(
            _env_file=None,
            ipfs_gateways=["https://gw.test/ipfs/"],
            gateway_timeout=3.0,
            pinata_jwt="jwt"
        )

        resolver = ContentResolver.from_settings(settings)
        publisher = PinataPublisher.from_settings(settings)

        assert resolver.gateways == ["https://gw.test/ipfs/"]
        assert resolver.timeout == 3.0
        assert publisher.jwt == "jwt"
