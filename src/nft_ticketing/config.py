"""
Configuration Module

Settings for ledger access, content gateways and content-store publishing,
read from the environment (prefix TICKETING_) or a .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_IPFS_GATEWAYS = [
    "https://ipfs.io/ipfs/",
    "https://cloudflare-ipfs.com/ipfs/",
    "https://gateway.pinata.cloud/ipfs/",
    "https://dweb.link/ipfs/",
]


class TicketingSettings(BaseSettings):
    """Runtime configuration for the ticketing library"""

    model_config = SettingsConfigDict(
        env_prefix="TICKETING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Ledger
    rpc_url: str = "https://rpc-amoy.polygon.technology"
    contract_address: str = "0x"
    deployment_block: int = 27983078
    private_key: Optional[SecretStr] = None
    transaction_timeout: float = 120.0
    confirmation_timeout: float = 300.0

    # Content resolution
    ipfs_gateways: List[str] = Field(default_factory=lambda: list(DEFAULT_IPFS_GATEWAYS))
    gateway_timeout: float = 10.0
    placeholder_image: str = "/placeholder-ticket.png"

    # Content publishing
    pinata_jwt: Optional[SecretStr] = None
    pinata_api_url: str = "https://api.pinata.cloud"
    pinata_gateway: str = "https://gateway.pinata.cloud/ipfs/"

    log_level: str = "INFO"

    def is_contract_configured(self) -> bool:
        return self.contract_address != "0x" and len(self.contract_address) == 42


@lru_cache()
def get_settings() -> TicketingSettings:
    """Get the process-wide settings instance"""
    return TicketingSettings()
