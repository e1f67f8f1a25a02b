"""
Utility functions for addresses, dates, content locators and display.
"""

import uuid
from datetime import datetime, date, timezone
from typing import Any, Optional, Union

from eth_utils import to_checksum_address, is_address

from .types import InvalidAddress, InvalidFieldValue, ZERO_ADDRESS

IPFS_SCHEME = "ipfs://"

_CID_PREFIXES = (IPFS_SCHEME, "/ipfs/", "ipfs/")


def validate_address(address: Optional[str]) -> bool:
    """Validate EVM address format"""
    return bool(address) and is_address(address)


def normalize_address(address: str) -> str:
    """Normalize address to checksum format, rejecting malformed input"""
    if not validate_address(address):
        raise InvalidAddress(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def is_zero_address(address: str) -> bool:
    return address.lower() == ZERO_ADDRESS


def same_address(left: str, right: str) -> bool:
    """Case-insensitive address comparison"""
    return left.lower() == right.lower()


def extract_cid(locator: str) -> str:
    """Strip content-addressed prefixes, leaving the CID and any path"""
    for prefix in _CID_PREFIXES:
        if locator.startswith(prefix):
            return locator[len(prefix):]
    return locator


def format_ipfs_uri(cid: str) -> str:
    return f"{IPFS_SCHEME}{cid}"


def ipfs_to_http(locator: str, gateway: str) -> str:
    """Rewrite a content-addressed locator onto a gateway base URL"""
    if not locator:
        return ""
    if not gateway.endswith("/"):
        gateway = f"{gateway}/"
    return f"{gateway}{extract_cid(locator)}"


def to_unix_timestamp(value: Any) -> int:
    """
    Convert a date input to a Unix timestamp.

    Date-only strings and naive datetimes are taken as UTC.
    """
    if isinstance(value, bool):
        raise InvalidFieldValue(f"Invalid date: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidFieldValue(f"Invalid date: {value!r}") from e
    else:
        raise InvalidFieldValue(f"Invalid date: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def format_day_month_year(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%d/%m/%Y")


def format_event_datetime(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%B %d, %Y %H:%M UTC")


def generate_event_id() -> int:
    """Numeric event id from the first 16 hex digits of a UUID4"""
    return int(uuid.uuid4().hex[:16], 16)


def format_token_id(token_id: Union[int, str]) -> str:
    return f"#{str(token_id).zfill(4)}"


def format_address(address: Optional[str]) -> str:
    """Shorten an address for display"""
    if not address:
        return ""
    return f"{address[:6]}...{address[-4:]}"


def truncate(text: str, max_length: int = 50) -> str:
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}..."
