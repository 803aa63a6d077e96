"""Utility functions for validation and logging"""

import re
import sys
from typing import Optional, Tuple
from eth_utils import is_address, to_checksum_address
from loguru import logger

_ETH_ADDRESS_RE = re.compile(r'^0x[a-fA-F0-9]{40}$')

_FALSY_FLAGS = {"0", "false", "no", "off"}


def validate_ethereum_address(address: str) -> Tuple[bool, Optional[str]]:
    """
    Validate Ethereum address format

    Mixed-case input must carry a valid EIP-55 checksum; all-lower and
    all-upper hex are accepted as-is.

    Returns:
        (is_valid, checksum_address or None)
    """
    if not address or not isinstance(address, str):
        return False, None

    address = address.strip()

    # Check basic format
    if not _ETH_ADDRESS_RE.match(address):
        return False, None

    if not is_address(address):
        logger.debug(f"Address failed checksum validation: {address}")
        return False, None

    return True, to_checksum_address(address)


def is_ens_name(value: str) -> bool:
    """Names resolved through ENS rather than parsed as hex addresses"""
    return bool(value) and value.strip().lower().endswith(".eth")


def parse_hide_spam(value: Optional[str]) -> bool:
    """
    Parse the hideSpam query flag

    Absent means true; only an explicit 0/false/no/off disables spam hiding.
    """
    if value is None:
        return True
    return value.strip().lower() not in _FALSY_FLAGS


def truncate(text: str, max_length: int = 200) -> str:
    """Cap a diagnostic snippet"""
    if not text:
        return ""
    return text if len(text) <= max_length else text[:max_length]


def configure_logging(level: str = "INFO") -> None:
    """Install a single stderr sink at the given level"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    )
