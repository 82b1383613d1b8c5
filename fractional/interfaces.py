"""
interfaces.py - Capability Introspection (ERC-165)

A ledger answers supports_interface(id) for a fixed set of 4-byte capability
identifiers:

    0x01ffc9a7  ERC-165   supportsInterface itself
    0x36372b07  ERC-20    totalSupply/balanceOf/transfer/allowance/approve/transferFrom
    0x5755c3f2  ERC-1633  parentToken/parentTokenId

Identifiers may be given as a hex string ("0x01ffc9a7", case-insensitive,
prefix optional), as 4 bytes, or as an int. Anything that is not a well-formed
4-byte identifier is simply unsupported; the query never raises.
"""

from __future__ import annotations
from typing import Any, FrozenSet, Optional

from .core import (
    INTERFACE_ID_ERC165, INTERFACE_ID_ERC20, INTERFACE_ID_ERC1633,
    INTERFACE_ID_INVALID,
)


SUPPORTED_INTERFACES: FrozenSet[int] = frozenset({
    INTERFACE_ID_ERC165,
    INTERFACE_ID_ERC20,
    INTERFACE_ID_ERC1633,
})


def normalize_interface_id(interface_id: Any) -> Optional[int]:
    """
    Convert an identifier to its int form.

    Returns None if interface_id is not a 4-byte identifier.
    """
    if isinstance(interface_id, bool):
        return None
    if isinstance(interface_id, int):
        value = interface_id
    elif isinstance(interface_id, (bytes, bytearray)):
        if len(interface_id) != 4:
            return None
        value = int.from_bytes(interface_id, "big")
    elif isinstance(interface_id, str):
        text = interface_id.strip().lower()
        if text.startswith("0x"):
            text = text[2:]
        if len(text) != 8:
            return None
        try:
            value = int(text, 16)
        except ValueError:
            return None
    else:
        return None
    if value < 0 or value > 0xffffffff:
        return None
    return value


def supports_interface(
    interface_id: Any,
    supported: FrozenSet[int] = SUPPORTED_INTERFACES,
) -> bool:
    """Return True if interface_id is in supported. 0xffffffff is never supported."""
    value = normalize_interface_id(interface_id)
    if value is None or value == INTERFACE_ID_INVALID:
        return False
    return value in supported


def format_interface_id(value: int) -> str:
    """Render an int identifier as "0x" plus 8 hex digits."""
    return f"0x{value:08x}"
