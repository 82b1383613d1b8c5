"""
conftest.py - Shared pytest fixtures for fractional ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Named addresses (owner, addr1..addr3, ledger and registry addresses)
- A registry with one minted asset
- A fresh 1000-share ledger and a ledger already bound to its asset
- An event recorder subscribed to a ledger
"""

import pytest
from typing import List

from fractional import (
    FractionalLedger, UniqueAssetRegistry, fractionalize,
)


OWNER = "0x1000000000000000000000000000000000000001"
ADDR1 = "0x2000000000000000000000000000000000000002"
ADDR2 = "0x3000000000000000000000000000000000000003"
ADDR3 = "0x4000000000000000000000000000000000000004"
ADDRESS_ONE = "0x0000000000000000000000000000000000000001"

LEDGER_ADDRESS = "0xf000000000000000000000000000000000000f00"
REGISTRY_ADDRESS = "0xe000000000000000000000000000000000000e00"

TOTAL_SUPPLY = 1000
TOKEN_ID = 15


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def make_ledger(supply: int = TOTAL_SUPPLY, creator: str = OWNER) -> FractionalLedger:
    """Create a quiet ledger at LEDGER_ADDRESS."""
    return FractionalLedger(LEDGER_ADDRESS, creator, supply, verbose=False)


def ledger_state_equals(ledger1: FractionalLedger, ledger2: FractionalLedger) -> bool:
    """Check if two ledgers hold the same balances, allowances and binding."""
    return ledger1.snapshot() == ledger2.snapshot()


class EventRecorder:
    """Observer that keeps every event it receives."""

    def __init__(self):
        self.events: List = []

    def __call__(self, event) -> None:
        self.events.append(event)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def registry():
    """Registry where OWNER holds TOKEN_ID."""
    reg = UniqueAssetRegistry(REGISTRY_ADDRESS, verbose=False)
    reg.create(OWNER, TOKEN_ID)
    return reg


@pytest.fixture
def ledger():
    """Unbound ledger with TOTAL_SUPPLY shares held by OWNER."""
    return make_ledger()


@pytest.fixture
def bound_ledger(registry, ledger):
    """Ledger that owns and is bound to TOKEN_ID."""
    outcome = fractionalize(registry, ledger, OWNER, TOKEN_ID)
    assert outcome.applied
    return ledger


@pytest.fixture
def recorder(ledger):
    """EventRecorder subscribed to the ledger fixture."""
    rec = EventRecorder()
    ledger.subscribe(rec)
    return rec
