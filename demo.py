#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Fractionalize a Unique Asset Step by Step

This is a pedagogical demonstration of how a unique asset is split into
fungible shares. Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Foundation      - The asset registry, the share ledger, issuance
  4-7:   Shares          - Transfers, rejections, allowances, delegated spending
  8-9:   Binding         - Handing the asset over, binding the ledger to it
  10-11: Audit           - Operation log, replay, conservation and backing

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from fractional import (
    FractionalLedger, UniqueAssetRegistry, fractionalize,
    BindingState, OperationResult,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    # Identities
    alice: str = "0xa11ce00000000000000000000000000000000001"
    bob: str = "0xb0b0000000000000000000000000000000000002"
    carol: str = "0xca401000000000000000000000000000000000003"
    dave: str = "0xdave000000000000000000000000000000000004"
    ledger_address: str = "0xf0f0000000000000000000000000000000000f00"
    registry_address: str = "0xe0e0000000000000000000000000000000000e00"

    # Asset and shares
    asset_id: int = 15
    total_supply: int = 1000
    symbol: str = "FNFT"

    # Share movements
    bob_shares: int = 100
    carol_allowance: int = 100
    carol_extra_allowance: int = 100


CONFIG = DemoConfig()

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def show_result(result: OperationResult):
    if result.applied:
        print(f"Result: APPLIED, events={list(result.events)}")
    else:
        print(f"Result: REJECTED, {type(result.error).__name__}: {result.error}")


def show_balances(ledger: FractionalLedger):
    for holder, amount in sorted(ledger.holders().items()):
        print(f"  {holder}: {amount}")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_registry():
    """Create the registry and the unique asset."""
    step_header(1, "The Unique Asset",
        "A registry records exactly one owner per asset id.")

    print(f"""
>>> registry = UniqueAssetRegistry("{CONFIG.registry_address}")
>>> registry.create(alice, {CONFIG.asset_id})
""")
    registry = UniqueAssetRegistry(CONFIG.registry_address)
    registry.create(CONFIG.alice, CONFIG.asset_id)

    print(f"\nowner_of({CONFIG.asset_id}) = {registry.owner_of(CONFIG.asset_id)}")
    return registry


def step_02_ledger():
    """Create the share ledger."""
    step_header(2, "The Share Ledger",
        "Construction issues the whole fixed supply to the creator.")

    print(f"""
>>> ledger = FractionalLedger("{CONFIG.ledger_address}", alice, {CONFIG.total_supply})
""")
    ledger = FractionalLedger(
        CONFIG.ledger_address, CONFIG.alice, CONFIG.total_supply, symbol=CONFIG.symbol,
    )

    print(f"\n{ledger}")
    print(f"total_supply()     = {ledger.total_supply()}")
    print(f"balance_of(alice)  = {ledger.balance_of(CONFIG.alice)}")
    print(f"binding_state()    = {ledger.binding_state().value}")
    return ledger


def step_03_interfaces(ledger: FractionalLedger):
    """Ask the ledger what it supports."""
    step_header(3, "Capability Introspection",
        "The ledger answers supports_interface() for a fixed set of ids.")

    for interface_id, label in [
        ("0x01ffc9a7", "ERC-165"),
        ("0x36372b07", "ERC-20"),
        ("0x5755c3f2", "ERC-1633"),
        ("0xffffffff", "invalid"),
    ]:
        print(f"supports_interface({interface_id})  {label:9s} → "
              f"{ledger.supports_interface(interface_id)}")
    return ledger


# ============================================================================
# PHASE 2: SHARES (Steps 4-7)
# ============================================================================

def step_04_transfer(ledger: FractionalLedger):
    """Move shares from alice to bob."""
    step_header(4, "Transferring Shares",
        "A transfer moves shares between holders and emits a TransferEvent.")

    print(f">>> ledger.transfer(alice, bob, {CONFIG.bob_shares})")
    show_result(ledger.transfer(CONFIG.alice, CONFIG.bob, CONFIG.bob_shares))

    section_header("Balances")
    show_balances(ledger)
    return ledger


def step_05_rejection(ledger: FractionalLedger):
    """Try to move more than a holder has."""
    step_header(5, "Rejected Operations",
        "Operations that violate a precondition are REJECTED. State unchanged.")

    print(f">>> ledger.transfer(dave, bob, 1)   # dave holds nothing")
    show_result(ledger.transfer(CONFIG.dave, CONFIG.bob, 1))

    section_header("Balances (unchanged)")
    show_balances(ledger)

    section_header("Key Insight")
    print("""
    REJECTED means NOTHING happened. No balance changed, no event was
    emitted and the operation log did not grow.
    """)
    return ledger


def step_06_allowances(ledger: FractionalLedger):
    """Let carol spend some of alice's shares."""
    step_header(6, "Allowances",
        "approve() sets what a spender may move out of the owner's balance.")

    print(f">>> ledger.approve(alice, carol, {CONFIG.carol_allowance})")
    show_result(ledger.approve(CONFIG.alice, CONFIG.carol, CONFIG.carol_allowance))

    too_much = CONFIG.carol_allowance + CONFIG.carol_extra_allowance
    section_header("Spending More Than Approved")
    print(f">>> ledger.transfer_from(carol, alice, dave, {too_much})")
    show_result(ledger.transfer_from(CONFIG.carol, CONFIG.alice, CONFIG.dave, too_much))

    section_header("Raising the Allowance")
    print(f">>> ledger.increase_allowance(alice, carol, {CONFIG.carol_extra_allowance})")
    show_result(ledger.increase_allowance(
        CONFIG.alice, CONFIG.carol, CONFIG.carol_extra_allowance
    ))
    print(f"allowance(alice, carol) = {ledger.allowance(CONFIG.alice, CONFIG.carol)}")
    return ledger


def step_07_delegated_spend(ledger: FractionalLedger):
    """carol moves alice's shares to dave."""
    step_header(7, "Delegated Spending",
        "transfer_from debits the allowance and the owner's balance together.")

    amount = CONFIG.carol_allowance + CONFIG.carol_extra_allowance
    print(f">>> ledger.transfer_from(carol, alice, dave, {amount})")
    show_result(ledger.transfer_from(CONFIG.carol, CONFIG.alice, CONFIG.dave, amount))

    print(f"\nallowance(alice, carol) = {ledger.allowance(CONFIG.alice, CONFIG.carol)}")
    section_header("Balances")
    show_balances(ledger)
    return ledger


# ============================================================================
# PHASE 3: BINDING (Steps 8-9)
# ============================================================================

def step_08_third_party(registry: UniqueAssetRegistry, ledger: FractionalLedger):
    """A stranger cannot hand the asset over."""
    step_header(8, "Unauthorized Asset Transfer",
        "Only the owner or an approved agent can move the asset.")

    print(f">>> registry.transfer_asset(bob, alice, bob, {CONFIG.asset_id})")
    show_result(registry.transfer_asset(CONFIG.bob, CONFIG.alice, CONFIG.bob, CONFIG.asset_id))
    print(f"\nowner_of({CONFIG.asset_id}) = {registry.owner_of(CONFIG.asset_id)}")
    return registry, ledger


def step_09_fractionalize(registry: UniqueAssetRegistry, ledger: FractionalLedger):
    """Move the asset to the ledger and bind the ledger to it."""
    step_header(9, "Fractionalization",
        "The asset moves to the ledger's own address, then the creator binds it.")

    print(f">>> fractionalize(registry, ledger, alice, {CONFIG.asset_id})")
    outcome = fractionalize(registry, ledger, CONFIG.alice, CONFIG.asset_id)

    print(f"\napplied          = {outcome.applied}")
    print(f"owner_of({CONFIG.asset_id})     = {registry.owner_of(CONFIG.asset_id)}")
    print(f"parent_token()   = {ledger.parent_token()}")
    print(f"parent_token_id()= {ledger.parent_token_id()}")

    section_header("Binding Is One-Way")
    print(f">>> ledger.bind_parent_asset(alice, registry, {CONFIG.asset_id})")
    show_result(ledger.bind_parent_asset(CONFIG.alice, registry, CONFIG.asset_id))
    assert ledger.binding_state() == BindingState.BOUND
    return registry, ledger


# ============================================================================
# PHASE 4: AUDIT (Steps 10-11)
# ============================================================================

def step_10_log_and_replay(ledger: FractionalLedger):
    """Read the operation log and rebuild state from it."""
    step_header(10, "Operation Log and Replay",
        "Every applied operation is logged; replaying the log rebuilds the state.")

    for op in ledger.operation_log:
        print(f"  #{op.sequence_number:<3d} {op.kind.value:20s} by {op.caller}")

    quiet = ledger.clone()
    quiet.verbose = False
    replayed = quiet.replay()
    print(f"\nReplayed state matches: {replayed.snapshot() == ledger.snapshot()}")
    return ledger


def step_11_invariants(ledger: FractionalLedger):
    """Prove the supply is conserved and the shares are backed."""
    step_header(11, "Conservation and Backing",
        "Balances always sum to the supply; the registry confirms the backing.")

    result = ledger.verify_conservation()
    print(f"verify_conservation() = {result}")
    print(f"verify_backing()      = {ledger.verify_backing()}")
    assert result['valid']
    return ledger


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       FRACTIONAL LEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)
    print("""
    Welcome! This tutorial shows how one unique asset becomes 1000 shares.

    PHASES:
      1-3:   Foundation  - Registry, ledger, capabilities
      4-7:   Shares      - Transfers, rejections, allowances
      8-9:   Binding     - Handing over the asset, binding to it
      10-11: Audit       - Log, replay, conservation, backing
    """)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    registry = step_01_registry()
    wait_for_enter()

    ledger = step_02_ledger()
    wait_for_enter()

    ledger = step_03_interfaces(ledger)
    wait_for_enter()

    ledger = step_04_transfer(ledger)
    wait_for_enter()

    ledger = step_05_rejection(ledger)
    wait_for_enter()

    ledger = step_06_allowances(ledger)
    wait_for_enter()

    ledger = step_07_delegated_spend(ledger)
    wait_for_enter()

    registry, ledger = step_08_third_party(registry, ledger)
    wait_for_enter()

    registry, ledger = step_09_fractionalize(registry, ledger)
    wait_for_enter()

    ledger = step_10_log_and_replay(ledger)
    wait_for_enter()

    step_11_invariants(ledger)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:

      - The supply is fixed at construction and always conserved
      - Rejected operations change nothing
      - Allowances are overwritten by approve() and debited by transfer_from()
      - The ledger binds once, to an asset it actually owns

    Next steps:
      - See fractional/*.py for the implementation
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
