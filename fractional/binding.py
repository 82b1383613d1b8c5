"""
binding.py - Parent Asset Binding

A ledger's shares become a fractional claim on a unique asset once the ledger
is bound to it. Binding is a guarded one-way transition:

    UNBOUND --bind_parent_asset--> BOUND   (BOUND is terminal)

Pattern:
    1. The asset holder transfers the asset to the ledger's own address:
       registry.transfer_asset(holder, holder, ledger.address, asset_id)
    2. The ledger creator binds the ledger to it:
       ledger.bind_parent_asset(creator, registry, asset_id)

Binding verifies, inside the ledger, that the registry reports the ledger as
the asset's current owner. A second binding is rejected with AlreadyBound.

fractionalize() runs both steps.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .core import (
    LedgerView, AssetRegistry, Address, AssetId, PendingOperation,
    OperationKind, OperationResult, BindingState, ParentBinding, BindingChange,
    AlreadyBound, Unauthorized, NotAssetOwner,
    build_operation, validate_address, validate_amount,
)

if TYPE_CHECKING:
    from .ledger import FractionalLedger


def binding_state(view: LedgerView) -> BindingState:
    """Return the binding facet's current state."""
    if view.parent_binding is None:
        return BindingState.UNBOUND
    return BindingState.BOUND


def compute_bind_parent_asset(
    view: LedgerView,
    caller: Address,
    registry: AssetRegistry,
    asset_id: AssetId,
) -> PendingOperation:
    """
    Bind the ledger to asset_id in registry.

    Checks, in order:
    1. The ledger is not bound yet
    2. caller is the ledger's creator
    3. registry.owner_of(asset_id) is the ledger's own address

    Args:
        view: Read-only ledger access
        caller: The acting identity
        registry: The unique-asset registry holding the asset
        asset_id: Id of the asset inside registry

    Returns:
        PendingOperation carrying the BindingChange

    Raises:
        AlreadyBound: If the ledger already has a parent asset
        Unauthorized: If caller is not the ledger's creator
        UnknownAsset: If the registry has no such asset (from owner_of)
        NotAssetOwner: If the asset is owned by someone other than the ledger
    """
    validate_address(caller, "caller")
    validate_amount(asset_id, "asset_id")

    current = view.parent_binding
    if current is not None:
        raise AlreadyBound(
            f"already bound to asset {current.asset_id} @ {current.registry_address}"
        )
    if caller != view.creator:
        raise Unauthorized(f"{caller} is not the ledger creator")

    owner = registry.owner_of(asset_id)
    if owner != view.address:
        raise NotAssetOwner(
            f"asset {asset_id} is owned by {owner}, not by ledger {view.address}"
        )

    return build_operation(
        OperationKind.BIND_PARENT, caller,
        binding_change=BindingChange(
            old=None,
            new=ParentBinding(registry.address, asset_id),
            registry=registry,
        ),
    )


@dataclass(frozen=True, slots=True)
class Fractionalization:
    """
    Outcome of fractionalize().

    Attributes:
        asset_transfer: Result of moving the asset to the ledger
        binding: Result of binding, or None if the asset transfer was rejected
    """
    asset_transfer: OperationResult
    binding: Optional[OperationResult]

    @property
    def applied(self) -> bool:
        return (
            self.asset_transfer.applied
            and self.binding is not None
            and self.binding.applied
        )


def fractionalize(
    registry: AssetRegistry,
    ledger: 'FractionalLedger',
    holder: Address,
    asset_id: AssetId,
) -> Fractionalization:
    """
    Hand asset_id over to ledger and bind the ledger to it.

    holder must own the asset and be the ledger's creator. If the asset
    transfer is rejected, binding is not attempted. If binding is rejected,
    the asset stays with the ledger; the ledger can still be bound later.

    Example:
        registry.create("alice", 15)
        ledger = FractionalLedger("0xfnft", "alice", 1000)
        outcome = fractionalize(registry, ledger, "alice", 15)
        assert outcome.applied
        assert ledger.parent_token_id() == 15
    """
    transfer_result = registry.transfer_asset(holder, holder, ledger.address, asset_id)
    if transfer_result.rejected:
        return Fractionalization(asset_transfer=transfer_result, binding=None)
    bind_result = ledger.bind_parent_asset(holder, registry, asset_id)
    return Fractionalization(asset_transfer=transfer_result, binding=bind_result)
