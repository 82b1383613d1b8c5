"""
registry.py - In-Memory Unique Asset Registry

An ERC-721 style registry implementing the AssetRegistry protocol the ledger
binds against. It owns {asset_id -> owner} and authorizes transfers:

    - the current owner may transfer
    - an agent approved for that single asset may transfer
    - an operator approved for all of the owner's assets may transfer

Anyone else is rejected with Unauthorized. Mutating methods return an
OperationResult, like FractionalLedger; owner_of raises UnknownAsset.

Example:
    registry = UniqueAssetRegistry("0xnft", verbose=False)
    registry.create("alice", 15)
    registry.transfer_asset("alice", "alice", "0xfnft", 15)
    assert registry.owner_of(15) == "0xfnft"
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from .core import (
    Address, AssetId, ExecuteResult, OperationResult,
    ZERO_ADDRESS,
    LedgerError, UnknownAsset, AssetAlreadyExists, Unauthorized,
    NotAssetOwner, InvalidAddress,
    validate_address, validate_amount, is_zero_address,
)


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class AssetTransferEvent:
    """Asset moved from source to dest. Creation has source == ZERO_ADDRESS."""
    source: Address
    dest: Address
    asset_id: AssetId


@dataclass(frozen=True, slots=True)
class AssetApprovalEvent:
    """approved may now transfer asset_id on owner's behalf (ZERO_ADDRESS clears)."""
    owner: Address
    approved: Address
    asset_id: AssetId


@dataclass(frozen=True, slots=True)
class OperatorApprovalEvent:
    owner: Address
    operator: Address
    approved: bool


class UniqueAssetRegistry:
    """
    Registry of indivisible assets and their owners.

    Attributes:
        address: The registry's own identity (what parent_token() returns)
        event_log: Every event emitted, in order
    """

    def __init__(self, address: Address, verbose: bool = True):
        validate_address(address, "address")
        self._address = address
        self.verbose = verbose
        self._owners: Dict[AssetId, Address] = {}
        self._asset_counts: Dict[Address, int] = {}
        self._asset_approvals: Dict[AssetId, Address] = {}
        self._operators: Set[Tuple[Address, Address]] = set()
        self.event_log: List[Any] = []

    # ========================================================================
    # QUERIES
    # ========================================================================

    @property
    def address(self) -> Address:
        return self._address

    def owner_of(self, asset_id: AssetId) -> Address:
        """
        Return the owner of asset_id.

        Raises:
            UnknownAsset: If asset_id was never created
        """
        owner = self._owners.get(asset_id)
        if owner is None:
            raise UnknownAsset(f"asset {asset_id} not registered in {self._address}")
        return owner

    def exists(self, asset_id: AssetId) -> bool:
        return asset_id in self._owners

    def balance_of(self, owner: Address) -> int:
        """Number of assets held by owner."""
        return self._asset_counts.get(owner, 0)

    def get_approved(self, asset_id: AssetId) -> Optional[Address]:
        """
        Return the agent approved for asset_id, or None.

        Raises:
            UnknownAsset: If asset_id was never created
        """
        self.owner_of(asset_id)
        return self._asset_approvals.get(asset_id)

    def is_approved_for_all(self, owner: Address, operator: Address) -> bool:
        return (owner, operator) in self._operators

    def is_authorized(self, caller: Address, asset_id: AssetId) -> bool:
        """True if caller may transfer asset_id (owner, approved agent or operator)."""
        owner = self.owner_of(asset_id)
        return (
            caller == owner
            or self._asset_approvals.get(asset_id) == caller
            or self.is_approved_for_all(owner, caller)
        )

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def create(self, owner: Address, asset_id: AssetId) -> OperationResult:
        """
        Register a new asset owned by owner.

        Rejected with AssetAlreadyExists for a duplicate id and InvalidAddress
        for the zero address.
        """
        validate_address(owner, "owner")
        validate_amount(asset_id, "asset_id")
        if is_zero_address(owner):
            return self._reject(InvalidAddress("cannot create an asset for the zero address"))
        if asset_id in self._owners:
            return self._reject(AssetAlreadyExists(f"asset {asset_id} already exists"))

        self._owners[asset_id] = owner
        self._asset_counts[owner] = self._asset_counts.get(owner, 0) + 1
        return self._apply("create", AssetTransferEvent(ZERO_ADDRESS, owner, asset_id))

    def approve(self, caller: Address, to: Address, asset_id: AssetId) -> OperationResult:
        """
        Let to transfer asset_id on the owner's behalf.

        Only the owner or one of the owner's operators may approve. Approving
        the zero address clears the approval.
        """
        validate_address(caller, "caller")
        validate_address(to, "to")
        validate_amount(asset_id, "asset_id")
        try:
            owner = self.owner_of(asset_id)
        except UnknownAsset as e:
            return self._reject(e)
        if to == owner:
            return self._reject(InvalidAddress("approval to current owner"))
        if caller != owner and not self.is_approved_for_all(owner, caller):
            return self._reject(Unauthorized(
                f"{caller} is not the owner of asset {asset_id} nor approved for all"
            ))

        if is_zero_address(to):
            self._asset_approvals.pop(asset_id, None)
        else:
            self._asset_approvals[asset_id] = to
        return self._apply("approve", AssetApprovalEvent(owner, to, asset_id))

    def set_approval_for_all(
        self, caller: Address, operator: Address, approved: bool
    ) -> OperationResult:
        """Grant or revoke operator's right to transfer all of caller's assets."""
        validate_address(caller, "caller")
        validate_address(operator, "operator")
        if caller == operator:
            return self._reject(InvalidAddress("cannot approve yourself as operator"))
        if approved:
            self._operators.add((caller, operator))
        else:
            self._operators.discard((caller, operator))
        return self._apply(
            "set_approval_for_all", OperatorApprovalEvent(caller, operator, bool(approved))
        )

    def transfer_asset(
        self,
        caller: Address,
        source: Address,
        dest: Address,
        asset_id: AssetId,
    ) -> OperationResult:
        """
        Move asset_id from source to dest on caller's authority.

        Checks, in order: the asset exists, caller is authorized, source is
        the current owner, dest is not the zero address. A successful
        transfer clears the single-asset approval.
        """
        validate_address(caller, "caller")
        validate_address(source, "source")
        validate_address(dest, "dest")
        validate_amount(asset_id, "asset_id")
        try:
            owner = self.owner_of(asset_id)
        except UnknownAsset as e:
            return self._reject(e)
        if not self.is_authorized(caller, asset_id):
            return self._reject(Unauthorized(
                f"{caller} is not owner nor approved for asset {asset_id}"
            ))
        if source != owner:
            return self._reject(NotAssetOwner(
                f"asset {asset_id} is owned by {owner}, not {source}"
            ))
        if is_zero_address(dest):
            return self._reject(InvalidAddress("cannot transfer an asset to the zero address"))

        self._asset_approvals.pop(asset_id, None)
        self._asset_counts[source] -= 1
        if not self._asset_counts[source]:
            del self._asset_counts[source]
        self._asset_counts[dest] = self._asset_counts.get(dest, 0) + 1
        self._owners[asset_id] = dest
        return self._apply("transfer_asset", AssetTransferEvent(source, dest, asset_id))

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _apply(self, action: str, event: Any) -> OperationResult:
        self.event_log.append(event)
        if self.verbose:
            print(f"✓ {self._address} {action}: {event}")
        return OperationResult(status=ExecuteResult.APPLIED, events=(event,))

    def _reject(self, error: LedgerError) -> OperationResult:
        if self.verbose:
            print(f"✗ REJECTED by {self._address}: {type(error).__name__}: {error}")
        return OperationResult.reject(error)

    def __repr__(self) -> str:
        return f"UniqueAssetRegistry({self._address}, assets={len(self._owners)})"
