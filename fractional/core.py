"""
Core types and pure functions for the fractional ledger.

This module provides the foundational data structures and protocols:
1. Protocols: LedgerView for read-only ledger access, AssetRegistry for the
   external unique-asset registry the ledger binds to
2. Immutable data structures: ShareMove, AllowanceChange, BindingChange,
   PendingOperation, Operation, OperationResult
3. Exceptions: LedgerError and the specific precondition failures
4. Events: TransferEvent, ApprovalEvent
5. Validation helpers for amounts and addresses (unsigned 256-bit integers,
   non-empty address strings)

All functions in this module are pure and operate on read-only views.
No function can mutate ledger state directly.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import hashlib
from typing import (
    Dict, List, Optional, Any, Protocol, Tuple, Union, runtime_checkable
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved address. Never a valid holder, recipient, spender or asset owner.
# Share issuance is recorded as a transfer out of it.
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Amounts and asset ids are unsigned 256-bit integers.
UINT256_MAX = (1 << 256) - 1

DEFAULT_DECIMALS = 18

# Inner width of the boxed operation printout.
REPR_WIDTH = 120

# ERC-165 capability identifiers.
INTERFACE_ID_ERC165 = 0x01ffc9a7
INTERFACE_ID_ERC20 = 0x36372b07
INTERFACE_ID_ERC1633 = 0x5755c3f2
INTERFACE_ID_INVALID = 0xffffffff


# ============================================================================
# TYPE ALIASES
# ============================================================================

Address = str
AssetId = int

# Mapping from holder address to share balance.
Balances = Dict[Address, int]

# Mapping from (owner, spender) to remaining allowance.
Allowances = Dict[Tuple[Address, Address], int]


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of an operation.

    APPLIED: All preconditions held and the state diff was committed.
    REJECTED: A precondition failed; nothing was committed.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


class OperationKind(Enum):
    """Classification of ledger operations, used in the operation log."""
    ISSUE = "issue"
    TRANSFER = "transfer"
    TRANSFER_FROM = "transfer_from"
    APPROVE = "approve"
    INCREASE_ALLOWANCE = "increase_allowance"
    DECREASE_ALLOWANCE = "decrease_allowance"
    BIND_PARENT = "bind_parent"


class BindingState(Enum):
    """Binding facet of the ledger. BOUND is terminal."""
    UNBOUND = "unbound"
    BOUND = "bound"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger and registry precondition failures."""
    pass


class InsufficientBalance(LedgerError):
    """Raised when a debit would take a balance below zero."""
    pass


class InsufficientAllowance(LedgerError):
    """Raised when a spend or decrease exceeds the remaining allowance."""
    pass


class AmountOverflow(LedgerError):
    """Raised when an addition would exceed UINT256_MAX."""
    pass


class InvalidAddress(LedgerError):
    """Raised when the zero address is used as a holder, spender or owner."""
    pass


class Unauthorized(LedgerError):
    """Raised when the caller is not allowed to perform the operation."""
    pass


class UnknownAsset(LedgerError):
    """Raised when an asset id is not registered in the registry."""
    pass


class AssetAlreadyExists(LedgerError):
    """Raised when creating an asset id that is already registered."""
    pass


class NotAssetOwner(LedgerError):
    """Raised when an address is not the recorded owner of an asset."""
    pass


class AlreadyBound(LedgerError):
    """Raised when binding a ledger that already has a parent asset."""
    pass


class StaleOperation(LedgerError):
    """Raised when a pending operation was computed against state that has since changed."""
    pass


# ============================================================================
# VALIDATION
# ============================================================================

def validate_amount(value: Any, name: str = "amount") -> int:
    """
    Check that value is an unsigned 256-bit integer.

    Malformed amounts are programming errors, so this raises TypeError or
    ValueError rather than a LedgerError.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    if value > UINT256_MAX:
        raise ValueError(f"{name} exceeds UINT256_MAX")
    return value


def validate_address(value: Any, name: str = "address") -> Address:
    """Check that value is a non-empty address string."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be str, got {type(value).__name__}")
    if not value.strip():
        raise ValueError(f"{name} cannot be empty")
    return value


def is_zero_address(address: Address) -> bool:
    return address.lower() == ZERO_ADDRESS


def checked_add(a: int, b: int) -> int:
    """Add two uint256 values, raising AmountOverflow past UINT256_MAX."""
    total = a + b
    if total > UINT256_MAX:
        raise AmountOverflow(f"{a} + {b} exceeds UINT256_MAX")
    return total


# ============================================================================
# PROTOCOLS
# ============================================================================

@dataclass(frozen=True, slots=True)
class ParentBinding:
    """
    The asset a ledger's shares represent.

    Attributes:
        registry_address: Address of the unique-asset registry
        asset_id: Id of the asset inside that registry
    """
    registry_address: Address
    asset_id: AssetId


@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to ledger state.

    The compute_* functions accept a LedgerView and only read through it.
    FractionalLedger implements this protocol but also provides mutation
    methods; tests use FakeView, which cannot be mutated.
    """

    @property
    def address(self) -> Address:
        """The ledger's own identity."""
        ...

    @property
    def creator(self) -> Address:
        """The actor that constructed the ledger and received the supply."""
        ...

    @property
    def parent_binding(self) -> Optional[ParentBinding]:
        """The bound parent asset, or None while unbound."""
        ...

    def total_supply(self) -> int:
        ...

    def balance_of(self, holder: Address) -> int:
        """Return the share balance of holder (0 for unseen addresses)."""
        ...

    def allowance(self, owner: Address, spender: Address) -> int:
        """Return what spender may still move out of owner's balance."""
        ...


@runtime_checkable
class AssetRegistry(Protocol):
    """
    The external unique-asset registry.

    The ledger depends on this interface but never implements it.
    UniqueAssetRegistry in fractional.registry is an in-memory implementation.
    """

    @property
    def address(self) -> Address:
        ...

    def owner_of(self, asset_id: AssetId) -> Address:
        """
        Return the current owner of asset_id.

        Raises:
            UnknownAsset: If asset_id is not registered
        """
        ...

    def create(self, owner: Address, asset_id: AssetId) -> 'OperationResult':
        ...

    def transfer_asset(
        self,
        caller: Address,
        source: Address,
        dest: Address,
        asset_id: AssetId,
    ) -> 'OperationResult':
        ...


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransferEvent:
    """Shares moved from source to dest. Issuance has source == ZERO_ADDRESS."""
    source: Address
    dest: Address
    amount: int


@dataclass(frozen=True, slots=True)
class ApprovalEvent:
    """The allowance of spender over owner's shares is now value."""
    owner: Address
    spender: Address
    value: int


LedgerEvent = Union[TransferEvent, ApprovalEvent]


# ============================================================================
# STATE DIFFS
# ============================================================================

@dataclass(frozen=True, slots=True)
class ShareMove:
    """
    A single debit/credit pair of shares.

    source == dest is allowed (self-transfer leaves balances unchanged).
    Issuance uses ZERO_ADDRESS as the source.
    """
    amount: int
    source: Address
    dest: Address

    def __post_init__(self):
        validate_amount(self.amount)
        validate_address(self.source, "source")
        validate_address(self.dest, "dest")

    def __repr__(self) -> str:
        return f"ShareMove({self.amount}: {self.source}→{self.dest})"


@dataclass(frozen=True, slots=True)
class AllowanceChange:
    """Record of an allowance overwrite with its before/after values."""
    owner: Address
    spender: Address
    old_value: int
    new_value: int

    def __post_init__(self):
        validate_amount(self.old_value, "old_value")
        validate_amount(self.new_value, "new_value")


@dataclass(frozen=True, slots=True)
class BindingChange:
    """
    Transition of the binding facet.

    registry is the collaborator the binding was verified against; it is kept
    so the backing can be re-checked later and is not part of equality.
    """
    old: Optional[ParentBinding]
    new: ParentBinding
    registry: Any = field(default=None, compare=False, repr=False)


# ============================================================================
# OPERATIONS
# ============================================================================

def _compute_intent_id(
    kind: OperationKind,
    caller: Address,
    moves: Tuple[ShareMove, ...],
    allowance_changes: Tuple[AllowanceChange, ...],
    binding_change: Optional[BindingChange],
) -> str:
    """
    Compute a deterministic content hash for an operation's intent.

    Same inputs always produce the same intent_id. Used for audit and replay
    comparison, not for deduplication: two identical transfers are two
    distinct operations.
    """
    parts = [f"kind:{kind.value}", f"caller:{caller}"]
    for m in moves:
        parts.append(f"move:{m.amount}|{m.source}|{m.dest}")
    for ac in allowance_changes:
        parts.append(f"allowance:{ac.owner}|{ac.spender}|{ac.old_value}|{ac.new_value}")
    if binding_change is not None:
        parts.append(
            f"bind:{binding_change.new.registry_address}|{binding_change.new.asset_id}"
        )
    return hashlib.sha256("|".join(parts).encode()).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class PendingOperation:
    """
    A validated state diff before commit - represents INTENT.

    Created by the compute_* functions and submitted to
    FractionalLedger.execute(), which re-validates it against live state and
    commits it as a single unit.

    Attributes:
        kind: What kind of operation this is
        caller: The acting identity
        moves: Share debits/credits
        allowance_changes: Allowance overwrites
        binding_change: Binding transition, if any
        events: Events to deliver once committed
        intent_id: Content hash of the diff (auto-computed)
    """
    kind: OperationKind
    caller: Address
    moves: Tuple[ShareMove, ...] = ()
    allowance_changes: Tuple[AllowanceChange, ...] = ()
    binding_change: Optional[BindingChange] = None
    events: Tuple[LedgerEvent, ...] = ()
    intent_id: str = field(default="")

    def __post_init__(self):
        if not self.intent_id:
            object.__setattr__(self, 'intent_id', _compute_intent_id(
                self.kind, self.caller, self.moves,
                self.allowance_changes, self.binding_change,
            ))

    def __repr__(self) -> str:
        return (
            f"PendingOperation({self.kind.value} by {self.caller}: "
            f"{len(self.moves)} moves, {len(self.allowance_changes)} allowance changes"
            f"{', binding' if self.binding_change else ''})"
        )


def build_operation(
    kind: OperationKind,
    caller: Address,
    moves: Optional[List[ShareMove]] = None,
    allowance_changes: Optional[List[AllowanceChange]] = None,
    binding_change: Optional[BindingChange] = None,
    events: Optional[List[LedgerEvent]] = None,
) -> PendingOperation:
    """
    Build a PendingOperation from its parts.

    This is the standard way for compute_* functions to return their diff.

    Example:
        def compute_gift(view, caller, to, amount):
            return build_operation(
                OperationKind.TRANSFER, caller,
                moves=[ShareMove(amount, caller, to)],
                events=[TransferEvent(caller, to, amount)],
            )
    """
    return PendingOperation(
        kind=kind,
        caller=caller,
        moves=tuple(moves or ()),
        allowance_changes=tuple(allowance_changes or ()),
        binding_change=binding_change,
        events=tuple(events or ()),
    )


@dataclass(frozen=True, slots=True)
class Operation:
    """
    A committed, immutable record of a ledger state change - represents FACT.

    Attributes:
        pending: The PendingOperation that was committed
        sequence_number: Monotonic position in the ledger's operation log
        exec_id: Unique execution identifier (ledger address + sequence)
    """
    pending: PendingOperation
    sequence_number: int
    exec_id: str

    @property
    def kind(self) -> OperationKind:
        return self.pending.kind

    @property
    def caller(self) -> Address:
        return self.pending.caller

    @property
    def events(self) -> Tuple[LedgerEvent, ...]:
        return self.pending.events

    @property
    def intent_id(self) -> str:
        return self.pending.intent_id

    def __repr__(self) -> str:
        w = REPR_WIDTH
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        p = self.pending
        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Operation: ' + self.exec_id)}│",
            f"├{bar}┤",
            f"│{pad('   kind      : ' + p.kind.value)}│",
            f"│{pad('   caller    : ' + p.caller)}│",
            f"│{pad('   intent_id : ' + p.intent_id)}│",
            f"│{pad('   sequence  : ' + str(self.sequence_number))}│",
        ]
        if p.moves:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Moves (' + str(len(p.moves)) + '):')}│")
            for i, m in enumerate(p.moves):
                lines.append(f"│{pad(f'   [{i}] {m.amount}: {m.source} → {m.dest}')}│")
        if p.allowance_changes:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Allowances (' + str(len(p.allowance_changes)) + '):')}│")
            for ac in p.allowance_changes:
                lines.append(f"│{pad(f'   {ac.owner} → {ac.spender}: {ac.old_value} → {ac.new_value}')}│")
        if p.binding_change:
            b = p.binding_change.new
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(f' Bound to asset {b.asset_id} @ {b.registry_address}')}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class OperationResult:
    """
    Result of a mutating call on the ledger or the registry.

    Precondition failures are reported here instead of being raised, with the
    specific LedgerError attached. Nothing was committed when status is
    REJECTED.

    Attributes:
        status: APPLIED or REJECTED
        events: Events produced by the committed diff (empty when rejected)
        error: The precondition failure (None when applied)
        operation: The logged Operation, for ledger operations
        observer_errors: Exceptions raised by observers while the committed
            events were delivered. The operation stays applied.
    """
    status: ExecuteResult
    events: Tuple[Any, ...] = ()
    error: Optional[LedgerError] = None
    operation: Optional[Operation] = None
    observer_errors: Tuple[Exception, ...] = ()

    @property
    def applied(self) -> bool:
        return self.status == ExecuteResult.APPLIED

    @property
    def rejected(self) -> bool:
        return self.status == ExecuteResult.REJECTED

    def raise_for_error(self) -> 'OperationResult':
        """Re-raise the precondition failure, if any. Returns self otherwise."""
        if self.error is not None:
            raise self.error
        return self

    @classmethod
    def reject(cls, error: LedgerError) -> 'OperationResult':
        return cls(status=ExecuteResult.REJECTED, error=error)
