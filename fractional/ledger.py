"""
ledger.py - Fractional Share Ledger

The FractionalLedger is the central state manager for a fractionalized asset.
It is the only class that mutates share state, ensuring controlled and
auditable changes.

Key responsibilities:
    - Implements LedgerView protocol for safe read-only access by pure functions
    - Fixes the total supply at construction and conserves it forever
    - Executes operations atomically (the whole diff commits or nothing does)
    - Binds, once, to a parent asset in an external registry
    - Always validates and always logs - no exceptions
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Tuple

from .core import (
    # Types
    Address, AssetId, AssetRegistry, Balances, Allowances,
    ParentBinding, PendingOperation, Operation, OperationResult,
    OperationKind, ExecuteResult, BindingState, LedgerEvent,
    ShareMove, TransferEvent,
    # Constants
    ZERO_ADDRESS, DEFAULT_DECIMALS, REPR_WIDTH,
    # Exceptions
    LedgerError, InsufficientBalance, InvalidAddress, AlreadyBound,
    StaleOperation, UnknownAsset, Unauthorized, NotAssetOwner,
    # Helpers
    build_operation, validate_address, validate_amount, is_zero_address,
)
from .shares import (
    compute_transfer, compute_approve, compute_transfer_from,
    compute_increase_allowance, compute_decrease_allowance,
)
from .binding import compute_bind_parent_asset, binding_state
from .interfaces import SUPPORTED_INTERFACES, supports_interface


Observer = Callable[[LedgerEvent], None]


class FractionalLedger:
    """
    Fixed-supply share ledger bound to one unique asset.

    Implements the LedgerView protocol, allowing the ledger to be passed to
    the pure compute_* functions that access only read-only methods.

    Design Principles:
        - Always validates: Every operation is checked by its compute_*
          function, then re-checked against live state in execute(). No
          shortcuts.
        - Always logs: Every applied operation is appended to operation_log,
          enabling replay() for state reconstruction.
        - Precondition failures are returned, not raised: every mutating
          method returns an OperationResult.

    Thread Safety:
        Not thread-safe. Callers must serialize access.

    Example:
        ledger = FractionalLedger("0xfnft", "alice", 1000, verbose=False)
        ledger.transfer("alice", "bob", 100)
        ledger.approve("alice", "carol", 50)
        ledger.transfer_from("carol", "alice", "dave", 50)
    """

    def __init__(
        self,
        address: Address,
        creator: Address,
        initial_supply: int,
        name: str = "Fractional NFT",
        symbol: str = "FNFT",
        decimals: int = DEFAULT_DECIMALS,
        verbose: bool = True,
    ):
        """
        Create a ledger and credit the whole supply to creator.

        Args:
            address: The ledger's own identity (receives the parent asset)
            creator: Constructing actor; receives initial_supply shares
            initial_supply: Fixed total supply (unsigned 256-bit)
            name: Share name
            symbol: Share symbol
            decimals: Display decimals (0-255)
            verbose: Print an audit line for every operation (default: True)

        Raises:
            TypeError, ValueError: On malformed arguments
        """
        validate_address(address, "address")
        validate_address(creator, "creator")
        validate_amount(initial_supply, "initial_supply")
        if is_zero_address(address) or is_zero_address(creator):
            raise ValueError("ledger address and creator cannot be the zero address")
        if address == creator:
            raise ValueError("ledger address and creator must be different")
        if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= 255:
            raise ValueError(f"decimals must be an int in [0, 255], got {decimals!r}")

        self._address = address
        self._creator = creator
        self._total_supply = initial_supply
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.verbose = verbose

        self.balances: Balances = {}
        self.allowances: Allowances = {}
        self._parent_binding: Optional[ParentBinding] = None
        self._parent_registry: Optional[AssetRegistry] = None
        self.operation_log: List[Operation] = []
        self._next_sequence: int = 0
        self._observers: List[Observer] = []

        # Issuance is the first logged operation
        issuance = build_operation(
            OperationKind.ISSUE, creator,
            moves=[ShareMove(initial_supply, ZERO_ADDRESS, creator)],
            events=[TransferEvent(ZERO_ADDRESS, creator, initial_supply)],
        )
        self._commit(issuance)
        if self.verbose:
            print(f"📝 Created: {symbol} ({name}) @ {address}, "
                  f"supply={initial_supply} → {creator}")

    # ========================================================================
    # LedgerView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def address(self) -> Address:
        """The ledger's own identity."""
        return self._address

    @property
    def creator(self) -> Address:
        return self._creator

    @property
    def parent_binding(self) -> Optional[ParentBinding]:
        return self._parent_binding

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: Address) -> int:
        """
        Get the share balance of holder.

        Returns 0 for addresses that never held shares. Never raises.
        """
        return self.balances.get(holder, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        """Get what spender may still move out of owner's balance (default 0)."""
        return self.allowances.get((owner, spender), 0)

    def holders(self) -> Balances:
        """Return all non-zero balances."""
        return dict(self.balances)

    def binding_state(self) -> BindingState:
        return binding_state(self)

    def parent_token(self) -> Optional[Address]:
        """Address of the bound registry, or None while unbound."""
        if self._parent_binding is None:
            return None
        return self._parent_binding.registry_address

    def parent_token_id(self) -> Optional[AssetId]:
        """Id of the bound asset, or None while unbound."""
        if self._parent_binding is None:
            return None
        return self._parent_binding.asset_id

    def supports_interface(self, interface_id: Any) -> bool:
        """ERC-165 query. Never raises."""
        return supports_interface(interface_id, SUPPORTED_INTERFACES)

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Verify that the sum of all balances equals the total supply.

        Returns:
            Dict with keys:
            - 'valid': bool - True if the supply is conserved
            - 'total_supply': int - The fixed supply
            - 'sum_of_balances': int - Current sum over all holders
            - 'difference': int - sum_of_balances - total_supply

        Example:
            result = ledger.verify_conservation()
            assert result['valid'], f"Conservation violated: {result}"
        """
        held = sum(self.balances[h] for h in sorted(self.balances))
        return {
            'valid': held == self._total_supply,
            'total_supply': self._total_supply,
            'sum_of_balances': held,
            'difference': held - self._total_supply,
        }

    def verify_backing(self) -> bool:
        """
        Re-check with the registry that the ledger still owns its parent asset.

        Returns False while unbound or if the registry no longer knows the asset.
        """
        if self._parent_binding is None or self._parent_registry is None:
            return False
        try:
            owner = self._parent_registry.owner_of(self._parent_binding.asset_id)
        except UnknownAsset:
            return False
        return owner == self._address

    # ========================================================================
    # OBSERVERS
    # ========================================================================

    def subscribe(self, observer: Observer) -> None:
        """Deliver every event of every applied operation to observer, synchronously."""
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        self._observers.remove(observer)

    # ========================================================================
    # OPERATIONS (Mutating)
    # ========================================================================

    def transfer(self, caller: Address, to: Address, amount: int) -> OperationResult:
        """Move amount shares from caller to to."""
        return self._submit(compute_transfer, caller, to, amount)

    def approve(self, caller: Address, spender: Address, amount: int) -> OperationResult:
        """Set allowance(caller, spender) to amount, overwriting any previous value."""
        return self._submit(compute_approve, caller, spender, amount)

    def increase_allowance(
        self, caller: Address, spender: Address, added_value: int
    ) -> OperationResult:
        return self._submit(compute_increase_allowance, caller, spender, added_value)

    def decrease_allowance(
        self, caller: Address, spender: Address, subtracted_value: int
    ) -> OperationResult:
        return self._submit(compute_decrease_allowance, caller, spender, subtracted_value)

    def transfer_from(
        self, caller: Address, owner: Address, to: Address, amount: int
    ) -> OperationResult:
        """Move amount of owner's shares to to, spending caller's allowance."""
        return self._submit(compute_transfer_from, caller, owner, to, amount)

    def bind_parent_asset(
        self, caller: Address, registry: AssetRegistry, asset_id: AssetId
    ) -> OperationResult:
        """
        Bind this ledger to asset_id in registry.

        The registry must already report this ledger's address as the asset's
        owner. See fractional.binding for the full protocol.
        """
        return self._submit(compute_bind_parent_asset, caller, registry, asset_id)

    def _submit(self, compute: Callable[..., PendingOperation], *args) -> OperationResult:
        """
        Compute a pending operation against this ledger and execute it.

        LedgerErrors raised by compute become REJECTED results. Malformed
        input (TypeError, ValueError) propagates to the caller.
        """
        try:
            pending = compute(self, *args)
        except LedgerError as e:
            return self._reject(e)
        return self.execute(pending)

    # ========================================================================
    # EXECUTION
    # ========================================================================

    def execute(self, pending: PendingOperation) -> OperationResult:
        """
        Re-validate a PendingOperation against live state and commit it.

        All moves, allowance changes and the binding change are applied
        together, or none of them are. The diff is checked twice: against
        current state (_validate_pending) and against what pending.caller is
        allowed to do (_authorize). A hand-built diff gets no more authority
        than the compute_* functions grant.

        Observers are notified after commit. An observer that raises does not
        stop delivery to the others; its exception is collected in
        result.observer_errors and the operation stays APPLIED.

        Args:
            pending: PendingOperation from a compute_* function

        Returns:
            OperationResult with status APPLIED and the logged Operation, or
            status REJECTED with the failing LedgerError
        """
        if pending.kind == OperationKind.ISSUE:
            return self._reject(LedgerError("shares cannot be issued after construction"))

        error = self._validate_pending(pending)
        if error is None:
            error = self._authorize(pending)
        if error is not None:
            return self._reject(error)

        op = self._commit(pending)
        return OperationResult(
            status=ExecuteResult.APPLIED,
            events=op.events,
            operation=op,
            observer_errors=self._notify(op.events),
        )

    def _notify(self, events: Tuple[LedgerEvent, ...]) -> Tuple[Exception, ...]:
        """Deliver events to every observer, returning whatever they raised."""
        errors: List[Exception] = []
        for event in events:
            for observer in list(self._observers):
                try:
                    observer(event)
                except Exception as e:
                    if self.verbose:
                        print(f"⚠ observer {observer!r} failed on {event}: "
                              f"{type(e).__name__}: {e}")
                    errors.append(e)
        return tuple(errors)

    def _reject(self, error: LedgerError) -> OperationResult:
        if self.verbose:
            print(f"✗ REJECTED: {type(error).__name__}: {error}")
        return OperationResult.reject(error)

    def _validate_pending(self, pending: PendingOperation) -> Optional[LedgerError]:
        """
        Check a pending diff against current state.

        Checks performed:
        1. No move credits the zero address or debits any address but the
           zero address below zero (net per address)
        2. Every allowance change starts from the current allowance
        3. A binding change only happens while unbound

        Returns:
            None if the diff can be committed, otherwise the LedgerError
        """
        net: Dict[Address, int] = {}
        for move in pending.moves:
            if is_zero_address(move.dest):
                return InvalidAddress("cannot credit the zero address")
            if is_zero_address(move.source):
                return InvalidAddress("cannot debit the zero address")
            net[move.source] = net.get(move.source, 0) - move.amount
            net[move.dest] = net.get(move.dest, 0) + move.amount

        for holder, delta in net.items():
            proposed = self.balance_of(holder) + delta
            if proposed < 0:
                return InsufficientBalance(
                    f"{holder} has {self.balance_of(holder)}, needs {-delta}"
                )

        for ac in pending.allowance_changes:
            current = self.allowance(ac.owner, ac.spender)
            if current != ac.old_value:
                return StaleOperation(
                    f"allowance {ac.owner} → {ac.spender} is {current}, "
                    f"operation expected {ac.old_value}"
                )

        bc = pending.binding_change
        if bc is not None:
            if self._parent_binding is not None:
                return AlreadyBound(
                    f"already bound to asset {self._parent_binding.asset_id} "
                    f"@ {self._parent_binding.registry_address}"
                )
            if bc.old is not None:
                return StaleOperation("binding change expected an existing binding")

        return None

    def _authorize(self, pending: PendingOperation) -> Optional[LedgerError]:
        """
        Check that pending.caller may make every change in the diff.

        Rules, applied whatever the kind:
        1. An allowance change owned by someone else must be the caller's own
           allowance going down (spending, as in transfer_from)
        2. Shares debited from anyone but the caller must be paid for by
           exactly that much allowance decrement
        3. A binding change needs the creator as caller and a registry that
           reports this ledger as the asset's owner

        Returns:
            None if the caller is authorized, otherwise the LedgerError
        """
        caller = pending.caller

        spent: Dict[Address, int] = {}
        for ac in pending.allowance_changes:
            if ac.owner == caller:
                continue
            if ac.spender != caller or ac.new_value > ac.old_value:
                return Unauthorized(
                    f"{caller} cannot set allowance {ac.owner} → {ac.spender}"
                )
            spent[ac.owner] = spent.get(ac.owner, 0) + ac.old_value - ac.new_value

        debited: Dict[Address, int] = {}
        for move in pending.moves:
            if move.source != caller:
                debited[move.source] = debited.get(move.source, 0) + move.amount

        for holder in sorted(set(spent) | set(debited)):
            if spent.get(holder, 0) != debited.get(holder, 0):
                return Unauthorized(
                    f"{caller} moves {debited.get(holder, 0)} of {holder}'s shares "
                    f"but spends {spent.get(holder, 0)} allowance"
                )

        bc = pending.binding_change
        if bc is not None:
            if caller != self._creator:
                return Unauthorized(f"{caller} is not the ledger creator")
            registry = bc.registry
            if registry is None or registry.address != bc.new.registry_address:
                return NotAssetOwner(
                    f"binding to {bc.new.registry_address} was not verified against that registry"
                )
            try:
                owner = registry.owner_of(bc.new.asset_id)
            except UnknownAsset as e:
                return e
            if owner != self._address:
                return NotAssetOwner(
                    f"asset {bc.new.asset_id} is owned by {owner}, not by ledger {self._address}"
                )

        return None

    def _commit(self, pending: PendingOperation) -> Operation:
        """Apply a validated diff, log it and return the Operation record."""
        for move in pending.moves:
            if not is_zero_address(move.source):
                self._set_balance(move.source, self.balance_of(move.source) - move.amount)
            self._set_balance(move.dest, self.balance_of(move.dest) + move.amount)

        for ac in pending.allowance_changes:
            key = (ac.owner, ac.spender)
            if ac.new_value:
                self.allowances[key] = ac.new_value
            else:
                self.allowances.pop(key, None)

        bc = pending.binding_change
        if bc is not None:
            self._parent_binding = bc.new
            self._parent_registry = bc.registry

        sequence = self._next_sequence
        self._next_sequence += 1
        op = Operation(
            pending=pending,
            sequence_number=sequence,
            exec_id=f"exec:{self._address}:{sequence:012d}",
        )
        self.operation_log.append(op)

        if self.verbose and pending.kind != OperationKind.ISSUE:
            self._print_op_result(op)
        return op

    def _set_balance(self, holder: Address, amount: int) -> None:
        # Zero balances are dropped so holders() only lists real positions
        if amount:
            self.balances[holder] = amount
        else:
            self.balances.pop(holder, None)

    def _print_op_result(self, op: Operation) -> None:
        """Print the operation box with an APPLIED line appended."""
        lines = repr(op).split('\n')
        w = REPR_WIDTH
        bar = "─" * w
        text = " ✓ APPLIED"
        lines[-1] = f"├{bar}┤"
        lines.append(f"│{text + ' ' * (w - len(text))}│")
        lines.append(f"└{bar}┘")
        print("\n".join(lines))

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> FractionalLedger:
        """
        Create an independent copy of this ledger.

        Balances, allowances, binding and the operation log are copied.
        Observers are not. The parent registry is shared, not copied: it is
        an external collaborator.
        """
        cloned = FractionalLedger.__new__(FractionalLedger)
        cloned._address = self._address
        cloned._creator = self._creator
        cloned._total_supply = self._total_supply
        cloned.name = self.name
        cloned.symbol = self.symbol
        cloned.decimals = self.decimals
        cloned.verbose = self.verbose
        cloned.balances = dict(self.balances)
        cloned.allowances = dict(self.allowances)
        cloned._parent_binding = self._parent_binding
        cloned._parent_registry = self._parent_registry
        cloned.operation_log = list(self.operation_log)
        cloned._next_sequence = self._next_sequence
        cloned._observers = []
        return cloned

    def replay(self) -> FractionalLedger:
        """
        Create a new ledger by re-executing the operation log.

        The issuance at sequence 0 is recreated by construction; every later
        operation is re-validated against the rebuilt state and committed in
        order. Authorization is not re-run: logged operations were authorized
        when first applied, and a binding is not re-checked against the
        registry's current owner.

        Returns:
            New FractionalLedger with replayed state

        Raises:
            LedgerError: If any logged operation is rejected on replay
        """
        new_ledger = FractionalLedger(
            self._address, self._creator, self._total_supply,
            name=self.name, symbol=self.symbol, decimals=self.decimals,
            verbose=self.verbose,
        )
        for op in self.operation_log[1:]:
            error = new_ledger._validate_pending(op.pending)
            if error is not None:
                raise LedgerError(f"Replay failed at {op.exec_id}: {error}")
            new_ledger._commit(op.pending)
        return new_ledger

    def snapshot(self) -> Tuple[Balances, Allowances, Optional[ParentBinding]]:
        """Return copies of the mutable state, for comparisons."""
        return dict(self.balances), dict(self.allowances), self._parent_binding

    def __repr__(self) -> str:
        return (
            f"FractionalLedger({self.symbol} @ {self._address}, "
            f"supply={self._total_supply}, holders={len(self.balances)}, "
            f"{binding_state(self).value})"
        )
