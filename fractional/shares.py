"""
shares.py - Share Transfers and Allowances

Pure functions that turn a share request into a PendingOperation:
1. compute_transfer() - Move shares out of the caller's own balance
2. compute_approve() - Overwrite an allowance
3. compute_increase_allowance() / compute_decrease_allowance() - Adjust an allowance
4. compute_transfer_from() - Spend an allowance on the owner's behalf

Every function reads the ledger through a LedgerView, checks all
preconditions before building anything, and raises the specific LedgerError
on the first failure. A returned PendingOperation is therefore complete and
valid against the view it was computed from.

Example:
    pending = compute_transfer(ledger, "alice", "bob", 100)
    ledger.execute(pending)
"""

from __future__ import annotations

from .core import (
    LedgerView, Address, PendingOperation, OperationKind,
    ShareMove, AllowanceChange, TransferEvent, ApprovalEvent,
    InsufficientBalance, InsufficientAllowance, InvalidAddress,
    build_operation, validate_amount, validate_address, is_zero_address,
    checked_add,
)


def _require_nonzero(address: Address, role: str) -> None:
    if is_zero_address(address):
        raise InvalidAddress(f"{role} cannot be the zero address")


def _require_balance(view: LedgerView, holder: Address, amount: int) -> None:
    balance = view.balance_of(holder)
    if balance < amount:
        raise InsufficientBalance(
            f"{holder} has {balance}, needs {amount}"
        )


def compute_transfer(
    view: LedgerView,
    caller: Address,
    to: Address,
    amount: int,
) -> PendingOperation:
    """
    Move amount shares from caller to to.

    Self-transfers and zero-amount transfers are valid and still emit a
    TransferEvent.

    Raises:
        InvalidAddress: If to is the zero address
        InsufficientBalance: If caller holds fewer than amount shares
    """
    validate_address(caller, "caller")
    validate_address(to, "to")
    validate_amount(amount)
    _require_nonzero(to, "recipient")
    _require_balance(view, caller, amount)

    return build_operation(
        OperationKind.TRANSFER, caller,
        moves=[ShareMove(amount, caller, to)],
        events=[TransferEvent(caller, to, amount)],
    )


def _allowance_operation(
    kind: OperationKind,
    view: LedgerView,
    owner: Address,
    spender: Address,
    new_value: int,
) -> PendingOperation:
    old_value = view.allowance(owner, spender)
    return build_operation(
        kind, owner,
        allowance_changes=[AllowanceChange(owner, spender, old_value, new_value)],
        events=[ApprovalEvent(owner, spender, new_value)],
    )


def compute_approve(
    view: LedgerView,
    caller: Address,
    spender: Address,
    amount: int,
) -> PendingOperation:
    """
    Set the allowance of spender over caller's shares to exactly amount.

    The previous allowance is overwritten, not added to. The caller's balance
    is not consulted; an allowance larger than the balance only fails when
    spent.

    Raises:
        InvalidAddress: If spender is the zero address
    """
    validate_address(caller, "caller")
    validate_address(spender, "spender")
    validate_amount(amount)
    _require_nonzero(spender, "spender")
    return _allowance_operation(OperationKind.APPROVE, view, caller, spender, amount)


def compute_increase_allowance(
    view: LedgerView,
    caller: Address,
    spender: Address,
    added_value: int,
) -> PendingOperation:
    """
    Grow the allowance of spender by added_value.

    Raises:
        InvalidAddress: If spender is the zero address
        AmountOverflow: If the new allowance would exceed UINT256_MAX
    """
    validate_address(caller, "caller")
    validate_address(spender, "spender")
    validate_amount(added_value, "added_value")
    _require_nonzero(spender, "spender")
    new_value = checked_add(view.allowance(caller, spender), added_value)
    return _allowance_operation(
        OperationKind.INCREASE_ALLOWANCE, view, caller, spender, new_value
    )


def compute_decrease_allowance(
    view: LedgerView,
    caller: Address,
    spender: Address,
    subtracted_value: int,
) -> PendingOperation:
    """
    Shrink the allowance of spender by subtracted_value.

    Raises:
        InvalidAddress: If spender is the zero address
        InsufficientAllowance: If the allowance would go below zero
    """
    validate_address(caller, "caller")
    validate_address(spender, "spender")
    validate_amount(subtracted_value, "subtracted_value")
    _require_nonzero(spender, "spender")
    current = view.allowance(caller, spender)
    if subtracted_value > current:
        raise InsufficientAllowance(
            f"decreased allowance below zero: {current} - {subtracted_value}"
        )
    return _allowance_operation(
        OperationKind.DECREASE_ALLOWANCE, view, caller, spender,
        current - subtracted_value,
    )


def compute_transfer_from(
    view: LedgerView,
    caller: Address,
    owner: Address,
    to: Address,
    amount: int,
) -> PendingOperation:
    """
    Move amount shares from owner to to, spending caller's allowance.

    The allowance is checked before the balance. The resulting diff debits
    the owner, credits the recipient and reduces the allowance together.

    Raises:
        InvalidAddress: If to is the zero address
        InsufficientAllowance: If allowance(owner, caller) < amount
        InsufficientBalance: If owner holds fewer than amount shares
    """
    validate_address(caller, "caller")
    validate_address(owner, "owner")
    validate_address(to, "to")
    validate_amount(amount)
    _require_nonzero(to, "recipient")

    current = view.allowance(owner, caller)
    if current < amount:
        raise InsufficientAllowance(
            f"{caller} may spend {current} of {owner}'s shares, needs {amount}"
        )
    _require_balance(view, owner, amount)

    return build_operation(
        OperationKind.TRANSFER_FROM, caller,
        moves=[ShareMove(amount, owner, to)],
        allowance_changes=[AllowanceChange(owner, caller, current, current - amount)],
        events=[TransferEvent(owner, to, amount)],
    )
