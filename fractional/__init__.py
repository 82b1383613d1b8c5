"""
fractional - Fractional Ownership Ledger

Split sole ownership of one unique asset into a fixed supply of fungible
shares, with ERC-20 style balances and allowances and a one-way binding to
the asset's record in an external registry.

Usage:
    from fractional import FractionalLedger, UniqueAssetRegistry, fractionalize

    registry = UniqueAssetRegistry("0xnft")
    registry.create("alice", 15)

    ledger = FractionalLedger("0xfnft", "alice", 1000)
    fractionalize(registry, ledger, "alice", 15)

    # Trade fractions
    ledger.transfer("alice", "bob", 100)
    ledger.approve("alice", "carol", 50)
    result = ledger.transfer_from("carol", "alice", "dave", 50)
"""

# Core types
from .core import (
    Address,
    AssetId,
    LedgerView,
    AssetRegistry,
    ParentBinding,
    ShareMove,
    AllowanceChange,
    BindingChange,
    PendingOperation,
    Operation,
    OperationResult,
    OperationKind,
    ExecuteResult,
    BindingState,
    TransferEvent,
    ApprovalEvent,
    build_operation,
    validate_amount,
    validate_address,
    LedgerError,
    InsufficientBalance,
    InsufficientAllowance,
    AmountOverflow,
    InvalidAddress,
    Unauthorized,
    UnknownAsset,
    AssetAlreadyExists,
    NotAssetOwner,
    AlreadyBound,
    StaleOperation,
    ZERO_ADDRESS,
    UINT256_MAX,
    DEFAULT_DECIMALS,
    INTERFACE_ID_ERC165,
    INTERFACE_ID_ERC20,
    INTERFACE_ID_ERC1633,
    INTERFACE_ID_INVALID,
)

# Ledger
from .ledger import FractionalLedger

# Share operations
from .shares import (
    compute_transfer,
    compute_approve,
    compute_increase_allowance,
    compute_decrease_allowance,
    compute_transfer_from,
)

# Parent binding
from .binding import (
    Fractionalization,
    binding_state,
    compute_bind_parent_asset,
    fractionalize,
)

# Capability introspection
from .interfaces import (
    SUPPORTED_INTERFACES,
    normalize_interface_id,
    supports_interface,
    format_interface_id,
)

# Registry
from .registry import (
    UniqueAssetRegistry,
    AssetTransferEvent,
    AssetApprovalEvent,
    OperatorApprovalEvent,
)

__all__ = [
    # Core
    'Address', 'AssetId', 'LedgerView', 'AssetRegistry', 'ParentBinding',
    'ShareMove', 'AllowanceChange', 'BindingChange',
    'PendingOperation', 'Operation', 'OperationResult', 'OperationKind',
    'ExecuteResult', 'BindingState', 'TransferEvent', 'ApprovalEvent',
    'build_operation', 'validate_amount', 'validate_address',
    'LedgerError', 'InsufficientBalance', 'InsufficientAllowance', 'AmountOverflow',
    'InvalidAddress', 'Unauthorized', 'UnknownAsset', 'AssetAlreadyExists',
    'NotAssetOwner', 'AlreadyBound', 'StaleOperation',
    'ZERO_ADDRESS', 'UINT256_MAX', 'DEFAULT_DECIMALS',
    'INTERFACE_ID_ERC165', 'INTERFACE_ID_ERC20', 'INTERFACE_ID_ERC1633',
    'INTERFACE_ID_INVALID',
    # Ledger
    'FractionalLedger',
    # Shares
    'compute_transfer', 'compute_approve', 'compute_increase_allowance',
    'compute_decrease_allowance', 'compute_transfer_from',
    # Binding
    'Fractionalization', 'binding_state', 'compute_bind_parent_asset', 'fractionalize',
    # Interfaces
    'SUPPORTED_INTERFACES', 'normalize_interface_id', 'supports_interface',
    'format_interface_id',
    # Registry
    'UniqueAssetRegistry', 'AssetTransferEvent', 'AssetApprovalEvent',
    'OperatorApprovalEvent',
]

__version__ = '1.0.0'
