"""
test_binding.py - Unit tests for the parent binding protocol

Tests:
- compute_bind_parent_asset against FakeView / FakeRegistry: check order
- FractionalLedger.bind_parent_asset: one-way UNBOUND -> BOUND transition
- fractionalize(): the transfer-then-bind flow
- verify_backing()
"""

import pytest

from fractional import (
    compute_bind_parent_asset, binding_state, fractionalize,
    FractionalLedger, UniqueAssetRegistry, ParentBinding, BindingState, OperationKind,
    AlreadyBound, Unauthorized, UnknownAsset, NotAssetOwner,
)
from .fake_view import FakeView, FakeRegistry
from tests.conftest import (
    OWNER, ADDR1, ADDR2, LEDGER_ADDRESS, REGISTRY_ADDRESS, TOKEN_ID, TOTAL_SUPPLY,
)


class TestComputeBind:

    def test_bind_builds_binding_change(self):
        view = FakeView(address="ledger", creator="alice")
        registry = FakeRegistry({7: "ledger"}, address="nft")
        pending = compute_bind_parent_asset(view, "alice", registry, 7)
        assert pending.kind == OperationKind.BIND_PARENT
        assert pending.binding_change.old is None
        assert pending.binding_change.new == ParentBinding("nft", 7)
        assert pending.binding_change.registry is registry
        assert pending.moves == ()
        assert pending.events == ()

    def test_already_bound_checked_first(self):
        view = FakeView(creator="alice", binding=ParentBinding("nft", 1))
        with pytest.raises(AlreadyBound):
            compute_bind_parent_asset(view, "mallory", FakeRegistry(), 7)

    def test_only_creator_binds(self):
        view = FakeView(address="ledger", creator="alice")
        registry = FakeRegistry({7: "ledger"})
        with pytest.raises(Unauthorized):
            compute_bind_parent_asset(view, "mallory", registry, 7)

    def test_unknown_asset(self):
        view = FakeView(creator="alice")
        with pytest.raises(UnknownAsset):
            compute_bind_parent_asset(view, "alice", FakeRegistry(), 7)

    def test_asset_not_owned_by_ledger(self):
        view = FakeView(address="ledger", creator="alice")
        registry = FakeRegistry({7: "alice"})
        with pytest.raises(NotAssetOwner, match="owned by alice"):
            compute_bind_parent_asset(view, "alice", registry, 7)

    def test_binding_state(self):
        assert binding_state(FakeView()) == BindingState.UNBOUND
        assert binding_state(FakeView(binding=ParentBinding("nft", 1))) == BindingState.BOUND


class TestBindParentAsset:

    def test_bind_after_transfer(self, registry, ledger):
        registry.transfer_asset(OWNER, OWNER, LEDGER_ADDRESS, TOKEN_ID)
        result = ledger.bind_parent_asset(OWNER, registry, TOKEN_ID)
        assert result.applied
        assert result.events == ()
        assert ledger.binding_state() == BindingState.BOUND
        assert ledger.parent_token() == REGISTRY_ADDRESS
        assert ledger.parent_token_id() == TOKEN_ID
        assert ledger.operation_log[-1].kind == OperationKind.BIND_PARENT

    def test_bind_without_transfer_rejected(self, registry, ledger):
        result = ledger.bind_parent_asset(OWNER, registry, TOKEN_ID)
        assert isinstance(result.error, NotAssetOwner)
        assert ledger.binding_state() == BindingState.UNBOUND
        assert ledger.parent_token() is None

    def test_bind_unknown_asset_rejected(self, registry, ledger):
        result = ledger.bind_parent_asset(OWNER, registry, 999)
        assert isinstance(result.error, UnknownAsset)
        assert ledger.parent_token_id() is None

    def test_non_creator_rejected(self, registry, ledger):
        registry.transfer_asset(OWNER, OWNER, LEDGER_ADDRESS, TOKEN_ID)
        result = ledger.bind_parent_asset(ADDR1, registry, TOKEN_ID)
        assert isinstance(result.error, Unauthorized)
        assert ledger.parent_token() is None

    def test_rebinding_rejected(self, registry, bound_ledger):
        registry.create(OWNER, 16)
        registry.transfer_asset(OWNER, OWNER, LEDGER_ADDRESS, 16)
        result = bound_ledger.bind_parent_asset(OWNER, registry, 16)
        assert isinstance(result.error, AlreadyBound)
        assert bound_ledger.parent_token_id() == TOKEN_ID

    def test_rebinding_same_asset_rejected(self, registry, bound_ledger):
        result = bound_ledger.bind_parent_asset(OWNER, registry, TOKEN_ID)
        assert isinstance(result.error, AlreadyBound)

    def test_binding_leaves_balances_alone(self, registry, ledger):
        ledger.transfer(OWNER, ADDR1, 100)
        before = (dict(ledger.balances), dict(ledger.allowances))
        fractionalize(registry, ledger, OWNER, TOKEN_ID)
        assert (dict(ledger.balances), dict(ledger.allowances)) == before

    def test_bookkeeping_works_before_binding(self, ledger):
        assert ledger.transfer(OWNER, ADDR1, 10).applied
        assert ledger.approve(ADDR1, ADDR2, 10).applied
        assert ledger.transfer_from(ADDR2, ADDR1, ADDR2, 10).applied

    def test_binding_survives_replay(self, bound_ledger):
        replayed = bound_ledger.replay()
        assert replayed.parent_binding == bound_ledger.parent_binding
        assert replayed.verify_backing()

    def test_replay_keeps_binding_after_asset_leaves(self, registry, bound_ledger):
        registry.transfer_asset(LEDGER_ADDRESS, LEDGER_ADDRESS, ADDR1, TOKEN_ID)
        replayed = bound_ledger.replay()
        assert replayed.parent_binding == bound_ledger.parent_binding
        assert not replayed.verify_backing()

    def test_binding_checks_registry_given(self, registry, ledger):
        other = UniqueAssetRegistry("0xother", verbose=False)
        other.create(OWNER, TOKEN_ID)
        registry.transfer_asset(OWNER, OWNER, LEDGER_ADDRESS, TOKEN_ID)
        result = ledger.bind_parent_asset(OWNER, other, TOKEN_ID)
        assert isinstance(result.error, NotAssetOwner)


class TestFractionalize:

    def test_fractionalize(self, registry, ledger):
        outcome = fractionalize(registry, ledger, OWNER, TOKEN_ID)
        assert outcome.applied
        assert outcome.asset_transfer.applied
        assert outcome.binding.applied
        assert registry.owner_of(TOKEN_ID) == LEDGER_ADDRESS
        assert ledger.parent_token_id() == TOKEN_ID

    def test_fractionalize_by_non_owner(self, registry, ledger):
        outcome = fractionalize(registry, ledger, ADDR1, TOKEN_ID)
        assert not outcome.applied
        assert isinstance(outcome.asset_transfer.error, Unauthorized)
        assert outcome.binding is None
        assert registry.owner_of(TOKEN_ID) == OWNER
        assert ledger.parent_token() is None

    def test_fractionalize_by_asset_owner_who_is_not_creator(self, registry):
        registry.create(ADDR1, 42)
        ledger = FractionalLedger(
            LEDGER_ADDRESS, OWNER, TOTAL_SUPPLY, verbose=False
        )
        outcome = fractionalize(registry, ledger, ADDR1, 42)
        assert outcome.asset_transfer.applied
        assert isinstance(outcome.binding.error, Unauthorized)
        # The asset is with the ledger; its creator can still bind it
        assert ledger.bind_parent_asset(OWNER, registry, 42).applied


class TestVerifyBacking:

    def test_unbound_has_no_backing(self, ledger):
        assert not ledger.verify_backing()

    def test_bound_has_backing(self, bound_ledger):
        assert bound_ledger.verify_backing()

    def test_backing_lost_when_asset_leaves(self, registry, bound_ledger):
        registry.transfer_asset(LEDGER_ADDRESS, LEDGER_ADDRESS, ADDR1, TOKEN_ID)
        assert not bound_ledger.verify_backing()
        # The binding itself never changes
        assert bound_ledger.parent_token_id() == TOKEN_ID
