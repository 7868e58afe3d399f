"""Tests for the in-process proposal store."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from trainingcal.errors import NotFoundError
from trainingcal.proposals.types import (
    CreatePayload,
    DeletePayload,
    Proposal,
    ProposalKind,
    ProposalStatus,
    UpdatePayload,
)


def add_delete(store, event_id="evt-1"):
    return store.add(ProposalKind.DELETE, DeletePayload(event_id=event_id), f"Delete → {event_id}")


class TestProposalStore:
    """Tests for add/get/list/checkout/restore/reject."""

    def test_add_assigns_unique_ids_and_order(self, store):
        first = add_delete(store, "a")
        second = add_delete(store, "b")
        assert first.id != second.id
        assert first.status == ProposalStatus.PENDING
        assert [proposal.id for proposal in store.list()] == [first.id, second.id]
        assert len(store) == 2

    def test_created_at_is_aware(self, store):
        assert add_delete(store).created_at.tzinfo is not None

    def test_get_unknown_raises(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.get("nope")
        assert exc_info.value.message == "Proposal not found: nope"

    def test_checkout_removes(self, store):
        proposal = add_delete(store)
        assert store.checkout(proposal.id) == proposal
        assert proposal.id not in store
        with pytest.raises(NotFoundError):
            store.checkout(proposal.id)

    def test_restore_keeps_original_position(self, store):
        first = add_delete(store, "a")
        second = add_delete(store, "b")
        store.restore(store.checkout(first.id))
        assert [proposal.id for proposal in store.list()] == [first.id, second.id]

    def test_reject_is_terminal(self, store):
        proposal = add_delete(store)
        rejected = store.reject(proposal.id)
        assert rejected.status == ProposalStatus.REJECTED
        assert store.list() == []
        with pytest.raises(NotFoundError):
            store.reject(proposal.id)

    def test_concurrent_checkout_single_winner(self, store):
        """Only one of many threads can check out the same proposal."""
        proposal = add_delete(store)

        def attempt() -> bool:
            try:
                store.checkout(proposal.id)
            except NotFoundError:
                return False
            return True

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(lambda _: attempt(), range(16)))
        assert outcomes.count(True) == 1


class TestProposalPayloads:
    """Tests for payload deserialization."""

    def test_payload_kinds_survive_round_trip(self, store, local):
        create = store.add(
            ProposalKind.CREATE,
            CreatePayload(title="Run", start=local(9, 7), end=local(9, 8), description="d"),
            "Create → Run",
        )
        update = store.add(ProposalKind.UPDATE, UpdatePayload(event_id="e1"), "Update → e1")
        delete = add_delete(store, "e2")

        restored = [Proposal.model_validate(p.model_dump()) for p in (create, update, delete)]
        assert [type(p.payload) for p in restored] == [CreatePayload, UpdatePayload, DeletePayload]
