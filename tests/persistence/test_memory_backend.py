from dataclasses import dataclass

import pytest

from ledgerwork import UnitOfWorkConfig
from ledgerwork.errors import UnitOfWorkCommitError, UnitOfWorkCompositionError, UnitOfWorkRollbackError
from ledgerwork.hooks import HookDispatcher
from ledgerwork.persistence import (
    AbstractUnitOfWork,
    InMemoryStore,
    InMemoryUnitOfWork,
    StoreError,
    UnitOfWorkState,
)


@dataclass
class Item:
    identifier: int
    name: str = ""


def make_uow(store=None, **kwargs):
    kwargs.setdefault("hook_dispatcher", HookDispatcher())
    return InMemoryUnitOfWork(store if store is not None else InMemoryStore(), **kwargs)


def test_commit_applies_new_dirty_and_deleted():
    store = InMemoryStore()
    store.insert(Item(2, "old"))
    store.insert(Item(3, "gone"))

    uow = make_uow(store)
    uow.register_new(Item(1, "fresh"))
    uow.register_dirty(Item(2, "updated"))
    uow.register_deleted(Item(3))
    uow.commit()

    assert store.get(1).name == "fresh"
    assert store.get(2).name == "updated"
    assert 3 not in store
    assert uow.state is UnitOfWorkState.COMMITTED
    assert list(uow.change_set.stream()) == []


def test_inserts_run_before_deletes_regardless_of_registration_order():
    store = InMemoryStore()
    store.insert(Item(1, "existing"))
    uow = make_uow(store)
    uow.register_deleted(Item(1))
    uow.register_new(Item(2))
    uow.commit()

    assert 1 not in store
    assert 2 in store


def test_failed_commit_restores_store_and_wraps_cause():
    store = InMemoryStore()
    store.insert(Item(1, "existing"))
    uow = make_uow(store)
    uow.register_new(Item(2))
    uow.register_dirty(Item(99))

    with pytest.raises(UnitOfWorkCommitError) as excinfo:
        uow.commit()

    assert isinstance(excinfo.value.cause, StoreError)
    assert excinfo.value.__cause__ is excinfo.value.cause
    assert 2 not in store
    assert len(store) == 1
    assert uow.state is UnitOfWorkState.FAILED
    assert len(uow.change_set) == 2


def test_failed_commit_can_be_retried():
    store = InMemoryStore()
    uow = make_uow(store)
    uow.register_dirty(Item(1, "late"))
    with pytest.raises(UnitOfWorkCommitError):
        uow.commit()

    store.insert(Item(1, "arrived"))
    uow.commit()
    assert store.get(1).name == "late"
    assert uow.state is UnitOfWorkState.COMMITTED


def test_double_commit_is_rejected():
    uow = make_uow()
    uow.commit()
    with pytest.raises(UnitOfWorkCommitError):
        uow.commit()


def test_rollback_discards_changes_without_writing():
    store = InMemoryStore()
    uow = make_uow(store)
    uow.register_new(Item(1)).register_clean(Item(2))
    uow.rollback()

    assert len(store) == 0
    assert uow.change_set.is_empty
    assert uow.state is UnitOfWorkState.ROLLED_BACK


def test_rollback_after_commit_fails():
    uow = make_uow()
    uow.commit()
    with pytest.raises(UnitOfWorkRollbackError):
        uow.rollback()


def test_children_commit_after_parent_by_default():
    store = InMemoryStore()
    dispatcher = HookDispatcher()
    order = []
    dispatcher.register("before_apply", lambda entity, **ctx: order.append(entity.identifier))

    parent = make_uow(store, hook_dispatcher=dispatcher)
    child = make_uow(store, hook_dispatcher=dispatcher)
    parent.add_child(child)
    child.register_new(Item(2))
    parent.register_new(Item(1))
    parent.commit()

    assert order == [1, 2]
    assert child.state is UnitOfWorkState.COMMITTED
    assert list(child.change_set.stream()) == []


def test_children_commit_before_parent_when_configured():
    store = InMemoryStore()
    dispatcher = HookDispatcher()
    order = []
    dispatcher.register("before_apply", lambda entity, **ctx: order.append(entity.identifier))

    parent = make_uow(store, hook_dispatcher=dispatcher, config=UnitOfWorkConfig(child_order="before"))
    child = make_uow(store, hook_dispatcher=dispatcher)
    parent.add_child(child)
    parent.register_new(Item(1))
    child.register_new(Item(2))
    parent.commit()

    assert order == [2, 1]


def test_child_failure_rolls_back_parent_writes():
    store = InMemoryStore()
    child_store = InMemoryStore()
    child_store.insert(Item(5))
    parent = make_uow(store)
    child = make_uow(child_store)
    parent.add_child(child)
    parent.register_new(Item(1))
    child.register_deleted(Item(5))
    child.register_new(Item(6))
    child.register_new(Item(6, "duplicate"))

    with pytest.raises(UnitOfWorkCommitError):
        parent.commit()

    assert len(store) == 0
    assert 5 in child_store
    assert 6 not in child_store
    assert child.state is UnitOfWorkState.FAILED


def test_parent_rollback_resets_children():
    parent = make_uow()
    child = make_uow()
    parent.add_child(child)
    child.register_new(Item(1))
    parent.rollback()

    assert child.change_set.is_empty
    assert child.state is UnitOfWorkState.ROLLED_BACK


def test_lifecycle_hooks_fire():
    dispatcher = HookDispatcher()
    events = []
    for name in ("after_commit", "after_rollback"):
        dispatcher.register(name, lambda entity, event=name, **ctx: events.append((event, ctx["unit_of_work"])))

    committed = make_uow(hook_dispatcher=dispatcher)
    committed.commit()
    rolled_back = make_uow(hook_dispatcher=dispatcher)
    rolled_back.rollback()

    assert events == [("after_commit", committed), ("after_rollback", rolled_back)]


def test_slow_commit_threshold_logs_warning(caplog):
    uow = make_uow(config=UnitOfWorkConfig(slow_commit_ms=0))
    caplog.set_level("DEBUG", logger=uow.logger.name)
    uow.register_new(Item(1))
    uow.commit()
    warnings = [
        record
        for record in caplog.records
        if record.name == uow.logger.name and record.levelname == "WARNING"
    ]
    assert any("unit_of_work.commit took" in record.message for record in warnings)


class RecordingUnitOfWork(AbstractUnitOfWork):
    def __init__(self):
        super().__init__()
        self.calls = []

    def commit(self):
        self.calls.append("commit")

    def rollback(self):
        self.calls.append("rollback")


def test_empty_store_is_used_as_given():
    store = InMemoryStore()
    assert store
    uow = make_uow(store)
    assert uow.store is store


def test_shared_child_is_applied_once():
    store = InMemoryStore()
    root = make_uow(store)
    left = make_uow(store)
    right = make_uow(store)
    shared = make_uow(store)
    root.add_child(left).add_child(right)
    left.add_child(shared)
    right.add_child(shared)
    shared.register_new(Item(1))

    root.commit()

    assert store.get(1) is not None
    assert len(store) == 1
    assert shared.state is UnitOfWorkState.COMMITTED


def test_child_attached_twice_is_applied_once():
    store = InMemoryStore()
    parent = make_uow(store)
    child = make_uow(store)
    parent.add_child(child).add_child(child)
    child.register_new(Item(1))

    parent.commit()

    assert len(store) == 1


def test_foreign_child_cannot_be_nested():
    parent = make_uow()
    foreign = RecordingUnitOfWork()

    with pytest.raises(UnitOfWorkCompositionError):
        parent.add_child(foreign)
    assert foreign.is_root
    assert parent.children == ()


def test_failed_commit_keeps_writes_of_other_units_of_work():
    store = InMemoryStore()
    dispatcher = HookDispatcher()
    interleaved = []

    def commit_other_writer(entity, **ctx):
        if not interleaved:
            other = make_uow(store)
            other.register_new(Item(100))
            other.commit()
            interleaved.append(other)

    dispatcher.register("before_apply", commit_other_writer)
    uow = make_uow(store, hook_dispatcher=dispatcher)
    uow.register_new(Item(2))
    uow.register_dirty(Item(1))

    with pytest.raises(UnitOfWorkCommitError):
        uow.commit()

    assert 100 in store
    assert 2 not in store


def test_failed_commit_restores_updated_and_deleted_entities():
    store = InMemoryStore()
    original = Item(1, "original")
    doomed = Item(2, "doomed")
    store.insert(original)
    store.insert(doomed)
    uow = make_uow(store)
    child = make_uow(store)
    uow.add_child(child)
    uow.register_dirty(Item(1, "changed"))
    uow.register_deleted(doomed)
    uow.register_new(Item(3))
    child.register_dirty(Item(99))

    with pytest.raises(UnitOfWorkCommitError):
        uow.commit()

    assert store.get(1) is original
    assert store.get(2) is doomed
    assert 3 not in store


def test_backend_logs_under_its_own_logger(caplog):
    uow = make_uow()
    caplog.set_level("ERROR", logger="ledgerwork.persistence.memory")
    uow.register_dirty(Item(1))
    with pytest.raises(UnitOfWorkCommitError):
        uow.commit()

    errors = [record for record in caplog.records if record.levelname == "ERROR"]
    assert errors
    assert errors[-1].name == "ledgerwork.persistence.memory"
    assert errors[-1].unit_of_work_id == uow.unit_of_work_id
