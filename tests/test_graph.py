from __future__ import annotations

import pytest

from palette import (
    Address,
    AddressOccupied,
    Color,
    CyclicDependency,
    DependentsExist,
    EmptyAddress,
    Ramp,
    Raw,
    UnresolvedDependency,
    Watch,
    order,
)
from palette.graph import ElementGraph

A = Address(0, 0, 0)
B = Address(0, 0, 1)
C = Address(0, 0, 2)
D = Address(0, 0, 3)


def _graph_with_chain() -> ElementGraph:
    """A(raw) <- B(watch A) <- C(watch B)。"""
    g = ElementGraph()
    g.insert(A, Raw(Color(1, 2, 3)))
    g.insert(B, Watch(A))
    g.insert(C, Watch(B))
    return g


def test_order_matches_direct_dependency_count() -> None:
    assert order(Raw(Color(0, 0, 0))) == 0
    assert order(Watch(A)) == 1
    assert order(Ramp(A, B, 4, 2)) == 2


def test_insert_returns_prior_and_respects_overwrite() -> None:
    g = ElementGraph()
    assert g.insert(A, Raw(Color(1, 1, 1))) is None
    with pytest.raises(AddressOccupied):
        g.insert(A, Raw(Color(2, 2, 2)))
    assert g.get(A) == Raw(Color(1, 1, 1))
    assert g.insert(A, Raw(Color(2, 2, 2)), overwrite=True) == Raw(Color(1, 1, 1))
    assert g.get(A) == Raw(Color(2, 2, 2))


def test_unresolved_dependency_is_rejected() -> None:
    g = ElementGraph()
    with pytest.raises(UnresolvedDependency):
        g.insert(B, Watch(A))
    assert len(g) == 0


def test_cycle_is_rejected_without_mutation() -> None:
    g = _graph_with_chain()
    before = dict(g.items())
    with pytest.raises(CyclicDependency):
        g.insert(A, Watch(C), overwrite=True)
    with pytest.raises(CyclicDependency):
        g.insert(B, Watch(B), overwrite=True)
    assert dict(g.items()) == before
    assert g.is_acyclic()


def test_dependents_and_dependencies() -> None:
    g = _graph_with_chain()
    g.insert(D, Ramp(A, C, 1))
    assert g.dependents_of(A) == {B, D}
    assert g.dependencies_of(D) == (A, C)
    assert g.transitive_dependents([A]) == {A, B, C, D}
    with pytest.raises(EmptyAddress):
        g.dependencies_of(Address(3, 3, 3))


def test_remove_with_dependents_requires_force() -> None:
    g = _graph_with_chain()
    with pytest.raises(DependentsExist) as info:
        g.remove(A)
    assert info.value.dependents == (B,)
    assert len(g) == 3

    removed = g.remove(A, force=True)
    assert set(removed) == {A, B, C}
    assert len(g) == 0
    assert g.dependents_of(A) == frozenset()


def test_remove_empty_address() -> None:
    with pytest.raises(EmptyAddress):
        ElementGraph().remove(A)


def test_restore_round_trips_prior_states() -> None:
    g = _graph_with_chain()
    before = dict(g.items())
    prior = g.remove(A, force=True)
    g.restore(prior)
    assert dict(g.items()) == before
    assert g.dependents_of(B) == {C}


def test_restore_rejects_dangling_readers() -> None:
    g = _graph_with_chain()
    with pytest.raises(DependentsExist):
        g.restore({A: None})
    assert A in g


def test_overwrite_rewires_reverse_index() -> None:
    g = _graph_with_chain()
    g.insert(D, Raw(Color(0, 0, 0)))
    g.insert(C, Watch(D), overwrite=True)
    assert g.dependents_of(B) == frozenset()
    assert g.dependents_of(D) == {C}
    # B は読まれなくなったので削除できる
    g.remove(B)
    assert B not in g
