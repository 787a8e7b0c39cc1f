from __future__ import annotations

"""Palette の apply/undo/redo と参照シナリオのテスト。"""

import pytest

from palette import (
    Address,
    AddressOccupied,
    AddressOutOfRange,
    Color,
    CyclicDependency,
    DependentsExist,
    EmptyAddress,
    FormatPolicy,
    InsertColor,
    InsertRamp,
    InsertWatcher,
    InterpolationKind,
    InvalidOperationArguments,
    NothingToRedo,
    NothingToUndo,
    Palette,
    Raw,
    Remove,
    Repeat,
    Sequence,
    UnresolvedDependency,
    Wrap,
    get_format,
)
from palette.operations import Restore

RAMP_AT = [Address(0, 1, i) for i in range(6)]


def _state(pal: Palette) -> dict:
    """要素・評価色・order をまとめたスナップショット。"""
    return {a: (pal.element_at(a), pal.value_of(a), pal.order_of(a)) for a in pal.addresses()}


def test_reference_scenario(scenario: Palette) -> None:
    assert scenario.value_of("0:0:0").to_hex() == "#32324E"
    assert scenario.value_of("0:0:1").to_hex() == "#0000FF"
    assert [scenario.value_of(a).to_hex() for a in RAMP_AT] == [
        "#2A2A67",
        "#232380",
        "#1C1C99",
        "#1515B3",
        "#0E0ECC",
        "#0707E5",
    ]
    assert all(scenario.order_of(a) == 2 for a in RAMP_AT)

    summary = scenario.apply(InsertColor(Color(0, 100, 100), Address(0, 0, 0), overwrite=True))
    assert summary.touched == {Address(0, 0, 0)}
    assert summary.invalidated == {Address(0, 0, 0), *RAMP_AT}
    assert scenario.value_of("0:0:0").to_hex() == "#006464"
    assert scenario.value_of("0:0:1").to_hex() == "#0000FF"
    assert [scenario.value_of(a).to_hex() for a in RAMP_AT] == [
        "#00557A",
        "#004790",
        "#0039A6",
        "#002ABC",
        "#001CD2",
        "#000EE8",
    ]
    assert all(scenario.order_of(a) == 2 for a in RAMP_AT)


def test_failed_apply_leaves_palette_and_history_unchanged(scenario: Palette) -> None:
    before = _state(scenario)
    depth = scenario.history.depth
    bad = [
        (InsertColor(Color(1, 1, 1), Address(0, 0, 0)), AddressOccupied),
        (InsertRamp(Address(0, 0, 0), Address(5, 5, 5), 2, Address(1, 0, 0)), UnresolvedDependency),
        (InsertRamp(Address(0, 0, 0), Address(0, 0, 1), 0, Address(1, 0, 0)), InvalidOperationArguments),
        (InsertRamp(Address(0, 0, 0), Address(0, 1, 0), 3, Address(0, 0, 0), overwrite=True), CyclicDependency),
        (Remove(Address(0, 0, 0)), DependentsExist),
        (Remove(Address(3, 3, 3)), EmptyAddress),
        (InsertColor(Color(1, 1, 1), Address(0, 16, 0)), AddressOutOfRange),
        (InsertColor(Color(300, 0, 0), Address(2, 0, 0)), InvalidOperationArguments),
    ]
    for op, error in bad:
        with pytest.raises(error):
            scenario.apply(op)
        assert _state(scenario) == before
        assert scenario.history.depth == depth


def test_undo_redo_round_trip(scenario: Palette) -> None:
    before = _state(scenario)
    scenario.apply(InsertColor(Color(0, 100, 100), Address(0, 0, 0), overwrite=True))
    after = _state(scenario)

    scenario.undo()
    assert _state(scenario) == before
    scenario.redo()
    assert _state(scenario) == after


def test_undo_of_forced_remove_restores_subtree(scenario: Palette) -> None:
    before = _state(scenario)
    summary = scenario.apply(Remove(Address(0, 0, 1), force=True))
    assert summary.touched == {Address(0, 0, 1), *RAMP_AT}
    assert len(scenario) == 1
    scenario.undo()
    assert _state(scenario) == before
    assert scenario.dependents_of("0:0:0") == set(RAMP_AT)


def test_undo_all_returns_to_empty(scenario: Palette) -> None:
    while scenario.can_undo():
        scenario.undo()
    assert len(scenario) == 0
    with pytest.raises(NothingToUndo):
        scenario.undo()
    for _ in range(3):
        scenario.redo()
    with pytest.raises(NothingToRedo):
        scenario.redo()
    assert len(scenario) == 8


def test_apply_discards_redo_tail(palette: Palette) -> None:
    palette.apply(InsertColor(Color(1, 1, 1)))
    palette.apply(InsertColor(Color(2, 2, 2)))
    palette.undo()
    assert palette.can_redo()
    palette.apply(InsertColor(Color(3, 3, 3)))
    assert not palette.can_redo()
    assert palette.value_of("0:0:1") == Color(3, 3, 3)


def test_history_limit_evicts_oldest() -> None:
    pal = Palette(history_limit=2)
    for i in range(4):
        pal.apply(InsertColor(Color(i, i, i)))
    assert pal.history.depth == 2
    pal.undo()
    pal.undo()
    with pytest.raises(NothingToUndo):
        pal.undo()
    assert len(pal) == 2


def test_auto_placement_uses_first_free_address(palette: Palette) -> None:
    palette.apply(InsertColor(Color(1, 1, 1), Address(0, 0, 1)))
    palette.apply(InsertColor(Color(2, 2, 2)))
    palette.apply(InsertColor(Color(3, 3, 3)))
    assert palette.value_of("0:0:0") == Color(2, 2, 2)
    assert palette.value_of("0:0:2") == Color(3, 3, 3)


def test_ramp_steps_follow_wrap(palette: Palette) -> None:
    palette.apply(InsertColor(Color(0, 0, 0), Address(0, 0, 0)))
    palette.apply(InsertColor(Color(255, 255, 255), Address(0, 0, 1)))
    palette.apply(InsertRamp(Address(0, 0, 0), Address(0, 0, 1), 20, Address(0, 15, 10)))
    expected = list(palette.space.iter_from(Address(0, 15, 10), 20))
    assert expected[6] == Address(1, 0, 0)
    ramp_rows = [a for a, _, order in palette.query() if order == 2]
    assert ramp_rows == expected


def test_ramp_make_sources_creates_black_placeholders(palette: Palette) -> None:
    palette.apply(
        InsertRamp(Address(0, 0, 0), Address(0, 0, 1), 2, Address(0, 1, 0), make_sources=True)
    )
    assert palette.value_of("0:0:0") == Color(0, 0, 0)
    assert palette.order_of("0:0:1") == 0
    assert palette.value_of("0:1:1") == Color(0, 0, 0)
    palette.undo()
    assert len(palette) == 0


def test_ramp_overwriting_own_endpoint_is_cyclic(scenario: Palette) -> None:
    with pytest.raises(CyclicDependency):
        scenario.apply(
            InsertRamp(Address(0, 0, 0), Address(0, 0, 1), 2, Address(0, 0, 1), overwrite=True)
        )


def test_watcher_mirrors_source(scenario: Palette) -> None:
    scenario.apply(InsertWatcher(Address(0, 1, 2), Address(1, 0, 0)))
    assert scenario.order_of("1:0:0") == 1
    assert scenario.value_of("1:0:0") == scenario.value_of("0:1:2")
    scenario.apply(InsertColor(Color(200, 0, 0), Address(0, 0, 1), overwrite=True))
    assert scenario.value_of("1:0:0") == scenario.value_of("0:1:2")
    assert scenario.dependencies_of("1:0:0") == (Address(0, 1, 2),)


def test_interpolation_kind_is_carried_by_ramp(palette: Palette) -> None:
    palette.apply(InsertColor(Color(0, 0, 0), Address(0, 0, 0)))
    palette.apply(InsertColor(Color(255, 255, 255), Address(0, 0, 1)))
    palette.apply(
        InsertRamp(
            Address(0, 0, 0), Address(0, 0, 1), 1, Address(0, 1, 0), kind=InterpolationKind.LINEAR_LIGHT
        )
    )
    assert palette.value_of("0:1:0").r > 127


def test_sequence_is_all_or_nothing(palette: Palette) -> None:
    ok = Sequence(
        (
            InsertColor(Color(1, 1, 1), Address(0, 0, 0)),
            InsertColor(Color(2, 2, 2), Address(0, 0, 1)),
        )
    )
    palette.apply(ok)
    assert len(palette) == 2
    assert palette.history.depth == 1

    failing = Sequence(
        (
            InsertColor(Color(3, 3, 3), Address(0, 0, 2)),
            InsertColor(Color(4, 4, 4), Address(0, 0, 0)),
        )
    )
    with pytest.raises(AddressOccupied):
        palette.apply(failing)
    assert len(palette) == 2
    assert "0:0:2" not in [str(a) for a in palette.addresses()]

    palette.undo()
    assert len(palette) == 0


def test_repeat_places_consecutive_copies(palette: Palette) -> None:
    palette.apply(Repeat(InsertColor(Color(7, 7, 7)), 3))
    assert palette.addresses() == [Address(0, 0, 0), Address(0, 0, 1), Address(0, 0, 2)]
    palette.undo()
    assert len(palette) == 0
    with pytest.raises(InvalidOperationArguments):
        palette.apply(Repeat(InsertColor(Color(7, 7, 7)), 0))


def test_subscribers_receive_summaries(palette: Palette) -> None:
    seen = []
    unsubscribe = palette.subscribe(seen.append)
    palette.apply(InsertColor(Color(1, 1, 1)))
    palette.undo()
    unsubscribe()
    palette.redo()
    assert [s.operation.name for s in seen] == ["Insert Color", "Undo"]
    assert seen[0].touched == {Address(0, 0, 0)}


def test_query_is_sorted_and_restartable(scenario: Palette) -> None:
    rows = scenario.query("0:1:*")
    first = list(rows)
    assert [a for a, _, _ in first] == RAMP_AT
    assert list(rows) == first
    assert [a for a, _, _ in scenario.query()][:2] == [Address(0, 0, 0), Address(0, 0, 1)]


def test_describe_counts(scenario: Palette) -> None:
    desc = scenario.describe()
    assert desc.name == "Example"
    assert desc.history_depth == 3
    assert desc.element_count == 8
    assert desc.page_count == 1
    assert desc.line_count == 2
    assert desc.column_count == 6
    assert str(desc.wrap) == "16:16"
    assert scenario.is_acyclic()


def test_auto_placement_scans_from_cursor(palette: Palette) -> None:
    palette.apply(InsertColor(Color(1, 1, 1)))
    palette.apply(InsertColor(Color(2, 2, 2)))
    assert palette.cursor == Address(0, 0, 2)
    palette.apply(Remove(Address(0, 0, 0)))
    palette.apply(InsertColor(Color(3, 3, 3)))
    # 空いた 0:0:0 ではなくカーソル以降に置かれる
    assert palette.value_of("0:0:2") == Color(3, 3, 3)
    assert Address(0, 0, 0) not in palette

    palette.undo()
    assert palette.cursor == Address(0, 0, 2)
    palette.redo()
    assert palette.value_of("0:0:2") == Color(3, 3, 3)
    assert palette.cursor == Address(0, 0, 3)


def test_cursor_option_and_ramp_advance_past_last_step() -> None:
    pal = Palette(cursor="0:2:0")
    pal.apply(InsertColor(Color(0, 0, 0), Address(0, 0, 0)))
    pal.apply(InsertColor(Color(255, 255, 255), Address(0, 0, 1)))
    assert pal.cursor == Address(0, 2, 0)
    pal.apply(InsertRamp(Address(0, 0, 0), Address(0, 0, 1), 3))
    assert [a for a, _, order in pal.query() if order == 2] == [
        Address(0, 2, 0),
        Address(0, 2, 1),
        Address(0, 2, 2),
    ]
    assert pal.cursor == Address(0, 2, 3)
    assert pal.describe().cursor == Address(0, 2, 3)
    with pytest.raises(AddressOutOfRange):
        pal.cursor = Address(0, 16, 0)


def test_failed_auto_placement_keeps_cursor(palette: Palette) -> None:
    palette.apply(InsertColor(Color(1, 1, 1)))
    failing = Sequence(
        (InsertColor(Color(2, 2, 2)), InsertWatcher(Address(3, 3, 3), Address(4, 0, 0)))
    )
    with pytest.raises(UnresolvedDependency):
        palette.apply(failing)
    assert palette.cursor == Address(0, 0, 1)
    assert len(palette) == 1


def test_space_remaining_and_full_palette() -> None:
    assert get_format("zpl").capacity == (14 + 514 * 16) * 16
    policy = FormatPolicy(name="two_slots", title="TwoSlots", wrap=Wrap(2, 1), max_pages=1)
    pal = Palette(format=policy)
    assert pal.space_remaining() == 2
    pal.apply(InsertColor(Color(1, 1, 1)))
    pal.apply(InsertColor(Color(2, 2, 2)))
    assert pal.space_remaining() == 0
    # 最終スロットの後は先頭へ戻る
    assert pal.cursor == Address(0, 0, 0)
    with pytest.raises(AddressOutOfRange):
        pal.apply(InsertColor(Color(3, 3, 3)))
    assert pal.describe().space_remaining == 0
    pal.apply(Remove(Address(0, 0, 0)))
    pal.apply(InsertColor(Color(4, 4, 4)))
    assert pal.value_of("0:0:0") == Color(4, 4, 4)


def test_history_limit_zero_is_unbounded() -> None:
    pal = Palette(history_limit=0)
    assert pal.history.limit is None
    for i in range(5):
        pal.apply(InsertColor(Color(i, i, i)))
    assert pal.history.depth == 5


def test_restore_is_not_a_public_operation(scenario: Palette) -> None:
    before = _state(scenario)
    replace = Restore({Address(0, 0, 0): Raw(Color(9, 9, 9))})
    with pytest.raises(InvalidOperationArguments):
        scenario.apply(replace)
    with pytest.raises(InvalidOperationArguments):
        scenario.apply(Sequence((InsertColor(Color(1, 1, 1)), replace)))
    with pytest.raises(InvalidOperationArguments):
        scenario.apply(Repeat(replace, 2))
    assert _state(scenario) == before
    assert scenario.history.depth == 3
