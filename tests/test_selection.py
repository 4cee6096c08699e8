from core import selection
from core.filtering import filter_items
from core.models import CatalogState, ItemView

from conftest import CATALOG, assert_consistent


def _state(term: str = "") -> CatalogState:
    all_items = tuple(
        ItemView(item_id=it.item_id, name=it.name, price=it.price, image_url=it.image_url)
        for it in CATALOG
    )
    return CatalogState(
        all_items=all_items,
        filtered_items=filter_items(all_items, term),
        search_term=term,
    )


def test_toggle_on_marks_only_that_item():
    before = _state()
    after = selection.toggle(before, "B2", True)

    assert after.selection == {"B2"}
    assert [it.is_selected for it in after.all_items] == [False, True, False, False]
    assert_consistent(after)
    # previous snapshot untouched
    assert before.selection == frozenset()
    assert not any(it.is_selected for it in before.all_items)


def test_toggle_off_removes_from_selection():
    state = selection.toggle(_state(), "A1", True)
    state = selection.toggle(state, "C3", True)
    state = selection.toggle(state, "A1", False)

    assert state.selection == {"C3"}
    assert_consistent(state)


def test_toggle_reapplies_current_filter():
    state = selection.toggle(_state("widget"), "D4", True)

    assert [it.item_id for it in state.filtered_items] == ["A1", "B2", "D4"]
    assert state.filtered_items[-1].is_selected
    assert_consistent(state)


def test_toggle_unknown_id_is_ignored():
    before = _state()
    assert selection.toggle(before, "nope", True) is before


def test_toggle_returns_new_selection_set():
    first = selection.toggle(_state(), "A1", True)
    second = selection.toggle(first, "B2", True)
    assert first.selection == {"A1"}
    assert second.selection == {"A1", "B2"}


def test_reset_clears_everything():
    state = _state("gadget")
    for item_id in ("A1", "C3"):
        state = selection.toggle(state, item_id, True)

    state = selection.reset(state)

    assert state.selection == frozenset()
    assert not any(it.is_selected for it in state.all_items)
    assert [it.item_id for it in state.filtered_items] == ["C3"]
    assert_consistent(state)


def test_import_disabled_tracks_selection():
    state = _state()
    assert selection.is_import_disabled(state)
    state = selection.toggle(state, "A1", True)
    assert not selection.is_import_disabled(state)
    state = selection.toggle(state, "A1", False)
    assert selection.is_import_disabled(state)
