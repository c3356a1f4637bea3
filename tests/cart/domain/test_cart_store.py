"""Tests for the client-side cart store."""

from cart.items import ItemKind
from cart.store import CartState, CartStore
from catalogue.package import SelectedCombo


def _event(event_id, fee=100, title="Code Sprint"):
    return {"id": event_id, "fee": fee, "eventInfo": {"id": event_id, "title": title}}


def _workshop(workshop_id, price=300, title="Drone Building"):
    return {"id": workshop_id, "title": title, "price": price}


def _combo(combo_id, price=199):
    return SelectedCombo(id=combo_id, name="Package", price=price)


class TestAddToCart:
    def test_adds_event(self):
        store = CartStore()
        assert store.add_to_cart(ItemKind.EVENT, _event("evt-1")) is True
        assert [item.key for item in store.items] == ["evt-1"]

    def test_duplicate_event_keeps_one_entry(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        assert store.add_to_cart(ItemKind.EVENT, _event("evt-1", fee=999)) is False

        assert len(store.items) == 1
        assert store.items[0].fee == 100

    def test_duplicate_workshop_keeps_one_entry(self):
        store = CartStore()
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        assert len(store.workshops) == 1

    def test_same_id_in_both_collections_is_allowed(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("x-1"))
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("x-1"))
        assert len(store.items) == 1
        assert len(store.workshops) == 1

    def test_item_without_id_is_ignored(self):
        store = CartStore()
        assert store.add_to_cart(ItemKind.EVENT, {"fee": 100, "eventInfo": {"title": "No id"}}) is False
        assert store.add_to_cart(ItemKind.WORKSHOP, {"title": "No id", "price": 10}) is False
        assert store.state.is_empty

    def test_event_id_falls_back_to_top_level_id(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, {"id": "evt-9", "fee": 50})
        assert store.items[0].event_info.id == "evt-9"

    def test_numeric_ids_become_strings(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, {"eventInfo": {"id": 42}, "fee": 10})
        assert store.items[0].key == "42"
        assert store.state.contains(ItemKind.EVENT, "42")

    def test_add_keeps_combo_that_still_fits(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.select_combo(_combo("rgukt-all-events"))

        store.add_to_cart(ItemKind.EVENT, _event("evt-2"))

        assert store.active_combo.id == "rgukt-all-events"

    def test_event_added_to_single_workshop_package_clears_combo(self):
        store = CartStore()
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        store.select_combo(_combo("rgukt-workshop"))

        assert store.add_to_cart(ItemKind.EVENT, _event("evt-1")) is True

        assert store.active_combo is None
        assert len(store.items) == 1

    def test_second_workshop_clears_workshop_combo(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        store.select_combo(_combo("rgukt-combo", price=299))

        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-2"))

        assert store.active_combo is None

    def test_workshop_added_to_all_events_package_clears_combo(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.select_combo(_combo("rgukt-all-events"))

        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))

        assert store.active_combo is None


class TestRemoveFromCart:
    def test_removes_event(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.add_to_cart(ItemKind.EVENT, _event("evt-2"))

        assert store.remove_from_cart(ItemKind.EVENT, "evt-1") is True
        assert [item.key for item in store.items] == ["evt-2"]

    def test_removing_unknown_id_changes_nothing(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        before = store.state

        assert store.remove_from_cart(ItemKind.EVENT, "evt-404") is False
        assert store.state is before

    def test_removing_only_workshop_clears_workshop_combo(self):
        store = CartStore()
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        store.select_combo(_combo("rgukt-workshop"))

        store.remove_from_cart(ItemKind.WORKSHOP, "ws-1")

        assert store.workshops == ()
        assert store.active_combo is None

    def test_removing_only_workshop_clears_events_plus_workshop_combo(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        store.select_combo(_combo("guest-combo", price=599))

        store.remove_from_cart(ItemKind.WORKSHOP, "ws-1")

        assert store.active_combo is None
        assert len(store.items) == 1

    def test_removing_second_workshop_restores_requirement_and_keeps_combo(self):
        store = CartStore()
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-2"))
        store.select_combo(_combo("rgukt-combo", price=299))

        store.remove_from_cart(ItemKind.WORKSHOP, "ws-2")

        assert store.active_combo is not None
        assert store.active_combo.id == "rgukt-combo"

    def test_removing_workshop_keeps_events_only_combo(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        store.select_combo(_combo("rgukt-all-events"))

        store.remove_from_cart(ItemKind.WORKSHOP, "ws-1")

        assert store.active_combo.id == "rgukt-all-events"

    def test_removing_event_keeps_events_plus_workshop_combo(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        store.select_combo(_combo("rgukt-combo", price=299))

        store.remove_from_cart(ItemKind.EVENT, "evt-1")

        assert store.active_combo is not None

    def test_removing_last_event_clears_all_events_combo(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.select_combo(_combo("rgukt-all-events"))

        store.remove_from_cart(ItemKind.EVENT, "evt-1")

        assert store.active_combo is None

    def test_combo_kind_comes_from_id_not_name(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        store.select_combo(SelectedCombo(id="rgukt-all-events", name="Workshop Week Special", price=199))

        store.remove_from_cart(ItemKind.WORKSHOP, "ws-1")

        assert store.active_combo is not None


class TestSyncCart:
    def test_replaces_all_fields(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("old"))
        store.select_combo(_combo("rgukt-all-events"))

        store.sync_cart(
            items=[_event("evt-1"), _event("evt-2")],
            workshops=[_workshop("ws-1")],
            active_combo={"id": "rgukt-combo", "name": "All Events + Workshop", "price": 299},
        )

        assert [item.key for item in store.items] == ["evt-1", "evt-2"]
        assert [workshop.key for workshop in store.workshops] == ["ws-1"]
        assert store.active_combo.id == "rgukt-combo"

    def test_none_combo_clears_previous_combo(self):
        store = CartStore()
        store.select_combo(_combo("rgukt-all-events"))

        store.sync_cart(items=[_event("evt-1")], workshops=[], active_combo=None)

        assert store.active_combo is None

    def test_combo_that_does_not_fit_snapshot_is_dropped_and_returned(self):
        store = CartStore()
        combo = _combo("rgukt-workshop")

        dropped = store.sync_cart(items=[_event("evt-1")], workshops=[_workshop("ws-1")], active_combo=combo)

        assert dropped == combo
        assert store.active_combo is None
        assert len(store.items) == 1

    def test_fitting_combo_is_kept_and_nothing_returned(self):
        store = CartStore()
        assert store.sync_cart(items=[_event("evt-1")], active_combo=_combo("rgukt-all-events")) is None
        assert store.active_combo.id == "rgukt-all-events"

    def test_recheck_after_loading_a_combo(self):
        store = CartStore()
        store.sync_cart(workshops=[_workshop("ws-1"), _workshop("ws-2")])
        store.select_combo(_combo("rgukt-workshop"))

        assert store.recheck_combo().id == "rgukt-workshop"
        assert store.active_combo is None
        assert store.recheck_combo() is None

    def test_normalizes_event_ids_both_ways(self):
        store = CartStore()
        store.sync_cart(items=[{"id": "evt-1", "fee": 10}, {"eventInfo": {"id": "evt-2"}, "fee": 20}])

        first, second = store.items
        assert first.event_info.id == "evt-1"
        assert second.id == "evt-2"

    def test_workshop_id_falls_back_to_mongo_id(self):
        store = CartStore()
        store.sync_cart(workshops=[{"_id": "ws-77", "title": "IoT", "price": 100}])
        assert store.workshops[0].id == "ws-77"

    def test_drops_items_without_any_id(self):
        store = CartStore()
        store.sync_cart(items=[{"fee": 10}, _event("evt-1")], workshops=[{"title": "nameless"}])
        assert [item.key for item in store.items] == ["evt-1"]
        assert store.workshops == ()

    def test_collapses_duplicate_ids(self):
        store = CartStore()
        store.sync_cart(items=[_event("evt-1"), _event("evt-1")])
        assert len(store.items) == 1

    def test_keeps_unknown_wire_fields(self):
        store = CartStore()
        store.sync_cart(items=[{**_event("evt-1"), "eventId": "evt-1", "teamName": "Byte Me"}])
        assert store.items[0].to_wire()["teamName"] == "Byte Me"


class TestWholeCart:
    def test_clear_cart_resets_everything(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1"))
        store.select_combo(_combo("rgukt-combo", price=299))

        store.clear_cart()

        assert store.state == CartState()

    def test_restore_puts_back_snapshot(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        snapshot = store.state

        store.remove_from_cart(ItemKind.EVENT, "evt-1")
        store.restore(snapshot)

        assert [item.key for item in store.items] == ["evt-1"]

    def test_clear_combo_keeps_items(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1"))
        store.select_combo(_combo("rgukt-all-events"))

        store.clear_combo()

        assert store.active_combo is None
        assert len(store.items) == 1

    def test_fee_total_sums_events_and_workshops(self):
        store = CartStore()
        store.add_to_cart(ItemKind.EVENT, _event("evt-1", fee=150))
        store.add_to_cart(ItemKind.WORKSHOP, _workshop("ws-1", price=350))
        assert store.state.fee_total == 500
