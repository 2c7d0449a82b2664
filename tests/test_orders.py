import sys
from datetime import timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.port import ClockTime, Container
from src.trucking import OrderFactory, PendingOrders, TransportOrder

from conftest import RTM, T1

T = ClockTime.of("2024-03-04T08:00:00")


def _import(unique_id, target, terminal="T1"):
    return TransportOrder(
        unique_id=unique_id,
        vessel=None,
        container=Container(unique_id),
        load_centroid=T1,
        load_terminal=terminal,
        unload_centroid=RTM,
        unload_terminal=None,
        target_time=target,
    )


def test_pending_orders_sorted_by_target_then_id():
    pending = PendingOrders()
    for uid, target in [(5, T), (2, T), (9, T.plus(timedelta(seconds=1)))]:
        pending.add(_import(uid, target))
    assert [o.unique_id for o in pending] == [2, 5, 9]


def test_pop_due_splits_on_cutoff():
    pending = PendingOrders()
    early, edge, late = _import(1, T), _import(2, T.plus(timedelta(hours=36))), _import(3, T.plus(timedelta(hours=37)))
    for order in (late, edge, early):
        pending.add(order)
    due = pending.pop_due(T.plus(timedelta(hours=36)))
    assert due == [early, edge]
    assert list(pending) == [late]
    assert late in pending
    assert len(pending) == 1


def test_order_needs_exactly_one_terminal_end():
    with pytest.raises(ValueError):
        TransportOrder(1, None, Container(1), RTM, None, T1, None, T)
    with pytest.raises(ValueError):
        TransportOrder(1, None, Container(1), T1, "T1", T1, "T1", T)


def test_import_and_export_views():
    imp = _import(1, T)
    assert imp.is_import and not imp.is_export
    assert imp.terminal == "T1"
    assert imp.terminal_centroid == T1
    assert imp.hinterland_centroid == RTM

    exp = TransportOrder(2, None, Container(2), RTM, None, T1, "T1", T)
    assert exp.is_export
    assert exp.terminal_centroid == T1
    assert exp.hinterland_centroid == RTM


def test_order_factory_ids_increase():
    factory = OrderFactory()
    a = factory.create(vessel=None, container=Container(1), load_centroid=T1, load_terminal="T1",
                       unload_centroid=RTM, unload_terminal=None, target_time=T)
    b = factory.create(vessel=None, container=Container(2), load_centroid=T1, load_terminal="T1",
                       unload_centroid=RTM, unload_terminal=None, target_time=T)
    assert b.unique_id == a.unique_id + 1
    assert a < b
