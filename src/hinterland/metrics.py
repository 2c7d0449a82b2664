from __future__ import annotations

from typing import Iterable, List, Optional

import pandas as pd

from ..port.clocktime import ClockTime
from ..trucking.activity import RealizedDrivingActivity, RealizedTerminalActivity
from ..trucking.truck import Truck


def _safe_diff(df: pd.DataFrame, new_col: str, end_col: str, start_col: str) -> None:
    if end_col in df.columns and start_col in df.columns:
        df[new_col] = (df[end_col] - df[start_col]).clip(lower=0)


def _minutes(time: Optional[ClockTime], origin: ClockTime) -> Optional[float]:
    if time is None:
        return None
    return (time.seconds - origin.seconds) / 60.0


def _td_minutes(duration) -> float:
    return duration.total_seconds() / 60.0 if duration is not None else 0.0


def truck_record(truck: Truck, origin: ClockTime) -> dict:
    """Flatten one finished truck trip; times are minutes since `origin`."""
    drives = [a for a in truck.realized_activities if isinstance(a, RealizedDrivingActivity)]
    visits = [a for a in truck.realized_activities if isinstance(a, RealizedTerminalActivity)]
    planned_first = truck.planned_activities[0]
    planned_last = truck.planned_activities[-1]
    return {
        "truck": truck.name,
        "company": truck.company_id,
        "combination": truck.combination,
        "nr_orders": len(truck.order_ids),
        "nr_terminal_visits": len(visits),
        "terminals": "|".join(v.terminal.id for v in visits),
        "visit_types": "|".join(v.activity_type.value for v in visits),
        "planned_departure": _minutes(planned_first.departure_time, origin),
        "planned_arrival": _minutes(planned_last.arrival_time, origin),
        "departure": _minutes(drives[0].actual_departure_time, origin) if drives else None,
        "arrival": _minutes(drives[-1].actual_arrival_time, origin) if drives else None,
        "first_gate_arrival": _minutes(visits[0].actual_arrival_time, origin) if visits else None,
        "last_gate_departure": _minutes(visits[-1].departure_time, origin) if visits else None,
        "distance_km": sum(d.distance for d in drives),
        "parking_wait": sum(_td_minutes(v.waiting_time_in) for v in visits),
        "gate_in_queue": sum(_td_minutes(v.gate_queue_time_in) for v in visits),
        "gate_out_queue": sum(_td_minutes(v.gate_queue_time_out) for v in visits),
        "gate_time": sum(_td_minutes(v.actual_gate_time_in) + _td_minutes(v.actual_gate_time_out) for v in visits),
        "handling_time": sum(_td_minutes(v.actual_handling_time) for v in visits),
        "missed_slots": sum(1 for v in visits if v.missed_slot),
        "containers_delivered": sum(len(v.containers_delivered) for v in visits),
        "containers_picked_up": sum(len(v.containers_picked_up) for v in visits),
    }


def trips_to_dataframe(
    trucks: Iterable[Truck], origin: ClockTime, warmup_time: Optional[ClockTime] = None
) -> pd.DataFrame:
    """One row per finished truck; trips that departed before `warmup_time` are left out."""
    rows: List[dict] = []
    for truck in trucks:
        if not truck.realized_activities:
            continue
        first = truck.realized_activities[0]
        if warmup_time is not None and first.actual_departure_time < warmup_time:
            continue
        rows.append(truck_record(truck, origin))
    if not rows:
        return pd.DataFrame()

    df = pd.DataFrame(rows)
    _safe_diff(df, "trip_time", "arrival", "departure")
    _safe_diff(df, "terminal_time", "last_gate_departure", "first_gate_arrival")
    _safe_diff(df, "arrival_delay", "arrival", "planned_arrival")
    df["gate_wait"] = df["gate_in_queue"] + df["gate_out_queue"]
    df["trip_time_hours"] = df["trip_time"] / 60.0
    return df


def terminal_statistics_to_dataframe(rows: List[dict]) -> pd.DataFrame:
    """Daily terminal reports, one row per terminal per reporting day."""
    if not rows:
        return pd.DataFrame()
    df = pd.DataFrame(rows)
    df["truck_visits"] = df["truck_visits_pickup"] + df["truck_visits_delivery"] + df["truck_visits_dual"]
    return df.sort_values(["report_time", "terminal"], kind="stable").reset_index(drop=True)
