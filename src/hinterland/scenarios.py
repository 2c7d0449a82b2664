# ====================================================================================================
# Hinterland scenarios
#
# `ScenarioConfig` is the knob panel of one simulation run: horizon, terminals and hinterland
# centroids, gate and yard timings, slot booking parameters, the trucking planner settings and the
# vessel / cargo generator that feeds orders into the planner.
#
# Runs are driven from a plain dict (`scenario_to_dict`) so JSON configs and validated overrides
# (`src/hinterland/overrides.py`) can be merged before the frozen dataclass is rebuilt.
# ====================================================================================================

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..port.cargo import TransportMode
from ..port.errors import InvalidConfiguration

# (id, name, lat, lon)
CentroidRow = Tuple[str, str, float, float]


@dataclass(frozen=True)
class ModalSplit:
    """
    Shares of import volume leaving the port by barge, rail and truck. The values are
    weights: they are normalised to fractions and need not sum to one.
    """

    barge: float
    rail: float
    truck: float

    def __post_init__(self) -> None:
        if min(self.barge, self.rail, self.truck) < 0:
            raise InvalidConfiguration(f"Modal split values must be non-negative: {self}")
        if self.barge + self.rail + self.truck <= 0:
            raise InvalidConfiguration("Modal split values must not all be zero.")

    @property
    def fractions(self) -> Dict[TransportMode, float]:
        total = self.barge + self.rail + self.truck
        return {
            TransportMode.BARGE: self.barge / total,
            TransportMode.RAIL: self.rail / total,
            TransportMode.TRUCK: self.truck / total,
        }

    def draw(self, rng: np.random.Generator) -> TransportMode:
        r = rng.random()
        cumulative = 0.0
        for mode, fraction in self.fractions.items():
            cumulative += fraction
            if r < cumulative:
                return mode
        return TransportMode.TRUCK


@dataclass(frozen=True)
class ScenarioConfig:
    # Identity + flags
    name: str
    description: str
    demo: bool

    # Horizon (ISO local date-time of the simulation start; statistics restart after the warmup)
    start_time: str
    run_days: int
    warmup_days: int

    # Geography: terminals and hinterland centroids as (id, name, lat, lon)
    port_lat: float
    port_lon: float
    terminals: List[CentroidRow]
    hinterland_centroids: List[CentroidRow]
    detour_factor: float
    far_threshold_km: float

    # Gate lanes and handling times (triangular minutes: min/mode/max)
    num_lanes_in: int
    num_lanes_out: int
    gate_in_time_min: float
    gate_in_time_mode: float
    gate_in_time_max: float
    gate_out_time_min: float
    gate_out_time_mode: float
    gate_out_time_max: float
    handling_import_min: float
    handling_import_mode: float
    handling_import_max: float
    handling_export_min: float
    handling_export_mode: float
    handling_export_max: float
    handling_dual_min: float
    handling_dual_mode: float
    handling_dual_max: float

    # Truck appointment slots (use_slots=False books plain target times)
    use_slots: bool
    slot_duration_mins: int
    grace_before_mins: int
    grace_after_mins: int
    slot_capacity: int

    # Trucking company planner
    planning_interval_hours: float
    lookahead_hours: float
    safety_margin_mins: float
    reference_speed_kmh: float
    one_terminal_target: float
    two_terminal_target: float
    max_deferrals: int
    plan_on_weekends: bool
    late_penalty_mins: float

    # Vessel calls and cargo
    vessel_interarrival_mean_hours: float
    announce_lead_hours: float
    vessel_stay_hours: float
    deepsea_share: float
    imports_per_call_min: int
    imports_per_call_max: int
    exports_per_call_min: int
    exports_per_call_max: int
    pct_40ft: float
    pct_full: float
    pct_reefer: float
    p_barge: float
    p_rail: float
    p_truck: float

    # Dwell: import pickup target after discharge, export delivery target before departure,
    # and time rail / barge containers stay on the yard
    import_dwell_min_hours: float
    import_dwell_max_hours: float
    export_lead_min_hours: float
    export_lead_max_hours: float
    rail_barge_dwell_hours: float

    @property
    def modal_split(self) -> ModalSplit:
        return ModalSplit(barge=self.p_barge, rail=self.p_rail, truck=self.p_truck)


SCENARIO_KEYS = tuple(ScenarioConfig.__dataclass_fields__.keys())  # pylint: disable=no-member


def scenario_to_dict(config: ScenarioConfig) -> dict:
    data = asdict(config)
    # tuples inside lists become lists so the dict survives a JSON round trip unchanged
    for key in ("terminals", "hinterland_centroids"):
        data[key] = [list(item) for item in data[key]]
    return data


def scenario_from_dict(data: dict) -> ScenarioConfig:
    return ScenarioConfig(**data)


def _centroids(rows: Sequence[Sequence]) -> List[CentroidRow]:
    return [(str(s[0]), str(s[1]), float(s[2]), float(s[3])) for s in rows]


# ----------------------------------------------------------------------------------------------------
# _demo_base
# Two deepsea terminals on the same port area, five hinterland centroids of which two lie beyond the
# far threshold. Timings are realistic; the horizon is kept short so a run finishes in seconds.
# ----------------------------------------------------------------------------------------------------
def _demo_base() -> ScenarioConfig:
    return ScenarioConfig(
        name="baseline",
        description=(
            "Demo baseline: two terminals, slot booking with 1h slots, one trucking company "
            "planning daily with a 36h lookahead. Synthetic vessel calls, no external data."
        ),
        demo=True,

        start_time="2024-03-04T00:00:00",
        run_days=10,
        warmup_days=2,

        port_lat=51.955,
        port_lon=4.040,
        terminals=_centroids([
            ("T1", "Maasvlakte East", 51.960, 4.030),
            ("T2", "Maasvlakte West", 51.970, 3.990),
        ]),
        hinterland_centroids=_centroids([
            ("RTM", "Rotterdam", 51.922, 4.479),
            ("MOE", "Moerdijk", 51.701, 4.626),
            ("TIL", "Tilburg", 51.560, 5.091),
            ("VEN", "Venlo", 51.370, 6.172),
            ("DUI", "Duisburg", 51.434, 6.762),
        ]),
        detour_factor=1.3,
        far_threshold_km=150.0,

        num_lanes_in=2,
        num_lanes_out=2,
        gate_in_time_min=1.0,
        gate_in_time_mode=2.0,
        gate_in_time_max=5.0,
        gate_out_time_min=1.0,
        gate_out_time_mode=1.5,
        gate_out_time_max=4.0,
        handling_import_min=10.0,
        handling_import_mode=20.0,
        handling_import_max=45.0,
        handling_export_min=8.0,
        handling_export_mode=15.0,
        handling_export_max=35.0,
        handling_dual_min=20.0,
        handling_dual_mode=30.0,
        handling_dual_max=60.0,

        use_slots=True,
        slot_duration_mins=60,
        grace_before_mins=30,
        grace_after_mins=30,
        slot_capacity=6,

        planning_interval_hours=24.0,
        lookahead_hours=36.0,
        safety_margin_mins=15.0,
        reference_speed_kmh=60.0,
        one_terminal_target=0.3,
        two_terminal_target=0.1,
        max_deferrals=3,
        plan_on_weekends=True,
        late_penalty_mins=60.0,

        vessel_interarrival_mean_hours=12.0,
        announce_lead_hours=72.0,
        vessel_stay_hours=20.0,
        deepsea_share=0.4,
        imports_per_call_min=20,
        imports_per_call_max=60,
        exports_per_call_min=15,
        exports_per_call_max=50,
        pct_40ft=0.6,
        pct_full=0.85,
        pct_reefer=0.1,
        p_barge=0.35,
        p_rail=0.15,
        p_truck=0.5,

        import_dwell_min_hours=12.0,
        import_dwell_max_hours=96.0,
        export_lead_min_hours=6.0,
        export_lead_max_hours=48.0,
        rail_barge_dwell_hours=48.0,
    )


def get_scenario(name: str, demo: bool) -> ScenarioConfig:
    if not demo:
        raise ValueError("Non-demo runs need a full config file; pass --config.")
    name = name.lower().strip()
    if name not in {"baseline", "busy"}:
        raise ValueError(f"Unknown scenario: {name}")
    base = _demo_base()
    if name == "baseline":
        return base
    return replace(
        base,
        name="busy",
        description="Demo busy scenario: more frequent and larger vessel calls against the same gate and slots.",
        vessel_interarrival_mean_hours=6.0,
        imports_per_call_max=90,
        exports_per_call_max=70,
        p_truck=0.65,
        p_barge=0.25,
        p_rail=0.10,
        plan_on_weekends=False,
    )
