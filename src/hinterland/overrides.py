"""
Overrides on top of a scenario dict.

Each override must name a `ScenarioConfig` field and carry a value of that field's declared
type. The merged dict must still describe a runnable scenario; otherwise the whole merge is
rejected with `InvalidConfiguration` (a `ValueError`).
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict

from ..port.errors import InvalidConfiguration
from .scenarios import SCENARIO_KEYS, ModalSplit, ScenarioConfig

ALLOWED_OVERRIDE_KEYS = set(SCENARIO_KEYS)
RESOURCE_KEYS = {
    "num_lanes_in",
    "num_lanes_out",
    "slot_capacity",
    "slot_duration_mins",
    "run_days",
}
FRACTION_KEYS = {
    "one_terminal_target",
    "two_terminal_target",
    "deepsea_share",
    "pct_40ft",
    "pct_full",
    "pct_reefer",
}
NON_NEGATIVE_KEYS = {
    "warmup_days",
    "grace_before_mins",
    "grace_after_mins",
    "max_deferrals",
    "safety_margin_mins",
    "late_penalty_mins",
    "rail_barge_dwell_hours",
}
TRIANGULAR_PREFIXES = ("gate_in_time", "gate_out_time", "handling_import", "handling_export", "handling_dual")
RANGE_KEYS = (
    ("imports_per_call_min", "imports_per_call_max"),
    ("exports_per_call_min", "exports_per_call_max"),
    ("import_dwell_min_hours", "import_dwell_max_hours"),
    ("export_lead_min_hours", "export_lead_max_hours"),
)

# declared annotation (a string under postponed evaluation) -> accepted runtime types
_ACCEPTED = {
    "bool": (bool,),
    "int": (int,),
    "float": (int, float),
    "str": (str,),
}
FIELD_TYPES = {f.name: f.type for f in fields(ScenarioConfig)}


def check_override_value(key: str, value: Any) -> None:
    declared = str(FIELD_TYPES[key])
    if declared.startswith("List"):
        if not isinstance(value, (list, tuple)) or not all(len(row) == 4 for row in value):
            raise InvalidConfiguration(f"Override '{key}' must be a list of (id, name, lat, lon) rows.")
        return
    accepted = _ACCEPTED[declared]
    # bool is an int subclass; only bool fields take it
    if isinstance(value, bool) and declared != "bool":
        raise InvalidConfiguration(f"Override '{key}' must be {declared}.")
    if not isinstance(value, accepted):
        raise InvalidConfiguration(f"Override '{key}' must be {declared}.")


def check_scenario_dict(config: Dict[str, Any]) -> None:
    for key in RESOURCE_KEYS:
        if key in config and config[key] < 1:
            raise InvalidConfiguration(f"{key} must be >= 1.")
    for key in NON_NEGATIVE_KEYS:
        if key in config and config[key] < 0:
            raise InvalidConfiguration(f"{key} must be >= 0.")
    for key in FRACTION_KEYS:
        if key in config and not 0.0 <= config[key] <= 1.0:
            raise InvalidConfiguration(f"{key} must be between 0 and 1.")

    for prefix in TRIANGULAR_PREFIXES:
        low, mode, high = (config.get(f"{prefix}_{part}") for part in ("min", "mode", "max"))
        if None not in (low, mode, high) and not 0 <= low <= mode <= high:
            raise InvalidConfiguration(f"{prefix} needs 0 <= min <= mode <= max, got {low}/{mode}/{high}.")
    for low_key, high_key in RANGE_KEYS:
        if low_key in config and high_key in config and not 0 <= config[low_key] <= config[high_key]:
            raise InvalidConfiguration(f"{low_key} must be >= 0 and <= {high_key}.")

    if config.get("warmup_days", 0) >= config.get("run_days", 1):
        raise InvalidConfiguration("warmup_days must be shorter than run_days.")
    if all(k in config for k in ("p_barge", "p_rail", "p_truck")):
        ModalSplit(barge=config["p_barge"], rail=config["p_rail"], truck=config["p_truck"])


def apply_overrides(config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(config, dict) or not config:
        raise InvalidConfiguration("Config must be a non-empty dict.")
    if not overrides:
        return dict(config)

    unknown = [key for key in overrides if key not in ALLOWED_OVERRIDE_KEYS]
    if unknown:
        raise InvalidConfiguration(f"Unknown override keys: {', '.join(sorted(unknown))}")

    merged = dict(config)
    for key, value in overrides.items():
        check_override_value(key, value)
        merged[key] = value
    check_scenario_dict(merged)
    return merged
