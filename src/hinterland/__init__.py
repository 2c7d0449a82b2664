from .model import PortModel, run_simulation
from .overrides import apply_overrides
from .scenarios import (
    SCENARIO_KEYS,
    ModalSplit,
    ScenarioConfig,
    get_scenario,
    scenario_from_dict,
    scenario_to_dict,
)

__all__ = [
    "SCENARIO_KEYS",
    "ModalSplit",
    "PortModel",
    "ScenarioConfig",
    "apply_overrides",
    "get_scenario",
    "run_simulation",
    "scenario_from_dict",
    "scenario_to_dict",
]
