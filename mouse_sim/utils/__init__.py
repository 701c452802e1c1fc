"""Utility helpers shared by the simulator and tests."""

from .config import load_config_any, load_config_dict, load_sim_config
from .resources import resource_path

__all__ = [
    "load_config_any",
    "load_config_dict",
    "load_sim_config",
    "resource_path",
]
