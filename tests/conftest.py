import numpy as np
import pytest

from mouse_sim.config import SimConfig
from mouse_sim.sim.maze import GridMaze


@pytest.fixture
def open_maze():
    # 1m x 1m with no walls inside; the border still stops rays
    return GridMaze(np.zeros((100, 100), dtype=bool), resolution_m=0.01)


@pytest.fixture
def sim_config():
    return SimConfig()
