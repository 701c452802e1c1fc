"""Maze collaborator: wall queries over an occupancy grid using DDA raycasting.

Design decisions:
- Grid convention: grid[i, j] covers [j*res, (j+1)*res) x [i*res, (i+1)*res), True=wall.
- Traversal: DDA (Amanatides & Woo) with tie-break stepping both axes when needed.
- Leaving the grid counts as hitting a wall: the distance to the boundary is returned.
- Starting inside a wall returns 0.
"""

from __future__ import annotations

from math import cos, floor, inf, sin
from typing import Protocol, Sequence

import numpy as np

from ..types import Direction

# Bit order of the last axis of a tile-walls array
WALL_ORDER: Sequence[Direction] = (Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST)


class MazeQuery(Protocol):
    """Read-only wall queries used by the mouse's sensors."""

    def ray_distance(self, x: float, y: float, angle: float, max_range: float) -> float:
        ...


class GridMaze:
    """Boolean occupancy grid answering ray-versus-wall queries.

    Args:
        grid: 2D bool array, True=wall.
        resolution_m: grid resolution (meters per cell).
    """

    def __init__(self, grid: np.ndarray, resolution_m: float) -> None:
        assert grid.ndim == 2 and grid.dtype == bool
        assert resolution_m > 0.0
        self.grid = grid
        self.grid.setflags(write=False)
        self.res = float(resolution_m)
        self.height, self.width = grid.shape

    @property
    def width_m(self) -> float:
        return self.width * self.res

    @property
    def height_m(self) -> float:
        return self.height * self.res

    def is_wall(self, x: float, y: float) -> bool:
        if not (0.0 <= x < self.width_m and 0.0 <= y < self.height_m):
            return True
        return bool(self.grid[int(floor(y / self.res)), int(floor(x / self.res))])

    def ray_distance(self, x: float, y: float, angle: float, max_range: float) -> float:
        """Distance in meters from (x, y) along ``angle`` to the first wall, capped at ``max_range``."""
        grid = self.grid
        H, W = grid.shape
        res = self.res

        if not (0.0 <= x < W * res and 0.0 <= y < H * res):
            return 0.0

        j = int(floor(x / res))
        i = int(floor(y / res))
        if grid[i, j]:
            return 0.0

        dirx = cos(angle)
        diry = sin(angle)
        step_x = 1 if dirx > 0.0 else -1
        step_y = 1 if diry > 0.0 else -1

        if dirx == 0.0:
            t_max_x = inf
            t_delta_x = inf
        else:
            next_bx = (j + (1 if dirx > 0.0 else 0)) * res
            t_max_x = (next_bx - x) / dirx
            t_delta_x = res / abs(dirx)

        if diry == 0.0:
            t_max_y = inf
            t_delta_y = inf
        else:
            next_by = (i + (1 if diry > 0.0 else 0)) * res
            t_max_y = (next_by - y) / diry
            t_delta_y = res / abs(diry)

        t = 0.0
        eps = 1e-12
        while t < max_range:
            if abs(t_max_x - t_max_y) <= eps:
                # Diagonal step
                t = t_max_x
                j += step_x
                i += step_y
                t_max_x += t_delta_x
                t_max_y += t_delta_y
            elif t_max_x < t_max_y:
                t = t_max_x
                j += step_x
                t_max_x += t_delta_x
            else:
                t = t_max_y
                i += step_y
                t_max_y += t_delta_y

            if j < 0 or j >= W or i < 0 or i >= H or grid[i, j]:
                return min(t, max_range)
        return max_range

    @classmethod
    def from_tile_walls(
        cls,
        walls: np.ndarray,
        wall_length: float,
        wall_width: float,
        resolution_m: float,
    ) -> "GridMaze":
        """Rasterize a tile maze.

        ``walls[x, y, k]`` is True when tile (x, y) has a wall on side
        ``WALL_ORDER[k]``. Tile (x, y) spans [x*T, (x+1)*T) with
        ``T = wall_length + wall_width``; each wall is a ``wall_width`` thick
        slab centered on the tile edge, spanning the posts at both ends.
        """
        walls = np.asarray(walls, dtype=bool)
        assert walls.ndim == 3 and walls.shape[2] == 4, "walls must have shape (W, H, 4)"
        tile = wall_length + wall_width
        n_x, n_y = walls.shape[0], walls.shape[1]
        cols = int(round(n_x * tile / resolution_m))
        rows = int(round(n_y * tile / resolution_m))
        grid = np.zeros((rows, cols), dtype=bool)
        centers_x = (np.arange(cols) + 0.5) * resolution_m
        centers_y = (np.arange(rows) + 0.5) * resolution_m
        half = 0.5 * wall_width

        def fill(x0: float, x1: float, y0: float, y1: float) -> None:
            jj = np.nonzero((centers_x >= x0) & (centers_x < x1))[0]
            ii = np.nonzero((centers_y >= y0) & (centers_y < y1))[0]
            if jj.size and ii.size:
                grid[ii[0] : ii[-1] + 1, jj[0] : jj[-1] + 1] = True

        north, east, south, west = (
            WALL_ORDER.index(d)
            for d in (Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST)
        )
        for tx in range(n_x):
            for ty in range(n_y):
                x0, x1 = tx * tile, (tx + 1) * tile
                y0, y1 = ty * tile, (ty + 1) * tile
                if walls[tx, ty, north]:
                    fill(x0 - half, x1 + half, y1 - half, y1 + half)
                if walls[tx, ty, south]:
                    fill(x0 - half, x1 + half, y0 - half, y0 + half)
                if walls[tx, ty, east]:
                    fill(x1 - half, x1 + half, y0 - half, y1 + half)
                if walls[tx, ty, west]:
                    fill(x0 - half, x0 + half, y0 - half, y1 + half)
        return cls(grid, resolution_m)


def enclosed_walls(n_x: int, n_y: int) -> np.ndarray:
    """Walls array for an empty ``n_x`` by ``n_y`` maze with only the outer boundary."""
    walls = np.zeros((n_x, n_y, 4), dtype=bool)
    walls[:, n_y - 1, WALL_ORDER.index(Direction.NORTH)] = True
    walls[:, 0, WALL_ORDER.index(Direction.SOUTH)] = True
    walls[n_x - 1, :, WALL_ORDER.index(Direction.EAST)] = True
    walls[0, :, WALL_ORDER.index(Direction.WEST)] = True
    return walls
