"""
Uniform 1D finite-volume grid.
"""

from dataclasses import dataclass, field

import numpy as np

from .errors import InvalidConfig


@dataclass(frozen=True)
class Grid:
    """
    Cell-centred grid on [0, length].

    Attributes:
        n_cells: Number of cells (Nx)
        length: Domain length (L)
        dx: Uniform cell width
        faces: Cell boundary positions (n_cells + 1,)
        cell_centers: Cell midpoints (n_cells,)
    """
    n_cells: int
    length: float
    dx: float
    faces: np.ndarray = field(repr=False)
    cell_centers: np.ndarray = field(repr=False)


def build_grid(length: float, n_cells: int) -> Grid:
    """
    Build a uniform grid of n_cells cells spanning [0, length].

    Raises:
        InvalidConfig: if n_cells < 1 or length <= 0
    """
    try:
        is_integer = not isinstance(n_cells, bool) and int(n_cells) == n_cells
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidConfig(f"n_cells must be an integer, got {n_cells!r}") from e
    if not is_integer:
        raise InvalidConfig(f"n_cells must be an integer, got {n_cells!r}")
    n_cells = int(n_cells)
    if n_cells < 1:
        raise InvalidConfig(f"n_cells must be >= 1, got {n_cells}")
    try:
        length_ok = length > 0
    except TypeError as e:
        raise InvalidConfig(f"length must be a number, got {length!r}") from e
    if not length_ok:
        raise InvalidConfig(f"length must be > 0, got {length}")

    length = float(length)
    faces = np.linspace(0.0, length, n_cells + 1)
    cell_centers = 0.5 * (faces[:-1] + faces[1:])

    # Read-only so a shared grid cannot be mutated by a consumer
    faces.setflags(write=False)
    cell_centers.setflags(write=False)

    return Grid(
        n_cells=n_cells,
        length=length,
        dx=length / n_cells,
        faces=faces,
        cell_centers=cell_centers,
    )
