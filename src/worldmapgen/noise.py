"""Simplex noise in 2, 3 and 4 dimensions.

Based on Stefan Gustavson's reference implementation ("Simplex noise
demystified", 2005), vectorised over numpy arrays so whole grids are
sampled at once. Every function also accepts plain floats and then
returns a float.

Results are scaled and biased to land near [0, 1].
"""

import math
from collections.abc import Callable, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

# Ken Perlin's reference permutation
_P = np.array(
    [
        151, 160, 137, 91, 90, 15, 131, 13, 201, 95, 96, 53, 194, 233, 7, 225,
        140, 36, 103, 30, 69, 142, 8, 99, 37, 240, 21, 10, 23, 190, 6, 148,
        247, 120, 234, 75, 0, 26, 197, 62, 94, 252, 219, 203, 117, 35, 11, 32,
        57, 177, 33, 88, 237, 149, 56, 87, 174, 20, 125, 136, 171, 168, 68, 175,
        74, 165, 71, 134, 139, 48, 27, 166, 77, 146, 158, 231, 83, 111, 229, 122,
        60, 211, 133, 230, 220, 105, 92, 41, 55, 46, 245, 40, 244, 102, 143, 54,
        65, 25, 63, 161, 1, 216, 80, 73, 209, 76, 132, 187, 208, 89, 18, 169,
        200, 196, 135, 130, 116, 188, 159, 86, 164, 100, 109, 198, 173, 186, 3, 64,
        52, 217, 226, 250, 124, 123, 5, 202, 38, 147, 118, 126, 255, 82, 85, 212,
        207, 206, 59, 227, 47, 16, 58, 17, 182, 189, 28, 42, 223, 183, 170, 213,
        119, 248, 152, 2, 44, 154, 163, 70, 221, 153, 101, 155, 167, 43, 172, 9,
        129, 22, 39, 253, 19, 98, 108, 110, 79, 113, 224, 232, 178, 185, 112, 104,
        218, 246, 97, 228, 251, 34, 242, 193, 238, 210, 144, 12, 191, 179, 162, 241,
        81, 51, 145, 235, 249, 14, 239, 107, 49, 192, 214, 31, 181, 199, 106, 157,
        184, 84, 204, 176, 115, 121, 50, 45, 127, 4, 150, 254, 138, 236, 205, 93,
        222, 114, 67, 29, 24, 72, 243, 141, 128, 195, 78, 66, 215, 61, 156, 180,
    ],
    dtype=np.int64,
)

# Doubled so hashed lookups never need to wrap
PERM = np.concatenate([_P, _P])

# Gradients for 2D (first two components) and 3D noise
GRAD3 = np.array(
    [
        [1, 1, 0], [-1, 1, 0], [1, -1, 0], [-1, -1, 0],
        [1, 0, 1], [-1, 0, 1], [1, 0, -1], [-1, 0, -1],
        [0, 1, 1], [0, -1, 1], [0, 1, -1], [0, -1, -1],
    ],
    dtype=np.float64,
)

GRAD4 = np.array(
    [
        [0, 1, 1, 1], [0, 1, 1, -1], [0, 1, -1, 1], [0, 1, -1, -1],
        [0, -1, 1, 1], [0, -1, 1, -1], [0, -1, -1, 1], [0, -1, -1, -1],
        [1, 0, 1, 1], [1, 0, 1, -1], [1, 0, -1, 1], [1, 0, -1, -1],
        [-1, 0, 1, 1], [-1, 0, 1, -1], [-1, 0, -1, 1], [-1, 0, -1, -1],
        [1, 1, 0, 1], [1, 1, 0, -1], [1, -1, 0, 1], [1, -1, 0, -1],
        [-1, 1, 0, 1], [-1, 1, 0, -1], [-1, -1, 0, 1], [-1, -1, 0, -1],
        [1, 1, 1, 0], [1, 1, -1, 0], [1, -1, 1, 0], [1, -1, -1, 0],
        [-1, 1, 1, 0], [-1, 1, -1, 0], [-1, -1, 1, 0], [-1, -1, -1, 0],
    ],
    dtype=np.float64,
)

# 4D traversal table indexed by six pairwise-comparison bits.
# Only 24 of the 64 entries can occur; the rest are zero.
SIMPLEX4 = np.array(
    [
        [0, 1, 2, 3], [0, 1, 3, 2], [0, 0, 0, 0], [0, 2, 3, 1],
        [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [1, 2, 3, 0],
        [0, 2, 1, 3], [0, 0, 0, 0], [0, 3, 1, 2], [0, 3, 2, 1],
        [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [1, 3, 2, 0],
        [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0],
        [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0],
        [1, 2, 0, 3], [0, 0, 0, 0], [1, 3, 0, 2], [0, 0, 0, 0],
        [0, 0, 0, 0], [0, 0, 0, 0], [2, 3, 0, 1], [2, 3, 1, 0],
        [1, 0, 2, 3], [1, 0, 3, 2], [0, 0, 0, 0], [0, 0, 0, 0],
        [0, 0, 0, 0], [2, 0, 3, 1], [0, 0, 0, 0], [2, 1, 3, 0],
        [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0],
        [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0],
        [2, 0, 1, 3], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0],
        [3, 0, 1, 2], [3, 0, 2, 1], [0, 0, 0, 0], [3, 1, 2, 0],
        [2, 1, 0, 3], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0],
        [3, 1, 0, 2], [0, 0, 0, 0], [3, 2, 0, 1], [3, 2, 1, 0],
    ],
    dtype=np.int64,
)

# Corner offsets of the 3D simplex for each of the six coordinate orderings:
# (second corner, third corner)
_ORDER3 = np.array(
    [
        [[1, 0, 0], [1, 1, 0]],  # x y z
        [[1, 0, 0], [1, 0, 1]],  # x z y
        [[0, 0, 1], [1, 0, 1]],  # z x y
        [[0, 0, 1], [0, 1, 1]],  # z y x
        [[0, 1, 0], [0, 1, 1]],  # y z x
        [[0, 1, 0], [1, 1, 0]],  # y x z
    ],
    dtype=np.int64,
)

# Skew/unskew factors
SKEW_2D = 0.5 * (math.sqrt(3.0) - 1.0)
UNSKEW_2D = (3.0 - math.sqrt(3.0)) / 6.0
SKEW_3D = 1.0 / 3.0
UNSKEW_3D = 1.0 / 6.0
SKEW_4D = (math.sqrt(5.0) - 1.0) / 4.0
UNSKEW_4D = (5.0 - math.sqrt(5.0)) / 20.0

CornerOrder = Callable[[NDArray[np.float64]], list[NDArray[np.int64]]]


def _corners_2d(origin: NDArray[np.float64]) -> list[NDArray[np.int64]]:
    """Lower triangle (x first) or upper triangle (y first)."""
    i1 = (origin[:, 0] > origin[:, 1]).astype(np.int64)
    zeros = np.zeros_like(origin, dtype=np.int64)
    second = np.stack([i1, 1 - i1], axis=-1)
    return [zeros, second, np.ones_like(zeros)]


def _corners_3d(origin: NDArray[np.float64]) -> list[NDArray[np.int64]]:
    """Pick one of six tetrahedra from three coordinate comparisons."""
    x, y, z = origin[:, 0], origin[:, 1], origin[:, 2]
    xy = x >= y
    yz = y >= z
    xz = x >= z
    order = np.select([xy & yz, xy & xz, xy, ~yz, ~xz], [0, 1, 2, 3, 4], default=5)
    zeros = np.zeros_like(origin, dtype=np.int64)
    return [zeros, _ORDER3[order, 0], _ORDER3[order, 1], np.ones_like(zeros)]


def _corners_4d(origin: NDArray[np.float64]) -> list[NDArray[np.int64]]:
    """Rank the coordinates through the comparison table."""
    x, y, z, w = origin[:, 0], origin[:, 1], origin[:, 2], origin[:, 3]
    c = (
        32 * (x > y)
        + 16 * (x > z)
        + 8 * (y > z)
        + 4 * (x > w)
        + 2 * (y > w)
        + (z > w)
    ).astype(np.int64)
    ranks = SIMPLEX4[c]
    zeros = np.zeros_like(origin, dtype=np.int64)
    corners = [zeros]
    for k in range(1, 4):
        corners.append((ranks >= 4 - k).astype(np.int64))
    corners.append(np.ones_like(zeros))
    return corners


def _simplex(
    coords: Sequence[ArrayLike],
    skew: float,
    unskew: float,
    corner_order: CornerOrder,
    radius: float,
    gradients: NDArray[np.float64],
    scale: float,
) -> NDArray[np.float64] | float:
    """Shared simplex evaluation for any dimension.

    Args:
        coords: One array (or scalar) per input dimension, broadcastable.
        skew: Factor skewing input space onto the simplex lattice.
        unskew: Factor mapping lattice offsets back to input space.
        corner_order: Returns the lattice offsets of the N+1 corners.
        radius: Squared falloff radius of a corner's contribution.
        gradients: Gradient table; rows are indexed by the corner hash.
        scale: Multiplier bringing the summed contributions near [-0.5, 0.5].

    Returns:
        Noise values with the broadcast input shape, or a float for
        scalar input.
    """
    arrays = np.broadcast_arrays(*(np.asarray(c, dtype=np.float64) for c in coords))
    shape = arrays[0].shape
    dims = len(arrays)
    points = np.stack([a.reshape(-1) for a in arrays], axis=-1)

    # Skew to find the containing cell, then unskew its origin
    offset = points.sum(axis=1, keepdims=True) * skew
    cell = np.floor(points + offset).astype(np.int64)
    unskewed = cell.sum(axis=1, keepdims=True) * unskew
    origin = points - cell + unskewed

    hashed_cell = cell & 255
    n_grad = len(gradients)
    noise = np.zeros(len(points), dtype=np.float64)

    for k, corner in enumerate(corner_order(origin)):
        distance = origin - corner + k * unskew

        # Nested permutation lookup, innermost on the last axis
        h = PERM[hashed_cell[:, dims - 1] + corner[:, dims - 1]]
        for d in range(dims - 2, -1, -1):
            h = PERM[hashed_cell[:, d] + corner[:, d] + h]
        grad = gradients[h % n_grad, :dims]

        t = radius - np.sum(distance * distance, axis=1)
        dot = np.sum(grad * distance, axis=1)
        noise += np.where(t >= 0.0, t**4 * dot, 0.0)

    result = scale * noise + 0.5
    if not shape:
        return float(result[0])
    return result.reshape(shape)


def noise2d(x: ArrayLike, y: ArrayLike) -> NDArray[np.float64] | float:
    """2D simplex noise in roughly [0, 1]."""
    return _simplex((x, y), SKEW_2D, UNSKEW_2D, _corners_2d, 0.5, GRAD3, 35.0)


def noise3d(x: ArrayLike, y: ArrayLike, z: ArrayLike) -> NDArray[np.float64] | float:
    """3D simplex noise in roughly [0, 1]."""
    return _simplex((x, y, z), SKEW_3D, UNSKEW_3D, _corners_3d, 0.6, GRAD3, 16.0)


def noise4d(
    x: ArrayLike, y: ArrayLike, z: ArrayLike, w: ArrayLike
) -> NDArray[np.float64] | float:
    """4D simplex noise in roughly [0, 1]."""
    return _simplex((x, y, z, w), SKEW_4D, UNSKEW_4D, _corners_4d, 0.6, GRAD4, 13.5)


_NOISE_BY_DIMENSION = {2: noise2d, 3: noise3d, 4: noise4d}


def seamless_inputs(
    coord: ArrayLike,
    length: int,
    span: float,
    wrap: bool,
) -> list[NDArray[np.float64]]:
    """Map one grid axis to noise-function inputs.

    A non-wrapping axis becomes one linear input covering ``span`` noise
    units. A wrapping axis is embedded on a circle whose circumference is
    ``span``, giving two inputs, so the last cell blends into the first.

    Args:
        coord: Tile coordinates along the axis.
        length: Number of tiles on the axis.
        span: Noise units covered by the whole axis.
        wrap: Whether the axis wraps.

    Returns:
        One or two arrays of noise-space coordinates.
    """
    coord = np.asarray(coord, dtype=np.float64)
    if not wrap:
        return [coord / length * span]
    angle = 2.0 * math.pi * coord / length
    radius = span / (2.0 * math.pi)
    return [radius * np.cos(angle), radius * np.sin(angle)]


def seamless_noise(
    x: ArrayLike,
    y: ArrayLike,
    width: int,
    height: int,
    span_x: float,
    span_y: float,
    wrap_x: bool,
    wrap_y: bool,
    offsets: Sequence[float],
) -> NDArray[np.float64] | float:
    """Sample noise over a grid whose axes may wrap seamlessly.

    Uses 2D noise if neither axis wraps, 3D if one does and 4D if both do.

    Args:
        x: Tile x coordinates.
        y: Tile y coordinates.
        width: Grid width in tiles.
        height: Grid height in tiles.
        span_x: Noise units covered by the grid width.
        span_y: Noise units covered by the grid height.
        wrap_x: Whether the x axis wraps.
        wrap_y: Whether the y axis wraps.
        offsets: Translation added to each noise input, one per dimension.

    Returns:
        Noise values shaped like the broadcast of x and y.
    """
    inputs = seamless_inputs(x, width, span_x, wrap_x) + seamless_inputs(
        y, height, span_y, wrap_y
    )
    if len(offsets) != len(inputs):
        raise ValueError(
            f"Expected {len(inputs)} noise offsets, got {len(offsets)}"
        )
    shifted = [inp + off for inp, off in zip(inputs, offsets)]
    return _NOISE_BY_DIMENSION[len(shifted)](*shifted)
