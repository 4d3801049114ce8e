"""
fractals.py
===========
Fractal and noise primitives: Mandelbrot escape time and 2-D improved Perlin
noise.

Both functions are vectorised over numpy arrays and accept plain floats.
They are an extension point for surface or density detail; the body
generator in ``universegen`` does not call them, and the ``complexity`` /
``fractal_iterations`` parameters are not wired to them.

Usage
-----
    import numpy as np
    from fractals import mandelbrot, perlin_noise
    xs, ys = np.meshgrid(np.linspace(-2, 1, 300), np.linspace(-1.5, 1.5, 300))
    escape = mandelbrot(xs, ys, 50)
    noise  = perlin_noise(xs * 4, ys * 4, seed=7)
"""

from __future__ import annotations

from typing import Optional

import numpy as np


# Ken Perlin's reference permutation of 0..255
PERMUTATION = np.array([
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
], dtype=np.int64)


# ---------------------------------------------------------------------------
# Mandelbrot
# ---------------------------------------------------------------------------

def mandelbrot(x, y, max_iterations: int):
    """Normalised escape time of c = x + iy.

    Returns ``i / max_iterations`` for the first iteration ``i`` at which
    |z|² > 4, or 1.0 for points that never escape.  Scalar input gives a
    float; array input gives an array of the broadcast shape.
    """
    cx = np.asarray(x, dtype=np.float64)
    cy = np.asarray(y, dtype=np.float64)
    cx, cy = np.broadcast_arrays(cx, cy)

    result = np.ones(cx.shape, dtype=np.float64)
    if max_iterations <= 0:
        return float(result) if result.ndim == 0 else result

    real = cx.copy()
    imag = cy.copy()
    active = np.ones(cx.shape, dtype=bool)

    for i in range(max_iterations):
        real_tmp = real * real - imag * imag + cx
        imag = np.where(active, 2.0 * real * imag + cy, imag)
        real = np.where(active, real_tmp, real)

        escaped = active & (real * real + imag * imag > 4.0)
        result[escaped] = i / max_iterations
        active &= ~escaped
        if not active.any():
            break

    return float(result) if result.ndim == 0 else result


# ---------------------------------------------------------------------------
# Perlin noise
# ---------------------------------------------------------------------------

def fade(t):
    """Quintic smoothstep 6t⁵ − 15t⁴ + 10t³."""
    return t * t * t * (t * (t * 6 - 15) + 10)


def lerp(t, a, b):
    return a + t * (b - a)


def grad(h, x, y):
    """Gradient contribution for lattice hash *h* at offset (x, y)."""
    h = np.asarray(h) & 15
    g = 1 + (h & 7)
    gx = np.where(h & 8, -g, g)
    gy = np.where(h & 4, -g, g)
    return gx * x + gy * y


def permutation_table(seed: Optional[int] = None) -> np.ndarray:
    """Doubled 512-entry permutation table.

    ``seed=None`` gives the reference table; an integer seed shuffles it with
    ``np.random.default_rng(seed)``.
    """
    perm = PERMUTATION
    if seed is not None:
        perm = np.random.default_rng(seed).permutation(PERMUTATION)
    return np.concatenate([perm, perm])


def perlin_noise(x, y, seed: Optional[int] = None):
    """2-D improved Perlin noise at (x, y).

    Zero at integer lattice points.  Scalar input gives a float; array input
    gives an array of the broadcast shape.
    """
    p = permutation_table(seed)

    fx = np.asarray(x, dtype=np.float64)
    fy = np.asarray(y, dtype=np.float64)
    fx, fy = np.broadcast_arrays(fx, fy)

    x0 = np.floor(fx)
    y0 = np.floor(fy)
    X = x0.astype(np.int64) & 255
    Y = y0.astype(np.int64) & 255
    xf = fx - x0
    yf = fy - y0

    u = fade(xf)
    v = fade(yf)

    a  = p[X] + Y
    aa = p[a]
    ab = p[a + 1]
    b  = p[X + 1] + Y
    ba = p[b]
    bb = p[b + 1]

    out = lerp(
        v,
        lerp(u, grad(p[aa], xf, yf),     grad(p[ba], xf - 1, yf)),
        lerp(u, grad(p[ab], xf, yf - 1), grad(p[bb], xf - 1, yf - 1)),
    )
    return float(out) if np.ndim(out) == 0 else out
