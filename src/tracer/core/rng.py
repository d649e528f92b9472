"""Per-pixel random number streams for reproducible Monte Carlo sampling.

Every sampling function in the tracer takes an explicit ``stream`` argument:
an index into a Taichi field of 32-bit generator states. The frame driver
gives each pixel its own stream and seeds it from ``(seed, pixel index)``
before sampling, so the rendered image depends only on the scene, camera,
settings and seed, never on how Taichi schedules the parallel pixel loop.

The generator is a xorshift32 step; seeds are scrambled with the Wang
integer hash so neighbouring pixels start from uncorrelated states.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.tracer.core.rng import random_float, seed_stream
    >>>
    >>> @ti.kernel
    ... def draw() -> ti.f64:
    ...     seed_stream(0, 1234)
    ...     return random_float(0)
"""

import taichi as ti

# One stream per pixel of the largest supported image
MAX_STREAMS = 2048 * 2048

_rng_states = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


@ti.func
def _wang_hash(key: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer (Thomas Wang, 2007)."""
    k = key
    k = (k ^ ti.u32(61)) ^ (k >> ti.u32(16))
    k = k * ti.u32(9)
    k = k ^ (k >> ti.u32(4))
    k = k * ti.u32(0x27D4EB2D)
    k = k ^ (k >> ti.u32(15))
    return k


@ti.func
def seed_stream(stream: ti.i32, seed: ti.i32):
    """Reset a stream to a state derived from (seed, stream).

    Args:
        stream: Index of the stream to seed.
        seed: User-level seed shared by all streams of a render.
    """
    state = _wang_hash(_wang_hash(ti.cast(seed, ti.u32)) ^ ti.cast(stream, ti.u32))
    # xorshift never leaves the all-zero state
    if state == ti.u32(0):
        state = ti.u32(1)
    _rng_states[stream] = state


@ti.func
def _next_u32(stream: ti.i32) -> ti.u32:
    """Advance a stream by one xorshift32 step and return the new state."""
    x = _rng_states[stream]
    x ^= x << ti.u32(13)
    x ^= x >> ti.u32(17)
    x ^= x << ti.u32(5)
    _rng_states[stream] = x
    return x


@ti.func
def random_float(stream: ti.i32) -> ti.f64:
    """Draw a uniform float in [0, 1) from a stream.

    Scales the full 32-bit state by 2**-32. xorshift32 never returns 0,
    and the largest state maps to 1 - 2**-32, which is exact in f64.

    Args:
        stream: Index of the stream to draw from.

    Returns:
        A uniformly distributed value in [0, 1).
    """
    return ti.cast(_next_u32(stream), ti.f64) * (1.0 / 4294967296.0)


@ti.func
def random_range(stream: ti.i32, lo: ti.f64, hi: ti.f64) -> ti.f64:
    """Draw a uniform float in [lo, hi) from a stream."""
    return lo + (hi - lo) * random_float(stream)


@ti.kernel
def seed_streams(seed: ti.i32, count: ti.i32):
    """Seed the first ``count`` streams from a shared seed.

    Python-side entry point, mostly useful for tests and tools that call
    sampling functions directly instead of going through the renderer.
    """
    for stream in range(count):
        seed_stream(stream, seed)
