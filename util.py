import colorsys

import numpy as np

from config import CHUNK_SIZE

MASK64 = (1 << 64) - 1
MASK32 = 0xFFFFFFFF

# Primes of the classic spatial hash used for cosmetic variants and plant placement.
HASH_PX = 73856093
HASH_PY = 19349663
HASH_PZ = 83492791


def _wrap32(v):
    """Wrap a python int or an int64 array into the signed 32 bit range."""
    v = v & MASK32
    return v - ((v >> 31) & 1) * (1 << 32)


def _is_scalar(*values):
    return all(np.ndim(v) == 0 for v in values)


def spatial_hash(x, y, z):
    """Signed 32 bit hash of a voxel coordinate. Accepts ints or int arrays."""
    if _is_scalar(x, y, z):
        return _wrap32(int(x) * HASH_PX) ^ _wrap32(int(y) * HASH_PY) ^ _wrap32(int(z) * HASH_PZ)
    x = np.asarray(x, dtype=np.int64)
    y = np.asarray(y, dtype=np.int64)
    z = np.asarray(z, dtype=np.int64)
    return _wrap32(x * HASH_PX) ^ _wrap32(y * HASH_PY) ^ _wrap32(z * HASH_PZ)


def column_hash(x, z):
    """Unsigned 32 bit hash of a world column."""
    return (_wrap32(int(x) * HASH_PX) ^ _wrap32(int(z) * HASH_PY)) & MASK32


def variant_index(h, count):
    if _is_scalar(h):
        return abs(int(h)) % count
    return np.abs(np.asarray(h, dtype=np.int64)) % count


def splitmix64(h):
    h &= MASK64
    h = (h ^ (h >> 30)) * 0xbf58476d1ce4e5b9 & MASK64
    h = (h ^ (h >> 27)) * 0x94d049bb133111eb & MASK64
    return h ^ (h >> 31)


def hash_float(h):
    # Splitmix64-style integer hash for deterministic floats in [0,1).
    h = splitmix64(int(h) * 0x9E3779B97F4A7C15)
    return (h & ((1 << 53) - 1)) / float(1 << 53)


def mix_seed(*parts):
    """Fold integers into one non-negative 64 bit seed for numpy.random.default_rng."""
    h = 0x9E3779B97F4A7C15
    for salt, part in enumerate(parts):
        h ^= (int(part) * 0x632BE59BD9B4E019 + salt * 0x94D049BB133111EB) & MASK64
        h = splitmix64(h)
    return h


def round_half_up(v):
    """Nearest integer with .5 rounded towards +inf."""
    if _is_scalar(v):
        return int(np.floor(v + 0.5))
    return np.floor(np.asarray(v) + 0.5).astype(np.int64)


def hsl_to_rgb(hue, saturation, lightness):
    """hue in degrees, saturation and lightness in 0..1. Returns an (r, g, b) tuple in 0..1."""
    return colorsys.hls_to_rgb((hue % 360.0) / 360.0, lightness, saturation)


def chunk_origin(chunk_coord, chunk_size=CHUNK_SIZE):
    i, j, k = chunk_coord
    return (i * chunk_size, j * chunk_size, k * chunk_size)


def neighborhood(chunk_coord, radius=1):
    """Chunk coordinates of the (2r+1)^3 block around `chunk_coord`, sorted."""
    i, j, k = chunk_coord
    r = range(-radius, radius + 1)
    return sorted((i + di, j + dj, k + dk) for di in r for dj in r for dk in r)
