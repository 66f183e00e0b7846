import os
import sys

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import config
import noise
from biomes import BiomeClassifier
from heightmap import HeightmapGenerator


def _sample(seed, n=64, span=20000):
    rng = np.random.RandomState(seed)
    return rng.randint(-span, span, size=(n, 2))


def test_noise_range_and_scalar():
    field = noise.SeededNoiseField(1234)
    pts = _sample(1).astype(float)
    v2 = field.noise2d(pts[:, 0], pts[:, 1], 0.01)
    v3 = field.noise3d(pts[:, 0], pts[:, 1] * 0.5, pts[:, 1], 0.02)
    assert v2.shape == (len(pts),)
    assert (np.abs(v2) <= 1.0).all()
    assert (np.abs(v3) <= 1.0).all()
    x, z = pts[0]
    assert isinstance(field.noise2d(x, z, 0.01), float)
    assert field.noise2d(x, z, 0.01) == v2[0]


def test_octave_sum_amplitude():
    field = noise.SeededNoiseField(55)
    xs, zs = np.mgrid[-200:200:7, -200:200:7].astype(float)
    total = field.octave_sum(xs, zs, 0.01, 12.0, 4)
    assert np.abs(total).max() <= 12.0 + 1e-9
    single = field.octave_sum(xs, zs, 0.01, 3.0, 1)
    assert np.allclose(single, field.noise2d(xs, zs, 0.01) * 3.0)


def test_roughness_bounded_per_biome():
    field = noise.SeededNoiseField(77)
    cls = BiomeClassifier(field)
    xs, zs = np.mgrid[-300:300:11, -300:300:11].astype(float)
    for name, params in config.BIOME_NOISE.items():
        r = field.roughness(xs, zs, params)
        assert np.abs(r).max() <= params['roughness'] * 10 + 1e-9
    params = cls.biome_params(0, 0)
    assert field.roughness(0.0, 0.0, params) == field.roughness(0.0, 0.0, params)


def test_mountain_mask_range():
    field = noise.SeededNoiseField(9)
    xs, zs = np.mgrid[-3000:3000:97, -3000:3000:89].astype(float)
    mask = field.mountain_mask(xs, zs)
    assert mask.min() >= 0.0 and mask.max() <= 1.0


def test_channels_are_seeded():
    a = noise.SeededNoiseField(1)
    b = noise.SeededNoiseField(1)
    c = noise.SeededNoiseField(2)
    pts = _sample(3).astype(float)
    assert np.array_equal(a.terrain(pts[:, 0], pts[:, 1]), b.terrain(pts[:, 0], pts[:, 1]))
    assert not np.array_equal(a.terrain(pts[:, 0], pts[:, 1]), c.terrain(pts[:, 0], pts[:, 1]))


def test_height_scalar_matches_batch():
    hm = HeightmapGenerator(noise.SeededNoiseField(4242))
    pts = _sample(7)
    batch = hm.heights(pts[:, 0], pts[:, 1])
    for (x, z), h in zip(pts, batch):
        assert hm.height_at(int(x), int(z)) == int(h)
    grid = hm.chunk_heightmap(-64, 128, 32)
    assert grid.shape == (32, 32)
    assert grid[3, 17] == hm.height_at(-64 + 3, 128 + 17)


def test_height_bounds():
    hm = HeightmapGenerator(noise.SeededNoiseField(12345))
    xs, zs = np.mgrid[-4000:4000:61, -4000:4000:59]
    h = hm.heights(xs, zs)
    assert h.dtype == np.int64
    assert h.min() >= config.MIN_SURFACE_HEIGHT
    assert h.max() <= config.MAX_SURFACE_HEIGHT


def test_height_cap_follows_world_height():
    hm = HeightmapGenerator(noise.SeededNoiseField(12345), world_height=64)
    assert hm.max_height == 54
    xs, zs = np.mgrid[-4000:4000:61, -4000:4000:59]
    assert hm.heights(xs, zs).max() <= 54
    assert HeightmapGenerator(noise.SeededNoiseField(12345)).max_height == config.MAX_SURFACE_HEIGHT


def test_height_independent_of_biome():
    seed = 2718
    pts = _sample(11)
    fresh = HeightmapGenerator(noise.SeededNoiseField(seed))
    before = [fresh.height_at(int(x), int(z)) for x, z in pts]

    field = noise.SeededNoiseField(seed)
    biomes = BiomeClassifier(field)
    hm = HeightmapGenerator(field)
    for x, z in pts:
        biomes.biome_at(int(x), int(z))
    after = [hm.height_at(int(x), int(z)) for x, z in pts]
    assert before == after


def test_depth_below_surface():
    hm = HeightmapGenerator(noise.SeededNoiseField(31))
    h = hm.height_at(10, -20)
    assert hm.depth_below_surface(10, h, -20) == 0
    assert hm.is_above_surface(10, h + 1, -20)
    assert not hm.is_above_surface(10, h, -20)
