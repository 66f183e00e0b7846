import os
import sys

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import config
from blocks import REGISTRY, BLOCK_ID, AIR
from util import spatial_hash, variant_index, column_hash, hash_float, round_half_up


def test_predicates():
    stone = REGISTRY.first('stone')
    dirt = REGISTRY.tokens('dirt')[3]
    water = BLOCK_ID['water']
    bedrock = BLOCK_ID['bedrock']
    assert REGISTRY.is_air(AIR) and not REGISTRY.is_air(stone)
    assert REGISTRY.is_water(water) and not REGISTRY.is_water(stone)
    assert REGISTRY.is_bedrock(bedrock)
    assert REGISTRY.is_stone_like(stone) and not REGISTRY.is_stone_like(dirt)
    assert REGISTRY.is_dirt_like(dirt)
    assert not REGISTRY.is_solid(water) and REGISTRY.is_solid(bedrock)
    arr = np.array([AIR, stone, dirt, water, bedrock])
    assert REGISTRY.is_stone_like(arr).tolist() == [False, True, False, False, False]
    assert REGISTRY.is_air(arr).tolist() == [True, False, False, False, False]
    # tokens past the table are never stone
    assert not REGISTRY.is_stone_like(REGISTRY.size + 5)


def test_variants():
    assert len(REGISTRY.tokens('stone')) == config.BLOCK_VARIANTS['stone']
    assert BLOCK_ID['stone_3'] == REGISTRY.tokens('stone')[3]
    h = spatial_hash(10, -4, 7)
    token = REGISTRY.variant_of('grass', h)
    assert token == REGISTRY.tokens('grass')[variant_index(h, len(REGISTRY.tokens('grass')))]
    assert REGISTRY.category_of(token) == 'grass'
    assert REGISTRY.in_category(token, 'grass')
    assert REGISTRY.category_of(AIR) == 'air'
    assert REGISTRY.category_of(REGISTRY.size) is None
    hs = spatial_hash(np.arange(-50, 50), 3, np.arange(100))
    tokens = REGISTRY.variant_of('sand', hs)
    assert REGISTRY.in_category(tokens, 'sand').all()
    assert tokens[7] == REGISTRY.variant_of('sand', int(hs[7]))


def test_spatial_hash_scalar_matches_array():
    rng = np.random.RandomState(12)
    pts = rng.randint(-10**6, 10**6, size=(100, 3))
    batch = spatial_hash(pts[:, 0], pts[:, 1], pts[:, 2])
    for (x, y, z), h in zip(pts, batch):
        assert spatial_hash(int(x), int(y), int(z)) == int(h)
        assert -2**31 <= h < 2**31


def test_hash_helpers():
    assert 0 <= column_hash(-5, 9) < 2**32
    assert column_hash(-5, 9) == column_hash(-5, 9)
    values = [hash_float(i) for i in range(1000)]
    assert min(values) >= 0.0 and max(values) < 1.0
    assert round_half_up(2.5) == 3 and round_half_up(-2.5) == -2
    assert round_half_up(np.array([0.5, 1.4])).tolist() == [1, 1]
