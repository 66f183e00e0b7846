import math
import os
import sys

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import presets
from blocks import REGISTRY
from plants import (FlowerRandomizer, CactusRandomizer, PlantSpawner, build_plant_mesh,
    make_spawners, FLOWER, CACTUS)
from world import World

SEED = 12345


def _columns(n, seed=0, span=100000):
    rng = np.random.RandomState(seed)
    return [(int(x), int(z)) for x, z in rng.randint(-span, span, size=(n, 2))]


def test_density_boundaries():
    flowers = FlowerRandomizer(SEED)
    cacti = CactusRandomizer(-77)
    for x, z in _columns(2000, seed=1):
        assert not flowers.should_spawn(x, z, 0.0)
        assert flowers.should_spawn(x, z, 1.0)
        assert not cacti.should_spawn(x, z, 0.0)
        assert cacti.should_spawn(x, z, 1.0)


def test_density_convergence():
    r = FlowerRandomizer(SEED)
    cols = _columns(20000, seed=2)
    for density in (0.03, 0.3, 0.7):
        freq = sum(r.should_spawn(x, z, density) for x, z in cols) / float(len(cols))
        assert abs(freq - density) < 0.02


def test_should_spawn_is_deterministic():
    a = FlowerRandomizer(SEED)
    b = FlowerRandomizer(SEED)
    for x, z in _columns(500, seed=3):
        assert a.should_spawn(x, z, 0.4) == b.should_spawn(x, z, 0.4)


def test_flower_params():
    r = FlowerRandomizer(SEED)
    for x, z in _columns(200, seed=4):
        inst = r.generate_params(x, z)
        assert inst == FlowerRandomizer(SEED).generate_params(x, z)
        assert inst.kind == FLOWER
        assert inst.preset in presets.FLOWER_PRESETS
        assert 1.5 <= inst.scale <= 2.3
        assert 0.0 <= inst.rotation < 2 * math.pi
        p = inst.params
        assert 40 <= p['angle'] <= 60
        assert 0.06 <= p['stem_length'] <= 0.14
        assert 0.03 <= p['center_radius'] <= 0.06
        for key in ('petal_color', 'center_color', 'stem_color'):
            assert all(0.0 <= c <= 1.0 for c in p[key])


def test_cactus_params():
    r = CactusRandomizer(SEED)
    for x, z in _columns(200, seed=5):
        inst = r.generate_params(x, z)
        assert inst.kind == CACTUS
        assert inst.preset in presets.CACTUS_PRESETS
        assert 0.8 <= inst.scale <= 1.3
        assert 0.3 <= inst.params['segment_height'] <= 0.5
        green = inst.params['cactus_color']
        assert green[1] >= green[0] and green[1] >= green[2]


def test_params_depend_on_seed():
    cols = _columns(50, seed=6)
    a = [FlowerRandomizer(1).generate_params(x, z) for x, z in cols]
    b = [FlowerRandomizer(2).generate_params(x, z) for x, z in cols]
    assert a != b


def test_plant_mesh():
    inst = FlowerRandomizer(SEED).generate_params(10, 20)
    mesh = build_plant_mesh(inst)
    again = build_plant_mesh(FlowerRandomizer(SEED).generate_params(10, 20))
    assert mesh.vertex_count > 0
    assert np.array_equal(mesh.positions, again.positions)
    payload = mesh.to_payload()
    assert payload['positions'].shape == (3 * mesh.vertex_count,)
    assert payload['indices'].max() < mesh.vertex_count

    cactus = build_plant_mesh(CactusRandomizer(SEED).generate_params(10, 20))
    assert cactus.vertex_count % 8 == 0
    assert cactus.triangle_count == cactus.vertex_count // 8 * 12


def _ground_world(category, size=8, ground_y=4):
    world = World(size)
    buf = world.request_fill((0, 0, 0))
    buf[:, :ground_y, :] = REGISTRY.first('stone')
    buf[:, ground_y, :] = REGISTRY.first(category)
    world.commit((0, 0, 0), buf)
    return world


def test_spawner_lifecycle():
    world = _ground_world('grass')
    spawner = PlantSpawner(world, FlowerRandomizer(SEED), 1.0, ('grass',))
    ids = spawner.on_chunk_added((0, 0, 0))
    assert len(ids) == 64
    assert len(world.entities) == 64
    for entity in world.entities.values():
        x, y, z = entity.position
        assert y == 5.0
        assert x % 1 == 0.5 and z % 1 == 0.5
        data = entity.to_network_dict()
        assert data['type'] == FLOWER
        assert data['mesh']['positions'].size > 0
    assert spawner.count == 64
    assert spawner.on_chunk_removed((0, 0, 0)) == 64
    assert world.entities == {}
    assert spawner.on_chunk_removed((0, 0, 0)) == 0


def test_spawner_wrong_ground_and_controls():
    world = _ground_world('sand')
    flowers = PlantSpawner(world, FlowerRandomizer(SEED), 1.0, ('grass',))
    assert flowers.on_chunk_added((0, 0, 0)) == []
    cacti = PlantSpawner(world, CactusRandomizer(SEED), 1.0, ('sand',))
    cacti.set_enabled(False)
    assert cacti.on_chunk_added((0, 0, 0)) == []
    cacti.set_enabled(True)
    cacti.set_density(0.0)
    assert cacti.on_chunk_added((0, 0, 0)) == []
    cacti.set_density(5)
    assert cacti.density == 1.0
    cacti.set_density(-1)
    assert cacti.density == 0.0
    cacti.set_density(1.0)
    assert len(cacti.on_chunk_added((0, 0, 0))) == 64
    cacti.clear_all()
    assert world.entities == {}
    assert cacti.by_chunk == {}


def test_spawner_needs_air_above():
    world = _ground_world('grass')
    buf = world.chunk((0, 0, 0))
    buf[0, 5, 0] = REGISTRY.first('stone')
    spawner = PlantSpawner(world, FlowerRandomizer(SEED), 1.0, ('grass',))
    ids = spawner.on_chunk_added((0, 0, 0))
    assert len(ids) == 63


def test_default_spawners():
    world = World(8)
    kinds = [s.kind for s in make_spawners(world, SEED)]
    assert kinds == [FLOWER, CACTUS]
