import os
import sys

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import config
import logutil
import mapgen
from blocks import AIR
from entity import BaseEntity
from plants import PlantSpawner, FlowerRandomizer
from world import World
from world_loader import WorldLoader

SIZE = 16


def test_world_accessors():
    world = World(SIZE)
    assert world.get_block(3, 4, 5) == AIR
    assert world.set_block(9, 3, 4, 5) is False
    buf = world.request_fill((-1, 0, 0))
    assert buf.shape == (SIZE, SIZE, SIZE) and buf.dtype == np.dtype('u2')
    world.commit((-1, 0, 0), buf)
    assert world.is_loaded((-1, 0, 0))
    assert world.set_block(9, -1, 4, 5) is True
    assert world.get_block(-1, 4, 5) == 9
    assert world.chunk((-1, 0, 0))[SIZE - 1, 4, 5] == 9
    snap = world.snapshot()
    snap[(-1, 0, 0)][:] = 0
    assert world.get_block(-1, 4, 5) == 9
    world.unload((-1, 0, 0))
    assert world.get_block(-1, 4, 5) == AIR


def test_world_entities():
    world = World(SIZE)
    a = world.add_entity(BaseEntity(world, (1, 2, 3)))
    b = world.add_entity(BaseEntity(world, (4, 5, 6)))
    assert a != b
    assert world.entities[a].id == a
    assert world.delete_entity(a)
    assert not world.delete_entity(a)
    assert list(world.entities) == [b]


def test_structure_writes_prefer_lower_key():
    for order in ([(1, 0, 0, 3), (0, 5, 1, 0)], [(0, 5, 1, 0), (1, 0, 0, 3)]):
        world = World(SIZE)
        world.commit((0, 0, 0), world.request_fill((0, 0, 0)))
        world.set_block(4, 1, 1, 1)
        for key in order:
            token = 10 + key[0]
            assert not world.place_block(token, 1, 1, 1, key)
            world.place_block(token, 2, 2, 2, key)
        assert world.get_block(1, 1, 1) == 4
        assert world.get_block(2, 2, 2) == 10
        assert world.owners[(2, 2, 2)] == (0, 5, 1, 0)
        assert world.base_block(2, 2, 2) == AIR
        assert world.place_block(12, 2, 2, 2, (0, 5, 1, 0))
        assert not world.place_block(9, 40, 2, 2, ())


def test_loader_matches_generator_before_structures():
    loader = WorldLoader(seed=31337, chunk_size=SIZE, spawners=[])
    coords = [(0, 0, 0), (1, 2, -1), (-2, 3, 4)]
    loader.fill_chunks(coords)
    gen = mapgen.ChunkGenerator(seed=31337, chunk_size=SIZE)
    for c in coords:
        assert np.array_equal(loader.world.chunk(c), gen.generate(c))
    assert loader.stats['chunks'] == 3
    assert loader.stats['errors'] == 0


def test_fill_error_commits_partial_buffer(monkeypatch):
    loader = WorldLoader(seed=5, chunk_size=SIZE, spawners=[])
    original = loader.generator.populate

    def populate(chunk_coord, blocks, stages=mapgen.STAGES):
        if tuple(chunk_coord) == (1, 0, 0):
            blocks[0, 0, 0] = loader.generator.bedrock
            raise RuntimeError('boom')
        return original(chunk_coord, blocks, stages)

    monkeypatch.setattr(loader.generator, 'populate', populate)
    loaded = loader.load_chunks([(0, 0, 0), (1, 0, 0)])
    assert loaded == [(0, 0, 0), (1, 0, 0)]
    assert loader.world.is_loaded((1, 0, 0))
    assert loader.world.get_block(SIZE, 0, 0) == loader.generator.bedrock
    assert loader.stats['errors'] == 1
    assert loader.stats['chunks'] == 2


def _region_loader(world_size=32, seed=2024, density=0.2):
    world = World(world_size)
    spawners = [PlantSpawner(world, FlowerRandomizer(seed), density, ('grass', 'sand', 'snow'))]
    return WorldLoader(seed=seed, world=world, spawners=spawners)


def test_load_region_and_unload():
    loader = _region_loader()
    coords = loader.load_region(1)
    assert len(coords) == 9 * (config.WORLD_HEIGHT // 32)
    assert all(loader.world.is_loaded(c) for c in coords)
    # already loaded chunks are skipped
    assert loader.load_region(1) == []
    # only the centre column has a fully loaded neighbourhood
    assert loader.placed == set(loader.region_coords(0))
    assert loader.pending == set(coords) - loader.placed
    assert loader.decorated == set()
    loader.load_region(2)
    assert loader.decorated == set(loader.region_coords(0))
    plants = sum(s.count for s in loader.spawners)
    assert plants == len(loader.world.entities)
    assert plants > 0
    loader.unload_chunks(loader.region_coords(2))
    assert loader.world.entities == {}
    assert loader.world.chunks == {}
    assert loader.world.owners == {}
    assert loader.structures() == []
    assert not (loader.pending or loader.placed or loader.decorated)


def _entity_positions(world):
    return sorted(tuple(e.position.tolist()) for e in world.entities.values())


def test_incremental_loading_matches_one_shot():
    whole = _region_loader(seed=12345, density=0.05)
    whole.load_region(2)
    steps = _region_loader(seed=12345, density=0.05)
    for radius in (0, 1, 2):
        steps.load_region(radius)
    assert len(whole.structures()) > 0
    assert steps.placed == whole.placed == set(whole.region_coords(1))
    assert steps.decorated == whole.decorated
    assert [p.position for p in steps.structures()] == [p.position for p in whole.structures()]
    a = whole.world.snapshot()
    b = steps.world.snapshot()
    assert sorted(a) == sorted(b)
    for c in a:
        assert np.array_equal(a[c], b[c]), c
    assert _entity_positions(whole.world) == _entity_positions(steps.world)


def test_reloading_a_chunk_restores_it():
    loader = _region_loader(seed=777, density=0.0)
    loader.load_region(2)
    before = loader.world.snapshot()
    ring = [c for c in loader.region_coords(0, center=(1, 0))]
    loader.unload_chunks(ring)
    assert (0, 0, 0) in loader.pending
    loader.load_region(2)
    after = loader.world.snapshot()
    assert sorted(before) == sorted(after)
    for c in before:
        assert np.array_equal(before[c], after[c]), c


def test_region_coords():
    loader = WorldLoader(seed=1, chunk_size=SIZE, spawners=[])
    coords = loader.region_coords(1, vertical=[0, 1], center=(4, -2))
    assert len(coords) == 18
    assert (3, 0, -3) in coords and (5, 1, -1) in coords


def test_log_filtering(monkeypatch, capsys):
    monkeypatch.setattr(config, "LOG_COLOR", False)
    monkeypatch.setattr(config, "LOG_LEVEL", "INFO")
    monkeypatch.setattr(config, "LOG_SCOPES", ["MAPGEN"])
    assert logutil.enabled("MAPGEN", "INFO")
    assert not logutil.enabled("MAPGEN", "DEBUG")
    assert not logutil.enabled("PLANTS", "INFO")
    assert logutil.enabled("PLANTS", "ERROR")
    logutil.log("PLANTS", "hidden")
    logutil.log("MAPGEN", "shown")
    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "MAPGEN] shown" in out
