'''
plants.py -- decorative flowers and cacti spawned as mesh entities.

Presence and every visual parameter of a plant are pure functions of its
column and the world seed, so a column shows the same plant every time its
chunk is loaded.
'''

import math

import numpy

import config
import logutil
import presets
from blocks import REGISTRY, AIR
from entity import PlantEntity
from turtle3d import TurtleInterpreter, GeometrySink
from util import column_hash, hash_float, hsl_to_rgb, mix_seed, chunk_origin

FLOWER = 'flower'
CACTUS = 'cactus'

FLOWER_HUES = [0, 30, 45, 280, 320, 340, 200, 60]


class PlantInstance(object):
    """Parameters for one decorative plant: preset, dimensions, colours, scale, yaw."""

    def __init__(self, kind, preset, params, scale, rotation, seed):
        self.kind = kind
        self.preset = preset
        self.params = params
        self.scale = scale
        self.rotation = rotation
        self.seed = seed

    def __eq__(self, other):
        return (isinstance(other, PlantInstance)
                and self.kind == other.kind
                and self.preset == other.preset
                and self.params == other.params
                and self.scale == other.scale
                and self.rotation == other.rotation
                and self.seed == other.seed)

    def __ne__(self, other):
        return not self.__eq__(other)

    def __repr__(self):
        return f'PlantInstance({self.kind}, {self.preset!r}, scale={self.scale:.2f})'


class PlantRandomizer(object):
    kind = None
    salt = 0

    def __init__(self, world_seed=None):
        self.world_seed = int(config.WORLD_SEED if world_seed is None else world_seed)
        self.spawn_multiplier = int(getattr(config, 'PLANT_SEED_MULTIPLIER', 31))

    def should_spawn(self, x, z, density):
        """Deterministic presence test; never true at density 0, always true at 1."""
        if density <= 0:
            return False
        seed = column_hash(x, z) ^ (self.world_seed * self.spawn_multiplier)
        return hash_float(seed) < density

    def rng(self, x, z):
        return numpy.random.default_rng(mix_seed(column_hash(x, z) ^ self.world_seed, self.salt))

    def local_seed(self, x, z):
        return mix_seed(column_hash(x, z) ^ self.world_seed, self.salt, 1)

    def generate_params(self, x, z):
        raise NotImplementedError


class FlowerRandomizer(PlantRandomizer):
    kind = FLOWER
    salt = 0xF10

    def generate_params(self, x, z):
        rng = self.rng(x, z)
        names = presets.FLOWER_PRESETS
        preset = names[int(rng.random() * len(names))]

        petal_hue = FLOWER_HUES[int(rng.random() * len(FLOWER_HUES))] + (rng.random() - 0.5) * 20
        petal_color = hsl_to_rgb(petal_hue, 0.7 + rng.random() * 0.3, 0.55 + rng.random() * 0.2)
        center_color = hsl_to_rgb(40 + rng.random() * 20, 0.9, 0.5 + rng.random() * 0.2)
        stem_color = hsl_to_rgb(100 + rng.random() * 30, 0.5 + rng.random() * 0.3, 0.3 + rng.random() * 0.15)

        params = {
            'angle': 40 + rng.random() * 20,
            'pitch_angle': 20 + rng.random() * 30,
            'stem_length': 0.06 + rng.random() * 0.08,
            'stem_width': 0.008 + rng.random() * 0.008,
            'petal_length': 0.08 + rng.random() * 0.06,
            'petal_width': 0.05 + rng.random() * 0.04,
            'petal_curvature': rng.random() * 0.2,
            'center_radius': 0.03 + rng.random() * 0.03,
            'petal_color': petal_color,
            'center_color': center_color,
            'stem_color': stem_color,
        }
        scale = 1.5 + rng.random() * 0.8
        rotation = rng.random() * math.pi * 2
        return PlantInstance(self.kind, preset, params, scale, rotation, self.local_seed(x, z))


class CactusRandomizer(PlantRandomizer):
    kind = CACTUS
    salt = 0xCAC

    def generate_params(self, x, z):
        rng = self.rng(x, z)
        names = presets.CACTUS_PRESETS
        preset = names[int(rng.random() * len(names))]

        hue = 100 + rng.random() * 40
        saturation = 0.4 + rng.random() * 0.3
        lightness = 0.25 + rng.random() * 0.15
        params = {
            'angle': 90.0,
            'pitch_angle': 0.0,
            'segment_height': 0.3 + rng.random() * 0.2,
            'segment_width': 0.15 + rng.random() * 0.1,
            'cactus_color': hsl_to_rgb(hue, saturation, lightness),
            'rib_color': hsl_to_rgb(hue + 10, saturation - 0.1, lightness + 0.1),
        }
        scale = 0.8 + rng.random() * 0.5
        rotation = rng.random() * math.pi * 2
        return PlantInstance(self.kind, preset, params, scale, rotation, self.local_seed(x, z))


def build_plant_mesh(instance):
    """Expand the instance's grammar and draw it into a standalone mesh."""
    grammar = presets.get_preset(instance.preset)
    params = instance.params
    symbols = grammar.generate(numpy.random.default_rng(instance.seed))
    if instance.kind == CACTUS:
        sink = GeometrySink(params, style='box')
        step = params['segment_height']
    else:
        sink = GeometrySink(params, style='cross')
        step = params['stem_length']
    turtle = TurtleInterpreter(sink, angle=params['angle'],
        pitch_angle=params['pitch_angle'] or None, step=step)
    turtle.interpret(symbols)
    return sink.mesh().transformed(instance.scale, instance.rotation)


class PlantSpawner(object):
    """Spawns one kind of decorative plant on committed chunks and removes them on unload."""

    def __init__(self, world, randomizer, density, ground_categories, enabled=True, registry=None):
        self.world = world
        self.randomizer = randomizer
        self.kind = randomizer.kind
        self.density = max(0.0, min(1.0, float(density)))
        self.ground_categories = tuple(ground_categories)
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY
        self.by_chunk = {}

    def set_enabled(self, enabled):
        self.enabled = bool(enabled)

    def set_density(self, density):
        self.density = max(0.0, min(1.0, float(density)))

    def _is_ground(self, token):
        return any(self.registry.in_category(token, cat) for cat in self.ground_categories)

    def find_positions(self, chunk_coord):
        """Spawn cells (one above the ground block) in the chunk's columns that pass the density test."""
        buf = self.world.chunk(chunk_coord)
        if buf is None:
            return []
        size = buf.shape[0]
        ox, oy, oz = chunk_origin(chunk_coord, size)
        positions = []
        for lx in range(size):
            for lz in range(size):
                x, z = ox + lx, oz + lz
                if not self.randomizer.should_spawn(x, z, self.density):
                    continue
                for ly in range(size - 2, -1, -1):
                    token = buf[lx, ly, lz]
                    if self._is_ground(token) and buf[lx, ly + 1, lz] == AIR:
                        positions.append((x, oy + ly + 1, z))
                        break
                    if token != AIR:
                        break
        return positions

    def spawn(self, x, y, z):
        instance = self.randomizer.generate_params(x, z)
        mesh = build_plant_mesh(instance)
        entity = PlantEntity(self.world, (x + 0.5, y, z + 0.5), instance, mesh)
        return self.world.add_entity(entity)

    def on_chunk_added(self, chunk_coord):
        if not self.enabled:
            return []
        chunk_coord = tuple(chunk_coord)
        ids = []
        for x, y, z in self.find_positions(chunk_coord):
            ids.append(self.spawn(x, y, z))
        if ids:
            self.by_chunk[chunk_coord] = ids
            logutil.log('PLANTS', f'chunk {chunk_coord}: {len(ids)} {self.kind} entities', level='DEBUG')
        return ids

    def on_chunk_removed(self, chunk_coord):
        ids = self.by_chunk.pop(tuple(chunk_coord), [])
        for entity_id in ids:
            self.world.delete_entity(entity_id)
        return len(ids)

    def clear_all(self):
        for chunk_coord in list(self.by_chunk):
            self.on_chunk_removed(chunk_coord)

    @property
    def count(self):
        return sum(len(ids) for ids in self.by_chunk.values())


def make_spawners(world, seed=None):
    """Flower spawner on grass and cactus spawner on sand, configured from config."""
    return [
        PlantSpawner(world, FlowerRandomizer(seed), getattr(config, 'FLOWER_DENSITY', 0.03), ('grass',),
            enabled=getattr(config, 'ENABLE_FLOWERS', True)),
        PlantSpawner(world, CactusRandomizer(seed), getattr(config, 'CACTUS_DENSITY', 0.015), ('sand',),
            enabled=getattr(config, 'ENABLE_CACTI', True)),
    ]
