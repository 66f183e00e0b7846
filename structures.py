'''
structures.py -- second generation pass that grows trees, bushes and cacti
on committed chunks.

Placement reads the generated terrain through World.base_block and writes
through World.place_block, so a tree near a chunk edge can spill into its
neighbours. Every structure carries a key (chunk coordinate, attempt);
overlapping structures resolve to the lower key in any placement order.
A chunk is placed once its whole 3x3x3 neighbourhood is loaded, and
callers running chunks in parallel must keep those neighbourhoods apart
(see world_loader).
'''

import numpy

import config
import logutil
import presets
from biomes import FOREST, DESERT, SNOW, FIELD, biome_name
from blocks import REGISTRY, AIR
from lsystem import Grammar
from turtle3d import TurtleInterpreter, VoxelSink
from util import spatial_hash, mix_seed, chunk_origin

STRUCTURE_SALT = 0x57C

# Ground cover a structure needs directly beneath its spawn point.
GROUND_COVER = {
    FOREST: ('grass',),
    FIELD: ('grass',),
    DESERT: ('sand',),
    SNOW: ('snow',),
}


class StructureSpawnPoint(object):
    """A column where a structure was grown, plus what it was grown on."""

    __slots__ = ('x', 'y', 'z', 'biome', 'kind', 'ground', 'key', 'placed')

    def __init__(self, x, y, z, biome, kind=None, ground=None, key=()):
        self.x = x
        self.y = y
        self.z = z
        self.biome = biome
        self.kind = kind
        self.ground = ground
        self.key = key
        self.placed = []

    @property
    def position(self):
        return (self.x, self.y, self.z)

    def __repr__(self):
        return f'StructureSpawnPoint({self.kind} at {self.position} in {biome_name(self.biome)})'


class StructurePlacer(object):
    def __init__(self, world, biome_source, seed, registry=None):
        self.world = world
        self.biomes = biome_source
        self.seed = int(seed)
        self.registry = registry if registry is not None else REGISTRY
        self.chunk_size = world.chunk_size
        self.scan_top = int(getattr(config, 'STRUCTURE_SCAN_TOP', 100))
        self.scan_bottom = int(getattr(config, 'STRUCTURE_SCAN_BOTTOM', 10))
        self.clearance = int(getattr(config, 'STRUCTURE_CLEARANCE', 9))
        self.sky_limit = int(getattr(config, 'STRUCTURE_SKY_LIMIT', 120))
        self.cactus_height = tuple(getattr(config, 'CACTUS_HEIGHT', (2, 5)))
        self.bush_chance = float(getattr(config, 'FIELD_BUSH_CHANCE', 0.35))
        self.water = self.registry.first('water')

    def rng(self, chunk_coord):
        i, j, k = chunk_coord
        return numpy.random.default_rng(mix_seed(self.seed, i, j, k, STRUCTURE_SALT))

    def attempts_for_chunk(self, chunk_coord):
        """Attempt count for the biome at the chunk's centre column."""
        ox, oy, oz = chunk_origin(chunk_coord, self.chunk_size)
        half = self.chunk_size // 2
        biome = self.biomes.biome_at(ox + half, oz + half)
        attempts = getattr(config, 'STRUCTURE_ATTEMPTS', {})
        return int(attempts.get(biome_name(biome), getattr(config, 'STRUCTURE_DEFAULT_ATTEMPTS', 3)))

    def has_open_sky(self, x, y, z):
        top = min(y + 1 + self.clearance, self.sky_limit)
        for check_y in range(y + 1, top):
            if self.world.base_block(x, check_y, z) != AIR:
                return False
        return True

    def find_surface(self, x, z, top=None, bottom=None):
        """Highest y with air at y, solid non-water ground at y-1 and open sky above.

        Scans from `top` down to `bottom` (exclusive). Returns None when no
        such voxel exists in range.
        """
        top = self.scan_top if top is None else top
        bottom = self.scan_bottom if bottom is None else bottom
        get = self.world.base_block
        for y in range(top, bottom, -1):
            if get(x, y, z) != AIR:
                continue
            below = get(x, y - 1, z)
            if below == AIR or below == self.water:
                continue
            if self.has_open_sky(x, y, z):
                return y
        return None

    def ground_matches(self, biome, token):
        categories = GROUND_COVER.get(biome, GROUND_COVER[FOREST])
        return any(self.registry.in_category(token, cat) for cat in categories)

    def reach(self, chunk_coord):
        """World box (lo, hi) a chunk's structures may write into: its 3x3x3 neighbourhood."""
        s = self.chunk_size
        ox, oy, oz = chunk_origin(chunk_coord, s)
        return (ox - s, oy - s, oz - s), (ox + 2 * s, oy + 2 * s, oz + 2 * s)

    def _grow(self, grammar, x, y, z, trunk_token, leaves_token, rng, key=()):
        symbols = grammar.generate(rng)
        step = grammar.option('step', 1.0) * grammar.option('scale', 1.0)
        bounds = self.reach(key[:3]) if key else None
        sink = VoxelSink(self.world, trunk_token, leaves_token, rng=rng, key=key, bounds=bounds)
        turtle = TurtleInterpreter(sink, angle=grammar.option('angle', config.TURTLE_DEFAULT_ANGLE),
            step=step, origin=(x, y, z))
        turtle.interpret(symbols)
        return sink.placed

    def place_cactus(self, point, rng):
        lo, hi = self.cactus_height
        height = int(rng.integers(lo, hi + 1))
        token = self.registry.variant_of('cactus', spatial_hash(point.x, point.y, point.z))
        point.kind = 'cactus'
        return self._grow(Grammar('F' * height, name='cactus_column', angle=90),
            point.x, point.y, point.z, token, None, rng, point.key)

    def place_tree(self, point, rng):
        x, y, z = point.position
        tag = 'SNOW' if point.biome == SNOW else 'FOREST'
        # prime order differs from spatial_hash: x, z, y
        grammar = presets.random_tree_lsystem(spatial_hash(x, z, y), tag)
        h = spatial_hash(x, y, z)
        trunk = self.registry.variant_of(grammar.option('wood_type', 'oak_wood'), h)
        leaves = self.registry.variant_of(grammar.option('leaf_type', 'leaves'), h)
        point.kind = grammar.name
        return self._grow(grammar, x, y, z, trunk, leaves, rng, point.key)

    def place_bush(self, point, rng):
        x, y, z = point.position
        h = spatial_hash(x, y, z)
        grammar = presets.get_preset('bush')
        point.kind = 'bush'
        return self._grow(grammar, x, y, z,
            self.registry.variant_of('oak_wood', h), self.registry.variant_of('leaves', h), rng, point.key)

    def place_structure(self, point, rng):
        """Grow the biome's structure at `point`. Returns False when skipped."""
        if not self.ground_matches(point.biome, point.ground):
            return False
        if point.biome == DESERT:
            point.placed = self.place_cactus(point, rng)
        elif point.biome in (FOREST, SNOW):
            point.placed = self.place_tree(point, rng)
        elif point.biome == FIELD:
            if rng.random() >= self.bush_chance:
                return False
            point.placed = self.place_bush(point, rng)
        else:
            return False
        return True

    def place_structures_in_chunk(self, chunk_coord):
        """Run the chunk's placement attempts. Returns the spawn points that grew something."""
        chunk_coord = tuple(chunk_coord)
        size = self.chunk_size
        ox, oy, oz = chunk_origin(chunk_coord, size)
        # only surfaces inside this chunk's own y range
        top = min(self.scan_top, oy + size - 1)
        bottom = max(self.scan_bottom, oy - 1)
        if top <= bottom:
            return []
        rng = self.rng(chunk_coord)
        spawned = []
        for attempt in range(self.attempts_for_chunk(chunk_coord)):
            x = ox + int(rng.integers(size))
            z = oz + int(rng.integers(size))
            y = self.find_surface(x, z, top, bottom)
            if y is None:
                continue
            point = StructureSpawnPoint(x, y, z, self.biomes.biome_at(x, z),
                ground=self.world.base_block(x, y - 1, z), key=chunk_coord + (attempt,))
            if self.place_structure(point, rng):
                spawned.append(point)
        if spawned:
            logutil.log('STRUCTURES', f'chunk {chunk_coord}: {len(spawned)} structures '
                f'({sum(len(p.placed) for p in spawned)} blocks)', level='DEBUG')
        return spawned
