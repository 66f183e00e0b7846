#std/external libs
import time
import numpy

#local libs
import config
import noise
import logutil
from blocks import REGISTRY, AIR
from biomes import make_biome_source, BIOME_NAMES, DESERT, SNOW
from heightmap import HeightmapGenerator
from util import spatial_hash, mix_seed, round_half_up, chunk_origin

STAGES = ('terrain', 'caves', 'lakes', 'ores')
ORE_SALT = 0x0E5


class ChunkGenerator:
    """Fills cubic chunk buffers from the world seed.

    Buffers are (size, size, size) arrays indexed [x, y, z] holding block
    tokens. Every voxel is a pure function of its world coordinate and the
    seed; ore veins draw from a generator seeded per chunk, so chunks can be
    filled in any order or in parallel.
    """

    def __init__(self, seed=None, chunk_size=None, world_height=None, registry=None, biome_source=None):
        if seed is None:
            seed = int(time.time())
        self.seed = int(seed)
        self.chunk_size = int(chunk_size or config.CHUNK_SIZE)
        self.world_height = int(world_height or config.WORLD_HEIGHT)
        self.registry = registry if registry is not None else REGISTRY
        self.field = noise.SeededNoiseField(self.seed)
        self.heightmap = HeightmapGenerator(self.field, self.world_height)
        self.biomes = biome_source if biome_source is not None else make_biome_source(self.seed, self.field)
        self.filler_depth = int(getattr(config, 'FILLER_DEPTH', 4))
        self.cave_threshold = float(getattr(config, 'CAVE_THRESHOLD', 0.6))
        self.cave_max_y = int(getattr(config, 'CAVE_MAX_Y', 100))
        self.lake_threshold = float(getattr(config, 'LAKE_THRESHOLD', 0.65))
        self.lake_min_surface = int(getattr(config, 'LAKE_MIN_SURFACE', 40))
        self.lake_max_surface = int(getattr(config, 'LAKE_MAX_SURFACE', 80))
        self.lake_depth_scale = float(getattr(config, 'LAKE_DEPTH_SCALE', 10))
        self.lake_cave_radius = int(getattr(config, 'LAKE_CAVE_CHECK_RADIUS', 8))
        self.lake_cave_depth = int(getattr(config, 'LAKE_CAVE_CHECK_DEPTH', 4))
        by_name = {name: biome for biome, name in BIOME_NAMES.items()}
        self.lake_biomes = [by_name[name] for name in getattr(config, 'LAKE_BIOMES', ('forest', 'field'))]
        self.ore_settings = [dict(s) for s in getattr(config, 'ORE_SETTINGS', [])]
        self.water = self.registry.first('water')
        self.bedrock = self.registry.first('bedrock')
        r = self.lake_cave_radius
        self._lake_offsets = numpy.mgrid[-r:r + 1, -r:r + 1].reshape(2, -1)

    def _world_grid(self, origin):
        ox, oy, oz = origin
        X, Y, Z = numpy.indices((self.chunk_size,) * 3, dtype=numpy.int64)
        return X + ox, Y + oy, Z + oz

    def _fill_terrain(self, blocks, origin, heights, biome):
        """Bedrock at y=0, biome top block at the surface, filler just below, stone under that."""
        X, Y, Z = self._world_grid(origin)
        H = heights[:, None, :]
        B = numpy.broadcast_to(biome[:, None, :], Y.shape)
        h = spatial_hash(X, Y, Z)
        reg = self.registry
        top = numpy.where(B == DESERT, reg.variant_of('sand', h),
              numpy.where(B == SNOW, reg.variant_of('snow', h), reg.variant_of('grass', h)))
        filler = numpy.where(B == DESERT, reg.variant_of('sandstone', h), reg.variant_of('dirt', h))
        stone = reg.variant_of('stone', h)
        out = numpy.select(
            [Y < 0, Y > H, Y == 0, Y == H, Y > H - self.filler_depth],
            [numpy.uint16(AIR), numpy.uint16(AIR), numpy.uint16(self.bedrock), top, filler],
            default=stone)
        blocks[...] = out.astype(blocks.dtype)

    def _carve_caves(self, blocks, origin):
        """Clear voxels where 3D cave noise passes the threshold. Returns voxels cleared."""
        ox, oy, oz = origin
        if oy > self.cave_max_y or oy + self.chunk_size <= 1:
            return 0
        X, Y, Z = self._world_grid(origin)
        candidate = (Y > 0) & (Y <= self.cave_max_y) & (blocks != AIR) & ~self.registry.is_water(blocks)
        if not candidate.any():
            return 0
        values = self.field.cave(X[candidate], Y[candidate], Z[candidate])
        carve = numpy.zeros_like(candidate)
        carve[candidate] = values > self.cave_threshold
        assert not self.registry.is_bedrock(blocks[carve]).any()
        blocks[carve] = AIR
        return int(carve.sum())

    def _cave_near(self, x, z, surface):
        dx, dz = self._lake_offsets
        y = surface - self.lake_cave_depth
        values = self.field.cave(x + dx, numpy.full(dx.shape, y), z + dz)
        return bool((values > self.cave_threshold).any())

    def _carve_lakes(self, blocks, origin, heights, biome):
        """Flood shallow basins in forest/field columns. Returns the number of lake columns."""
        ox, oy, oz = origin
        size = self.chunk_size
        if oy > self.lake_max_surface or oy + size <= 0:
            return 0
        eligible = numpy.isin(biome, self.lake_biomes)
        eligible &= (heights >= self.lake_min_surface) & (heights <= self.lake_max_surface)
        if not eligible.any():
            return 0
        xs, zs = numpy.mgrid[ox:ox + size, oz:oz + size]
        values = numpy.full(heights.shape, -1.0)
        values[eligible] = self.field.lake(xs[eligible], zs[eligible])
        eligible &= values >= self.lake_threshold
        columns = 0
        for lx, lz in zip(*numpy.nonzero(eligible)):
            surface = int(heights[lx, lz])
            n = float(values[lx, lz])
            depth = int(numpy.floor((n - self.lake_threshold) * self.lake_depth_scale)) + 1
            # only columns whose basin reaches into this chunk
            if surface - depth + 1 >= oy + size or surface < oy:
                continue
            if self._cave_near(int(xs[lx, lz]), int(zs[lx, lz]), surface):
                continue
            columns += 1
            for d in range(depth):
                ly = surface - d - oy
                if ly < 0 or ly >= size:
                    continue
                current = blocks[lx, ly, lz]
                if current == AIR or self.registry.is_bedrock(current):
                    continue
                blocks[lx, ly, lz] = self.water
        return columns

    def ore_rng(self, chunk_coord):
        i, j, k = chunk_coord
        return numpy.random.default_rng(mix_seed(self.seed, i, j, k, ORE_SALT))

    def _place_ores(self, blocks, chunk_coord, origin, rng=None):
        """Grow random-walk veins that only replace stone-like or dirt-like voxels."""
        ox, oy, oz = origin
        size = self.chunk_size
        if rng is None:
            rng = self.ore_rng(chunk_coord)
        reg = self.registry
        converted = 0
        for setting in self.ore_settings:
            attempts = round_half_up(setting['attempts'] * setting['spawn_chance'])
            vmin, vmax = setting['vein']
            for _ in range(attempts):
                cx, cy, cz = (int(v) for v in rng.integers(0, size, 3))
                wy = oy + cy
                if wy < 0 or wy < setting['min_y'] or wy > setting['max_y']:
                    continue
                length = int(rng.integers(vmin, vmax + 1))
                for _ in range(length):
                    if 0 <= cx < size and 0 <= cy < size and 0 <= cz < size:
                        current = blocks[cx, cy, cz]
                        if reg.is_stone_like(current) or reg.is_dirt_like(current):
                            assert not (reg.is_bedrock(current) or reg.is_water(current) or current == AIR)
                            blocks[cx, cy, cz] = reg.variant_of(setting['category'],
                                spatial_hash(ox + cx, oy + cy, oz + cz))
                            converted += 1
                    step = int(rng.integers(6))
                    if step == 0:
                        cx += 1
                    elif step == 1:
                        cx -= 1
                    elif step == 2:
                        cy += 1
                    elif step == 3:
                        cy -= 1
                    elif step == 4:
                        cz += 1
                    else:
                        cz -= 1
        return converted

    def populate(self, chunk_coord, blocks, stages=STAGES):
        """Fill `blocks` in place for the chunk at `chunk_coord`. Returns per-stage stats."""
        origin = chunk_origin(chunk_coord, self.chunk_size)
        ox, oy, oz = origin
        stats = {'cave_voxels': 0, 'lake_columns': 0, 'ore_voxels': 0}
        if oy + self.chunk_size <= 0:
            # wholly below the world floor: nothing to generate
            return stats
        heights = self.heightmap.chunk_heightmap(ox, oz, self.chunk_size)
        biome = self.biomes.chunk_biomes(ox, oz, self.chunk_size)
        if 'terrain' in stages:
            self._fill_terrain(blocks, origin, heights, biome)
        if 'caves' in stages:
            stats['cave_voxels'] = self._carve_caves(blocks, origin)
        if 'lakes' in stages:
            stats['lake_columns'] = self._carve_lakes(blocks, origin, heights, biome)
        if 'ores' in stages:
            stats['ore_voxels'] = self._place_ores(blocks, chunk_coord, origin)
        logutil.log('MAPGEN', f'chunk {tuple(chunk_coord)} caves={stats["cave_voxels"]} '
            f'lakes={stats["lake_columns"]} ores={stats["ore_voxels"]}', level='DEBUG')
        return stats

    def new_buffer(self):
        return numpy.zeros((self.chunk_size,) * 3, dtype='u2')

    def generate(self, chunk_coord, buffer=None):
        if buffer is None:
            buffer = self.new_buffer()
        self.populate(chunk_coord, buffer)
        return buffer


generator = None

def initialize_map_generator(seed=None, chunk_size=None):
    global generator
    generator = ChunkGenerator(seed=seed, chunk_size=chunk_size)
    return generator


def generate_chunk(chunk_coord, buffer=None):
    """Generate one chunk with the module generator (created from config.WORLD_SEED on first use)."""
    global generator
    if generator is None:
        initialize_map_generator(config.WORLD_SEED)
    return generator.generate(chunk_coord, buffer)
