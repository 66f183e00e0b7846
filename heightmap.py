import numpy

import config
import noise


class HeightmapGenerator(object):
    """Surface height per (x, z) column, built from noise layers only.

    Biome never feeds into the height. The scalar lookup is a one element
    batch so both forms produce identical values.
    """

    def __init__(self, field, world_height=None):
        if not isinstance(field, noise.SeededNoiseField):
            field = noise.SeededNoiseField(field)
        self.field = field
        self.world_height = world_height if world_height is not None else config.WORLD_HEIGHT
        self.base = self.world_height * getattr(config, 'BASE_HEIGHT_FRACTION', 0.5)
        self.mountain_scale = float(getattr(config, 'MOUNTAIN_SCALE', 40.0))
        self.min_height = getattr(config, 'MIN_SURFACE_HEIGHT', 5)
        self.max_height = min(getattr(config, 'MAX_SURFACE_HEIGHT', self.world_height - 10), self.world_height - 10)

    def heights(self, xs, zs):
        xs = numpy.asarray(xs, dtype=numpy.float64)
        zs = numpy.asarray(zs, dtype=numpy.float64)
        f = self.field
        height = self.base + f.continent(xs, zs)
        height = height + f.mountain_mask(xs, zs) * self.mountain_scale
        height = height + f.terrain(xs, zs)
        height = height + f.erosion(xs, zs)
        height = height + f.detail(xs, zs)
        height = numpy.clip(height, self.min_height, self.max_height)
        return numpy.floor(height).astype(numpy.int64)

    def height_at(self, x, z):
        return int(self.heights(numpy.array([x]), numpy.array([z]))[0])

    def chunk_heightmap(self, x0, z0, size):
        """Heights for a size x size column grid indexed [x][z]."""
        xs, zs = numpy.mgrid[x0:x0 + size, z0:z0 + size]
        return self.heights(xs, zs)

    def is_above_surface(self, x, y, z):
        return y > self.height_at(x, z)

    def depth_below_surface(self, x, y, z):
        """0 at the surface, positive underground, negative in the air."""
        return self.height_at(x, z) - y
