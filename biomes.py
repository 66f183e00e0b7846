import numpy

import config
import noise

FOREST = 0
DESERT = 1
SNOW = 2
FIELD = 3

BIOME_NAMES = {
    FOREST: 'forest',
    DESERT: 'desert',
    SNOW: 'snow',
    FIELD: 'field',
}

# Ascending noise bands separated by config.BIOME_THRESHOLDS.
BANDS = numpy.array([DESERT, FIELD, FOREST, SNOW], dtype=numpy.int8)


def biome_name(biome):
    return BIOME_NAMES.get(int(biome), BIOME_NAMES[FOREST])


class BiomeClassifier(object):
    """Hard-edged biome bands from one low frequency noise channel."""

    def __init__(self, field, thresholds=None):
        if not isinstance(field, noise.SeededNoiseField):
            field = noise.SeededNoiseField(field)
        self.field = field
        self.thresholds = numpy.array(thresholds if thresholds is not None
            else getattr(config, 'BIOME_THRESHOLDS', (-0.5, 0.0, 0.5)), dtype=numpy.float64)
        assert len(self.thresholds) == len(BANDS) - 1

    def classify(self, values):
        # side='right' puts a value equal to a threshold in the upper band
        idx = numpy.searchsorted(self.thresholds, numpy.asarray(values), side='right')
        return BANDS[idx]

    def biome_at(self, x, z):
        return int(self.classify(self.field.biome_value(x, z)))

    def chunk_biomes(self, x0, z0, size):
        xs, zs = numpy.mgrid[x0:x0 + size, z0:z0 + size]
        return self.classify(self.field.biome_value(xs, zs))

    def biome_name(self, x, z):
        return biome_name(self.biome_at(x, z))

    def biome_weights(self, x, z):
        # Hard edges: a column always belongs to exactly one biome.
        return {self.biome_at(x, z): 1.0}

    def dominant_biome(self, x, z):
        weights = self.biome_weights(x, z)
        return max(weights, key=weights.get)

    def biome_params(self, x, z):
        return config.BIOME_NOISE[self.biome_name(x, z)]

    def is_on_region_border(self, x, z, threshold=2):
        """True when a column `threshold` blocks away along x or z lies in another band."""
        xs = numpy.array([x - threshold, x + threshold, x, x])
        zs = numpy.array([z, z, z - threshold, z + threshold])
        return bool((self.classify(self.field.biome_value(xs, zs)) != self.biome_at(x, z)).any())


def simple_hash(x, z, seed):
    h = (int(seed) ^ int(x) ^ int(z)) & 0xFFFFFFFF
    h = ((h ^ (h >> 16)) * 0x85ebca6b) & 0xFFFFFFFF
    h = ((h ^ (h >> 13)) * 0xc2b2ae35) & 0xFFFFFFFF
    return (h ^ (h >> 16)) & 0xFFFFFFFF


def shuffle4(seed):
    """Seeded Fisher-Yates permutation of the four biome ids."""
    arr = [FOREST, DESERT, SNOW, FIELD]
    s = int(seed)
    for i in range(3, 0, -1):
        s = (s * 1103515245 + 12345) & 0x7fffffff
        j = s % (i + 1)
        arr[i], arr[j] = arr[j], arr[i]
    return arr


class RegionBiomeLayout(object):
    """Square biome regions arranged in 2x2 meta-regions.

    Each meta-region holds a seeded shuffle of all four biomes, so the four
    regions inside one meta-region always carry four different biomes.
    Regions that touch across a meta-region edge may share a biome.
    """

    def __init__(self, seed, region_size=None):
        self.seed = int(seed)
        self.region_size = int(region_size or getattr(config, 'BIOME_REGION_SIZE', 512))
        self._cache = {}

    def region_coords(self, x, z):
        return (int(x) // self.region_size, int(z) // self.region_size)

    def meta_order(self, meta_x, meta_z):
        return shuffle4(simple_hash(meta_x, meta_z, self.seed))

    def region_biome(self, region_x, region_z):
        key = (region_x, region_z)
        biome = self._cache.get(key)
        if biome is None:
            order = self.meta_order(region_x // 2, region_z // 2)
            position = (region_z % 2) * 2 + (region_x % 2)
            biome = self._cache[key] = order[position]
        return biome

    def biome_at(self, x, z):
        return self.region_biome(*self.region_coords(x, z))

    def chunk_biomes(self, x0, z0, size):
        xs, zs = numpy.mgrid[x0:x0 + size, z0:z0 + size]
        rx = xs // self.region_size
        rz = zs // self.region_size
        out = numpy.empty(xs.shape, dtype=numpy.int8)
        for a, b in set(zip(rx.ravel().tolist(), rz.ravel().tolist())):
            out[(rx == a) & (rz == b)] = self.region_biome(a, b)
        return out

    def biome_name(self, x, z):
        return biome_name(self.biome_at(x, z))

    def biome_weights(self, x, z):
        return {self.biome_at(x, z): 1.0}

    def dominant_biome(self, x, z):
        return self.biome_at(x, z)

    def is_on_region_border(self, x, z, threshold=2):
        lx = int(x) % self.region_size
        lz = int(z) % self.region_size
        return min(lx, self.region_size - lx, lz, self.region_size - lz) < threshold


def make_biome_source(seed, field=None):
    """Biome source selected by config.BIOME_SCHEME ('noise' or 'regions')."""
    scheme = getattr(config, 'BIOME_SCHEME', 'noise')
    if scheme == 'regions':
        return RegionBiomeLayout(seed)
    return BiomeClassifier(field if field is not None else noise.SeededNoiseField(seed))
