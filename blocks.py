import numpy

import config
from util import variant_index


class Block(object):
    name = None
    # Number of cosmetic sub-variants; config.BLOCK_VARIANTS overrides it per name.
    variants = 1
    solid = True
    liquid = False
    # Ore veins may only replace stone-like or dirt-like tokens.
    stone_like = False
    dirt_like = False

class Bedrock(Block):
    name = 'bedrock'

class Water(Block):
    name = 'water'
    solid = False
    liquid = True

class Stone(Block):
    name = 'stone'
    variants = 16
    stone_like = True

class Dirt(Block):
    name = 'dirt'
    variants = 8
    dirt_like = True

class Grass(Block):
    name = 'grass'
    variants = 8

class Sand(Block):
    name = 'sand'
    variants = 8

class Sandstone(Block):
    name = 'sandstone'
    variants = 4

class Snow(Block):
    name = 'snow'
    variants = 4

class CoalOre(Block):
    name = 'coal_ore'
    variants = 4

class IronOre(Block):
    name = 'iron_ore'
    variants = 4

class GoldOre(Block):
    name = 'gold_ore'
    variants = 4

class DiamondOre(Block):
    name = 'diamond_ore'
    variants = 4

class OakWood(Block):
    name = 'oak_wood'
    variants = 4

class PineWood(Block):
    name = 'pine_wood'
    variants = 4

class Leaves(Block):
    name = 'leaves'
    variants = 4

class PineLeaves(Block):
    name = 'pine_leaves'
    variants = 4

class Cactus(Block):
    name = 'cactus'
    variants = 2


BLOCKS = [
    Bedrock,
    Water,
    Stone,
    Dirt,
    Grass,
    Sand,
    Sandstone,
    Snow,
    CoalOre,
    IronOre,
    GoldOre,
    DiamondOre,
    OakWood,
    PineWood,
    Leaves,
    PineLeaves,
    Cactus,
]

AIR = 0


class BlockRegistry(object):
    """Token table shared read-only by every generator thread.

    Token 0 is air. Each block category owns a contiguous run of tokens,
    one per cosmetic variant. Predicates accept a single token or a numpy
    array of tokens.
    """

    def __init__(self, blocks=BLOCKS, variants=None):
        if variants is None:
            variants = getattr(config, 'BLOCK_VARIANTS', {})
        self.block_id = {'air': AIR}
        self.categories = {'air': numpy.array([AIR], dtype='u2')}
        self.category_names = ['air']
        index = [0]
        token = 1
        for cls in blocks:
            count = max(1, int(variants.get(cls.name, cls.variants)))
            ids = numpy.arange(token, token + count, dtype='u2')
            self.categories[cls.name] = ids
            self.category_names.append(cls.name)
            for v, t in enumerate(ids):
                self.block_id[f'{cls.name}_{v}'] = int(t)
            self.block_id[cls.name] = int(ids[0])
            index.extend([len(self.category_names) - 1] * count)
            token += count
        self.size = token
        self.category_index = numpy.array(index, dtype=numpy.int16)

        def table(attr):
            flags = numpy.zeros(self.size, dtype=bool)
            for cls in blocks:
                if getattr(cls, attr):
                    flags[self.categories[cls.name]] = True
            return flags

        self.SOLID = table('solid')
        self.LIQUID = table('liquid')
        self.STONE_LIKE = table('stone_like')
        self.DIRT_LIKE = table('dirt_like')
        self.BEDROCK = numpy.zeros(self.size, dtype=bool)
        self.BEDROCK[self.categories['bedrock']] = True

    def _lookup(self, flags, token):
        if numpy.ndim(token) == 0:
            token = int(token)
            return 0 <= token < self.size and bool(flags[token])
        return flags[numpy.asarray(token)]

    def is_air(self, token):
        if numpy.ndim(token) == 0:
            return int(token) == AIR
        return numpy.asarray(token) == AIR

    def is_water(self, token):
        return self._lookup(self.LIQUID, token)

    def is_bedrock(self, token):
        return self._lookup(self.BEDROCK, token)

    def is_stone_like(self, token):
        return self._lookup(self.STONE_LIKE, token)

    def is_dirt_like(self, token):
        return self._lookup(self.DIRT_LIKE, token)

    def is_solid(self, token):
        return self._lookup(self.SOLID, token)

    def tokens(self, category):
        return self.categories[category]

    def first(self, category):
        return int(self.categories[category][0])

    def category_of(self, token):
        token = int(token)
        if not 0 <= token < self.size:
            return None
        return self.category_names[self.category_index[token]]

    def in_category(self, token, category):
        ids = self.categories[category]
        if numpy.ndim(token) == 0:
            return int(ids[0]) <= int(token) <= int(ids[-1])
        token = numpy.asarray(token)
        return (token >= ids[0]) & (token <= ids[-1])

    def variant_of(self, category, h):
        """Pick one of the category's variants from a spatial hash."""
        ids = self.categories[category]
        idx = variant_index(h, len(ids))
        if numpy.ndim(idx) == 0:
            return int(ids[idx])
        return ids[idx]


REGISTRY = BlockRegistry()
BLOCK_ID = REGISTRY.block_id
