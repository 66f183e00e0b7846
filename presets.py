'''
presets.py -- named grammars for trees, bushes, flowers and cacti.

Every preset is registered through register_preset, which validates it,
so a malformed preset fails at import time instead of drawing nothing.
'''

import logutil
from lsystem import Grammar

PRESETS = {}
FLOWER_PRESETS = []
CACTUS_PRESETS = []


def register_preset(name, axiom, rules=None, iterations=1, group=None, **options):
    """Validate and store a grammar preset. Raises GrammarError for bad grammars."""
    grammar = Grammar(axiom, rules, iterations, name=name, **options)
    PRESETS[name] = grammar
    if group == 'flower':
        FLOWER_PRESETS.append(name)
    elif group == 'cactus':
        CACTUS_PRESETS.append(name)
    return grammar


def get_preset(name, default=None):
    """Preset by name, falling back to `default` (a preset name) when missing."""
    grammar = PRESETS.get(name)
    if grammar is None and default is not None:
        logutil.log('PRESETS', f'unknown preset {name!r}, using {default!r}', level='DEBUG')
        grammar = PRESETS[default]
    return grammar


# Voxel scale vegetation
register_preset('tree_deciduous', 'FFFF',
    {'F': ['F[+FL][-FL]L', 'F[+FL][-FL][FL]L', 'FF[+L][-L]L']},
    iterations=2, angle=30, step=1.0)
register_preset('tree_pine', 'FFFFFFL', {'F': 'F[+L][-L]'}, iterations=1, angle=35, step=0.6)
register_preset('tree_old', 'FFFFF', {'F': 'F[+FL][-FL]'}, iterations=2, angle=25, step=1.0)
register_preset('tree_willow', 'F', {'F': 'FF[&FL][&FL]F[&FL][&FL]F'}, iterations=3, angle=35, step=1.0)
register_preset('bush', 'F', {'F': 'F[+FL][-FL]F[+FL]FL'}, iterations=2, angle=30, step=0.5)
register_preset('grass_simple', 'F', {'F': ['F', 'F[+F]', 'F[-F]']}, iterations=1, angle=20, step=0.5)
register_preset('grass_tall', 'FF', {'F': 'F[+F][-F]'}, iterations=1, angle=20, step=0.6)
register_preset('fern', 'X', {'X': 'F[+X]F[-X]+X', 'F': 'FF'}, iterations=4, angle=25, step=0.5)
register_preset('vine', 'F', {'F': 'F[+F]F[-F][F]'}, iterations=4, angle=20, step=0.4)

# Flowers (geometry sink). A and B are placeholders expanded into petals.
register_preset('daisy', 'FA', {'A': '[+P][++P][+++P][-P][--P][---P][^P][&P]C'}, group='flower')
register_preset('tulip', 'FFA', {'A': '[^+P][^-P][^++P][^--P]'}, group='flower')
register_preset('bellflower', 'FFA', {'A': '&[+P][-P][++P][--P]C'}, group='flower')
register_preset('sunflower', 'FFFA',
    {'A': '[+P][++P][+++P][++++P][-P][--P][---P][----P][^P][^^P][&P][&&P]C'}, group='flower')
register_preset('rose', 'FFA', {'A': '[+^P][++^P][+++^P][-^P][--^P][---^P]C'}, group='flower')
register_preset('lily', 'FFA', {'A': '[+&P][-&P][++&P][--&P][^P][&P]C'}, group='flower')
register_preset('dandelion', 'FFFA', {
    'A': 'B',
    'B': '[+P][++P][+++P][++++P][+++++P][-P][--P][---P][----P][-----P][^P][^^P][^^^P][&P][&&P][&&&P]C',
}, iterations=2, group='flower')
register_preset('orchid', 'FFA', {'A': '[++^P][--^P][+&P][-&P][^^P]C'}, group='flower')

# Cacti (geometry sink, 90 degree turns). Arms leave the trunk sideways
# and turn back upright: [+F-FF] is a right arm one segment out, two up.
register_preset('cactus_simple', 'FFFF', group='cactus', angle=90)
register_preset('cactus_tiny', 'FF', group='cactus', angle=90)
register_preset('cactus_classic', 'FF[+F-FF]FF[-F+FF]FF', group='cactus', angle=90)
register_preset('cactus_one_arm_right', 'FFF[+F-FFF]FFF', group='cactus', angle=90)
register_preset('cactus_one_arm_left', 'FFF[-F+FFF]FFF', group='cactus', angle=90)
register_preset('cactus_tall', 'FFFF[+F-FF]FFFF', group='cactus', angle=90)
register_preset('cactus_three_arms', 'FF[+F-F]FF[-F+FF]FF[+F-F]FF', group='cactus', angle=90)
register_preset('cactus_short', 'F[+F-F]F[-F+F]F', group='cactus', angle=90)


# Building blocks for the randomized tree grammars: side branches that end
# in leaves, and crowns that stop upward growth.
TIPS_BRANCH = ['[+FL]', '[-FL]', '[+FFL]', '[-FFL]', '[++FL]', '[--FL]', '[+L]', '[-L]']
TIPS_TOP = ['L', 'FL', 'F[+L][-L]L']


class _TreeRandom(object):
    """Small LCG so a tree grammar is a pure function of its seed."""

    def __init__(self, seed):
        self.state = int(seed) & 0xFFFFFFFF

    def random(self):
        self.state = (self.state * 1103515245 + 12345) & 0xFFFFFFFF
        return (self.state % 100000) / 100000.0

    def randint(self, lo, hi):
        return int(self.random() * (hi - lo + 1)) + lo

    def choice(self, seq):
        return seq[int(self.random() * len(seq))]


def _assemble_x_rule(rand, complexity, grow_up_prob):
    rule = ''.join(rand.choice(TIPS_BRANCH) for _ in range(rand.randint(1, complexity)))
    if rand.random() < grow_up_prob:
        return rule + 'FX'
    return rule + rand.choice(TIPS_TOP)


def random_tree_lsystem(seed, biome_tag=None):
    """Tree grammar derived from `seed` (a spatial hash) and a biome tag.

    'FOREST' always yields an oak, 'SNOW' a pine; other tags pick from the seed.
    """
    seed = int(seed)
    rand = _TreeRandom(seed)
    if biome_tag == 'SNOW':
        tree_type = 'pine'
    elif biome_tag == 'FOREST':
        tree_type = 'oak'
    else:
        tree_type = 'oak' if abs(seed) % 2 == 0 else 'pine'

    if tree_type == 'oak':
        rules = {'F': ['F'], 'X': [_assemble_x_rule(rand, 3, 0.5), '[+FL][-FL]FX']}
        return Grammar('FFFFX', rules, 2, name='oak',
            angle=25 + abs(seed) % 6, step=1.0, scale=1.0,
            leaf_type='leaves', wood_type='oak_wood')
    rules = {'F': ['F'], 'X': [_assemble_x_rule(rand, 2, 0.6), '[+L][-L]FX', '[+FL][-FL]FX']}
    trunk = 6 + abs(seed) % 3
    return Grammar('F' * trunk + 'X', rules, 2, name='pine',
        angle=25 + abs(seed) % 8, step=1.0, scale=1.0,
        leaf_type='pine_leaves', wood_type='pine_wood')

