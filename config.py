# World seed used when none is given on the command line.
WORLD_SEED = 12345

# Chunks are cubes of CHUNK_SIZE voxels indexed by (i, j, k).
CHUNK_SIZE = 32
WORLD_HEIGHT = 128 # world y range is 0..WORLD_HEIGHT-1

# Heightmap
BASE_HEIGHT_FRACTION = 0.5
MOUNTAIN_SCALE = 40.0
MIN_SURFACE_HEIGHT = 5
MAX_SURFACE_HEIGHT = WORLD_HEIGHT - 10

# Noise channels: each channel gets its own simplex permutation (seed + seed_offset).
# frequency is in cycles per block, amplitude is the renormalised octave-sum range.
NOISE_CHANNELS = {
    'continent': {'seed_offset': 101, 'frequency': 0.0005, 'amplitude': 20.0, 'octaves': 3},
    'mountain': {'seed_offset': 102, 'frequency': 0.0008, 'low': 0.6, 'high': 0.9},
    'terrain': {'seed_offset': 103, 'frequency': 0.004, 'amplitude': 12.0, 'octaves': 4},
    'erosion': {'seed_offset': 104, 'frequency': 0.002, 'amplitude': 8.0, 'octaves': 3},
    'detail': {'seed_offset': 105, 'frequency': 0.05, 'amplitude': 2.0, 'octaves': 2},
    'roughness': {'seed_offset': 106},
    'biome': {'seed_offset': 107, 'frequency': 0.001},
    'cave': {'seed_offset': 108, 'frequency': 0.02, 'frequency2': 0.04, 'weight2': 0.5, 'offset2': 100.0},
    'lake': {'seed_offset': 109, 'frequency': 0.015, 'offset_x': 5000.0, 'offset_z': 7000.0},
}

# Biomes: 'noise' bands a low frequency channel (used for generation),
# 'regions' shuffles the four biomes across 2x2 blocks of square regions.
BIOME_SCHEME = 'noise'
BIOME_THRESHOLDS = (-0.5, 0.0, 0.5) # desert | field | forest | snow
BIOME_REGION_SIZE = 512

# Per-biome roughness parameters (only read by the roughness helper).
BIOME_NOISE = {
    'forest': {'base': 0.5, 'amplitude': 18, 'frequency': 0.003, 'roughness': 0.35, 'octaves': 3},
    'desert': {'base': 0.5, 'amplitude': 4, 'frequency': 0.002, 'roughness': 0.1, 'octaves': 2},
    'snow': {'base': 0.55, 'amplitude': 24, 'frequency': 0.0035, 'roughness': 0.45, 'octaves': 4},
    'field': {'base': 0.48, 'amplitude': 12, 'frequency': 0.0025, 'roughness': 0.2, 'octaves': 3},
}

# Terrain
FILLER_DEPTH = 4

# Caves
CAVE_THRESHOLD = 0.6
CAVE_MAX_Y = 100

# Lakes
LAKE_THRESHOLD = 0.65
LAKE_MIN_SURFACE = 40
LAKE_MAX_SURFACE = 80
LAKE_DEPTH_SCALE = 10
LAKE_CAVE_CHECK_RADIUS = 8
LAKE_CAVE_CHECK_DEPTH = 4
LAKE_BIOMES = ('forest', 'field')

# Ores: attempts are scaled by spawn_chance and rounded half up.
ORE_SETTINGS = [
    {'name': 'coal', 'category': 'coal_ore', 'min_y': 20, 'max_y': 127, 'vein': (4, 16), 'spawn_chance': 0.8, 'attempts': 20},
    {'name': 'iron', 'category': 'iron_ore', 'min_y': 0, 'max_y': 64, 'vein': (5, 8), 'spawn_chance': 0.7, 'attempts': 20},
    {'name': 'gold', 'category': 'gold_ore', 'min_y': 0, 'max_y': 32, 'vein': (4, 6), 'spawn_chance': 0.5, 'attempts': 2},
    {'name': 'diamond', 'category': 'diamond_ore', 'min_y': 1, 'max_y': 16, 'vein': (4, 6), 'spawn_chance': 0.9, 'attempts': 8},
]

# Structures (second pass over committed chunks)
STRUCTURE_ATTEMPTS = {'forest': 14, 'desert': 8, 'snow': 1, 'field': 5}
STRUCTURE_DEFAULT_ATTEMPTS = 3
STRUCTURE_SCAN_TOP = 100
STRUCTURE_SCAN_BOTTOM = 10 # exclusive
STRUCTURE_CLEARANCE = 9 # air voxels required above the spawn cell
STRUCTURE_SKY_LIMIT = 120
CACTUS_HEIGHT = (2, 5)
FIELD_BUSH_CHANCE = 0.35

# Decorative plants spawned as entities
ENABLE_FLOWERS = True
ENABLE_CACTI = True
FLOWER_DENSITY = 0.03
CACTUS_DENSITY = 0.015
PLANT_SEED_MULTIPLIER = 31

# Grammar limits checked when a grammar is registered.
GRAMMAR_MAX_ITERATIONS = 4
GRAMMAR_MAX_LENGTH = 20000
TURTLE_DEFAULT_ANGLE = 25.0

# Worker pools used by the world loader.
FILL_WORKERS = 4
STRUCTURE_WORKERS = 4

# Cosmetic sub-variants per block category.
BLOCK_VARIANTS = {
    'stone': 16,
    'dirt': 8,
    'grass': 8,
    'sand': 8,
    'sandstone': 4,
    'snow': 4,
    'coal_ore': 4,
    'iron_ore': 4,
    'gold_ore': 4,
    'diamond_ore': 4,
    'oak_wood': 4,
    'pine_wood': 4,
    'leaves': 4,
    'pine_leaves': 4,
    'cactus': 2,
}

# Enable ANSI colors in logs.
LOG_COLOR = True

# Minimum level printed by logutil (DEBUG, INFO, WARN, ERROR).
LOG_LEVEL = 'INFO'

# When set to a collection of scope names, only those scopes print (warnings/errors always print).
LOG_SCOPES = None

# Write a heightmap/biome preview image from main.py (needs Pillow).
PREVIEW_IMAGE = False
PREVIEW_PATH = 'preview.png'
