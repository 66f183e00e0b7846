'''
main.py -- generate a square region of the world and report on it.

usage: python main.py [seed] [radius]
'''

import sys
import time
import collections

import numpy as np

# local module imports
import config
import logutil
from biomes import biome_name
from blocks import AIR
from world_loader import WorldLoader

# top-down preview colours per block category
PREVIEW_COLORS = {
    'grass': (86, 150, 60),
    'dirt': (120, 85, 55),
    'sand': (220, 205, 150),
    'sandstone': (200, 180, 120),
    'snow': (240, 245, 250),
    'stone': (125, 125, 125),
    'water': (50, 90, 200),
    'oak_wood': (110, 80, 45),
    'pine_wood': (90, 60, 35),
    'leaves': (40, 110, 35),
    'pine_leaves': (30, 80, 50),
    'cactus': (60, 140, 60),
    'bedrock': (30, 30, 30),
}


def top_blocks(world, coords):
    """Highest non-air token and its y for every loaded column of `coords`.

    Returns (tokens, heights, (x0, z0)) with arrays indexed [x - x0, z - z0].
    """
    size = world.chunk_size
    imin = min(c[0] for c in coords)
    kmin = min(c[2] for c in coords)
    imax = max(c[0] for c in coords)
    kmax = max(c[2] for c in coords)
    shape = ((imax - imin + 1) * size, (kmax - kmin + 1) * size)
    tokens = np.zeros(shape, dtype='u2')
    heights = np.full(shape, -1, dtype=np.int64)
    for (i, j, k) in coords:
        buf = world.chunk((i, j, k))
        if buf is None:
            continue
        solid = buf != AIR
        has = solid.any(axis=1)
        # index of the highest non-air voxel along y
        top = size - 1 - np.argmax(solid[:, ::-1, :], axis=1)
        ys = np.where(has, top + j * size, -1)
        sx = slice((i - imin) * size, (i - imin + 1) * size)
        sz = slice((k - kmin) * size, (k - kmin + 1) * size)
        higher = ys > heights[sx, sz]
        heights[sx, sz] = np.where(higher, ys, heights[sx, sz])
        picked = np.take_along_axis(buf, top[:, None, :], axis=1)[:, 0, :]
        tokens[sx, sz] = np.where(higher, picked, tokens[sx, sz])
    return tokens, heights, (imin * size, kmin * size)


def summarize(loader, coords):
    world = loader.world
    gen = loader.generator
    tokens, heights, (x0, z0) = top_blocks(world, coords)
    xs, zs = np.mgrid[x0:x0 + tokens.shape[0], z0:z0 + tokens.shape[1]]
    surface = gen.heightmap.heights(xs, zs)
    biomes = gen.biomes.chunk_biomes(x0, z0, tokens.shape[0]) if tokens.shape[0] == tokens.shape[1] else None
    logutil.log('MAIN', f'surface height min={surface.min()} max={surface.max()} mean={surface.mean():.1f}')
    if biomes is not None:
        counts = collections.Counter(biome_name(b) for b in biomes.ravel().tolist())
        logutil.log('MAIN', 'biome columns ' + ', '.join(f'{k}={v}' for k, v in sorted(counts.items())))
    s = loader.stats
    logutil.log('MAIN', f'chunks={s["chunks"]} caves={s["cave_voxels"]} lakes={s["lake_columns"]} '
        f'ores={s["ore_voxels"]} errors={s["errors"]}')
    kinds = collections.Counter(p.kind for p in loader.structures())
    logutil.log('MAIN', 'structures ' + (', '.join(f'{k}={v}' for k, v in sorted(kinds.items())) or 'none'))
    for spawner in loader.spawners:
        logutil.log('MAIN', f'{spawner.kind} entities={spawner.count}')
    return tokens, heights


def write_preview(tokens, heights, path, registry):
    from PIL import Image

    rgb = np.zeros(tokens.shape + (3,), dtype=np.float64)
    for category, color in PREVIEW_COLORS.items():
        rgb[registry.in_category(tokens, category)] = color
    valid = heights >= 0
    if valid.any():
        lo, hi = heights[valid].min(), heights[valid].max()
        shade = 0.6 + 0.4 * (heights - lo) / max(1, hi - lo)
        rgb *= np.where(valid, shade, 0.0)[..., None]
    im = Image.fromarray(np.clip(rgb, 0, 255).astype('u1').transpose(1, 0, 2), 'RGB')
    im.save(path)
    logutil.log('MAIN', f'wrote preview {path} {im.size}')


def main():
    seed = config.WORLD_SEED
    radius = 1
    args = [a for a in sys.argv[1:] if not a.startswith('--')]
    if len(args) > 0:
        try:
            seed = int(args[0])
        except ValueError:
            logutil.log('MAIN', f'bad seed {args[0]!r}, using {seed}', level='WARN')
    if len(args) > 1:
        try:
            radius = max(0, int(args[1]))
        except ValueError:
            logutil.log('MAIN', f'bad radius {args[1]!r}, using {radius}', level='WARN')
    logutil.log('MAIN', f'generating seed={seed} radius={radius}')
    t = time.perf_counter()
    loader = WorldLoader(seed)
    # one extra ring of chunks lets structures and plants finish inside the radius
    loaded = loader.load_region(radius + 1)
    coords = loader.region_coords(radius)
    logutil.log('MAIN', f'generated {len(loaded)} chunks in {time.perf_counter() - t:.2f}s, '
        f'{len(loader.pending)} waiting on unloaded neighbours')
    tokens, heights = summarize(loader, coords)
    if getattr(config, 'PREVIEW_IMAGE', False) or '--preview' in sys.argv:
        write_preview(tokens, heights, getattr(config, 'PREVIEW_PATH', 'preview.png'), loader.generator.registry)


if __name__ == '__main__':
    main()
