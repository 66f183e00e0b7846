'''
world_loader.py -- drives generation for a set of chunks: parallel terrain fill,
the phased structure pass, then decoration spawners.

Fill jobs are independent and run on a thread pool. Structure placement can
write into neighbouring chunks, so it runs in 27 phases keyed by
(i % 3, j % 3, k % 3): two chunks in one phase are at least three chunks
apart on some axis and their 3x3x3 neighbourhoods never overlap.
A chunk only enters the structure pass when all of its neighbours are
loaded, and only gets plants when all of its neighbours have been placed.
'''

# standard library imports
import contextlib
import itertools
import math
import threading
import time
import concurrent.futures

# local imports
import config
import logutil
import mapgen
import plants
from structures import StructurePlacer
from util import neighborhood
from world import World

import logging
logging.basicConfig(level = logging.INFO)
def loader_log(msg, *args, level=logging.INFO):
    logging.log(level, 'LOADER: '+msg, *args)


class NeighborhoodLocks(object):
    """Per-chunk locks taken for a whole 3x3x3 neighbourhood in sorted order."""

    def __init__(self):
        self._locks = {}
        self._guard = threading.Lock()

    def _lock(self, coord):
        with self._guard:
            lock = self._locks.get(coord)
            if lock is None:
                lock = self._locks[coord] = threading.Lock()
            return lock

    @contextlib.contextmanager
    def hold(self, chunk_coord):
        locks = [self._lock(c) for c in neighborhood(tuple(chunk_coord))]
        for lock in locks:
            lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()


def phase_of(chunk_coord):
    i, j, k = chunk_coord
    return (i % 3, j % 3, k % 3)


class StructureScheduler(object):
    def __init__(self, placer, workers=None):
        self.placer = placer
        self.workers = int(workers or getattr(config, 'STRUCTURE_WORKERS', 4))
        self.locks = NeighborhoodLocks()

    def phases(self, coords):
        """Coordinates grouped by phase, phases and members in sorted order."""
        groups = {}
        for coord in coords:
            groups.setdefault(phase_of(coord), []).append(tuple(coord))
        return [sorted(groups[p]) for p in sorted(groups)]

    def place_one(self, chunk_coord):
        """Place structures for a single chunk outside the phased pass."""
        with self.locks.hold(chunk_coord):
            return self.placer.place_structures_in_chunk(chunk_coord)

    def _place(self, chunk_coord):
        try:
            return self.placer.place_structures_in_chunk(chunk_coord)
        except Exception:
            logging.exception('LOADER: structure placement failed for chunk %s', chunk_coord)
            return []

    def run(self, coords, parallel=True):
        """Place structures for every chunk in `coords`. Returns {coord: [spawn points]}."""
        results = {}
        phases = self.phases(coords)
        if not parallel or self.workers <= 1:
            for group in phases:
                for coord in group:
                    results[coord] = self._place(coord)
            return results
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as executor:
            for group in phases:
                futures = {coord: executor.submit(self._place, coord) for coord in group}
                # a phase completes before the next one starts
                for coord in group:
                    results[coord] = futures[coord].result()
        return results


class WorldLoader(object):
    def __init__(self, seed=None, world=None, chunk_size=None, fill_workers=None, structure_workers=None, spawners=None):
        self.world_seed = int(config.WORLD_SEED if seed is None else seed)
        self.world = world if world is not None else World(chunk_size)
        self.chunk_size = self.world.chunk_size
        self.generator = mapgen.ChunkGenerator(seed=self.world_seed, chunk_size=self.chunk_size)
        self.fill_workers = int(fill_workers or getattr(config, 'FILL_WORKERS', 4))
        self.placer = StructurePlacer(self.world, self.generator.biomes, self.world_seed, self.generator.registry)
        self.scheduler = StructureScheduler(self.placer, structure_workers)
        self.spawners = spawners if spawners is not None else plants.make_spawners(self.world, self.world_seed)
        self.spawn_points = {}
        self.vertical_chunks = int(math.ceil(self.generator.world_height / float(self.chunk_size)))
        self.pending = set()
        self.placed = set()
        self.decorated = set()
        self.passes = 0
        self.stats = {'chunks': 0, 'cave_voxels': 0, 'lake_columns': 0, 'ore_voxels': 0, 'errors': 0}
        loader_log('loader ready seed=%d chunk_size=%d', self.world_seed, self.chunk_size)

    def _fill(self, chunk_coord):
        buf = self.world.request_fill(chunk_coord)
        try:
            stats = self.generator.populate(chunk_coord, buf)
        except Exception:
            logging.exception('LOADER: fill failed for chunk %s, committing partial buffer', chunk_coord)
            stats = None
        return buf, stats

    def fill_chunks(self, coords):
        """Generate and commit every chunk in `coords` using the fill pool."""
        t0 = time.perf_counter()
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.fill_workers) as executor:
            futures = [(coord, executor.submit(self._fill, coord)) for coord in coords]
            for coord, future in futures:
                buf, stats = future.result()
                self.world.commit(coord, buf)
                self.stats['chunks'] += 1
                if stats is None:
                    self.stats['errors'] += 1
                    continue
                for key, value in stats.items():
                    self.stats[key] += value
        loader_log('filled %d chunks in %.1fms', len(coords), (time.perf_counter() - t0) * 1000.0)

    def _required(self, chunk_coord):
        """Neighbourhood chunks inside the world's vertical range."""
        return [c for c in neighborhood(chunk_coord) if 0 <= c[1] < self.vertical_chunks]

    def _ready(self, chunk_coord):
        return all(self.world.is_loaded(c) for c in self._required(chunk_coord))

    def decorate(self, coords):
        spawned = 0
        for spawner in self.spawners:
            for coord in coords:
                spawned += len(spawner.on_chunk_added(coord))
        self.decorated.update(coords)
        return spawned

    def _decoratable(self, placed):
        """Loaded chunks whose voxels are final: every neighbour has run its structure pass."""
        candidates = set(n for c in placed for n in neighborhood(c))
        return sorted(c for c in candidates
            if c not in self.decorated and self.world.is_loaded(c)
            and all(n in self.placed for n in self._required(c)))

    def place_ready(self, parallel=True):
        """Run the structure pass for pending chunks whose neighbourhood is loaded."""
        ready = sorted(c for c in self.pending if self._ready(c))
        if not ready:
            return []
        t0 = time.perf_counter()
        placed = self.scheduler.run(ready, parallel=parallel)
        self.pending.difference_update(ready)
        self.placed.update(ready)
        self.spawn_points.update(placed)
        count = sum(len(points) for points in placed.values())
        loader_log('placed %d structures in %d chunks in %.1fms, %d chunks waiting on neighbours',
            count, len(ready), (time.perf_counter() - t0) * 1000.0, len(self.pending))
        return ready

    def load_chunks(self, coords, parallel=True):
        """Fill and commit the chunks not yet loaded, then place and decorate what became ready.

        A chunk's structures are placed once its 3x3x3 neighbourhood is
        loaded and its plants are spawned once every neighbour has been
        placed, so the finished world does not depend on load order.
        """
        coords = sorted(set(tuple(c) for c in coords if not self.world.is_loaded(c)))
        if not coords:
            return []
        self.passes += 1
        logutil.set_frame(self.passes)
        self.fill_chunks(coords)
        self.pending.update(coords)
        ready = self.place_ready(parallel)
        spawned = self.decorate(self._decoratable(ready))
        loader_log('spawned %d decorative plants', spawned)
        return coords

    def unload_chunks(self, coords):
        for coord in coords:
            coord = tuple(coord)
            for spawner in self.spawners:
                spawner.on_chunk_removed(coord)
            self.spawn_points.pop(coord, None)
            self.pending.discard(coord)
            self.placed.discard(coord)
            self.decorated.discard(coord)
            self.world.unload(coord)
            # neighbours wrote into this chunk; they run again once it is back
            for n in neighborhood(coord):
                if n in self.placed:
                    self.placed.discard(n)
                    self.pending.add(n)

    def region_coords(self, radius, vertical=None, center=(0, 0)):
        """Chunk coordinates of a square region of columns around `center` (chunk i, k)."""
        ci, ck = center
        if vertical is None:
            vertical = range(self.vertical_chunks)
        r = range(-radius, radius + 1)
        return [(ci + di, j, ck + dk) for di, j, dk in itertools.product(r, vertical, r)]

    def load_region(self, radius, vertical=None, center=(0, 0), parallel=True):
        return self.load_chunks(self.region_coords(radius, vertical, center), parallel=parallel)

    def structures(self):
        """All spawn points placed so far, in chunk order."""
        return [p for coord in sorted(self.spawn_points) for p in self.spawn_points[coord]]
