'''
world.py -- minimal in-memory voxel host.

Owns committed chunk buffers and the entity list, and exposes the point
accessors the structure pass uses across chunk boundaries.
'''

import threading

import numpy

import config
import logutil


class World(object):
    def __init__(self, chunk_size=None):
        self.chunk_size = int(chunk_size or config.CHUNK_SIZE)
        self.chunks = {}
        self.entities = {}
        # world position -> key of the structure that wrote it
        self.owners = {}
        self._next_entity_id = 1
        self._lock = threading.Lock()

    # ----- chunk lifecycle -----

    def request_fill(self, chunk_coord):
        """Allocate an empty buffer for a chunk to be generated."""
        return numpy.zeros((self.chunk_size,) * 3, dtype='u2')

    def commit(self, chunk_coord, buffer):
        """Take ownership of a filled buffer."""
        with self._lock:
            self.chunks[tuple(chunk_coord)] = buffer

    def unload(self, chunk_coord):
        with self._lock:
            coord = tuple(chunk_coord)
            for pos in [p for p in self.owners if self._locate(*p)[0] == coord]:
                del self.owners[pos]
            return self.chunks.pop(coord, None)

    def is_loaded(self, chunk_coord):
        return tuple(chunk_coord) in self.chunks

    def chunk(self, chunk_coord):
        return self.chunks.get(tuple(chunk_coord))

    def snapshot(self):
        """Copies of every committed buffer, keyed by chunk coordinate."""
        with self._lock:
            return {coord: buf.copy() for coord, buf in self.chunks.items()}

    # ----- point accessors -----

    def _locate(self, x, y, z):
        s = self.chunk_size
        x, y, z = int(x), int(y), int(z)
        return (x // s, y // s, z // s), (x % s, y % s, z % s)

    def get_block(self, x, y, z):
        """Token at a world position, 0 (air) when the chunk is not loaded."""
        coord, (lx, ly, lz) = self._locate(x, y, z)
        buf = self.chunks.get(coord)
        if buf is None:
            return 0
        return int(buf[lx, ly, lz])

    def set_block(self, token, x, y, z):
        """Write a token; writes into unloaded chunks are dropped."""
        coord, (lx, ly, lz) = self._locate(x, y, z)
        buf = self.chunks.get(coord)
        if buf is None:
            return False
        self.owners.pop((int(x), int(y), int(z)), None)
        buf[lx, ly, lz] = token
        return True

    def base_block(self, x, y, z):
        """Token as generated: structure blocks read back as air."""
        if (int(x), int(y), int(z)) in self.owners:
            return 0
        return self.get_block(x, y, z)

    def place_block(self, token, x, y, z, key=()):
        """Structure write into generated air.

        A voxel two structures both want goes to the lower `key`, whichever
        writes first, so the result does not depend on placement order.
        Returns False when the write is refused or the chunk is not loaded.
        """
        pos = (int(x), int(y), int(z))
        owner = self.owners.get(pos)
        if owner is None:
            if self.get_block(*pos) != 0:
                return False
        elif owner < key:
            return False
        if not self.set_block(token, *pos):
            return False
        self.owners[pos] = key
        return True

    # ----- entities -----

    def add_entity(self, entity):
        with self._lock:
            entity_id = self._next_entity_id
            self._next_entity_id += 1
            entity.id = entity_id
            self.entities[entity_id] = entity
        logutil.log('WORLD', f'added {entity.type} {entity_id} at {entity.position.tolist()}', level='DEBUG')
        return entity_id

    def delete_entity(self, entity_id):
        with self._lock:
            return self.entities.pop(entity_id, None) is not None
