'''
turtle3d.py -- 3D turtle that walks an expanded grammar string.

The turtle keeps a position and an orthonormal frame (forward, right, up)
and hands every drawing symbol to a sink. VoxelSink writes blocks into the
world; GeometrySink accumulates a standalone triangle mesh. Orientation and
the branch stack behave the same whichever sink is used.
'''

import math

import numpy as np

import logutil

# Closed symbol table. Upper case letters missing from it are rule
# placeholders and draw nothing.
SYMBOLS = {
    'F': 'forward',       # draw a segment, then move one step
    'f': 'forward_half',  # draw a half segment, then move half a step
    'G': 'move',          # move one step without drawing
    'S': 'stem',          # draw a thin stem segment, then move
    '+': 'yaw_left',
    '-': 'yaw_right',
    '^': 'pitch_up',
    '&': 'pitch_down',
    '\\': 'roll_left',
    '/': 'roll_right',
    '|': 'turn_around',
    '[': 'push',
    ']': 'pop',
    'L': 'leaf',
    'P': 'petal',
    'C': 'center',
    'W': 'flower',
}


def rotate(v, axis, angle):
    """Rotate vector `v` about unit `axis` by `angle` radians (Rodrigues)."""
    c = math.cos(angle)
    s = math.sin(angle)
    return v * c + np.cross(axis, v) * s + axis * (np.dot(axis, v) * (1.0 - c))


class TurtleState(object):
    __slots__ = ('position', 'forward', 'right', 'up')

    def __init__(self, position=(0.0, 0.0, 0.0), forward=(0.0, 1.0, 0.0), right=(1.0, 0.0, 0.0), up=(0.0, 0.0, -1.0)):
        self.position = np.array(position, dtype=np.float64)
        self.forward = np.array(forward, dtype=np.float64)
        self.right = np.array(right, dtype=np.float64)
        self.up = np.array(up, dtype=np.float64)

    def copy(self):
        return TurtleState(self.position, self.forward, self.right, self.up)

    def move(self, length):
        self.position = self.position + self.forward * length

    def yaw(self, angle):
        self.forward, self.right = rotate(self.forward, self.up, angle), rotate(self.right, self.up, angle)

    def pitch(self, angle):
        self.forward, self.up = rotate(self.forward, self.right, angle), rotate(self.up, self.right, angle)

    def roll(self, angle):
        self.right, self.up = rotate(self.right, self.forward, angle), rotate(self.up, self.forward, angle)

    def to_world(self, local):
        """Map (n, 3) offsets given as (right, forward, up) coefficients to world points."""
        local = np.asarray(local, dtype=np.float64).reshape(-1, 3)
        return (self.position + local[:, 0:1] * self.right + local[:, 1:2] * self.forward
                + local[:, 2:3] * self.up)

    def block(self):
        return tuple(int(math.floor(v + 0.5)) for v in self.position)

    def __eq__(self, other):
        return (isinstance(other, TurtleState)
                and np.array_equal(self.position, other.position)
                and np.array_equal(self.forward, other.forward)
                and np.array_equal(self.right, other.right)
                and np.array_equal(self.up, other.up))

    def __ne__(self, other):
        return not self.__eq__(other)

    def __repr__(self):
        return f'TurtleState(pos={self.position.tolist()}, fwd={self.forward.tolist()})'


class Sink(object):
    """Receives drawing commands. Subclasses override what they draw."""

    def segment(self, state, length):
        pass

    def stem(self, state, length):
        self.segment(state, length)

    def leaf(self, state):
        pass

    def petal(self, state):
        pass

    def center(self, state):
        pass

    def flower(self, state):
        pass


class TurtleInterpreter(object):
    def __init__(self, sink=None, angle=25.0, pitch_angle=None, step=1.0, origin=(0.0, 0.0, 0.0)):
        self.sink = sink if sink is not None else Sink()
        self.angle = math.radians(angle)
        self.pitch_angle = math.radians(pitch_angle if pitch_angle is not None else angle)
        self.step = float(step)
        self.state = TurtleState(position=origin)
        self.stack = []
        self.ignored_pops = 0

    @property
    def depth(self):
        return len(self.stack)

    def interpret(self, symbols):
        """Walk `symbols` and return the final turtle state."""
        state = self.state
        sink = self.sink
        for ch in symbols:
            command = SYMBOLS.get(ch)
            if command is None:
                # rule placeholders and foreign symbols draw nothing
                continue
            if command == 'forward':
                sink.segment(state, self.step)
                state.move(self.step)
            elif command == 'forward_half':
                sink.segment(state, self.step * 0.5)
                state.move(self.step * 0.5)
            elif command == 'move':
                state.move(self.step)
            elif command == 'stem':
                sink.stem(state, self.step)
                state.move(self.step)
            elif command == 'yaw_left':
                state.yaw(self.angle)
            elif command == 'yaw_right':
                state.yaw(-self.angle)
            elif command == 'pitch_up':
                state.pitch(self.pitch_angle)
            elif command == 'pitch_down':
                state.pitch(-self.pitch_angle)
            elif command == 'roll_left':
                state.roll(self.angle)
            elif command == 'roll_right':
                state.roll(-self.angle)
            elif command == 'turn_around':
                state.yaw(math.pi)
            elif command == 'push':
                self.stack.append(state.copy())
            elif command == 'pop':
                if self.stack:
                    state = self.stack.pop()
                else:
                    self.ignored_pops += 1
            elif command == 'leaf':
                sink.leaf(state)
            elif command == 'petal':
                sink.petal(state)
            elif command == 'center':
                sink.center(state)
            elif command == 'flower':
                sink.flower(state)
        self.state = state
        if self.ignored_pops:
            logutil.log('TURTLE', f'{self.ignored_pops} unmatched pops ignored', level='DEBUG')
        return state


class VoxelSink(Sink):
    """Draws into a world exposing place_block(token, x, y, z, key).

    Only generated air is ever overwritten. Within one structure the first
    block drawn at a position stays; between structures the world keeps the
    one with the lower `key`. Positions outside `bounds`, a (lo, hi) box, are
    skipped.
    """

    def __init__(self, world, trunk_token, leaves_token, flower_token=None, stem_token=None, rng=None, key=(), bounds=None):
        self.world = world
        self.trunk_token = trunk_token
        self.leaves_token = leaves_token
        self.flower_token = flower_token
        self.stem_token = stem_token
        self.rng = rng if rng is not None else np.random.default_rng(0)
        self.key = key
        self.bounds = bounds
        self.placed = []
        self._drawn = set()

    def _put(self, token, x, y, z):
        if token is None or (x, y, z) in self._drawn:
            return
        if self.bounds is not None:
            lo, hi = self.bounds
            if not (lo[0] <= x < hi[0] and lo[1] <= y < hi[1] and lo[2] <= z < hi[2]):
                return
        self._drawn.add((x, y, z))
        if self.world.place_block(token, x, y, z, self.key):
            self.placed.append((x, y, z))

    def segment(self, state, length):
        self._put(self.trunk_token, *state.block())

    def stem(self, state, length):
        self._put(self.stem_token, *state.block())

    def flower(self, state):
        self._put(self.flower_token, *state.block())

    def leaf(self, state):
        radius = 1 + int(math.floor(self.rng.random() * 2))
        px, py, pz = state.position
        for dx in range(-radius, radius + 1):
            for dy in range(-radius, radius + 1):
                for dz in range(-radius, radius + 1):
                    dist = math.sqrt(dx * dx + dy * dy + dz * dz)
                    if dist <= radius + self.rng.random() * 0.5:
                        self._put(self.leaves_token,
                            int(math.floor(px + dx + 0.5)),
                            int(math.floor(py + dy + 0.5)),
                            int(math.floor(pz + dz + 0.5)))


class MeshData(object):
    """Format-agnostic triangle mesh: positions (n,3), indices (m,), RGBA colors (n,4), normals (n,3)."""

    def __init__(self, positions, indices, colors, normals):
        self.positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        self.indices = np.asarray(indices, dtype=np.uint32).reshape(-1)
        self.colors = np.asarray(colors, dtype=np.float32).reshape(-1, 4)
        self.normals = np.asarray(normals, dtype=np.float32).reshape(-1, 3)

    @property
    def vertex_count(self):
        return self.positions.shape[0]

    @property
    def triangle_count(self):
        return self.indices.shape[0] // 3

    def transformed(self, scale=1.0, yaw=0.0):
        """Copy scaled uniformly and rotated by `yaw` radians about +Y."""
        c, s = math.cos(yaw), math.sin(yaw)
        rot = np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]], dtype=np.float64)
        positions = (self.positions.astype(np.float64) * scale) @ rot.T
        normals = self.normals.astype(np.float64) @ rot.T
        return MeshData(positions, self.indices, self.colors, normals)

    def to_payload(self):
        """Flat arrays as handed to a mesh building layer."""
        return {
            'positions': self.positions.ravel(),
            'indices': self.indices,
            'colors': self.colors.ravel(),
            'normals': self.normals.ravel(),
        }


# Box corners in (right, forward, up) coordinates scaled by (w, h, w) and the
# twelve triangles that close it.
_BOX = np.array([
    [-1, 0, -1], [1, 0, -1], [1, 0, 1], [-1, 0, 1],
    [-1, 1, -1], [1, 1, -1], [1, 1, 1], [-1, 1, 1],
], dtype=np.float64)
_BOX_TRIS = [
    3, 2, 6, 3, 6, 7,
    1, 0, 4, 1, 4, 5,
    2, 1, 5, 2, 5, 6,
    0, 3, 7, 0, 7, 4,
    4, 7, 6, 4, 6, 5,
    0, 1, 2, 0, 2, 3,
]
_PETAL_TRIS = [0, 1, 4, 0, 4, 3, 0, 3, 5, 0, 5, 2, 1, 4, 3, 2, 5, 3]
CENTER_SEGMENTS = 8


class GeometrySink(Sink):
    """Builds a mesh for a decorative plant.

    style 'cross' draws stems as two crossed quads (flowers); style 'box'
    draws each segment as a closed box (cacti). `params` is a plain dict of
    dimensions and RGB colors produced by plants.py.
    """

    def __init__(self, params, style='cross'):
        self.params = params
        self.style = style
        self.positions = []
        self.indices = []
        self.colors = []
        self.normals = []
        self.count = 0

    def _emit(self, points, tris, color, normals):
        base = self.count
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        normals = np.broadcast_to(np.asarray(normals, dtype=np.float64), points.shape)
        r, g, b = color[:3]
        a = color[3] if len(color) > 3 else 1.0
        self.positions.append(points)
        self.normals.append(normals)
        self.colors.append(np.tile([r, g, b, a], (points.shape[0], 1)))
        self.indices.extend(base + i for i in tris)
        self.count += points.shape[0]

    def segment(self, state, length):
        if self.style == 'box':
            w = self.params['segment_width'] * 0.5
            local = _BOX * np.array([w, length, w])
            center = state.position + state.forward * (length * 0.5)
            points = state.to_world(local)
            outward = points - center
            outward /= np.linalg.norm(outward, axis=1, keepdims=True)
            self._emit(points, _BOX_TRIS, self.params['cactus_color'], outward)
            return
        w = self.params['stem_width'] * 0.5
        quad_a = state.to_world([[-w, 0, 0], [w, 0, 0], [w, length, 0], [-w, length, 0]])
        quad_b = state.to_world([[0, 0, -w], [0, 0, w], [0, length, w], [0, length, -w]])
        color = self.params['stem_color']
        self._emit(quad_a, [0, 1, 2, 0, 2, 3], color, state.up)
        self._emit(quad_b, [0, 1, 2, 0, 2, 3], color, state.right)

    def petal(self, state):
        length = self.params['petal_length'] * 1.5
        width = self.params['petal_width'] * 1.2
        points = state.to_world([
            [0, 0, 0],
            [-width, length * 0.5, 0],
            [width, length * 0.5, 0],
            [0, length, 0],
            [-width * 0.5, length * 0.8, 0],
            [width * 0.5, length * 0.8, 0],
        ])
        self._emit(points, _PETAL_TRIS, self.params['petal_color'], state.up)

    def leaf(self, state):
        length = self.params.get('petal_length', 0.1) * 1.2
        width = self.params.get('petal_width', 0.07) * 0.6
        points = state.to_world([
            [0, 0, 0],
            [-width, length * 0.5, 0],
            [width, length * 0.5, 0],
            [0, length, 0],
        ])
        color = self.params.get('leaf_color', self.params.get('stem_color', (0.2, 0.6, 0.2)))
        self._emit(points, [0, 1, 3, 0, 3, 2], color, state.up)

    def center(self, state):
        radius = self.params['center_radius'] * 1.5
        angles = np.arange(CENTER_SEGMENTS) * (2.0 * math.pi / CENTER_SEGMENTS)
        ring = np.stack([np.cos(angles) * radius, np.zeros(CENTER_SEGMENTS), np.sin(angles) * radius], axis=1)
        points = np.vstack([state.to_world([[0, radius * 0.3, 0]]), state.to_world(ring)])
        tris = []
        for i in range(CENTER_SEGMENTS):
            tris.extend((0, 1 + i, 1 + (i + 1) % CENTER_SEGMENTS))
        self._emit(points, tris, self.params['center_color'], state.forward)

    def mesh(self):
        if not self.positions:
            return MeshData(np.zeros((0, 3)), [], np.zeros((0, 4)), np.zeros((0, 3)))
        return MeshData(np.vstack(self.positions), self.indices,
            np.vstack(self.colors), np.vstack(self.normals))
