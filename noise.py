#
# N-dimensional simplex noise, vectorised with numpy.
#
# Based on example code by Stefan Gustavson (stegu@itn.liu.se).
# Optimisations by Peter Eastman (peastman@drizzle.stanford.edu).
# Better rank ordering method by Stefan Gustavson in 2012.
#
# This code was placed in the public domain by its original author,
# Stefan Gustavson. You may use it as you see fit, but
# attribution is appreciated.
#
#
import numpy
import itertools

import config


p = numpy.array( [151,160,137,91,90,15,
    131,13,201,95,96,53,194,233,7,225,140,36,103,30,69,142,8,99,37,240,21,10,23,
    190, 6,148,247,120,234,75,0,26,197,62,94,252,219,203,117,35,11,32,57,177,33,
    88,237,149,56,87,174,20,125,136,171,168, 68,175,74,165,71,134,139,48,27,166,
    77,146,158,231,83,111,229,122,60,211,133,230,220,105,92,41,55,46,245,40,244,
    102,143,54, 65,25,63,161, 1,216,80,73,209,76,132,187,208, 89,18,169,200,196,
    135,130,116,188,159,86,164,100,109,198,173,186, 3,64,52,217,226,250,124,123,
    5,202,38,147,118,126,255,82,85,212,207,206,59,227,47,16,58,17,182,189,28,42,
    223,183,170,213,119,248,152, 2,44,154,163, 70,221,153,101,155,167, 43,172,9,
    129,22,39,253, 19,98,108,110,79,113,224,232,178,185, 112,104,218,246,97,228,
    251,34,242,193,238,210,144,12,191,179,162,241, 81,51,145,235,249,14,239,107,
    49,192,214, 31,181,199,106,157,184, 84,204,176,115,121,50,45,127, 4,150,254,
    138,236,205,93,222,114,67,29,24,72,243,141,128,195,78,66,215,61,156,180] )
# To remove the need for index wrapping, double the permutation table length
perm = p[numpy.arange(512) & 255]


# returns floor of floating point array by coercing to integer
def fastfloor(x):
    return numpy.array(numpy.floor(x), dtype=numpy.int64)


def _gradients(N):
    # edge (and for N>=3 corner) directions of the N-cube
    grad = ((0,-1,1),)*N
    grad = numpy.array(list(itertools.product(*grad))[1:])
    return grad[numpy.abs(grad).sum(-1)>=N-1]


#  # N-D simplex noise, better simplex rank ordering method 2012-03-09
class SimplexNoise:
    def __init__(self, seed=None):
        if seed is None:
            self.perm0 = perm
        else:
            rs = numpy.random.RandomState(int(seed) & 0xFFFFFFFF)
            self.perm0 = rs.permutation(256)[numpy.arange(512) & 255]
        self._grads = {}

    def noise(self, Z):
        """Noise for an (n, N) array of coordinates. Rows are independent, so a
        single point gives bit-identical results to the same point inside a batch."""
        Z = numpy.asarray(Z, dtype=numpy.float64)
        N = Z.shape[-1] #number of dimensions
        N1 = N+1 # number of simplex corners
        Fn = 1.0*(N1**0.5 - 1)/N
        Gn = 1.0*(N1 - N1**0.5)/N/N1

        #skew the Z data to find the cell origin
        s = Z[:,0]
        for d in range(1, N):
            s = s + Z[:,d]
        s = s * Fn
        i = fastfloor(Z+s[:,numpy.newaxis])
        t = i[:,0]
        for d in range(1, N):
            t = t + i[:,d]
        t = t * Gn
        z0 = Z - (i - t[:,numpy.newaxis])

        # Use magnitude ordering to determine the simplex that the point z0 is located in
        rank = numpy.zeros(Z.shape, dtype=numpy.int64)
        for l,k in itertools.combinations(range(N),2):
            rank[:,k] += z0[:,k]>=z0[:,l]
            rank[:,l] += z0[:,k]<z0[:,l]

        grad = self._grads.get(N)
        if grad is None:
            grad = self._grads[N] = _gradients(N)

        # Lattice coordinates wrapped to the permutation size for hashing only.
        ii = numpy.mod(i, 256)
        total = numpy.zeros(Z.shape[0])
        for b in range(N1):
            ind = rank >= N - b
            zk = z0 - ind + 1.0 * b * Gn
            indi = ind + ii
            gik = 0
            for x in range(N-1,-1,-1):
                gik = self.perm0[indi[:,x] + gik]
            gik = gik%(grad.shape[0])
            tk = 0.5 - zk[:,0]*zk[:,0]
            for d in range(1, N):
                tk = tk - zk[:,d]*zk[:,d]
            tp = tk>=0
            tk = tp * tk * tk
            g = grad[gik]
            dot = g[:,0]*zk[:,0]
            for d in range(1, N):
                dot = dot + g[:,d]*zk[:,d]
            total = total + tp * tk * tk * dot

        # Scale the result to roughly cover the range [-1,1]
        return total * (2**6)


def smoothstep(edge0, edge1, v):
    t = numpy.clip((v - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


class SeededNoiseField(object):
    """Continuous 2D/3D noise derived from one world seed.

    Every named channel owns a SimplexNoise instance seeded with
    ``seed + seed_offset`` and holds no state between calls. All methods
    accept scalars or broadcastable arrays; scalar input returns a float.
    """

    def __init__(self, seed, channels=None):
        self.seed = int(seed)
        self.channels = channels if channels is not None else getattr(config, 'NOISE_CHANNELS')
        self.base = SimplexNoise(seed=self.seed)
        self.sources = {}
        for name, params in self.channels.items():
            self.sources[name] = SimplexNoise(seed=self.seed + params.get('seed_offset', 0))

    def _sample(self, source, *coords):
        arrays = numpy.broadcast_arrays(*[numpy.asarray(c, dtype=numpy.float64) for c in coords])
        shape = arrays[0].shape
        Z = numpy.stack([a.ravel() for a in arrays], axis=-1)
        n = numpy.clip(source.noise(Z), -1.0, 1.0).reshape(shape)
        if shape == ():
            return float(n)
        return n

    def _source(self, channel):
        if channel is None:
            return self.base
        return self.sources[channel]

    def noise2d(self, x, z, frequency=1.0, channel=None):
        x = numpy.asarray(x, dtype=numpy.float64)
        z = numpy.asarray(z, dtype=numpy.float64)
        return self._sample(self._source(channel), x * frequency, z * frequency)

    def noise3d(self, x, y, z, frequency=1.0, channel=None):
        x = numpy.asarray(x, dtype=numpy.float64)
        y = numpy.asarray(y, dtype=numpy.float64)
        z = numpy.asarray(z, dtype=numpy.float64)
        return self._sample(self._source(channel), x * frequency, y * frequency, z * frequency)

    def octave_sum(self, x, z, frequency, amplitude, octaves, persistence=0.5, lacunarity=2.0, channel=None):
        """Sum `octaves` layers of rising frequency and falling amplitude,
        renormalised so the result spans [-amplitude, amplitude]."""
        total = 0.0
        max_value = 0.0
        current_amplitude = amplitude
        current_frequency = frequency
        for _ in range(octaves):
            total = total + self.noise2d(x, z, current_frequency, channel) * current_amplitude
            max_value += current_amplitude
            current_amplitude *= persistence
            current_frequency *= lacunarity
        if max_value == 0.0:
            return total
        return total / max_value * amplitude

    def _octave_channel(self, name, x, z):
        c = self.channels[name]
        return self.octave_sum(x, z, c['frequency'], c['amplitude'], c['octaves'], channel=name)

    def continent(self, x, z):
        return self._octave_channel('continent', x, z)

    def terrain(self, x, z):
        return self._octave_channel('terrain', x, z)

    def erosion(self, x, z):
        return self._octave_channel('erosion', x, z)

    def detail(self, x, z):
        return self._octave_channel('detail', x, z)

    def mountain_mask(self, x, z):
        """0 below the low edge, 1 above the high edge, smoothstep between."""
        c = self.channels['mountain']
        normalized = (numpy.asarray(self.noise2d(x, z, c['frequency'], 'mountain')) + 1.0) / 2.0
        mask = smoothstep(c['low'], c['high'], normalized)
        if mask.shape == ():
            return float(mask)
        return mask

    def roughness(self, x, z, biome_params):
        """Extra per-biome detail: two octaves at three times the biome frequency."""
        return self.octave_sum(x, z, biome_params['frequency'] * 3, biome_params['roughness'] * 10, 2,
            channel='roughness')

    def biome_value(self, x, z):
        c = self.channels['biome']
        return self.noise2d(x, z, c['frequency'], 'biome')

    def cave(self, x, y, z):
        c = self.channels['cave']
        off = c['offset2']
        x = numpy.asarray(x, dtype=numpy.float64)
        y = numpy.asarray(y, dtype=numpy.float64)
        z = numpy.asarray(z, dtype=numpy.float64)
        return (self.noise3d(x, y, z, c['frequency'], 'cave') +
                self.noise3d(x + off, y + off, z + off, c['frequency2'], 'cave') * c['weight2'])

    def lake(self, x, z):
        c = self.channels['lake']
        x = numpy.asarray(x, dtype=numpy.float64)
        z = numpy.asarray(z, dtype=numpy.float64)
        return self.noise2d(x + c['offset_x'], z + c['offset_z'], c['frequency'], 'lake')


if __name__ == '__main__':
    import sys
    import time
    from PIL import Image

    seed = int(sys.argv[1]) if len(sys.argv) > 1 else 3332
    field = SeededNoiseField(seed)
    t = time.time()
    xs, zs = numpy.mgrid[0:256, 0:256] * 8.0
    n = field.continent(xs, zs) + field.terrain(xs, zs) + field.detail(xs, zs)
    print('noise 256x256', time.time() - t)
    print('STATS')
    print('######')
    print(n.min(), n.max(), numpy.average(n))
    n = numpy.array((n - n.min()) / (n.max()-n.min())*255, dtype='u1')
    im = Image.fromarray(n.T, 'L')
    print(im.size)
    im.save('noise2.png')
