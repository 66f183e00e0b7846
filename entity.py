import numpy as np


class BaseEntity:
    """
    The base class for all non-block objects in the world.
    The id is assigned by the world when the entity is added.
    """
    def __init__(self, world, position=(0, 100, 0), entity_type='base_entity'):
        self.id = None
        self.type = entity_type
        self.world = world

        self.position = np.array(position, dtype=float)
        self.rotation = np.array([0, 0], dtype=float)  # (yaw, pitch)

        # width, height, depth
        self.bounding_box = np.array([0.8, 1.8, 0.8])

    def to_network_dict(self):
        """
        Creates a simple dictionary of this entity's state for a consumer.
        """
        return {
            'id': self.id,
            'type': self.type,
            'pos': list(self.position),
            'rot': list(self.rotation),
        }

    def from_network_dict(self, data):
        self.id = data.get('id', self.id)
        self.type = data.get('type', self.type)
        self.position = np.array(data.get('pos', self.position), dtype=float)
        self.rotation = np.array(data.get('rot', self.rotation), dtype=float)


class PlantEntity(BaseEntity):
    """
    A decorative flower or cactus standing on a block. It owns a standalone
    mesh and never collides or moves.
    """
    def __init__(self, world, position, instance, mesh):
        super().__init__(world, position, entity_type=instance.kind)
        self.instance = instance
        self.mesh = mesh
        self.rotation = np.array([instance.rotation, 0], dtype=float)
        self.bounding_box = np.array([0.3, 0.5, 0.3])

    def to_network_dict(self):
        data = super().to_network_dict()
        data['preset'] = self.instance.preset
        data['scale'] = self.instance.scale
        data['mesh'] = self.mesh.to_payload()
        return data
