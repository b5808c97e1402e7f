"""Blender-free stand-ins for the asset database, images and shader node trees."""

import numpy as np
import pytest

from io_export_urho3d.core.engine import Urho3DEngine
from io_export_urho3d.core.types import ExportSettings


class FakeImage:
    def __init__(self, name, asset_path, mtime=None, cubemap=False, faces=None,
                 source_file=""):
        self.name = name
        self.asset_path = asset_path
        self.mtime = mtime
        self.cubemap = cubemap
        self.faces = faces
        self.source_file = source_file

    def __repr__(self):
        return f"FakeImage({self.name!r})"


class FakeImporter:
    def __init__(self, is_readable=True):
        self.is_readable = is_readable


class FakeAssetDatabase:
    def __init__(self):
        self.importers = {}
        self.imports = []
        self.refresh_count = 0
        self.face_reads = 0

    def add_importer(self, image, is_readable=True):
        importer = FakeImporter(is_readable)
        self.importers[image.asset_path] = importer
        return importer

    def get_key(self, asset):
        return f"{type(asset).__name__}:{asset.asset_path}:{asset.name}"

    def get_asset_path(self, asset):
        return asset.asset_path

    def get_last_write_time(self, asset):
        return asset.mtime

    def get_source_file(self, asset):
        return asset.source_file

    def is_cubemap(self, asset):
        return getattr(asset, "cubemap", False)

    def get_importer(self, asset_path):
        return self.importers.get(asset_path)

    def import_asset(self, asset_path):
        self.imports.append(asset_path)

    def refresh(self):
        self.refresh_count += 1

    def read_cubemap_faces(self, image):
        self.face_reads += 1
        return image.faces


# ---------------------------------------------------------------------------
# Shader node trees
# ---------------------------------------------------------------------------

class Sockets(dict):
    """Blender-style socket collection: .get(name) and iteration over sockets."""

    def __iter__(self):
        return iter(self.values())


class Socket:
    def __init__(self, name, default_value=None):
        self.name = name
        self.default_value = default_value
        self.links = []

    @property
    def is_linked(self):
        return bool(self.links)


class Link:
    def __init__(self, from_node, to_node):
        self.from_node = from_node
        self.to_node = to_node


class Node:
    def __init__(self, type, inputs=None, image=None, blend_type=""):
        self.type = type
        self.image = image
        self.blend_type = blend_type
        self.inputs = Sockets({name: Socket(name, value) for name, value in (inputs or {}).items()})
        self.outputs = Sockets({"Out": Socket("Out")})


def connect(from_node, to_node, input_name):
    link = Link(from_node, to_node)
    to_node.inputs[input_name].links.append(link)
    from_node.outputs["Out"].links.append(link)
    return link


def image_node(image, mapping=None):
    node = Node('TEX_IMAGE', {"Vector": None}, image=image)
    if mapping is not None:
        connect(mapping, node, "Vector")
    return node


def principled_node(**values):
    defaults = {
        "Base Color": (0.8, 0.8, 0.8, 1.0),
        "Alpha": 1.0,
        "Metallic": 0.0,
        "Roughness": 0.5,
        "Normal": None,
        "Emission Color": (0.0, 0.0, 0.0, 1.0),
        "Emission Strength": 1.0,
    }
    defaults.update(values)
    return Node('BSDF_PRINCIPLED', defaults)


class NodeTree:
    def __init__(self, nodes):
        self.nodes = list(nodes)


class FakeMaterial:
    def __init__(self, name, asset_path="Materials/level.blend", nodes=None,
                 blend_method="OPAQUE", mtime=None):
        self.name = name
        self.asset_path = asset_path
        self.mtime = mtime
        self.use_nodes = nodes is not None
        self.node_tree = NodeTree(nodes) if nodes is not None else None
        self.blend_method = blend_method
        self.diffuse_color = (0.5, 0.25, 1.0, 1.0)
        self.roughness = 0.5
        self.metallic = 0.0
        self.specular_intensity = 0.5


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def assets():
    return FakeAssetDatabase()


@pytest.fixture
def settings(tmp_path):
    return ExportSettings(output_path=str(tmp_path / "out"))


@pytest.fixture
def engine(assets, settings):
    return Urho3DEngine(assets, settings)


@pytest.fixture
def cube_faces():
    faces = np.zeros((6, 4, 4, 4), dtype=np.float32)
    for i in range(6):
        faces[i, ..., 0] = i / 5.0
        faces[i, ..., 3] = 1.0
    return list(faces)
