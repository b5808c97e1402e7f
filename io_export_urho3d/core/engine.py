"""Export session: asset scheduling, resource naming and output files."""

from __future__ import annotations

import os
from typing import Dict, List, Optional, Tuple

from ..formats.dds_writer import save_cubemap_dds
from ..formats.xml_utils import XmlSink
from .logging import ExportLogger
from .paths import get_rel_path_from_asset_path, replace_extension
from .types import ExportSettings

# Source image formats Urho3D can't load; these are exported as PNG
CONVERTED_TO_PNG = frozenset({".psd", ".tif", ".tiff", ".exr", ".hdr", ".gif"})


class Urho3DEngine:
    """
    Shared state of one export run.

    ``assets`` is the asset database of the authoring tool. It must provide
    get_asset_path, get_key, get_last_write_time, is_cubemap, get_importer,
    import_asset, refresh and read_cubemap_faces (see blender/assets.py).
    """

    def __init__(self, assets, settings: ExportSettings, log: Optional[ExportLogger] = None):
        if assets is None:
            raise ValueError("Urho3DEngine requires an asset database")
        if settings is None:
            raise ValueError("Urho3DEngine requires export settings")
        self.assets = assets
        self.settings = settings
        self.log = log if log is not None else ExportLogger(settings.max_messages)

        self._seen_keys: set = set()
        self._queue: List[object] = []
        self._created: Dict[str, str] = {}  # resource name -> asset key
        self._ao_textures: Dict[str, Tuple[object, float]] = {}  # resource name -> (source, strength)

    @property
    def subfolder(self) -> str:
        return self.settings.subfolder

    # -----------------------------------------------------------------
    # Scheduling
    # -----------------------------------------------------------------

    def schedule_asset_export(self, asset) -> bool:
        """Queue an asset for export. Returns False if it was already queued."""
        if asset is None:
            return False
        key = self.assets.get_key(asset)
        if key in self._seen_keys:
            return False
        self._seen_keys.add(key)
        self._queue.append(asset)
        self.log.debug(f"Scheduled asset export: {key}")
        return True

    @property
    def scheduled_assets(self) -> List[object]:
        return list(self._queue)

    def take_scheduled(self) -> List[object]:
        """Remove and return queued assets. Already seen keys stay deduplicated."""
        pending, self._queue = self._queue, []
        return pending

    def schedule_ao_texture(self, occlusion, resource_name: str, strength: float) -> bool:
        """Queue generation of an AO texture with the given strength baked in."""
        if occlusion is None or not resource_name or resource_name in self._ao_textures:
            return False
        self._ao_textures[resource_name] = (occlusion, strength)
        return True

    @property
    def ao_textures(self) -> Dict[str, Tuple[object, float]]:
        return dict(self._ao_textures)

    # -----------------------------------------------------------------
    # Naming
    # -----------------------------------------------------------------

    def evaluate_texture_name(self, texture) -> str:
        if texture is None:
            return ""
        if self.assets.is_cubemap(texture):
            return self.evaluate_cubemap_name(texture)
        asset_path = self.assets.get_asset_path(texture)
        if not asset_path or not asset_path.strip():
            return ""
        name = get_rel_path_from_asset_path(self.subfolder, asset_path)
        if os.path.splitext(name)[1].lower() in CONVERTED_TO_PNG:
            name = replace_extension(name, ".png")
        return name

    def evaluate_cubemap_name(self, cubemap) -> str:
        asset_path = self.assets.get_asset_path(cubemap)
        if not asset_path or not asset_path.strip():
            return ""
        return replace_extension(get_rel_path_from_asset_path(self.subfolder, asset_path), ".xml")

    def get_target_file_path(self, resource_name: str) -> str:
        return self.settings.get_target_file_path(resource_name)

    # -----------------------------------------------------------------
    # Output
    # -----------------------------------------------------------------

    def is_up_to_date(self, target_path: str, source_timestamp: Optional[float]) -> bool:
        if self.settings.overwrite or source_timestamp is None:
            return False
        if not os.path.isfile(target_path):
            return False
        return os.path.getmtime(target_path) >= source_timestamp

    def try_create_xml(
        self,
        key: str,
        resource_name: str,
        source_timestamp: Optional[float],
    ) -> Optional[XmlSink]:
        """
        Open an output document for ``resource_name``.

        Returns None when nothing needs to be written: the resource was
        already produced in this run, or the file on disk is newer than
        the source. The name stays reserved while the sink is open and is
        released again if the sink is discarded.
        """
        if not resource_name:
            return None

        owner = self._created.get(resource_name)
        if owner is not None:
            if owner != key:
                self.log.warning(f"Resource '{resource_name}' is produced by both "
                                 f"'{owner}' and '{key}', keeping the first")
            return None
        self._created[resource_name] = key

        target_path = self.get_target_file_path(resource_name)
        if self.is_up_to_date(target_path, source_timestamp):
            self.log.info(f"Up to date, skipped: {resource_name}")
            return None

        directory = os.path.dirname(target_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        return XmlSink(
            target_path,
            on_close=lambda sink: self.log.info(f"Written: {sink.filepath}"),
            on_discard=lambda sink: self._release(resource_name, key),
        )

    def _release(self, resource_name: str, key: str) -> None:
        if self._created.get(resource_name) == key:
            del self._created[resource_name]
        self.log.debug(f"Discarded: {resource_name}")

    def encode_cubemap_image(self, texture, target_path: str, srgb: bool) -> None:
        faces = self.assets.read_cubemap_faces(texture)
        directory = os.path.dirname(target_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        save_cubemap_dds(faces, target_path, srgb)
        self.log.info(f"Written cubemap image: {target_path}")
