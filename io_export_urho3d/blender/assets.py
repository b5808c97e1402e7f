"""Blender side of the export engine: asset identity, paths and pixel access."""

from __future__ import annotations

import os
from typing import Dict, Optional

import numpy as np

from ..core.paths import normalize_path, safe_file_name


class ImageImporter:
    """Import settings of a Blender image. Readable means pixels are loaded."""

    def __init__(self, image):
        self.image = image

    @property
    def is_readable(self) -> bool:
        return bool(self.image.has_data)

    @is_readable.setter
    def is_readable(self, value: bool) -> None:
        if value and not self.image.has_data:
            # Touching pixels forces Blender to load the image buffer
            self.image.pixels[0:1]


class BlenderAssetDatabase:
    """Maps Blender datablocks to project-relative asset paths."""

    def __init__(self, textures_dir: str = "Textures", materials_dir: str = "Materials"):
        self.textures_dir = textures_dir
        self.materials_dir = materials_dir
        self._images_by_path: Dict[str, object] = {}
        self._paths_by_key: Dict[str, str] = {}

    @staticmethod
    def blend_file_path() -> str:
        import bpy
        return bpy.data.filepath

    @staticmethod
    def is_blend_dirty() -> bool:
        import bpy
        return bool(bpy.data.is_dirty)

    @staticmethod
    def is_image(asset) -> bool:
        return hasattr(asset, "pixels") and hasattr(asset, "size")

    def get_key(self, asset) -> str:
        library = getattr(asset, "library", None)
        prefix = library.filepath if library is not None else ""
        return f"{type(asset).__name__}:{prefix}:{asset.name}"

    def get_source_file(self, asset) -> str:
        import bpy
        filepath = getattr(asset, "filepath", "") or ""
        if not filepath or getattr(asset, "packed_file", None):
            return ""
        path = bpy.path.abspath(filepath, library=asset.library)
        return path if os.path.isfile(path) else ""

    def get_asset_path(self, asset) -> str:
        if asset is None:
            return ""
        if self.is_image(asset):
            key = self.get_key(asset)
            path = self._paths_by_key.get(key)
            if path is None:
                path = self._unique_image_path(self._image_asset_path(asset))
                self._paths_by_key[key] = path
                self._images_by_path[path] = asset
            return path
        library = getattr(asset, "library", None)
        blend = library.filepath if library is not None else self.blend_file_path()
        blend_name = os.path.basename(normalize_path(blend)) or "untitled.blend"
        return f"{self.materials_dir}/{blend_name}"

    def _image_asset_path(self, image) -> str:
        filepath = normalize_path(getattr(image, "filepath", "") or "")
        if filepath and not os.path.isabs(filepath) and not filepath.startswith("../"):
            return filepath
        if filepath:
            return f"{self.textures_dir}/{os.path.basename(filepath)}"
        name = safe_file_name(image.name)
        if not os.path.splitext(name)[1]:
            name += ".png"
        return f"{self.textures_dir}/{name}"

    def _unique_image_path(self, path: str) -> str:
        """Images from different folders with one file name get numbered: wood.png, wood_2.png."""
        stem, ext = os.path.splitext(path)
        candidate, index = path, 1
        while candidate in self._images_by_path:
            index += 1
            candidate = f"{stem}_{index}{ext}"
        return candidate

    def get_last_write_time(self, asset) -> Optional[float]:
        """Source file mtime, or None (always export) when there are unsaved edits."""
        if self.is_image(asset):
            if getattr(asset, "is_dirty", False):
                return None
        elif self.is_blend_dirty():
            return None
        source = self.get_source_file(asset) if self.is_image(asset) else self.blend_file_path()
        if source and os.path.isfile(source):
            return os.path.getmtime(source)
        return None

    def is_cubemap(self, asset) -> bool:
        """Cubemaps are stored as horizontal strips of six square faces."""
        if not self.is_image(asset):
            return False
        if "urho_cubemap" in asset:
            return bool(asset["urho_cubemap"])
        width, height = asset.size[0], asset.size[1]
        return height > 0 and width == 6 * height

    def get_importer(self, asset_path: str) -> Optional[ImageImporter]:
        image = self._images_by_path.get(asset_path)
        if image is None or image.source not in ('FILE', 'SEQUENCE'):
            return None
        return ImageImporter(image)

    def import_asset(self, asset_path: str) -> None:
        image = self._images_by_path.get(asset_path)
        if image is not None:
            image.reload()

    def refresh(self) -> None:
        import bpy
        bpy.context.view_layer.update()

    def read_pixels(self, image) -> np.ndarray:
        """Float RGBA pixels, shape (height, width, 4), bottom row first."""
        width, height = image.size[0], image.size[1]
        pixels = np.empty(width * height * 4, dtype=np.float32)
        image.pixels.foreach_get(pixels)
        return pixels.reshape(height, width, 4)

    def read_cubemap_faces(self, image):
        """Split a 6:1 strip into faces +X, -X, +Y, -Y, +Z, -Z, top row first."""
        pixels = self.read_pixels(image)[::-1]
        size = pixels.shape[0]
        return [pixels[:, i * size:(i + 1) * size] for i in range(6)]


def save_image(image, target_path: str) -> None:
    """Save a copy of a Blender image as PNG."""
    import bpy
    copy = image.copy()
    try:
        copy.filepath_raw = target_path
        copy.file_format = 'PNG'
        copy.save()
    finally:
        bpy.data.images.remove(copy)


def save_pixels(pixels: np.ndarray, target_path: str) -> None:
    """Save float RGBA pixels (bottom row first) as a PNG file."""
    import bpy
    height, width = pixels.shape[0], pixels.shape[1]
    image = bpy.data.images.new(os.path.basename(target_path), width, height, alpha=True)
    try:
        image.pixels.foreach_set(np.ascontiguousarray(pixels, dtype=np.float32).ravel())
        image.filepath_raw = target_path
        image.file_format = 'PNG'
        image.save()
    finally:
        bpy.data.images.remove(image)
