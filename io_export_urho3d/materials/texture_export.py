"""Texture file export: copy scheduled textures, generate AO textures."""

from __future__ import annotations

import os
import shutil

import numpy as np

from ..core.logging import ExportLogger


def bake_occlusion_strength(pixels: np.ndarray, strength: float) -> np.ndarray:
    """
    Blend float RGBA pixels towards white by ``1 - strength``.

    Urho3D reads AO from the emissive unit at full strength, so partial
    strength is baked into the image: ao' = 1 + (ao - 1) * strength.
    Alpha is left as is.
    """
    result = np.array(pixels, dtype=np.float32, copy=True)
    strength = min(max(strength, 0.0), 1.0)
    result[..., :3] = 1.0 + (result[..., :3] - 1.0) * strength
    return result


def copy_texture(source_path: str, target_path: str, log: ExportLogger) -> bool:
    """Copy a texture file, skipping it when the target is already the source."""
    if not source_path or not os.path.isfile(source_path):
        log.warning(f"Image source not found: {source_path}")
        return False
    os.makedirs(os.path.dirname(target_path) or ".", exist_ok=True)
    if os.path.abspath(source_path) != os.path.abspath(target_path):
        shutil.copy2(source_path, target_path)
        log.info(f"Copied texture: {source_path} -> {target_path}")
    return True


def is_up_to_date(source_path: str, target_path: str) -> bool:
    return (os.path.isfile(target_path) and os.path.isfile(source_path)
            and os.path.getmtime(target_path) >= os.path.getmtime(source_path))


def export_scheduled_textures(engine, save_image) -> int:
    """
    Write every texture the engine has scheduled.

    ``save_image(image, target_path)`` writes images that have no file on
    disk (packed or converted formats). Returns the number of files written.
    """
    assets = engine.assets
    written = 0
    while True:
        pending = engine.take_scheduled()
        if not pending:
            break
        for image in pending:
            if assets.is_cubemap(image):
                continue
            name = engine.evaluate_texture_name(image)
            if not name:
                continue
            target = engine.get_target_file_path(name)
            source = assets.get_source_file(image)
            # Unsaved edits only exist in memory
            dirty = getattr(image, "is_dirty", False)
            if not engine.settings.overwrite and not dirty and source and is_up_to_date(source, target):
                continue
            same_format = not dirty and source and os.path.splitext(source)[1].lower() == os.path.splitext(target)[1].lower()
            if same_format:
                if copy_texture(source, target, engine.log):
                    written += 1
            else:
                os.makedirs(os.path.dirname(target) or ".", exist_ok=True)
                save_image(image, target)
                engine.log.info(f"Saved texture: {target}")
                written += 1
    return written


def export_ao_textures(engine, read_pixels, save_pixels) -> int:
    """
    Generate the AO textures requested by material exporters.

    ``read_pixels(image)`` returns a float (h, w, 4) array;
    ``save_pixels(pixels, target_path)`` writes it as PNG.
    """
    written = 0
    for name, (image, strength) in engine.ao_textures.items():
        target = engine.get_target_file_path(name)
        source = engine.assets.get_source_file(image)
        dirty = getattr(image, "is_dirty", False)
        if not engine.settings.overwrite and not dirty and source and is_up_to_date(source, target):
            continue
        os.makedirs(os.path.dirname(target) or ".", exist_ok=True)
        save_pixels(bake_occlusion_strength(read_pixels(image), strength), target)
        engine.log.info(f"Generated AO texture: {target}")
        written += 1
    return written
