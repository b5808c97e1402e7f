"""Write Urho3D cubemap XML documents and their DDS images."""

from __future__ import annotations

import posixpath
from typing import Optional
from xml.etree.ElementTree import SubElement


def ensure_readable_texture(assets, texture) -> bool:
    """
    Make sure pixel data of ``texture`` can be read back.

    Flips the importer's readable flag and re-imports the asset when
    needed. Returns False when the texture has no importer.
    """
    if texture is None:
        return False

    asset_path = assets.get_asset_path(texture)
    importer = assets.get_importer(asset_path)
    if importer is None:
        return False

    if not importer.is_readable:
        importer.is_readable = True
        assets.import_asset(asset_path)
        assets.refresh()
    return True


class CubemapExporter:
    """Exports cubemap textures as <cubemap> XML plus a six-face DDS image."""

    def __init__(self, engine):
        if engine is None:
            raise ValueError("CubemapExporter requires an engine")
        self.engine = engine

    def evaluate_cubemap_name(self, cubemap) -> str:
        return self.engine.evaluate_cubemap_name(cubemap)

    def export(self, cubemap, srgb: bool = True) -> Optional[str]:
        """
        Export one cubemap. Returns the written resource name, or None when
        the texture was skipped (unreadable or unchanged since last export).
        """
        engine = self.engine
        if not ensure_readable_texture(engine.assets, cubemap):
            engine.log.debug(f"Cubemap has no importer, skipped: {cubemap!r}")
            return None

        resource_name = self.evaluate_cubemap_name(cubemap)
        sink = engine.try_create_xml(
            engine.assets.get_key(cubemap),
            resource_name,
            engine.assets.get_last_write_time(cubemap),
        )
        if sink is None:
            return None

        with sink:
            dds_name = replace_xml_extension(resource_name)
            engine.encode_cubemap_image(cubemap, engine.get_target_file_path(dds_name), srgb)

            root = sink.begin("cubemap")
            SubElement(root, "srgb", enable="true" if srgb else "false")
            SubElement(root, "image", name=posixpath.basename(dds_name))
        return resource_name


def replace_xml_extension(resource_name: str) -> str:
    """Cubemap.xml -> Cubemap.dds"""
    if resource_name.lower().endswith(".xml"):
        return resource_name[:-4] + ".dds"
    return resource_name + ".dds"
