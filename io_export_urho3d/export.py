"""Export runs: materials and cubemaps, one asset at a time."""

from __future__ import annotations

from typing import Iterable, List, Optional

from .formats.cubemap_writer import CubemapExporter
from .materials.exporter import MaterialExporterRegistry
from .materials.pbr_exporter import PrincipledMaterialExporter
from .materials.simple_exporter import SimpleMaterialExporter


def create_registry(engine) -> MaterialExporterRegistry:
    return MaterialExporterRegistry([
        PrincipledMaterialExporter(engine),
        SimpleMaterialExporter(engine),
    ])


def export_materials(
    engine,
    materials: Iterable,
    registry: Optional[MaterialExporterRegistry] = None,
) -> List[str]:
    """
    Export each material with the first variant that accepts it.

    A failing material is logged and the run continues with the next one.
    Returns the resource names that were written.
    """
    registry = registry or create_registry(engine)
    written = []
    for material in materials:
        if material is None:
            continue
        try:
            exporter = registry.find_exporter(material)
            if exporter is None:
                engine.log.warning(f"No exporter for material '{material.name}', skipping")
                continue
            name = exporter.export_material(material)
        except Exception as e:
            engine.log.error(f"Failed to export material '{material.name}': {e}")
            continue
        if name:
            written.append(name)
    return written


def export_cubemaps(engine, cubemaps: Iterable) -> List[str]:
    """Export cubemap textures. Returns the resource names that were written."""
    exporter = CubemapExporter(engine)
    written = []
    for cubemap in cubemaps:
        try:
            name = exporter.export(cubemap)
        except Exception as e:
            engine.log.error(f"Failed to export cubemap '{getattr(cubemap, 'name', cubemap)}': {e}")
            continue
        if name:
            written.append(name)
    return written


def scheduled_cubemaps(engine) -> List[object]:
    """Cubemaps scheduled by material exporters (environment maps)."""
    return [asset for asset in engine.scheduled_assets if engine.assets.is_cubemap(asset)]
