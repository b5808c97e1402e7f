"""Material exporter interface and the registry that picks a variant per material."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.paths import get_rel_path_from_asset_path, replace_extension, safe_file_name
from ..data.urho_material import ShaderArguments, Vector2
from .analyzer import PrincipledBSDFAnalyzer, get_blend_method


class MaterialExporter(ABC):
    """One way of turning a source material into an Urho3D material document."""

    priority: int = 0

    def __init__(self, engine):
        if engine is None:
            raise ValueError(f"{type(self).__name__} requires an engine")
        self.engine = engine

    @abstractmethod
    def can_export_material(self, material) -> bool:
        ...

    @abstractmethod
    def export_material(self, material) -> Optional[str]:
        """Write the material. Returns its resource name, or None if skipped."""

    def evaluate_material_name(self, material) -> Optional[str]:
        """
        Materials/level.mat      -> Materials/level.xml
        Scenes/level.blend + Rock -> Scenes/level/Rock.xml
        """
        if material is None:
            return None
        asset_path = self.engine.assets.get_asset_path(material)
        if not asset_path or not asset_path.strip():
            return None
        rel_path = get_rel_path_from_asset_path(self.engine.subfolder, asset_path)
        if asset_path.lower().endswith(".mat"):
            return replace_extension(rel_path, ".xml")
        return replace_extension(rel_path, "/" + safe_file_name(material.name) + ".xml")

    def setup_flags(self, material, props=None) -> ShaderArguments:
        """Render flags and main texture transform of ``material``."""
        blend = get_blend_method(material)
        offset, scale = Vector2(0.0, 0.0), Vector2(1.0, 1.0)
        has_emission = False

        if props is None:
            props = PrincipledBSDFAnalyzer().analyze(material)
        if props is not None:
            has_emission = props.has_emission
            if props.base_color_texture is not None:
                offset = Vector2(*props.base_color_texture.offset)
                scale = Vector2(*props.base_color_texture.scale)

        return ShaderArguments(
            shader=type(self).__name__,
            transparent=blend == "BLEND",
            alpha_test=blend == "CLIP",
            has_emission=has_emission,
            main_texture_offset=offset,
            main_texture_scale=scale,
        )

    def open_material_document(self, material):
        """(resource name, sink) for the material; the sink is None if up to date."""
        name = self.evaluate_material_name(material)
        assets = self.engine.assets
        return name, self.engine.try_create_xml(
            assets.get_key(material), name, assets.get_last_write_time(material))


class MaterialExporterRegistry:
    """Holds exporter variants, highest priority first."""

    def __init__(self, exporters=()):
        self._exporters: List[MaterialExporter] = []
        for exporter in exporters:
            self.register(exporter)

    def register(self, exporter: MaterialExporter) -> None:
        self._exporters.append(exporter)
        self._exporters.sort(key=lambda e: e.priority, reverse=True)

    @property
    def exporters(self) -> List[MaterialExporter]:
        return list(self._exporters)

    def find_exporter(self, material) -> Optional[MaterialExporter]:
        for exporter in self._exporters:
            if exporter.can_export_material(material):
                return exporter
        return None

    def evaluate_material_name(self, material) -> Optional[str]:
        exporter = self.find_exporter(material)
        return exporter.evaluate_material_name(material) if exporter else None

    def export_material(self, material) -> bool:
        exporter = self.find_exporter(material)
        if exporter is None:
            return False
        exporter.export_material(material)
        return True
