"""Fallback exporter for materials that don't map onto the PBR model."""

from __future__ import annotations

from typing import Optional

from ..data.urho_material import Color
from ..formats.material_writer import (
    write_common_parameters,
    write_parameter,
    write_technique,
    write_texture,
)
from .exporter import MaterialExporter


def first_image(material):
    """Image of the first Image Texture node in the material's node tree."""
    node_tree = getattr(material, "node_tree", None)
    if not getattr(material, "use_nodes", False) or node_tree is None:
        return None
    for node in node_tree.nodes:
        if node.type == 'TEX_IMAGE' and node.image:
            return node.image
    return None


class SimpleMaterialExporter(MaterialExporter):
    """
    Legacy (non-PBR) technique for viewport-only materials and node
    trees without a Principled BSDF:
        NoTexture[Alpha] or Diff[Alpha]
    """

    priority = 0

    def can_export_material(self, material) -> bool:
        return material is not None

    def export_material(self, material) -> Optional[str]:
        name, sink = self.open_material_document(material)
        if sink is None:
            return None

        with sink:
            arguments = self.setup_flags(material)
            image = first_image(material)
            tech = "Diff" if image is not None else "NoTexture"
            if arguments.transparent or arguments.alpha_test:
                tech += "Alpha"

            root = sink.begin("material")
            write_technique(root, f"Techniques/{tech}.xml")
            if image is not None:
                write_texture(self.engine, image, root, "diffuse")

            c = material.diffuse_color
            write_parameter(root, "MatDiffColor", Color(c[0], c[1], c[2], c[3] if len(c) > 3 else 1.0))

            # Legacy specular: invert roughness as "power"
            spec = getattr(material, "specular_intensity", 0.5)
            power = max(1.0, ((1.0 - material.roughness) * 30.0) ** 2.0)
            write_parameter(root, "MatSpecColor", Color(spec, spec, spec, power))

            write_common_parameters(root, arguments)
        return name
