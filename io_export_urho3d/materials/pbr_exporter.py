"""Export Principled BSDF materials through the Urho3D PBR technique family."""

from __future__ import annotations

from typing import Optional

from ..data.urho_material import Color, ShaderArguments, UrhoPBRMaterial
from ..formats.material_writer import build_ao_texture_name, uv_transform, write_material
from .analyzer import PBRProperties, PrincipledBSDFAnalyzer, TextureInfo
from .exporter import MaterialExporter


class PrincipledMaterialExporter(MaterialExporter):
    """
    Urho3D PBR technique naming (from CoreData/Techniques/PBR/):

      Without a metallic/roughness map:
        PBR/PBR{NoTexture|Diff|Normal|DiffNormal}[AO|Emissive][Alpha]

      With a metallic/roughness map (specular slot, R = roughness, G = metallic):
        PBR/PBRMetallicRough[Diff][Normal]Spec[AO|Emissive][Alpha]

    AO and emission share the emissive texture unit, so a material gets
    at most one of the two suffixes.
    """

    priority = 10

    def __init__(self, engine, analyzer: Optional[PrincipledBSDFAnalyzer] = None):
        super().__init__(engine)
        self.analyzer = analyzer or PrincipledBSDFAnalyzer()

    def can_export_material(self, material) -> bool:
        return self.analyzer.analyze(material) is not None

    def export_material(self, material) -> Optional[str]:
        props = self.analyzer.analyze(material)
        if props is None:
            return None

        name, sink = self.open_material_document(material)
        if sink is None:
            return None

        with sink:
            urho_material = self.build_material(props, self.setup_flags(material, props))
            write_material(sink, urho_material.technique, urho_material, self.engine.log)
        return name

    def resolve_texture(self, info: Optional[TextureInfo]) -> Optional[str]:
        if info is None or info.image is None:
            return None
        self.engine.schedule_asset_export(info.image)
        return self.engine.evaluate_texture_name(info.image)

    def build_material(self, props: PBRProperties, arguments: ShaderArguments) -> UrhoPBRMaterial:
        result = UrhoPBRMaterial()

        result.base_color_texture = self.resolve_texture(props.base_color_texture)
        result.normal_texture = self.resolve_texture(props.normal_texture)
        spec_image = props.metallic_roughness_image
        if spec_image is not None:
            result.metallic_roughness_texture = self.resolve_texture(TextureInfo(image=spec_image))
        result.emissive_texture = self.resolve_texture(props.emission_texture)

        if not result.emissive_texture and props.ao_texture is not None:
            ao_image = props.ao_texture.image
            result.ao_texture = build_ao_texture_name(
                self.engine, ao_image, props.occlusion_strength)
            self.engine.schedule_ao_texture(ao_image, result.ao_texture, props.occlusion_strength)

        result.technique = "Techniques/" + self.select_technique(result, arguments) + ".xml"

        bc = props.base_color
        result.base_color = Color(bc[0], bc[1], bc[2], props.alpha)
        result.mat_spec_color = Color(1.0, 1.0, 1.0, 1.0)

        # Urho3D PBR shader: roughness = texture.r + cRoughness (additive)
        if result.metallic_roughness_texture:
            result.metallic = 0.0
            result.roughness = 0.0
        else:
            result.metallic = props.metallic
            result.roughness = props.roughness

        s = props.emission_strength
        if result.emissive_texture:
            result.emissive_color = Color(s, s, s, 1.0)
        elif props.has_emission:
            ec = props.emission_color
            result.emissive_color = Color(ec[0] * s, ec[1] * s, ec[2] * s, 1.0)

        result.u_offset, result.v_offset = uv_transform(arguments)

        if arguments.alpha_test:
            result.pixel_shader_defines.append("ALPHAMASK")
        return result

    def select_technique(self, material: UrhoPBRMaterial, arguments: ShaderArguments) -> str:
        has_diff = bool(material.base_color_texture)
        has_norm = bool(material.normal_texture)

        if material.metallic_roughness_texture:
            tech = "PBR/PBRMetallicRough"
            if has_diff:
                tech += "Diff"
            if has_norm:
                tech += "Normal"
            tech += "Spec"
        elif not has_diff and not has_norm:
            tech = "PBR/PBRNoTexture"
        else:
            tech = "PBR/PBR"
            if has_diff:
                tech += "Diff"
            if has_norm:
                tech += "Normal"

        if material.emissive_texture:
            tech += "Emissive"
        elif material.ao_texture:
            tech += "AO"

        if arguments.transparent or arguments.alpha_test:
            tech += "Alpha"
        return tech
