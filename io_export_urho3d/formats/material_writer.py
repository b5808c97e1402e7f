"""Write Urho3D material XML documents."""

from __future__ import annotations

from numbers import Real
from typing import Callable, List, Optional, Tuple
from xml.etree.ElementTree import Element, SubElement

from ..core.logging import ExportLogger
from ..core.paths import replace_extension
from ..data.urho_material import (
    Color,
    Color32,
    ParameterValue,
    Quaternion,
    ShaderArguments,
    UrhoPBRMaterial,
    Vector2,
    Vector3,
    Vector4,
)
from .xml_utils import (
    XmlSink,
    color32_to_str,
    color_to_str,
    quaternion_to_str,
    scalar_to_str,
    vector2_to_str,
    vector3_to_str,
    vector4_to_str,
)

# Checked in order; the first matching type wins
_PARAMETER_FORMATTERS: List[Tuple[type, Callable[..., str]]] = [
    (Vector2, vector2_to_str),
    (Vector3, vector3_to_str),
    (Vector4, vector4_to_str),
    (Quaternion, quaternion_to_str),
    (Color, color_to_str),
    (Color32, color32_to_str),
    (str, str),
    (Real, scalar_to_str),
]

AO_FULL_STRENGTH = 0.999


def format_parameter_value(value: ParameterValue) -> Optional[str]:
    """Return the Urho3D text form of a parameter value, or None if unsupported."""
    if isinstance(value, bool):
        return None
    for value_type, formatter in _PARAMETER_FORMATTERS:
        if isinstance(value, value_type):
            return formatter(value)
    return None


def write_parameter(parent: Element, name: str, value: ParameterValue) -> bool:
    """Add a <parameter name="..." value="..." /> element. Returns False for unsupported values."""
    text = format_parameter_value(value)
    if text is None:
        return False
    SubElement(parent, "parameter", name=name, value=text)
    return True


def write_technique(parent: Element, name: str) -> Element:
    return SubElement(parent, "technique", name=name)


def write_texture_name(resource_name: Optional[str], parent: Element, unit: str) -> bool:
    """
    Bind an already resolved texture name to a texture unit.

    Nothing is written for an empty name; the caller may then try another
    texture for the same unit.
    """
    if not resource_name or not resource_name.strip():
        return False
    SubElement(parent, "texture", unit=unit, name=resource_name)
    return True


def write_texture(engine, texture, parent: Element, unit: str) -> bool:
    """Schedule a texture asset for export and bind its resource name to a unit."""
    if texture is None:
        return False
    engine.schedule_asset_export(texture)
    return write_texture_name(engine.evaluate_texture_name(texture), parent, unit)


def write_material(
    sink: XmlSink,
    technique_name: Optional[str],
    material: UrhoPBRMaterial,
    log: Optional[ExportLogger] = None,
) -> Element:
    """
    Write a UrhoPBRMaterial as the <material> root of ``sink``.

    Output format:
    <material>
        <technique name="Techniques/..." />
        <texture unit="diffuse" name="Textures/..." />
        <parameter name="MatDiffColor" value="r g b a" />
        ...
        <shader psdefines="..." vsdefines="..." />
    </material>

    ``technique_name`` falls back to ``material.technique`` when empty.
    """
    if sink is None:
        raise ValueError("write_material requires an output sink")
    if material is None:
        raise ValueError("write_material requires a material")

    root = sink.begin("material")

    write_technique(root, technique_name or material.technique)

    write_texture_name(material.base_color_texture, root, "diffuse")
    write_texture_name(material.normal_texture, root, "normal")
    write_texture_name(material.metallic_roughness_texture, root, "specular")
    # Emissive and AO share the emissive unit; emission wins
    if not write_texture_name(material.emissive_texture, root, "emissive"):
        write_texture_name(material.ao_texture, root, "emissive")

    write_parameter(root, "MatEmissiveColor", material.emissive_color)
    write_parameter(root, "MatDiffColor", material.base_color)
    write_parameter(root, "MatEnvMapColor", material.mat_env_map_color)
    write_parameter(root, "MatSpecColor", material.mat_spec_color)
    write_parameter(root, "Roughness", material.roughness)
    write_parameter(root, "Metallic", material.metallic)
    write_parameter(root, "UOffset", material.u_offset)
    write_parameter(root, "VOffset", material.v_offset)

    for name, value in material.extra_parameters.items():
        if not write_parameter(root, name, value) and log is not None:
            log.warning(f"Skipped parameter '{name}': unsupported value type "
                        f"{type(value).__name__}")

    if material.pixel_shader_defines or material.vertex_shader_defines:
        SubElement(root, "shader",
                   psdefines=" ".join(material.pixel_shader_defines),
                   vsdefines=" ".join(material.vertex_shader_defines))

    return root


def write_alpha_test(parent: Element) -> Element:
    return SubElement(parent, "shader", psdefines="ALPHAMASK")


def uv_transform(arguments: ShaderArguments) -> Tuple[Vector4, Vector4]:
    """UOffset and VOffset rows for the main texture scale and offset."""
    scale = arguments.main_texture_scale
    offset = arguments.main_texture_offset
    return (Vector4(scale[0], 0.0, 0.0, offset[0]),
            Vector4(0.0, scale[1], 0.0, offset[1]))


def write_common_parameters(parent: Element, arguments: ShaderArguments) -> None:
    """Write the UV transform of a simple material, plus ALPHAMASK for cutout materials."""
    u_offset, v_offset = uv_transform(arguments)
    write_parameter(parent, "UOffset", u_offset)
    write_parameter(parent, "VOffset", v_offset)
    if arguments.alpha_test:
        write_alpha_test(parent)


def build_ao_texture_name(engine, occlusion, occlusion_strength: float) -> Optional[str]:
    """
    Resource name of the AO texture generated from ``occlusion``.

    Partial strengths get the strength in the name so different variants
    of one source texture don't overwrite each other:
        Textures/rock.dds, 1.0 -> Textures/rock.AO.png
        Textures/rock.dds, 0.5 -> Textures/rock.AO.0.500.png
    """
    if occlusion is None:
        return None
    if occlusion_strength <= 0:
        return None
    base_name = engine.evaluate_texture_name(occlusion)
    if occlusion_strength >= AO_FULL_STRENGTH:
        return replace_extension(base_name, ".AO.png")
    return replace_extension(base_name, f".AO.{occlusion_strength:.3f}.png")
