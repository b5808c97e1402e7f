"""Urho3D material data structures."""

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Union


class Vector2(NamedTuple):
    x: float = 0.0
    y: float = 0.0


class Vector3(NamedTuple):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Vector4(NamedTuple):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0


class Quaternion(NamedTuple):
    """Rotation stored in Urho3D order: w, x, y, z."""
    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Color(NamedTuple):
    """Linear float color, components 0..1."""
    r: float = 1.0
    g: float = 1.0
    b: float = 1.0
    a: float = 1.0


class Color32(NamedTuple):
    """8-bit color, components 0..255."""
    r: int = 255
    g: int = 255
    b: int = 255
    a: int = 255


# Values accepted in UrhoPBRMaterial.extra_parameters
ParameterValue = Union[float, int, Vector2, Vector3, Vector4, Quaternion, Color, Color32, str]


@dataclass(frozen=True)
class ShaderArguments:
    """Flags and UV transform of a simple (non-PBR) material."""
    shader: str = ""
    transparent: bool = False
    alpha_test: bool = False
    has_emission: bool = False
    main_texture_offset: Vector2 = Vector2(0.0, 0.0)
    main_texture_scale: Vector2 = Vector2(1.0, 1.0)


@dataclass
class UrhoPBRMaterial:
    """
    Normalized PBR material, filled in by an exporter variant and
    consumed once by write_material().

    Texture fields hold resolved resource names ("Textures/stone.dds");
    an empty string means the slot is not bound.
    """

    technique: str = "Techniques/PBR/PBRNoTexture.xml"

    base_color_texture: Optional[str] = None
    normal_texture: Optional[str] = None
    metallic_roughness_texture: Optional[str] = None
    emissive_texture: Optional[str] = None
    ao_texture: Optional[str] = None

    emissive_color: Color = Color(0.0, 0.0, 0.0, 1.0)
    base_color: Color = Color(1.0, 1.0, 1.0, 1.0)
    mat_env_map_color: Color = Color(1.0, 1.0, 1.0, 1.0)
    mat_spec_color: Color = Color(0.0, 0.0, 0.0, 1.0)

    roughness: float = 0.5
    metallic: float = 0.0
    u_offset: Vector4 = Vector4(1.0, 0.0, 0.0, 0.0)
    v_offset: Vector4 = Vector4(0.0, 1.0, 0.0, 0.0)

    # Insertion order is the output order
    extra_parameters: Dict[str, ParameterValue] = field(default_factory=dict)

    pixel_shader_defines: List[str] = field(default_factory=list)
    vertex_shader_defines: List[str] = field(default_factory=list)
