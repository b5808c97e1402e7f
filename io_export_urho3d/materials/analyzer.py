"""Principled BSDF node tree analyzer for Blender 4.x materials."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class TextureInfo:
    """Image bound to a shader input, with the UV transform of its Mapping node."""
    image: object = None
    offset: Tuple[float, float] = (0.0, 0.0)
    scale: Tuple[float, float] = (1.0, 1.0)


@dataclass
class PBRProperties:
    """Extracted PBR properties from a Principled BSDF node."""

    base_color: Tuple[float, float, float] = (0.8, 0.8, 0.8)
    alpha: float = 1.0
    metallic: float = 0.0
    roughness: float = 0.5
    emission_color: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    emission_strength: float = 1.0
    occlusion_strength: float = 1.0

    base_color_texture: Optional[TextureInfo] = None
    metallic_texture: Optional[TextureInfo] = None
    roughness_texture: Optional[TextureInfo] = None
    normal_texture: Optional[TextureInfo] = None
    emission_texture: Optional[TextureInfo] = None
    ao_texture: Optional[TextureInfo] = None

    @property
    def has_emission(self) -> bool:
        return (self.emission_texture is not None
                or (self.emission_strength > 0.0 and any(c > 0.0 for c in self.emission_color)))

    @property
    def metallic_roughness_image(self):
        """The image feeding both metallic and roughness, if they share one."""
        if self.metallic_texture is None or self.roughness_texture is None:
            return None
        if self.metallic_texture.image is not self.roughness_texture.image:
            return None
        return self.metallic_texture.image


# Nodes that pass an image through to the socket they feed
_PASS_THROUGH = frozenset({
    'SEPRGB', 'SEPARATE_COLOR', 'SEPXYZ', 'MATH', 'MIX_RGB', 'MIX',
    'VALTORGB', 'INVERT', 'GAMMA', 'CURVE_RGB',
})


def get_input(node, *names):
    """Get a node input by trying multiple names (handles Blender 4.0 renames)."""
    for name in names:
        inp = node.inputs.get(name)
        if inp is not None:
            return inp
    return None


def get_blend_method(material) -> str:
    """Blend mode across Blender versions: 'OPAQUE', 'CLIP' or 'BLEND'."""
    blend = getattr(material, "blend_method", "OPAQUE")
    if blend in ("CLIP", "ALPHA_CLIP"):
        return "CLIP"
    if blend == "BLEND":
        return "BLEND"
    return "OPAQUE"


class PrincipledBSDFAnalyzer:
    """
    Walks a Blender material's node tree to extract PBR properties.
    Returns None when the material has no Principled BSDF node.
    """

    def analyze(self, material) -> Optional[PBRProperties]:
        if material is None or not getattr(material, "use_nodes", False) or not material.node_tree:
            return None

        bsdf = self.find_principled_bsdf(material.node_tree)
        if bsdf is None:
            return None

        props = PBRProperties()

        socket = get_input(bsdf, 'Base Color')
        if socket is not None:
            props.base_color_texture = self.get_connected_texture(socket)
            if not socket.is_linked:
                val = socket.default_value
                props.base_color = (val[0], val[1], val[2])

        socket = get_input(bsdf, 'Alpha')
        if socket is not None and not socket.is_linked:
            props.alpha = socket.default_value

        socket = get_input(bsdf, 'Metallic')
        if socket is not None:
            props.metallic_texture = self.get_connected_texture(socket)
            if not socket.is_linked:
                props.metallic = socket.default_value

        socket = get_input(bsdf, 'Roughness')
        if socket is not None:
            props.roughness_texture = self.get_connected_texture(socket)
            if not socket.is_linked:
                props.roughness = socket.default_value

        socket = get_input(bsdf, 'Normal')
        if socket is not None:
            props.normal_texture = self.get_connected_texture(socket)

        # Blender 4.0: "Emission Color" (was "Emission" in older versions)
        socket = get_input(bsdf, 'Emission Color', 'Emission')
        if socket is not None:
            props.emission_texture = self.get_connected_texture(socket)
            if not socket.is_linked:
                val = socket.default_value
                props.emission_color = (val[0], val[1], val[2])
        socket = get_input(bsdf, 'Emission Strength')
        if socket is not None and not socket.is_linked:
            props.emission_strength = socket.default_value

        self.detect_ao_texture(material.node_tree, props)
        return props

    def find_principled_bsdf(self, node_tree):
        for node in node_tree.nodes:
            if node.type == 'BSDF_PRINCIPLED':
                return node
        return None

    def get_connected_texture(self, socket) -> Optional[TextureInfo]:
        """Follow links from a socket to find a connected Image Texture node."""
        if socket is None or not socket.is_linked:
            return None

        node = socket.links[0].from_node

        if node.type == 'TEX_IMAGE':
            return self.texture_info_from_node(node) if node.image else None

        # Normal Map node -> follow its Color input
        if node.type == 'NORMAL_MAP':
            return self.get_connected_texture(node.inputs.get('Color'))

        if node.type in _PASS_THROUGH:
            for inp in node.inputs:
                result = self.get_connected_texture(inp)
                if result:
                    return result
        return None

    def texture_info_from_node(self, node) -> TextureInfo:
        info = TextureInfo(image=node.image)
        vector_input = node.inputs.get('Vector')
        if vector_input is None or not vector_input.is_linked:
            return info
        mapping = vector_input.links[0].from_node
        if mapping.type != 'MAPPING':
            return info
        location = get_input(mapping, 'Location')
        scale = get_input(mapping, 'Scale')
        if location is not None and not location.is_linked:
            info.offset = (location.default_value[0], location.default_value[1])
        if scale is not None and not scale.is_linked:
            info.scale = (scale.default_value[0], scale.default_value[1])
        return info

    def detect_ao_texture(self, node_tree, props: PBRProperties) -> None:
        """
        AO is an image texture named '*ao*' / '*ambient_occlusion*'. When it
        is multiplied into the base color through a Mix node, the mix factor
        is the occlusion strength.
        """
        for node in node_tree.nodes:
            if node.type != 'TEX_IMAGE' or not node.image:
                continue
            name_lower = node.image.name.lower()
            stem = name_lower.rsplit('.', 1)[0]
            if not (stem.endswith('ao') or '_ao' in stem or 'ambient_occlusion' in stem
                    or 'occlusion' in stem):
                continue
            props.ao_texture = self.texture_info_from_node(node)
            for output in node.outputs:
                for link in output.links:
                    mix = link.to_node
                    if mix.type in ('MIX_RGB', 'MIX') and getattr(mix, 'blend_type', '') == 'MULTIPLY':
                        factor = get_input(mix, 'Fac', 'Factor')
                        if factor is not None and not factor.is_linked:
                            props.occlusion_strength = factor.default_value
            return
