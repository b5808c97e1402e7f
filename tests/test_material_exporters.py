import os
from xml.etree import ElementTree

import pytest

from io_export_urho3d.export import create_registry, export_materials
from io_export_urho3d.materials.analyzer import PrincipledBSDFAnalyzer
from io_export_urho3d.materials.exporter import MaterialExporterRegistry
from io_export_urho3d.materials.pbr_exporter import PrincipledMaterialExporter
from io_export_urho3d.materials.simple_exporter import SimpleMaterialExporter

from conftest import FakeImage, FakeMaterial, Node, connect, image_node, principled_node


def _read(engine, name):
    return ElementTree.parse(engine.get_target_file_path(name)).getroot()


def _params(root):
    return {p.get("name"): p.get("value") for p in root.findall("parameter")}


def _textures(root):
    return [(t.get("unit"), t.get("name")) for t in root.findall("texture")]


@pytest.fixture
def diffuse_material():
    albedo = FakeImage("rock_albedo", "Textures/rock_albedo.png")
    mapping = Node('MAPPING', {"Location": (0.0, 0.5, 0.0), "Scale": (2.0, 1.0, 1.0)})
    tex = image_node(albedo, mapping)
    bsdf = principled_node(Roughness=0.4, Metallic=0.0)
    connect(tex, bsdf, "Base Color")
    return FakeMaterial("Rock", nodes=[mapping, tex, bsdf])


class TestAnalyzer:

    def test_no_principled(self):
        assert PrincipledBSDFAnalyzer().analyze(FakeMaterial("Plain")) is None
        assert PrincipledBSDFAnalyzer().analyze(FakeMaterial("Empty", nodes=[])) is None

    def test_values_and_textures(self, diffuse_material):
        props = PrincipledBSDFAnalyzer().analyze(diffuse_material)
        assert props.roughness == 0.4
        assert props.base_color_texture.image.name == "rock_albedo"
        assert props.base_color_texture.offset == (0.0, 0.5)
        assert props.base_color_texture.scale == (2.0, 1.0)
        assert props.ao_texture is None

    def test_normal_map_is_followed(self):
        image = FakeImage("rock_normal", "Textures/rock_normal.png")
        tex = image_node(image)
        normal_map = Node('NORMAL_MAP', {"Color": None, "Strength": 1.0})
        bsdf = principled_node()
        connect(tex, normal_map, "Color")
        connect(normal_map, bsdf, "Normal")
        props = PrincipledBSDFAnalyzer().analyze(FakeMaterial("M", nodes=[tex, normal_map, bsdf]))
        assert props.normal_texture.image is image

    def test_ao_strength_from_multiply(self):
        ao_image = FakeImage("rock_ao", "Textures/rock_ao.png")
        ao = image_node(ao_image)
        mix = Node('MIX_RGB', {"Fac": 0.5, "Color1": (1, 1, 1, 1), "Color2": None},
                   blend_type='MULTIPLY')
        bsdf = principled_node()
        connect(ao, mix, "Color2")
        connect(mix, bsdf, "Base Color")
        props = PrincipledBSDFAnalyzer().analyze(FakeMaterial("M", nodes=[ao, mix, bsdf]))
        assert props.ao_texture.image is ao_image
        assert props.occlusion_strength == 0.5


class TestPrincipledExporter:

    def test_diffuse_material(self, engine, diffuse_material):
        exporter = PrincipledMaterialExporter(engine)
        assert exporter.can_export_material(diffuse_material)

        name = exporter.export_material(diffuse_material)

        assert name == "Materials/level/Rock.xml"
        root = _read(engine, name)
        assert root.find("technique").get("name") == "Techniques/PBR/PBRDiff.xml"
        assert _textures(root) == [("diffuse", "Textures/rock_albedo.png")]
        params = _params(root)
        assert params["Roughness"] == "0.4"
        assert params["Metallic"] == "0"
        assert params["UOffset"] == "2 0 0 0"
        assert params["VOffset"] == "0 1 0 0.5"
        assert root.find("shader") is None
        assert [img.name for img in engine.scheduled_assets] == ["rock_albedo"]

    def test_ao_goes_to_emissive_unit(self, engine):
        albedo = image_node(FakeImage("stone_albedo", "Textures/stone_albedo.png"))
        ao_image = FakeImage("rock_ao", "Textures/rock_ao.png")
        ao = image_node(ao_image)
        mix = Node('MIX_RGB', {"Fac": 0.5, "Color1": (1, 1, 1, 1), "Color2": None},
                   blend_type='MULTIPLY')
        bsdf = principled_node()
        connect(albedo, mix, "Color1")
        connect(ao, mix, "Color2")
        connect(mix, bsdf, "Base Color")

        name = PrincipledMaterialExporter(engine).export_material(
            FakeMaterial("Stone", nodes=[albedo, ao, mix, bsdf]))

        root = _read(engine, name)
        assert _textures(root) == [("diffuse", "Textures/stone_albedo.png"),
                                   ("emissive", "Textures/rock_ao.AO.0.500.png")]
        assert root.find("technique").get("name") == "Techniques/PBR/PBRDiffAO.xml"
        assert engine.ao_textures == {"Textures/rock_ao.AO.0.500.png": (ao_image, 0.5)}

    def test_emission_texture_replaces_ao(self, engine):
        glow = image_node(FakeImage("lamp_emit", "Textures/lamp_emit.png"))
        ao = image_node(FakeImage("lamp_ao", "Textures/lamp_ao.png"))
        bsdf = principled_node(**{"Emission Strength": 2.0})
        connect(glow, bsdf, "Emission Color")

        name = PrincipledMaterialExporter(engine).export_material(
            FakeMaterial("Lamp", nodes=[glow, ao, bsdf]))

        root = _read(engine, name)
        assert _textures(root) == [("emissive", "Textures/lamp_emit.png")]
        assert root.find("technique").get("name") == "Techniques/PBR/PBRNoTextureEmissive.xml"
        assert _params(root)["MatEmissiveColor"] == "2 2 2 1"
        assert engine.ao_textures == {}

    def test_metallic_roughness_map(self, engine):
        packed = image_node(FakeImage("rock_mr", "Textures/rock_mr.png"))
        separate = Node('SEPARATE_COLOR', {"Color": None})
        bsdf = principled_node()
        connect(packed, separate, "Color")
        connect(separate, bsdf, "Metallic")
        connect(separate, bsdf, "Roughness")

        name = PrincipledMaterialExporter(engine).export_material(
            FakeMaterial("Metal", nodes=[packed, separate, bsdf]))

        root = _read(engine, name)
        assert _textures(root) == [("specular", "Textures/rock_mr.png")]
        assert root.find("technique").get("name") == "Techniques/PBR/PBRMetallicRoughSpec.xml"
        assert _params(root)["Roughness"] == "0"

    def test_alpha_clip(self, engine):
        material = FakeMaterial("Leaves", nodes=[principled_node()], blend_method="CLIP")
        root = _read(engine, PrincipledMaterialExporter(engine).export_material(material))
        assert root.find("technique").get("name") == "Techniques/PBR/PBRNoTextureAlpha.xml"
        shader = root.find("shader")
        assert shader.get("psdefines") == "ALPHAMASK"
        assert shader.get("vsdefines") == ""

    def test_unchanged_material_is_skipped(self, assets, settings):
        from io_export_urho3d.core.engine import Urho3DEngine

        material = FakeMaterial("Rock", nodes=[principled_node()], mtime=100.0)
        first = Urho3DEngine(assets, settings)
        name = PrincipledMaterialExporter(first).export_material(material)
        path = first.get_target_file_path(name)
        os.utime(path, (200.0, 200.0))

        again = Urho3DEngine(assets, settings)
        assert PrincipledMaterialExporter(again).export_material(material) is None
        assert os.path.getmtime(path) == 200.0

    def test_failed_build_does_not_block_retry(self, engine, diffuse_material, monkeypatch):
        exporter = PrincipledMaterialExporter(engine)

        def broken_build(props, arguments):
            raise RuntimeError("analysis failed")

        monkeypatch.setattr(exporter, "build_material", broken_build)
        with pytest.raises(RuntimeError):
            exporter.export_material(diffuse_material)
        assert not os.path.exists(engine.get_target_file_path("Materials/level/Rock.xml"))

        monkeypatch.undo()
        assert exporter.export_material(diffuse_material) == "Materials/level/Rock.xml"


class TestSimpleExporter:

    def test_viewport_material(self, engine):
        material = FakeMaterial("Plain", blend_method="CLIP")
        name = SimpleMaterialExporter(engine).export_material(material)

        root = _read(engine, name)
        assert root.find("technique").get("name") == "Techniques/NoTextureAlpha.xml"
        assert [child.tag for child in root] == ["technique"] + ["parameter"] * 4 + ["shader"]
        params = _params(root)
        assert params["MatDiffColor"] == "0.5 0.25 1 1"
        assert params["MatSpecColor"] == "0.5 0.5 0.5 225"
        assert params["UOffset"] == "1 0 0 0"
        assert root.find("shader").get("psdefines") == "ALPHAMASK"

    def test_image_without_principled(self, engine):
        image = FakeImage("decal", "Textures/decal.png")
        emission = Node('EMISSION', {"Color": None})
        tex = image_node(image)
        connect(tex, emission, "Color")
        name = SimpleMaterialExporter(engine).export_material(
            FakeMaterial("Decal", nodes=[tex, emission]))

        root = _read(engine, name)
        assert root.find("technique").get("name") == "Techniques/Diff.xml"
        assert _textures(root) == [("diffuse", "Textures/decal.png")]
        assert engine.scheduled_assets == [image]

    def test_failed_material_can_be_exported_again(self, engine):
        material = FakeMaterial("Plain")
        material.diffuse_color = None
        exporter = SimpleMaterialExporter(engine)
        with pytest.raises(TypeError):
            exporter.export_material(material)

        material.diffuse_color = (1.0, 1.0, 1.0, 1.0)
        name = exporter.export_material(material)
        assert _params(_read(engine, name))["MatDiffColor"] == "1 1 1 1"


class TestMaterialNames:

    def test_mat_asset(self, engine):
        exporter = SimpleMaterialExporter(engine)
        assert exporter.evaluate_material_name(
            FakeMaterial("Rock", asset_path="Assets/Materials/Rock.mat")) == "Materials/Rock.xml"

    def test_embedded_material(self, engine):
        exporter = SimpleMaterialExporter(engine)
        assert exporter.evaluate_material_name(
            FakeMaterial("Rock: wet", asset_path="Scenes/level.blend")) == "Scenes/level/Rock_ wet.xml"

    def test_missing(self, engine):
        exporter = SimpleMaterialExporter(engine)
        assert exporter.evaluate_material_name(None) is None
        assert exporter.evaluate_material_name(FakeMaterial("X", asset_path="")) is None


class TestRegistry:

    def test_requires_engine(self):
        with pytest.raises(ValueError):
            SimpleMaterialExporter(None)

    def test_priority_order(self, engine, diffuse_material):
        simple = SimpleMaterialExporter(engine)
        pbr = PrincipledMaterialExporter(engine)
        registry = MaterialExporterRegistry([simple, pbr])

        assert registry.exporters == [pbr, simple]
        assert registry.find_exporter(diffuse_material) is pbr
        assert registry.find_exporter(FakeMaterial("Plain")) is simple
        assert registry.find_exporter(None) is None
        assert registry.evaluate_material_name(diffuse_material) == "Materials/level/Rock.xml"

    def test_export_material(self, engine, diffuse_material):
        registry = create_registry(engine)
        assert registry.export_material(diffuse_material)
        assert not registry.export_material(None)

    def test_export_run_logs_failures(self, engine, diffuse_material):
        broken = FakeMaterial("Broken", nodes=[principled_node()])
        broken.node_tree.nodes[0].inputs["Base Color"].default_value = None

        written = export_materials(engine, [diffuse_material, None, broken])

        assert written == ["Materials/level/Rock.xml"]
        assert engine.log.error_count == 1
