import bpy

from .blender.assets import BlenderAssetDatabase, save_image, save_pixels
from .core.engine import Urho3DEngine
from .core.logging import ExportLogger
from .core.types import ExportSettings
from .export import export_cubemaps, export_materials, scheduled_cubemaps
from .materials.texture_export import export_ao_textures, export_scheduled_textures

# Module-level storage for last export log (used by report dialog)
_last_export_log: ExportLogger | None = None


def get_last_export_log() -> ExportLogger | None:
    return _last_export_log


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _build_settings(scene_settings) -> ExportSettings:
    """Convert Blender PropertyGroup to ExportSettings dataclass."""
    max_messages, subfolder = 500, scene_settings.subfolder
    addon = bpy.context.preferences.addons.get(__package__)
    if addon is not None:
        max_messages = addon.preferences.max_messages
        subfolder = subfolder or addon.preferences.default_subfolder
    return ExportSettings(
        output_path=bpy.path.abspath(scene_settings.output_path),
        subfolder=subfolder,
        overwrite=scene_settings.overwrite,
        only_selected=scene_settings.only_selected,
        export_materials=scene_settings.export_materials,
        export_cubemaps=scene_settings.export_cubemaps,
        copy_textures=scene_settings.copy_textures,
        max_messages=max_messages,
    )


def _create_engine(context) -> Urho3DEngine:
    settings = _build_settings(context.scene.urho_export)
    return Urho3DEngine(BlenderAssetDatabase(), settings)


def _get_materials(context, settings: ExportSettings) -> list:
    """Materials used by the objects to export, without duplicates."""
    objects = context.selected_objects if settings.only_selected else context.scene.objects
    materials = []
    for obj in objects:
        for slot in getattr(obj, "material_slots", ()):
            if slot.material is not None and slot.material not in materials:
                materials.append(slot.material)
    return materials


def _get_cubemaps(engine: Urho3DEngine) -> list:
    """Cubemap images: flagged or 6:1 strip images in the file."""
    return [img for img in bpy.data.images if engine.assets.is_cubemap(img)]


def _export_textures(engine: Urho3DEngine) -> int:
    assets = engine.assets
    count = export_scheduled_textures(engine, save_image)
    count += export_ao_textures(engine, assets.read_pixels, save_pixels)
    return count


def _finish_export(operator, log: ExportLogger, summary: str) -> set:
    """Store log and show report if needed. Returns operator result set."""
    global _last_export_log
    _last_export_log = log

    if log.has_errors:
        operator.report({'ERROR'}, f"{summary} with {log.error_count} errors")
    else:
        operator.report({'INFO'}, f"{summary}, {log.warning_count} warnings")

    if log.has_errors or log.warning_count > 0:
        bpy.ops.urho.export_report('INVOKE_DEFAULT')

    return {'FINISHED'}


# ---------------------------------------------------------------------------
# Export All
# ---------------------------------------------------------------------------

class URHO_OT_Export(bpy.types.Operator):
    bl_idname = "urho.export"
    bl_label = "Export"
    bl_description = "Export materials, textures and cubemaps"
    bl_options = {'REGISTER'}

    @classmethod
    def poll(cls, context):
        return bool(context.scene.urho_export.output_path)

    def execute(self, context):
        engine = _create_engine(context)
        settings = engine.settings

        materials = []
        if settings.export_materials:
            materials = export_materials(engine, _get_materials(context, settings))

        cubemaps = []
        if settings.export_cubemaps:
            sources = _get_cubemaps(engine)
            sources += [c for c in scheduled_cubemaps(engine) if c not in sources]
            cubemaps = export_cubemaps(engine, sources)

        textures = 0
        if settings.copy_textures:
            try:
                textures = _export_textures(engine)
            except Exception as e:
                engine.log.error(f"Failed to export textures: {e}")

        return _finish_export(
            self, engine.log,
            f"Exported {len(materials)} material(s), {len(cubemaps)} cubemap(s), "
            f"{textures} texture(s)")


# ---------------------------------------------------------------------------
# Export Materials Only
# ---------------------------------------------------------------------------

class URHO_OT_ExportMaterials(bpy.types.Operator):
    bl_idname = "urho.export_materials"
    bl_label = "Materials"
    bl_description = "Export only material XML files"
    bl_options = {'REGISTER'}

    @classmethod
    def poll(cls, context):
        return bool(context.scene.urho_export.output_path)

    def execute(self, context):
        engine = _create_engine(context)
        materials = _get_materials(context, engine.settings)
        if not materials:
            self.report({'WARNING'}, "No materials to export")
            return {'CANCELLED'}

        written = export_materials(engine, materials)
        return _finish_export(self, engine.log, f"Exported {len(written)} material(s)")


# ---------------------------------------------------------------------------
# Export Cubemaps Only
# ---------------------------------------------------------------------------

class URHO_OT_ExportCubemaps(bpy.types.Operator):
    bl_idname = "urho.export_cubemaps"
    bl_label = "Cubemaps"
    bl_description = "Export cubemap images as Urho3D cubemap XML + DDS"
    bl_options = {'REGISTER'}

    @classmethod
    def poll(cls, context):
        return bool(context.scene.urho_export.output_path)

    def execute(self, context):
        engine = _create_engine(context)
        cubemaps = _get_cubemaps(engine)
        if not cubemaps:
            self.report({'WARNING'}, "No cubemap images (6:1 strips) found")
            return {'CANCELLED'}

        written = export_cubemaps(engine, cubemaps)
        return _finish_export(self, engine.log, f"Exported {len(written)} cubemap(s)")


# ---------------------------------------------------------------------------
# Export Report
# ---------------------------------------------------------------------------

class URHO_OT_ExportReport(bpy.types.Operator):
    bl_idname = "urho.export_report"
    bl_label = "Export Report"
    bl_description = "Show messages of the last export"

    def execute(self, context):
        return {'FINISHED'}

    def invoke(self, context, event):
        return context.window_manager.invoke_props_dialog(self, width=500)

    def draw(self, context):
        layout = self.layout
        log = get_last_export_log()
        if log is None:
            layout.label(text="No export log available.")
            return

        errors = log.by_level("ERROR")
        warnings = log.by_level("WARNING")
        infos = log.by_level("INFO")

        row = layout.row()
        row.label(text=f"Errors: {len(errors)}", icon='ERROR')
        row.label(text=f"Warnings: {len(warnings)}", icon='INFO')
        row.label(text=f"Info: {len(infos)}", icon='CHECKMARK')

        for title, icon, messages in (("Errors", 'ERROR', errors), ("Warnings", 'INFO', warnings)):
            if not messages:
                continue
            box = layout.box()
            box.label(text=title, icon=icon)
            for msg in messages[:20]:
                box.label(text=msg)
            if len(messages) > 20:
                box.label(text=f"... and {len(messages) - 20} more")

        if infos:
            box = layout.box()
            box.label(text=f"Info ({len(infos)} messages)", icon='CHECKMARK')
            for msg in infos[-10:]:
                box.label(text=msg)
