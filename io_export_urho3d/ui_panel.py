import bpy
from bpy.props import BoolProperty, StringProperty


class UrhoExportSettings(bpy.types.PropertyGroup):
    """Export settings stored per-scene."""

    # --- Output ---
    output_path: StringProperty(
        name="Output Path",
        description="Root output directory for exported Urho3D resources",
        default="",
        subtype='DIR_PATH',
    )

    subfolder: StringProperty(
        name="Subfolder",
        description="Prefix added to every exported resource name",
        default="",
    )

    overwrite: BoolProperty(
        name="Overwrite Unchanged",
        description="Rewrite outputs even when they are newer than their source",
        default=False,
    )

    # --- Source ---
    only_selected: BoolProperty(
        name="Only Selected",
        description="Export only materials of selected objects",
        default=True,
    )

    # --- Content ---
    export_materials: BoolProperty(
        name="Materials",
        description="Export material XML files",
        default=True,
    )

    export_cubemaps: BoolProperty(
        name="Cubemaps",
        description="Export 6:1 strip images as cubemap XML + DDS",
        default=True,
    )

    copy_textures: BoolProperty(
        name="Textures",
        description="Copy textures referenced by materials and generate AO textures",
        default=True,
    )


class URHO_PT_ExportPanel(bpy.types.Panel):
    bl_label = "Urho3D Export"
    bl_idname = "URHO_PT_export_panel"
    bl_space_type = 'PROPERTIES'
    bl_region_type = 'WINDOW'
    bl_context = "render"

    def draw(self, context):
        layout = self.layout
        settings = context.scene.urho_export

        box = layout.box()
        box.label(text="Output", icon='EXPORT')
        box.prop(settings, "output_path")
        box.prop(settings, "subfolder")
        box.prop(settings, "overwrite")

        box = layout.box()
        box.label(text="Content", icon='MATERIAL')
        box.prop(settings, "only_selected")
        row = box.row(align=True)
        row.prop(settings, "export_materials", toggle=True)
        row.prop(settings, "export_cubemaps", toggle=True)
        row.prop(settings, "copy_textures", toggle=True)

        layout.separator()
        row = layout.row(align=True)
        row.scale_y = 1.5
        row.operator("urho.export", icon='EXPORT')
        row.operator("urho.export_report", text="", icon='TEXT')

        box = layout.box()
        box.label(text="Export Individual", icon='DOWNARROW_HLT')
        row = box.row(align=True)
        row.operator("urho.export_materials", icon='MATERIAL')
        row.operator("urho.export_cubemaps", icon='WORLD')
