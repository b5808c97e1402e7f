import bpy
from bpy.props import IntProperty, StringProperty


class UrhoExportPreferences(bpy.types.AddonPreferences):
    bl_idname = __package__

    default_subfolder: StringProperty(
        name="Default Subfolder",
        description="Resource name prefix used for new scenes",
        default="",
    )

    max_messages: IntProperty(
        name="Max Log Messages",
        description="Maximum number of log messages to display",
        default=500,
        min=100,
        max=5000,
    )

    def draw(self, context):
        layout = self.layout
        layout.prop(self, "default_subfolder")
        layout.prop(self, "max_messages")
