bl_info = {
    "name": "Urho3D Material Exporter",
    "description": "Export materials, textures and cubemaps to Urho3D format",
    "author": "acs",
    "version": (1, 1, 0),
    "blender": (4, 0, 0),
    "location": "Properties > Render > Urho3D Export",
    "category": "Import-Export",
}

_classes = ()


def _load_classes():
    # bpy only exists inside Blender; the exporter core is importable without it
    from .preferences import UrhoExportPreferences
    from .ui_panel import UrhoExportSettings, URHO_PT_ExportPanel
    from .operators import (
        URHO_OT_Export,
        URHO_OT_ExportCubemaps,
        URHO_OT_ExportMaterials,
        URHO_OT_ExportReport,
    )
    return (
        UrhoExportPreferences,
        UrhoExportSettings,
        URHO_OT_Export,
        URHO_OT_ExportMaterials,
        URHO_OT_ExportCubemaps,
        URHO_OT_ExportReport,
        URHO_PT_ExportPanel,
    )


def register():
    global _classes
    import bpy

    _classes = _load_classes()
    for cls in _classes:
        bpy.utils.register_class(cls)
    bpy.types.Scene.urho_export = bpy.props.PointerProperty(type=_classes[1])


def unregister():
    import bpy

    del bpy.types.Scene.urho_export
    for cls in reversed(_classes):
        bpy.utils.unregister_class(cls)
