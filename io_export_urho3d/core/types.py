from dataclasses import dataclass
import os


@dataclass
class ExportSettings:
    """All export settings, populated from the UI PropertyGroup."""

    # Output
    output_path: str = ""
    subfolder: str = ""       # prefix for every resource name, e.g. "MyGame"
    overwrite: bool = False   # False: skip outputs newer than their source

    # Source
    only_selected: bool = True

    # Content
    export_materials: bool = True
    export_cubemaps: bool = True
    copy_textures: bool = True

    # Logging
    max_messages: int = 500

    def get_target_file_path(self, resource_name: str) -> str:
        return os.path.join(self.output_path, *resource_name.split("/"))
