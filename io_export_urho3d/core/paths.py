"""Resource name derivation from source asset paths.

All functions here are pure string transforms. Paths use forward slashes,
the way Urho3D resource names are written.
"""

import posixpath
import re

# Characters that are not allowed in file names on any target platform
_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def normalize_path(path: str) -> str:
    """Convert backslashes to forward slashes and drop Blender's '//' prefix."""
    path = path.replace("\\", "/")
    if path.startswith("//"):
        path = path[2:]
    return path


def replace_extension(path: str, new_extension: str) -> str:
    """Replace the extension of the last path segment.

    ``new_extension`` may be a plain extension (".xml") or a longer
    suffix (".AO.png", "/Material.xml"); it is appended to the path with
    its current extension removed.
    """
    if not path:
        return path
    directory, filename = posixpath.split(path)
    stem = posixpath.splitext(filename)[0]
    return posixpath.join(directory, stem + new_extension)


def get_rel_path_from_asset_path(subfolder: str, asset_path: str) -> str:
    """Map a project asset path to a resource path under ``subfolder``.

    Leading "Assets/" (project root) and "./" segments are stripped.
    """
    path = normalize_path(asset_path).lstrip("/")
    while path.startswith("./"):
        path = path[2:]
    if path.lower().startswith("assets/"):
        path = path[len("assets/"):]
    subfolder = normalize_path(subfolder or "").strip("/")
    if subfolder:
        return f"{subfolder}/{path}"
    return path


def safe_file_name(name: str) -> str:
    """Replace characters that cannot appear in a file name with '_'."""
    cleaned = _UNSAFE_CHARS.sub("_", name).strip()
    return cleaned or "_"
