from numbers import Integral
from typing import Callable, Optional
from xml.etree.ElementTree import Element, tostring
from xml.dom import minidom

import numpy as np

from ..data.urho_material import Color, Color32, Quaternion, Vector2, Vector3, Vector4


def xml_to_string(root: Element) -> str:
    """Convert an ElementTree Element to a pretty-printed XML string."""
    rough = tostring(root, encoding='unicode')
    parsed = minidom.parseString(rough)
    return parsed.toprettyxml(indent="    ", encoding=None)


def float_to_str(v: float) -> str:
    """Locale-independent shortest float form: 0.4 -> '0.4', 0.0 -> '0'."""
    text = f"{v:g}"
    return "0" if text == "-0" else text


def scalar_to_str(v) -> str:
    """
    Scalar parameter text that reads back as the 32-bit float Urho3D stores.

    Short form where it is exact, more digits otherwise:
    0.4 -> '0.4', 16777216 -> '16777216', 0.123456789 -> '0.123456791'.
    """
    if isinstance(v, Integral):
        return str(int(v))
    target = np.float32(v)
    text = f"{v:g}"
    if np.float32(text) != target:
        text = f"{float(target):.9g}"
    return "0" if text == "-0" else text


def vector2_to_str(v: Vector2) -> str:
    return f"{float_to_str(v[0])} {float_to_str(v[1])}"


def vector3_to_str(v: Vector3) -> str:
    return " ".join(float_to_str(c) for c in v[:3])


def vector4_to_str(v: Vector4) -> str:
    return " ".join(float_to_str(c) for c in v[:4])


def quaternion_to_str(q: Quaternion) -> str:
    """Quaternion string in Urho3D format: w x y z."""
    return f"{float_to_str(q.w)} {float_to_str(q.x)} {float_to_str(q.y)} {float_to_str(q.z)}"


def color_to_str(c: Color) -> str:
    return vector4_to_str(c)


def color32_to_str(c: Color32) -> str:
    """Lowercase hex 'rrggbbaa'."""
    return "".join(f"{max(0, min(255, int(v))):02x}" for v in c[:4])


def write_xml_file(root: Element, filepath: str) -> None:
    """Write an XML element tree to a file with pretty formatting."""
    content = xml_to_string(root)
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(content)


class XmlSink:
    """
    Output handle for one XML document.

    The document root is created with begin(); the file is written when
    the sink is closed after a clean exit from its ``with`` block. On an
    exception nothing is written, the sink is still released and
    ``on_discard`` is called.
    """

    def __init__(
        self,
        filepath: str,
        on_close: Optional[Callable[["XmlSink"], None]] = None,
        on_discard: Optional[Callable[["XmlSink"], None]] = None,
    ):
        self.filepath = filepath
        self.root: Optional[Element] = None
        self.closed = False
        self._on_close = on_close
        self._on_discard = on_discard

    def begin(self, tag: str) -> Element:
        if self.root is not None:
            raise ValueError(f"Document '{self.filepath}' already has a <{self.root.tag}> root")
        self.root = Element(tag)
        return self.root

    def close(self) -> None:
        if self.closed:
            return
        if self.root is not None:
            try:
                write_xml_file(self.root, self.filepath)
            except OSError:
                self.discard()
                raise
        self.closed = True
        if self._on_close is not None:
            self._on_close(self)

    def discard(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.root = None
        if self._on_discard is not None:
            self._on_discard(self)

    def __enter__(self) -> "XmlSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.discard()
