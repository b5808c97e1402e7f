"""Uncompressed RGBA8 cubemap DDS writer.

Layout: "DDS " magic, DDS_HEADER, DDS_HEADER_DXT10, then the six faces
(+X, -X, +Y, -Y, +Z, -Z), each top-down RGBA8 with a single mip level.
"""

import struct
from typing import Sequence

import numpy as np

DDS_MAGIC = b"DDS "

DDSD_CAPS = 0x1
DDSD_HEIGHT = 0x2
DDSD_WIDTH = 0x4
DDSD_PITCH = 0x8
DDSD_PIXELFORMAT = 0x1000

DDPF_FOURCC = 0x4

DDSCAPS_COMPLEX = 0x8
DDSCAPS_TEXTURE = 0x1000
DDSCAPS2_CUBEMAP = 0x200
DDSCAPS2_CUBEMAP_ALLFACES = 0xFC00

DXGI_FORMAT_R8G8B8A8_UNORM = 28
DXGI_FORMAT_R8G8B8A8_UNORM_SRGB = 29
D3D10_RESOURCE_DIMENSION_TEXTURE2D = 3
D3D10_RESOURCE_MISC_TEXTURECUBE = 0x4
DDS_ALPHA_MODE_STRAIGHT = 1

CUBEMAP_FACE_COUNT = 6


class BinaryWriter:
    """Struct-based little-endian writer."""

    def __init__(self):
        self._buffer = bytearray()

    def write_bytes(self, data: bytes) -> None:
        self._buffer.extend(data)

    def write_uints(self, *values: int) -> None:
        self._buffer.extend(struct.pack(f'<{len(values)}I', *values))

    def save(self, filepath: str) -> None:
        with open(filepath, 'wb', buffering=1024 * 1024) as f:
            f.write(self._buffer)

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    @property
    def size(self) -> int:
        return len(self._buffer)


def faces_to_rgba8(faces: Sequence) -> np.ndarray:
    """
    Stack six faces into a (6, size, size, 4) uint8 array.

    Float input is treated as 0..1 and clamped; RGB input gets opaque alpha.
    """
    if len(faces) != CUBEMAP_FACE_COUNT:
        raise ValueError(f"Cubemap needs {CUBEMAP_FACE_COUNT} faces, got {len(faces)}")

    arrays = [np.asarray(face) for face in faces]
    shape = arrays[0].shape
    if len(shape) != 3 or shape[0] != shape[1] or shape[2] not in (3, 4):
        raise ValueError(f"Cubemap faces must be square RGB/RGBA images, got shape {shape}")
    if any(a.shape != shape for a in arrays):
        raise ValueError("Cubemap faces must all have the same size")

    data = np.stack(arrays)
    if data.dtype != np.uint8:
        if np.issubdtype(data.dtype, np.floating):
            data = np.rint(np.clip(data, 0.0, 1.0) * 255.0)
        data = np.clip(data, 0, 255).astype(np.uint8)

    if data.shape[3] == 3:
        alpha = np.full(data.shape[:3] + (1,), 255, dtype=np.uint8)
        data = np.concatenate([data, alpha], axis=3)
    return np.ascontiguousarray(data)


def write_cubemap_header(writer: BinaryWriter, size: int, srgb: bool) -> None:
    writer.write_bytes(DDS_MAGIC)

    # DDS_HEADER
    writer.write_uints(
        124,                                    # dwSize
        DDSD_CAPS | DDSD_HEIGHT | DDSD_WIDTH | DDSD_PITCH | DDSD_PIXELFORMAT,
        size,                                   # dwHeight
        size,                                   # dwWidth
        size * 4,                               # dwPitchOrLinearSize
        0,                                      # dwDepth
        1,                                      # dwMipMapCount
    )
    writer.write_uints(*([0] * 11))             # dwReserved1

    # DDS_PIXELFORMAT
    writer.write_uints(32, DDPF_FOURCC)
    writer.write_bytes(b"DX10")
    writer.write_uints(0, 0, 0, 0, 0)

    writer.write_uints(
        DDSCAPS_TEXTURE | DDSCAPS_COMPLEX,
        DDSCAPS2_CUBEMAP | DDSCAPS2_CUBEMAP_ALLFACES,
        0, 0,                                   # dwCaps3, dwCaps4
        0,                                      # dwReserved2
    )

    # DDS_HEADER_DXT10
    writer.write_uints(
        DXGI_FORMAT_R8G8B8A8_UNORM_SRGB if srgb else DXGI_FORMAT_R8G8B8A8_UNORM,
        D3D10_RESOURCE_DIMENSION_TEXTURE2D,
        D3D10_RESOURCE_MISC_TEXTURECUBE,
        1,                                      # arraySize: one cube
        DDS_ALPHA_MODE_STRAIGHT,
    )


def build_cubemap_dds(faces: Sequence, srgb: bool = True) -> BinaryWriter:
    data = faces_to_rgba8(faces)
    writer = BinaryWriter()
    write_cubemap_header(writer, data.shape[1], srgb)
    writer.write_bytes(data.tobytes())
    return writer


def encode_cubemap_dds(faces: Sequence, srgb: bool = True) -> bytes:
    return build_cubemap_dds(faces, srgb).getvalue()


def save_cubemap_dds(faces: Sequence, filepath: str, srgb: bool = True) -> None:
    build_cubemap_dds(faces, srgb).save(filepath)
