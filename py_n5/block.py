"""
Decoding of the N5 block wire format.

A block is a big endian header followed by the (optionally compressed) element payload:

```
mode        uint16    0 = default, 1 = varlength, 2 = object
rank        uint16    modes 0 and 1 only
size[rank]  int32     block extent per axis, N5 axis order
numElements int32     modes 1 and 2 only, mode 0 uses prod(size)
payload               compressed with the dataset's compression, elements big endian
```
"""

import logging
import math
import struct
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from numcodecs.abc import Codec
from numcodecs.compat import ensure_bytes
from numcodecs.registry import get_codec

from .attributes import DatasetAttributes, DataType
from .errors import DecodeError

logger = logging.getLogger(__name__)

MODE_DEFAULT: int = 0
MODE_VARLENGTH: int = 1
MODE_OBJECT: int = 2

BlockDecoder = Callable[[bytes, DatasetAttributes, Sequence[int]], "DataBlock"]
"""Anything that turns a block body into a `DataBlock`, given the dataset attributes and grid position."""


@dataclass
class DataBlock:
    """One decoded block. The caller owns `data` once it is returned."""

    size: tuple[int, ...]
    """Extent of this block from its header, N5 axis order. Empty for object blocks."""
    grid_position: tuple[int, ...]
    data: np.ndarray
    """Flat array of `num_elements` values in native byte order."""

    @property
    def num_elements(self) -> int:
        return int(self.data.size)

    def as_array(self) -> np.ndarray:
        """
        The block data reshaped to C order, i.e. with the axes of `size` reversed.

        Object blocks, and varlength blocks whose element count is not the product of `size`, are returned flat.
        """
        if not self.size or self.num_elements != math.prod(self.size):
            return self.data
        return self.data.reshape(self.size[::-1])


def n5_compression_to_codec(compression: Mapping[str, Any]) -> Codec | None:
    """
    Look up the numcodecs codec able to decompress payloads written with an N5 `compression` configuration.

    Returns `None` for `raw`.
    """
    compression_type = compression.get("type", "raw")

    if compression_type == "raw":
        return None
    if compression_type == "gzip":
        codec_id = "zlib" if compression.get("useZlib", False) else "gzip"
        return get_codec({"id": codec_id})
    if compression_type == "bzip2":
        return get_codec({"id": "bz2"})
    if compression_type == "xz":
        # 1 == lzma.FORMAT_XZ
        return get_codec({"id": "lzma", "format": 1})
    if compression_type in ("blosc", "zstd"):
        return get_codec({"id": compression_type})

    # lz4 included: N5 uses the lz4-java block stream framing, which numcodecs cannot read
    raise DecodeError(f"Unsupported N5 compression type {compression_type!r}")


def _read_header(data: bytes) -> tuple[int, tuple[int, ...], int, int]:
    """Returns mode, size, number of elements and header length."""
    try:
        (mode,) = struct.unpack_from(">H", data, 0)
        if mode == MODE_OBJECT:
            (num_elements,) = struct.unpack_from(">i", data, 2)
            return mode, (), num_elements, 6

        if mode not in (MODE_DEFAULT, MODE_VARLENGTH):
            raise DecodeError(f"Unknown block mode {mode}")

        (rank,) = struct.unpack_from(">H", data, 2)
        size = struct.unpack_from(f">{rank}i", data, 4)
        offset = 4 + 4 * rank
        if mode == MODE_VARLENGTH:
            (num_elements,) = struct.unpack_from(">i", data, offset)
            offset += 4
        else:
            num_elements = math.prod(size)
    except struct.error as exc:
        raise DecodeError(f"Truncated block header: {exc}") from exc

    return mode, tuple(size), num_elements, offset


def decode_block(
    data: bytes,
    dataset_attributes: DatasetAttributes,
    grid_position: Sequence[int],
) -> DataBlock:
    """
    Decode the body of an N5 block resource.

    Raises `DecodeError` for truncated headers or payloads, for a block, dataset and grid position that disagree on the number of dimensions, and for compression the payload does not decompress with.
    """
    grid_position = tuple(int(g) for g in grid_position)
    if len(grid_position) != dataset_attributes.num_dimensions:
        raise DecodeError(
            f"Grid position {grid_position} does not match the dataset rank {dataset_attributes.num_dimensions}"
        )

    mode, size, num_elements, header_length = _read_header(data)
    if mode != MODE_OBJECT and len(size) != dataset_attributes.num_dimensions:
        raise DecodeError(
            f"Block of rank {len(size)} in a dataset of rank {dataset_attributes.num_dimensions}"
        )
    if num_elements < 0 or any(s < 0 for s in size):
        raise DecodeError(f"Negative block extent in header: {size}, {num_elements}")

    data_type = (
        DataType.OBJECT if mode == MODE_OBJECT else dataset_attributes.data_type
    )
    wire_dtype = data_type.wire_dtype
    expected_length = num_elements * wire_dtype.itemsize

    payload = data[header_length:]
    codec = n5_compression_to_codec(dataset_attributes.compression)
    if codec is not None:
        try:
            payload = ensure_bytes(codec.decode(payload))
        except Exception as exc:
            raise DecodeError(
                f"Could not decompress {dataset_attributes.compression_type} block: {exc}"
            ) from exc

    if len(payload) < expected_length:
        raise DecodeError(
            f"Block payload holds {len(payload)} bytes, {expected_length} expected"
        )
    if len(payload) > expected_length:
        logger.debug(
            "Ignoring %d trailing bytes of block %s",
            len(payload) - expected_length,
            grid_position,
        )

    values = np.frombuffer(payload, dtype=wire_dtype, count=num_elements)
    return DataBlock(
        size=size,
        grid_position=grid_position,
        data=values.astype(data_type.dtype),
    )
