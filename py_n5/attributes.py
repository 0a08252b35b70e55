import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

import numpy as np

from .errors import DecodeError

JSONValue = Union[None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]]
"""Any value a JSON document can hold."""

Attributes = dict[str, JSONValue]
"""A decoded `attributes.json` document."""

DIMENSIONS_KEY: str = "dimensions"
BLOCK_SIZE_KEY: str = "blockSize"
DATA_TYPE_KEY: str = "dataType"
COMPRESSION_KEY: str = "compression"
LEGACY_COMPRESSION_KEY: str = "compressionType"


def default_json_decoder(data: bytes) -> Attributes:
    """Decode an attributes document, which must be a JSON object at the top level."""
    try:
        decoded = json.loads(data)
    except ValueError as exc:
        raise DecodeError(f"Attributes are not valid JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise DecodeError(
            f"Attributes must be a JSON object, got {type(decoded).__name__}"
        )
    return decoded


class DataType(Enum):
    """N5 data types. Block payloads are always big endian."""

    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    OBJECT = "object"

    @property
    def wire_dtype(self) -> np.dtype:
        """The dtype of one element as stored in a block. Object blocks are opaque bytes."""
        if self is DataType.OBJECT:
            return np.dtype("u1")
        return np.dtype(self.value).newbyteorder(">")

    @property
    def dtype(self) -> np.dtype:
        """The native byte order dtype that decoded blocks are returned in."""
        if self is DataType.OBJECT:
            return np.dtype("u1")
        return np.dtype(self.value)


@dataclass(frozen=True)
class DatasetAttributes:
    """
    The subset of a dataset's `attributes.json` needed to decode its blocks.

    `dimensions` and `block_size` are in N5 axis order (fastest varying axis first), exactly as written in the document.
    """

    dimensions: tuple[int, ...]
    block_size: tuple[int, ...]
    data_type: DataType
    compression: Mapping[str, Any] = field(
        default_factory=lambda: {"type": "raw"}, hash=False
    )

    @property
    def num_dimensions(self) -> int:
        return len(self.dimensions)

    @property
    def compression_type(self) -> str:
        return str(self.compression.get("type", "raw"))

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, Any]) -> Optional["DatasetAttributes"]:
        """
        Build dataset attributes from a decoded `attributes.json`.

        Returns `None` when one of `dimensions`, `blockSize` or `dataType` is missing, which is the case for plain groups. Compression can be given as a `{"type": ...}` object or with the older `compressionType` string; without either the blocks are `raw`.
        """
        if not all(k in attributes for k in (DIMENSIONS_KEY, BLOCK_SIZE_KEY, DATA_TYPE_KEY)):
            return None

        try:
            dimensions = tuple(int(d) for d in attributes[DIMENSIONS_KEY])
            block_size = tuple(int(b) for b in attributes[BLOCK_SIZE_KEY])
            data_type = DataType(attributes[DATA_TYPE_KEY])
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"Invalid dataset attributes: {exc}") from exc

        if len(dimensions) != len(block_size):
            raise DecodeError(
                f"dimensions {dimensions} and blockSize {block_size} differ in rank"
            )

        compression: Mapping[str, Any]
        if COMPRESSION_KEY in attributes:
            compression = attributes[COMPRESSION_KEY]
            if not isinstance(compression, Mapping) or "type" not in compression:
                raise DecodeError(f"Invalid compression {compression!r}")
        elif LEGACY_COMPRESSION_KEY in attributes:
            compression = {"type": attributes[LEGACY_COMPRESSION_KEY]}
        else:
            compression = {"type": "raw"}

        return cls(
            dimensions=dimensions,
            block_size=block_size,
            data_type=data_type,
            compression=dict(compression),
        )
