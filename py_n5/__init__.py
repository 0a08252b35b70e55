from .attributes import DatasetAttributes, DataType, default_json_decoder
from .block import DataBlock, decode_block
from .errors import DecodeError, N5Error, TransportError
from .paths import N5PathResolver
from .reader import AsyncN5Reader, N5Reader
from .reader_httpx import AsyncN5HttpReader, N5HttpReader

__all__ = [
    "N5PathResolver",
    "N5Reader",
    "AsyncN5Reader",
    "N5HttpReader",
    "AsyncN5HttpReader",
    "DatasetAttributes",
    "DataType",
    "DataBlock",
    "decode_block",
    "default_json_decoder",
    "N5Error",
    "TransportError",
    "DecodeError",
]
