import numpy as np
import pytest

from py_n5 import DatasetAttributes, DataType, DecodeError, default_json_decoder


def test_default_json_decoder_object():
    assert default_json_decoder(b'{"a":1,"b":"x"}') == {"a": 1, "b": "x"}
    assert default_json_decoder(b"{}") == {}


@pytest.mark.parametrize("body", [b'"not an object"', b"[1, 2]", b"3", b"null"])
def test_default_json_decoder_rejects_non_objects(body: bytes):
    with pytest.raises(DecodeError, match="JSON object"):
        default_json_decoder(body)


@pytest.mark.parametrize("body", [b"{", b"", b"\xff\xfe{}"])
def test_default_json_decoder_rejects_malformed(body: bytes):
    with pytest.raises(DecodeError):
        default_json_decoder(body)


def test_data_types():
    assert DataType("uint16").wire_dtype == np.dtype(">u2")
    assert DataType("float64").dtype == np.dtype("float64")
    assert DataType.OBJECT.wire_dtype == np.dtype("u1")
    with pytest.raises(ValueError):
        DataType("complex64")


def test_dataset_attributes_current_compression():
    attrs = DatasetAttributes.from_attributes(
        {
            "dimensions": [100, 200, 30],
            "blockSize": [64, 64, 8],
            "dataType": "float32",
            "compression": {"type": "gzip", "level": 6, "useZlib": True},
            "resolution": [4, 4, 40],
        }
    )
    assert attrs is not None
    assert attrs.dimensions == (100, 200, 30)
    assert attrs.block_size == (64, 64, 8)
    assert attrs.data_type is DataType.FLOAT32
    assert attrs.compression == {"type": "gzip", "level": 6, "useZlib": True}
    assert attrs.compression_type == "gzip"
    assert attrs.num_dimensions == 3


def test_dataset_attributes_legacy_and_missing_compression():
    legacy = DatasetAttributes.from_attributes(
        {"dimensions": [5], "blockSize": [5], "dataType": "int8", "compressionType": "bzip2"}
    )
    assert legacy is not None and legacy.compression_type == "bzip2"

    bare = DatasetAttributes.from_attributes(
        {"dimensions": [5], "blockSize": [5], "dataType": "int8"}
    )
    assert bare is not None and bare.compression == {"type": "raw"}


def test_group_attributes_are_not_a_dataset():
    assert DatasetAttributes.from_attributes({}) is None
    assert DatasetAttributes.from_attributes({"n5": "2.0.0"}) is None
    assert DatasetAttributes.from_attributes({"dimensions": [1], "blockSize": [1]}) is None


@pytest.mark.parametrize(
    "attributes",
    [
        {"dimensions": [5, 5], "blockSize": [5], "dataType": "int8"},
        {"dimensions": [5], "blockSize": [5], "dataType": "bogus"},
        {"dimensions": "five", "blockSize": [5], "dataType": "int8"},
        {"dimensions": [5], "blockSize": [5], "dataType": "int8", "compression": "gzip"},
    ],
)
def test_invalid_dataset_attributes(attributes):
    with pytest.raises(DecodeError):
        DatasetAttributes.from_attributes(attributes)


def test_dataset_attributes_are_hashable():
    attrs = DatasetAttributes.from_attributes(
        {"dimensions": [5], "blockSize": [5], "dataType": "int8", "compression": {"type": "gzip"}}
    )
    same = DatasetAttributes((5,), (5,), DataType.INT8, {"type": "gzip"})
    assert hash(attrs) == hash(same)
    assert attrs == same
    assert len({attrs, same}) == 1
    assert attrs != DatasetAttributes((5,), (5,), DataType.INT8, {"type": "raw"})
