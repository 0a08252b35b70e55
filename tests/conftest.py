import json

import httpx
import numpy as np
import pytest

# re-export helpers so tests can import them from here as well
from testing_utils import (  # noqa: F401
    N5TestServer,
    dataset_path_strategy,
    encode_block,
    grid_position_strategy,
)

from py_n5 import DataType

RAW_ATTRIBUTES = {
    "dimensions": [4, 3, 2],
    "blockSize": [2, 3, 1],
    "dataType": "uint16",
    "compression": {"type": "gzip", "level": -1},
}

# C ordered, so the N5 extents (2, 3, 1) become the shape (1, 3, 2)
RAW_BLOCK_001 = np.arange(6, dtype="uint16").reshape(1, 3, 2) * 100


@pytest.fixture(scope="session")
def n5_server():
    """A plain HTTP server with a small N5 container at `/data.n5`."""
    routes = {
        "/data.n5/attributes.json": (200, json.dumps({"n5": "2.0.0"}).encode()),
        "/data.n5/group/attributes.json": (200, b"{}"),
        "/data.n5/raw/attributes.json": (200, json.dumps(RAW_ATTRIBUTES).encode()),
        "/data.n5/raw/0/0/1": (
            200,
            encode_block(RAW_BLOCK_001, DataType.UINT16, RAW_ATTRIBUTES["compression"]),
        ),
        "/data.n5/raw/1/0/0": (200, b"\x00\x00\x00"),
        "/data.n5/broken/attributes.json": (500, b"internal error"),
        "/data.n5/scalar/attributes.json": (200, b'"not an object"'),
    }
    server = N5TestServer(routes).start()
    yield server
    server.stop()


@pytest.fixture
def group_url(n5_server) -> str:
    return f"{n5_server.base_url}/data.n5"


@pytest.fixture
def mock_client_factory():
    """Build `httpx.Client`s around a handler and close them after the test."""
    clients: list[httpx.Client] = []

    def _factory(handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _factory
    for client in clients:
        client.close()
