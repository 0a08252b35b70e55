import asyncio
import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any, Dict

import httpx

from .attributes import Attributes, DatasetAttributes, default_json_decoder
from .block import BlockDecoder, DataBlock, decode_block
from .errors import DecodeError, TransportError
from .paths import N5PathResolver
from .reader import AsyncN5Reader, N5Reader

logger = logging.getLogger(__name__)

RESPONSE_OK: int = 200

JSONDecoder = Callable[[bytes], Attributes]

# Errors that mean "the request did not produce a usable response".
# Hosts that fail IDNA encoding raise UnicodeError (idna.IDNAError included) while connecting.
_REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, UnicodeError)


def _make_timeout(connect_timeout: float | None, read_timeout: float | None) -> httpx.Timeout:
    for name, value in (("connect_timeout", connect_timeout), ("read_timeout", read_timeout)):
        if value is not None and value <= 0:
            raise ValueError(f"{name} must be positive or None")
    return httpx.Timeout(None, connect=connect_timeout, read=read_timeout)


def _transport_error(exc: Exception, url: str) -> TransportError:
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        return TransportError(
            f"GET {url} returned HTTP {status_code}", url, status_code=status_code
        )
    return TransportError(f"GET {url} failed: {exc!r}", url)


def _decode_attributes(decoder: JSONDecoder, body: bytes, url: str) -> Attributes:
    try:
        attributes = decoder(body)
    except DecodeError as exc:
        exc.url = exc.url or url
        raise
    except ValueError as exc:
        raise DecodeError(f"Could not decode attributes at {url}: {exc}", url) from exc
    if not isinstance(attributes, dict):
        raise DecodeError(
            f"Attributes at {url} are not a JSON object: {type(attributes).__name__}",
            url,
        )
    return attributes


def _decode_block(
    decoder: BlockDecoder,
    body: bytes,
    dataset_attributes: DatasetAttributes,
    grid_position: Sequence[int],
    url: str,
) -> DataBlock:
    try:
        return decoder(body, dataset_attributes, grid_position)
    except DecodeError as exc:
        exc.url = exc.url or url
        raise
    except ValueError as exc:
        raise DecodeError(f"Could not decode block at {url}: {exc}", url) from exc


class N5HttpReader(N5Reader):
    """
    Reads an N5 container served over plain HTTP.

    Every operation is one blocking GET with the configured connect and read timeouts, no custom headers and no retries:

    * **exists()** → `<group_url>/<path>/attributes.json`, `True` only on HTTP 200
    * **get_attributes()** → `<group_url>/<path>/attributes.json`, decoded as a JSON object
    * **read_block()** → `<group_url>/<path>/<g0>/.../<gN-1>`, decoded by the block decoder
    * **list()** → no request at all, see its docstring

    ```python
    from py_n5 import N5HttpReader

    with N5HttpReader("https://example.org/data.n5", connect_timeout=5, read_timeout=30) as n5:
        attrs = n5.get_dataset_attributes("raw/s0")
        block = n5.read_block("raw/s0", attrs, [0, 0, 1])
        print(block.as_array().shape)
    ```

    ### `httpx.Client` Management
    Pass `client=` to reuse your own `httpx.Client`; it is never closed by this reader. Otherwise the reader creates one, and it is closed by `close()` or by leaving a `with` block. A reader that owns its client creates a fresh one if used again after `close()`.

    The reader holds no mutable state besides the client, so one instance can be shared between threads.

    ### Decoders
    `json_decoder` turns the body of an `attributes.json` into a dict and defaults to `default_json_decoder`. `block_decoder` turns a block body into a `DataBlock` and defaults to `decode_block`. Both receive the complete, unmodified response body.
    """

    DEFAULT_CONNECT_TIMEOUT: float = 10.0
    DEFAULT_READ_TIMEOUT: float = 60.0

    def __init__(
        self,
        group_url: str,
        connect_timeout: float | None,
        read_timeout: float | None,
        *,
        json_decoder: JSONDecoder | None = None,
        block_decoder: BlockDecoder | None = None,
        client: httpx.Client | None = None,
    ):
        self.resolver: N5PathResolver = N5PathResolver(group_url)
        self.timeout: httpx.Timeout = _make_timeout(connect_timeout, read_timeout)
        self.json_decoder: JSONDecoder = json_decoder or default_json_decoder
        self.block_decoder: BlockDecoder = block_decoder or decode_block

        self._owns_client: bool = client is None
        self._client_lock: threading.Lock = threading.Lock()
        self._client: httpx.Client | None = (
            client if client is not None else self._new_client()
        )
        self._closed: bool = False

    @property
    def group_url(self) -> str:
        return self.resolver.group_url

    def _new_client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, follow_redirects=True)

    def _get_client(self) -> httpx.Client:
        with self._client_lock:
            if self._closed:
                if not self._owns_client:
                    raise RuntimeError("N5HttpReader is closed; create a new instance")
                self._closed = False

            if self._client is None:
                self._client = self._new_client()
            return self._client

    def close(self) -> None:
        """Close the internally created client. A user supplied client is left open."""
        with self._client_lock:
            if self._owns_client and self._client is not None:
                self._client.close()
                self._client = None
            self._closed = True

    def __enter__(self) -> "N5HttpReader":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _fetch(self, url: str) -> bytes:
        client = self._get_client()
        logger.debug("GET %s", url)
        try:
            with client.stream("GET", url, timeout=self.timeout) as response:
                response.raise_for_status()
                return response.read()
        except _REQUEST_ERRORS as exc:
            raise _transport_error(exc, url) from exc

    def exists(self, dataset_path: str) -> bool:
        """
        `True` iff a GET of the attributes document answers HTTP 200.

        Every failure, from a 404 to an unreachable host, a timeout or a malformed URL, yields `False`. A missing group and a network outage cannot be told apart here; use `get_attributes` to see the error.
        """
        url = self.resolver.resolve_attributes_url(dataset_path)
        client = self._get_client()
        try:
            with client.stream("GET", url, timeout=self.timeout) as response:
                logger.debug("GET %s -> %d", url, response.status_code)
                return response.status_code == RESPONSE_OK
        except _REQUEST_ERRORS as exc:
            logger.debug("GET %s failed, treating as missing: %r", url, exc)
            return False

    def get_attributes(self, dataset_path: str) -> Attributes:
        url = self.resolver.resolve_attributes_url(dataset_path)
        return _decode_attributes(self.json_decoder, self._fetch(url), url)

    def read_block(
        self,
        dataset_path: str,
        dataset_attributes: DatasetAttributes,
        grid_position: Sequence[int],
    ) -> DataBlock:
        url = self.resolver.resolve_block_url(dataset_path, grid_position)
        body = self._fetch(url)
        return _decode_block(
            self.block_decoder, body, dataset_attributes, grid_position, url
        )

    def list(self, path_name: str) -> list[str]:
        """
        Always an empty list.

        Plain HTTP offers no way to enumerate the children of a group, so this is not implemented and does not contact the server. Do not rely on it to discover datasets.
        """
        return []


class AsyncN5HttpReader(AsyncN5Reader):
    """
    Coroutine version of `N5HttpReader` on top of `httpx.AsyncClient`, with the same URLs, timeouts and error handling.

    ```python
    async with AsyncN5HttpReader(url, connect_timeout=5, read_timeout=30) as n5:
        attrs = await n5.get_dataset_attributes("raw/s0")
        blocks = await asyncio.gather(
            *(n5.read_block("raw/s0", attrs, [x, 0, 0]) for x in range(4))
        )
    ```

    ### `httpx.AsyncClient` Management
    A user supplied `client` is reused and never closed. Otherwise one client is created lazily per running event loop and all of them are closed by `await reader.aclose()` or by leaving an `async with` block.
    """

    def __init__(
        self,
        group_url: str,
        connect_timeout: float | None,
        read_timeout: float | None,
        *,
        json_decoder: JSONDecoder | None = None,
        block_decoder: BlockDecoder | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.resolver: N5PathResolver = N5PathResolver(group_url)
        self.timeout: httpx.Timeout = _make_timeout(connect_timeout, read_timeout)
        self.json_decoder: JSONDecoder = json_decoder or default_json_decoder
        self.block_decoder: BlockDecoder = block_decoder or decode_block

        self._owns_client: bool = client is None
        self._user_client: httpx.AsyncClient | None = client
        self._client_per_loop: Dict[asyncio.AbstractEventLoop, httpx.AsyncClient] = {}
        self._closed: bool = False

    @property
    def group_url(self) -> str:
        return self.resolver.group_url

    def _loop_client(self) -> httpx.AsyncClient:
        if self._closed:
            if not self._owns_client:
                raise RuntimeError("AsyncN5HttpReader is closed; create a new instance")
            self._closed = False

        if self._user_client is not None:
            return self._user_client

        loop = asyncio.get_running_loop()
        try:
            return self._client_per_loop[loop]
        except KeyError:
            client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
            self._client_per_loop[loop] = client
            return client

    async def aclose(self) -> None:
        """Close all internally created clients."""
        for client in list(self._client_per_loop.values()):
            if not client.is_closed:
                await client.aclose()
        self._client_per_loop.clear()
        self._closed = True

    async def __aenter__(self) -> "AsyncN5HttpReader":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def _fetch(self, url: str) -> bytes:
        client = self._loop_client()
        logger.debug("GET %s", url)
        try:
            async with client.stream("GET", url, timeout=self.timeout) as response:
                response.raise_for_status()
                return await response.aread()
        except _REQUEST_ERRORS as exc:
            raise _transport_error(exc, url) from exc

    async def exists(self, dataset_path: str) -> bool:
        """`True` iff the attributes document answers HTTP 200; every failure yields `False`."""
        url = self.resolver.resolve_attributes_url(dataset_path)
        client = self._loop_client()
        try:
            async with client.stream("GET", url, timeout=self.timeout) as response:
                logger.debug("GET %s -> %d", url, response.status_code)
                return response.status_code == RESPONSE_OK
        except _REQUEST_ERRORS as exc:
            logger.debug("GET %s failed, treating as missing: %r", url, exc)
            return False

    async def get_attributes(self, dataset_path: str) -> Attributes:
        url = self.resolver.resolve_attributes_url(dataset_path)
        return _decode_attributes(self.json_decoder, await self._fetch(url), url)

    async def read_block(
        self,
        dataset_path: str,
        dataset_attributes: DatasetAttributes,
        grid_position: Sequence[int],
    ) -> DataBlock:
        url = self.resolver.resolve_block_url(dataset_path, grid_position)
        body = await self._fetch(url)
        return _decode_block(
            self.block_decoder, body, dataset_attributes, grid_position, url
        )

    async def list(self, path_name: str) -> list[str]:
        """Always an empty list, see `N5HttpReader.list`."""
        return []
