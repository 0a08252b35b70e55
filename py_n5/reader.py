from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Optional

from .attributes import Attributes, DatasetAttributes, JSONValue
from .block import DataBlock


class N5Reader(ABC):
    """
    Abstract class for read access to an N5 hierarchy of groups and datasets.

    Subclasses provide the four primitive operations. Attribute lookups and the dataset check are built on top of them here.
    """

    @abstractmethod
    def exists(self, dataset_path: str) -> bool:
        """Whether a group or dataset exists at `dataset_path`."""

    @abstractmethod
    def get_attributes(self, dataset_path: str) -> Attributes:
        """The full attributes document of a group or dataset."""

    @abstractmethod
    def read_block(
        self,
        dataset_path: str,
        dataset_attributes: DatasetAttributes,
        grid_position: Sequence[int],
    ) -> DataBlock:
        """Read and decode the block at `grid_position`."""

    @abstractmethod
    def list(self, path_name: str) -> list[str]:
        """Names of the children of a group."""

    def get_attribute(
        self, dataset_path: str, key: str, default: JSONValue = None
    ) -> JSONValue:
        """A single attribute value, or `default` when the document does not have `key`."""
        return self.get_attributes(dataset_path).get(key, default)

    def get_dataset_attributes(self, dataset_path: str) -> Optional[DatasetAttributes]:
        """The dataset attributes at `dataset_path`, or `None` if it is a group rather than a dataset."""
        return DatasetAttributes.from_attributes(self.get_attributes(dataset_path))

    def dataset_exists(self, dataset_path: str) -> bool:
        """Whether `dataset_path` exists and is a dataset rather than a plain group."""
        return (
            self.exists(dataset_path)
            and self.get_dataset_attributes(dataset_path) is not None
        )


class AsyncN5Reader(ABC):
    """Coroutine counterpart of `N5Reader`."""

    @abstractmethod
    async def exists(self, dataset_path: str) -> bool:
        """Whether a group or dataset exists at `dataset_path`."""

    @abstractmethod
    async def get_attributes(self, dataset_path: str) -> Attributes:
        """The full attributes document of a group or dataset."""

    @abstractmethod
    async def read_block(
        self,
        dataset_path: str,
        dataset_attributes: DatasetAttributes,
        grid_position: Sequence[int],
    ) -> DataBlock:
        """Read and decode the block at `grid_position`."""

    @abstractmethod
    async def list(self, path_name: str) -> list[str]:
        """Names of the children of a group."""

    async def get_attribute(
        self, dataset_path: str, key: str, default: JSONValue = None
    ) -> JSONValue:
        return (await self.get_attributes(dataset_path)).get(key, default)

    async def get_dataset_attributes(
        self, dataset_path: str
    ) -> Optional[DatasetAttributes]:
        return DatasetAttributes.from_attributes(await self.get_attributes(dataset_path))

    async def dataset_exists(self, dataset_path: str) -> bool:
        return (
            await self.exists(dataset_path)
            and await self.get_dataset_attributes(dataset_path) is not None
        )
