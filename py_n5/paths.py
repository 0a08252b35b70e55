from collections.abc import Sequence

ATTRIBUTES_FILE: str = "attributes.json"
DELIMITER: str = "/"


class N5PathResolver:
    """
    Maps logical N5 addresses onto resource URLs below a fixed group URL.

    ```
    <group_url>/<dataset_path>/attributes.json
    <group_url>/<dataset_path>/<g0>/<g1>/.../<gN-1>
    ```

    Segments are joined with a single `"/"` and nothing is normalized or validated: double slashes and `..` segments are kept as given, and grid positions are not checked against the dataset's dimensionality. A malformed address resolves to a malformed URL, and the error shows up when that URL is fetched or its body decoded.
    """

    def __init__(self, group_url: str) -> None:
        self._group_url: str = group_url

    @property
    def group_url(self) -> str:
        return self._group_url

    def resolve_attributes_url(self, dataset_path: str) -> str:
        """URL of the `attributes.json` document of a group or dataset."""
        return DELIMITER.join([self._group_url, dataset_path, ATTRIBUTES_FILE])

    def resolve_block_url(self, dataset_path: str, grid_position: Sequence[int]) -> str:
        """URL of the data block at `grid_position`, axes in the given order."""
        return DELIMITER.join(
            [self._group_url, dataset_path, *(str(g) for g in grid_position)]
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._group_url!r})"
