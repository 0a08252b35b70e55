import asyncio
import sys

from py_n5 import AsyncN5HttpReader, N5HttpReader

# e.g. python examples/read_remote_block.py http://localhost:8000/data.n5 raw/s0
group_url, dataset = sys.argv[1], sys.argv[2]

with N5HttpReader(group_url, connect_timeout=5, read_timeout=30) as n5:
    if not n5.dataset_exists(dataset):
        sys.exit(f"No dataset at {group_url}/{dataset}")
    attrs = n5.get_dataset_attributes(dataset)
    print(attrs)
    block = n5.read_block(dataset, attrs, [0] * attrs.num_dimensions)
    print(block.as_array())


async def read_first_row() -> None:
    async with AsyncN5HttpReader(group_url, connect_timeout=5, read_timeout=30) as n5:
        attrs = await n5.get_dataset_attributes(dataset)
        blocks_along_x = -(-attrs.dimensions[0] // attrs.block_size[0])
        rest = [0] * (attrs.num_dimensions - 1)
        blocks = await asyncio.gather(
            *(n5.read_block(dataset, attrs, [x, *rest]) for x in range(blocks_along_x))
        )
        print(f"Read {len(blocks)} blocks, {sum(b.num_elements for b in blocks)} elements")


asyncio.run(read_first_row())
