# arch_plan/plan/layout.py

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from arch_plan.plan.model import Partition

# NVMe namespaces put a 'p' between the disk and the partition index
NVME_DISK = re.compile(r"/dev/nvme\d+n\d+")
TRAILING_INDEX = re.compile(r"\d+$")


@dataclass(frozen=True)
class ResolvedPartition:
    """A partition together with its per-disk number and device path."""
    partition: Partition
    number: int
    device: str

    @property
    def disk(self) -> str:
        return self.partition.disk

    @property
    def mount(self) -> str:
        return self.partition.mount


def partition_device(disk: str, number: int) -> str:
    """
    Returns the device path of partition ``number`` (1-based) on ``disk``.

    '/dev/sda', 2      -> '/dev/sda2'
    '/dev/nvme0n1', 2  -> '/dev/nvme0n1p2'
    """
    if NVME_DISK.fullmatch(disk):
        return f"{disk}p{number}"
    return f"{disk}{number}"


def device_index(device: str) -> Optional[str]:
    """Trailing partition index of a device path, e.g. '2' for '/dev/nvme0n1p2'."""
    match = TRAILING_INDEX.search(device)
    return match.group(0) if match else None


def unique_disks(partitions: Iterable[Partition]) -> List[str]:
    """All disks used by the partitions, deduplicated and sorted by path."""
    return sorted({p.disk for p in partitions})


def partitions_on_disk(partitions: Iterable[Partition], disk: str) -> List[Partition]:
    return [p for p in partitions if p.disk == disk]


def resolve_layout(partitions: List[Partition]) -> List[ResolvedPartition]:
    """
    Numbers every partition within its disk.

    Disks are visited in lexicographic order; within a disk, configuration
    order gives the numbers 1, 2, 3, ...
    """
    resolved = []
    for disk in unique_disks(partitions):
        for number, partition in enumerate(partitions_on_disk(partitions, disk), start=1):
            resolved.append(ResolvedPartition(partition, number, partition_device(disk, number)))
    return resolved
