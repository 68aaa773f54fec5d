# arch_plan/plan/fragments.py
"""
Per-partition command fragments.

Every function here is pure: it looks at one partition (and its resolved
number/device) and returns the text for one operation, or None when the
operation does not apply to that partition.
"""

import shlex
from typing import Callable, Iterable, List, Optional

from arch_plan.plan.layout import ResolvedPartition
from arch_plan.plan.model import Filesystem, Partition

MOUNT_ROOT = "/mnt"

# fdisk GPT type aliases
PARTITION_TYPES = {
    Filesystem.FAT32: "uefi",   # EFI System
    Filesystem.SWAP: "swap",    # Linux swap
}
DEFAULT_PARTITION_TYPE = "linux"  # Linux filesystem

MKFS_COMMANDS = {
    Filesystem.EXT2: "mkfs.ext2",
    Filesystem.EXT3: "mkfs.ext3",
    Filesystem.EXT4: "mkfs.ext4",
    Filesystem.FAT32: "mkfs.fat -F 32",
    Filesystem.SWAP: "mkswap",
}


def target_path(mount: str) -> str:
    """Where ``mount`` lives while the new system is assembled ('/' -> '/mnt')."""
    return f"{MOUNT_ROOT}{mount.rstrip('/')}"


def partition_type(partition: Partition) -> str:
    """fdisk type alias matching the partition's filesystem family."""
    return PARTITION_TYPES.get(partition.kind, DEFAULT_PARTITION_TYPE)


def fdisk_fragment(partition: Partition, number: int) -> List[str]:
    """
    The lines typed into fdisk to create partition ``number`` and set its type.

    n, <number>, default first sector, +<size> (or default last sector), then
    t, <number>, <type>. fdisk selects the only existing partition on its own,
    so the number after 't' is left out for the first one.
    """
    lines = ["n", str(number), "", f"+{partition.size}" if partition.size else "", "t"]
    if number != 1:
        lines.append(str(number))
    lines.append(partition_type(partition))
    return lines


def mkfs_fragment(resolved: ResolvedPartition) -> Optional[str]:
    """The format command, or None when the filesystem is not recognised."""
    command = MKFS_COMMANDS.get(resolved.partition.kind)
    if command is None:
        return None
    return f"{command} {shlex.quote(resolved.device)}"


def mount_fragment(resolved: ResolvedPartition) -> Optional[str]:
    """swapon for swap, mkdir + mount for anything with a mount point, else None."""
    device = shlex.quote(resolved.device)
    if resolved.partition.is_swap:
        return f"swapon {device}"
    if not resolved.mount:
        return None
    target = shlex.quote(target_path(resolved.mount))
    return f"mkdir -p {target} && mount {device} {target}"


def map_partitions(
    layout: Iterable[ResolvedPartition],
    apply: Callable[[ResolvedPartition], Optional[str]],
) -> List[str]:
    """Applies ``apply`` to every resolved partition, in layout order, keeping non-None results."""
    results = []
    for resolved in layout:
        fragment = apply(resolved)
        if fragment is not None:
            results.append(fragment)
    return results
