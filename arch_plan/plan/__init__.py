# arch_plan/plan/__init__.py

from .assembler import PlanAssembler, generate_script
from .diagnostics import ConfigWarning, Diagnostics
from .layout import ResolvedPartition, partition_device, resolve_layout
from .model import Bootloader, Filesystem, InstallPlan, Kernel, Partition, User
from .validator import build_plan

__all__ = [
    "Bootloader",
    "ConfigWarning",
    "Diagnostics",
    "Filesystem",
    "InstallPlan",
    "Kernel",
    "Partition",
    "PlanAssembler",
    "ResolvedPartition",
    "User",
    "build_plan",
    "generate_script",
    "partition_device",
    "resolve_layout",
]
