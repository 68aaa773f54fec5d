# arch_plan/config/__init__.py

from .models import RawInstallConfig, RawPartition, RawUser
from .sample import sample_config

__all__ = [
    "RawInstallConfig",
    "RawPartition",
    "RawUser",
    "sample_config",
]
