import pytest

from arch_plan.config.models import RawInstallConfig
from arch_plan.plan.model import Bootloader, InstallPlan, Kernel, Partition, User


@pytest.fixture
def zoneinfo(tmp_path):
    """A minimal timezone database: Europe/London and UTC."""
    root = tmp_path / "zoneinfo"
    (root / "Europe").mkdir(parents=True)
    (root / "Europe" / "London").write_bytes(b"TZif2")
    (root / "UTC").write_bytes(b"TZif2")
    return str(root)


@pytest.fixture
def make_raw():
    """Factory for a valid raw configuration; keyword arguments override fields."""
    def _make(**overrides) -> RawInstallConfig:
        data = {
            "hostname": "archlinux",
            "region": "Europe",
            "city": "London",
            "locales": ["en_US.UTF-8"],
            "kernel": "latest",
            "extra": "vim",
            "bootloader": "grub",
            "partitions": [{"format": "ext4", "mount": "/", "disk": "/dev/sda"}],
        }
        data.update(overrides)
        return RawInstallConfig.model_validate(data)
    return _make


@pytest.fixture
def make_plan():
    """Factory for an InstallPlan built directly, bypassing the validator."""
    def _make(partitions, bootloader=Bootloader.GRUB, kernel=Kernel.LATEST, **overrides) -> InstallPlan:
        data = {
            "hostname": "archlinux",
            "region": "Europe",
            "city": "London",
            "locales": ["en_US.UTF-8"],
            "kernel": kernel,
            "extra": "",
            "bootloader": bootloader,
            "partitions": [p if isinstance(p, Partition) else Partition(**p) for p in partitions],
            "users": [],
        }
        data.update(overrides)
        data["users"] = [u if isinstance(u, User) else User(**u) for u in data["users"]]
        return InstallPlan(**data)
    return _make
