# arch_plan/plan/model.py

from enum import Enum
from typing import List, Optional

import typer
from pydantic import BaseModel, ConfigDict, Field, conlist

DEFAULT_LOCALE = "en_US.UTF-8"
DEFAULT_FILESYSTEM = "ext4"
ZONEINFO_DIR = "/usr/share/zoneinfo"


# --- 1. Tagged Variants ---

class Kernel(str, Enum):
    """Kernel flavour installed by pacstrap."""
    LATEST = "latest"
    LTS = "lts"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Kernel":
        """Only the exact string 'latest' selects the latest kernel."""
        return cls.LATEST if value == "latest" else cls.LTS

    @property
    def suffix(self) -> str:
        """Suffix appended to kernel package, image and initramfs names."""
        return "-lts" if self is Kernel.LTS else ""

    @property
    def package(self) -> str:
        return f"linux{self.suffix}"


class Bootloader(str, Enum):
    GRUB = "grub"
    EFISTUB = "efistub"


class Filesystem(str, Enum):
    """Filesystems the plan knows how to partition, format and mount."""
    EXT2 = "ext2"
    EXT3 = "ext3"
    EXT4 = "ext4"
    FAT32 = "fat32"
    SWAP = "swap"

    @classmethod
    def parse(cls, value: str) -> Optional["Filesystem"]:
        """Returns None for names without a variant; callers skip those partitions."""
        try:
            return cls(value)
        except ValueError:
            return None


# --- 2. Plan Entities ---

class Partition(BaseModel):
    """A single partition as requested by the configuration."""
    model_config = ConfigDict(frozen=True)

    filesystem: str = DEFAULT_FILESYSTEM
    disk: str
    size: str = ""
    mount: str = ""

    @property
    def kind(self) -> Optional[Filesystem]:
        return Filesystem.parse(self.filesystem)

    @property
    def is_swap(self) -> bool:
        return self.kind is Filesystem.SWAP


class User(BaseModel):
    """A regular user account created next to the implicit root account."""
    model_config = ConfigDict(frozen=True)

    name: str
    groups: List[str] = Field(default_factory=list)
    shell: str = ""


class InstallPlan(BaseModel):
    """
    The validated description of an installation.

    Built once by ``arch_plan.plan.validator.build_plan`` and read-only afterwards.
    """
    model_config = ConfigDict(frozen=True)

    hostname: str = Field(min_length=1)
    region: str
    city: str = ""
    locales: conlist(str, min_length=1)
    kernel: Kernel = Kernel.LTS
    extra: str = ""
    bootloader: Bootloader
    partitions: conlist(Partition, min_length=1)
    users: List[User] = Field(default_factory=list)

    @property
    def timezone(self) -> str:
        """Zoneinfo entry name, e.g. 'Europe/London' or 'UTC'."""
        return f"{self.region}/{self.city}" if self.city else self.region

    @property
    def has_wheel_users(self) -> bool:
        return any("wheel" in user.groups for user in self.users)

    def display_summary(self) -> str:
        """Renders a human readable overview of the plan."""
        s = typer.style("\nINSTALLATION PLAN SUMMARY", fg=typer.colors.BLUE, bold=True) + "\n"
        s += "----------------------------------------\n"
        s += f"  Hostname:           {self.hostname}\n"
        s += f"  Timezone:           {self.timezone}\n"
        s += f"  Locales:            {', '.join(self.locales)} (LANG={self.locales[0]})\n"
        s += f"  Kernel:             {self.kernel.package}\n"
        s += f"  Bootloader:         {self.bootloader.value}\n"
        s += f"  Extra packages:     {self.extra or 'None'}\n"

        s += typer.style("\nPARTITIONS", fg=typer.colors.BLUE, bold=True) + "\n"
        s += "----------------------------------------\n"
        for p in self.partitions:
            size = p.size or "rest"
            mount = p.mount or "-"
            s += f"  - {typer.style(p.disk, fg=typer.colors.CYAN)}  size: {size:<8} fs: {p.filesystem:<6} mount: {mount}\n"

        s += typer.style("\nUSERS", fg=typer.colors.BLUE, bold=True) + "\n"
        s += "----------------------------------------\n"
        s += "  root (implicit)\n"
        for user in self.users:
            s += f"  {user.name}: groups={', '.join(user.groups) or 'None'}, shell={user.shell or 'default'}\n"
        return s
