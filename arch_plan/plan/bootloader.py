# arch_plan/plan/bootloader.py

import shlex
from typing import Dict, List, Optional, Tuple

from arch_plan.plan.layout import ResolvedPartition, device_index
from arch_plan.plan.model import Bootloader, InstallPlan
from arch_plan.utils.exceptions import MissingPartitionError, UnknownBootloaderError

BOOT_MOUNTS = ("/boot", "/efi")
ROOT_MOUNT = "/"


def find_mounted(layout: List[ResolvedPartition], mounts: Tuple[str, ...]) -> Optional[ResolvedPartition]:
    """First resolved partition (in layout order) mounted at one of ``mounts``."""
    return next((r for r in layout if r.mount in mounts), None)


class BootloaderStrategy:
    """
    Produces the boot configuration commands run at the end of the chroot stage.
    """
    name: str = ""
    packages: Tuple[str, ...] = ()

    def commands(self, plan: InstallPlan, layout: List[ResolvedPartition]) -> List[str]:
        raise NotImplementedError


class GrubStrategy(BootloaderStrategy):
    """GRUB installed for the x86_64 EFI target."""
    name = "grub"
    packages = ("grub",)

    def commands(self, plan: InstallPlan, layout: List[ResolvedPartition]) -> List[str]:
        install = ["grub-install", "--target=x86_64-efi"]
        boot = find_mounted(layout, BOOT_MOUNTS)
        if boot is not None:
            install.append(f"--efi-directory={boot.mount}")
        install += ["--bootloader-id=GRUB", "--recheck"]
        return [
            " ".join(install),
            "grub-mkconfig -o /boot/grub/grub.cfg",
        ]


class EfistubStrategy(BootloaderStrategy):
    """
    Registers the kernel itself as an EFI boot entry with efibootmgr.

    Needs the partition mounted at /boot or /efi (where the kernel and
    initramfs land) and the root partition.
    """
    name = "efistub"
    packages = ()

    def commands(self, plan: InstallPlan, layout: List[ResolvedPartition]) -> List[str]:
        boot = find_mounted(layout, BOOT_MOUNTS)
        if boot is None:
            raise MissingPartitionError("boot", " or ".join(BOOT_MOUNTS))
        root = find_mounted(layout, (ROOT_MOUNT,))
        if root is None:
            raise MissingPartitionError("root", ROOT_MOUNT)

        suffix = plan.kernel.suffix
        label = "Arch Linux LTS" if suffix else "Arch Linux"
        unicode = f"root={root.device} rw initrd=\\initramfs-linux{suffix}.img"
        return [
            f"efibootmgr --disk {shlex.quote(boot.disk)} --part {device_index(boot.device) or ''} --create "
            f"--label \"{label}\" --loader /vmlinuz-linux{suffix} "
            f"--unicode={shlex.quote(unicode)} --verbose"
        ]


STRATEGIES: Dict[Bootloader, BootloaderStrategy] = {
    Bootloader.GRUB: GrubStrategy(),
    Bootloader.EFISTUB: EfistubStrategy(),
}


def strategy_for(bootloader: Bootloader) -> BootloaderStrategy:
    """Returns the install strategy for a bootloader variant."""
    try:
        return STRATEGIES[Bootloader(bootloader)]
    except (KeyError, ValueError):
        raise UnknownBootloaderError(str(bootloader)) from None
