# arch_plan/plan/validator.py

import os
from typing import List, Optional

from arch_plan.config.models import RawInstallConfig, RawPartition, RawUser
from arch_plan.plan.diagnostics import Diagnostics
from arch_plan.plan.model import (
    DEFAULT_FILESYSTEM,
    DEFAULT_LOCALE,
    ZONEINFO_DIR,
    Bootloader,
    InstallPlan,
    Kernel,
    Partition,
    User,
)
from arch_plan.utils.exceptions import (
    InvalidTimezoneError,
    MissingFieldError,
    RelativeMountError,
    UnknownBootloaderError,
)


def is_valid_zoneinfo(region: Optional[str], city: Optional[str], zoneinfo_dir: str = ZONEINFO_DIR) -> bool:
    """True if '<region>[/<city>]' names a file inside the timezone database."""
    name = region or ""
    if city:
        name += f"/{city}"
    path = f"{zoneinfo_dir}/{name}"
    root = os.path.realpath(zoneinfo_dir)
    if os.path.commonpath([root, os.path.realpath(path)]) != root:
        return False
    return os.path.isfile(path)


def resolve_locales(locales: Optional[List[str]], diagnostics: Diagnostics) -> List[str]:
    resolved = []
    for index, locale in enumerate(locales or []):
        if not locale.strip():
            diagnostics.warn("locales", "blank locale ignored", index)
            continue
        resolved.append(locale.strip())
    if not resolved:
        diagnostics.warn("locales", f"locales not specified; defaulting to '{DEFAULT_LOCALE}'")
        return [DEFAULT_LOCALE]
    return resolved


def resolve_bootloader(value: str) -> Bootloader:
    try:
        return Bootloader(value)
    except ValueError:
        raise UnknownBootloaderError(value) from None


def resolve_partition(raw: RawPartition, index: int, diagnostics: Diagnostics) -> Partition:
    """
    Applies the per-partition rules.

    Args:
        raw (RawPartition): The decoded partition entry.
        index (int): Position in the configuration list, used in warnings.
        diagnostics (Diagnostics): Sink for default substitutions.

    Returns:
        Partition: The checked partition.

    Raises:
        MissingFieldError: The disk is absent.
        RelativeMountError: The mount point does not start with '/'.
    """
    if raw.disk is None:
        raise MissingFieldError(f"partitions[{index}].disk")

    filesystem = raw.format
    if not filesystem:
        diagnostics.warn("format", f"partition format not specified; defaulting to '{DEFAULT_FILESYSTEM}'", index)
        filesystem = DEFAULT_FILESYSTEM

    mount = raw.mount or ""
    if not mount:
        diagnostics.warn("mount", "partition mount not specified; it's not going to be mounted", index)
    elif not mount.startswith("/"):
        raise RelativeMountError(mount)

    return Partition(filesystem=filesystem, disk=raw.disk, size=raw.size or "", mount=mount)


def resolve_user(raw: RawUser, index: int) -> User:
    if not raw.name:
        raise MissingFieldError(f"users[{index}].name")
    return User(name=raw.name, groups=list(raw.groups or []), shell=raw.shell or "")


def build_plan(
    raw: RawInstallConfig,
    diagnostics: Optional[Diagnostics] = None,
    zoneinfo_dir: str = ZONEINFO_DIR,
) -> InstallPlan:
    """
    Turns a decoded configuration into an InstallPlan.

    Checks run in a fixed order and the first violated constraint raises a
    ConfigurationError. Every default substitution is recorded in ``diagnostics``.

    Args:
        raw (RawInstallConfig): The decoded configuration; every field may be None.
        diagnostics (Optional[Diagnostics]): Warning sink. A private one is used if omitted.
        zoneinfo_dir (str): Root of the timezone database.

    Returns:
        InstallPlan: The validated, immutable plan.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    kernel = Kernel.parse(raw.kernel)
    locales = resolve_locales(raw.locales, diagnostics)

    if not is_valid_zoneinfo(raw.region, raw.city, zoneinfo_dir):
        raise InvalidTimezoneError(raw.region, raw.city, zoneinfo_dir)

    if not raw.hostname:
        raise MissingFieldError("hostname")

    if raw.bootloader is None:
        raise MissingFieldError("bootloader")

    if not raw.partitions:
        raise MissingFieldError("partitions")
    partitions = [resolve_partition(p, i, diagnostics) for i, p in enumerate(raw.partitions)]

    users = [resolve_user(u, i) for i, u in enumerate(raw.users or [])]

    # an unrecognized name only fails once the layout checks have passed
    bootloader = resolve_bootloader(raw.bootloader)

    return InstallPlan(
        hostname=raw.hostname,
        region=raw.region or "",
        city=raw.city or "",
        locales=locales,
        kernel=kernel,
        extra=raw.extra or "",
        bootloader=bootloader,
        partitions=partitions,
        users=users,
    )
