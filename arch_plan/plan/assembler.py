# arch_plan/plan/assembler.py

import re
import shlex
from typing import List

from arch_plan.plan.bootloader import ROOT_MOUNT, strategy_for
from arch_plan.plan.fragments import (
    MOUNT_ROOT,
    fdisk_fragment,
    map_partitions,
    mkfs_fragment,
    mount_fragment,
)
from arch_plan.plan.layout import ResolvedPartition, partitions_on_disk, resolve_layout, unique_disks
from arch_plan.plan.model import ZONEINFO_DIR, InstallPlan, User

# The chroot stage is written to the new root through a here-document with
# this delimiter, then run with arch-chroot and removed again.
CHROOT_DELIMITER = "END_OF_CHROOT_STAGE"
CHROOT_STAGE_FILE = "arch_plan_chroot.sh"
HOSTS_DELIMITER = "END_ETC_HOSTS"

SCRIPT_HEADER = "#!/bin/sh\n# Installation script generated by arch-plan"
CHROOT_HEADER = "#!/bin/sh\n# arch-chroot stage generated by arch-plan"


SED_SPECIAL = re.compile(r"([\\/.*\[\]^$])")


def sed_escape(text: str) -> str:
    """Escapes 'text' for a basic regular expression inside an s/// command."""
    return SED_SPECIAL.sub(r"\\\1", text)


def status(message: str) -> str:
    """A status line printed by the script before a phase runs."""
    return f"echo {shlex.quote('==> ' + message)}"


def section(message: str, commands: List[str]) -> str:
    """A status line followed by the phase's commands; empty if there are no commands."""
    if not commands:
        return ""
    return "\n".join([status(message)] + commands)


def join_sections(sections: List[str]) -> str:
    return "\n\n".join(s for s in sections if s) + "\n"


def password_loop(user: str = "") -> List[str]:
    """passwd is retried until it succeeds, the script never continues without a password."""
    command = f"passwd {shlex.quote(user)}" if user else "passwd"
    return [
        f"until {command}; do",
        "    echo 'Password was not changed, try again.'",
        "done",
    ]


class PlanAssembler:
    """
    Orders the fragments of an InstallPlan into the two-stage install script.

    The host stage partitions, formats and mounts the disks, installs the base
    system and hands the chroot stage over to arch-chroot. The chroot stage
    configures the installed system and the bootloader.
    """

    def __init__(self, plan: InstallPlan):
        self.plan = plan
        self.layout: List[ResolvedPartition] = resolve_layout(list(plan.partitions))
        self.bootloader = strategy_for(plan.bootloader)

    # --- HOST STAGE ---

    def fdisk_commands(self) -> List[str]:
        """One fdisk session per disk: new GPT label, every partition of the disk, write."""
        commands = []
        for disk in unique_disks(self.plan.partitions):
            lines = ["g"]
            for number, partition in enumerate(partitions_on_disk(self.plan.partitions, disk), start=1):
                lines += fdisk_fragment(partition, number)
            lines.append("w")
            keystrokes = " ".join(shlex.quote(line) for line in lines)
            commands.append(f"printf '%s\\n' {keystrokes} | fdisk {shlex.quote(disk)} >/dev/null")
        return commands

    def format_commands(self) -> List[str]:
        return map_partitions(self.layout, mkfs_fragment)

    def mount_commands(self) -> List[str]:
        """Mounts in layout order, except the root partition, which goes first."""
        # sorted() is stable, so everything but '/' keeps layout order
        ordered = sorted(self.layout, key=lambda r: r.mount != ROOT_MOUNT)
        return map_partitions(ordered, mount_fragment)

    def packages(self) -> List[str]:
        """Packages handed to pacstrap."""
        packages = ["base", self.plan.kernel.package, "linux-firmware"]
        if self.plan.extra.strip():
            packages.append(self.plan.extra.strip())
        packages += list(self.bootloader.packages)
        packages += ["efibootmgr", "networkmanager"]
        if self.plan.has_wheel_users:
            packages.append("sudo")
        return packages

    def chroot_handover(self) -> List[str]:
        stage_path = f"{MOUNT_ROOT}/{CHROOT_STAGE_FILE}"
        return [
            f"cat <<'{CHROOT_DELIMITER}' > {stage_path}\n{self.chroot_script()}{CHROOT_DELIMITER}",
            f"chmod +x {stage_path}",
            f"arch-chroot {MOUNT_ROOT} /{CHROOT_STAGE_FILE}",
            f"rm -f {stage_path}",
        ]

    def generate_script(self) -> str:
        """The complete host-side script, chroot stage embedded."""
        disk_sections = [
            section(f"Partitioning {disk}", [command])
            for disk, command in zip(unique_disks(self.plan.partitions), self.fdisk_commands())
        ]
        return join_sections([
            SCRIPT_HEADER,
            section("Synchronising the system clock", ["timedatectl set-ntp true"]),
            *disk_sections,
            section("Formatting partitions", self.format_commands()),
            section("Mounting partitions", self.mount_commands()),
            section("Installing packages", [f"pacstrap {MOUNT_ROOT} {' '.join(self.packages())}"]),
            section("Generating /etc/fstab", [f"genfstab -U {MOUNT_ROOT} >> {MOUNT_ROOT}/etc/fstab"]),
            section("Configuring the new system", self.chroot_handover()),
            section(f"Unmounting {MOUNT_ROOT}", [f"umount -R {MOUNT_ROOT}"]),
        ])

    # --- CHROOT STAGE ---

    def timezone_commands(self) -> List[str]:
        return [
            f"ln -sf {shlex.quote(ZONEINFO_DIR + '/' + self.plan.timezone)} /etc/localtime",
            "hwclock --systohc",
        ]

    def locale_commands(self) -> List[str]:
        """Uncomments every locale in /etc/locale.gen, generates them and sets LANG."""
        sed = ["sed "]
        for locale in self.plan.locales:
            expression = f"s/^#\\({sed_escape(locale)}\\( .*\\)\\?\\)$/\\1/"
            sed.append(f"    --expression {shlex.quote(expression)} ")
        sed.append("    --in-place /etc/locale.gen")
        lang = self.plan.locales[0].partition(" ")[0]
        return [
            "\\\n".join(sed),
            "locale-gen",
            f"echo {shlex.quote('LANG=' + lang)} >/etc/locale.conf",
        ]

    def hostname_commands(self) -> List[str]:
        hostname = self.plan.hostname
        hosts = "\n".join([
            "127.0.0.1\tlocalhost",
            "::1\tlocalhost",
            f"127.0.1.1\t{hostname}",
        ])
        return [
            f"echo {shlex.quote(hostname)} >/etc/hostname",
            f"cat <<'{HOSTS_DELIMITER}' >/etc/hosts\n{hosts}\n{HOSTS_DELIMITER}",
        ]

    @staticmethod
    def network_commands() -> List[str]:
        return [
            "systemctl enable systemd-resolved.service",
            "systemctl enable NetworkManager.service",
        ]

    @staticmethod
    def user_commands(user: User) -> List[str]:
        useradd = ["useradd", "-m"]
        if user.groups:
            useradd += ["-G", ",".join(user.groups)]
        if user.shell:
            useradd += ["-s", user.shell]
        useradd.append(user.name)
        return [shlex.join(useradd)] + password_loop(user.name)

    def users_section(self) -> List[str]:
        commands = []
        for user in self.plan.users:
            commands += self.user_commands(user)
        if self.plan.has_wheel_users:
            commands.append("sed --expression 's/^# \\(%wheel ALL=(ALL:ALL) ALL\\)$/\\1/' --in-place /etc/sudoers")
        return commands

    def chroot_script(self) -> str:
        """The script run inside the new root, ending with the bootloader and exit."""
        return join_sections([
            CHROOT_HEADER,
            section(f"Setting the timezone to {self.plan.timezone}", self.timezone_commands()),
            section("Generating locales", self.locale_commands()),
            section(f"Setting the hostname to {self.plan.hostname}", self.hostname_commands()),
            section("Enabling NetworkManager", self.network_commands()),
            section("Set root password:", password_loop()),
            section("Creating users", self.users_section()),
            section(f"Installing the {self.bootloader.name} bootloader",
                    self.bootloader.commands(self.plan, self.layout)),
            "exit",
        ])


def generate_script(plan: InstallPlan) -> str:
    """Compiles a validated plan into the installation script text."""
    return PlanAssembler(plan).generate_script()
