import pytest

from arch_plan.plan.assembler import (
    CHROOT_DELIMITER,
    PlanAssembler,
    generate_script,
    password_loop,
    section,
    status,
)
from arch_plan.plan.diagnostics import Diagnostics
from arch_plan.plan.model import Bootloader, Kernel, User
from arch_plan.plan.validator import build_plan
from arch_plan.utils.exceptions import MissingPartitionError

SDA_LAYOUT = [
    {"filesystem": "ext4", "disk": "/dev/sda", "mount": "/"},
    {"filesystem": "fat32", "disk": "/dev/sda", "mount": "/boot"},
]


def assert_in_order(text, *needles):
    """Every needle occurs in text, each after the previous one."""
    position = -1
    for needle in needles:
        found = text.find(needle, position + 1)
        assert found != -1, f"'{needle}' missing after position {position}"
        position = found


# ----------------------------------------------------------------------
# --- Helpers ---
# ----------------------------------------------------------------------

def test_status_line_is_quoted():
    assert status("Formatting partitions") == "echo '==> Formatting partitions'"


def test_section_without_commands_is_empty():
    assert section("Nothing", []) == ""
    assert section("Clock", ["timedatectl set-ntp true"]) == "echo '==> Clock'\ntimedatectl set-ntp true"


def test_password_loop_repeats_until_success():
    assert password_loop() == [
        "until passwd; do",
        "    echo 'Password was not changed, try again.'",
        "done",
    ]
    assert password_loop("archie")[0] == "until passwd archie; do"


# ----------------------------------------------------------------------
# --- Host stage ---
# ----------------------------------------------------------------------

def test_single_disk_grub_example(make_plan):
    """/dev/sda with ext4@/ and fat32@/boot, booted with GRUB."""
    assembler = PlanAssembler(make_plan(SDA_LAYOUT))

    assert assembler.fdisk_commands() == [
        "printf '%s\\n' g n 1 '' '' t linux n 2 '' '' t 2 uefi w | fdisk /dev/sda >/dev/null"
    ]
    assert assembler.format_commands() == ["mkfs.ext4 /dev/sda1", "mkfs.fat -F 32 /dev/sda2"]
    assert assembler.mount_commands() == [
        "mkdir -p /mnt && mount /dev/sda1 /mnt",
        "mkdir -p /mnt/boot && mount /dev/sda2 /mnt/boot",
    ]

    script = assembler.generate_script()
    assert script.count("| fdisk ") == 1
    assert_in_order(script, "grub-install --target=x86_64-efi", "grub-mkconfig -o /boot/grub/grub.cfg")


def test_nvme_swap_example(make_plan):
    assembler = PlanAssembler(make_plan([{"filesystem": "swap", "disk": "/dev/nvme0n1"}]))

    assert assembler.layout[0].device == "/dev/nvme0n1p1"
    assert assembler.format_commands() == ["mkswap /dev/nvme0n1p1"]
    assert assembler.mount_commands() == ["swapon /dev/nvme0n1p1"]


def test_root_is_mounted_first(make_plan):
    plan = make_plan([
        {"filesystem": "fat32", "disk": "/dev/sda", "mount": "/boot"},
        {"filesystem": "ext4", "disk": "/dev/sda", "mount": "/home"},
        {"filesystem": "ext4", "disk": "/dev/sdb", "mount": "/"},
        {"filesystem": "swap", "disk": "/dev/sda"},
    ])

    assert PlanAssembler(plan).mount_commands() == [
        "mkdir -p /mnt && mount /dev/sdb1 /mnt",
        "mkdir -p /mnt/boot && mount /dev/sda1 /mnt/boot",
        "mkdir -p /mnt/home && mount /dev/sda2 /mnt/home",
        "swapon /dev/sda3",
    ]


def test_fdisk_blocks_follow_disk_order(make_plan):
    plan = make_plan([
        {"filesystem": "ext4", "disk": "/dev/sdb", "mount": "/data"},
        {"filesystem": "ext4", "disk": "/dev/sda", "mount": "/", "size": "20G"},
    ])
    commands = PlanAssembler(plan).fdisk_commands()

    assert commands[0].endswith("| fdisk /dev/sda >/dev/null")
    assert "n 1 '' +20G t linux w" in commands[0]
    assert commands[1].endswith("| fdisk /dev/sdb >/dev/null")


def test_unknown_filesystem_is_not_formatted(make_plan):
    plan = make_plan([
        {"filesystem": "ext4", "disk": "/dev/sda", "mount": "/"},
        {"filesystem": "btrfs", "disk": "/dev/sda", "mount": "/data"},
    ])
    assembler = PlanAssembler(plan)

    assert assembler.format_commands() == ["mkfs.ext4 /dev/sda1"]
    assert "mount /dev/sda2 /mnt/data" in assembler.mount_commands()[1]


# ----------------------------------------------------------------------
# --- Packages ---
# ----------------------------------------------------------------------

def test_packages_grub_latest(make_plan):
    plan = make_plan(SDA_LAYOUT, extra="vim git")
    assert PlanAssembler(plan).packages() == [
        "base", "linux", "linux-firmware", "vim git", "grub", "efibootmgr", "networkmanager",
    ]


def test_packages_efistub_lts(make_plan):
    plan = make_plan(SDA_LAYOUT, bootloader=Bootloader.EFISTUB, kernel=Kernel.LTS)
    packages = PlanAssembler(plan).packages()

    assert "grub" not in packages
    assert "efistub" not in packages
    assert "linux-lts" in packages


def test_packages_with_wheel_user(make_plan):
    plan = make_plan(SDA_LAYOUT, users=[{"name": "archie", "groups": ["wheel"]}])
    assert PlanAssembler(plan).packages()[-1] == "sudo"


# ----------------------------------------------------------------------
# --- Whole script ---
# ----------------------------------------------------------------------

def test_host_stage_order(make_plan):
    script = generate_script(make_plan(SDA_LAYOUT))

    assert script.startswith("#!/bin/sh\n")
    assert script.endswith("umount -R /mnt\n")
    assert_in_order(
        script,
        "timedatectl set-ntp true",
        "| fdisk /dev/sda",
        "mkfs.ext4 /dev/sda1",
        "mount /dev/sda1 /mnt",
        "mount /dev/sda2 /mnt/boot",
        "pacstrap /mnt base linux linux-firmware grub efibootmgr networkmanager",
        "genfstab -U /mnt >> /mnt/etc/fstab",
        f"cat <<'{CHROOT_DELIMITER}' > /mnt/arch_plan_chroot.sh",
        f"\n{CHROOT_DELIMITER}\n",
        "chmod +x /mnt/arch_plan_chroot.sh",
        "arch-chroot /mnt /arch_plan_chroot.sh",
        "rm -f /mnt/arch_plan_chroot.sh",
        "umount -R /mnt",
    )


def test_chroot_stage_is_embedded_once(make_plan):
    script = generate_script(make_plan(SDA_LAYOUT))
    lines = script.splitlines()

    assert lines.count(CHROOT_DELIMITER) == 1
    assert script.count(CHROOT_DELIMITER) == 2


def test_chroot_stage_order(make_plan):
    plan = make_plan(SDA_LAYOUT, users=[{"name": "archie", "groups": ["wheel"], "shell": "/bin/bash"}])
    chroot = PlanAssembler(plan).chroot_script()

    assert chroot.startswith("#!/bin/sh\n")
    assert chroot.endswith("exit\n")
    assert_in_order(
        chroot,
        "ln -sf /usr/share/zoneinfo/Europe/London /etc/localtime",
        "hwclock --systohc",
        "--in-place /etc/locale.gen",
        "locale-gen",
        "echo LANG=en_US.UTF-8 >/etc/locale.conf",
        "echo archlinux >/etc/hostname",
        "cat <<'END_ETC_HOSTS' >/etc/hosts",
        "127.0.1.1\tarchlinux",
        "systemctl enable NetworkManager.service",
        "until passwd; do",
        "useradd -m -G wheel -s /bin/bash archie",
        "until passwd archie; do",
        "%wheel ALL=(ALL:ALL) ALL",
        "grub-install",
        "exit",
    )


def test_locales_are_uncommented_and_first_is_lang(make_plan):
    plan = make_plan(SDA_LAYOUT, locales=["nl_NL.UTF-8", "en_US.UTF-8"])
    sed, generate, lang = PlanAssembler(plan).locale_commands()

    assert sed.startswith("sed \\\n")
    assert "--expression 's/^#\\(nl_NL\\.UTF-8\\( .*\\)\\?\\)$/\\1/'" in sed
    assert "--expression 's/^#\\(en_US\\.UTF-8\\( .*\\)\\?\\)$/\\1/'" in sed
    assert generate == "locale-gen"
    assert lang == "echo LANG=nl_NL.UTF-8 >/etc/locale.conf"


def test_locale_is_escaped_for_sed_and_shell(make_plan):
    plan = make_plan(SDA_LAYOUT, locales=["it's/odd*"])
    sed, _, lang = PlanAssembler(plan).locale_commands()

    assert "--expression 's/^#\\(it'\"'\"'s\\/odd\\*\\( .*\\)\\?\\)$/\\1/'" in sed
    assert lang == "echo 'LANG=it'\"'\"'s/odd*' >/etc/locale.conf"


def test_lang_is_first_word_of_locale(make_plan):
    plan = make_plan(SDA_LAYOUT, locales=["de_DE.UTF-8 UTF-8"])
    assert PlanAssembler(plan).locale_commands()[2] == "echo LANG=de_DE.UTF-8 >/etc/locale.conf"


def test_blank_locale_generates_default(make_raw, zoneinfo):
    plan = build_plan(make_raw(locales=["  "]), Diagnostics(), zoneinfo)
    script = PlanAssembler(plan).generate_script()

    assert "echo LANG=en_US.UTF-8 >/etc/locale.conf" in script
    assert "s/^#\\(\\( .*\\)\\?\\)$/\\1/" not in script


def test_timezone_without_city(make_plan):
    plan = make_plan(SDA_LAYOUT, region="UTC", city="")
    assert PlanAssembler(plan).timezone_commands()[0] == "ln -sf /usr/share/zoneinfo/UTC /etc/localtime"


def test_no_users_means_no_user_section(make_plan):
    chroot = PlanAssembler(make_plan(SDA_LAYOUT)).chroot_script()
    assert "useradd" not in chroot
    assert "/etc/sudoers" not in chroot


def test_user_without_groups_or_shell():
    assert PlanAssembler.user_commands(User(name="guest"))[0] == "useradd -m guest"


def test_efistub_script(make_plan):
    plan = make_plan([
        {"filesystem": "fat32", "disk": "/dev/nvme0n1", "mount": "/boot", "size": "512M"},
        {"filesystem": "ext4", "disk": "/dev/nvme0n1", "mount": "/"},
    ], bootloader=Bootloader.EFISTUB, kernel=Kernel.LTS)
    script = generate_script(plan)

    assert "grub" not in script
    assert_in_order(script, "until passwd; do", "efibootmgr --disk /dev/nvme0n1 --part 1", "exit")
    assert "root=/dev/nvme0n1p2 rw initrd=\\initramfs-linux-lts.img" in script


def test_efistub_without_root_aborts(make_plan):
    plan = make_plan([{"filesystem": "fat32", "disk": "/dev/sda", "mount": "/boot"}], bootloader=Bootloader.EFISTUB)
    with pytest.raises(MissingPartitionError):
        generate_script(plan)
