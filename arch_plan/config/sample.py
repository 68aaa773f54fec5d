# arch_plan/config/sample.py

SAMPLE_CONFIG = '''\
# Basic Arch installation: latest kernel, a single root partition on /dev/sda,
# booted with GRUB.

hostname = "archlinux"

# Either "grub" or "efistub"
bootloader = "grub"

# Extra packages handed to pacstrap, separated by spaces
extra = "vim"

# Timezone, as in /usr/share/zoneinfo/<region>/<city>
region = "Europe"
city = "London"

# Locales to generate. The first one becomes LANG.
# When nothing is specified, "en_US.UTF-8" is assumed.
locales = ["en_US.UTF-8"]

# "latest" or "lts" (anything else means lts)
kernel = "latest"

# Partitions are numbered per disk, in the order they are listed here.
# Without a size, the partition takes the remaining space on the disk.
[[partitions]]
format = "ext4"
mount = "/"
disk = "/dev/sda"

# Users are optional; root always exists.
# Shells are not checked, use full paths.
[[users]]
name = "archie"
groups = ["wheel"]
shell = "/bin/bash"
'''


def sample_config() -> str:
    """Returns a commented example configuration file."""
    return SAMPLE_CONFIG
