# arch_plan/utils/exceptions.py

from typing import Optional


class ConfigurationError(Exception):
    """Base exception for configurations that cannot produce a working system."""
    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        self.message = message
        super().__init__(f"{self.message} (field: '{self.field}')" if field else self.message)

class ConfigFileError(ConfigurationError):
    """Exception raised when the configuration file cannot be read or decoded."""
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Cannot load configuration file '{path}': {reason}")

class MissingFieldError(ConfigurationError):
    """Exception raised when a required field is absent."""
    def __init__(self, field: str):
        super().__init__(f"{field} not specified", field=field)

class InvalidTimezoneError(ConfigurationError):
    """Exception raised when region/city do not resolve to a zoneinfo entry."""
    def __init__(self, region: Optional[str], city: Optional[str], zoneinfo_dir: str):
        self.region = region
        self.city = city
        super().__init__(f"Invalid timezone (region: '{region}', city: '{city}') in {zoneinfo_dir}", field="region")

class RelativeMountError(ConfigurationError):
    """Exception raised when a mount point is not an absolute path."""
    def __init__(self, mount: str):
        self.mount = mount
        super().__init__(f"Mount point is a relative path: '{mount}'", field="mount")

class UnknownBootloaderError(ConfigurationError):
    """Exception raised for bootloader names without an install strategy."""
    def __init__(self, bootloader: str):
        self.bootloader = bootloader
        super().__init__(f"Invalid bootloader '{bootloader}' (expected 'grub' or 'efistub')", field="bootloader")

class MissingPartitionError(ConfigurationError):
    """Exception raised when the bootloader needs a partition the layout lacks."""
    def __init__(self, role: str, mounts: str):
        self.role = role
        super().__init__(f"Using efistub, but no {role} partition (mounted at {mounts}) was detected", field="partitions")
