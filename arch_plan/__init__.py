# arch_plan/__init__.py

# Exception imports
from .utils.exceptions import ConfigurationError
from .utils.exceptions import ConfigFileError
from .utils.exceptions import MissingFieldError
from .utils.exceptions import InvalidTimezoneError
from .utils.exceptions import RelativeMountError
from .utils.exceptions import UnknownBootloaderError
from .utils.exceptions import MissingPartitionError

# Import *
__all__ = [
    "ConfigurationError",
    "ConfigFileError",
    "MissingFieldError",
    "InvalidTimezoneError",
    "RelativeMountError",
    "UnknownBootloaderError",
    "MissingPartitionError",
]

# Versioning
__version__ = "0.1.0"
