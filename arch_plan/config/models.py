# arch_plan/config/models.py

from pathlib import Path
from typing import List, Optional

import tomlkit
from pydantic import BaseModel, ValidationError

from arch_plan.utils.exceptions import ConfigFileError

# --- 1. Sub-Models ---
# Every field is optional: absence is a normal state, judged later by the validator.

class RawPartition(BaseModel):
    """A partition entry exactly as written in the configuration file."""
    format: Optional[str] = None
    disk: Optional[str] = None
    size: Optional[str] = None
    mount: Optional[str] = None


class RawUser(BaseModel):
    """A user entry exactly as written in the configuration file."""
    name: Optional[str] = None
    groups: Optional[List[str]] = None
    shell: Optional[str] = None


# --- 2. Top-Level Model ---

class RawInstallConfig(BaseModel):
    """The decoded config.toml, before any defaults or checks are applied."""

    hostname: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    locales: Optional[List[str]] = None
    kernel: Optional[str] = None
    extra: Optional[str] = None
    bootloader: Optional[str] = None
    partitions: Optional[List[RawPartition]] = None
    users: Optional[List[RawUser]] = None

    @classmethod
    def from_toml(cls, content: str, source: str = "<string>") -> 'RawInstallConfig':
        """Parses TOML text and decodes it into the raw model."""
        try:
            data = tomlkit.parse(content).unwrap()
        except Exception as e:
            raise ConfigFileError(source, f"invalid TOML format: {e}") from e

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigFileError(source, f"unexpected value types:\n{e}") from e

    @classmethod
    def load_config_from_file(cls, path: Path) -> 'RawInstallConfig':
        """Loads a TOML file into the raw model."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigFileError(str(path), str(e)) from e

        return cls.from_toml(content, source=str(path))
