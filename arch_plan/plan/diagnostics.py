# arch_plan/plan/diagnostics.py
from dataclasses import dataclass, field
from typing import Iterator, List, Optional


@dataclass(frozen=True)
class ConfigWarning:
    """A default that was substituted for a missing optional field."""
    field: str
    message: str
    index: Optional[int] = None

    def __str__(self) -> str:
        where = f"{self.field}[{self.index}]" if self.index is not None else self.field
        return f"warning: {where}: {self.message}"


@dataclass
class Diagnostics:
    """
    Sink collecting the warnings emitted while a plan is validated.

    The validator only appends; callers decide how (and whether) to display them.
    """
    warnings: List[ConfigWarning] = field(default_factory=list)

    def warn(self, field_name: str, message: str, index: Optional[int] = None) -> None:
        self.warnings.append(ConfigWarning(field=field_name, message=message, index=index))

    def fields(self) -> List[str]:
        return [w.field for w in self.warnings]

    def __iter__(self) -> Iterator[ConfigWarning]:
        return iter(self.warnings)

    def __len__(self) -> int:
        return len(self.warnings)

    def __bool__(self) -> bool:
        return bool(self.warnings)
