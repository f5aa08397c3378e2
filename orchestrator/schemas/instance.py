from dataclasses import dataclass
from typing import Any, Dict, Final, Mapping, Optional, Union


@dataclass(frozen=True)
class Present:
    """Variables recorded for a process instance."""

    variables: Dict[str, Any]


class _Absent:
    """The instance is unknown or has no recorded data yet."""

    _instance: Optional["_Absent"] = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Final = _Absent()

InstanceLookup = Union[Present, _Absent]


def lookup_of(variables: Optional[Mapping[str, Any]]) -> InstanceLookup:
    """Wrap a raw variables snapshot, mapping ``None`` to ``ABSENT``."""
    if variables is None:
        return ABSENT
    return Present(dict(variables))
