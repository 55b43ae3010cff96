"""
Key-level comparison of two env files.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from envguard.core.env_parser import parse_env_file
from envguard.core.models import EnvEntry, EnvFile


@dataclass(frozen=True)
class ValueDifference:
    key: str
    value1: str
    value2: str


@dataclass
class EnvDiffResult:
    """Keys split by where they are defined and whether their values agree."""

    only_in_first: list[str] = field(default_factory=list)
    only_in_second: list[str] = field(default_factory=list)
    different: list[ValueDifference] = field(default_factory=list)
    common: list[str] = field(default_factory=list)

    @property
    def total_differences(self) -> int:
        return len(self.only_in_first) + len(self.only_in_second) + len(self.different)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def diff_env_maps(first: Mapping[str, EnvEntry], second: Mapping[str, EnvEntry]) -> EnvDiffResult:
    """Compare two parsed entry maps; every list in the result is sorted by key."""
    result = EnvDiffResult()

    for key in sorted(set(first) | set(second)):
        if key not in second:
            result.only_in_first.append(key)
        elif key not in first:
            result.only_in_second.append(key)
        elif first[key].value != second[key].value:
            result.different.append(ValueDifference(key, first[key].value, second[key].value))
        else:
            result.common.append(key)

    return result


def diff_env_files(path1: Path | str, path2: Path | str) -> tuple[EnvDiffResult, EnvFile, EnvFile]:
    """
    Parse and compare two env files.

    Returns:
        Tuple of (diff, first parsed file, second parsed file); the parsed
        files carry their own diagnostics for the caller to surface.
    """
    env1 = parse_env_file(path1)
    env2 = parse_env_file(path2)
    return diff_env_maps(env1.keys, env2.keys), env1, env2
