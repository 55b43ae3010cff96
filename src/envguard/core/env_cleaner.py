"""
Removal of unused keys from env files.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import unset_key

from envguard.core.env_parser import parse_env_file

logger = logging.getLogger(__name__)


@dataclass
class CleanResult:
    """
    Outcome of cleaning one env file.

    Attributes:
        path: Env file path
        removed: Keys removed (or that would be removed in a dry run)
        skipped: True if the file does not exist
    """

    path: str
    removed: list[str] = field(default_factory=list)
    skipped: bool = False

    @property
    def modified(self) -> bool:
        return bool(self.removed) and not self.skipped


def clean_env_files(
    env_files: Iterable[Path | str],
    unused_keys: Iterable[str],
    dry_run: bool = False,
) -> list[CleanResult]:
    """
    Remove the given keys from each env file that defines them.

    Every assignment of a removed key is deleted, including duplicates. Other
    lines, comments and formatting are left untouched.

    Args:
        env_files: Env files to clean
        unused_keys: Keys to remove
        dry_run: Report what would be removed without writing

    Returns:
        One CleanResult per env file, in input order
    """
    unused = sorted(set(unused_keys))
    results: list[CleanResult] = []

    for env_file in env_files:
        path = Path(env_file)
        result = CleanResult(path=str(env_file))
        results.append(result)

        if not path.exists():
            logger.warning(f"Skipping {env_file} (file not found)")
            result.skipped = True
            continue

        present = parse_env_file(path).keys
        result.removed = [key for key in unused if key in present]

        if dry_run:
            continue

        for key in result.removed:
            removed, _ = unset_key(path, key)
            if not removed:
                logger.warning(f"Could not remove {key} from {env_file}")

    return results
