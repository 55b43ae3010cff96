"""
Reconciliation of code-referenced keys against env-file entries.
"""

from collections.abc import Iterable, Mapping

from envguard.core.config import EnvGuardConfig
from envguard.core.models import (
    CodeKey,
    EnvEntry,
    ValidationResult,
    ValidationSummary,
)


def reconcile(
    code_keys: Iterable[CodeKey],
    env_entries: Mapping[str, EnvEntry],
    config: EnvGuardConfig,
) -> ValidationResult:
    """
    Compare keys found in code with keys declared in env files.

    - missing: static code keys absent from the env files, unless the key is
      listed in ``allow_optional`` AND used with a fallback somewhere
    - uncertain: raw source text of the first usage of each dynamic key
    - unused: env keys no static code key references, minus ``ignore_keys``
    - empty: env keys with an empty value, minus ``ignore_keys``

    ``duplicates`` is never filled here; the parser reports duplicate keys.

    Returns:
        ValidationResult with every list sorted ascending
    """
    code_keys = list(code_keys)
    allow_optional = set(config.allow_optional)
    ignore_keys = set(config.ignore_keys)

    missing: list[str] = []
    uncertain: list[str] = []
    static_names: set[str] = set()

    for code_key in code_keys:
        if code_key.is_dynamic:
            if code_key.usages:
                uncertain.append(code_key.usages[0].raw_text)
            continue

        static_names.add(code_key.name)
        if code_key.name in env_entries:
            continue
        if code_key.name in allow_optional and code_key.is_optional:
            continue
        missing.append(code_key.name)

    unused = [
        key for key in env_entries
        if key not in static_names and key not in ignore_keys
    ]
    empty = [
        key for key, entry in env_entries.items()
        if entry.is_empty and key not in ignore_keys
    ]
    duplicates: list[str] = []

    return ValidationResult(
        missing=sorted(missing),
        unused=sorted(unused),
        empty=sorted(empty),
        duplicates=duplicates,
        uncertain=sorted(uncertain),
        summary=ValidationSummary(
            keys_in_code=len({key.name for key in code_keys}),
            keys_in_env=len(env_entries),
            total_issues=len(missing) + len(unused) + len(empty) + len(duplicates),
        ),
    )


def get_missing_key_details(
    code_keys: Iterable[CodeKey], missing_keys: Iterable[str]
) -> dict[str, CodeKey]:
    """Map each missing key name to its CodeKey, for usage-site reporting."""
    wanted = set(missing_keys)
    return {key.name: key for key in code_keys if key.name in wanted}


def get_unused_key_details(
    env_entries: Mapping[str, EnvEntry], unused_keys: Iterable[str]
) -> dict[str, EnvEntry]:
    """Map each unused key name to its EnvEntry, for source-line reporting."""
    return {key: env_entries[key] for key in unused_keys if key in env_entries}
