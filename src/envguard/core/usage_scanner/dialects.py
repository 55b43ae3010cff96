"""
Access dialects: the textual forms in which a language reads its environment.

Each dialect is a set of regex rules. Static rules capture a literal key name
in the ``key`` group; dynamic rules locate an access whose key is computed at
runtime. Dialects are looked up by file extension through DialectRegistry.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from envguard.core.models import UsageKind

logger = logging.getLogger(__name__)

KEY_PATTERN = r"[A-Z_][A-Z0-9_]*"

# A static key must not be followed by more identifier characters
_KEY_END = r"(?![A-Za-z0-9_$])"


@dataclass(frozen=True)
class AccessRule:
    """
    A static access form.

    Attributes:
        kind: UsageKind reported for matches
        pattern: Regex with a ``key`` group holding the key name
        optional_tail: Regex matched right after the access; a match means the
                       site supplies a fallback value
    """

    kind: UsageKind
    pattern: re.Pattern[str]
    optional_tail: re.Pattern[str] | None = None


@dataclass(frozen=True)
class DynamicRule:
    """
    An access form whose key may be computed.

    The expression runs from the ``opener`` match to the first ``closer``
    character on the same line. It is dynamic unless it has ``literal_shape``,
    which the static rules already report.
    """

    opener: re.Pattern[str]
    closer: str
    literal_shape: re.Pattern[str]


@dataclass(frozen=True)
class AccessDialect:
    name: str
    extensions: frozenset[str]
    rules: tuple[AccessRule, ...]
    dynamic_rules: tuple[DynamicRule, ...] = ()


_JS_FALLBACK_TAIL = re.compile(r"\s*(?:\|\||\?\?)")

JAVASCRIPT_DIALECT = AccessDialect(
    name="javascript",
    extensions=frozenset(
        {".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts", ".vue", ".svelte"}
    ),
    rules=(
        # process.env.KEY
        AccessRule(
            kind=UsageKind.DIRECT,
            pattern=re.compile(rf"process\.env\.(?P<key>{KEY_PATTERN}){_KEY_END}"),
            optional_tail=_JS_FALLBACK_TAIL,
        ),
        # process.env["KEY"] / process.env['KEY']
        AccessRule(
            kind=UsageKind.BRACKET,
            pattern=re.compile(rf"process\.env\[(['\"])(?P<key>{KEY_PATTERN})\1\]"),
            optional_tail=_JS_FALLBACK_TAIL,
        ),
    ),
    dynamic_rules=(
        DynamicRule(
            opener=re.compile(r"process\.env\["),
            closer="]",
            literal_shape=re.compile(rf"process\.env\[(['\"]){KEY_PATTERN}\1\]$"),
        ),
    ),
)

# A second argument is a default; ``or`` after the call is a fallback
_PY_CALL_TAIL = re.compile(r"\s*,|\s*\)\s*or\b")
_PY_SUBSCRIPT_TAIL = re.compile(r"\s*or\b")

PYTHON_DIALECT = AccessDialect(
    name="python",
    extensions=frozenset({".py", ".pyi"}),
    rules=(
        # os.environ["KEY"]
        AccessRule(
            kind=UsageKind.BRACKET,
            pattern=re.compile(rf"os\.environ\[(['\"])(?P<key>{KEY_PATTERN})\1\]"),
            optional_tail=_PY_SUBSCRIPT_TAIL,
        ),
        # os.getenv("KEY"...) / os.environ.get("KEY"...)
        AccessRule(
            kind=UsageKind.CALL,
            pattern=re.compile(
                rf"(?:os\.getenv|os\.environ\.get)\(\s*(['\"])(?P<key>{KEY_PATTERN})\1"
            ),
            optional_tail=_PY_CALL_TAIL,
        ),
    ),
    dynamic_rules=(
        DynamicRule(
            opener=re.compile(r"os\.environ\["),
            closer="]",
            literal_shape=re.compile(rf"os\.environ\[(['\"]){KEY_PATTERN}\1\]$"),
        ),
        DynamicRule(
            opener=re.compile(r"(?:os\.getenv|os\.environ\.get)\("),
            closer=")",
            literal_shape=re.compile(
                rf"(?:os\.getenv|os\.environ\.get)\(\s*(['\"]){KEY_PATTERN}\1"
            ),
        ),
    ),
)


class DialectRegistry:
    """
    Registry mapping file extensions to access dialects.

    Files with an unregistered extension use the fallback dialect.

    Example:
        >>> registry = DialectRegistry()
        >>> registry.for_path(Path("app/settings.py")).name
        'python'
    """

    def __init__(
        self,
        dialects: list[AccessDialect] | None = None,
        fallback: AccessDialect = JAVASCRIPT_DIALECT,
    ):
        self._by_extension: dict[str, AccessDialect] = {}
        self._fallback = fallback
        for dialect in dialects if dialects is not None else [JAVASCRIPT_DIALECT, PYTHON_DIALECT]:
            self.register(dialect)

    def register(self, dialect: AccessDialect) -> "DialectRegistry":
        """Register a dialect for all of its extensions; later ones win."""
        for ext in dialect.extensions:
            previous = self._by_extension.get(ext.lower())
            if previous is not None and previous.name != dialect.name:
                logger.debug(f"Extension {ext} remapped from {previous.name} to {dialect.name}")
            self._by_extension[ext.lower()] = dialect
        return self

    def for_path(self, path: Path | str) -> AccessDialect:
        return self._by_extension.get(Path(path).suffix.lower(), self._fallback)

    def get_all_extensions(self) -> set[str]:
        return set(self._by_extension)


_default_registry: DialectRegistry | None = None


def get_default_registry() -> DialectRegistry:
    """Get the shared default DialectRegistry instance."""
    global _default_registry
    if _default_registry is None:
        _default_registry = DialectRegistry()
    return _default_registry
