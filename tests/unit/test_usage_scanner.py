"""
Unit tests for UsageScanner.

Tests detection of environment key references, including:
- Direct and bracket access in JavaScript/TypeScript
- Optional detection from fallback operators
- Dynamic access reported under synthetic keys
- Python access forms
- Pattern resolution, ignore patterns and unreadable files
"""

import logging
import warnings
from pathlib import Path

import pytest

from envguard.core.models import DYNAMIC_KEY_PREFIX, CodeKey, Usage, UsageKind
from envguard.core.usage_scanner import (
    DialectRegistry,
    UsageScanner,
    dynamic_key_name,
    expand_braces,
    merge_code_keys,
    scan_source,
)


def _names(keys: list[CodeKey]) -> list[str]:
    return sorted(key.name for key in keys)


def _by_name(keys: list[CodeKey]) -> dict[str, CodeKey]:
    return {key.name: key for key in keys}


class TestJavaScriptDetection:
    """Test detection of process.env accesses."""

    def test_direct_access(self):
        content = (
            "\n"
            "const port = process.env.PORT;\n"
            "const apiKey = process.env.API_KEY;\n"
            "console.log(process.env.NODE_ENV);\n"
        )

        keys = scan_source(content, "test1.js")

        assert _names(keys) == ["API_KEY", "NODE_ENV", "PORT"]
        assert all(k.usages[0].kind == UsageKind.DIRECT for k in keys)

    def test_bracket_access(self):
        content = (
            "const apiKey = process.env[\"API_KEY\"];\n"
            "const dbUrl = process.env['DATABASE_URL'];\n"
        )

        keys = scan_source(content, "test2.js")

        assert _names(keys) == ["API_KEY", "DATABASE_URL"]
        assert all(k.usages[0].kind == UsageKind.BRACKET for k in keys)
        assert _by_name(keys)["API_KEY"].usages[0].raw_text == 'process.env["API_KEY"]'

    def test_optional_variables(self):
        content = (
            "const port = process.env.PORT || 3000;\n"
            "const debug = process.env.DEBUG_MODE ?? false;\n"
            "const host = process.env['HOST']   || 'localhost';\n"
            "const key = process.env.API_KEY;\n"
        )

        keys = _by_name(scan_source(content, "test3.js"))

        assert keys["PORT"].is_optional is True
        assert keys["DEBUG_MODE"].is_optional is True
        assert keys["HOST"].is_optional is True
        assert keys["API_KEY"].is_optional is False

    def test_typescript_file(self):
        content = (
            "interface Config {\n"
            "  port: number;\n"
            "  apiKey: string;\n"
            "}\n"
            "const config: Config = {\n"
            "  port: parseInt(process.env.PORT || '3000'),\n"
            "  apiKey: process.env.API_KEY!\n"
            "};\n"
        )

        keys = _by_name(scan_source(content, "test5.ts"))

        assert sorted(keys) == ["API_KEY", "PORT"]
        assert keys["PORT"].is_optional is True

    def test_usage_locations(self):
        content = (
            "\n"
            "const port = process.env.PORT;\n"
            "if (process.env.PORT) {\n"
            "  console.log('Port is set');\n"
            "}\n"
        )

        keys = scan_source(content, "test6.js")

        assert len(keys) == 1
        port = keys[0]
        assert port.name == "PORT"
        assert [u.line for u in port.usages] == [2, 3]
        assert port.usages[0].column == 14
        assert port.usages[0].file == "test6.js"
        assert port.usages[0].raw_text == "process.env.PORT"

    def test_key_must_end_at_identifier_boundary(self):
        content = "const a = process.env.API_key;\nconst b = process.env.API_KEY_2;\n"

        keys = scan_source(content, "app.js")

        assert _names(keys) == ["API_KEY_2"]

    def test_lowercase_access_is_not_a_static_key(self):
        keys = scan_source("const p = process.env.port;\n", "app.js")

        assert keys == []


class TestDynamicDetection:
    """Test dynamic process.env[...] accesses."""

    def test_dynamic_access_is_uncertain(self):
        content = (
            "\n"
            "const prefix = 'API_';\n"
            "const token = process.env[prefix + 'TOKEN'];\n"
            "const dynamicKey = process.env[someVariable];\n"
        )

        keys = scan_source(content, "test4.js")

        assert len(keys) == 2
        assert all(k.name.startswith(DYNAMIC_KEY_PREFIX) for k in keys)
        assert all(k.usages[0].kind == UsageKind.DYNAMIC for k in keys)
        assert [k.usages[0].raw_text for k in keys] == [
            "process.env[prefix + 'TOKEN']",
            "process.env[someVariable]",
        ]

    def test_literal_bracket_is_not_dynamic(self):
        keys = scan_source("const a = process.env['PORT'];\n", "app.js")

        assert _names(keys) == ["PORT"]

    def test_two_dynamic_accesses_on_one_line_stay_separate(self):
        content = "const x = process.env[a] + process.env[b];\n"

        keys = scan_source(content, "app.js")

        assert len(keys) == 2
        assert {k.usages[0].column for k in keys} == {11, 28}

    def test_dynamic_names_differ_across_files(self):
        content = "const x = process.env[name];\n"

        merged = merge_code_keys(
            [scan_source(content, "a.js"), scan_source(content, "b.js")]
        )

        assert len(merged) == 2
        assert all(len(k.usages) == 1 for k in merged)

    def test_dynamic_key_name_format(self):
        name = dynamic_key_name("src/app.js", 3, 11)

        assert name.startswith("DYNAMIC_KEY_3_11_")
        assert len(name.rsplit("_", 1)[1]) == 8


class TestPythonDetection:
    """Test os.environ / os.getenv accesses in Python files."""

    CONTENT = (
        "import os\n"
        "DB = os.environ[\"DATABASE_URL\"]\n"
        "PORT = os.getenv(\"PORT\", \"8000\")\n"
        "DEBUG = os.environ.get('DEBUG') or False\n"
        "SECRET = os.getenv(\"SECRET_KEY\")\n"
        "name = os.environ[key_name]\n"
        "other = os.getenv(prefix + \"_URL\")\n"
    )

    def test_static_keys(self):
        keys = _by_name(scan_source(self.CONTENT, "settings.py"))

        static = sorted(k for k in keys if not k.startswith(DYNAMIC_KEY_PREFIX))
        assert static == ["DATABASE_URL", "DEBUG", "PORT", "SECRET_KEY"]
        assert keys["DATABASE_URL"].usages[0].kind == UsageKind.BRACKET
        assert keys["PORT"].usages[0].kind == UsageKind.CALL

    def test_optional_keys(self):
        keys = _by_name(scan_source(self.CONTENT, "settings.py"))

        assert keys["PORT"].is_optional is True
        assert keys["DEBUG"].is_optional is True
        assert keys["DATABASE_URL"].is_optional is False
        assert keys["SECRET_KEY"].is_optional is False

    def test_dynamic_keys(self):
        keys = scan_source(self.CONTENT, "settings.py")

        dynamic = [k for k in keys if k.is_dynamic]
        assert [k.usages[0].raw_text for k in dynamic] == [
            "os.environ[key_name]",
            'os.getenv(prefix + "_URL")',
        ]

    def test_javascript_forms_ignored_in_python(self):
        keys = scan_source("x = 'process.env.PORT'\n", "notes.py")

        assert keys == []

    def test_registry_selects_dialect_by_extension(self):
        registry = DialectRegistry()

        assert registry.for_path("app/settings.py").name == "python"
        assert registry.for_path("src/index.tsx").name == "javascript"
        assert registry.for_path("README.md").name == "javascript"
        assert ".vue" in registry.get_all_extensions()


class TestMergeCodeKeys:
    """Test merging per-file key lists."""

    def test_usages_concatenate_and_optional_ors(self):
        first = scan_source("const p = process.env.PORT;\n", "a.js")
        second = scan_source("const p = process.env.PORT || 80;\n", "b.js")

        merged = merge_code_keys([first, second])

        assert len(merged) == 1
        assert [u.file for u in merged[0].usages] == ["a.js", "b.js"]
        assert merged[0].is_optional is True

    def test_inputs_are_not_modified(self):
        usage = Usage("a.js", 1, 1, UsageKind.DIRECT, "process.env.PORT")
        original = CodeKey(name="PORT", usages=[usage])

        merge_code_keys([[original], [CodeKey(name="PORT", usages=[usage], is_optional=True)]])

        assert len(original.usages) == 1
        assert original.is_optional is False


class TestExpandBraces:
    """Test brace expansion of glob patterns."""

    def test_simple_group(self):
        assert expand_braces("src/**/*.{js,ts}") == ["src/**/*.js", "src/**/*.ts"]

    def test_nested_group(self):
        assert expand_braces("a{b,c{d,e}}") == ["ab", "acd", "ace"]

    def test_multiple_groups(self):
        assert expand_braces("{src,lib}/*.{js,ts}") == [
            "src/*.js",
            "src/*.ts",
            "lib/*.js",
            "lib/*.ts",
        ]

    @pytest.mark.parametrize("pattern", ["src/**/*.js", "src/{unclosed.js"])
    def test_patterns_without_complete_group_are_unchanged(self, pattern):
        assert expand_braces(pattern) == [pattern]


class TestUsageScannerFiles:
    """Test scanning files on disk."""

    def test_scan_patterns_respects_ignore_patterns(self, tmp_path: Path):
        (tmp_path / "src").mkdir()
        (tmp_path / "node_modules" / "lib").mkdir(parents=True)
        (tmp_path / "src" / "app.js").write_text("process.env.APP_KEY\n", encoding="utf-8")
        (tmp_path / "node_modules" / "lib" / "dep.js").write_text(
            "process.env.DEP_KEY\n", encoding="utf-8"
        )

        scanner = UsageScanner(root_path=tmp_path)
        result = scanner.scan_patterns(["**/*.{js,ts}"])

        assert result.key_names == {"APP_KEY"}
        assert result.files == [str(tmp_path / "src" / "app.js")]

    def test_custom_ignore_patterns(self, tmp_path: Path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "app.js").write_text("process.env.APP_KEY\n", encoding="utf-8")
        (tmp_path / "src" / "app.test.js").write_text("process.env.TEST_KEY\n", encoding="utf-8")

        scanner = UsageScanner(root_path=tmp_path, ignore_patterns=["*.test.js"])
        result = scanner.scan_patterns(["src/**/*.js"])

        assert result.key_names == {"APP_KEY"}

    def test_ignore_spec_builds_without_deprecation_warnings(self, tmp_path: Path):
        (tmp_path / "dist").mkdir()
        (tmp_path / "dist" / "bundle.js").write_text("process.env.BUNDLE\n", encoding="utf-8")
        (tmp_path / "app.js").write_text("process.env.APP_KEY\n", encoding="utf-8")

        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            scanner = UsageScanner(root_path=tmp_path, ignore_patterns=["dist/"])

        assert scanner.resolve_patterns(["**/*.js"]) == [tmp_path / "app.js"]

    def test_resolve_patterns_sorted_and_deduplicated(self, tmp_path: Path):
        for name in ("b.js", "a.js"):
            (tmp_path / name).write_text("", encoding="utf-8")

        scanner = UsageScanner(root_path=tmp_path)
        files = scanner.resolve_patterns(["*.js", "a.js"])

        assert files == [tmp_path / "a.js", tmp_path / "b.js"]

    def test_merges_across_files_in_order(self, tmp_path: Path):
        first = tmp_path / "a.js"
        second = tmp_path / "b.js"
        first.write_text("process.env.PORT\n", encoding="utf-8")
        second.write_text("\nprocess.env.PORT ?? 80\n", encoding="utf-8")

        result = UsageScanner(root_path=tmp_path).scan_many([first, second])

        port = result.get("PORT")
        assert port is not None
        assert [(u.file, u.line) for u in port.usages] == [(str(first), 1), (str(second), 2)]
        assert port.is_optional is True

    def test_unreadable_file_is_skipped_with_warning(self, tmp_path: Path, caplog):
        good = tmp_path / "good.js"
        good.write_text("process.env.GOOD\n", encoding="utf-8")
        missing = tmp_path / "missing.js"

        with caplog.at_level(logging.WARNING):
            result = UsageScanner(root_path=tmp_path).scan_many([missing, good])

        assert result.key_names == {"GOOD"}
        assert len(result.warnings) == 1
        assert result.warnings[0].file == str(missing)
        assert "Failed to read file" in result.warnings[0].message
        assert "Failed to read file" in caplog.text

    def test_binary_file_is_skipped(self, tmp_path: Path):
        binary = tmp_path / "blob.js"
        binary.write_bytes(b"\xff\xfe\x00process.env.KEY")

        result = UsageScanner(root_path=tmp_path).scan_many([binary])

        assert result.keys == []
        assert len(result.warnings) == 1
