"""
EnvAuditService: one entry point combining scanning, parsing and validation.

Shared by the CLI and by library callers that want a single object wired from
configuration rather than the individual core functions.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from envguard.core.config import EnvGuardConfig, load_config
from envguard.core.env_parser import (
    merge_env_files,
    parse_env_file,
    parse_env_files,
    parse_multiple_env_files,
)
from envguard.core.models import EnvEntry, EnvFile, SchemaValidationResult, ValidationResult
from envguard.core.reconciler import (
    get_missing_key_details,
    get_unused_key_details,
    reconcile,
)
from envguard.core.reporter import (
    ReportOptions,
    format_detailed_report,
    format_report,
    generate_env_example_from_keys,
)
from envguard.core.schema import EnvSchema, SchemaValidator
from envguard.core.usage_scanner import ScanResult, UsageScanner

logger = logging.getLogger(__name__)


@dataclass
class AuditRun:
    """
    One pass over the project.

    Attributes:
        scan: Keys referenced in code
        env_files: Each configured env file with its own diagnostics
        env_entries: Entries of all env files merged, later files winning
        result: Reconciliation of ``scan`` against ``env_entries``
    """

    scan: ScanResult
    env_files: list[EnvFile]
    env_entries: dict[str, EnvEntry]
    result: ValidationResult


class EnvAuditService:
    """
    Audits a project's environment variables according to an EnvGuardConfig.

    Every call recomputes from the filesystem; nothing is cached between calls.
    """

    def __init__(
        self,
        config: Optional[EnvGuardConfig] = None,
        root_path: Optional[Path | str] = None,
    ):
        """
        Args:
            config: Policy to apply. If None, loaded from the working directory.
            root_path: Directory that scan patterns and env files resolve
                      against. Defaults to the current working directory.
        """
        self._root_path = Path(root_path) if root_path is not None else Path.cwd()
        self.config = config if config is not None else load_config(search_dir=self._root_path)

    def _resolve(self, path: str) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self._root_path / candidate

    @property
    def env_file_paths(self) -> list[Path]:
        return [self._resolve(path) for path in self.config.env_files]

    def scan(self) -> ScanResult:
        """Scan all source files matched by the configured patterns."""
        scanner = UsageScanner(
            root_path=self._root_path,
            ignore_patterns=self.config.ignore_patterns,
        )
        return scanner.scan_patterns(self.config.paths)

    def load_env(self) -> dict[str, EnvEntry]:
        """Merge the configured env files; later files override earlier ones."""
        return parse_multiple_env_files(self.env_file_paths)

    def parse_env_files(self) -> list[EnvFile]:
        """Parse each configured env file separately, keeping its diagnostics."""
        return parse_env_files(self.env_file_paths)

    def check(self) -> ValidationResult:
        """Reconcile code usage against the configured env files."""
        return reconcile(self.scan().keys, self.load_env(), self.config)

    def audit(self) -> AuditRun:
        """Scan, parse and reconcile once, keeping every intermediate result."""
        scan = self.scan()
        env_files = self.parse_env_files()
        env_entries = merge_env_files(env_files)
        return AuditRun(
            scan=scan,
            env_files=env_files,
            env_entries=env_entries,
            result=reconcile(scan.keys, env_entries, self.config),
        )

    def _report_options(self, options: Optional[ReportOptions]) -> ReportOptions:
        return options or ReportOptions(format=self.config.report_format)

    def render_report(
        self,
        run: AuditRun,
        options: Optional[ReportOptions] = None,
        detailed: bool = False,
    ) -> str:
        """
        Format an existing AuditRun.

        A detailed table report adds usage sites of missing keys and source
        lines of unused keys; other formats ignore ``detailed``.
        """
        options = self._report_options(options)
        if not detailed or options.format != "table":
            return format_report(run.result, options)

        return format_detailed_report(
            run.result,
            get_missing_key_details(run.scan.keys, run.result.missing),
            get_unused_key_details(run.env_entries, run.result.unused),
            colors=options.colors,
        )

    def generate_report(self, options: Optional[ReportOptions] = None) -> str:
        return self.render_report(self.audit(), options)

    def generate_detailed_report(self, options: Optional[ReportOptions] = None) -> str:
        """Report with usage sites of missing keys and source lines of unused keys."""
        return self.render_report(self.audit(), options, detailed=True)

    def generate_env_example(self) -> str:
        """Render a .env.example from the keys referenced in code."""
        return generate_env_example_from_keys(self.scan().keys, self.config.include_optional)

    def validate_schema(
        self,
        schema: EnvSchema,
        env_file: Optional[Path | str] = None,
    ) -> SchemaValidationResult:
        """
        Validate an env file against a schema.

        Args:
            schema: Schema to validate against
            env_file: Env file to read. Defaults to the first configured env file.
        """
        path = self._resolve(str(env_file)) if env_file is not None else self.env_file_paths[0]
        env_values: dict[str, Any] = parse_env_file(path).as_values()
        return SchemaValidator(schema).validate(env_values)


def check_environment(
    config: Optional[EnvGuardConfig] = None,
    root_path: Optional[Path | str] = None,
) -> ValidationResult:
    """Convenience function: run a full check with the given or discovered config."""
    return EnvAuditService(config=config, root_path=root_path).check()
