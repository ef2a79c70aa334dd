"""
Bundler Adapter — compile an instrumented component source with esbuild.

The source is fed on stdin so the document directory only has to resolve
local imports. The UI framework and the component library stay external:
the sandbox page provides them through its import map, which keeps a
single React instance across the host and every bundle.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config import BundlerConfig
from ..core.inspector import inject_inspector_ids
from ..core.normalizer import ensure_default_export
from ..core.parsing import DialectConfig, get_parser
from ..errors import CompileError, ParseError

logger = logging.getLogger(__name__)


@dataclass
class BundleResult:
    code: str
    warnings: List[str] = field(default_factory=list)


class EsbuildBundler:
    """Runs the esbuild executable on one in-memory module."""

    def __init__(self, config: Optional[BundlerConfig] = None):
        self.config = config or BundlerConfig()

    def command(self, dialect: DialectConfig, source_file: str = "") -> List[str]:
        args = [
            self.config.executable,
            "--bundle",
            "--format=esm",
            "--jsx=automatic",
            f"--jsx-import-source={self.config.jsx_import_source}",
            f"--loader={dialect.bundle_loader}",
            "--log-level=warning",
        ]
        if source_file:
            args.append(f"--sourcefile={source_file}")
        args.extend(f"--external:{name}" for name in self.config.externals)
        return args

    def bundle(
        self,
        source: str,
        working_dir: Optional[Path] = None,
        dialect: Optional[DialectConfig] = None,
        source_file: str = "",
    ) -> BundleResult:
        """
        Bundle source into one ES module.

        Args:
            source: Normalized, instrumented component source
            working_dir: Directory local imports resolve against
            dialect: Source dialect, picks the esbuild loader
            source_file: Name used in esbuild diagnostics

        Raises:
            CompileError: esbuild failed, was not found, or timed out
        """
        dialect = dialect or get_parser().dialect_for(Path(source_file) if source_file else None)
        args = self.command(dialect, source_file)
        logger.debug("Running %s in %s", " ".join(args), working_dir or ".")

        try:
            result = subprocess.run(
                args,
                input=source,
                cwd=str(working_dir) if working_dir else None,
                capture_output=True,
                text=True,
                timeout=self.config.timeout,
            )
        except FileNotFoundError:
            raise CompileError(
                f"esbuild executable '{self.config.executable}' not found. "
                "Install it with: npm install -g esbuild"
            )
        except subprocess.TimeoutExpired:
            raise CompileError(f"esbuild timed out after {self.config.timeout:g}s")

        if result.returncode != 0:
            message = result.stderr.strip() or f"esbuild exited with status {result.returncode}"
            raise CompileError(message)

        warnings = [line for line in result.stderr.splitlines() if line.strip()]
        return BundleResult(code=result.stdout, warnings=warnings)


def compile_document(
    source: str,
    file_path: Optional[Path] = None,
    bundler: Optional[EsbuildBundler] = None,
) -> str:
    """
    Normalize, instrument and bundle a component source.

    Raises:
        CompileError: On syntax errors or any bundler failure
    """
    bundler = bundler or EsbuildBundler()
    file_path = Path(file_path) if file_path else None

    normalized = ensure_default_export(source, file_path=file_path)
    try:
        instrumented = inject_inspector_ids(normalized, file_path=file_path)
    except ParseError as e:
        raise CompileError(str(e)) from e

    dialect = get_parser().dialect_for(file_path)
    result = bundler.bundle(
        instrumented,
        working_dir=file_path.parent if file_path else None,
        dialect=dialect,
        source_file=file_path.name if file_path else "",
    )
    for warning in result.warnings:
        logger.info("esbuild: %s", warning)
    return result.code
