"""Scan orchestration: discover, extract and evaluate per file, then reduce."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..config import ScanConfig, default_config
from ..exceptions import FileAccessError, InvalidPathError, ScanCancelledError
from ..file_ops import iter_source_files, read_source_unit, relative_path
from ..logging_config import get_logger
from ..report import Report, aggregate
from ..rules.engine import RuleEngine
from ..rules.models import Violation
from ..similarity.detector import run_similarity_rule
from ..similarity.models import SimilarityPair
from .extractor import DeclarationExtractor
from .models import FileDeclarations
from .scope import ScopeTracker

logger = get_logger(__name__)


@dataclass
class FileResult:
    """Outcome of scanning one file. ``error`` is set when it was skipped."""

    path: str
    declarations: Optional[FileDeclarations] = None
    violations: List[Violation] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.error is not None


@dataclass
class ScanResult:
    files: List[FileDeclarations]
    violations: List[Violation]
    similarity_pairs: List[SimilarityPair]
    files_skipped: List[str]
    report: Report

    @property
    def files_scanned(self) -> int:
        return len(self.files)


class SourceScanner:
    """Scans a source tree against a compiled rule set.

    Per-file work (read, track scopes, extract, per-file rules) is independent
    and runs on a thread pool once there are ``parallel_threshold`` files.
    Results are sorted by path before anything is combined, so the outcome
    does not depend on completion order. Cross-file rules, similarity and
    aggregation then run on the calling thread.
    """

    def __init__(self, root: Path, engine: RuleEngine, config: Optional[ScanConfig] = None):
        if not root.is_dir():
            raise InvalidPathError(root, "not a directory")
        self.root = root
        self.engine = engine
        self.config = config or default_config

        container_filter = engine.container_filter() if self.config.scope_mode == "single" else None
        self.extractor = DeclarationExtractor(ScopeTracker(self.config.scope_mode, container_filter))

    def discover(self) -> List[Path]:
        """Source files under the root, or under each configured source dir."""
        bases = [self.root / d for d in self.config.source_dirs] or [self.root]
        found = {}
        for base in bases:
            if not base.is_dir():
                logger.warning(f"Source directory not found, skipping: {base}")
                continue
            files = iter_source_files(base, self.config.extensions, self.config.normalized_excluded_dirs)
            for path in files:
                found[relative_path(path, self.root)] = path
        return [found[key] for key in sorted(found)]

    def scan_file(self, path: Path) -> FileResult:
        rel = relative_path(path, self.root)
        start = time.perf_counter()
        try:
            unit = read_source_unit(
                path,
                self.root,
                encoding=self.config.encoding,
                max_size_bytes=self.config.max_file_size_bytes,
            )
        except FileAccessError as e:
            logger.warning(f"Skipping {rel}: {e.reason}")
            return FileResult(path=rel, error=e.reason)

        declarations = self.extractor.extract(unit)
        violations = self.engine.evaluate_file(declarations)
        logger.debug(f"Scanned {rel} in {(time.perf_counter() - start) * 1000:.1f}ms")
        return FileResult(path=rel, declarations=declarations, violations=violations)

    def scan(
        self,
        cancel_event: Optional[threading.Event] = None,
        generated_at: Optional[datetime] = None,
    ) -> ScanResult:
        """Scan every discovered file and build the report.

        Raises:
            ScanCancelledError: If ``cancel_event`` is set before the report
                is built
        """
        paths = self.discover()
        logger.info(f"Scanning {len(paths)} files under {self.root}")

        results = self._scan_files(paths, cancel_event)
        _check_cancelled(cancel_event, len(results), len(paths))
        results.sort(key=lambda r: r.path)

        files = [r.declarations for r in results if r.declarations is not None]
        skipped = [r.path for r in results if r.skipped]
        violations = [v for r in results for v in r.violations]

        all_declarations = [d for f in files for d in f.declarations]
        violations.extend(self.engine.evaluate_global(all_declarations))

        pairs: List[SimilarityPair] = []
        for rule in self.engine.similarity_rules:
            _check_cancelled(cancel_event, len(results), len(paths))
            pairs.extend(run_similarity_rule(rule, all_declarations))
        _check_cancelled(cancel_event, len(results), len(paths))

        report = aggregate(
            violations,
            pairs,
            self.engine.rules,
            layers=self.config.layers,
            files_scanned=len(files),
            files_skipped=skipped,
            root=str(self.root),
            generated_at=generated_at,
        )
        return ScanResult(
            files=files,
            violations=report.violations,
            similarity_pairs=report.similarity_pairs,
            files_skipped=skipped,
            report=report,
        )

    def _scan_files(self, paths: List[Path], cancel_event: Optional[threading.Event]) -> List[FileResult]:
        results: List[FileResult] = []

        if len(paths) < self.config.parallel_threshold or self.config.workers == 1:
            # Sequential for small batches (parallel overhead not worth it)
            for path in paths:
                if cancel_event is not None and cancel_event.is_set():
                    break
                results.append(self.scan_file(path))
            return results

        def _scan_unless_cancelled(path: Path) -> Optional[FileResult]:
            if cancel_event is not None and cancel_event.is_set():
                return None
            return self.scan_file(path)

        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            futures = [executor.submit(_scan_unless_cancelled, p) for p in paths]
            for future in as_completed(futures):
                # scan_file already turns read failures into skipped results
                try:
                    result = future.result()
                except BaseException:
                    for pending in futures:
                        pending.cancel()
                    raise
                if result is not None:
                    results.append(result)
        return results


def _check_cancelled(cancel_event: Optional[threading.Event], done: int, total: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ScanCancelledError(done, total)
