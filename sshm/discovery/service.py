"""
Discovery Service - one coordinated discovery pass.

Sources are read concurrently (one worker per source kind), their results
are joined, then the merge engine applies them to the store on the
calling thread. Only one pass runs at a time.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from sshm.config.models import Config
from sshm.core.types import SourceKind
from sshm.discovery.merge import MergeEngine, MergeReport
from sshm.discovery.models import SourceResult
from sshm.discovery.sources import BaseSource, build_sources
from sshm.persistence.store import HostStore
from sshm.ssh.known_hosts import backup_known_hosts
from sshm.utils.logger import log_prefix, logger


class DiscoveryService:
    """Run discovery passes against an explicitly owned store."""

    def __init__(
        self,
        store: HostStore,
        config: Config,
        sources: list[BaseSource] | None = None,
    ):
        self.store = store
        self.config = config
        self.sources = sources if sources is not None else build_sources(config.sources)
        self.engine = MergeEngine(store, fallback_user=config.discovery.default_user)
        self._pass_lock = threading.Lock()
        self._backup_done = False

    @property
    def backup_dir(self) -> Path:
        return self.config.general.data_dir / "backups"

    @property
    def running(self) -> bool:
        return self._pass_lock.locked()

    def _backup_once(self) -> None:
        if self._backup_done:
            return
        self._backup_done = True
        if not self.config.discovery.backup_known_hosts:
            return
        if not any(s.kind is SourceKind.KNOWN_HOSTS for s in self.sources):
            return
        backup_known_hosts(
            self.config.sources.known_hosts,
            self.backup_dir,
            keep=self.config.discovery.keep_backups,
        )

    def collect(self) -> list[SourceResult]:
        """Load every source concurrently; never raises for a source failure."""
        if not self.sources:
            return []

        results: list[SourceResult] = []
        with ThreadPoolExecutor(
            max_workers=len(self.sources), thread_name_prefix="sshm-source"
        ) as executor:
            future_to_source = {executor.submit(source.load): source for source in self.sources}
            for future in as_completed(future_to_source):
                source = future_to_source[future]
                try:
                    results.append(future.result())
                except Exception as e:
                    # A parser bug must not cost the other sources
                    logger.error(f"{log_prefix('❌')} Source {source.kind.value} failed: {e}")
                    results.append(
                        SourceResult(kind=source.kind, warnings=[f"{source.kind.value} failed: {e}"])
                    )

        results.sort(key=lambda r: list(SourceKind).index(r.kind))
        return results

    def run(self) -> MergeReport:
        """Run one full pass: backup, read, merge."""
        with self._pass_lock:
            logger.info(f"{log_prefix('🔍')} Discovery pass started")
            self._backup_once()
            results = self.collect()

            candidates = [c for r in results for c in r.candidates]
            warnings = [w for r in results for w in r.warnings]
            for warning in warnings:
                logger.warning(f"{log_prefix('⚠️')} {warning}")

            report = self.engine.apply(candidates, warnings)
            report.candidates_by_source = {r.kind: len(r.candidates) for r in results}
            report.skipped += sum(r.lines_skipped for r in results)
            logger.info(f"{log_prefix('✅')} Discovery pass finished: {report.summary()}")
            return report
