"""
Synchronizer for reconciling two record stores.

Provides Synchronizer, which compares store A with store B and transfers
the records B is missing through the transfer engine's per-record step,
with its batching and pacing. The reverse direction only prepares
records: store A (the embedded dataset) is treated as read-only.
"""

import asyncio
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from spotsync.core.logging import RunLogger, get_logger
from spotsync.core.sync.differ import compare_snapshots
from spotsync.core.sync.migrator import MigrationProgress, TransferEngine
from spotsync.core.sync.models import MigrationOptions, SyncReport
from spotsync.core.sync.validator import validate_records
from spotsync.storage.base import RecordStore

logger = get_logger(__name__)


class Synchronizer:
    """
    Reconciles two stores by transferring what is missing, A to B.

    Records present in both stores are left alone, whatever their
    content; use compare_stores() to inspect field differences.
    """

    def __init__(
        self,
        store_a: RecordStore,
        store_b: RecordStore,
        options: Optional[MigrationOptions] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        progress_callback: Optional[Callable[[MigrationProgress], None]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Initialize synchronizer.

        Args:
            store_a: Store whose extra records are copied
            store_b: Store that receives them
            options: Batching, pacing and timeout options; overwrite is
                ignored since only missing records are written
            cancel_event: Optional cancellation signal
            progress_callback: Called after every record
            sleep: Pacing coroutine, injectable for tests
        """
        self.store_a = store_a
        self.store_b = store_b
        self.options = options or MigrationOptions()
        self.cancel_event = cancel_event
        self.progress_callback = progress_callback
        self._sleep = sleep

    def _engine(
        self, source: RecordStore, destination: RecordStore, **overrides: Any
    ) -> TransferEngine:
        options = replace(
            self.options, overwrite=False, skip_existing=True, **overrides
        )
        return TransferEngine(
            source,
            destination,
            options,
            cancel_event=self.cancel_event,
            progress_callback=self.progress_callback,
            sleep=self._sleep,
        )

    def _report(
        self,
        started: float,
        started_at: str,
        source: RecordStore,
        target: RecordStore,
        message: str,
        message_localized: str,
        **counts: Any,
    ) -> SyncReport:
        return SyncReport(
            duration_ms=int((time.monotonic() - started) * 1000),
            message=message,
            message_localized=message_localized,
            source_backend=source.backend_name,
            target_backend=target.backend_name,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
            **counts,
        )

    async def synchronize(self) -> SyncReport:
        """
        Copy records found only in store A into store B.

        Returns:
            SyncReport; non-success when the stores were already in sync
        """
        started = time.monotonic()
        started_at = datetime.now(timezone.utc).isoformat()
        a, b = self.store_a, self.store_b
        engine = self._engine(a, b, created_by="sync_service")
        run = RunLogger(f"sync {a.backend_name}->{b.backend_name}")

        try:
            records_a = await engine.load_snapshot(a, degrade=False)
        except Exception as e:
            logger.error(f"Synchronization failed: {e}")
            report = self._report(
                started,
                started_at,
                a,
                b,
                f"Synchronization failed: {e}",
                f"فشلت المزامنة: {e}",
                errors=[str(e)],
            )
            run.finish(report.success)
            return report

        records_b = await engine.load_snapshot(b)
        diff = compare_snapshots(records_a, records_b)
        run.step(
            "Stores compared",
            only_in_a=len(diff.only_in_a),
            only_in_b=len(diff.only_in_b),
        )

        missing = set(diff.only_in_a)
        candidates = [r for r in records_a if r.id in missing]
        if not candidates:
            report = self._report(
                started,
                started_at,
                a,
                b,
                "Stores already in sync",
                "المصدران متزامنان بالفعل",
            )
            run.finish(report.success)
            return report

        outcome = await engine.transfer(candidates)
        n = outcome.transferred
        report = self._report(
            started,
            started_at,
            a,
            b,
            f"Synchronization completed: {n} tests synchronized",
            f"اكتملت المزامنة: {n} اختبار تم مزامنته",
            transferred=outcome.transferred,
            failed=outcome.failed,
            skipped=outcome.skipped,
            errors=outcome.errors,
            cancelled=outcome.cancelled,
        )
        run.finish(report.success, transferred=n, failed=outcome.failed)
        return report

    async def prepare_reverse(self) -> SyncReport:
        """
        Prepare records found only in store B for store A, writing nothing.

        Records are validated (when validate_data is set) and cleaned, and
        counted as prepared.

        Returns:
            SyncReport whose ``transferred`` counts prepared records
        """
        started = time.monotonic()
        started_at = datetime.now(timezone.utc).isoformat()
        a, b = self.store_a, self.store_b
        engine = self._engine(b, a, dry_run=True, batch_delay_sec=0.0)
        run = RunLogger(f"prepare {b.backend_name}->{a.backend_name}")

        try:
            records_b = await engine.load_snapshot(b, degrade=False)
        except Exception as e:
            logger.error(f"Migration failed: {e}")
            report = self._report(
                started,
                started_at,
                b,
                a,
                f"Migration failed: {e}",
                f"فشل النقل: {e}",
                errors=[str(e)],
            )
            run.finish(report.success)
            return report

        if not records_b:
            report = self._report(
                started,
                started_at,
                b,
                a,
                "No tests found in source store",
                "لا توجد اختبارات في المصدر",
                errors=["Source store is empty"],
            )
            run.finish(report.success)
            return report

        records_a = await engine.load_snapshot(a)
        missing = set(compare_snapshots(records_a, records_b).only_in_b)
        candidates = [r for r in records_b if r.id in missing]
        if not candidates:
            report = self._report(
                started,
                started_at,
                b,
                a,
                "No tests to migrate",
                "لا توجد اختبارات للنقل",
            )
            run.finish(report.success)
            return report

        if self.options.validate_data:
            defects = validate_records(candidates)
            if defects:
                report = self._report(
                    started,
                    started_at,
                    b,
                    a,
                    "Data validation failed",
                    "فشل في التحقق من صحة البيانات",
                    failed=len(candidates),
                    errors=defects,
                )
                run.finish(report.success, defects=len(defects))
                return report

        outcome = await engine.transfer(candidates)
        n = outcome.transferred
        report = self._report(
            started,
            started_at,
            b,
            a,
            f"Migration prepared: {n} tests ready for local update",
            f"تم تحضير النقل: {n} اختبار جاهز للتحديث المحلي",
            transferred=outcome.transferred,
            failed=outcome.failed,
            skipped=outcome.skipped,
            errors=outcome.errors,
            cancelled=outcome.cancelled,
        )
        run.finish(report.success, prepared=n)
        return report
