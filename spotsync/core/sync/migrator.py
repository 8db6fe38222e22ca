"""Record transfer engine.

Moves test records from a source store to a destination store in paced
batches. Each add/update call is isolated: one failure is counted and
reported, it never stops the batch or the run. Store read failures are
folded into the report as well, so migrate() always returns a SyncReport.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    Any,
    Awaitable,
    Callable,
    Collection,
    List,
    Optional,
    Sequence,
    Set,
    TypeVar,
)

from spotsync.core.exceptions import StoreError
from spotsync.core.logging import RunLogger, get_logger
from spotsync.core.models.records import RawRecord, TestRecord, raw_get
from spotsync.core.sync.cleaner import DEFAULT_METHOD_NAME, clean_record
from spotsync.core.sync.models import MigrationOptions, SyncReport
from spotsync.core.sync.validator import validate_records
from spotsync.storage.base import RecordStore

logger = get_logger(__name__)

T = TypeVar("T")

# Outcomes of one per-record step
TRANSFERRED = "transferred"
SKIPPED = "skipped"


@dataclass
class MigrationProgress:
    """Progress callback data."""

    current: int
    total: int
    percentage: float
    current_test: str


@dataclass
class TransferOutcome:
    """Counters accumulated over one run of the per-record step."""

    transferred: int = 0
    failed: int = 0
    skipped: int = 0
    attempted: int = 0
    cancelled: bool = False
    errors: List[str] = field(default_factory=list)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _name_of(record: RawRecord) -> str:
    return str(raw_get(record, "method_name") or DEFAULT_METHOD_NAME)


def _format_error(error: BaseException) -> str:
    text = str(error)
    return text if text else type(error).__name__


def record_ids(records: Sequence[TestRecord]) -> Set[str]:
    """Ids present in a snapshot (records without an id are ignored)."""
    return {str(record.id) for record in records if record.id}


class TransferEngine:
    """
    One-directional migrator between two record stores.

    Example:
        engine = TransferEngine(local, remote, MigrationOptions(batch_size=5))
        report = await engine.migrate()
        if not report.success:
            print(report.errors)
    """

    def __init__(
        self,
        source: RecordStore,
        destination: RecordStore,
        options: Optional[MigrationOptions] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        progress_callback: Optional[Callable[[MigrationProgress], None]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the engine.

        Args:
            source: Store records are read from
            destination: Store records are written to
            options: Run options; defaults to MigrationOptions()
            cancel_event: Once set, remaining records are not attempted
            progress_callback: Called after every record
            sleep: Pacing coroutine, injectable for tests
        """
        self.source = source
        self.destination = destination
        self.options = options or MigrationOptions()
        self.cancel_event = cancel_event
        self.progress_callback = progress_callback
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    async def _call(self, awaitable: Awaitable[T], operation: str) -> T:
        """Await one store call under the per-call timeout."""
        timeout = self.options.call_timeout_sec
        if timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError:
            raise StoreError(f"{operation} timed out after {timeout}s") from None

    async def load_snapshot(
        self, store: RecordStore, degrade: bool = True
    ) -> List[TestRecord]:
        """
        Read a full snapshot of a store.

        With degrade=True a read failure is logged and an empty snapshot
        returned, so first transfers into a fresh store still work.
        """
        try:
            snapshot = await self._call(
                store.list_all(), f"{store.backend_name} read"
            )
            return list(snapshot)
        except Exception as e:
            if not degrade:
                raise
            logger.warning(
                f"Could not load {store.backend_name} snapshot, "
                f"proceeding with an empty one: {e}"
            )
            return []

    # ------------------------------------------------------------------
    # Per-record step
    # ------------------------------------------------------------------

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    async def _transfer_one(
        self,
        record: RawRecord,
        existing_ids: Collection[str],
        position: int,
    ) -> str:
        """Clean and write one record. Raises on a failed write."""
        cleaned = clean_record(
            record, created_by=self.options.created_by, position=position
        )
        if not cleaned.is_valid():
            logger.warning(
                "Skipping test with no valid results", test=cleaned.method_name
            )
            return SKIPPED

        if self.options.dry_run:
            logger.debug("Prepared", test=cleaned.method_name)
            return TRANSFERRED

        record_id = cleaned.id
        if self.options.overwrite and record_id and record_id in existing_ids:
            await self._call(
                self.destination.update(record_id, cleaned),
                f"update {record_id}",
            )
        else:
            await self._call(self.destination.add(cleaned), "add")
        logger.debug(
            "Migrated",
            test=cleaned.method_name,
            results=len(cleaned.results),
        )
        return TRANSFERRED

    def _fold(
        self, outcome: TransferOutcome, record: RawRecord, result: Any
    ) -> None:
        """Fold one record's result (outcome string or exception) into counters."""
        outcome.attempted += 1
        if isinstance(result, BaseException):
            outcome.failed += 1
            message = f"Failed to migrate {_name_of(record)}: {_format_error(result)}"
            outcome.errors.append(message)
            logger.error(message)
        elif result == SKIPPED:
            outcome.skipped += 1
        else:
            outcome.transferred += 1

    def _report_progress(self, outcome: TransferOutcome, total: int, name: str) -> None:
        if not self.progress_callback:
            return
        self.progress_callback(
            MigrationProgress(
                current=outcome.attempted,
                total=total,
                percentage=outcome.attempted / total * 100 if total else 100.0,
                current_test=name,
            )
        )

    async def _run_sequential(
        self,
        batch: Sequence[RawRecord],
        existing_ids: Collection[str],
        outcome: TransferOutcome,
        total: int,
    ) -> None:
        for record in batch:
            if self._cancelled():
                return
            try:
                result: Any = await self._transfer_one(
                    record, existing_ids, outcome.transferred + 1
                )
            except Exception as e:
                result = e
            self._fold(outcome, record, result)
            self._report_progress(outcome, total, _name_of(record))

    async def _run_concurrent(
        self,
        batch: Sequence[RawRecord],
        existing_ids: Collection[str],
        outcome: TransferOutcome,
        total: int,
    ) -> None:
        base = outcome.transferred
        results = await asyncio.gather(
            *(
                self._transfer_one(record, existing_ids, base + offset + 1)
                for offset, record in enumerate(batch)
            ),
            return_exceptions=True,
        )
        for record, result in zip(batch, results):
            self._fold(outcome, record, result)
            self._report_progress(outcome, total, _name_of(record))

    async def transfer(
        self,
        candidates: Sequence[RawRecord],
        existing_ids: Collection[str] = (),
    ) -> TransferOutcome:
        """
        Write candidates to the destination in paced batches.

        Args:
            candidates: Records to transfer, in order
            existing_ids: Destination ids; with overwrite these are updated

        Returns:
            TransferOutcome with the accumulated counters and errors
        """
        outcome = TransferOutcome()
        batch_size = self.options.batch_size
        total = len(candidates)

        for start in range(0, total, batch_size):
            if self._cancelled():
                break
            batch = candidates[start : start + batch_size]
            if self.options.concurrent:
                await self._run_concurrent(batch, existing_ids, outcome, total)
            else:
                await self._run_sequential(batch, existing_ids, outcome, total)

            is_last = start + batch_size >= total
            pace = self.options.batch_delay_sec > 0 and not self._cancelled()
            if not is_last and pace:
                await self._sleep(self.options.batch_delay_sec)

        not_attempted = total - outcome.attempted
        if not_attempted > 0 and self._cancelled():
            outcome.cancelled = True
            outcome.errors.append(
                f"Migration cancelled: {not_attempted} records not attempted"
            )
            logger.warning(f"Migration cancelled with {not_attempted} records left")
        return outcome

    # ------------------------------------------------------------------
    # Top-level run
    # ------------------------------------------------------------------

    def _report(
        self,
        started: float,
        started_at: str,
        message: str,
        message_localized: str,
        **counts: Any,
    ) -> SyncReport:
        return SyncReport(
            duration_ms=int((time.monotonic() - started) * 1000),
            message=message,
            message_localized=message_localized,
            source_backend=self.source.backend_name,
            target_backend=self.destination.backend_name,
            started_at=started_at,
            completed_at=_utc_now(),
            **counts,
        )

    async def migrate(self) -> SyncReport:
        """Run the full migration.

        Returns:
            SyncReport; success iff something transferred and nothing failed
        """
        started = time.monotonic()
        started_at = _utc_now()
        run = RunLogger(
            f"migrate {self.source.backend_name}->{self.destination.backend_name}"
        )

        try:
            source_records = await self.load_snapshot(self.source, degrade=False)
        except Exception as e:
            error = _format_error(e)
            logger.error(f"Migration failed: {error}")
            report = self._report(
                started,
                started_at,
                f"Migration failed: {error}",
                f"فشل النقل: {error}",
                errors=[error],
            )
            run.finish(report.success)
            return report

        run.step("Source loaded", tests=len(source_records))
        if not source_records:
            report = self._report(
                started,
                started_at,
                "No tests found in source store",
                "لا توجد اختبارات في المصدر",
                errors=["Source store is empty"],
            )
            run.finish(report.success)
            return report

        destination_records = await self.load_snapshot(self.destination)
        existing_ids = record_ids(destination_records)
        run.step("Destination loaded", tests=len(destination_records))

        if self.options.skip_existing:
            candidates = [
                r for r in source_records if not (r.id and r.id in existing_ids)
            ]
        else:
            candidates = list(source_records)
        run.step("Candidates selected", tests=len(candidates))

        if not candidates:
            report = self._report(
                started,
                started_at,
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
                    "Data validation failed",
                    "فشل في التحقق من صحة البيانات",
                    failed=len(candidates),
                    errors=defects,
                )
                run.finish(report.success, defects=len(defects))
                return report

        outcome = await self.transfer(candidates, existing_ids)
        report = self._report(
            started,
            started_at,
            *self._completion_messages(outcome),
            transferred=outcome.transferred,
            failed=outcome.failed,
            skipped=outcome.skipped,
            errors=outcome.errors,
            cancelled=outcome.cancelled,
        )
        run.finish(
            report.success,
            transferred=report.transferred,
            failed=report.failed,
            skipped=report.skipped,
        )
        return report

    def _completion_messages(self, outcome: TransferOutcome) -> tuple[str, str]:
        n, m = outcome.transferred, outcome.failed
        if outcome.cancelled:
            return (
                f"Migration cancelled: {n} transferred, {m} failed",
                f"أُلغي النقل: {n} تم نقلها، {m} فشلت",
            )
        if self.options.dry_run:
            return (
                f"Dry run completed: {n} tests ready for transfer",
                f"اكتمل التشغيل التجريبي: {n} اختبار جاهز للنقل",
            )
        return (
            f"Migration completed: {n} transferred, {m} failed",
            f"اكتمل النقل: {n} تم نقلها، {m} فشلت",
        )

    async def verify(self) -> bool:
        """Verify migration success by comparing counts.

        Returns:
            True if source and destination hold the same number of tests
        """
        source_count = await self.source.count()
        target_count = await self.destination.count()

        if source_count == target_count:
            logger.info(f"Verification PASSED: {source_count} tests in both stores")
            return True

        logger.error(
            f"Verification FAILED: source={source_count}, target={target_count}"
        )
        return False


async def migrate_records(
    source: RecordStore,
    destination: RecordStore,
    options: Optional[MigrationOptions] = None,
    *,
    cancel_event: Optional[asyncio.Event] = None,
) -> SyncReport:
    """Convenience function to run one migration.

    Args:
        source: Store to read from
        destination: Store to write to
        options: Run options (defaults: no overwrite, validate, batches
            of 10, skip existing)
        cancel_event: Optional cancellation signal

    Returns:
        SyncReport
    """
    engine = TransferEngine(source, destination, options, cancel_event=cancel_event)
    return await engine.migrate()
