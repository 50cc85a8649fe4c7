# fairplay/services/pattern_fix/lifecycle.py
"""
Pattern Lifecycle Manager: applies, reverts and re-applies fixes on the shared page.

State machine per ModificationRecord:

    PENDING/FAILED --toggle--> APPLYING --ok--> APPLIED
                                        --error--> FAILED(reason)
    APPLIED --toggle--> APPLYING --restored--> PENDING (siblings replayed)
                                 --restore error--> APPLIED (RevertFailed raised)
    APPLYING --toggle--> no-op

Reverting never runs undo script. The page-original pristine snapshot is put
back and every other script still on the page (APPLIED records, plus reverts
queued behind this one) is replayed in seed order, which rebuilds the
composite state minus the reverted fix.

Every document mutation goes through one SerialChannel. Work that resumes
after the page epoch moved on is discarded.
"""

import logging
from typing import Optional

from fairplay.errors import RevertFailed, StaleEpochError
from fairplay.logging_config import log_stage

from ..pattern_scan.types import Detection
from ..resilience import PageEpoch, SerialChannel
from .document import DocumentSurface
from .modifier import PatternModifier
from .types import ModificationRecord, ModificationStatus

logger = logging.getLogger(__name__)


class PatternLifecycleManager:
    """
    Owns the current page's detections and one ModificationRecord per detection.

    Usage:
        manager = PatternLifecycleManager(modifier, surface, epoch)
        manager.seed(detections, pristine_html=html)
        await manager.toggle(detections[0])   # apply
        await manager.toggle(detections[0])   # revert
    """

    def __init__(
        self,
        modifier: PatternModifier,
        surface: DocumentSurface,
        epoch: Optional[PageEpoch] = None,
        channel: Optional[SerialChannel] = None,
    ):
        self.modifier = modifier
        self.surface = surface
        self.epoch = epoch or PageEpoch()
        self.channel = channel or SerialChannel(name="document")

        self._detections: dict[str, Detection] = {}
        self._records: dict[str, ModificationRecord] = {}
        self._pristine_html: Optional[str] = None

    # -------------------------------------------------------------------------
    # Page contents
    # -------------------------------------------------------------------------

    def seed(self, detections: list[Detection], pristine_html: str) -> None:
        """Start tracking a fresh detection set. Every record begins PENDING."""
        self._detections = {d.id: d for d in detections}
        self._records = {d.id: ModificationRecord(detection_id=d.id) for d in detections}
        self._pristine_html = pristine_html

    def reset(self) -> None:
        self._detections = {}
        self._records = {}
        self._pristine_html = None

    @property
    def detections(self) -> list[Detection]:
        return list(self._detections.values())

    @property
    def records(self) -> list[ModificationRecord]:
        return list(self._records.values())

    @property
    def pristine_html(self) -> Optional[str]:
        return self._pristine_html

    def detection(self, detection_id: str) -> Optional[Detection]:
        return self._detections.get(detection_id)

    def record_for(self, detection: Detection) -> Optional[ModificationRecord]:
        return self._records.get(detection.id)

    @property
    def applied_count(self) -> int:
        return sum(1 for r in self._records.values() if r.status.is_applied)

    @property
    def has_applied_modifications(self) -> bool:
        return self.applied_count > 0

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    async def toggle(self, detection: Detection) -> None:
        """
        Apply a pending/failed fix, revert an applied one, ignore one in flight.

        Raises:
            RevertFailed: The pristine document could not be restored. The
                record is back to APPLIED.
        """
        record = self._records.get(detection.id)
        if record is None:
            logger.warning(f"Toggle for unknown detection {detection.id}")
            return

        if record.status.is_applying:
            logger.debug(f"Ignoring toggle for {detection.title!r}: already applying")
            return

        if record.status.is_applied:
            record.status = ModificationStatus.applying()
            await self._revert(detection, record)
        else:
            record.status = ModificationStatus.applying()
            await self._apply(detection, record)

    async def retry(self, detection: Detection) -> None:
        """Run the apply flow again regardless of the current status."""
        record = self._records.get(detection.id)
        if record is None:
            logger.warning(f"Retry for unknown detection {detection.id}")
            return

        record.status = ModificationStatus.applying()
        await self._apply(detection, record)

    # -------------------------------------------------------------------------
    # Flows
    # -------------------------------------------------------------------------

    async def _apply(self, detection: Detection, record: ModificationRecord) -> None:
        token = self.epoch.current

        with log_stage("apply"):
            try:
                html = await self.channel.run(self.surface.read_html)
                if record.original_document_snapshot is None:
                    record.original_document_snapshot = html
                fix = await self.modifier.generate_fix(detection, html)
            except Exception as e:
                if self._is_stale(token, detection):
                    return
                record.status = ModificationStatus.failed(str(e))
                logger.warning(f"Failed to generate fix for {detection.title!r}: {e}")
                return

            if self._is_stale(token, detection):
                return
            record.diagnostic_log = fix.diagnostic_log

            try:
                async with self.channel:
                    self.epoch.ensure_current(token)
                    await self.surface.execute_script(fix.script)
                    record.status = ModificationStatus.applied()
                    record.applied_script = fix.script
            except StaleEpochError:
                logger.info(f"Discarding fix for {detection.title!r}: page changed")
                return
            except Exception as e:
                record.status = ModificationStatus.failed(str(e))
                logger.warning(f"Failed to apply modification for {detection.title!r}: {e}")
                return

        logger.info(f"Applied modification for: {detection.title}")

    async def _revert(self, detection: Detection, record: ModificationRecord) -> None:
        token = self.epoch.current

        with log_stage("revert"):
            async with self.channel:
                if self._is_stale(token, detection):
                    return

                try:
                    await self.surface.replace_html(self._pristine_html or "")
                except Exception as e:
                    record.status = ModificationStatus.applied()
                    logger.warning(f"Failed to revert {detection.title!r}: {e}")
                    raise RevertFailed(str(e)) from e

                record.status = ModificationStatus.pending()
                record.applied_script = None

                replayed = await self._replay_applied(exclude=record, token=token)

        logger.info(f"Reverted: {detection.title}, re-applied {replayed} other patches")

    async def _replay_applied(self, exclude: ModificationRecord, token: int) -> int:
        """Re-run every other script still on the page against the restored document. Caller holds the channel."""
        replayed = 0
        for other in list(self._records.values()):
            if not self.epoch.is_current(token):
                break
            # Queued reverts are APPLYING but their script is still on the page
            if other is exclude or other.applied_script is None or other.status.is_failed:
                continue
            try:
                await self.surface.execute_script(other.applied_script)
                replayed += 1
            except Exception as e:
                other.status = ModificationStatus.failed(f"Reapply failed: {e}")
                other.applied_script = None
                logger.warning(f"Failed to re-apply modification {other.detection_id}: {e}")
        return replayed

    def _is_stale(self, token: int, detection: Detection) -> bool:
        if self.epoch.is_current(token):
            return False
        logger.info(f"Discarding result for {detection.title!r}: page changed")
        return True
