# File: lexistack_app/modules/sync/worker.py
"""
Sync Worker
===========
Background task that drains the sync queue on a fixed interval.

The worker is an explicit handle owned by the app
(``app.extensions['sync_worker']``). Each tick requeues expired leases,
then claims and processes jobs until none are pending. Overlapping ticks
in one process are skipped; workers in other processes are kept apart by
the queue's claim.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Optional

from apscheduler.jobstores.base import JobLookupError

from lexistack_app.core.db_session import utc_now
from lexistack_app.core.extensions import db, scheduler
from lexistack_app.core.signals import content_synced

from .services.content_service import ContentService
from .services.queue_service import QueueService

logger = logging.getLogger(__name__)

SCHEDULER_JOB_ID = 'sync_worker_tick'
EXTENSION_KEY = 'sync_worker'


class SyncWorker:

    def __init__(self, app=None, poll_seconds: Optional[int] = None,
                 clock: Optional[Callable[[], datetime]] = None, job_scheduler=None):
        self.app = None
        self.poll_seconds = poll_seconds
        self.clock = clock or utc_now
        self.scheduler = job_scheduler or scheduler
        self._tick_lock = threading.Lock()
        self._running = False
        self._busy = False
        self._last_run_at: Optional[datetime] = None
        self._last_error: Optional[str] = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        self.app = app
        if self.poll_seconds is None:
            self.poll_seconds = max(1, int(app.config.get('SYNC_WORKER_POLL_SECONDS', 3) or 3))
        app.extensions[EXTENSION_KEY] = self

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._running:
            return
        self.scheduler.add_job(
            id=SCHEDULER_JOB_ID,
            func=self._scheduled_tick,
            trigger='interval',
            seconds=self.poll_seconds,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._running = True
        logger.info("Sync worker started (every %ss)", self.poll_seconds)

    def stop(self) -> None:
        if not self._running:
            return
        try:
            self.scheduler.remove_job(SCHEDULER_JOB_ID)
        except JobLookupError:
            logger.debug("Sync worker job was already removed")
        self._running = False
        logger.info("Sync worker stopped")

    def is_running(self) -> bool:
        return self._running

    def health(self) -> Dict:
        return {
            'running': self._running,
            'busy': self._busy,
            'lastRunAt': self._last_run_at.isoformat() if self._last_run_at else None,
            'lastError': self._last_error,
        }

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def _scheduled_tick(self) -> None:
        with self.app.app_context():
            try:
                self.run_tick()
            finally:
                db.session.remove()

    def run_tick(self) -> int:
        """Process pending jobs until the queue is empty. Returns how many were processed."""
        if not self._tick_lock.acquire(blocking=False):
            return 0
        self._busy = True
        self._last_run_at = self.clock()
        processed = 0
        try:
            QueueService.requeue_expired_jobs(now=self.clock())
            while True:
                claimed = QueueService.claim_next(now=self.clock())
                if claimed is None:
                    break
                self.process(claimed)
                processed += 1
        except Exception as e:
            db.session.rollback()
            self._last_error = str(e)
            logger.error("Sync worker tick failed: %s", e, exc_info=True)
        finally:
            self._busy = False
            self._tick_lock.release()
        return processed

    def process(self, claimed: Dict) -> bool:
        """Apply one claimed job and record its outcome. Returns True on success."""
        request_id = claimed['requestId']
        try:
            result = ContentService.apply_batch(claimed['payload'], request_id, claimed['source'])
        except Exception as e:
            db.session.rollback()
            QueueService.mark_failed(claimed['id'], claimed['attemptCount'], str(e))
            logger.error("Sync job %s failed: %s", request_id, e)
            return False

        if not QueueService.mark_success(claimed['id'], claimed['attemptCount'], result):
            logger.warning("Sync job %s finished after its lease moved on; result not recorded", request_id)
            return False
        logger.info("Sync job %s succeeded: %s", request_id, result['stats'])
        content_synced.send(
            self,
            lang=result['lang'],
            request_id=request_id,
            content_version=result['contentVersion'],
            stats=result['stats'],
        )
        return True


def get_worker(app) -> Optional[SyncWorker]:
    return app.extensions.get(EXTENSION_KEY)
