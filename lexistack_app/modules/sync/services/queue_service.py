# File: lexistack_app/modules/sync/services/queue_service.py
"""
Queue Service
=============
Durable job queue for content batches.

- enqueue is idempotent on ``request_id`` (insert-or-ignore, then read back).
- claiming moves the oldest ``pending`` job to ``processing``: PostgreSQL
  picks it with ``FOR UPDATE SKIP LOCKED``; other stores serialise claimers
  on a keyed lock. Both finish with a compare-and-set on ``status`` so a job
  is never handed to two workers.
- a claim carries a lease; expired ``processing`` jobs are requeued (or
  failed once they ran out of attempts) by :meth:`requeue_expired_jobs`.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import func, select, update

from lexistack_app.core.db_session import acquire_keyed_lock, dialect_name, insert_ignore, utc_now
from lexistack_app.core.extensions import db
from lexistack_app.services.config_service import get_runtime_config

from ..exceptions import SyncPayloadError
from ..models import SyncJob

logger = logging.getLogger(__name__)

CLAIM_LOCK_KEY = 'sync_jobs:claim'
LEASE_EXPIRED_MESSAGE = 'lease expired'
RECENT_FAILURES_LIMIT = 20


class QueueService:

    @staticmethod
    def get_job(request_id: str) -> Optional[SyncJob]:
        req = str(request_id or '').strip()
        if not req:
            return None
        return SyncJob.query.filter_by(request_id=req).populate_existing().first()

    @staticmethod
    def enqueue(request_id: str, source: str, payload: Dict) -> SyncJob:
        """
        Store a batch unless its request id is already known.

        Returns:
            The stored job. A duplicate returns the first job untouched, so
            callers cannot tell a new submission from a repeated one.
        """
        req = str(request_id or '').strip()
        if not req:
            raise SyncPayloadError('requestId is required', {'requestId': ['Missing data for required field.']})
        src = str(source or '').strip() or 'unknown'

        now = utc_now()
        inserted = insert_ignore(
            db.session,
            SyncJob,
            {
                'request_id': req,
                'source': src,
                'status': SyncJob.STATUS_PENDING,
                'attempt_count': 0,
                'payload': payload if isinstance(payload, dict) else {},
                'error_message': '',
                'created_at': now,
                'updated_at': now,
            },
            ['request_id'],
        )
        db.session.commit()

        job = QueueService.get_job(req)
        if inserted:
            logger.info("Enqueued sync job %s from %s", req, src)
        else:
            logger.info("Sync job %s already exists (status=%s), not enqueued again", req, job.status)
        return job

    @staticmethod
    def _lease_seconds(lease_seconds: Optional[int]) -> int:
        if lease_seconds is not None:
            return int(lease_seconds)
        return int(get_runtime_config('SYNC_JOB_LEASE_SECONDS', 600) or 600)

    @staticmethod
    def claim_next(now: Optional[datetime] = None, lease_seconds: Optional[int] = None) -> Optional[Dict]:
        """
        Claim the oldest pending job.

        Returns a snapshot ``{id, requestId, source, payload, attemptCount}``
        or ``None`` when nothing is pending.
        """
        now = now or utc_now()
        lease_until = now + timedelta(seconds=QueueService._lease_seconds(lease_seconds))

        oldest = (
            select(SyncJob.id)
            .where(SyncJob.status == SyncJob.STATUS_PENDING)
            .order_by(SyncJob.created_at.asc(), SyncJob.id.asc())
            .limit(1)
        )
        try:
            if dialect_name(db.session) == 'postgresql':
                oldest = oldest.with_for_update(skip_locked=True)
            else:
                acquire_keyed_lock(db.session, CLAIM_LOCK_KEY)

            job_id = db.session.execute(oldest).scalar()
            if job_id is None:
                db.session.rollback()
                return None

            result = db.session.execute(
                update(SyncJob)
                .where(SyncJob.id == job_id, SyncJob.status == SyncJob.STATUS_PENDING)
                .values(
                    status=SyncJob.STATUS_PROCESSING,
                    attempt_count=SyncJob.attempt_count + 1,
                    started_at=now,
                    updated_at=now,
                    lease_expires_at=lease_until,
                )
            )
            if not result.rowcount:
                db.session.rollback()
                return None
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        job = db.session.get(SyncJob, job_id, populate_existing=True)
        logger.info("Claimed sync job %s (attempt %d)", job.request_id, job.attempt_count)
        return {
            'id': job.id,
            'requestId': job.request_id,
            'source': job.source,
            'payload': job.payload if isinstance(job.payload, dict) else {},
            'attemptCount': job.attempt_count,
        }

    @staticmethod
    def _finish(job_id: int, attempt: int, values: Dict) -> bool:
        # Only the holder of this attempt may finish the job; a requeued job
        # has moved on to a new attempt.
        now = utc_now()
        result = db.session.execute(
            update(SyncJob)
            .where(
                SyncJob.id == job_id,
                SyncJob.status == SyncJob.STATUS_PROCESSING,
                SyncJob.attempt_count == attempt,
            )
            .values(finished_at=now, updated_at=now, lease_expires_at=None, **values)
        )
        db.session.commit()
        return bool(result.rowcount)

    @staticmethod
    def mark_success(job_id: int, attempt: int, result: Dict) -> bool:
        return QueueService._finish(
            job_id, attempt,
            {'status': SyncJob.STATUS_SUCCESS, 'result': result, 'error_message': ''},
        )

    @staticmethod
    def mark_failed(job_id: int, attempt: int, message: str) -> bool:
        return QueueService._finish(
            job_id, attempt,
            {'status': SyncJob.STATUS_FAILED, 'error_message': str(message or 'unknown error')[:2000]},
        )

    @staticmethod
    def requeue_expired_jobs(now: Optional[datetime] = None, max_attempts: Optional[int] = None) -> Dict[str, int]:
        """Return expired ``processing`` jobs to ``pending``; fail those out of attempts."""
        now = now or utc_now()
        if max_attempts is None:
            max_attempts = int(get_runtime_config('SYNC_JOB_MAX_ATTEMPTS', 3) or 3)

        expired = (
            (SyncJob.status == SyncJob.STATUS_PROCESSING)
            & SyncJob.lease_expires_at.isnot(None)
            & (SyncJob.lease_expires_at < now)
        )
        failed = db.session.execute(
            update(SyncJob)
            .where(expired, SyncJob.attempt_count >= max_attempts)
            .values(
                status=SyncJob.STATUS_FAILED,
                error_message=LEASE_EXPIRED_MESSAGE,
                finished_at=now,
                updated_at=now,
                lease_expires_at=None,
            )
        ).rowcount or 0
        requeued = db.session.execute(
            update(SyncJob)
            .where(expired, SyncJob.attempt_count < max_attempts)
            .values(
                status=SyncJob.STATUS_PENDING,
                started_at=None,
                updated_at=now,
                lease_expires_at=None,
            )
        ).rowcount or 0
        db.session.commit()

        if requeued or failed:
            logger.warning("Lease expired on sync jobs: %d requeued, %d failed", requeued, failed)
        return {'requeued': requeued, 'failed': failed}

    @staticmethod
    def get_stats() -> Dict:
        totals = {'total': 0}
        totals.update({status: 0 for status in SyncJob.STATUSES})
        rows = db.session.query(SyncJob.status, func.count(SyncJob.id)).group_by(SyncJob.status).all()
        for status, count in rows:
            if status in totals:
                totals[status] = int(count)
            totals['total'] += int(count)

        failures = (
            SyncJob.query
            .filter_by(status=SyncJob.STATUS_FAILED)
            .order_by(SyncJob.updated_at.desc(), SyncJob.id.desc())
            .limit(RECENT_FAILURES_LIMIT)
            .all()
        )
        recent = [
            {
                'id': job.id,
                'requestId': job.request_id,
                'source': job.source,
                'errorMessage': job.error_message or '',
                'updatedAt': job.updated_at.isoformat() if job.updated_at else None,
            }
            for job in failures
        ]
        return {'totals': totals, 'recentFailures': recent}
