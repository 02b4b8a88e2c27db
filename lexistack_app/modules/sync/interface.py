from typing import Dict, Optional

from .services.content_service import ContentService
from .services.queue_service import QueueService
from .worker import SyncWorker


def enqueue(request_id: str, source: str, payload: Dict) -> Dict:
    """Public API: queue a batch; returns the job (new or existing) as a dict."""
    return QueueService.enqueue(request_id, source, payload).to_dict()


def get_job(request_id: str) -> Optional[Dict]:
    job = QueueService.get_job(request_id)
    return job.to_dict() if job else None


def get_stats() -> Dict:
    return QueueService.get_stats()


def apply_batch(payload: Dict, request_id: str, source: str) -> Dict:
    """Apply a batch synchronously, bypassing the queue (seeding, admin tools)."""
    return ContentService.apply_batch(payload, request_id, source)


def init_worker(app, start: bool = False) -> SyncWorker:
    worker = SyncWorker(app)
    if start:
        worker.start()
    return worker
