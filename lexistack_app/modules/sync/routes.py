from flask import current_app, jsonify, request
from marshmallow import ValidationError as SchemaValidationError

from lexistack_app.core.error_handlers import NotFoundError, ValidationError

from . import sync_api_bp
from .exceptions import SyncPayloadError
from .logics.signing import canonical_json
from .schemas import SyncBatchSchema
from .services.queue_service import QueueService
from .services.signature_service import SignatureService
from .worker import get_worker


@sync_api_bp.route('', methods=['POST'])
def submit_batch():
    """Accept a signed content batch and queue it (idempotent on requestId)."""
    body = request.get_data(cache=True) or b''
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        # Authenticate before reporting anything about the payload.
        SignatureService.verify(request.headers, body)
        raise ValidationError('Body must be a JSON object')

    SignatureService.verify(request.headers, body, body_request_id=data.get('requestId'))

    try:
        batch = SyncBatchSchema().load(data)
    except SchemaValidationError as e:
        raise ValidationError('Invalid sync payload', errors=e.messages)

    try:
        job = QueueService.enqueue(batch['requestId'], batch['source'], batch)
    except SyncPayloadError as e:
        raise ValidationError(str(e), errors=e.errors)

    return jsonify({
        'ok': True,
        'requestId': job.request_id,
        'jobId': job.id,
        'status': job.status,
    }), 202


@sync_api_bp.route('/status', methods=['GET'])
def job_status():
    """Status of one job; signed with an empty-object body."""
    request_id = SignatureService.verify(request.headers, canonical_json({}))
    query_id = (request.args.get('requestId') or request_id).strip()
    if query_id != request_id:
        raise ValidationError('requestId does not match x-sync-request-id')

    job = QueueService.get_job(query_id)
    if job is None:
        raise NotFoundError('Sync job not found', resource='sync_job')
    return jsonify({'status': job.status, 'job': job.to_dict()})


@sync_api_bp.route('/health', methods=['GET'])
def health():
    SignatureService.verify(request.headers, canonical_json({}))
    stats = QueueService.get_stats()
    worker = get_worker(current_app)
    stats['worker'] = worker.health() if worker else {
        'running': False, 'busy': False, 'lastRunAt': None, 'lastError': None,
    }
    return jsonify(stats)
