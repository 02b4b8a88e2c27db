from lexistack_app.core.extensions import db


class SyncJob(db.Model):
    """One content batch submitted by the external pipeline, keyed by its request id."""
    __tablename__ = 'sync_jobs'

    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_SUCCESS = 'success'
    STATUS_FAILED = 'failed'
    STATUSES = (STATUS_PENDING, STATUS_PROCESSING, STATUS_SUCCESS, STATUS_FAILED)

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.String(191), unique=True, nullable=False)
    source = db.Column(db.String(100), nullable=False, default='unknown')
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING)
    attempt_count = db.Column(db.Integer, nullable=False, default=0)
    payload = db.Column(db.JSON, nullable=True)
    result = db.Column(db.JSON, nullable=True)
    error_message = db.Column(db.Text, nullable=False, default='')

    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False)
    started_at = db.Column(db.DateTime, nullable=True)
    finished_at = db.Column(db.DateTime, nullable=True)
    lease_expires_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.Index('idx_sync_jobs_status_created', 'status', 'created_at'),
    )

    def to_dict(self):
        def _iso(value):
            return value.isoformat() if value else None

        return {
            'id': self.id,
            'requestId': self.request_id,
            'source': self.source,
            'status': self.status,
            'attemptCount': self.attempt_count or 0,
            'errorMessage': self.error_message or '',
            'result': self.result,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
            'startedAt': _iso(self.started_at),
            'finishedAt': _iso(self.finished_at),
        }

    def __repr__(self):
        return f'<SyncJob {self.request_id} {self.status}>'
