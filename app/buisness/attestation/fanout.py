"""
Concurrent notification fan-out

Sends run on a thread pool and never touch the database session; callers
stamp timestamps from the returned BatchResult on the request thread.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, List

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.attestation.batch import BatchResult
from app.logger import get_logger

logger = get_logger("asset_attestation.buisness.attestation.fanout")

DEFAULT_WORKERS = 4


@dataclass(frozen=True)
class NotificationJob:
    key: Any
    kind: str
    recipient: Any
    campaign: Any
    context: dict = field(default_factory=dict)


def notify_workers() -> int:
    if has_app_context():
        return max(1, int(current_app.config.get('ATTESTATION_NOTIFY_WORKERS', DEFAULT_WORKERS)))
    return DEFAULT_WORKERS


def dispatch_all(dispatcher, jobs: List[NotificationJob], max_workers: int = None) -> BatchResult:
    """
    Send every job concurrently.

    Args:
        dispatcher: NotificationDispatcher
        jobs: Jobs to send; job.key identifies the item in the result
        max_workers: Pool size (defaults to ATTESTATION_NOTIFY_WORKERS)

    Returns:
        BatchResult: succeeded holds job keys, failed holds (key, error)
    """
    result = BatchResult()
    if not jobs:
        return result

    workers = min(max_workers or notify_workers(), len(jobs))
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futures = {
            ex.submit(dispatcher.send, job.kind, job.recipient, job.campaign, **job.context): job
            for job in jobs
        }
        for fut in as_completed(futures):
            job = futures[fut]
            try:
                outcome = fut.result()
            except Exception as e:
                logger.error(f"Notification {job.kind} for {job.key} raised: {e}", exc_info=True)
                result.add_failure(job.key, e)
                continue
            if outcome.success:
                result.add_success(job.key)
            else:
                result.add_failure(job.key, outcome.error or 'send failed')

    logger.info(f"Dispatched {len(jobs)} notification(s): {result.success_count} sent, {result.failure_count} failed")
    return result


def stamp_sent(model, ids, column: str, now) -> None:
    """Set a *_sent_at column on the rows whose notification went out"""
    if not ids:
        return
    try:
        model.query.filter(model.id.in_(ids)).update({column: now}, synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to stamp {column} on {model.__name__} {list(ids)}: {e}", exc_info=True)
