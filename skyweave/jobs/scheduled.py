import logging
from flask import current_app

logger = logging.getLogger(__name__)


def _stale_requests_job(app):
    with app.app_context():
        from skyweave.services.request_store import RequestStore
        minutes = current_app.config.get('STALE_REQUEST_MINUTES', 30)
        stale = RequestStore().list_stale(minutes)
        if not stale:
            logger.debug("[Job] No stale requests")
            return 0

        for req in stale:
            logger.warning(
                f"[Job] Request {req.id} stuck in '{req.status}' since "
                f"{req.updated_at.isoformat() if req.updated_at else 'unknown'}"
            )
        logger.info(f"[Job] Stale request report: {len(stale)} request(s) older than {minutes} minutes")
        return len(stale)


def _upsert_job(scheduler, **kwargs):
    scheduler.add_job(replace_existing=True, **kwargs)


def register_jobs(scheduler, app):
    """Register all scheduled jobs."""
    _upsert_job(
        scheduler,
        id='stale_requests',
        func=_stale_requests_job,
        trigger='cron',
        args=[app],
        minute='*/15',
        misfire_grace_time=600,
        coalesce=True,
        max_instances=1,
    )

    logger.info("All scheduled jobs registered")
