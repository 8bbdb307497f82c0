"""
Reaper Task

Celery beat task that reclaims the output of expired downloads.
Thin wrapper that delegates to RetentionSweeper.
"""

import logging

from celery_app import celery_app
from torrent_relay.config.celery_config import REAP_TASK_NAME

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name=REAP_TASK_NAME)
def reap_expired_downloads(self):
    """
    Sweep every download whose retention window has elapsed.

    Runs on the beat schedule from CeleryConfig. Needs the Redis registry so
    the worker sees downloads launched by the web process, and access to the
    same download directory.

    Returns:
        dict: Sweep statistics with counts and errors
    """
    try:
        from celery_app import flask_app
        from torrent_relay.domain.downloads.services import RetentionSweeper

        sweeper = flask_app.container.resolve(RetentionSweeper)
        report = sweeper.reap_expired()
        stats = report.to_dict()

        if stats["errors"]:
            logger.warning(f"[REAPER] Sweep errors: {stats['errors']}")
        return stats

    except Exception as e:
        error_msg = f"Reaper task failed: {e}"
        logger.error(error_msg, exc_info=True)
        return {
            "records_swept": 0,
            "entries_removed": 0,
            "errors": [error_msg],
        }
