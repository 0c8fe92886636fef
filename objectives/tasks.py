"""
Celery tasks for objective notifications.
"""
import logging
from typing import Any, Dict, List

from celery import shared_task

from .notifications import get_backend

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def deliver_objective_event(self, event: str, recipients: List[int], data: Dict[str, Any]):
    """
    Hand an objective fact to the configured notification backend, once per recipient.

    Args:
        event: Event name, e.g. "objective.approved"
        recipients: User ids to notify
        data: Event payload
    """
    backend = get_backend()
    try:
        for user_id in recipients:
            backend.send(user_id, event, data)
    except Exception as e:
        logger.error(
            f"Error delivering {event} for objective {data.get('objective_id')}: {str(e)}",
            exc_info=True
        )
        raise self.retry(exc=e, countdown=60 * (self.request.retries + 1))

    logger.info(f"Delivered {event} for objective {data.get('objective_id')} to {len(recipients)} recipient(s)")
    return len(recipients)
