"""
Post-commit facts about objectives.

Recipients are resolved while the transaction is still open, so facts about
deleted objectives are still delivered. Delivery itself runs in Celery once
the transaction commits; a rollback drops the fact.
"""
import logging
from functools import partial
from typing import Any, List

from django.db import transaction

from .tasks import deliver_objective_event

logger = logging.getLogger(__name__)


def recipients_for(objective, actor_id: int) -> List[int]:
    user_ids = [objective.owner_id]
    user_ids.extend(objective.contributors.values_list("user_id", flat=True))
    seen = set()
    recipients = []
    for user_id in user_ids:
        if user_id == actor_id or user_id in seen:
            continue
        seen.add(user_id)
        recipients.append(user_id)
    return recipients


def emit_event(fact: str, objective, actor_id: int, **payload: Any) -> None:
    """
    Schedule delivery of ``fact`` to everyone involved in ``objective`` except the actor.

    Args:
        fact: Event name, e.g. "objective.approved"
        objective: The objective the fact is about
        actor_id: User who caused the fact
        **payload: Extra JSON-serializable data
    """
    data = {
        "objective_id": str(objective.pk),
        "title": objective.title,
        "company_id": objective.company_id,
        "actor_id": actor_id,
        **payload,
    }
    recipients = recipients_for(objective, actor_id)
    if not recipients:
        logger.debug(f"No recipients for {fact} on objective {objective.pk}")
        return
    transaction.on_commit(partial(deliver_objective_event.delay, fact, recipients, data))
