"""
Management command to recompute progress and health status of stored objectives.

Status depends on the current date, so objectives drift from on-track to
at-risk or off-track without any write. Run this periodically (e.g. daily).
"""
import logging

from django.core.management.base import BaseCommand
from django.db import transaction

from objectives.models import Objective
from objectives.services import ObjectiveLifecycle

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Recompute progress and health status for stored objectives"

    def add_arguments(self, parser):
        parser.add_argument("--company", type=int, help="Only recompute objectives of this company id")

    def handle(self, *args, **options):
        lifecycle = ObjectiveLifecycle()
        queryset = Objective.objects.all()
        if options.get("company"):
            queryset = queryset.filter(company_id=options["company"])

        processed = 0
        changed = 0
        for objective_id in queryset.values_list("id", flat=True):
            with transaction.atomic():
                objective = Objective.objects.select_for_update().get(pk=objective_id)
                previous = (objective.progress, objective.status)
                lifecycle.recompute(objective)
                if (objective.progress, objective.status) != previous:
                    changed += 1
            processed += 1

        logger.info(f"Recomputed {processed} objectives, {changed} changed")
        self.stdout.write(self.style.SUCCESS(f"Recomputed {processed} objectives ({changed} changed)"))
