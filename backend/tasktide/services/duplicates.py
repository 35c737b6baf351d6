"""Detect and remove duplicate instances created before the unique index existed"""
from __future__ import annotations

import logging
from collections import defaultdict

from tasktide.models.task import Task
from tasktide.repositories.templates import TemplateStore
from tasktide.schemas.generation import DuplicateCleanupReport, DuplicateGroup

logger = logging.getLogger(__name__)


def find_duplicate_instances(store: TemplateStore) -> list[DuplicateGroup]:
    """
    Group each template's instances by title.

    The earliest created instance of a group is kept; the rest are duplicates.
    """
    groups: list[DuplicateGroup] = []
    for template in store.find_recurring_templates():
        instances_by_title: dict[str, list[Task]] = defaultdict(list)
        # list_instances is ordered oldest first
        for instance in store.list_instances(template.id):
            instances_by_title[instance.title].append(instance)

        for title, instances in instances_by_title.items():
            if len(instances) < 2:
                continue
            keep, *duplicates = instances
            groups.append(
                DuplicateGroup(
                    template_id=template.id,
                    title=title,
                    keep_id=keep.id,
                    duplicate_ids=[duplicate.id for duplicate in duplicates],
                )
            )
    return groups


def remove_duplicate_instances(store: TemplateStore) -> DuplicateCleanupReport:
    report = DuplicateCleanupReport()
    for group in find_duplicate_instances(store):
        removed = store.delete_tasks(group.duplicate_ids)
        logger.info(f"Removed {removed} duplicate(s) of '{group.title}' (kept {group.keep_id})")
        report.total_removed += removed
        report.removed_by_template[group.template_id] = (
            report.removed_by_template.get(group.template_id, 0) + removed
        )
    return report
