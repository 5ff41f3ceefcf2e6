"""Project statistics from tasks and time entries."""

from collections import Counter
from decimal import Decimal
from typing import List

from invoicing.models import Project, ProjectStats, Task, TaskStatus, TimeEntry, round_money


def calculate_project_stats(
    project: Project, tasks: List[Task], entries: List[TimeEntry]
) -> ProjectStats:
    """Hours, billable amount and task counts of one project.

    Billable amount uses each entry's own hourly rate, falling back to the
    project rate. Budget usage is reported only when the project has a budget.
    """
    total_minutes = sum(entry.duration or 0 for entry in entries)
    billable = [entry for entry in entries if entry.is_billable]
    billable_minutes = sum(entry.duration or 0 for entry in billable)

    billable_amount = Decimal("0")
    for entry in billable:
        rate = entry.hourly_rate if entry.hourly_rate is not None else project.hourly_rate
        if rate:
            billable_amount += entry.hours * rate

    counts = Counter(task.status.value for task in tasks)
    billable_amount = round_money(billable_amount)

    budget_used = None
    if project.budget:
        budget_used = round_money(billable_amount / project.budget * 100)

    return ProjectStats(
        project_id=project.id,
        total_hours=round_money(Decimal(total_minutes) / 60),
        billable_hours=round_money(Decimal(billable_minutes) / 60),
        billable_amount=billable_amount,
        task_count=len(tasks),
        completed_tasks=counts.get(TaskStatus.COMPLETED.value, 0),
        task_counts=dict(counts),
        budget_used_percent=budget_used,
    )
