"""Deal service: the win cascade.

Winning a deal moves it to the "won" stage and spawns a follow-up Project
with one Task per starter-task template, all inside a single unit of work:
either every row lands or none do.

Re-winning a deal that is already won is governed by a policy
(DEAL_REWIN_POLICY):

    reject   raise DealAlreadyWon (default)
    noop     return the deal's latest existing project untouched
    rerun    run the full cascade again (one more project + tasks)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import select, update

from dealdesk.config import REWIN_POLICIES
from dealdesk.models.deal import Deal
from dealdesk.models.project import Project, Task

logger = logging.getLogger(__name__)

PROJECT_TITLE_TEMPLATE = "Project: {title}"


class DealWinError(Exception):
    """Base class for declared win-cascade failures."""

    def __init__(self, deal_id, message):
        super().__init__(message)
        self.deal_id = deal_id


class DealNotFound(DealWinError):
    def __init__(self, deal_id):
        super().__init__(deal_id, f"Deal {deal_id} not found.")


class DealAlreadyWon(DealWinError):
    def __init__(self, deal_id):
        super().__init__(deal_id, f"Deal {deal_id} has already been won.")


@dataclass
class WinResult:
    project_id: str
    task_ids: list = field(default_factory=list)
    created: bool = True


def _mark_won(session, deal_id):
    """Check-and-set the stage to won.

    Returns False when no row changed, i.e. someone else won it first.
    """
    result = session.execute(
        update(Deal.__table__)
        .where(Deal.__table__.c.id == deal_id)
        .where(Deal.__table__.c.stage != Deal.WON)
        .values(stage=Deal.WON)
    )
    return result.rowcount == 1


def _latest_project(session, deal_id):
    return session.execute(
        select(Project)
        .filter_by(deal_id=deal_id)
        .order_by(Project.created_at.desc())
        .limit(1)
    ).scalar_one_or_none()


def _spawn_project(session, deal, starter_tasks):
    """Insert the follow-up project and its starter tasks. Flushes only."""
    project = Project(
        organization_id=deal.organization_id,
        deal_id=deal.id,
        title=PROJECT_TITLE_TEMPLATE.format(title=deal.title),
        start_date=datetime.now(timezone.utc).date(),
    )
    session.add(project)
    session.flush()

    tasks = [
        Task(project_id=project.id, title=title, position=i)
        for i, title in enumerate(starter_tasks)
    ]
    session.add_all(tasks)
    session.flush()
    return project, tasks


def win_deal(store, deal_id, starter_tasks=None, rewin_policy=None):
    """Win a deal and materialize its project + starter tasks atomically.

    Args:
        store: The Store to run the unit of work on.
        deal_id: Deal UUID string (not format-checked).
        starter_tasks: Ordered task titles; defaults to STARTER_TASKS.
        rewin_policy: reject | noop | rerun; defaults to DEAL_REWIN_POLICY.

    Returns:
        WinResult with the project id, task ids, and whether they are new.

    Raises:
        DealNotFound: No deal with that id. Nothing is written.
        DealAlreadyWon: Deal already won under the reject policy, or a
            concurrent request won it between our read and our update.
        ValueError: Unknown policy or empty starter-task list.
    """
    if starter_tasks is None:
        starter_tasks = current_app.config["STARTER_TASKS"]
    starter_tasks = list(starter_tasks)
    if not starter_tasks:
        raise ValueError("At least one starter task is required.")

    rewin_policy = rewin_policy or current_app.config["DEAL_REWIN_POLICY"]
    if rewin_policy not in REWIN_POLICIES:
        raise ValueError(
            f"Invalid re-win policy '{rewin_policy}'. Must be one of: {', '.join(REWIN_POLICIES)}"
        )

    with store.unit_of_work() as session:
        deal = session.get(Deal, deal_id, with_for_update=True)
        if deal is None:
            raise DealNotFound(deal_id)

        if deal.is_won:
            if rewin_policy == "reject":
                raise DealAlreadyWon(deal_id)
            if rewin_policy == "noop":
                existing = _latest_project(session, deal_id)
                if existing is not None:
                    logger.info(f"Deal {deal_id} already won, returning project {existing.id}")
                    return WinResult(
                        project_id=existing.id,
                        task_ids=[t.id for t in existing.tasks],
                        created=False,
                    )
        elif not _mark_won(session, deal_id):
            raise DealAlreadyWon(deal_id)

        # Re-read so the cascade sees post-update state
        session.refresh(deal)
        project, tasks = _spawn_project(session, deal, starter_tasks)
        result = WinResult(project_id=project.id, task_ids=[t.id for t in tasks])

    logger.info(
        f"Deal {deal_id} won: project {result.project_id} with {len(result.task_ids)} tasks"
    )
    return result
