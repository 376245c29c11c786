"""Savings goal contributions and progress."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

from .aggregator import HUNDRED
from .data_models import Goal, GoalProgress, Snapshot
from .errors import InvalidInput
from .utils import Number, to_decimal

logger = logging.getLogger(__name__)


def add_to_goal(goal: Goal, amount: Number) -> Goal:
    """Return ``goal`` with ``amount`` added to its savings, capped at the target."""
    amount = to_decimal(amount, "amount")
    if amount <= 0:
        raise InvalidInput(f"Amount to add must be positive; got {amount}")
    saved = min(goal.saved + amount, goal.target)
    if saved == goal.target and goal.saved < goal.target:
        logger.info("Goal %s reached its target of %s", goal.id, goal.target)
    return replace(goal, saved=saved)


def contribute(snapshot: Snapshot, goal_id: object, amount: Number) -> Goal:
    return add_to_goal(snapshot.find_goal(goal_id), amount)


def revise_goal(goal: Goal, revised: Goal) -> Goal:
    """Accept an edit of ``goal`` as long as it keeps the money already saved."""
    if revised.saved < goal.saved:
        raise InvalidInput(f"Saved amount cannot decrease; got {revised.saved} after {goal.saved}")
    return revised


def goal_progress(goal: Goal, today: date) -> GoalProgress:
    """Describe how far a goal has come as of ``today``.

    ``days_left`` counts whole days until the goal date and is never
    negative. A goal is completed once its target is met or its date has
    passed.
    """
    days_left = max((goal.date - today).days, 0)
    return GoalProgress(
        goal_id=goal.id,
        name=goal.name,
        saved=goal.saved,
        target=goal.target,
        percentage=goal.saved / goal.target * HUNDRED,
        remaining=goal.target - goal.saved,
        days_left=days_left,
        completed=goal.saved >= goal.target or days_left == 0,
    )
