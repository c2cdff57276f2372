"""
Command objects for multi-entity mutations.

A command bundles the checks and writes of one logical operation.
:func:`run_command` executes ``validate`` and ``execute`` inside a single
database transaction, so a failure in any write undoes the others.
``rollback`` only needs to undo effects the database cannot, and
post-commit work (live broadcasts) is queued with :meth:`Command.after_commit`
so it never fires for a transaction that rolled back.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

from django.db import transaction

from monitoring.services.audit import log_action

logger = logging.getLogger(__name__)


class Command:
    name = 'command'

    def __init__(self, actor=None):
        self.actor = actor

    def validate(self) -> None:
        """Raise an ``ApiError`` when the command cannot run."""

    def execute(self) -> Any:
        raise NotImplementedError

    def rollback(self) -> None:
        """Undo non-database side effects of a failed ``execute``."""

    def after_commit(self, fn: Callable[[], None]) -> None:
        transaction.on_commit(fn)

    def audit(self, object_type: str, object_id, **detail) -> None:
        log_action(user=self.actor, action=self.name, object_type=object_type,
                   object_id=object_id, detail=detail)


def run_command(command: Command):
    try:
        with transaction.atomic():
            command.validate()
            result = command.execute()
    except Exception:
        logger.info('%s failed; rolling back', command.name)
        command.rollback()
        raise
    return result
