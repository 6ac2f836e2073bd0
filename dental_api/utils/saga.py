"""Compensating actions for multi-step writes across Supabase Auth and tables.

Supabase gives us no transaction spanning the auth admin API and PostgREST, so
a handler that performs several dependent writes registers an undo for each
completed step. If anything inside the block raises, the undos run newest
first and the original exception keeps propagating::

    with Saga("create account") as saga:
        user = credentials.create_user(email, password)
        saga.add_compensation(credentials.delete_user, user.id)
        insert_profile(...)
"""

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class Saga:
    def __init__(self, name: str):
        self.name = name
        self._compensations: list[tuple[Callable[..., Any], tuple, dict]] = []

    def add_compensation(self, func: Callable[..., Any], *args, **kwargs) -> None:
        self._compensations.append((func, args, kwargs))

    def compensate(self) -> None:
        """Run every registered undo in reverse order. Undo failures are logged and skipped."""
        while self._compensations:
            func, args, kwargs = self._compensations.pop()
            try:
                func(*args, **kwargs)
                logger.info("Saga %r: compensated %s", self.name, getattr(func, "__name__", func))
            except Exception:
                logger.exception("Saga %r: compensation %s failed", self.name, getattr(func, "__name__", func))

    def __enter__(self) -> "Saga":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            logger.warning("Saga %r failed (%s), rolling back", self.name, exc)
            self.compensate()
        else:
            self._compensations.clear()
        return False
