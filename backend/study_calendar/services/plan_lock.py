"""Single-writer-per-plan guard for the scheduling services.

Each operation reads a plan's tasks, works on them in memory and writes the
result back, so two runs on the same plan must not interleave. The lock only
covers one process; deployments with several workers need a database-level
advisory lock instead.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
_plan_locks: dict[int, threading.Lock] = {}


def _lock_for(plan_id: int) -> threading.Lock:
    with _registry_lock:
        lock = _plan_locks.get(plan_id)
        if lock is None:
            lock = threading.Lock()
            _plan_locks[plan_id] = lock
        return lock


@contextmanager
def plan_lock(plan_id: int) -> Iterator[None]:
    lock = _lock_for(plan_id)
    if not lock.acquire(blocking=False):
        logger.info("Waiting for another run on plan %s to finish", plan_id)
        lock.acquire()
    try:
        yield
    finally:
        lock.release()
