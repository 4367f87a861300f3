"""
Top-level catch shared by every workflow: run it, tag the outcome, audit it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from ..db import StoreClient
from ..errors import RepositoryError, StoreError, ValidationError, WorkflowAborted
from ..logs import LogContext

logger = logging.getLogger(__name__)

KIND_VALIDATION = "validation"
KIND_STORE = "store"
KIND_ABORTED = "aborted"


@dataclass
class WorkflowResult:
    ok: bool
    rows: list = field(default_factory=list)
    columns: Sequence[str] = ()
    reason: Optional[str] = None
    kind: Optional[str] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)


def run_workflow(
    action: str,
    store: StoreClient,
    fn: Callable[[LogContext], list],
    columns: Sequence[str] = (),
    user: str = "staff",
) -> WorkflowResult:
    """
    Call ``fn(log)`` and turn its rows, or the error it raised, into a WorkflowResult.
    Nothing already committed is undone here.
    """
    log = LogContext(action, store, user=user)
    try:
        rows = fn(log)
    except ValidationError as e:
        logger.info("%s rejected: %s", action, e)
        log.write("REJECTED", str(e))
        return WorkflowResult(False, reason=str(e), kind=KIND_VALIDATION)
    except WorkflowAborted as e:
        logger.info("%s aborted: %s", action, e)
        log.write("ABORTED", str(e))
        return WorkflowResult(False, reason=str(e), kind=KIND_ABORTED)
    except (RepositoryError, StoreError) as e:
        logger.error("%s failed: %s", action, e)
        log.write("ERROR", str(e))
        return WorkflowResult(False, reason=str(e), kind=KIND_STORE)
    log.write("OK")
    return WorkflowResult(True, rows=list(rows), columns=tuple(columns))
