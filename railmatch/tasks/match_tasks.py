"""Background tasks that keep stored matches in sync."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from railmatch.core.exceptions import RailMatchException
from railmatch.services.match_sync_service import MatchSyncService
from railmatch.tasks.celery_app import celery_app
from railmatch.tasks.hooks import after_task, before_task

logger = logging.getLogger(__name__)


def _run_id(task: Any) -> str:
    return getattr(task.request, "id", None) or f"run-{uuid.uuid4().hex}"


@celery_app.task(bind=True, name="matches.recompute")
def recompute_matches_task(self, request_ids: list[int] | None = None) -> dict[str, Any]:
    """Rescore all (or the given) requests against every eligible offer."""
    context = {"run_id": _run_id(self)}
    logger.info("task.start", extra=before_task("matches.recompute", context))

    with MatchSyncService() as service:
        summary = service.recompute(request_ids)

    status = "succeeded" if summary.success else "completed_with_errors"
    logger.info(
        "task.finish",
        extra=after_task(
            "matches.recompute",
            context,
            status=status,
            pairs_scored=summary.pairs_scored,
            error_count=len(summary.errors),
        ),
    )
    return {"status": status, **summary.to_dict()}


@celery_app.task(bind=True, name="matches.sync_request")
def sync_request_task(self, request_id: int) -> dict[str, Any]:
    """Score one request and upsert its above-threshold matches."""
    context = {"run_id": _run_id(self), "request_id": request_id}
    logger.info("task.start", extra=before_task("matches.sync_request", context))

    try:
        with MatchSyncService() as service:
            result = service.sync_request(request_id)
    except RailMatchException as exc:
        logger.warning(
            "task.finish",
            extra=after_task("matches.sync_request", context, status="failed", error=str(exc)),
        )
        return {"status": "failed", "request_id": request_id, "error": str(exc)}

    logger.info(
        "task.finish",
        extra=after_task("matches.sync_request", context, status="succeeded", matches=len(result.candidates)),
    )
    return {
        "status": "succeeded",
        "request_id": request_id,
        "matches": [
            {"match_id": candidate.match_id, "offer_id": candidate.offer.id, "score": candidate.score}
            for candidate in result.candidates
        ],
        "computed_at": result.computed_at.isoformat(),
    }
