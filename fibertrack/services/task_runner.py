"""
Asynchronous wave-progress refresh.

Recomputing progress for every wave touches every wave row, so the API
submits it as a RefreshTask and returns immediately; the work runs in a
background thread with its own app context and the caller polls the task
for completion or failure. With ``PROGRESS_REFRESH_INLINE`` set (testing)
the task runs synchronously inside ``submit``.
"""

import json
import logging
import threading
from datetime import datetime, timezone

from flask import current_app

from fibertrack.core.exceptions import NotFoundError
from fibertrack.models import db
from fibertrack.models.refresh_task import RefreshTask
from fibertrack.services.snapshot import load_snapshot
from fibertrack.services.wave_progress import refresh_all_wave_progress
from fibertrack.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

# In-memory registry of running jobs (task_id → Thread)
_running_tasks: dict[str, threading.Thread] = {}


def refresh_waves(wave_ids: list[str]) -> dict:
    """Recompute progress for ``wave_ids`` (every wave when empty)."""
    snapshot = load_snapshot("waves", "locations", "work_orders")
    waves = snapshot.waves
    if wave_ids:
        wanted = set(wave_ids)
        waves = [w for w in waves if w.id in wanted]
    outcomes = refresh_all_wave_progress(waves, snapshot.locations, snapshot.work_orders)
    return {
        "waves": [o.to_dict() for o in outcomes],
        "refreshed": sum(1 for o in outcomes if o.source == "store"),
        "fallback": sum(1 for o in outcomes if o.source == "local"),
    }


class ProgressRefreshRunner:
    """Runs wave-progress refreshes asynchronously and tracks their status."""

    def submit(self, wave_ids: list[str] | None = None, *, execute_fn=refresh_waves) -> dict:
        """
        Submit a refresh.

        Args:
            wave_ids: Waves to refresh; all waves when empty/None.
            execute_fn: Callable(wave_ids) → dict result.

        Returns:
            Task dict (serializable). Inline runs return the finished task.
        """
        wave_ids = list(wave_ids or [])
        task = RefreshTask(
            status="running",
            wave_ids_json=json.dumps(wave_ids),
            started_at=datetime.now(timezone.utc),
        )
        db.session.add(task)
        # commit so the background thread can read the task
        commit_or_raise("submit progress refresh", "RefreshTask")
        task_id = task.id

        if current_app.config.get("PROGRESS_REFRESH_INLINE"):
            self._run(task_id, wave_ids, execute_fn)
            return self.get_status(task_id)

        app = current_app._get_current_object()
        t = threading.Thread(
            target=self._execute_in_background,
            args=(app, task_id, wave_ids, execute_fn),
            daemon=True,
        )
        _running_tasks[task_id] = t
        t.start()
        logger.info("Progress refresh submitted for %d wave(s)", len(wave_ids),
                    extra={"task_id": task_id})
        return task.to_dict()

    def get_status(self, task_id: str) -> dict:
        """Current task state.

        Raises:
            NotFoundError: unknown task id.
        """
        db.session.expire_all()
        task = db.session.get(RefreshTask, task_id)
        if not task:
            raise NotFoundError(resource="RefreshTask", resource_id=task_id)
        return task.to_dict()

    def list_tasks(self, status: str | None = None, limit: int = 50) -> list[dict]:
        q = RefreshTask.query.order_by(RefreshTask.created_at.desc())
        if status:
            q = q.filter_by(status=status)
        return [t.to_dict() for t in q.limit(limit).all()]

    # ── Internal ──────────────────────────────────────────────────────────

    def _execute_in_background(self, app, task_id: str, wave_ids: list[str], execute_fn):
        """Run the task function in a background thread."""
        with app.app_context():
            try:
                self._run(task_id, wave_ids, execute_fn)
            finally:
                db.session.remove()
                _running_tasks.pop(task_id, None)

    def _run(self, task_id: str, wave_ids: list[str], execute_fn):
        try:
            result = execute_fn(wave_ids)
        except Exception as exc:
            # Thread boundary: the failure is recorded on the task instead of propagating.
            db.session.rollback()
            logger.exception("Progress refresh failed", extra={"task_id": task_id})
            self._finish(task_id, "failed", error=str(exc))
            return
        self._finish(task_id, "completed", result=result)
        logger.info("Progress refresh completed: %d stored, %d local",
                    result.get("refreshed", 0), result.get("fallback", 0),
                    extra={"task_id": task_id})

    def _finish(self, task_id: str, status: str, result=None, error=None):
        task = db.session.get(RefreshTask, task_id)
        if task is None:
            logger.error("Progress refresh task vanished before completion",
                         extra={"task_id": task_id})
            return
        task.status = status
        task.result_json = json.dumps(result, default=str) if result is not None else None
        task.error_message = error
        task.completed_at = datetime.now(timezone.utc)
        commit_or_raise("record progress refresh", "RefreshTask")


runner = ProgressRefreshRunner()
