from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor

EXTENSION_KEY = "index_tasks"


def init_index_tasks(app):
    workers = max(int(app.config.get("INDEX_TASK_WORKERS", 4)), 1)
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="index-task")
    app.extensions[EXTENSION_KEY] = executor
    return executor


def _run_task(app, fn, args):
    with app.app_context():
        try:
            return fn(*args)
        except Exception:  # background tasks have no caller to report to
            app.logger.exception("Background index task %s failed", getattr(fn, "__name__", fn))
            return None


def submit_index_task(app, fn, *args) -> Future:
    """Run ``fn(*args)`` off the request path inside an app context.

    With ``INDEX_TASKS_EAGER`` set the task runs inline and the returned
    future is already resolved.
    """
    if app.config.get("INDEX_TASKS_EAGER"):
        future = Future()
        future.set_result(_run_task(app, fn, args))
        return future
    executor = app.extensions.get(EXTENSION_KEY) or init_index_tasks(app)
    return executor.submit(_run_task, app, fn, args)


def shutdown_index_tasks(app, wait: bool = True):
    executor = app.extensions.pop(EXTENSION_KEY, None)
    if executor is not None:
        executor.shutdown(wait=wait)
