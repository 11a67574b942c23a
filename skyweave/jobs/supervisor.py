import logging
import threading
from flask import has_app_context

logger = logging.getLogger(__name__)


class TaskSupervisor:
    """
    Runs pipeline stages as named background tasks.

    Each task runs in its own daemon thread inside a fresh app context, so it
    gets its own database session. A name can only be in flight once; callers
    use names like 'weather:<request_id>' to keep one run per request stage.
    With TASKS_RUN_INLINE the task runs synchronously in the caller's thread.
    """

    def __init__(self, app=None):
        self._app = None
        self._lock = threading.Lock()
        self._threads = {}
        self.run_inline = False
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._app = app
        self.run_inline = bool(app.config.get('TASKS_RUN_INLINE', False))
        app.extensions['task_supervisor'] = self

    def spawn(self, name, func, *args, **kwargs):
        """Start func(*args, **kwargs) in the background. Returns False if name is already running."""
        if self._app is None:
            raise RuntimeError('TaskSupervisor is not bound to an app')

        with self._lock:
            existing = self._threads.get(name)
            if existing is not None and existing.is_alive():
                logger.info(f"Task {name} already in flight, not starting another")
                return False

            if self.run_inline:
                self._threads[name] = threading.current_thread()
            else:
                thread = threading.Thread(
                    target=self._run, args=(name, func, args, kwargs),
                    name=f'task-{name}', daemon=True,
                )
                self._threads[name] = thread
                thread.start()
                logger.info(f"Task {name} started")
                return True

        self._run(name, func, args, kwargs)
        return True

    def _run(self, name, func, args, kwargs):
        try:
            if self.run_inline and has_app_context():
                func(*args, **kwargs)
            else:
                with self._app.app_context():
                    func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Task {name} crashed: {e}", exc_info=True)
        finally:
            with self._lock:
                self._threads.pop(name, None)

    def in_flight(self):
        with self._lock:
            return sorted(name for name, t in self._threads.items() if t.is_alive())

    def wait(self, timeout=None):
        """Join every running task. Returns True when none are left."""
        with self._lock:
            threads = [t for t in self._threads.values() if t is not threading.current_thread()]
        for thread in threads:
            thread.join(timeout)
        return not any(t.is_alive() for t in threads)
