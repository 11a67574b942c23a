import threading
import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock
from flask import Flask
from skyweave.jobs.scheduled import _stale_requests_job, register_jobs
from skyweave.jobs.supervisor import TaskSupervisor


@pytest.fixture
def threaded_supervisor():
    app = Flask('supervisor-test')
    app.config['TASKS_RUN_INLINE'] = False
    return TaskSupervisor(app)


class TestTaskSupervisor:
    def test_spawn_runs_in_background_with_app_context(self, threaded_supervisor):
        from flask import current_app
        seen = {}

        def work(value):
            seen['value'] = value
            seen['app'] = current_app.name
            seen['thread'] = threading.current_thread().name

        assert threaded_supervisor.spawn('job:1', work, 42) is True
        assert threaded_supervisor.wait(timeout=5) is True

        assert seen == {'value': 42, 'app': 'supervisor-test', 'thread': 'task-job:1'}
        assert threaded_supervisor.in_flight() == []

    def test_same_name_is_not_started_twice(self, threaded_supervisor):
        release = threading.Event()
        calls = []

        def work():
            calls.append(1)
            release.wait(5)

        assert threaded_supervisor.spawn('transform:abc', work) is True
        assert threaded_supervisor.spawn('transform:abc', work) is False
        assert threaded_supervisor.in_flight() == ['transform:abc']

        release.set()
        assert threaded_supervisor.wait(timeout=5) is True
        assert calls == [1]

    def test_name_can_be_reused_after_finish(self, threaded_supervisor):
        calls = []
        threaded_supervisor.spawn('weather:x', calls.append, 1)
        threaded_supervisor.wait(timeout=5)
        threaded_supervisor.spawn('weather:x', calls.append, 2)
        threaded_supervisor.wait(timeout=5)
        assert calls == [1, 2]

    def test_crash_is_contained(self, threaded_supervisor):
        def boom():
            raise RuntimeError('kaput')

        assert threaded_supervisor.spawn('bad', boom) is True
        assert threaded_supervisor.wait(timeout=5) is True
        assert threaded_supervisor.in_flight() == []

    def test_inline_mode_runs_synchronously(self):
        app = Flask('inline-test')
        app.config['TASKS_RUN_INLINE'] = True
        supervisor = TaskSupervisor(app)
        caller = threading.current_thread()
        seen = []

        supervisor.spawn('inline', lambda: seen.append(threading.current_thread()))

        assert seen == [caller]
        assert supervisor.in_flight() == []

    def test_unbound_supervisor_refuses(self):
        with pytest.raises(RuntimeError):
            TaskSupervisor().spawn('x', lambda: None)


class TestScheduledJobs:
    def test_stale_job_reports_count(self, app, make_request):
        old = datetime.now(timezone.utc) - timedelta(hours=3)
        make_request(request_id='stuck-1', status='processing', updated_at=old)
        make_request(request_id='stuck-2', status='geocoding', updated_at=old)
        make_request(request_id='done', status='completed', updated_at=old)

        assert _stale_requests_job(app) == 2

    def test_stale_job_with_nothing_stuck(self, app, make_request):
        make_request(request_id='fresh', status='processing')
        assert _stale_requests_job(app) == 0

    def test_register_jobs(self, app):
        scheduler = MagicMock()
        register_jobs(scheduler, app)

        scheduler.add_job.assert_called_once()
        kwargs = scheduler.add_job.call_args[1]
        assert kwargs['id'] == 'stale_requests'
        assert kwargs['func'] is _stale_requests_job
        assert kwargs['trigger'] == 'cron'
        assert kwargs['minute'] == '*/15'
        assert kwargs['replace_existing'] is True
