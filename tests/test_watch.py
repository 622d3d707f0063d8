"""Tests for watch() — background I/O feeding a session."""

import logging
import queue
import threading

from rxgraph import MISSING, watch


class TestWatch:
    def test_runs_in_daemon_thread(self):
        seen = []

        def fn(handle):
            seen.append(threading.current_thread())

        handle = watch(fn, name="loader")
        handle.join(timeout=2)
        assert seen[0] is not threading.main_thread()
        assert seen[0].daemon
        assert seen[0].name == "loader"

    def test_dispose_sets_flag(self):
        started = threading.Event()
        release = threading.Event()
        flags = []

        def fn(handle):
            started.set()
            release.wait(timeout=2)
            flags.append(handle.disposed)

        handle = watch(fn)
        started.wait(timeout=2)
        assert not handle.disposed
        handle.dispose()
        release.set()
        handle.join(timeout=2)
        assert flags == [True]

    def test_exceptions_are_logged(self, caplog):
        def broken(handle):
            raise OSError("disk gone")

        with caplog.at_level(logging.ERROR, logger="rxgraph.watch"):
            handle = watch(broken)
            handle.join(timeout=2)
        assert "broken" in caplog.text
        assert "disk gone" in caplog.text

    def test_results_enter_session_through_scheduler(self, session):
        inbox = queue.Queue()
        session.bind_scheduler(inbox.put)
        log = []
        session.effect(lambda: log.append(session.get("rows")))

        handle = watch(lambda h: session.set("rows", [1, 2, 3]))
        handle.join(timeout=2)
        assert log == [MISSING]  # queued, not applied

        inbox.get(timeout=2)()
        assert log[-1] == [1, 2, 3]
        assert len(log) == 2
