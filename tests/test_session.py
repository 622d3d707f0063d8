"""Tests for Session lifecycle, isolation and thread marshaling."""

import logging
import threading

import pytest

import rxgraph
from rxgraph import CrossSessionAccess, RecordingTarget, Session, SessionClosed

CITIES = {
    "CA": ["Los Angeles", "San Diego", "San Francisco"],
    "NY": ["Albany", "Buffalo", "New York"],
}


def cities_for(state):
    return list(CITIES[state])


class TestScenario:
    def test_state_to_city_list(self, session):
        session.set("state", "CA")
        evaluations = []
        updates = []

        @session.derived
        def cities():
            evaluations.append(1)
            return cities_for(session.get("state"))

        session.effect(lambda: updates.append(cities()))
        assert updates == [cities_for("CA")]
        evaluations.clear()
        updates.clear()

        session.set("state", "NY")
        assert len(evaluations) == 1
        assert updates == [cities_for("NY")]


class TestIsolation:
    def test_sessions_do_not_share_state(self):
        a, b = Session(name="a"), Session(name="b")
        log_a, log_b = [], []
        a.effect(lambda: log_a.append(a.get("x")))
        b.effect(lambda: log_b.append(b.get("x")))
        a.set("x", 1)
        assert log_a[-1] == 1
        assert len(log_b) == 1

    def test_cross_session_read_raises(self):
        a, b = Session(name="a"), Session(name="b")
        foreign = b.signal("x", 1)
        d = a.derived(lambda: foreign() + 1)
        with a.isolate():
            with pytest.raises(CrossSessionAccess, match="belongs to 'b'"):
                d()

    def test_module_isolate_reads_any_session(self):
        a, b = Session(), Session()
        sa, sb = a.signal("x", 1), b.signal("x", 2)
        with rxgraph.isolate():
            assert (sa(), sb()) == (1, 2)

    def test_isolate_inside_effect_does_not_track(self, session):
        seen = session.signal("seen", 0)
        hidden = session.signal("hidden", 0)
        log = []

        def body():
            with rxgraph.isolate():
                extra = hidden()
            log.append((seen(), extra))

        session.effect(body)
        hidden.set(1)
        assert log == [(0, 0)]
        seen.set(1)
        assert log == [(0, 0), (1, 1)]


class TestLifecycle:
    def test_close_tears_down(self, caplog):
        session = Session(name="teardown")
        s = session.signal("x", 0)
        session.effect(lambda: s())
        with caplog.at_level(logging.INFO, logger="rxgraph.session"):
            session.close()
        assert "Closed teardown (2 nodes)" in caplog.text
        assert session.closed
        with pytest.raises(SessionClosed):
            s.set(1)
        with pytest.raises(SessionClosed):
            session.derived(lambda: 1)

    def test_close_is_idempotent(self):
        session = Session()
        session.close()
        session.close()

    def test_context_manager(self):
        with Session() as session:
            session.set("x", 1)
        assert session.closed

    def test_default_target_discards(self):
        session = Session()
        session.output("x")(lambda: 1)  # no error with NullTarget
        assert isinstance(session.target, rxgraph.RenderTarget)

    def test_repr(self):
        session = Session(name="demo", target=RecordingTarget())
        session.signal("x", 1)
        assert repr(session) == "Session('demo', 1 nodes)"
        session.close()
        assert repr(session) == "Session('demo', closed)"


class TestSchedulerMarshal:
    def test_same_thread_is_synchronous(self, session):
        queued = []
        session.bind_scheduler(queued.append)
        session.set("x", 1)
        assert queued == []
        with session.isolate():
            assert session.get("x") == 1

    def test_background_thread_marshals(self, session):
        queued = []
        session.bind_scheduler(queued.append)
        x = session.signal("x", 0)

        t = threading.Thread(target=lambda: x.set(42))
        t.start()
        t.join(timeout=2)

        assert len(queued) == 1
        with session.isolate():
            assert x() == 0  # not applied yet
        queued.pop()()
        with session.isolate():
            assert x() == 42
