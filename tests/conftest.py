"""Shared fixtures for rxgraph tests."""

import pytest

from rxgraph import RecordingTarget, Session


@pytest.fixture
def target():
    return RecordingTarget()


@pytest.fixture
def session(target):
    s = Session(target=target)
    yield s
    s.close()
