"""
Shared fixtures: user factory, authenticated API client, a fresh presence
registry and call tracker per test.
"""
import itertools

import pytest
from rest_framework.test import APIClient

from heartline.calls.signaling import CallTracker
from heartline.matches.models import MatchAction
from heartline.realtime.apps import get_call_tracker, get_presence_registry
from heartline.realtime.presence import PresenceRegistry
from heartline.users.models import Profile, User

_seq = itertools.count(1)


def create_user(name=None, age=25, gender="", preferences=None, **extra):
    n = next(_seq)
    name = name or f"user{n}"
    user = User.objects.create_user(
        email=f"{name.lower()}{n}@example.com",
        password="secret123",
        name=name,
        age=age,
        **extra,
    )
    Profile.objects.create(user=user, gender=gender, preferences=preferences or {})
    return user


def like_each_other(a, b):
    MatchAction.objects.create(actor=a, target=b, action=MatchAction.LIKE)
    MatchAction.objects.create(actor=b, target=a, action=MatchAction.LIKE)


@pytest.fixture
def make_user(db):
    return create_user


@pytest.fixture
def presence():
    return PresenceRegistry()


@pytest.fixture
def tracker():
    return CallTracker()


@pytest.fixture(autouse=True)
def _reset_process_state():
    # app-level registry/tracker are process wide; keep tests independent
    get_presence_registry().reset()
    get_call_tracker().reset()
    yield
    get_presence_registry().reset()
    get_call_tracker().reset()


@pytest.fixture
def api_client():
    def _client(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture
def sent_events(monkeypatch):
    """Capture user-addressed deliveries made from sync code (new-match)."""
    events = []

    def fake_deliver(user_id, event, payload=None, *, presence=None):
        events.append((user_id, event, payload))
        return True

    monkeypatch.setattr("heartline.matches.services.deliver_to_user", fake_deliver)
    return events


@pytest.fixture
def group_broadcasts(monkeypatch):
    events = []

    def fake_broadcast(group, event, payload=None):
        events.append((group, event, payload))

    monkeypatch.setattr("heartline.chat.views.broadcast_to_group", fake_broadcast)
    return events
