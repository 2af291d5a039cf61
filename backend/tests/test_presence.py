from heartline.realtime.presence import PresenceRegistry


def test_lookup_absent_user():
    registry = PresenceRegistry()
    assert registry.lookup(1) is None
    assert not registry.is_online(1)
    assert len(registry) == 0


def test_second_connection_displaces_first():
    registry = PresenceRegistry()

    assert registry.set_online(1, "chan-a") is None
    assert registry.set_online(1, "chan-b") == "chan-a"

    assert registry.lookup(1) == "chan-b"
    assert len(registry) == 1


def test_displaced_connection_cannot_clear_successor():
    registry = PresenceRegistry()
    registry.set_online(1, "chan-a")
    registry.set_online(1, "chan-b")

    assert registry.clear(1, "chan-a") is False
    assert registry.lookup(1) == "chan-b"

    assert registry.clear(1, "chan-b") is True
    assert registry.lookup(1) is None


def test_clear_without_handle_and_reset():
    registry = PresenceRegistry()
    registry.set_online(1, "chan-a")
    registry.set_online(2, "chan-b")

    assert registry.clear(1) is True
    assert registry.clear(1) is False
    assert registry.online_ids() == [2]
    assert registry.is_online(2)

    registry.reset()
    assert len(registry) == 0
