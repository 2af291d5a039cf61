import pytest

from heartline.calls.signaling import (
    CallEvent,
    CallState,
    CallTracker,
    InvalidTransition,
    call_channel_name,
    channel_participants,
    next_state,
)


def test_channel_name_is_shared_by_both_peers():
    assert call_channel_name(7, 3) == call_channel_name(3, 7) == "call_3_7"
    assert channel_participants("call_3_7") == (3, 7)
    assert channel_participants("chat_3_7") is None
    assert channel_participants("call_x_7") is None


@pytest.mark.parametrize(
    "state, event, expected",
    [
        (CallState.IDLE, CallEvent.REQUEST, CallState.REQUESTED),
        (CallState.REQUESTED, CallEvent.ACCEPT, CallState.ACCEPTED),
        (CallState.REQUESTED, CallEvent.REJECT, CallState.REJECTED),
        (CallState.ACCEPTED, CallEvent.ICE, CallState.ACTIVE),
        (CallState.ACTIVE, CallEvent.END, CallState.ENDED),
        (CallState.REQUESTED, CallEvent.END, CallState.ENDED),
        # a fresh request replaces whatever was left over
        (CallState.ACTIVE, CallEvent.REQUEST, CallState.REQUESTED),
    ],
)
def test_transitions(state, event, expected):
    assert next_state(state, event) is expected


@pytest.mark.parametrize(
    "state, event",
    [
        (CallState.IDLE, CallEvent.ACCEPT),
        (CallState.IDLE, CallEvent.END),
        (CallState.ACCEPTED, CallEvent.REJECT),
        (CallState.ENDED, CallEvent.ACCEPT),
        (CallState.REJECTED, CallEvent.END),
    ],
)
def test_invalid_transitions(state, event):
    with pytest.raises(InvalidTransition):
        next_state(state, event)


def test_tracker_full_call_then_forgets_it():
    tracker = CallTracker()
    channel = call_channel_name(1, 2)

    assert tracker.apply(channel, CallEvent.REQUEST) is CallState.REQUESTED
    assert tracker.apply(channel, CallEvent.ACCEPT) is CallState.ACCEPTED
    assert tracker.apply(channel, CallEvent.ICE) is CallState.ACTIVE
    assert tracker.apply(channel, CallEvent.END) is CallState.ENDED

    assert tracker.state(channel) is CallState.IDLE
    assert len(tracker) == 0


def test_tracker_rejected_goes_back_to_idle():
    tracker = CallTracker()
    channel = call_channel_name(1, 2)
    tracker.apply(channel, CallEvent.REQUEST)

    assert tracker.apply(channel, CallEvent.REJECT) is CallState.REJECTED
    assert tracker.state(channel) is CallState.IDLE


def test_tracker_ignores_out_of_order_events():
    tracker = CallTracker()
    channel = call_channel_name(1, 2)

    assert tracker.apply(channel, CallEvent.ACCEPT) is CallState.IDLE
    assert len(tracker) == 0


def test_disconnect_ends_calls_of_that_user_only():
    tracker = CallTracker()
    tracker.apply(call_channel_name(1, 2), CallEvent.REQUEST)
    tracker.apply(call_channel_name(3, 1), CallEvent.REQUEST)
    tracker.apply(call_channel_name(4, 5), CallEvent.REQUEST)

    ended = tracker.end_calls_for(1)

    assert sorted(ended) == ["call_1_2", "call_1_3"]
    assert tracker.state("call_4_5") is CallState.REQUESTED
    assert len(tracker) == 1
