# heartline/calls/signaling.py
"""
Call attempt lifecycle between two users.

    idle -> requested -> accepted -> active -> ended
    requested -> rejected (-> idle)
    any live state -> ended        (hang-up or a participant disconnecting)

The server only relays signaling frames; nothing here is persisted and relays
are never blocked on the tracked state. CallTracker keeps the current state per
call channel so the gateway can log out-of-order signaling and close calls
whose participant dropped.
"""
import enum
import logging
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "call"


class CallState(str, enum.Enum):
    IDLE = "idle"
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    ACTIVE = "active"
    REJECTED = "rejected"
    ENDED = "ended"


class CallEvent(str, enum.Enum):
    REQUEST = "call-request"
    ACCEPT = "call-accepted"
    REJECT = "call-rejected"
    ICE = "ice-candidate"
    END = "call-ended"


TERMINAL_STATES = frozenset({CallState.ENDED, CallState.REJECTED})

_TRANSITIONS = {
    (CallState.IDLE, CallEvent.REQUEST): CallState.REQUESTED,
    (CallState.REQUESTED, CallEvent.ACCEPT): CallState.ACCEPTED,
    (CallState.REQUESTED, CallEvent.REJECT): CallState.REJECTED,
    # trickle ICE can start before the callee answers
    (CallState.REQUESTED, CallEvent.ICE): CallState.REQUESTED,
    (CallState.ACCEPTED, CallEvent.ICE): CallState.ACTIVE,
    (CallState.ACTIVE, CallEvent.ICE): CallState.ACTIVE,
    (CallState.REQUESTED, CallEvent.END): CallState.ENDED,
    (CallState.ACCEPTED, CallEvent.END): CallState.ENDED,
    (CallState.ACTIVE, CallEvent.END): CallState.ENDED,
}


class InvalidTransition(Exception):
    def __init__(self, state: CallState, event: CallEvent):
        super().__init__(f"{event.value} not allowed in state {state.value}")
        self.state = state
        self.event = event


def next_state(state: CallState, event: CallEvent) -> CallState:
    # 새 요청은 어느 상태에서든 새 통화 시도로 취급 (끊긴 통화는 재개 불가)
    if event is CallEvent.REQUEST:
        return CallState.REQUESTED
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransition(state, event) from None


def call_channel_name(user_a, user_b) -> str:
    low, high = sorted((int(user_a), int(user_b)))
    return f"{CHANNEL_PREFIX}_{low}_{high}"


def channel_participants(channel: str) -> Optional[Tuple[int, int]]:
    parts = str(channel).split("_")
    if len(parts) != 3 or parts[0] != CHANNEL_PREFIX:
        return None
    try:
        return int(parts[1]), int(parts[2])
    except ValueError:
        return None


class CallTracker:
    """In-memory call state per channel. Terminal calls are forgotten."""

    def __init__(self):
        self._states: Dict[str, CallState] = {}

    def state(self, channel: str) -> CallState:
        return self._states.get(channel, CallState.IDLE)

    def apply(self, channel: str, event: CallEvent) -> CallState:
        current = self.state(channel)
        try:
            new = next_state(current, event)
        except InvalidTransition as exc:
            logger.debug("%s: %s", channel, exc)
            return current

        if new in TERMINAL_STATES:
            self._states.pop(channel, None)
        else:
            self._states[channel] = new
        return new

    def end_calls_for(self, user_id) -> List[str]:
        """참여자가 끊기면 그 유저가 낀 통화는 전부 ended."""
        user_id = int(user_id)
        ended = [
            channel
            for channel in self._states
            if user_id in (channel_participants(channel) or ())
        ]
        for channel in ended:
            del self._states[channel]
        return ended

    def reset(self) -> None:
        self._states.clear()

    def __len__(self):
        return len(self._states)
