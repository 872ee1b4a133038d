"""
Conversation state machine: validated status transitions plus mode/active flags.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Any, List, Optional

from ..models.data_models import ConversationMode, SessionState, SessionStatus
from .logging_config import get_logger

logger = get_logger("state")

StateListener = Callable[[Dict[str, Any]], None]


@dataclass
class StateTransition:
    """Record of a state transition."""
    from_status: SessionStatus
    to_status: SessionStatus
    reason: str
    timestamp: float = field(default_factory=lambda: datetime.now().timestamp())


class ConversationStateMachine:
    """
    Owns the SessionState.

    Callers must already be serialized (the orchestrator holds its lock);
    nothing here awaits. Status changes are validated against a flat
    four-state transition table, and ``active`` can only be true in
    continuous mode.
    """

    VALID_TRANSITIONS = {
        SessionStatus.IDLE: (SessionStatus.LISTENING, SessionStatus.PROCESSING),
        SessionStatus.LISTENING: (SessionStatus.IDLE, SessionStatus.PROCESSING),
        SessionStatus.PROCESSING: (SessionStatus.SPEAKING, SessionStatus.IDLE),
        SessionStatus.SPEAKING: (SessionStatus.IDLE, SessionStatus.LISTENING),
    }

    def __init__(self, mode: ConversationMode = ConversationMode.SINGLE, max_history: int = 100):
        self._state = SessionState(mode=mode)
        self._history: List[StateTransition] = []
        self._max_history = max_history
        self._listeners: List[StateListener] = []

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def mode(self) -> ConversationMode:
        return self._state.mode

    @property
    def active(self) -> bool:
        return self._state.active

    def snapshot(self) -> Dict[str, Any]:
        return self._state.snapshot()

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning(f"State listener failed: {e}")

    def can_transition(self, target: SessionStatus) -> bool:
        return target == self._state.status or target in self.VALID_TRANSITIONS[self._state.status]

    def transition_to(self, target: SessionStatus, reason: str = "") -> bool:
        """
        Move to a new status.

        Returns:
            True if the status changed, False if already there

        Raises:
            ValueError: If the transition is not in the table
        """
        current = self._state.status
        if target == current:
            return False
        if target not in self.VALID_TRANSITIONS[current]:
            raise ValueError(f"Invalid transition: {current.value} → {target.value}")

        self._history.append(StateTransition(current, target, reason or "unspecified"))
        if len(self._history) > self._max_history:
            self._history.pop(0)

        self._state.status = target
        logger.info(f"{current.value} → {target.value} ({reason})")
        self._notify()
        return True

    def set_mode(self, mode: ConversationMode) -> None:
        if mode == self._state.mode:
            return
        self._state.mode = mode
        if mode == ConversationMode.SINGLE:
            self._state.active = False
        logger.info(f"Mode: {mode.value}")
        self._notify()

    def set_active(self, active: bool) -> None:
        if active and self._state.mode != ConversationMode.CONTINUOUS:
            raise ValueError("A conversation can only be active in continuous mode")
        if active == self._state.active:
            return
        self._state.active = active
        logger.info(f"Conversation {'active' if active else 'inactive'}")
        self._notify()

    def get_transition_history(self, last_n: int = 10) -> List[StateTransition]:
        return self._history[-last_n:]

    def get_status(self) -> Dict[str, Any]:
        last: Optional[StateTransition] = self._history[-1] if self._history else None
        return {
            **self.snapshot(),
            'history_size': len(self._history),
            'last_transition': (
                f"{last.from_status.value} → {last.to_status.value} ({last.reason})" if last else None
            ),
        }
