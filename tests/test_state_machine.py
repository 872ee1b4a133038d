"""
Tests for the conversation state machine and message log.
"""

import pytest

from jarvis_framework.models.data_models import ConversationMode, MessageRole, SessionStatus
from jarvis_framework.utils.message_log import MessageLog
from jarvis_framework.utils.state_machine import ConversationStateMachine


class TestConversationStateMachine:

    def test_initial_state(self):
        machine = ConversationStateMachine()

        assert machine.snapshot() == {'status': 'idle', 'mode': 'single', 'active': False}

    @pytest.mark.parametrize("path", [
        [SessionStatus.LISTENING, SessionStatus.PROCESSING, SessionStatus.SPEAKING, SessionStatus.IDLE],
        [SessionStatus.PROCESSING, SessionStatus.IDLE],
        [SessionStatus.PROCESSING, SessionStatus.SPEAKING, SessionStatus.LISTENING, SessionStatus.IDLE],
    ])
    def test_valid_paths(self, path):
        machine = ConversationStateMachine()
        for status in path:
            assert machine.transition_to(status, "test") is True
        assert machine.status == path[-1]

    @pytest.mark.parametrize("start,target", [
        ([], SessionStatus.SPEAKING),
        ([SessionStatus.LISTENING], SessionStatus.SPEAKING),
        ([SessionStatus.PROCESSING], SessionStatus.LISTENING),
    ])
    def test_invalid_transition_raises(self, start, target):
        machine = ConversationStateMachine()
        for status in start:
            machine.transition_to(status)

        assert machine.can_transition(target) is False
        with pytest.raises(ValueError):
            machine.transition_to(target)

    def test_same_status_is_not_a_transition(self):
        machine = ConversationStateMachine()

        assert machine.transition_to(SessionStatus.IDLE) is False
        assert machine.get_transition_history() == []

    def test_active_requires_continuous_mode(self):
        machine = ConversationStateMachine()

        with pytest.raises(ValueError):
            machine.set_active(True)

        machine.set_mode(ConversationMode.CONTINUOUS)
        machine.set_active(True)
        assert machine.active is True

    def test_single_mode_clears_active(self):
        machine = ConversationStateMachine(mode=ConversationMode.CONTINUOUS)
        machine.set_active(True)

        machine.set_mode(ConversationMode.SINGLE)

        assert machine.active is False

    def test_listeners_and_history(self):
        machine = ConversationStateMachine()
        seen = []
        machine.add_listener(seen.append)
        machine.add_listener(lambda snapshot: 1 / 0)

        machine.transition_to(SessionStatus.LISTENING, "mic toggled")
        machine.set_mode(ConversationMode.CONTINUOUS)

        assert [s['status'] for s in seen] == ['listening', 'listening']
        assert seen[-1]['mode'] == 'continuous'
        assert machine.get_status()['last_transition'] == "idle → listening (mic toggled)"


class TestMessageLog:

    def test_append_and_order(self):
        log = MessageLog()
        first = log.append(MessageRole.USER, "hello")
        second = log.append(MessageRole.ASSISTANT, "Good evening, sir.")

        assert log.snapshot() == (first, second)
        assert first.id != second.id
        assert len(log) == 2
        assert list(log) == [first, second]

    def test_recent(self):
        log = MessageLog()
        for i in range(7):
            log.append(MessageRole.USER, str(i))

        assert [m.content for m in log.recent(5)] == ["2", "3", "4", "5", "6"]
        assert log.recent(0) == ()
        assert len(log.recent(50)) == 7

    def test_clear(self):
        log = MessageLog()
        log.append(MessageRole.USER, "hello")

        log.clear()

        assert log.snapshot() == ()

    def test_to_dict(self):
        message = MessageLog().append(MessageRole.ASSISTANT, "At your service.")

        data = message.to_dict()

        assert data['role'] == 'assistant'
        assert data['content'] == "At your service."
        assert data['id'] == message.id
        assert data['timestamp'] == message.timestamp.isoformat()
