"""
Tests for devassist.streaming.accumulator: one streamed exchange.

Covers:
  - state transitions for the normal and error paths
  - chunk concatenation in arrival order
  - rollback of the placeholder on failure
  - file context on the first user turn only
"""

import pytest

from devassist.models.chat import Sender
from devassist.models.project import Project
from devassist.services.session_context import SessionContext
from devassist.streaming.accumulator import ConversationAccumulator, ExchangeState, to_history
from devassist.utils.custom_exceptions import ExchangeInProgressError

from conftest import make_file, make_message


@pytest.fixture
def context():
    project = Project(
        id="p-1",
        name="Demo",
        createdAt=1,
        savedMessages=[make_message("Welcome", 1, sender=Sender.SYSTEM)],
    )
    return SessionContext(project)


async def _stream(chunks, error=None):
    for chunk in chunks:
        yield chunk
    if error is not None:
        raise error


def _thinking(context):
    return [m for m in context.messages if m.isThinking]


class TestBegin:

    def test_appends_user_message_and_placeholder(self, context):
        acc = ConversationAccumulator(context)
        outbound = acc.begin("How do I paginate?")

        assert outbound == "How do I paginate?"
        assert acc.state == ExchangeState.SENDING
        user, placeholder = context.messages[-2:]
        assert user.sender == Sender.USER and user.text == "How do I paginate?"
        assert placeholder.sender == Sender.AI
        assert placeholder.isThinking and placeholder.text == ""
        assert placeholder.id == acc.placeholder_id

    def test_first_turn_carries_file_context(self, context):
        context.files = [make_file("app/Models/User.php", "class User {}")]
        outbound = ConversationAccumulator(context).begin("Explain User")

        assert "--- FILE: app/Models/User.php ---" in outbound
        assert "class User {}" in outbound
        assert outbound.endswith("Explain User")
        # The conversation keeps only what the user typed
        assert context.messages[-2].text == "Explain User"

    def test_later_turns_are_not_augmented(self, context):
        context.files = [make_file("app/Models/User.php")]
        context.messages.append(make_message("earlier question", 2))

        outbound = ConversationAccumulator(context).begin("Follow-up")
        assert outbound == "Follow-up"

    def test_history_excludes_current_exchange(self, context):
        context.messages.append(make_message("Q1", 2))
        context.messages.append(make_message("A1", 3, sender=Sender.AI))

        acc = ConversationAccumulator(context)
        acc.begin("Q2")
        assert acc.history == [("model", "Welcome"), ("user", "Q1"), ("model", "A1")]

    def test_second_begin_while_in_flight_rejected(self, context):
        acc = ConversationAccumulator(context)
        acc.begin("first")
        with pytest.raises(ExchangeInProgressError):
            acc.begin("second")


class TestStreaming:

    async def test_chunks_accumulate_in_order(self, context):
        acc = ConversationAccumulator(context)
        acc.begin("hi")

        received = [c async for c in acc.consume(_stream(["Hel", "lo, ", "world"]))]

        assert received == ["Hel", "lo, ", "world"]
        assert acc.state == ExchangeState.SETTLED
        reply = context.messages[-1]
        assert reply.text == "Hello, world"
        assert not reply.isThinking

    def test_first_chunk_moves_to_streaming(self, context):
        acc = ConversationAccumulator(context)
        acc.begin("hi")
        placeholder = context.messages[-1]

        acc.apply_chunk("Hel")
        assert acc.state == ExchangeState.STREAMING
        assert placeholder.isThinking
        acc.apply_chunk("lo")
        assert placeholder.text == "Hello"

    def test_placeholder_found_through_current_message_list(self, context):
        acc = ConversationAccumulator(context)
        acc.begin("hi")
        # The controller may rebuild the list while the stream is running
        context.messages = list(context.messages) + [make_message("note", 10, sender=Sender.SYSTEM)]

        acc.apply_chunk("still here")
        assert context.find_message(acc.placeholder_id).text == "still here"

    def test_empty_response_leaves_no_placeholder(self, context):
        acc = ConversationAccumulator(context)
        acc.begin("hi")
        assert acc.settle() is None
        assert _thinking(context) == []
        assert context.messages[-1].sender == Sender.USER

    def test_chunk_after_settle_rejected(self, context):
        acc = ConversationAccumulator(context)
        acc.begin("hi")
        acc.apply_chunk("x")
        acc.settle()
        with pytest.raises(RuntimeError):
            acc.apply_chunk("y")


class TestFailure:

    async def test_failure_before_any_chunk(self, context):
        acc = ConversationAccumulator(context)
        acc.begin("hi")
        before = len([m for m in context.messages if m.sender == Sender.SYSTEM])

        with pytest.raises(ConnectionError):
            async for _ in acc.consume(_stream([], error=ConnectionError("reset"))):
                pass
        acc.fail("reset")

        assert acc.state == ExchangeState.FAILED
        assert context.find_message(acc.placeholder_id) is None
        assert not any(m.isThinking and m.text == "" for m in context.messages)
        system = [m for m in context.messages if m.sender == Sender.SYSTEM]
        assert len(system) == before + 1
        assert system[-1].text == "Error: reset"

    async def test_failure_after_partial_text_keeps_it(self, context):
        acc = ConversationAccumulator(context)
        acc.begin("hi")

        with pytest.raises(ConnectionError):
            async for _ in acc.consume(_stream(["partial"], error=ConnectionError("reset"))):
                pass
        acc.fail("reset")

        partial = context.find_message(acc.placeholder_id)
        assert partial.text == "partial"
        assert not partial.isThinking
        assert _thinking(context) == []
        assert context.messages[-1].sender == Sender.SYSTEM

    def test_fail_requires_in_flight_exchange(self, context):
        with pytest.raises(RuntimeError):
            ConversationAccumulator(context).fail("nothing to fail")


class TestHistory:

    def test_roles_and_skips(self):
        messages = [
            make_message("q", 1),
            make_message("a", 2, sender=Sender.AI),
            make_message("", 3, sender=Sender.AI),
            make_message("note", 4, sender=Sender.SYSTEM),
        ]
        messages[-1].isThinking = True
        assert to_history(messages) == [("user", "q"), ("model", "a")]
