"""
Lifecycle of one in-flight exchange with the model.

A user message and an empty AI placeholder are appended when the exchange
starts, streamed chunks are concatenated onto the placeholder, and the
exchange ends either settled (placeholder kept, thinking flag cleared) or
failed (empty placeholder removed, SYSTEM error appended).
"""
from enum import Enum
from typing import AsyncIterator, List, Optional, Tuple

from devassist.config.prompts import USER_QUESTION_PREFIX
from devassist.models.chat import Message, Sender, new_message
from devassist.services.session_context import SessionContext
from devassist.utils.context_format import format_context_for_prompt
from devassist.utils.custom_exceptions import ExchangeInProgressError
from devassist.utils.logging_utils import logger


class ExchangeState(str, Enum):
    IDLE = 'IDLE'
    SENDING = 'SENDING'
    STREAMING = 'STREAMING'
    SETTLED = 'SETTLED'
    FAILED = 'FAILED'


IN_FLIGHT_STATES = (ExchangeState.SENDING, ExchangeState.STREAMING)


def to_history(messages: List[Message]) -> List[Tuple[str, str]]:
    """Map conversation messages to (role, text) turns for the model."""
    return [
        ('user' if m.sender == Sender.USER else 'model', m.text)
        for m in messages
        if m.text and not m.isThinking
    ]


class ConversationAccumulator:
    """Accumulates one streamed response into the session context."""

    def __init__(self, context: SessionContext):
        self.context = context
        self.state = ExchangeState.IDLE
        self.placeholder_id: Optional[str] = None
        self.history: List[Tuple[str, str]] = []

    @property
    def in_flight(self) -> bool:
        return self.state in IN_FLIGHT_STATES

    def _placeholder(self) -> Optional[Message]:
        if self.placeholder_id is None:
            return None
        return self.context.find_message(self.placeholder_id)

    def _require_in_flight(self, action: str) -> None:
        if not self.in_flight:
            raise RuntimeError(f"Cannot {action} an exchange in state {self.state.value}")

    def begin(self, user_text: str) -> str:
        """
        Append the user message and the thinking placeholder.

        Returns the text to send. The first user turn of a project with
        extracted files carries the whole file dump ahead of the question.
        """
        if self.in_flight:
            raise ExchangeInProgressError()

        messages = self.context.messages
        self.history = to_history(messages)

        outbound = user_text
        is_first_turn = not any(m.sender == Sender.USER for m in messages)
        augmented = bool(self.context.files) and is_first_turn
        if augmented:
            context_str = format_context_for_prompt(self.context.files)
            outbound = f"{context_str}\n\n{USER_QUESTION_PREFIX}{user_text}"

        user_message = new_message(user_text, Sender.USER)
        placeholder = new_message('', Sender.AI, is_thinking=True)
        self.context.messages.append(user_message)
        self.context.messages.append(placeholder)
        self.placeholder_id = placeholder.id
        self.state = ExchangeState.SENDING
        logger.info(f"Exchange started in project {self.context.project_id} (with file context: {augmented})")
        return outbound

    def apply_chunk(self, text: str) -> None:
        self._require_in_flight("apply a chunk to")
        placeholder = self._placeholder()
        if placeholder is None:
            raise RuntimeError("Placeholder message is no longer in the conversation")
        placeholder.text += text
        self.state = ExchangeState.STREAMING

    def settle(self) -> Optional[Message]:
        """
        End the exchange normally. A placeholder that never received any text
        is dropped instead of being left empty in the conversation.
        """
        self._require_in_flight("settle")
        placeholder = self._placeholder()
        self.state = ExchangeState.SETTLED
        if placeholder is None:
            return None
        if not placeholder.text:
            logger.warning("Model returned an empty response")
            self.context.remove_message(placeholder.id)
            return None
        placeholder.isThinking = False
        logger.info(f"Exchange settled ({len(placeholder.text)} chars)")
        return placeholder

    def fail(self, error_text: str) -> Message:
        """Roll back the placeholder and record the error as a SYSTEM message."""
        self._require_in_flight("fail")
        placeholder = self._placeholder()
        if placeholder is not None:
            if placeholder.isThinking and not placeholder.text:
                self.context.remove_message(placeholder.id)
            else:
                placeholder.isThinking = False
        error_message = new_message(f"Error: {error_text}", Sender.SYSTEM)
        self.context.messages.append(error_message)
        self.state = ExchangeState.FAILED
        logger.error(f"Exchange failed: {error_text}")
        return error_message

    async def consume(self, stream: AsyncIterator[str]) -> AsyncIterator[str]:
        """
        Apply every chunk of the stream in arrival order, passing each one on,
        then settle. Errors from the stream propagate with the exchange still
        in flight so the caller can fail it.
        """
        async for chunk in stream:
            self.apply_chunk(chunk)
            yield chunk
        self.settle()
