"""Interactive assistant conversation."""

import asyncio
import logging
from collections.abc import Callable

from pm_command_center.assistant.dispatcher import ActionDispatcher
from pm_command_center.assistant.intents import Intent, IntentClassifier
from pm_command_center.assistant.responses import (
    GREETING,
    Message,
    ResponseComposer,
    assistant_text,
    user_message,
)

logger = logging.getLogger(__name__)

MessageListener = Callable[[Message], None]


class ConversationSession:
    """Ordered message log of one assistant conversation.

    ``submit`` appends the user message and classifies it immediately; the
    reply is produced after a fixed delay. Submissions are always accepted,
    and reply cycles run one at a time in submission order.
    """

    def __init__(
        self,
        dispatcher: ActionDispatcher,
        response_delay: float,
        classifier: IntentClassifier | None = None,
        composer: ResponseComposer | None = None,
    ) -> None:
        """Initialize session with the assistant greeting as first message.

        Args:
            dispatcher: Executes classified intents
            response_delay: Seconds before each reply, taken from ``Config.response_delay``
            classifier: Intent rules (default rule table when omitted)
            composer: Reply builder
        """
        self._dispatcher = dispatcher
        self._classifier = classifier or IntentClassifier()
        self._composer = composer or ResponseComposer()
        self._response_delay = response_delay
        self._messages: list[Message] = [assistant_text(GREETING)]
        self._listeners: list[MessageListener] = []
        self._reply_lock = asyncio.Lock()
        self._cycles: set[asyncio.Task[Message]] = set()

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the message log in chronological order."""
        return tuple(self._messages)

    @property
    def composing(self) -> bool:
        """True while any reply is still being produced."""
        return bool(self._cycles)

    def subscribe(self, listener: MessageListener) -> Callable[[], None]:
        """Register a callback for appended messages; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def submit(self, text: str) -> "asyncio.Task[Message] | None":
        """Submit a command.

        Whitespace-only input is ignored and returns None. Otherwise returns the
        background task producing the reply, which callers may await or ignore.
        """
        if not text.strip():
            return None

        self._append(user_message(text))
        intent = self._classifier.classify(text)
        logger.info(f"[Session] Classified {text!r} as {intent.kind.value}")

        cycle = asyncio.create_task(self._respond(intent), name=f"reply-{intent.kind.value}")
        self._cycles.add(cycle)
        cycle.add_done_callback(self._cycles.discard)
        return cycle

    async def wait_idle(self) -> None:
        """Wait until every pending reply has been appended."""
        while self._cycles:
            await asyncio.gather(*list(self._cycles), return_exceptions=True)

    async def _respond(self, intent: Intent) -> Message:
        async with self._reply_lock:
            await asyncio.sleep(self._response_delay)
            try:
                outcome = self._dispatcher.dispatch(intent)
                reply = self._composer.compose(outcome)
            except Exception as e:
                logger.error(f"[Session] Failed to handle {intent.kind.value}: {e}", exc_info=True)
                reply = self._composer.failure()
            self._append(reply)
            return reply

    def _append(self, message: Message) -> None:
        self._messages.append(message)
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception as e:
                logger.error(f"[Session] Listener error: {e}", exc_info=True)
