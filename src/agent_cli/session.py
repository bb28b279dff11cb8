"""Interactive chat session with the agent service."""

import signal
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional

import structlog

from .auth import TokenProvider
from .client import AgentClient
from .commands import (
    COMMAND_MARKER,
    EXIT,
    CommandHandler,
    dispatch_command,
)
from .errors import AgentCliError, DispatchError, UnknownCommand

logger = structlog.get_logger()

PROMPT = "You: "


@contextmanager
def interruptible_prompt() -> Iterator[None]:
    """
    Let Ctrl-C raise KeyboardInterrupt while blocked on the prompt.

    asyncio.run replaces the SIGINT handler with one that only cancels the
    main task, which a blocking input() call never observes. The previous
    handler is restored before any network call is made.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.signal(signal.SIGINT, signal.default_int_handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


@dataclass
class SessionContext:
    """State shared by the session loop and the command handlers."""

    client: AgentClient
    token_provider: TokenProvider
    thread_id: Optional[str] = None


class SessionLoop:
    """Reads user input and routes it to commands or the agent."""

    def __init__(
        self,
        context: SessionContext,
        read_line: Optional[Callable[[str], str]] = None,
        commands: Optional[Dict[str, CommandHandler]] = None,
    ):
        """
        Initialize the session loop.

        Args:
            context: Session context holding the client and token provider
            read_line: Prompt-and-read function (defaults to input)
            commands: Command table (defaults to the built-in commands)
        """
        self.context = context
        self.read_line = read_line or input
        self.commands = commands

    async def run(self) -> None:
        """
        Run until an exit command or end of input.

        Raises:
            OSError: If reading from the input stream fails
            UnicodeDecodeError: If the input stream is not valid text
        """
        print("Chat with your agent (type '/help' for commands)\n")

        while True:
            try:
                with interruptible_prompt():
                    line = self.read_line(PROMPT)
            except EOFError:
                break
            except KeyboardInterrupt:
                print()
                break

            if await self.handle_line(line) is EXIT:
                break

        logger.debug("Session ended", thread_id=self.context.thread_id)

    async def handle_line(self, line: str) -> Optional[object]:
        """Process one line of input; returns EXIT when the session should end."""
        text = line.strip()
        if not text:
            return None

        if text.startswith(COMMAND_MARKER):
            try:
                return await dispatch_command(self.context, text, self.commands)
            except UnknownCommand as e:
                print(f"{e} (type /help for available commands)\n")
            except AgentCliError as e:
                print(f"Error: {e}\n")
            return None

        await self.send_message(text)
        return None

    async def send_message(self, text: str) -> None:
        try:
            response = await self.context.client.send_message(
                text, self.context.thread_id
            )
        except DispatchError as e:
            print(f"Error: {e}\n")
            return

        if response.thread_id != self.context.thread_id:
            logger.debug(
                "Conversation thread changed",
                previous_thread_id=self.context.thread_id,
                thread_id=response.thread_id,
            )
        self.context.thread_id = response.thread_id

        print(f"Agent: {response.message}\n")
