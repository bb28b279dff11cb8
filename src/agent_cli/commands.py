"""
Slash commands available in the interactive session.

Each handler receives the session context and the whitespace-separated
arguments after the command name. A handler returns ``EXIT`` to end the
session; anything else keeps the loop running.
"""

from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Optional

import structlog

from .errors import AuthError, UnknownCommand

if TYPE_CHECKING:
    from .session import SessionContext

logger = structlog.get_logger()

COMMAND_MARKER = "/"

# Returned by a handler to end the session with a zero exit status
EXIT = object()

HELP_TEXT = """
Available commands:
  /help                 - Show this help message
  /exit                 - Exit the application
  /quit                 - Exit the application
  /logout               - Sign out and exit
  /new                  - Start a new conversation
  /history              - List your past conversations
  /profile              - View your profile settings
  /instructions <text>  - Set your preferred agent instructions
  /whoami               - Show current user

Just type your message to chat with the agent.
"""

CommandHandler = Callable[["SessionContext", List[str]], Awaitable[Optional[object]]]


async def show_help(ctx: "SessionContext", args: List[str]) -> None:
    print(HELP_TEXT)


async def exit_session(ctx: "SessionContext", args: List[str]) -> object:
    print("Goodbye!")
    return EXIT


async def logout(ctx: "SessionContext", args: List[str]) -> object:
    """Sign out, then end the session even if signing out failed."""
    try:
        ctx.token_provider.sign_out()
    except AuthError as e:
        logger.warning("Sign out failed", error=str(e))
        print(f"Error: {e}\n")
    return EXIT


async def new_conversation(ctx: "SessionContext", args: List[str]) -> None:
    ctx.thread_id = None
    print("✓ Started new conversation\n")


async def show_history(ctx: "SessionContext", args: List[str]) -> None:
    conversations = await ctx.client.list_conversations()
    print("\nYour conversations:")
    for conversation in conversations:
        print(
            f"  - {conversation.title or 'Untitled'} "
            f"(Thread: {conversation.thread_id[:8]}...)"
        )
    print()


async def show_profile(ctx: "SessionContext", args: List[str]) -> None:
    profile = await ctx.client.get_profile()
    print("\nYour Profile:")
    print(f"  Instructions: {profile.preferred_agent_instructions or ''}")
    print()


async def set_instructions(ctx: "SessionContext", args: List[str]) -> None:
    """Replace the preferred agent instructions, keeping the other profile fields."""
    if not args:
        print("Usage: /instructions <text>\n")
        return

    profile = await ctx.client.get_profile()
    profile.preferred_agent_instructions = " ".join(args)
    await ctx.client.update_profile(profile)
    print("✓ Updated agent instructions\n")


async def whoami(ctx: "SessionContext", args: List[str]) -> None:
    user = ctx.token_provider.current_user()
    if not user:
        print("Not authenticated")
    else:
        print(f"Logged in as: {user}\n")


COMMANDS: Dict[str, CommandHandler] = {
    "/help": show_help,
    "/exit": exit_session,
    "/quit": exit_session,
    "/logout": logout,
    "/new": new_conversation,
    "/history": show_history,
    "/profile": show_profile,
    "/instructions": set_instructions,
    "/whoami": whoami,
}


async def dispatch_command(
    ctx: "SessionContext",
    line: str,
    commands: Optional[Dict[str, CommandHandler]] = None,
) -> Optional[object]:
    """
    Run the command named by the first token of line.

    Args:
        ctx: Session context passed to the handler
        line: Input line starting with the command marker
        commands: Command table to use (defaults to COMMANDS)

    Returns:
        EXIT if the session should end, otherwise None

    Raises:
        UnknownCommand: If the first token is not in the command table
        DispatchError: If the handler's agent service call fails
    """
    parts = line.split()
    if not parts:
        return None

    table = COMMANDS if commands is None else commands
    handler = table.get(parts[0])
    if handler is None:
        raise UnknownCommand(parts[0])

    logger.debug("Running command", command=parts[0], args=len(parts) - 1)
    return await handler(ctx, parts[1:])
