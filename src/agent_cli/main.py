"""
Console entry point for the agent client.

Authenticates the user, then runs the interactive chat session against
the configured agent service.
"""

import argparse
import asyncio
import sys
from typing import Callable, List, Optional

import structlog

from . import __version__
from .auth import CancellationToken, Credential, TokenProvider
from .client import AgentClient
from .config import CliConfig, load_config
from .errors import AuthError, ConfigError
from .logging_config import configure_logging
from .session import SessionContext, SessionLoop

logger = structlog.get_logger()

BANNER = f"""
╔════════════════════════════════════════════════════════════╗
║          Agent Middleware Console Client v{__version__:<17}║
╚════════════════════════════════════════════════════════════╝
"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="agent-cli", description="Chat with your agent from the terminal"
    )
    parser.add_argument(
        "--config", help="Path to the config file (default: ~/.agent-cli-config.json)"
    )
    parser.add_argument("--server-url", help="Override the agent service URL")
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Save the resolved configuration before starting",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def run_session(
    config: CliConfig,
    credential: Credential,
    token_provider: TokenProvider,
    read_line: Optional[Callable[[str], str]] = None,
) -> None:
    """Run the chat loop with a client bound to the given credential."""
    async with AgentClient(
        config.server_url, credential.access_token, timeout=config.request_timeout
    ) as client:
        context = SessionContext(client=client, token_provider=token_provider)
        await SessionLoop(context, read_line=read_line).run()


def main(argv: Optional[List[str]] = None) -> int:
    """Run the console client and return the process exit status."""
    args = parse_args(argv)
    configure_logging(debug=args.debug)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    if args.server_url:
        config.server_url = args.server_url
    if args.save_config:
        path = config.save(args.config)
        print(f"Saved configuration to {path}")

    print(BANNER)
    logger.debug(
        "Starting console client",
        server_url=config.server_url,
        authority=config.authority_url,
    )

    try:
        token_provider = TokenProvider(config)
    except Exception as e:
        print(f"Failed to initialize auth: {e}")
        return 1

    cancellation = CancellationToken()
    try:
        credential = token_provider.authenticate(cancellation)
    except AuthError as e:
        print(f"Authentication failed: {e}")
        return 1
    except KeyboardInterrupt:
        cancellation.cancel()
        print("\nAuthentication cancelled")
        return 130

    try:
        asyncio.run(run_session(config, credential, token_provider))
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
