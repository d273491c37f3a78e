"""
raidchat chat - Interactive chat with a project's RAID register.

Runs a ChatSession in the terminal: one line in, the assistant's replies out.
Type 'exit' or press Ctrl-D to leave; 'cancel' abandons the current question.
"""

import asyncio

from raidchat.api.client import RaidApiClient
from raidchat.chat.models import ChatMessage
from raidchat.chat.session import ChatSession
from raidchat.lib.config import ChatConfig
from raidchat.lib.prompts import PromptOverrides

EXIT_WORDS = {"exit", "quit", ":q"}


def _print_message(message: ChatMessage) -> None:
    for line in message.content.splitlines() or [""]:
        print(f"  {line}")
    print()


async def run_repl(
    project_key: str,
    config: ChatConfig,
    prompts: PromptOverrides,
    read_line=input,
) -> int:
    """Read lines until EOF/exit and feed them to a ChatSession."""
    async with RaidApiClient.from_config(config) as api:
        session = ChatSession(project_key, api, config=config, prompts=prompts)
        _print_message(session.greeting())

        while True:
            try:
                line = read_line("> " if session.active is None else "? ")
            except (EOFError, KeyboardInterrupt):
                print()
                break

            if line.strip().lower() in EXIT_WORDS:
                break

            for message in await session.handle_input(line):
                _print_message(message)

    return 0


def cmd_chat(args, config: ChatConfig, prompts: PromptOverrides) -> int:
    """Start an interactive chat session for --project."""
    print(f"Chat session for project: {args.project}")
    print(f"API: {config.api_base_url}")
    print("=" * 60)
    print()
    return asyncio.run(run_repl(args.project, config, prompts))
