"""
Conduit CLI - Talk to the agent from a terminal.

Commands:
    conduit ask "PROMPT" [--file PATH ...]   Run a single turn and print the reply
    conduit chat                             Interactive session

Chat commands:
    /clear          Start a new conversation
    /file PATH      Send a file as input
    /history        Show the conversation so far
    /quit           Exit
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, TextIO

from . import __version__
from .agent import Agent
from .config import AgentConfig, load_config
from .exceptions import ConduitError, InputError
from .models import MessageKind, Role, TurnResult
from .validation import validate_config

CHAT_HELP = "Commands: /clear, /file PATH, /history, /quit"


class ReplyPrinter:
    """Partial-text callback that writes only the newly streamed suffix."""

    def __init__(self, out: TextIO = sys.stdout):
        self.out = out
        self._shown = 0

    def __call__(self, text: str) -> None:
        self.out.write(text[self._shown:])
        self.out.flush()
        self._shown = len(text)

    def finish(self, result: TurnResult) -> None:
        if result.error is not None:
            if self._shown:
                self.out.write("\n")
            print(f"Error: {result.error}", file=sys.stderr)
            return
        if not self._shown:
            self.out.write(result.text)
        self.out.write("\n")
        for invocation, tool_result in result.tool_results:
            self.out.write(f"[{invocation.tool_name}] {tool_result.to_message_content()}\n")
        self.out.flush()


def build_config(args: argparse.Namespace) -> AgentConfig:
    """Load configuration and apply command-line overrides."""
    config = load_config(args.config)
    if args.model:
        config.model = args.model
    if args.max_tokens:
        config.max_tokens = args.max_tokens
    if args.no_stream:
        config.stream = False
    if args.log_level:
        config.log_level = args.log_level
    validate_config(config)
    return config


async def _run_prompt(agent: Agent, prompt: str, out: TextIO) -> TurnResult:
    printer = ReplyPrinter(out)
    result = await agent.run_turn(prompt, on_partial=printer)
    printer.finish(result)
    return result


async def _send_file(agent: Agent, path: str, out: TextIO) -> TurnResult:
    event = await agent.normalizer.normalize_file(path)
    printer = ReplyPrinter(out)
    result = await agent.process_input(event, on_partial=printer)
    printer.finish(result)
    return result


async def run_ask(config: AgentConfig, prompt: str, files: list[str], out: TextIO = sys.stdout) -> int:
    async with Agent(config) as agent:
        for path in files:
            try:
                result = await _send_file(agent, path, out)
            except InputError as e:
                print(f"Error: {e.message}", file=sys.stderr)
                return 1
            if not result.success:
                return 1
        result = await _run_prompt(agent, prompt, out)
    return 0 if result.success else 1


def print_history(agent: Agent, out: TextIO = sys.stdout) -> None:
    for message in agent.conversation:
        if message.role == Role.SYSTEM:
            continue
        label = message.role.value
        if message.kind != MessageKind.TEXT:
            label += f"/{message.kind.value}"
        out.write(f"[{label}] {message.content}\n")
    out.flush()


async def run_chat(config: AgentConfig, out: TextIO = sys.stdout) -> int:
    async with Agent(config) as agent:
        out.write(f"conduit {__version__} ({config.model}). {CHAT_HELP}\n")
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except (EOFError, KeyboardInterrupt):
                out.write("\n")
                break
            line = line.strip()
            if not line:
                continue
            if line in ("/quit", "/exit"):
                break
            if line == "/clear":
                agent.clear_conversation()
                out.write("Conversation cleared.\n")
            elif line == "/history":
                print_history(agent, out)
            elif line.startswith("/file"):
                path = line[len("/file"):].strip()
                if not path:
                    out.write("Usage: /file PATH\n")
                    continue
                try:
                    await _send_file(agent, path, out)
                except InputError as e:
                    print(f"Error: {e.message}", file=sys.stderr)
            elif line.startswith("/"):
                out.write(f"Unknown command. {CHAT_HELP}\n")
            else:
                await _run_prompt(agent, line, out)
    return 0


def cmd_ask(config: AgentConfig, args: argparse.Namespace) -> int:
    """Run a single turn."""
    return asyncio.run(run_ask(config, args.prompt, args.file or []))


def cmd_chat(config: AgentConfig, args: argparse.Namespace) -> int:
    """Start an interactive session."""
    return asyncio.run(run_chat(config))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="conduit",
        description="Conduit CLI - Conversational agent with local tools",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to a YAML/JSON config file (default: $CONDUIT_CONFIG or ./config.yaml)",
    )
    parser.add_argument("--model", "-m", default=None, help="Model name to request")
    parser.add_argument("--max-tokens", type=int, default=None, help="Maximum reply tokens")
    parser.add_argument(
        "--no-stream",
        action="store_true",
        help="Wait for the full reply instead of streaming it",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: from config, else info)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    ask_parser = subparsers.add_parser("ask", help="Send one prompt and print the reply")
    ask_parser.add_argument("prompt", help="Prompt text")
    ask_parser.add_argument(
        "--file",
        "-f",
        action="append",
        help="File to send before the prompt (repeatable)",
    )
    ask_parser.set_defaults(func=cmd_ask)

    chat_parser = subparsers.add_parser("chat", help="Start an interactive session")
    chat_parser.set_defaults(func=cmd_chat)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        config = build_config(args)
    except ConduitError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        sys.exit(args.func(config, args))
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)


if __name__ == "__main__":
    main()
