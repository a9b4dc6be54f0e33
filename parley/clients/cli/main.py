#!/usr/bin/env python3
"""
parley CLI - chat with an OpenAI model from the terminal.

Usage:
    parley [-m MODEL] [-s SESSION.jsonl] [-t TRANSCRIPT.txt] [--system TEXT]
    echo "question" | parley -s SESSION.jsonl
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from parley import __version__
from parley.config import resolve_settings
from parley.errors import ParleyError
from parley.runtime.driver import prime_system_prompt, select_driver
from parley.runtime.llm import OpenAIChatCompletionsProvider
from parley.runtime.storage import open_ledger
from . import ui
from .input import PromptLineReader

logger = logging.getLogger("parley.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="parley",
        description="Chat with an OpenAI model. Reads a single request from stdin when it is not a terminal.",
    )
    parser.add_argument("-m", "--model", help="OpenAI model to use (default: gpt-3.5-turbo)")
    parser.add_argument("--api-key", help="OpenAI API key (default: $OPENAI_API_KEY)")
    parser.add_argument(
        "-s", "--session",
        metavar="FILE",
        help="Persist the conversation to a JSONL file and resume it on the next run",
    )
    parser.add_argument(
        "-t", "--transcript",
        metavar="FILE",
        help="Append a plain-text transcript of the conversation to FILE",
    )
    parser.add_argument(
        "--fsync",
        action="store_true",
        help="fsync the session log and transcript after every turn",
    )
    parser.add_argument("--system", metavar="TEXT", help="System prompt for a new conversation")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    load_dotenv()

    ledger = None
    try:
        settings = resolve_settings(
            api_key=args.api_key,
            model=args.model,
            session=args.session,
            transcript=args.transcript,
            system_prompt=args.system,
            fsync=args.fsync,
        )
        ledger = open_ledger(settings.session_path, settings.transcript_path, fsync=settings.fsync)
        prime_system_prompt(ledger, settings.system_prompt)
        port = OpenAIChatCompletionsProvider(settings.api_key, base_url=settings.base_url)

        def make_renderer() -> ui.RichRenderer:
            ui.print_header(settings.model, str(settings.session_path) if settings.session_path else None)
            return ui.RichRenderer()

        driver = select_driver(
            ledger,
            port,
            model=settings.model,
            stdin=sys.stdin,
            stdout=sys.stdout,
            make_reader=lambda: PromptLineReader(settings.history_path),
            make_renderer=make_renderer,
        )
        asyncio.run(driver.run())
    except KeyboardInterrupt:
        ui.err_console.print("\n[dim]Interrupted[/dim]")
        return 130
    except ParleyError as e:
        logger.debug("Fatal error", exc_info=True)
        ui.print_error(str(e))
        return 1
    finally:
        if ledger is not None:
            ledger.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
