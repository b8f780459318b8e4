"""
Terminal client for a running Refiner server.

Architectural role:
- Provides a terminal-only interface over `POST /api/process`.
- Streams output to stdout as fragments arrive.
- Records successful results in the local history store.

Request lifecycle (per invocation):
1. Read input text from `--file`, piped stdin, or an interactive prompt.
2. Build the request payload from command-line options.
3. Stream the response through `StreamConsumer`, printing each fragment.
4. Save a `HistoryEntry` once the stream completes.

Input validation behavior:
- Option choices are restricted by argparse to the server's catalog.
- Text length and other rules are enforced by the server; its structured
  errors are printed as `[CODE] message`.

Error handling strategy:
- Structured server errors and unreachable servers exit with status 1.
- A broken stream keeps the partial output on screen and exits with status 1.
- Keyboard interrupts exit with status 130 without traceback output.
"""

import argparse
import logging
import os
import sys
from datetime import datetime

from refiner.client.history import HistoryEntry, HistoryStore
from refiner.client.http_client import (
    DEFAULT_SERVER_URL,
    ProcessingFailed,
    RefinerClient,
    StreamBroken,
)
from refiner.client.stream_consumer import StreamConsumer
from refiner.core.logging_setup import configure_logging
from refiner.core.options import (
    DEFAULT_AUDIENCE,
    DEFAULT_MODEL,
    DEFAULT_PROMPT_STRUCTURE,
    MODE_SUMMARIZE,
    REWRITE_GOALS,
    SUMMARY_DETAIL_LEVELS,
    SUMMARY_FORMATS,
    SUPPORTED_MODELS,
    TARGET_AUDIENCES,
    VALID_MODES,
    VALID_PROMPT_STRUCTURES,
    VALID_TONES,
)


logger = logging.getLogger(__name__)


# =========================================================
# UTF-8 SAFE STDOUT
# =========================================================

def _utf8_stdout():
    if hasattr(sys.stdout, "reconfigure"):
        try:
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        except (AttributeError, ValueError):
            logger.debug("stdout does not support reconfiguration")


# =========================================================
# ARGUMENTS / PAYLOAD
# =========================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="refiner",
        description="Summarize or rewrite text through a Refiner server.",
    )
    parser.add_argument("--server", default=None, help=f"Server URL (default: $REFINER_SERVER_URL or {DEFAULT_SERVER_URL})")
    parser.add_argument("--file", help="Read input text from this file")
    parser.add_argument("--mode", choices=VALID_MODES, default=MODE_SUMMARIZE)
    parser.add_argument("--level", type=int, choices=sorted(SUMMARY_DETAIL_LEVELS), default=3,
                        help="Summary detail level (1=Very Brief .. 5=Detailed)")
    parser.add_argument("--tone", choices=VALID_TONES, default="formal")
    parser.add_argument("--audience", choices=tuple(TARGET_AUDIENCES), default=DEFAULT_AUDIENCE)
    parser.add_argument("--format", dest="summary_format", choices=tuple(SUMMARY_FORMATS), default=None)
    parser.add_argument("--goal", dest="rewrite_goal", choices=tuple(REWRITE_GOALS), default=None)
    parser.add_argument("--model", choices=SUPPORTED_MODELS, default=DEFAULT_MODEL)
    parser.add_argument("--structure", choices=VALID_PROMPT_STRUCTURES, default=DEFAULT_PROMPT_STRUCTURE)
    parser.add_argument("--history-path", default=None, help="History file (default: $REFINER_HISTORY_PATH)")
    parser.add_argument("--history", action="store_true", help="List saved history and exit")
    parser.add_argument("--clear-history", action="store_true", help="Delete saved history and exit")
    parser.add_argument("--no-save", action="store_true", help="Do not record the result in history")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def build_payload(args: argparse.Namespace, text: str) -> dict:
    """Request body for `/api/process`; only mode-relevant options are sent."""
    payload = {
        "text": text,
        "mode": args.mode,
        "model": args.model,
        "targetAudience": args.audience,
        "promptStructure": args.structure,
    }
    if args.mode == MODE_SUMMARIZE:
        payload["summaryLengthLevel"] = args.level
        if args.summary_format:
            payload["summaryFormat"] = args.summary_format
    else:
        payload["tone"] = args.tone
        if args.rewrite_goal:
            payload["rewriteGoal"] = args.rewrite_goal
    return payload


def history_options(payload: dict) -> dict:
    return {
        "summaryLengthLevel": payload.get("summaryLengthLevel"),
        "tone": payload.get("tone"),
        "targetAudience": payload.get("targetAudience"),
        "summaryFormat": payload.get("summaryFormat"),
        "rewriteGoal": payload.get("rewriteGoal"),
        "model": payload.get("model"),
    }


def read_input(args: argparse.Namespace) -> str:
    if args.file:
        with open(args.file, "r", encoding="utf-8") as f:
            return f.read()
    if not sys.stdin.isatty():
        return sys.stdin.read()
    return input("Text: ")


# =========================================================
# HISTORY COMMANDS
# =========================================================

def print_history(store: HistoryStore) -> None:
    entries = store.entries()
    if not entries:
        print("No history entries.")
        return

    for entry in entries:
        when = datetime.fromtimestamp(entry.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
        option = entry.options.get("summaryLengthLevel") if entry.mode == MODE_SUMMARIZE else entry.options.get("tone")
        preview = " ".join(entry.outputText.split())[:70]
        print(f"{when}  {entry.mode:<9} {str(option):<8} {preview}")


# =========================================================
# MAIN
# =========================================================

def main(argv=None) -> int:
    """
    Run one processing request (or a history command).

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    _utf8_stdout()

    store = HistoryStore(args.history_path)

    if args.clear_history:
        store.clear()
        print("History cleared.")
        return 0

    if args.history:
        print_history(store)
        return 0

    try:
        text = read_input(args)
    except (EOFError, KeyboardInterrupt):
        print("\nNo input.")
        return 1

    if not text.strip():
        print("Input text cannot be empty.", file=sys.stderr)
        return 1

    payload = build_payload(args, text)
    client = RefinerClient(args.server or _server_from_env())

    def show(fragment, _text):
        print(fragment, end="", flush=True)

    consumer = StreamConsumer(on_update=show)

    try:
        result = client.process(payload, consumer)
    except ProcessingFailed as exc:
        print(f"[{exc.error.code}] {exc.error.message}", file=sys.stderr)
        if exc.retryable:
            print("This error is temporary; try again shortly.", file=sys.stderr)
        return 1
    except StreamBroken as exc:
        print(f"\n[STREAM_BROKEN] {exc} (partial output kept above)", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130

    print()

    if not args.no_save:
        store.append(HistoryEntry.create(text, result, args.mode, history_options(payload)))

    return 0


def _server_from_env() -> str:
    return os.getenv("REFINER_SERVER_URL", DEFAULT_SERVER_URL)


if __name__ == "__main__":
    sys.exit(main())
