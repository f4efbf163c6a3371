"""Command-line front end for the email agent client.

Provides an argparse-based tool that drives the same ``AppContext`` a page
would: submit an instruction, open the Google login, complete a login
callback, or show the restored identity.

Usage::

    python -m emailagent.cli run "Send a welcome email to john@example.com"
    python -m emailagent.cli run "..." --format json
    python -m emailagent.cli connect
    python -m emailagent.cli callback '{"email": "jane@example.com", "name": "Jane"}'
    python -m emailagent.cli whoami
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from emailagent.app import AppContext, configure_logging
from emailagent.config import Settings, get_settings
from emailagent.domain.types import WorkflowStatus
from emailagent.session.callback import complete_login_callback


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Returns:
        A configured :class:`argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(description="Email automation agent client")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Submit an instruction to the agent")
    run.add_argument("instruction", type=str, help="Natural-language instruction")
    run.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    subparsers.add_parser("connect", help="Open the Google login in the browser")

    callback = subparsers.add_parser("callback", help="Store the payload returned by the login")
    callback.add_argument("payload", type=str, help="JSON payload from the login redirect")

    subparsers.add_parser("whoami", help="Show the connected identity")

    return parser


def _json_result(ctx: AppContext) -> dict[str, Any]:
    state = ctx.submission.state
    return {
        "status": state.current_status.value,
        "status_label": ctx.submission.status_label,
        "error": state.last_error,
        "steps": [step.model_dump(mode="json") for step in ctx.submission.render_steps],
        "generated_email": (
            state.generated_email.model_dump(mode="json") if state.generated_email else None
        ),
    }


async def _run(settings: Settings, instruction: str, output_format: str) -> int:
    async with AppContext(settings) as ctx:
        state = await ctx.submission.submit(instruction)
        if output_format == "json":
            print(json.dumps(_json_result(ctx), indent=2))
        else:
            print(ctx.render())
    return 1 if state.current_status == WorkflowStatus.ERROR else 0


async def _connect(settings: Settings) -> int:
    async with AppContext(settings) as ctx:
        opened = ctx.auth.initiate_connect()
        if not opened:
            print(ctx.auth.auth_error, file=sys.stderr)
            return 1
        print(f"Opened {settings.api_url('/auth/google/login')}")
    return 0


async def _callback(settings: Settings, raw_payload: str) -> int:
    async with AppContext(settings) as ctx:
        payload = complete_login_callback(ctx.store, settings.auth_storage_key, raw_payload)
        if payload is None:
            print("Unable to restore authentication payload", file=sys.stderr)
            return 1
        print(f"Connected as {payload.display_name}")
    return 0


async def _whoami(settings: Settings) -> int:
    async with AppContext(settings) as ctx:
        print(ctx.auth.connect_label)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to ``sys.argv[1:]``).

    Returns:
        Exit code (0 for success, 1 for a failed submission or login).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(production=settings.production)

    if args.command == "run":
        return asyncio.run(_run(settings, args.instruction, args.format))
    if args.command == "connect":
        return asyncio.run(_connect(settings))
    if args.command == "callback":
        return asyncio.run(_callback(settings, args.payload))
    return asyncio.run(_whoami(settings))


if __name__ == "__main__":
    sys.exit(main())
