"""Command-line entry point: run one turn and print the reply."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from unichat.config import Settings
from unichat.llm.client import ChatClient
from unichat.llm.registry import default_adapters
from unichat.runtime.agent import AgentRunError, Orchestrator, render_artifact_marker
from unichat.tools.gateway import ToolGateway

logger = logging.getLogger(__name__)


async def main(message: str, settings: Settings | None = None) -> int:
    settings = settings or Settings()  # type: ignore[call-arg]  # pydantic-settings loads from env
    config = settings.provider_config()

    gateway = ToolGateway(timeout_seconds=settings.tool_timeout_seconds)
    failures = await gateway.initialize()
    for group, error in failures.items():
        logger.warning("Tool provider %s unavailable: %s", group, error)

    async with ChatClient(timeout=settings.request_timeout) as client:
        orchestrator = Orchestrator(
            gateway=gateway,
            client=client,
            adapters=default_adapters(settings.anthropic_version),
            max_tool_messages=settings.max_tool_messages,
            termination=settings.termination,
            parallel_tool_calls=settings.parallel_tool_calls,
        )
        try:
            result = await orchestrator.process(message, config, max_steps=settings.max_steps)
        except AgentRunError as e:
            print(e.user_message, file=sys.stderr)
            return 1

    print(result.output)
    marker = render_artifact_marker(result.artifact)
    if marker:
        print(marker)
    return 0


def run(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="unichat", description="Run one agent turn.")
    parser.add_argument("message", help="user message to send")
    args = parser.parse_args(argv)

    settings = Settings()  # type: ignore[call-arg]
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    try:
        code = asyncio.run(main(args.message, settings))
    except ValueError as e:
        logger.error("%s", e)
        code = 2
    sys.exit(code)
