"""
Prepare step for CI pipelines.

Runs the platform pipeline (detect, parse context, authenticate, check
permissions), decides whether the agent was triggered, and hands the result
to later pipeline stages through a KEY=VALUE env file and ``::set-output``
lines on stdout. The env file is written on failure as well, carrying
PREPARE_ERROR, so downstream stages can short-circuit.
"""

import asyncio
import sys
from pathlib import Path
from typing import Dict, Optional, TextIO, Union

from pydantic import ValidationError

from forgelink.config import Settings, get_settings
from forgelink.models.context import EventType, PlatformContext
from forgelink.platforms.base import PlatformAdapter, PlatformApiClient
from forgelink.platforms.detector import get_platform_adapter
from forgelink.platforms.errors import ConfigurationError, ForgePermissionError
from forgelink.utils.logging import get_logger, log_error_with_context, setup_logging

logger = get_logger(__name__)

# Side-channel path used when settings themselves cannot be loaded
DEFAULT_ENV_FILE = Settings.model_fields["prepare_env_file"].default


def _contains_phrase(phrase: str, *texts: Optional[str]) -> bool:
    return any(phrase in text for text in texts if text)


async def check_trigger(client: PlatformApiClient, context: PlatformContext) -> bool:
    """
    Decide whether the event asks for the agent.

    Merge request and issue events trigger when the trigger phrase appears in
    the title or description; pipeline and push events trigger when a prompt
    is configured.
    """
    phrase = context.inputs.trigger_phrase

    if context.event_type == EventType.MERGE_REQUEST and context.merge_request_iid:
        mr = await client.get_merge_request(context.merge_request_iid)
        triggered = _contains_phrase(phrase, mr.title, mr.description)
        logger.info(f"Merge request {context.merge_request_iid} contains {phrase!r}: {triggered}")
        return triggered

    if context.event_type == EventType.ISSUE and context.issue_iid:
        issue = await client.get_issue(context.issue_iid)
        triggered = _contains_phrase(phrase, issue.title, issue.description)
        logger.info(f"Issue {context.issue_iid} contains {phrase!r}: {triggered}")
        return triggered

    if context.event_type in (EventType.PIPELINE, EventType.PUSH):
        triggered = bool(context.inputs.prompt)
        logger.info(f"{context.event_type.value} event with prompt: {triggered}")
        return triggered

    return False


def _flatten(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).replace("\r\n", "\\n").replace("\n", "\\n")


def build_env_vars(context: PlatformContext, contains_trigger: bool) -> Dict[str, str]:
    """Side-channel variables describing the run."""
    inputs = context.inputs
    values = {
        "CONTAINS_TRIGGER": contains_trigger,
        "PLATFORM": context.platform.value,
        "PROJECT_ID": context.project_ref,
        "EVENT_TYPE": context.event_type.value,
        "MERGE_REQUEST_IID": context.merge_request_iid,
        "ISSUE_IID": context.issue_iid,
        "PIPELINE_ID": context.pipeline_id,
        "ACTOR": context.actor,
        "PROMPT": inputs.prompt,
        "TRIGGER_PHRASE": inputs.trigger_phrase,
        "BASE_BRANCH": inputs.base_branch or "main",
        "BRANCH_PREFIX": inputs.branch_prefix,
        "USE_STICKY_COMMENT": inputs.use_sticky_comment,
        "USE_COMMIT_SIGNING": inputs.use_commit_signing,
        "ALLOWED_BOTS": inputs.allowed_bots,
    }
    return {key: _flatten(value) for key, value in values.items()}


def write_env_file(path: Union[str, Path], env_vars: Dict[str, str]) -> None:
    lines = [f"{key}={value}" for key, value in env_vars.items()]
    Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")


def emit_outputs(outputs: Dict[str, str], stream: TextIO) -> None:
    for name, value in outputs.items():
        stream.write(f"::set-output name={name}::{value}\n")
    stream.flush()


async def run(
    adapter: Optional[PlatformAdapter] = None,
    settings: Optional[Settings] = None,
    stdout: TextIO = sys.stdout,
) -> int:
    """
    Execute the prepare step.

    Args:
        adapter: Platform adapter (default: detected from the environment)
        settings: Application settings (default: loaded from the environment)
        stdout: Stream receiving ``::set-output`` directives

    Returns:
        Process exit code: 0 when context, auth and permissions check out
        (whether or not the agent was triggered), 1 otherwise
    """
    env_file = settings.prepare_env_file if settings else DEFAULT_ENV_FILE

    try:
        settings = settings or get_settings()
        env_file = settings.prepare_env_file

        adapter = adapter or get_platform_adapter(settings=settings)
        if not adapter.is_current_platform():
            raise ConfigurationError(f"Not running in a {adapter.platform.value} CI/CD environment")

        context = adapter.parse_context()
        run_logger = logger.with_context(
            platform=context.platform.value,
            project_id=context.project_ref,
            run_id=context.run_id,
        )
        run_logger.info(f"Resolved {context.event_type.value} event for {context.repository.full_name}")

        credential = await adapter.get_auth_token()
        run_logger.info(f"Authenticated with token from {credential.variable}")

        client = adapter.create_api_client(credential, context)
        try:
            if not await adapter.validate_permissions(client, context):
                raise ForgePermissionError(
                    f"{context.actor} does not have sufficient permissions on {context.repository.full_name}"
                )
            run_logger.info("Permission check passed")

            contains_trigger = await check_trigger(client, context)
        finally:
            await client.aclose()

        write_env_file(env_file, build_env_vars(context, contains_trigger))
        run_logger.info(f"Environment written to {env_file}")

        emit_outputs(
            {
                "contains_trigger": _flatten(contains_trigger),
                "platform": context.platform.value,
                "project_id": context.project_ref,
            },
            stdout,
        )

        if not contains_trigger:
            run_logger.info("No trigger detected, skipping agent")
        return 0

    except Exception as e:
        log_error_with_context(logger, f"Prepare step failed: {e}", e, phase="prepare")
        write_env_file(
            env_file,
            {"PREPARE_ERROR": _flatten(str(e)), "CONTAINS_TRIGGER": "false"},
        )
        return 1


def main() -> None:
    """Console entry point."""
    try:
        settings: Optional[Settings] = get_settings()
    except ValidationError:
        # run() reloads and reports the error through the env file
        settings = None
    setup_logging(settings.log_level.upper() if settings else "INFO")
    sys.exit(asyncio.run(run(settings=settings)))


if __name__ == "__main__":
    main()
