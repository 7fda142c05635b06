"""Click CLI for the webhook SQL challenge client.

Exit codes:
    0: solution submitted (any 2xx from the webhook)
    1: workflow failed at some step
    2: invalid configuration or usage
"""

from __future__ import annotations

import logging
from enum import IntEnum

import click

from src.challenge.catalog import QUESTION_DESCRIPTIONS, sql_for
from src.challenge.orchestrator import ChallengeOrchestrator
from src.challenge.selector import select_question
from src.challenge.submission import SolutionSubmitter
from src.challenge.webhook import WebhookGenerator
from src.config.loader import (
    EMAIL_KEY,
    NAME_KEY,
    REG_NO_KEY,
    SUBMISSION_BASE_URL_KEY,
    WEBHOOK_GENERATOR_URL_KEY,
    load_settings,
)
from src.errors import ConfigError, WorkflowError
from src.log_setup import LEVELS, configure_logging
from src.models import ChallengeSettings, QuestionId, WorkflowStep
from src.transport.client import JsonHttpClient
from src.transport.redaction import mask_url

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    SUCCESS = 0
    WORKFLOW_FAILED = 1
    CONFIG_ERROR = 2


def build_orchestrator(settings: ChallengeSettings, http: JsonHttpClient) -> ChallengeOrchestrator:
    return ChallengeOrchestrator(
        user=settings.user,
        webhook_generator=WebhookGenerator(http, settings.api.webhook_generator_url),
        submitter=SolutionSubmitter(http),
    )


def _settings(ctx: click.Context) -> ChallengeSettings:
    """Load configuration once per invocation. Exits with code 2 if invalid."""
    if "settings" not in ctx.obj:
        try:
            ctx.obj["settings"] = load_settings(
                ctx.obj["config_path"], overrides=ctx.obj["overrides"],
            )
        except ConfigError as exc:
            click.echo(f"Error: {exc}", err=True)
            ctx.exit(int(ExitCode.CONFIG_ERROR))
    return ctx.obj["settings"]


def _failure_message(exc: WorkflowError) -> str:
    """Render the failure cause, masking the per-user webhook URL."""
    message = str(exc.cause)
    url = getattr(exc.cause, "url", None)
    if exc.step is WorkflowStep.SUBMIT_SOLUTION and url:
        message = message.replace(url, mask_url(url))
    return message


@click.group(invoke_without_command=True)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    envvar="CHALLENGE_CONFIG_FILE",
    default=None,
    help="Path to a .properties file (default: ./application.properties if present).",
)
@click.option("--name", default=None, help="Participant name (challenge.user.name).")
@click.option("--reg-no", default=None, help="Registration number (challenge.user.regNo).")
@click.option("--email", default=None, help="Participant email (challenge.user.email).")
@click.option(
    "--webhook-generator-url", default=None,
    help="Webhook generator endpoint (challenge.api.webhookGeneratorUrl).",
)
@click.option(
    "--submission-base-url", default=None,
    help="Submission endpoint (challenge.api.submissionBaseUrl).",
)
@click.option(
    "--log-level",
    type=click.Choice(LEVELS, case_sensitive=False),
    default="INFO",
    envvar="CHALLENGE_LOG_LEVEL",
    show_default=True,
    help="Logging verbosity.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    name: str | None,
    reg_no: str | None,
    email: str | None,
    webhook_generator_url: str | None,
    submission_base_url: str | None,
    log_level: str,
) -> None:
    """Webhook SQL challenge client. Runs the workflow when no command is given."""
    ctx.ensure_object(dict)
    configure_logging(log_level)
    ctx.obj["config_path"] = config_path
    ctx.obj["overrides"] = {
        NAME_KEY: name,
        REG_NO_KEY: reg_no,
        EMAIL_KEY: email,
        WEBHOOK_GENERATOR_URL_KEY: webhook_generator_url,
        SUBMISSION_BASE_URL_KEY: submission_base_url,
    }
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Generate a webhook and submit the assigned SQL answer."""
    settings = _settings(ctx)
    logger.info("Configuration validated. Initiating challenge workflow")
    with JsonHttpClient(transport=ctx.obj.get("transport")) as http:
        outcome = build_orchestrator(settings, http).run()

    try:
        outcome.raise_for_error()
    except WorkflowError as exc:
        logger.error(
            "Challenge workflow failed at step %s (%s): %s",
            exc.step.value, type(exc.cause).__name__, _failure_message(exc),
        )
        ctx.exit(int(ExitCode.WORKFLOW_FAILED))


@cli.command("check-config")
@click.pass_context
def check_config(ctx: click.Context) -> None:
    """Validate the configuration and print it as JSON."""
    settings = _settings(ctx)
    click.echo(settings.model_dump_json(indent=2, by_alias=True))


@cli.command("show-query")
@click.option(
    "--question",
    type=click.Choice([q.value for q in QuestionId]),
    default=None,
    help="Question to print (default: assigned from the configured regNo).",
)
@click.pass_context
def show_query(ctx: click.Context, question: str | None) -> None:
    """Print the SQL answer that would be submitted."""
    if question is None:
        selected = select_question(_settings(ctx).user.reg_no)
    else:
        selected = QuestionId(question)
    click.echo(f"-- {selected.value}: {QUESTION_DESCRIPTIONS[selected]}", err=True)
    click.echo(sql_for(selected))


def main() -> None:
    cli(prog_name="webhook-challenge")


if __name__ == "__main__":
    main()
