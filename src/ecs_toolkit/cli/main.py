"""CLI entrypoint for the ECS toolkit."""

import re
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click
from botocore.exceptions import BotoCoreError, ClientError

from ecs_toolkit.cli.configuration.store import ConfigError
from ecs_toolkit.cli.errors import find_aws_error, report_error
from ecs_toolkit.cli.state import CliState
from ecs_toolkit.cli.ui import console, print_deployment_report
from ecs_toolkit.core.deployments.aws_ecs.control_plane import EcsControlPlane
from ecs_toolkit.core.deployments.aws_ecs.errors import AggregateFailure
from ecs_toolkit.core.deployments.aws_ecs.iam import render_iam_policy
from ecs_toolkit.core.deployments.aws_ecs.models import DeploymentReport
from ecs_toolkit.core.deployments.aws_ecs.rollout import DeployOptions, run_deployment
from ecs_toolkit.core.deployments.aws_ecs.session import create_session, get_identity
from ecs_toolkit.core.logging import LOG_LEVELS, configure_logging
from ecs_toolkit.core.settings import get_settings

DISTRIBUTION_NAME = "ecs-toolkit"
DEFAULT_POLICY_REGION = "us-east-1"
ACCOUNT_ID_PATTERN = re.compile(r"^\d{12}$")


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file. [default: .ecs-toolkit.yml]",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(list(LOG_LEVELS), case_sensitive=False),
    default=None,
    help="Logging level. [default: info]",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str | None) -> None:
    """Tool to make it easier to work with AWS ECS.

    Args:
        ctx: Click context for the command invocation.
        config_path: Configuration file passed on the command line.
        log_level: Logging level passed on the command line.
    """
    settings = get_settings()
    try:
        configure_logging(log_level or settings.log_level)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--log-level") from exc

    ctx.obj = CliState(
        settings=settings,
        config_path=config_path or Path(settings.config_path),
    )


@cli.command()
@click.option("--image-tag", "-t", required=True, help="Image tag to update the container images to.")
@click.option("--skip-tasks", is_flag=True, help="Skip both pre- and post-deployment tasks.")
@click.option("--skip-pre-tasks", is_flag=True, help="Skip only pre-deployment tasks.")
@click.option("--skip-post-tasks", is_flag=True, help="Skip only post-deployment tasks.")
@click.option(
    "--halt-on-failure/--continue-on-failure",
    default=True,
    show_default=True,
    help="Stop before later stages when a stage fails.",
)
@click.pass_obj
def deploy(
    state: CliState,
    image_tag: str,
    skip_tasks: bool,
    skip_pre_tasks: bool,
    skip_post_tasks: bool,
    halt_on_failure: bool,
) -> None:
    """Deploy an application to AWS ECS.

    \b
    Examples:
      ecs-toolkit deploy --image-tag=5a853f72
      ecs-toolkit deploy --image-tag=5a853f72 --skip-tasks
      ecs-toolkit deploy --image-tag=5a853f72 --continue-on-failure
    """
    if not image_tag.strip():
        raise click.BadParameter("must be set and should not be blank", param_hint="--image-tag")

    try:
        config = state.load_config()
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)

    options = DeployOptions(
        skip_pre_tasks=skip_tasks or skip_pre_tasks,
        skip_post_tasks=skip_tasks or skip_post_tasks,
        halt_on_failure=halt_on_failure,
        watch=state.watch_options(),
    )

    try:
        session = create_session(state.settings.aws_region, state.settings.aws_profile)
        control_plane = EcsControlPlane.from_session(session)
    except (BotoCoreError, ClientError) as exc:
        report_error(exc, "AWS setup")
        sys.exit(1)

    try:
        report = run_deployment(control_plane, config, image_tag, options)
    except AggregateFailure as exc:
        print_deployment_report(DeploymentReport(stages=list(exc.results)))
        console.print(f"[red]{exc}[/red]")
        aws_error = find_aws_error(
            unit.cause for result in exc.results for unit in result.units
        )
        if aws_error is not None:
            report_error(aws_error)
        sys.exit(1)

    print_deployment_report(report)
    console.print(f"[green]Deployed image tag {image_tag} to cluster {config.cluster}.[/green]")


@cli.group("config")
def config_group() -> None:
    """Work with the toolkit configuration."""


@config_group.command("iam-policy")
@click.option(
    "--account",
    "-a",
    default=None,
    help="12-digit AWS account ID. Defaults to the caller identity.",
)
@click.option(
    "--region",
    "-r",
    default=DEFAULT_POLICY_REGION,
    show_default=True,
    help="AWS region of the cluster.",
)
@click.pass_obj
def iam_policy(state: CliState, account: str | None, region: str) -> None:
    """Generate the IAM policy to attach to the deploying role or user.

    \b
    Examples:
      ecs-toolkit config iam-policy -a 123456789012
      ecs-toolkit config iam-policy -a 123456789012 -r eu-west-1
    """
    if not region.strip():
        raise click.BadParameter("must be set and should not be blank", param_hint="--region")
    if account is not None and not ACCOUNT_ID_PATTERN.match(account):
        raise click.BadParameter("must be a 12-digit AWS account ID", param_hint="--account")

    try:
        config = state.load_config()
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)

    if account is None:
        try:
            session = create_session(state.settings.aws_region, state.settings.aws_profile)
            account = get_identity(session)["Account"]
        except (BotoCoreError, RuntimeError) as exc:
            report_error(exc, "Reading AWS identity")
            sys.exit(1)

    click.echo(render_iam_policy(account, region, config))


@cli.command("version")
@click.option("--short", is_flag=True, help="Print version tag only.")
def version_command(short: bool) -> None:
    """Print out version information."""
    try:
        tag = version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        tag = "(development)"

    if short:
        click.echo(tag)
        return

    click.echo("Name:      ECS Toolkit")
    click.echo(f"Version:   {tag}")
    click.echo(f"Python:    {sys.version.split()[0]}")


def main() -> None:
    """Run the CLI."""
    cli()
