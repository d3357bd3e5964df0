"""Error rendering helpers for the CLI."""

from collections.abc import Iterable

from botocore.exceptions import (
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    NoRegionError,
    ProfileNotFound,
)

from ecs_toolkit.cli.ui import console

AUTH_ERROR_CODES = {
    "ExpiredToken",
    "ExpiredTokenException",
    # spellchecker:ignore-next-line
    "UnrecognizedClientException",
    "InvalidClientTokenId",
    "InvalidSignatureException",
    "AccessDenied",
    "AccessDeniedException",
}


def report_error(exc: BaseException, action: str = "Deployment") -> None:
    """Render errors with actionable guidance.

    Args:
        exc: Raised exception.
        action: What was being attempted, used as the message prefix.
    """
    if is_aws_auth_error(exc):
        console.print(
            "[red]AWS authentication failed. Your credentials are missing, invalid, "
            "or expired.[/red]"
        )
        console.print(
            "[dim]If using AWS profile/SSO, run: aws sso login --profile <profile>. "
            "If using temporary keys, refresh AWS_SESSION_TOKEN and retry.[/dim]"
        )
        return

    if is_aws_region_error(exc):
        console.print("[red]No AWS region configured.[/red]")
        console.print("[dim]Set AWS_REGION or ECS_TOOLKIT_AWS_REGION and retry.[/dim]")
        return

    if is_aws_endpoint_error(exc):
        console.print("[red]Could not reach AWS endpoint from this environment.[/red]")
        console.print("[dim]Check network connectivity and AWS region configuration.[/dim]")
        return

    console.print(f"[red]{action} failed: {exc}[/red]")


def find_aws_error(errors: Iterable[BaseException | None]) -> BaseException | None:
    """Return the first error caused by AWS credentials, region or network."""
    for exc in errors:
        if exc is None:
            continue
        if is_aws_auth_error(exc) or is_aws_region_error(exc) or is_aws_endpoint_error(exc):
            return exc
    return None


def is_aws_auth_error(exc: BaseException) -> bool:
    """Return true when an exception chain indicates AWS auth issues.

    Args:
        exc: Raised exception.

    Returns:
        True when the chain contains an auth-related error.
    """
    for item in exception_chain(exc):
        if isinstance(item, (NoCredentialsError, ProfileNotFound)):
            return True
        if isinstance(item, ClientError):
            code = str(item.response.get("Error", {}).get("Code", ""))
            if code in AUTH_ERROR_CODES:
                return True
        if "security token included in the request is expired" in str(item).lower():
            return True
    return False


def is_aws_region_error(exc: BaseException) -> bool:
    """Return true when an exception chain indicates a missing region."""
    return any(isinstance(item, NoRegionError) for item in exception_chain(exc))


def is_aws_endpoint_error(exc: BaseException) -> bool:
    """Return true when an exception chain indicates endpoint/network errors."""
    return any(isinstance(item, EndpointConnectionError) for item in exception_chain(exc))


def exception_chain(exc: BaseException) -> list[BaseException]:
    """Return exceptions in cause/context chain.

    Args:
        exc: Root exception.

    Returns:
        Ordered exception chain from root to cause/context.
    """
    chain: list[BaseException] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        chain.append(current)
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return chain
