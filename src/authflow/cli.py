"""``authflow`` command line."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from .config import Alias, AuthSettings
from .errors import AuthFlowError
from .fetcher import TokenFetcher
from .log import setup_logging
from .mode import broker_supported, mode_names

logger = logging.getLogger(__name__)

OUTPUT_MODES = ["status", "token", "json", "none"]

if broker_supported():
    MODE_HELP = (
        "Authentication mode. Default: broker, with web fallback. "
        "Repeat --mode to combine modes."
    )
else:
    MODE_HELP = "Authentication mode. Default: web. Repeat --mode to combine modes."


@click.command(name="authflow", help="A CLI interface to MSAL authentication.")
@click.option("--resource", help="The ID of the resource you are authenticating to.")
@click.option("--client", help="The ID of the App registration you are authenticating as.")
@click.option(
    "--tenant",
    help="The ID of the Tenant where the client and resource entities exist in.",
)
@click.option(
    "--domain",
    help=(
        "Preferred domain to filter cached accounts by. If a single account matching "
        "the preferred domain is in the cache it is used, otherwise an account picker "
        "is launched."
    ),
)
@click.option("--prompt-hint", help="The prompt hint text for broker prompts and web mode.")
@click.option(
    "--scope",
    "scopes",
    multiple=True,
    help="Scopes to request. Defaults to <resource>/.default.",
)
@click.option(
    "--mode",
    "modes",
    multiple=True,
    type=click.Choice(mode_names(), case_sensitive=False),
    help=MODE_HELP,
)
@click.option(
    "--output",
    type=click.Choice(OUTPUT_MODES, case_sensitive=False),
    default="status",
    show_default=True,
    help="Controls how the token information is printed to stdout.",
)
@click.option("--alias", "alias_name", help="Name of an alias from the config file.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a TOML configuration file.",
)
@click.option("--clear", "clear", is_flag=True, help="Clear the token cache for this client.")
@click.option(
    "--timeout",
    "lock_timeout",
    type=click.FloatRange(min=0, min_open=True),
    help="Seconds to wait for another authflow process to finish prompting.",
)
@click.option(
    "--verbosity",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    show_default=True,
)
def main(
    resource: str | None,
    client: str | None,
    tenant: str | None,
    domain: str | None,
    prompt_hint: str | None,
    scopes: tuple[str, ...],
    modes: tuple[str, ...],
    output: str,
    alias_name: str | None,
    config_path: Path | None,
    clear: bool,
    lock_timeout: float | None,
    verbosity: str,
) -> None:
    setup_logging(verbosity)

    options = Alias(
        resource=resource,
        client=client,
        tenant=tenant,
        domain=domain,
        prompt_hint=prompt_hint,
        scopes=list(scopes) or None,
    )
    try:
        settings = AuthSettings.from_options(
            options,
            alias=alias_name,
            config_path=config_path,
            modes=list(modes) or None,
            lock_timeout=lock_timeout,
        )
    except AuthFlowError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except ValidationError as exc:
        for error in exc.errors():
            logger.error("%s", error["msg"])
        sys.exit(1)

    fetcher = TokenFetcher(settings)
    try:
        if clear:
            fetcher.clear_cache()
            return
        result = fetcher.get_token()
    except AuthFlowError as exc:
        logger.critical("%s", exc)
        sys.exit(1)

    for error in result.errors:
        logger.debug("%s: %s", type(error).__name__, error)

    if not result.success:
        logger.error("Authentication failed. Re-run with '--verbosity debug' to see more info.")
        sys.exit(1)

    token_result = result.token_result
    logger.debug("Token obtained via %s (%s)", result.flow_name, token_result.auth_type.value)
    match output.lower():
        case "status":
            click.echo(str(token_result), err=True)
        case "token":
            click.echo(token_result.token, nl=False)
        case "json":
            click.echo(token_result.to_json(), nl=False)
        case _:
            pass
