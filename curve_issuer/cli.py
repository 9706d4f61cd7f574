"""Command line entry points.

Usage:
  poetry run curve-issuer create-token
  poetry run curve-issuer create-token --network base --timeout 300
  poetry run curve-issuer deploy --artifact artifacts/contracts/NovaGuardian.sol/NovaGuardian.json
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
from loguru import logger

from curve_issuer.core.clients.ChainClient import ChainClient
from curve_issuer.core.config import (
    ConfigError,
    get_factory_address,
    get_private_key,
    load_config,
)
from curve_issuer.core.constants.base import DEFAULT_TRANSACTION_TIMEOUT
from curve_issuer.core.constants.chains import resolve_chain_id
from curve_issuer.core.utils.contracts import (
    DeploymentError,
    deploy_contract,
    load_artifact,
)
from curve_issuer.issuance.errors import IssuanceError, IssuanceErrorKind
from curve_issuer.issuance.fees import CreationFee, fetch_creation_fee
from curve_issuer.issuance.orchestrator import encode_create_token
from curve_issuer.issuance.params import IssuanceSpec, resolve_issuance_params
from curve_issuer.issuance.policy import RetryPolicy, issue_token_with_policy
from curve_issuer.issuance.presets import PRESETS
from curve_issuer.issuance.reporter import (
    format_creation_fee,
    format_issuance_error,
    format_issuance_plan,
    format_issuance_result,
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 7
EXIT_CODES: dict[IssuanceErrorKind, int] = {
    IssuanceErrorKind.VALIDATION: 2,
    IssuanceErrorKind.CHAIN_READ: 3,
    IssuanceErrorKind.SUBMISSION: 4,
    IssuanceErrorKind.EXECUTION_REVERTED: 5,
    IssuanceErrorKind.CONFIRMATION_TIMEOUT: 6,
}

DEFAULT_ARTIFACT = Path("artifacts/contracts/NovaGuardian.sol/NovaGuardian.json")

_LOG_LEVEL_OPTION = click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.json (defaults to CURVE_ISSUER_CONFIG_PATH or the project root).",
)


def _configure_logging(log_level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=str(log_level).upper())


def _load_issuance_spec(preset: str, spec_file: Path | None) -> IssuanceSpec:
    if spec_file is None:
        return PRESETS[preset]
    try:
        data = json.loads(spec_file.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Spec file is not valid JSON: {spec_file}") from exc
    return IssuanceSpec.from_dict(data)


def _client_for(network: str) -> ChainClient:
    chain_id = resolve_chain_id(network)
    return ChainClient(chain_id, get_private_key())


@click.group(name="curve-issuer", help="Issue bonding-curve tokens on Mint Club V2.")
def cli() -> None:
    pass


@cli.command(
    name="create-token",
    help="Create a token on the Mint Club V2 bond factory and print its address.",
)
@click.option("--network", default="base", show_default=True)
@click.option(
    "--preset",
    type=click.Choice(sorted(PRESETS)),
    default="nova",
    show_default=True,
    help="Built-in token definition to issue.",
)
@click.option(
    "--spec-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON token definition; overrides --preset.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_TRANSACTION_TIMEOUT,
    show_default=True,
    help="Seconds to wait for the creation receipt.",
)
@click.option(
    "--max-attempts",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Retry rejected broadcasts up to this many attempts (fee re-read each time).",
)
@click.option(
    "--dry-run/--no-dry-run",
    default=False,
    show_default=True,
    help="Validate parameters and read the creation fee without submitting.",
)
@_CONFIG_OPTION
@_LOG_LEVEL_OPTION
@click.pass_context
def create_token_cmd(
    ctx: click.Context,
    network: str,
    preset: str,
    spec_file: Path | None,
    timeout: float,
    max_attempts: int,
    dry_run: bool,
    config_path: Path | None,
    log_level: str,
) -> None:
    _configure_logging(log_level)

    try:
        load_config(config_path, require_exists=config_path is not None)
        spec = _load_issuance_spec(preset, spec_file)
    except IssuanceError as exc:
        click.echo(format_issuance_error(exc))
        ctx.exit(EXIT_CODES[exc.kind])
    except (ConfigError, FileNotFoundError) as exc:
        click.echo(f"Configuration error: {exc}")
        ctx.exit(EXIT_CONFIG)

    try:
        identity, curve = resolve_issuance_params(spec)
    except IssuanceError as exc:
        click.echo(format_issuance_error(exc))
        ctx.exit(EXIT_CODES[exc.kind])

    try:
        client = _client_for(network)
        factory_address = get_factory_address(client.chain_id)
    except ValueError as exc:
        click.echo(f"Configuration error: {exc}")
        ctx.exit(EXIT_CONFIG)

    click.echo(
        format_issuance_plan(
            identity,
            curve,
            wallet=client.address,
            reserve_decimals=spec.curve.reserve_decimals,
        )
    )

    def _echo_fee(fee: CreationFee) -> None:
        click.echo(format_creation_fee(fee))

    if dry_run:
        try:
            fee = asyncio.run(fetch_creation_fee(client, factory_address))
        except IssuanceError as exc:
            click.echo(format_issuance_error(exc))
            ctx.exit(EXIT_CODES[exc.kind])
        _echo_fee(fee)
        calldata = encode_create_token(identity, curve)
        click.echo(
            f"\nDry run: createToken calldata is {len(calldata) // 2 - 1} bytes; "
            "nothing submitted."
        )
        ctx.exit(EXIT_OK)

    click.echo("\nCreating token...")
    try:
        result = asyncio.run(
            issue_token_with_policy(
                client,
                factory_address,
                identity,
                curve,
                policy=RetryPolicy(max_attempts=max_attempts),
                timeout=timeout,
                on_fee=_echo_fee,
            )
        )
    except IssuanceError as exc:
        click.echo(format_issuance_error(exc))
        ctx.exit(EXIT_CODES[exc.kind])

    click.echo(
        format_issuance_result(result, chain_id=client.chain_id, symbol=identity.symbol)
    )


@cli.command(name="deploy", help="Deploy a compiled contract artifact and print its address.")
@click.option(
    "--artifact",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_ARTIFACT,
    show_default=True,
)
@click.option("--network", default="base-sepolia", show_default=True)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_TRANSACTION_TIMEOUT,
    show_default=True,
)
@_CONFIG_OPTION
@_LOG_LEVEL_OPTION
@click.pass_context
def deploy_cmd(
    ctx: click.Context,
    artifact: Path,
    network: str,
    timeout: float,
    config_path: Path | None,
    log_level: str,
) -> None:
    _configure_logging(log_level)

    try:
        load_config(config_path, require_exists=config_path is not None)
        loaded = load_artifact(artifact)
        client = _client_for(network)
    except (ValueError, FileNotFoundError) as exc:
        click.echo(f"Configuration error: {exc}")
        ctx.exit(EXIT_CONFIG)

    name = loaded["contract_name"]
    click.echo(f"Deploying {name}...")
    try:
        result = asyncio.run(
            deploy_contract(
                client,
                abi=loaded["abi"],
                bytecode=loaded["bytecode"],
                timeout=timeout,
            )
        )
    except DeploymentError as exc:
        click.echo(f"Deployment failed: {exc}")
        ctx.exit(EXIT_FAILURE)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Deployment failed")
        click.echo(f"Deployment failed: {exc}")
        ctx.exit(EXIT_FAILURE)

    click.echo(f"{name} deployed to: {result['contract_address']}")
    if result.get("explorer_url"):
        click.echo(f"Explorer: {result['explorer_url']}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
