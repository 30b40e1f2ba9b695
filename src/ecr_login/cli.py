"""docker-credential-ecr-login entry point.

Implements the docker credential-helper protocol: the action is the first
argument, the server URL (or credentials payload) arrives on stdin and the
result is written to stdout as JSON.
"""

import json
from pathlib import Path
from typing import Optional

import click
import structlog
import yaml

from .auth import extract_token
from .cache import FileCredentialsCache, NullCredentialsCache
from .config import HelperConfig
from .ecr import EcrTokenAPI, ecr_client_factory
from .errors import CredentialHelperError
from .logs import remove_handler, setup_logging
from .registry import EcrRegistry, parse_registry
from .resolver import CredentialResolver
from .version import HELPER_VERSION

logger = structlog.stdlib.get_logger(__name__)


def cache_prefix(registry: EcrRegistry) -> str:
    return f"{registry.region}{'-fips' if registry.fips else ''}/"


def build_cache(config: HelperConfig, prefix: str = ""):
    if config.disable_cache:
        return NullCredentialsCache()
    return FileCredentialsCache(config.cache_file, prefix=prefix)


def build_resolver(config: HelperConfig, registry: EcrRegistry) -> CredentialResolver:
    """Wire the resolver for one registry's region."""
    api = EcrTokenAPI(ecr_client_factory(registry.region, fips=registry.fips))
    return CredentialResolver(
        api,
        build_cache(config, cache_prefix(registry)),
        refresh_fraction=config.refresh_fraction,
    )


def _read_stdin() -> str:
    return click.get_text_stream("stdin").read().strip()


@click.group()
@click.version_option(HELPER_VERSION)
@click.option("--config", "config_path", default=None,
              type=click.Path(dir_okay=False, path_type=Path),
              help="Path to config.yaml (default: <cache dir>/config.yaml)")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]):
    """Amazon ECR docker credential helper."""
    try:
        config = HelperConfig.load(config_path)
    except (ValueError, yaml.YAMLError, OSError) as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    handler = setup_logging(config)
    ctx.call_on_close(lambda: remove_handler(handler))
    ctx.obj = config


@cli.command()
@click.pass_obj
def get(config: HelperConfig):
    """Print credentials for the server URL read from stdin."""
    server_url = _read_stdin()
    try:
        registry = parse_registry(server_url)
        username, secret = build_resolver(config, registry).get_credentials(
            registry.registry_id, registry.image
        )
    except CredentialHelperError as e:
        logger.error("could not get credentials", server_url=server_url, error=str(e))
        raise click.ClickException(str(e))

    click.echo(json.dumps({
        "ServerURL": server_url,
        "Username": username,
        "Secret": secret,
    }))


@cli.command()
def store():
    """Not supported; ECR tokens are always fetched from the API."""
    _read_stdin()
    raise click.ClickException("not implemented")


@cli.command()
def erase():
    """Not supported; cached tokens expire on their own."""
    _read_stdin()
    raise click.ClickException("not implemented")


@cli.command(name="list")
@click.pass_obj
def list_credentials(config: HelperConfig):
    """Print cached registries as a JSON object of endpoint to username."""
    cache = build_cache(config)
    result = {}
    for key, entry in sorted(cache.list().items()):
        try:
            username, _ = extract_token(entry.authorization_token)
        except CredentialHelperError as e:
            logger.warning("skipping undecodable cache entry", key=key, error=str(e))
            continue
        result[entry.proxy_endpoint] = username
    click.echo(json.dumps(result))


def main():
    cli(prog_name="docker-credential-ecr-login")


__all__ = [
    "cli",
    "main",
    "build_cache",
    "build_resolver",
]
