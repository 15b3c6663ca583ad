"""
fleetreach-inventory: populate inventory groups from PuppetDB queries.
"""
from pathlib import Path
from typing import Optional, Tuple

import click
import yaml

from fleetreach.config import load_puppetdb_config, settings
from fleetreach.errors import ConfigurationError
from fleetreach.inventory.expand import expand_document
from fleetreach.puppetdb.client import PuppetDBClient
from fleetreach.utils.logging import setup_logging

from .utils import handle_async_command, print_error

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

HELP = f"""Populate the nodes in an inventory file based on PuppetDB queries.

The input file should be an inventory file, where each 'nodes' entry is
replaced with a 'query' entry to be executed against PuppetDB. The output will
be the input file, with the 'nodes' entry for each group populated with the
query results.

\b
The PuppetDB config file defaults to {settings.PUPPETDB_CONFIG} if present,
and the token file to {settings.PUPPETDB_TOKEN} if present.
"""


class InventoryCommand(click.Command):
    """Reports usage errors like any other error: on stdout, exit status 1."""

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            print_error(e.format_message())
            ctx.exit(1)


def _read_inventory(path: str):
    inventory_file = Path(path)
    if not inventory_file.is_file():
        raise ConfigurationError(f"Can't read the inventory file {path}")
    try:
        document = yaml.safe_load(inventory_file.read_text())
    except OSError as e:
        raise ConfigurationError(f"Can't read the inventory file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Can't parse the inventory file {path}: {e}") from e
    if not isinstance(document, dict):
        raise ConfigurationError(f"The inventory file {path} must contain a mapping")
    return document


@click.command(name="fleetreach-inventory", cls=InventoryCommand, context_settings=CONTEXT_SETTINGS, help=HELP)
@click.argument("args", nargs=-1, metavar="<input-file>")
@click.option("--output", "-o", "output", metavar="FILE", help="Where to write the generated inventory file, defaults to stdout.")
@click.option("--url", metavar="URL", help="The URL of the PuppetDB server to connect to.")
@click.option("--cacert", metavar="PATH", help="Path to the CA certificate.")
@click.option("--cert", metavar="PATH", help="Path to the certificate.")
@click.option("--key", metavar="PATH", help="Path to the private key.")
@click.option("--token-file", metavar="PATH", help="Path to the token file.")
@click.option("--config", "config_file", metavar="PATH", help="The puppetdb.conf file to read configuration from.")
@click.option("--trace", is_flag=True, help="Show stacktraces for exceptions.")
@handle_async_command
async def cli(
    args: Tuple[str, ...],
    output: Optional[str],
    url: Optional[str],
    cacert: Optional[str],
    cert: Optional[str],
    key: Optional[str],
    token_file: Optional[str],
    config_file: Optional[str],
    trace: bool,
) -> None:
    setup_logging()

    if not args:
        raise ConfigurationError("Please specify an input file (see --help for details)")
    inventory_file, extra = args[0], args[1:]
    if extra:
        raise ConfigurationError(f"Unknown argument(s) {', '.join(extra)}")

    config = load_puppetdb_config(
        config_file,
        {
            "server_urls": [url] if url else None,
            "cacert": cacert,
            "cert": cert,
            "key": key,
            "token-file": token_file,
        },
    )
    document = _read_inventory(inventory_file)

    async with PuppetDBClient.from_config(config) as client:
        resolved = await expand_document(document, client)

    result = yaml.safe_dump(resolved, sort_keys=False, default_flow_style=False)
    if output:
        Path(output).write_text(result)
    else:
        click.echo(result, nl=False)


def main() -> None:
    cli(prog_name="fleetreach-inventory")


if __name__ == "__main__":
    main()
