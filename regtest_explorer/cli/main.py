"""Command-line interface for the regtest explorer."""

import sys
import json
import dataclasses
from typing import Optional
import click
import structlog

from regtest_explorer.models.config import ExplorerConfig
from regtest_explorer.core.explorer import BlockExplorer
from regtest_explorer.core.exceptions import BitcoinRPCError
from regtest_explorer.utils.logging import setup_logging

logger = structlog.get_logger(__name__)


def _to_jsonable(value):
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    return value


def _echo_json(value):
    click.echo(json.dumps(_to_jsonable(value), indent=2, default=str))


def _run(ctx, query):
    """Run ``query`` against a fresh explorer and print the result as JSON."""
    explorer = BlockExplorer(ctx.obj['config'])
    try:
        _echo_json(query(explorer))
    except (BitcoinRPCError, ValueError) as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    finally:
        explorer.close()


@click.group()
@click.option('--env-file', '-e', type=click.Path(exists=True),
              help='Path to .env configuration file')
@click.option('--log-level', '-l', default='WARNING',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level')
@click.pass_context
def cli(ctx, env_file: Optional[str], log_level: str):
    """Regtest block explorer CLI."""
    ctx.ensure_object(dict)

    if 'config' not in ctx.obj:
        try:
            if env_file:
                config = ExplorerConfig(_env_file=env_file)
            else:
                config = ExplorerConfig()
        except ValueError as e:
            click.echo(f"Error loading configuration: {e}", err=True)
            sys.exit(1)

        config.log_level = log_level
        ctx.obj['config'] = config

    setup_logging(ctx.obj['config'])


@cli.command()
@click.pass_context
def chain(ctx):
    """Show chain name, height and difficulty."""
    _run(ctx, lambda explorer: explorer.get_chain_info())


@cli.command()
@click.option('--limit', '-n', type=int, default=None, help='Number of blocks')
@click.pass_context
def blocks(ctx, limit: Optional[int]):
    """List the most recent blocks."""
    _run(ctx, lambda explorer: explorer.list_blocks(limit))


@cli.command()
@click.argument('height_or_hash')
@click.pass_context
def block(ctx, height_or_hash: str):
    """Show one block by height or hash."""
    _run(ctx, lambda explorer: explorer.get_block(height_or_hash))


@cli.command()
@click.argument('address')
@click.pass_context
def address(ctx, address: str):
    """Show balance, UTXOs and recent history of an address."""
    _run(ctx, lambda explorer: explorer.get_address_view(address))


@cli.command()
@click.option('--limit', '-n', type=int, default=None, help='Page size')
@click.option('--offset', '-o', type=int, default=0, help='Transactions to skip')
@click.pass_context
def transactions(ctx, limit: Optional[int], offset: int):
    """List recent confirmed transactions with fees."""
    _run(ctx, lambda explorer: explorer.list_transactions(limit, offset))


@cli.command()
@click.argument('txid')
@click.pass_context
def tx(ctx, txid: str):
    """Show one transaction with resolved inputs."""
    _run(ctx, lambda explorer: explorer.get_transaction(txid))


@cli.command()
@click.option('--info', is_flag=True, help='Show mempool statistics instead')
@click.pass_context
def mempool(ctx, info: bool):
    """List unconfirmed transactions."""
    if info:
        _run(ctx, lambda explorer: explorer.get_mempool_info())
    else:
        _run(ctx, lambda explorer: explorer.list_mempool())


@cli.command()
@click.option('--target', '-t', type=int, default=None,
              help='Custom confirmation target in blocks')
@click.pass_context
def fees(ctx, target: Optional[int]):
    """Show fee rate recommendations."""
    if target is not None:
        _run(ctx, lambda explorer: explorer.estimate_fee(target))
    else:
        _run(ctx, lambda explorer: explorer.get_fee_recommendation())


@cli.command()
@click.pass_context
def difficulty(ctx):
    """Project the next difficulty retarget."""
    _run(ctx, lambda explorer: explorer.get_retarget_projection())


@cli.command()
@click.argument('tx_hex')
@click.pass_context
def broadcast(ctx, tx_hex: str):
    """Broadcast a signed raw transaction."""
    _run(ctx, lambda explorer: {'txid': explorer.broadcast_raw_transaction(tx_hex)})


@cli.command()
@click.argument('address')
@click.argument('amount')
@click.pass_context
def send(ctx, address: str, amount: str):
    """Send AMOUNT BTC from the node wallet to ADDRESS."""
    _run(ctx, lambda explorer: {'txid': explorer.send_funds(address, amount)})


@cli.command()
@click.pass_context
def test_connection(ctx):
    """Test the connection to Bitcoin Core."""
    config = ctx.obj['config']
    explorer = BlockExplorer(config)

    click.echo(f"🔍 Testing Bitcoin Core RPC connection at {config.bitcoin_rpc_url}...")
    try:
        if explorer.test_connection():
            click.echo("✅ Bitcoin Core RPC connection successful")
        else:
            click.echo("❌ Bitcoin Core RPC connection failed", err=True)
            sys.exit(1)
    finally:
        explorer.close()


@cli.command()
@click.option('--host', default=None, help='Bind address (default: API_HOST)')
@click.option('--port', type=int, default=None, help='Bind port (default: API_PORT)')
@click.pass_context
def serve(ctx, host: Optional[str], port: Optional[int]):
    """Run the HTTP API."""
    import uvicorn
    from regtest_explorer.api.main import create_app

    config = ctx.obj['config']
    app = create_app(config)

    click.echo(f"🚀 Serving regtest explorer API on {host or config.api_host}:{port or config.api_port}")
    uvicorn.run(
        app,
        host=host or config.api_host,
        port=port or config.api_port,
        log_level=config.log_level.lower()
    )


@cli.command()
def version():
    """Show version information."""
    from regtest_explorer import __version__, __description__

    click.echo(f"Regtest Explorer v{__version__}")
    click.echo(__description__)


if __name__ == '__main__':
    cli()
