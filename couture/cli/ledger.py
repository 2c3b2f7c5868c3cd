#!/usr/bin/env python3
"""
Couture Ledger CLI

Command-line interface for a local fashion NFT registry + exchange
deployment kept in a JSON state file.

Usage:
    couture init [--admin ADDRESS] [--fee-address ADDRESS] [--fee-percent BPS]
    couture fund <address> <amount>
    couture register-creator --caller ADMIN <creator>
    couture mint --caller CREATOR <recipient> <uri>
    couture list --caller OWNER <token_id> <price> <royalty_bps>
    couture buy --caller BUYER <token_id>
    couture token <token_id>
    couture events [--ledger registry|exchange] [--token ID]
"""

import json
from pathlib import Path
from typing import Any, Callable, Optional

import click

from couture import __version__
from couture.chain import FashionChain
from couture.config import load_config
from couture.constants import COUTURE_STATE_FILE
from couture.exceptions import CoutureException
from couture.ledger import CallResult, invoke
from couture.logger import set_log_level


LEDGERS = ("registry", "exchange")


def _state_path(ctx: click.Context) -> Path:
    return Path(ctx.obj["state"])


def _load_chain(ctx: click.Context) -> FashionChain:
    path = _state_path(ctx)
    if not path.exists():
        raise click.ClickException(f"No state file at {path}. Run 'couture init' first.")
    try:
        return FashionChain.load(path)
    except (ValueError, KeyError, CoutureException) as e:
        raise click.ClickException(f"Corrupt state file {path}: {e}")


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, sort_keys=True))


def _execute(ctx: click.Context, fn: Callable[..., Any], *args: Any) -> CallResult:
    """Run a ledger call; persist on success, fail the command otherwise."""
    chain: FashionChain = ctx.obj["chain"]
    result = invoke(fn, *args)
    if not result.ok:
        raise click.ClickException(
            f"[{int(result.code)}] {result.code.name} ({result.kind.value}): {result.error}"
        )
    chain.save(_state_path(ctx))
    return result


def _ledger(chain: FashionChain, name: str):
    return chain.registry if name == "registry" else chain.exchange


caller_option = click.option(
    "--caller", "-c",
    required=True,
    help="Principal executing the call",
)


@click.group()
@click.version_option(version=__version__, prog_name="couture")
@click.option(
    "--state", "-s",
    type=click.Path(dir_okay=False),
    default=None,
    help="State file (default: [state] path from config, or couture-state.json)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default: $COUTURE_CONFIG or ./couture.toml)",
)
@click.pass_context
def cli(ctx: click.Context, state: Optional[str], config_path: Optional[str]):
    """Couture Ledger Command Line Interface

    Mint, trade and inspect fashion NFTs on a local ledger.
    """
    try:
        config = load_config(config_path)
        set_log_level(config.logging.level)
    except (CoutureException, ValueError) as e:
        raise click.ClickException(str(e))
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["state"] = state or config.state.path or str(COUTURE_STATE_FILE)


def _with_chain(f):
    """Load the deployment into ctx.obj before the command body runs."""
    @click.pass_context
    def wrapper(ctx: click.Context, *args, **kwargs):
        ctx.obj["chain"] = _load_chain(ctx)
        return ctx.invoke(f, ctx, *args, **kwargs)
    wrapper.__name__ = f.__name__
    wrapper.__doc__ = f.__doc__
    return wrapper


# ══════════════════════════════════════════════════════════════════════
#  DEPLOYMENT / FUNDS
# ══════════════════════════════════════════════════════════════════════

@cli.command("init")
@click.option("--admin", help="Admin of both ledgers (overrides config)")
@click.option("--fee-address", help="Platform fee recipient (overrides config)")
@click.option("--fee-percent", type=int, help="Platform fee in basis points (overrides config)")
@click.option("--force", is_flag=True, help="Overwrite an existing state file")
@click.pass_context
def init_cmd(ctx: click.Context, admin: Optional[str], fee_address: Optional[str],
             fee_percent: Optional[int], force: bool):
    """Deploy a fresh registry and exchange.

    Examples:

        couture init --admin ST1ADMIN --fee-percent 250
    """
    path = _state_path(ctx)
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")

    config = ctx.obj["config"]
    if admin:
        config.registry.admin = admin
        config.exchange.admin = admin
    if fee_address:
        config.exchange.platform_fee_address = fee_address
    if fee_percent is not None:
        config.exchange.platform_fee_percent = fee_percent

    try:
        chain = FashionChain.deploy(config)
    except CoutureException as e:
        raise click.ClickException(f"Failed to deploy: {e}")

    chain.save(path)
    click.echo(click.style("✓ Ledgers deployed", fg="green"))
    click.echo(f"Admin:        {chain.registry.get_admin()}")
    click.echo(f"Fee address:  {chain.exchange.get_platform_fee_address()}")
    click.echo(f"Fee:          {chain.exchange.get_platform_fee_percent()} bps")
    click.echo(f"State:        {path}")


@cli.command("fund")
@click.argument("address")
@click.argument("amount", type=int)
@_with_chain
def fund_cmd(ctx: click.Context, address: str, amount: int):
    """Credit native funds to ADDRESS (local faucet)."""
    result = _execute(ctx, ctx.obj["chain"].env.credit, address, amount)
    click.echo(f"{address} balance: {result.value}")


@cli.command("balance")
@click.argument("address")
@_with_chain
def balance_cmd(ctx: click.Context, address: str):
    """Show the native balance of ADDRESS."""
    click.echo(str(ctx.obj["chain"].env.get_balance(address)))


# ══════════════════════════════════════════════════════════════════════
#  ADMIN CONTROL
# ══════════════════════════════════════════════════════════════════════

@cli.command("pause")
@caller_option
@click.option("--ledger", type=click.Choice(LEDGERS), default="registry", show_default=True)
@click.option("--off", "unpause", is_flag=True, help="Unpause instead")
@_with_chain
def pause_cmd(ctx: click.Context, caller: str, ledger: str, unpause: bool):
    """Pause (or unpause) a ledger."""
    target = _ledger(ctx.obj["chain"], ledger)
    result = _execute(ctx, target.set_paused, caller, not unpause)
    click.echo(f"{ledger} {'paused' if result.value else 'unpaused'}")


@cli.command("transfer-admin")
@caller_option
@click.option("--ledger", type=click.Choice(LEDGERS), default="registry", show_default=True)
@click.argument("new_admin")
@_with_chain
def transfer_admin_cmd(ctx: click.Context, caller: str, ledger: str, new_admin: str):
    """Hand the admin role of a ledger to NEW_ADMIN."""
    _execute(ctx, _ledger(ctx.obj["chain"], ledger).transfer_admin, caller, new_admin)
    click.echo(f"{ledger} admin → {new_admin}")


@cli.command("register-creator")
@caller_option
@click.argument("creator")
@_with_chain
def register_creator_cmd(ctx: click.Context, caller: str, creator: str):
    """Whitelist CREATOR for minting."""
    _execute(ctx, ctx.obj["chain"].registry.register_creator, caller, creator)
    click.echo(click.style(f"✓ Creator registered: {creator}", fg="green"))


@cli.command("set-fee-address")
@caller_option
@click.argument("address")
@_with_chain
def set_fee_address_cmd(ctx: click.Context, caller: str, address: str):
    """Change the platform fee recipient."""
    _execute(ctx, ctx.obj["chain"].exchange.set_platform_fee_address, caller, address)
    click.echo(f"Fee address → {address}")


@cli.command("set-fee-percent")
@caller_option
@click.argument("bps", type=int)
@_with_chain
def set_fee_percent_cmd(ctx: click.Context, caller: str, bps: int):
    """Change the platform fee (basis points, max 500)."""
    _execute(ctx, ctx.obj["chain"].exchange.set_platform_fee_percent, caller, bps)
    click.echo(f"Fee → {bps} bps")


@cli.command("set-max-royalty")
@caller_option
@click.argument("bps", type=int)
@_with_chain
def set_max_royalty_cmd(ctx: click.Context, caller: str, bps: int):
    """Change the royalty ceiling for new listings."""
    _execute(ctx, ctx.obj["chain"].exchange.set_max_royalty_percent, caller, bps)
    click.echo(f"Max royalty → {bps} bps")


# ══════════════════════════════════════════════════════════════════════
#  TOKENS
# ══════════════════════════════════════════════════════════════════════

@cli.command("mint")
@caller_option
@click.argument("recipient")
@click.argument("uri")
@_with_chain
def mint_cmd(ctx: click.Context, caller: str, recipient: str, uri: str):
    """Mint a token with URI owned by RECIPIENT."""
    result = _execute(ctx, ctx.obj["chain"].registry.mint, caller, recipient, uri)
    click.echo(click.style(f"✓ Minted token #{result.value}", fg="green"))


@cli.command("transfer")
@caller_option
@click.argument("token_id", type=int)
@click.argument("recipient")
@_with_chain
def transfer_cmd(ctx: click.Context, caller: str, token_id: int, recipient: str):
    """Give TOKEN_ID to RECIPIENT."""
    _execute(ctx, ctx.obj["chain"].registry.transfer, caller, token_id, recipient)
    click.echo(f"Token #{token_id} → {recipient}")


@cli.command("update-metadata")
@caller_option
@click.argument("token_id", type=int)
@click.argument("uri")
@_with_chain
def update_metadata_cmd(ctx: click.Context, caller: str, token_id: int, uri: str):
    """Replace the URI of TOKEN_ID (creator only)."""
    _execute(ctx, ctx.obj["chain"].registry.update_metadata, caller, token_id, uri)
    click.echo(f"Token #{token_id} URI → {uri}")


@cli.command("token")
@click.argument("token_id", type=int)
@_with_chain
def token_cmd(ctx: click.Context, token_id: int):
    """Show owner and metadata of TOKEN_ID."""
    registry = ctx.obj["chain"].registry
    metadata = registry.get_metadata(token_id)
    if metadata is None:
        raise click.ClickException(f"Token #{token_id} not found")
    _echo_json({"tokenId": token_id, "owner": registry.get_owner(token_id), **metadata.to_dict()})


# ══════════════════════════════════════════════════════════════════════
#  EXCHANGE
# ══════════════════════════════════════════════════════════════════════

@cli.command("approve")
@caller_option
@click.argument("token_id", type=int)
@click.argument("operator")
@_with_chain
def approve_cmd(ctx: click.Context, caller: str, token_id: int, operator: str):
    """Let OPERATOR list TOKEN_ID on your behalf."""
    _execute(ctx, ctx.obj["chain"].exchange.approve_operator, caller, token_id, operator)
    click.echo(f"{operator} approved for #{token_id}")


@cli.command("revoke")
@caller_option
@click.argument("token_id", type=int)
@click.argument("operator")
@_with_chain
def revoke_cmd(ctx: click.Context, caller: str, token_id: int, operator: str):
    """Withdraw OPERATOR's approval for TOKEN_ID."""
    _execute(ctx, ctx.obj["chain"].exchange.revoke_operator, caller, token_id, operator)
    click.echo(f"{operator} revoked for #{token_id}")


@cli.command("list")
@caller_option
@click.argument("token_id", type=int)
@click.argument("price", type=int)
@click.argument("royalty_bps", type=int)
@_with_chain
def list_cmd(ctx: click.Context, caller: str, token_id: int, price: int, royalty_bps: int):
    """Offer TOKEN_ID for PRICE with ROYALTY_BPS to the creator."""
    _execute(ctx, ctx.obj["chain"].exchange.list, caller, token_id, price, royalty_bps)
    click.echo(click.style(f"✓ Listed #{token_id} at {price}", fg="green"))


@cli.command("delist")
@caller_option
@click.argument("token_id", type=int)
@_with_chain
def delist_cmd(ctx: click.Context, caller: str, token_id: int):
    """Withdraw the listing of TOKEN_ID."""
    _execute(ctx, ctx.obj["chain"].exchange.delist, caller, token_id)
    click.echo(f"Delisted #{token_id}")


@cli.command("buy")
@caller_option
@click.argument("token_id", type=int)
@_with_chain
def buy_cmd(ctx: click.Context, caller: str, token_id: int):
    """Purchase the listed TOKEN_ID."""
    receipt = _execute(ctx, ctx.obj["chain"].exchange.buy, caller, token_id).value
    split = receipt.split
    click.echo(click.style(f"✓ Bought #{token_id} for {split.price}", fg="green"))
    click.echo(f"  Platform fee: {split.platform_fee} → {receipt.platform_fee_address}")
    click.echo(f"  Royalty:      {split.royalty} → {receipt.creator}")
    click.echo(f"  Seller:       {split.seller_amount} → {receipt.seller}")


@cli.command("listing")
@click.argument("token_id", type=int)
@_with_chain
def listing_cmd(ctx: click.Context, token_id: int):
    """Show the active listing of TOKEN_ID."""
    listing = ctx.obj["chain"].exchange.get_listing(token_id)
    if listing is None:
        raise click.ClickException(f"Token #{token_id} is not listed")
    _echo_json(listing.to_dict())


@cli.command("events")
@click.option("--ledger", type=click.Choice(LEDGERS), default="registry", show_default=True)
@click.option("--token", "token_id", type=int, help="Only events for this token")
@_with_chain
def events_cmd(ctx: click.Context, ledger: str, token_id: Optional[int]):
    """Print a ledger's event log."""
    log = _ledger(ctx.obj["chain"], ledger).events
    entries = log.for_token(token_id) if token_id is not None else log.all()
    _echo_json([e.to_dict() for e in entries])


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
