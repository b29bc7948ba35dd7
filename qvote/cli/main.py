#!/usr/bin/env python3
"""
qvote CLI

Command-line interface over a local JSON state file (record store + asset
ledger). Every governance command signs its operation with a key file and
submits it through signature verification.

Usage:
    qvote keygen [--output FILE]
    qvote create-mint <key_file> [--decimals N]
    qvote create-account <key_file> <mint>
    qvote mint-to <key_file> <mint> <account> <amount>
    qvote open-governance <key_file> <name>
    qvote open-proposal <key_file> <governance> <metadata>
    qvote cast-vote <key_file> <proposal> {yes|no} <token_account>
    qvote close-proposal <key_file> <proposal>
    qvote show-proposal <proposal> [--json]
"""

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import click

from qvote import __version__
from qvote.assets import AssetLedger
from qvote.config import load_config
from qvote.crypto import PrivateKey, generate_keypair
from qvote.exceptions import QVoteException
from qvote.governance import (
    CastVote,
    CloseProposal,
    GovernanceController,
    OpenGovernance,
    OpenProposal,
    SignedOperation,
)
from qvote.logger import set_log_level
from qvote.state import MemoryRecordStore, VoteType


def load_state(path: Path):
    """Load (store, ledger) from a state file; missing file yields empty state."""
    if not path.exists():
        return MemoryRecordStore(), AssetLedger()
    data = json.loads(path.read_text(encoding="utf-8"))
    return (
        MemoryRecordStore.from_dict(data.get("records", {})),
        AssetLedger.from_dict(data.get("assets", {})),
    )


def save_state(path: Path, store: MemoryRecordStore, ledger: AssetLedger) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"records": store.to_dict(), "assets": ledger.to_dict()}
    path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


def load_key(key_file: str) -> PrivateKey:
    try:
        data = json.loads(Path(key_file).read_text(encoding="utf-8"))
        return PrivateKey.from_hex(data["privateKey"])
    except (OSError, ValueError, KeyError) as e:
        raise click.ClickException(f"Failed to load key file: {e}")


def format_address(address: str, short: bool = False) -> str:
    if short:
        return f"{address[:10]}...{address[-8:]}"
    return address


@contextmanager
def session(ctx: click.Context, persist: bool = True) -> Iterator[GovernanceController]:
    """Open the state file, yield a controller, save on success."""
    cfg = ctx.obj["config"]
    path = ctx.obj["state_path"]
    store, ledger = load_state(path)
    controller = GovernanceController(
        store=store,
        ledger=ledger,
        program_id=cfg.program.program_id,
        asset_mint=cfg.asset_mint,
    )
    try:
        yield controller
    except QVoteException as e:
        raise click.ClickException(f"{type(e).__name__}: {e}")
    if persist:
        save_state(path, store, ledger)


def submit(controller: GovernanceController, operation, key: PrivateKey):
    signed = SignedOperation.sign(operation, key, controller.program_id)
    return controller.submit(signed)


@click.group()
@click.version_option(version=__version__, prog_name="qvote")
@click.option("--config", "config_path", type=click.Path(), default=None, help="Path to config.toml")
@click.option("--state", "state_path", type=click.Path(), default=None, help="State file (overrides config)")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], state_path: Optional[str]):
    """qvote: quadratic voting governance."""
    try:
        cfg = load_config(config_path)
    except QVoteException as e:
        raise click.ClickException(str(e))
    set_log_level(cfg.logging.level)
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["state_path"] = Path(state_path or cfg.store.snapshot_path)


@cli.command("keygen")
@click.option("--output", "-o", type=click.Path(), help="Write the key to this file")
def keygen_cmd(output: Optional[str]):
    """Generate a new principal key."""
    key, public_key = generate_keypair()
    payload = {
        "address": key.address,
        "publicKey": "0x" + public_key.to_bytes().hex(),
        "privateKey": key.to_hex(),
    }
    if output:
        Path(output).write_text(json.dumps(payload, indent=2), encoding="utf-8")
        click.echo(f"Saved to: {output}")
    click.echo(f"Address: {key.address}")


@cli.command("create-mint")
@click.argument("key_file", type=click.Path(exists=True))
@click.option("--decimals", "-d", type=int, default=0, help="Fractional digits")
@click.pass_context
def create_mint_cmd(ctx: click.Context, key_file: str, decimals: int):
    """Create an asset mint with KEY_FILE as mint authority."""
    key = load_key(key_file)
    with session(ctx) as controller:
        mint = controller.ledger.create_mint(key.address, decimals=decimals)
    click.echo(f"Mint: {mint.address}")


@cli.command("create-account")
@click.argument("key_file", type=click.Path(exists=True))
@click.argument("mint")
@click.pass_context
def create_account_cmd(ctx: click.Context, key_file: str, mint: str):
    """Open a token account of MINT owned by KEY_FILE."""
    key = load_key(key_file)
    with session(ctx) as controller:
        account = controller.ledger.create_account(key.address, mint)
    click.echo(f"Token account: {account.address}")


@cli.command("mint-to")
@click.argument("key_file", type=click.Path(exists=True))
@click.argument("mint")
@click.argument("account")
@click.argument("amount", type=int)
@click.pass_context
def mint_to_cmd(ctx: click.Context, key_file: str, mint: str, account: str, amount: int):
    """Mint AMOUNT base units of MINT into ACCOUNT."""
    key = load_key(key_file)
    with session(ctx) as controller:
        controller.ledger.mint_to(mint, account, amount, key.address)
    click.echo(click.style(f"✓ Minted {amount} to {format_address(account, short=True)}", fg="green"))


@cli.command("open-governance")
@click.argument("key_file", type=click.Path(exists=True))
@click.argument("name")
@click.pass_context
def open_governance_cmd(ctx: click.Context, key_file: str, name: str):
    """Open a governance space NAME."""
    key = load_key(key_file)
    with session(ctx) as controller:
        address = submit(controller, OpenGovernance(creator=key.address, name=name), key)
    click.echo(f"Governance: {address}")


@cli.command("open-proposal")
@click.argument("key_file", type=click.Path(exists=True))
@click.argument("governance")
@click.argument("metadata")
@click.pass_context
def open_proposal_cmd(ctx: click.Context, key_file: str, governance: str, metadata: str):
    """Open the next proposal under GOVERNANCE."""
    key = load_key(key_file)
    with session(ctx) as controller:
        address = submit(
            controller,
            OpenProposal(creator=key.address, governance=governance, metadata=metadata),
            key,
        )
    click.echo(f"Proposal: {address}")


@cli.command("cast-vote")
@click.argument("key_file", type=click.Path(exists=True))
@click.argument("proposal")
@click.argument("choice", type=click.Choice(["yes", "no"], case_sensitive=False))
@click.argument("token_account")
@click.pass_context
def cast_vote_cmd(ctx: click.Context, key_file: str, proposal: str, choice: str, token_account: str):
    """Vote CHOICE on PROPOSAL, weighted by TOKEN_ACCOUNT's balance."""
    key = load_key(key_file)
    vote_type = VoteType.YES if choice.lower() == "yes" else VoteType.NO
    with session(ctx) as controller:
        vote = submit(
            controller,
            CastVote(voter=key.address, proposal=proposal, vote_type=int(vote_type), token_account=token_account),
            key,
        )
    click.echo(click.style(f"✓ Voted {vote.vote_type.name} with {vote.credits} credits", fg="green"))


@cli.command("close-proposal")
@click.argument("key_file", type=click.Path(exists=True))
@click.argument("proposal")
@click.pass_context
def close_proposal_cmd(ctx: click.Context, key_file: str, proposal: str):
    """Close PROPOSAL (proposal authority only)."""
    key = load_key(key_file)
    with session(ctx) as controller:
        closed = submit(controller, CloseProposal(authority=key.address, proposal=proposal), key)
    click.echo(click.style(
        f"✓ Proposal closed (yes={closed.yes_votes}, no={closed.no_votes})", fg="green"
    ))


@cli.command("show-proposal")
@click.argument("proposal")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show_proposal_cmd(ctx: click.Context, proposal: str, as_json: bool):
    """Display a proposal's tallies."""
    with session(ctx, persist=False) as controller:
        result = controller.proposal_result(proposal)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.echo(click.style("═══════════════════════════════════════", fg="cyan"))
    click.echo(f"Proposal: {result.address}")
    click.echo(f"Metadata: {result.metadata}")
    click.echo(f"Yes:      {result.yes_votes}")
    click.echo(f"No:       {result.no_votes}")
    click.echo(f"Status:   {'CLOSED' if result.closed else 'OPEN'} ({result.outcome})")


if __name__ == "__main__":
    cli()
