"""
Badgeroot CLI - Command Line Interface for allowlist publishing

Main entry point for all CLI commands.
"""

import json
import logging
from pathlib import Path

import click

from badgeroot import __version__
from badgeroot.utils.logger import setup_logging, get_logger

logger = get_logger("cli")


def _fail(message: str):
    click.echo(f"❌ {message}", err=True)
    raise SystemExit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (overrides BADGEROOT_DATA_DIR)")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Load settings from this .env file")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, data_dir, env_file):
    """Badgeroot - Merkle allowlists for soulbound identity badges"""
    from badgeroot.core.config import load_config

    config = load_config(env_file)
    if data_dir:
        config.data_dir = Path(data_dir).expanduser()

    level = logging.DEBUG if debug else logging.WARNING
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


def _registry(ctx):
    from badgeroot.core.registry import AllowlistRegistry

    if "registry" not in ctx.obj:
        ctx.obj["registry"] = AllowlistRegistry.from_config(ctx.obj["config"])
    return ctx.obj["registry"]


# =============================================================================
# Publishing Commands
# =============================================================================


@cli.command("upload")
@click.argument("slug")
@click.argument("entries_file", type=click.File("r"))
@click.option("--json", "as_json", is_flag=True, help="ENTRIES_FILE is a JSON array of {name, address}")
@click.option("--out", type=click.Path(dir_okay=False, writable=True), help="Write the proofs JSON here")
@click.pass_context
def upload(ctx, slug, entries_file, as_json, out):
    """Publish an allowlist CSV (name,address) or JSON file under SLUG"""
    from badgeroot.core.artifact import dump_proofs_document
    from badgeroot.core.entries import EntryValidationError
    from badgeroot.core.merkle import EmptyAllowlistError

    logger.debug(f"Uploading {entries_file.name} as {slug}")
    registry = _registry(ctx)
    try:
        if as_json:
            result = registry.upload_json(slug, entries_file.read())
        else:
            result = registry.upload_csv(slug, entries_file.read())
    except (EntryValidationError, EmptyAllowlistError) as e:
        _fail(str(e))

    click.echo(f"✓ Project published: {result.slug}")
    click.echo(f"  Merkle root: {result.merkle_root}")
    click.echo(f"  Rows: {result.row_count}")

    if out:
        Path(out).write_text(dump_proofs_document(result.proofs))
        click.echo(f"  Proofs saved to: {out}")


@cli.command("root")
@click.argument("csv_file", type=click.File("r"))
@click.option("--hash", "hash_name", default=None, help="Hash strategy (default from config)")
@click.pass_context
def root(ctx, csv_file, hash_name):
    """Compute the Merkle root of a CSV without storing it"""
    from badgeroot.core.entries import EntryValidationError, parse_csv
    from badgeroot.core.merkle import build_tree, get_strategy

    try:
        strategy = get_strategy(hash_name or ctx.obj["config"].hash_strategy)
        tree = build_tree(parse_csv(csv_file.read()), strategy)
    except (EntryValidationError, ValueError) as e:
        _fail(str(e))

    click.echo(tree.root_hex)


# =============================================================================
# Query Commands
# =============================================================================


@cli.command("proof")
@click.argument("slug")
@click.option("--name", required=True, help="Claimed name")
@click.option("--address", required=True, help="Claimant address (0x...)")
@click.pass_context
def proof(ctx, slug, name, address):
    """Look up the proof for NAME/ADDRESS in project SLUG"""
    from badgeroot.core.entries import EntryValidationError

    try:
        response = _registry(ctx).get_proof(slug, name, address)
    except EntryValidationError as e:
        _fail(str(e))

    click.echo(json.dumps({
        "proof": response.proof,
        "nameHash": response.name_hash,
        "eligible": response.eligible,
    }, indent=2))


@cli.command("project")
@click.argument("slug")
@click.pass_context
def project(ctx, slug):
    """Show a published project"""
    summary = _registry(ctx).get_project(slug)
    if summary is None:
        _fail(f"Project '{slug}' not found")

    click.echo(json.dumps({
        "slug": summary.slug,
        "merkleRoot": summary.merkle_root,
        "entryCount": summary.entry_count,
        "createdAt": summary.created_at,
    }, indent=2))


@cli.command("claimable")
@click.argument("address")
@click.pass_context
def claimable(ctx, address):
    """List every identity ADDRESS can claim"""
    from badgeroot.core.entries import EntryValidationError

    try:
        claims = _registry(ctx).get_claimable(address)
    except EntryValidationError as e:
        _fail(str(e))

    click.echo(json.dumps({"claims": [
        {
            "slug": c.slug,
            "badgeType": c.badge_type,
            "name": c.name,
            "nameHash": c.name_hash,
            "proof": c.proof,
        }
        for c in claims
    ]}, indent=2))


@cli.command("verify")
@click.option("--leaf", required=True, help="Leaf hash (0x...)")
@click.option("--root", "root_hex", required=True, help="Expected Merkle root (0x...)")
@click.option("--proof", "proof_hex", multiple=True, help="Sibling hash, leaf to root (repeatable)")
@click.pass_context
def verify(ctx, leaf, root_hex, proof_hex):
    """Check a proof against a root"""
    from badgeroot.core.merkle import get_strategy, verify_proof
    from badgeroot.utils.validation import validate_hash_hex, validate_proof

    for value, label in ((leaf, "leaf"), (root_hex, "root")):
        valid, err = validate_hash_hex(value, label)
        if not valid:
            _fail(err)
    valid, err = validate_proof(list(proof_hex))
    if not valid:
        _fail(err)

    strategy = get_strategy(ctx.obj["config"].hash_strategy)
    if verify_proof(leaf, list(proof_hex), root_hex, strategy):
        click.echo("✅ Proof valid")
    else:
        _fail("Proof does not match root")


@cli.command("verify-document")
@click.argument("proofs_file", type=click.File("r"))
@click.argument("address")
@click.pass_context
def verify_document(ctx, proofs_file, address):
    """Check ADDRESS's entry in a published proofs JSON file"""
    from badgeroot.core.artifact import load_proofs_document, verify_document_entry
    from badgeroot.core.merkle import get_strategy
    from badgeroot.utils.validation import validate_address

    valid, err = validate_address(address)
    if not valid:
        _fail(err)
    try:
        document = load_proofs_document(proofs_file.read())
    except ValueError as e:
        _fail(f"Invalid proofs document: {e}")

    strategy = get_strategy(ctx.obj["config"].hash_strategy)
    if verify_document_entry(document, address, strategy):
        item = document["entries"][address.lower()]
        click.echo(f"✅ {item['name']} ({address.lower()}) is in {document['merkleRoot']}")
    else:
        _fail(f"No valid proof for {address} in document")


if __name__ == "__main__":
    cli()
