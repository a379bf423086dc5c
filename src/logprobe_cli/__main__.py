from __future__ import annotations
import logging
from typing import Optional

import typer
from rich import print

from logprobe_harness.errors import IntegrationError, IntegrationTimeout
from logprobe_harness.logutil import setup_logging
from logprobe_harness.roots import decode_root
from logprobe_harness.runner import run_log_integration
from logprobe_harness.settings import settings
from logprobe_sdk.client import HttpLogClient
from logprobe_sdk.errors import LogServiceError

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _client(url: Optional[str]) -> HttpLogClient:
    return HttpLogClient(url or settings.log_url, token=settings.api_token)


def _configure_logging(tree_id: int, level: Optional[str]) -> None:
    name = (level or settings.log_level).upper()
    setup_logging(getattr(logging, name, logging.INFO), tree_id=tree_id)


@app.command()
def run(
    url: str = typer.Option(None, help="Base URL of the log service"),
    tree_id: int = typer.Option(None, help="Tree to run against"),
    leaf_count: int = typer.Option(None, help="Leaves to queue"),
    unique_leaves: int = typer.Option(None, help="Distinct leaves among them (0 = all)"),
    queue_batch_size: int = typer.Option(None),
    sequencer_batch_size: int = typer.Option(None),
    read_batch_size: int = typer.Option(None),
    wait_total: float = typer.Option(None, help="Seconds to wait for sequencing"),
    poll_wait: float = typer.Option(None, help="Seconds between sequencing polls"),
    rpc_deadline: float = typer.Option(None, help="Per-call deadline in seconds"),
    leaf_prefix: str = typer.Option(None, help="Prefix for leaf contents"),
    public_key: str = typer.Option(None, help="Base64 Ed25519 key the log signs roots with"),
    seed: int = typer.Option(None, help="Leaf permutation seed (default: time based)"),
    check_empty: bool = typer.Option(None, "--check-empty/--no-check-empty"),
    queue: bool = typer.Option(None, "--queue/--no-queue"),
    await_sequencing: bool = typer.Option(None, "--await/--no-await"),
    log_level: str = typer.Option(None, help="Logging level"),
):
    """Run the full integration scenario against a log."""
    try:
        params = settings.to_parameters(
            tree_id=tree_id,
            leaf_count=leaf_count,
            unique_leaves=unique_leaves,
            queue_batch_size=queue_batch_size,
            sequencer_batch_size=sequencer_batch_size,
            read_batch_size=read_batch_size,
            sequencing_wait_total=wait_total,
            sequencing_poll_wait=poll_wait,
            rpc_request_deadline=rpc_deadline,
            custom_leaf_prefix=leaf_prefix,
            log_public_key_b64=public_key,
            check_log_empty=check_empty,
            queue_leaves=queue,
            await_sequencing=await_sequencing,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e))

    _configure_logging(params.tree_id, log_level)
    try:
        report = run_log_integration(_client(url), params, seed=seed)
    except IntegrationTimeout as e:
        print(f"[yellow]Timed out[/yellow]: {e}")
        raise typer.Exit(code=2)
    except IntegrationError as e:
        print(f"[red]Failed[/red]: {e}")
        raise typer.Exit(code=1)
    print(
        f"[green]Passed[/green]: tree size {report.tree_size}, root {report.root_hash.hex()}, "
        f"seed {report.seed}"
    )


@app.command()
def latest_root(
    url: str = typer.Option(None, help="Base URL of the log service"),
    tree_id: int = typer.Option(None, help="Tree to query"),
    public_key: str = typer.Option(None, help="Check the root signature with this base64 key"),
):
    """Fetch, decode and print the current published root."""
    try:
        params = settings.to_parameters(tree_id=tree_id, log_public_key_b64=public_key)
    except ValueError as e:
        raise typer.BadParameter(str(e))
    try:
        signed = _client(url).get_latest_signed_log_root(params.tree_id, params.rpc_request_deadline)
        root = decode_root(signed, params)
    except (LogServiceError, IntegrationError) as e:
        print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    print(
        {
            "tree_size": root.tree_size,
            "root_hash": root.root_hash.hex(),
            "timestamp_nanos": root.timestamp_nanos,
            "revision": root.revision,
            "signature_checked": params.log_public_key_b64 is not None,
        }
    )


if __name__ == "__main__":
    app()
