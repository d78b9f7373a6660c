"""CLI entrypoint for hsutra."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .codec import CODEC_NAMES
from .errors import ConfigError
from .tools import PROFILES

CODEC_CHOICE = click.Choice(list(CODEC_NAMES))
TOOL_CHOICE = click.Choice(list(PROFILES))


def _setup_logging(verbose: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


@click.group()
@click.version_option(__version__, prog_name="hsutra")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML settings file (defaults to ./hsutra.yml when present)",
)
@click.option(
    "--api-url",
    type=str,
    envvar="HSUTRA_API_URL",
    default=None,
    help="Backend base URL serving /api/s3 and /api/graph (or set HSUTRA_API_URL)",
)
@click.option("--timeout", type=float, default=None, help="HTTP timeout in seconds (or set HSUTRA_TIMEOUT)")
@click.option("--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    api_url: str | None,
    timeout: float | None,
    verbose: bool,
) -> None:
    """hsutra - Health Sutra graph tooling.

    Edit, convert and inspect knowledge graphs and LPG schemas, and talk to
    the graph persistence and S3 proxy endpoints.
    """
    from .config import load_settings

    _setup_logging(verbose)
    ctx.ensure_object(dict)
    try:
        settings = load_settings(config_path).with_overrides(api_url=api_url, timeout_s=timeout)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    ctx.obj["settings"] = settings


# Graph files


@cli.group()
def graph() -> None:
    """Inspect and convert graph files."""
    pass


@graph.command("summary")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def graph_summary(path: Path, output_json: bool) -> None:
    """Node/link counts, label histograms and parallel links."""
    from .commands.graph_cmd import run_summary

    sys.exit(run_summary(path, output_json=output_json))


@graph.command("export")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--codec", type=CODEC_CHOICE, default="entities", show_default=True, help="Interchange format")
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
def graph_export(path: Path, codec: str, out: Path | None) -> None:
    """Export a graph file as an interchange document."""
    from .commands.graph_cmd import run_export

    sys.exit(run_export(path, codec=codec, out=out))


@graph.command("import")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--codec", type=CODEC_CHOICE, default="entities", show_default=True, help="Interchange format")
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), required=True, help="Graph file to write")
def graph_import(path: Path, codec: str, out: Path) -> None:
    """Import an interchange document into a graph file."""
    from .commands.graph_cmd import run_import

    sys.exit(run_import(path, codec=codec, out=out))


@graph.command("layout")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
def graph_layout(path: Path, out: Path | None) -> None:
    """Renderer payload with node colours and link curvatures."""
    from .commands.graph_cmd import run_layout

    sys.exit(run_layout(path, out=out))


# Editing


def _tool_option(f):
    return click.option("--tool", type=TOOL_CHOICE, default="knowledge-graph", show_default=True, help="Tool whose rules apply")(f)


def _prop_option(f):
    return click.option("--prop", "properties", multiple=True, help="Property name (repeatable)")(f)


@cli.group()
def edit() -> None:
    """Apply one editing action to a graph file."""
    pass


@edit.command("add-node")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--label", required=True, help="Node label")
@click.option("--id", "node_id", default=None, help="Node id (generated unless the tool requires one)")
@_prop_option
@_tool_option
def edit_add_node(path: Path, label: str, node_id: str | None, properties: tuple[str, ...], tool: str) -> None:
    """Add a node (creates the file when missing)."""
    from .commands.edit_cmd import run_add_node

    sys.exit(run_add_node(path, label=label, properties=properties, node_id=node_id, tool=tool))


@edit.command("update-node")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("node_id")
@click.option("--label", required=True, help="New label")
@_prop_option
@_tool_option
def edit_update_node(path: Path, node_id: str, label: str, properties: tuple[str, ...], tool: str) -> None:
    """Replace a node's label and properties."""
    from .commands.edit_cmd import run_update_node

    sys.exit(run_update_node(path, node_id, label=label, properties=properties, tool=tool))


@edit.command("delete-node")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("node_id")
@_tool_option
def edit_delete_node(path: Path, node_id: str, tool: str) -> None:
    """Delete a node and every link touching it."""
    from .commands.edit_cmd import run_delete_node

    sys.exit(run_delete_node(path, node_id, tool=tool))


@edit.command("add-link")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--source", default=None, help="Source node id")
@click.option("--target", default=None, help="Target node id")
@click.option("--label", default="", help="Link label")
@_prop_option
@_tool_option
def edit_add_link(
    path: Path,
    source: str | None,
    target: str | None,
    label: str,
    properties: tuple[str, ...],
    tool: str,
) -> None:
    """Add a link between two existing nodes."""
    from .commands.edit_cmd import run_add_link

    sys.exit(run_add_link(path, source=source, target=target, label=label, properties=properties, tool=tool))


@edit.command("update-link")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("link_id")
@click.option("--label", default="", help="New label")
@_prop_option
@_tool_option
def edit_update_link(path: Path, link_id: str, label: str, properties: tuple[str, ...], tool: str) -> None:
    """Replace a link's label and properties (endpoints are fixed)."""
    from .commands.edit_cmd import run_update_link

    sys.exit(run_update_link(path, link_id, label=label, properties=properties, tool=tool))


@edit.command("delete-link")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("link_id")
@_tool_option
def edit_delete_link(path: Path, link_id: str, tool: str) -> None:
    """Delete one link."""
    from .commands.edit_cmd import run_delete_link

    sys.exit(run_delete_link(path, link_id, tool=tool))


@edit.command("clear")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.confirmation_option(prompt="Are you sure you want to clear the graph? This action cannot be undone.")
@_tool_option
def edit_clear(path: Path, tool: str) -> None:
    """Remove every node and link."""
    from .commands.edit_cmd import run_clear

    sys.exit(run_clear(path, tool=tool))


# Graph persistence


@cli.group()
def remote() -> None:
    """Graph persistence endpoints (/api/graph)."""
    pass


@remote.command("ping")
@click.pass_context
def remote_ping(ctx: click.Context) -> None:
    """Check the persistence endpoint (non-destructive)."""
    from .commands.remote_cmd import run_ping

    sys.exit(run_ping(ctx.obj["settings"]))


@remote.command("pull")
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), required=True, help="Graph file to write")
@click.pass_context
def remote_pull(ctx: click.Context, out: Path) -> None:
    """Download the stored graph."""
    from .commands.remote_cmd import run_pull

    sys.exit(run_pull(ctx.obj["settings"], out=out))


@remote.command("push")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def remote_push(ctx: click.Context, path: Path) -> None:
    """Save a graph file to the database."""
    from .commands.remote_cmd import run_push

    sys.exit(run_push(ctx.obj["settings"], path))


@remote.command("clear")
@click.confirmation_option(prompt="Are you sure you want to clear the graph? This action cannot be undone.")
@click.pass_context
def remote_clear(ctx: click.Context) -> None:
    """Clear the stored graph."""
    from .commands.remote_cmd import run_clear

    sys.exit(run_clear(ctx.obj["settings"]))


# S3 proxy


@cli.group()
def s3() -> None:
    """S3 proxy endpoints (/api/s3)."""
    pass


@s3.command("users")
@click.pass_context
def s3_users(ctx: click.Context) -> None:
    """List users with incoming calls."""
    from .commands.s3_cmd import run_users

    sys.exit(run_users(ctx.obj["settings"]))


@s3.command("media")
@click.argument("user")
@click.option("--receiver", default=None, help="Outgoing calls to this receiver instead of incoming calls")
@click.pass_context
def s3_media(ctx: click.Context, user: str, receiver: str | None) -> None:
    """List call recordings and transcripts."""
    from .commands.s3_cmd import run_media

    sys.exit(run_media(ctx.obj["settings"], user, receiver=receiver))


@s3.command("outgoing")
@click.argument("user")
@click.pass_context
def s3_outgoing(ctx: click.Context, user: str) -> None:
    """List receivers of a user's outgoing calls."""
    from .commands.s3_cmd import run_outgoing

    sys.exit(run_outgoing(ctx.obj["settings"], user))


@s3.command("recording")
@click.argument("key")
@click.pass_context
def s3_recording(ctx: click.Context, key: str) -> None:
    """Print a signed URL for a call recording."""
    from .commands.s3_cmd import run_recording

    sys.exit(run_recording(ctx.obj["settings"], key))


@s3.command("transcript")
@click.argument("key")
@click.pass_context
def s3_transcript(ctx: click.Context, key: str) -> None:
    """Print a call transcript."""
    from .commands.s3_cmd import run_transcript

    sys.exit(run_transcript(ctx.obj["settings"], key))


@s3.command("messages")
@click.argument("user")
@click.pass_context
def s3_messages(ctx: click.Context, user: str) -> None:
    """List a user's SMS message objects."""
    from .commands.s3_cmd import run_messages

    sys.exit(run_messages(ctx.obj["settings"], user))


@s3.command("message")
@click.argument("key")
@click.pass_context
def s3_message(ctx: click.Context, key: str) -> None:
    """Print one SMS message."""
    from .commands.s3_cmd import run_message

    sys.exit(run_message(ctx.obj["settings"], key))


@s3.command("docs")
@click.argument("user")
@click.pass_context
def s3_docs(ctx: click.Context, user: str) -> None:
    """List a user's uploaded documents."""
    from .commands.s3_cmd import run_docs

    sys.exit(run_docs(ctx.obj["settings"], user))


@s3.command("doc")
@click.argument("key")
@click.pass_context
def s3_doc(ctx: click.Context, key: str) -> None:
    """Print a signed URL for a document."""
    from .commands.s3_cmd import run_doc

    sys.exit(run_doc(ctx.obj["settings"], key))


@s3.command("kg-list")
@click.argument("user")
@click.pass_context
def s3_kg_list(ctx: click.Context, user: str) -> None:
    """List knowledge graphs from a user's incoming calls."""
    from .commands.s3_cmd import run_kg_list

    sys.exit(run_kg_list(ctx.obj["settings"], user))


@s3.command("kg-receivers")
@click.argument("user")
@click.pass_context
def s3_kg_receivers(ctx: click.Context, user: str) -> None:
    """List receiver prefixes of a user's outgoing knowledge graphs."""
    from .commands.s3_cmd import run_kg_receivers

    sys.exit(run_kg_receivers(ctx.obj["settings"], user))


@s3.command("kg-outgoing")
@click.argument("prefix")
@click.pass_context
def s3_kg_outgoing(ctx: click.Context, prefix: str) -> None:
    """List knowledge graphs under a receiver prefix."""
    from .commands.s3_cmd import run_kg_outgoing

    sys.exit(run_kg_outgoing(ctx.obj["settings"], prefix))


@s3.command("kg")
@click.argument("key")
@click.pass_context
def s3_kg(ctx: click.Context, key: str) -> None:
    """Print a knowledge-graph narrative (.txt) or memory (.json)."""
    from .commands.s3_cmd import run_kg

    sys.exit(run_kg(ctx.obj["settings"], key))


@s3.command("view-kg")
@click.argument("key")
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Also write the graph file")
@click.option("--json", "output_json", is_flag=True, help="Output summary as JSON")
@click.pass_context
def s3_view_kg(ctx: click.Context, key: str, out: Path | None, output_json: bool) -> None:
    """Load a knowledge-graph memory in the viewer and summarise it."""
    from .commands.s3_cmd import run_view_kg

    sys.exit(run_view_kg(ctx.obj["settings"], key, out=out, output_json=output_json))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
