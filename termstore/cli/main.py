"""
Term store command line

Commands:
- termstore get PATH [--select FIELD ...]
- termstore groups
- termstore sets GROUP_ID
- termstore tree SET_ID [--group GROUP_ID] [--strict]
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional, Tuple, TypeVar

import click
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from termstore import __version__
from termstore.core.behaviors import BearerToken, TextParse
from termstore.core.config import configure_logging, get_config
from termstore.core.errors import TermStoreError
from termstore.core.queryable import QueryableInstance
from termstore.taxonomy.queryables import TermSet, TermStore, create_term_store

logger = logging.getLogger(__name__)
console = Console()

T = TypeVar('T')


def run_async(coro: Awaitable[T]) -> T:
    """Run a coroutine to completion from synchronous click code."""
    return asyncio.run(coro)


def to_plain(value: Any) -> Any:
    """Convert models (or lists of them) into JSON-ready data."""
    if isinstance(value, list):
        return [to_plain(item) for item in value]
    if hasattr(value, "model_dump"):
        return value.model_dump(by_alias=True, exclude_none=True)
    return value


def term_label(term: Any) -> str:
    if term is None:
        return "[red](missing term)[/red]"
    label = term.default_label or term.id
    return f"{label} [dim]({term.id})[/dim]"


def add_branch(parent: Tree, terms: list) -> None:
    for term in terms:
        branch = parent.add(term_label(term))
        if term is not None:
            add_branch(branch, term.children)


def build_store(ctx: click.Context) -> TermStore:
    obj = ctx.obj
    store = create_term_store(
        base_url=obj.get("base_url"),
        transport=obj.get("transport"),
    )
    if obj.get("token"):
        store.using(BearerToken(obj["token"]))
    return store


def fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {error}")
    raise click.exceptions.Exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="termstore")
@click.option("--base-url", help="Site URL hosting the term store (default: TERMSTORE_BASE_URL)")
@click.option("--token", envvar="TERMSTORE_TOKEN", help="Bearer token for the auth moment")
@click.option("--log-level", default=None, help="Logging level (default: TERMSTORE_LOG_LEVEL or INFO)")
@click.pass_context
def cli(ctx, base_url: Optional[str], token: Optional[str], log_level: Optional[str]):
    """termstore - browse term store taxonomies"""
    ctx.ensure_object(dict)
    ctx.obj.setdefault("base_url", base_url)
    ctx.obj.setdefault("token", token)
    if log_level or not logging.getLogger().handlers:
        configure_logging(log_level or get_config().log_level)


@cli.command(name="get")
@click.argument("path")
@click.option("--select", "fields", multiple=True, help="Field to return (repeatable)")
@click.option("--raw", is_flag=True, help="Print the response body as text")
@click.pass_context
def get_cmd(ctx, path: str, fields: Tuple[str, ...], raw: bool):
    """
    Fetch PATH relative to the term store and print it as JSON.

    Examples:
        termstore get groups
        termstore get groups/GROUP_ID/sets --select id --select description
    """
    try:
        node = build_store(ctx).clone(QueryableInstance, path).select(*fields)
        if raw:
            node.using(TextParse())
            console.print(run_async(node()))
            return
        console.print_json(data=to_plain(run_async(node())))
    except TermStoreError as e:
        fail(e)


@cli.command(name="groups")
@click.pass_context
def groups_cmd(ctx):
    """List the term groups of the term store."""
    try:
        groups = run_async(build_store(ctx).groups())
    except TermStoreError as e:
        fail(e)
        return

    table = Table(title="Term Groups")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Scope", style="magenta")
    for group in groups:
        table.add_row(group.id, group.name or "", group.scope or "")
    console.print(table)


@cli.command(name="sets")
@click.argument("group_id")
@click.pass_context
def sets_cmd(ctx, group_id: str):
    """List the term sets of a term group."""
    try:
        sets = run_async(build_store(ctx).groups.get_by_id(group_id).sets())
    except TermStoreError as e:
        fail(e)
        return

    table = Table(title=f"Term Sets in {group_id}")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Children", justify="right")
    for term_set in sets:
        name = term_set.localized_names[0].name if term_set.localized_names else ""
        count = "" if term_set.children_count is None else str(term_set.children_count)
        table.add_row(term_set.id, name, count)
    console.print(table)


@cli.command(name="tree")
@click.argument("set_id")
@click.option("--group", "group_id", default=None, help="Group containing the set")
@click.option("--strict", is_flag=True, help="Fail when a sort order names an unknown term")
@click.pass_context
def tree_cmd(ctx, set_id: str, group_id: Optional[str], strict: bool):
    """
    Print every term of a set as an ordered tree.

    This makes one request per term; large sets take a while.
    """
    try:
        store = build_store(ctx)
        if group_id:
            term_set = store.groups.get_by_id(group_id).sets.get_by_id(set_id)
        else:
            term_set = store.clone(TermSet, f"sets/{set_id}")

        terms = run_async(term_set.get_all_children_as_ordered_tree(strict=strict))
    except TermStoreError as e:
        fail(e)
        return

    root = Tree(f"[bold]Term set {set_id}[/bold]")
    add_branch(root, terms)
    console.print(root)


if __name__ == "__main__":
    cli()
