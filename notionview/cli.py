from __future__ import annotations

import json
from typing import Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.tree import Tree

from .hierarchy.models import HierarchyNode, NodeKind
from .notion.api_adapter import NotConfiguredError, NotionFetchError
from .runner import TreeBranch, run_clear_cache, run_locate, run_render, run_tree
from .utils.logging import WarningLogger

T = TypeVar("T")

app = typer.Typer(
    name="notionview",
    help="Browse and render a Notion workspace as Markdown from the terminal.",
    add_completion=True,
)

console = Console()


def _label(node: HierarchyNode) -> str:
    icon = "📋" if node.kind is NodeKind.DATABASE else "📄"
    return f"{icon} {escape(node.title)} [dim]({node.id})[/dim]"


def _add_branches(tree: Tree, branches: list[TreeBranch]) -> None:
    for branch in branches:
        _add_branches(tree.add(_label(branch.node)), branch.children)


def _guarded(action: Callable[[WarningLogger], T], run_name: str) -> T:
    """Run ``action`` with a file logger, mapping failures to exit codes.

    Missing credentials exit with code 2, other failures with code 1. The
    warning summary is printed either way.
    """

    logger = WarningLogger(run_name)
    try:
        return action(logger)
    except NotConfiguredError as exc:
        console.print(f"[red]❌ {escape(str(exc))}[/red]")
        raise typer.Exit(code=2) from exc
    except (NotionFetchError, ValueError) as exc:
        console.print(f"[red]❌ {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    finally:
        if logger.has_warnings():
            console.print(f"[yellow]⚠️ {logger.summary()}[/yellow]")


@app.command("render")
def render(
    document_id: str = typer.Argument(
        ..., help="Page or database id, or a notion.so URL."
    ),
    fresh: bool = typer.Option(
        False,
        "--fresh",
        "-f",
        help="Ignore the cached render and fetch from Notion.",
    ),
    raw: bool = typer.Option(
        False, "--raw", help="Print the Markdown source instead of formatting it."
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the full render result as JSON."
    ),
) -> None:
    """
    Render a page or database as Markdown.

    Inline databases are expanded into tables. Results are cached for
    ``NOTION_CACHE_TTL_DAYS`` days unless ``--fresh`` is given.

    Examples:
        notionview render 2f9b9a687adc80ce8d43e8af08803c85
        notionview render https://www.notion.so/My-Page-2f9b9a687adc80ce8d43e8af08803c85 --raw
        notionview render <ID> --json
    """
    result = _guarded(
        lambda logger: run_render(document_id, fresh=fresh, logger=logger), "render"
    )
    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    elif raw:
        typer.echo(result.expanded_markdown())
    else:
        console.print(Markdown(result.expanded_markdown()))


@app.command("tree")
def tree(
    depth: int = typer.Option(
        2, "--depth", "-d", min=0, help="How many levels below the root to expand."
    ),
) -> None:
    """
    Print the page hierarchy below ``NOTION_ROOT_PAGE``.

    Example:
        notionview tree --depth 3
    """
    branches = _guarded(lambda logger: run_tree(depth, logger=logger), "tree")
    if not branches:
        console.print("[yellow]No root page could be loaded.[/yellow]")
        raise typer.Exit(code=1)
    view = Tree("🗂️ Notion")
    _add_branches(view, branches)
    console.print(view)


@app.command("locate")
def locate(
    document_id: str = typer.Argument(
        ..., help="Page or database id, or a notion.so URL."
    ),
) -> None:
    """
    Show where a page sits below the configured root.

    The path is confirmed by expanding the tree from the root, so pages that
    only claim the root as an ancestor are reported as not found.
    """
    path: Optional[list[HierarchyNode]] = _guarded(
        lambda logger: run_locate(document_id, logger=logger), "locate"
    )
    if not path:
        console.print(f"Not found below the root page: {document_id}")
        raise typer.Exit(code=1)
    console.print(" / ".join(node.title for node in path), markup=False)


@app.command("clear-cache")
def clear_cache() -> None:
    """Delete all cached hierarchy entries and rendered pages."""
    _guarded(lambda logger: run_clear_cache(), "clear-cache")
    console.print("✅ Cache cleared.")


def main() -> None:
    """Entry point for Python -m execution."""
    app()


if __name__ == "__main__":
    main()
