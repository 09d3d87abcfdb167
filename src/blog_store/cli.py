"""CLI commands for the blog store using Typer."""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from blog_store.config import get_settings
from blog_store.core.repository import ContentRepository
from blog_store.models import Author, Category, CategoryDraft, Post, PostDraft, PostStatus
from blog_store.services.slot_storage import JsonFileSlotStorage, PersistenceWriteFailed
from blog_store.utils.logging import setup_logging


app = typer.Typer(
    name="blog-store",
    help="Manage blog posts and categories",
    no_args_is_help=True,
)
posts_app = typer.Typer(help="Create, edit and inspect posts", no_args_is_help=True)
categories_app = typer.Typer(help="Create, edit and inspect categories", no_args_is_help=True)
app.add_typer(posts_app, name="posts")
app.add_typer(categories_app, name="categories")

console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Blog store administration."""
    settings = get_settings()
    settings.ensure_directories()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level.upper(),
        log_file=settings.log_file,
    )


def _open_repository() -> ContentRepository:
    settings = get_settings()
    storage = JsonFileSlotStorage(settings.data_dir, prefix=settings.slot_prefix)
    repository = ContentRepository.open(storage, settings=settings)
    for error in repository.load_errors:
        console.print(f"[yellow]Warning: {error}[/yellow]")
    return repository


@contextmanager
def _report_write_failure():
    """Print a warning when the change was applied but could not be saved."""
    try:
        yield
    except PersistenceWriteFailed as exc:
        console.print(f"[yellow]Warning: change applied but not saved: {exc}[/yellow]")


def _require_post(repository: ContentRepository, slug: str) -> Post:
    post = repository.get_post_by_slug(slug) or repository.get_post(slug)
    if post is None:
        console.print(f"[red]Post '{escape(slug)}' not found[/red]")
        raise typer.Exit(1)
    return post


def _require_category(repository: ContentRepository, ref: str) -> Category:
    category = repository.get_category_by_slug(ref) or repository.get_category(ref)
    if category is None:
        console.print(f"[red]Category '{escape(ref)}' not found[/red]")
        raise typer.Exit(1)
    return category


def _display_posts(posts: list[Post], title: str) -> None:
    if not posts:
        console.print("[dim]No posts found[/dim]")
        return
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Title", style="green")
    table.add_column("Slug")
    table.add_column("Status")
    table.add_column("Categories")
    table.add_column("Updated", justify="right")
    for post in posts:
        table.add_row(
            escape(post.title),
            escape(post.slug),
            post.status.value,
            escape(", ".join(category.name for category in post.categories)),
            post.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


def _read_content(content: str, content_file: Optional[Path]) -> str:
    if content_file is not None:
        return content_file.read_text(encoding="utf-8")
    return content


# --- Dashboard & Search ---


@app.command()
def dashboard():
    """Show post counts and recently updated posts."""
    repository = _open_repository()
    stats = repository.stats()

    console.print(f"[bold]Total posts:[/bold] {stats.total_posts}")
    console.print(f"[bold]Published:[/bold] {stats.published_posts}")
    console.print(f"[bold]Drafts:[/bold] {stats.draft_posts}")
    console.print(f"[bold]Categories:[/bold] {stats.categories}")
    _display_posts(stats.recent_posts, "Recent Posts")


@app.command()
def search(query: str = typer.Argument(..., help="Text to look for")):
    """Search published posts by title, content or excerpt."""
    if not query.strip():
        console.print("[red]Search query cannot be empty[/red]")
        raise typer.Exit(1)

    repository = _open_repository()
    results = repository.search_published(query)
    plural = "" if len(results) == 1 else "s"
    console.print(f"Found {len(results)} result{plural} for \"{escape(query)}\"")
    _display_posts(results, "Search Results")


# --- Posts ---


@posts_app.command("list")
def list_posts(
    status: Optional[PostStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
    category: Optional[str] = typer.Option(
        None, "--category", "-c", help="Published posts in this category (slug or id)"
    ),
):
    """List posts."""
    repository = _open_repository()
    if category:
        found = _require_category(repository, category)
        posts = repository.list_published_by_category(found.id)
    else:
        posts = repository.list_posts()
    if status is not None:
        posts = [post for post in posts if post.status == status]
    _display_posts(posts, "Posts")


@posts_app.command("show")
def show_post(slug: str = typer.Argument(..., help="Post slug or id")):
    """Show a single post."""
    repository = _open_repository()
    post = _require_post(repository, slug)

    console.print(f"[bold]{escape(post.title)}[/bold]")
    console.print(f"  ID: {post.id}")
    console.print(f"  Slug: {escape(post.slug)}")
    console.print(f"  Status: {post.status.value}")
    console.print(f"  Author: {escape(post.author.name)}")
    console.print(f"  Categories: {escape(', '.join(c.name for c in post.categories)) or '-'}")
    console.print(f"  Published: {post.published_at.isoformat()}")
    console.print(f"  Updated: {post.updated_at.isoformat()}")
    if post.cover_image:
        console.print(f"  Cover: {post.cover_image}")
    console.print(f"\n[dim]{escape(post.excerpt)}[/dim]\n")
    console.print(post.content, markup=False)


@posts_app.command("related")
def related_posts(slug: str = typer.Argument(..., help="Post slug or id")):
    """List published posts sharing a category with the given post."""
    repository = _open_repository()
    post = _require_post(repository, slug)
    _display_posts(repository.related_posts(post), "Related Posts")


@posts_app.command("create")
def create_post(
    title: str = typer.Argument(..., help="Post title"),
    content: str = typer.Option("", "--content", help="Post content"),
    content_file: Optional[Path] = typer.Option(
        None, "--content-file", exists=True, dir_okay=False, help="Read content from a file"
    ),
    category: Optional[list[str]] = typer.Option(
        None, "--category", "-c", help="Category slug or id (repeatable)"
    ),
    slug: str = typer.Option("", "--slug", help="Slug override (derived from title by default)"),
    excerpt: str = typer.Option("", "--excerpt", help="Excerpt (defaults to start of content)"),
    cover_image: Optional[str] = typer.Option(None, "--cover-image", help="Cover image URL"),
    publish: bool = typer.Option(False, "--publish", help="Publish instead of saving a draft"),
):
    """Create a post."""
    settings = get_settings()
    body = _read_content(content, content_file)

    if not title.strip():
        console.print("[red]Title is required[/red]")
        raise typer.Exit(1)
    if not body.strip():
        console.print("[red]Content is required[/red]")
        raise typer.Exit(1)
    if not category:
        console.print("[red]At least one category is required[/red]")
        raise typer.Exit(1)

    repository = _open_repository()
    categories = [_require_category(repository, ref) for ref in category]

    draft = PostDraft(
        title=title,
        slug=slug,
        content=body,
        excerpt=excerpt,
        cover_image=cover_image,
        author=Author(name=settings.default_author_name, avatar=settings.default_author_avatar),
        categories=repository.snapshot_categories(c.id for c in categories),
        status=PostStatus.PUBLISHED if publish else PostStatus.DRAFT,
    )
    with _report_write_failure():
        post_id = repository.create_post(draft)
        console.print(f"[green]Created post {post_id}[/green]")


@posts_app.command("update")
def update_post(
    slug: str = typer.Argument(..., help="Post slug or id"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    content: Optional[str] = typer.Option(None, "--content", help="New content"),
    content_file: Optional[Path] = typer.Option(
        None, "--content-file", exists=True, dir_okay=False, help="Read content from a file"
    ),
    excerpt: Optional[str] = typer.Option(None, "--excerpt", help="New excerpt"),
    category: Optional[list[str]] = typer.Option(
        None, "--category", "-c", help="Replace categories (repeatable)"
    ),
    new_slug: Optional[str] = typer.Option(None, "--new-slug", help="New slug"),
    cover_image: Optional[str] = typer.Option(None, "--cover-image", help="Cover image URL"),
):
    """Edit an existing post."""
    repository = _open_repository()
    post = _require_post(repository, slug)

    updates: dict = {}
    if title is not None:
        updates["title"] = title
    if content is not None or content_file is not None:
        updates["content"] = _read_content(content or "", content_file)
    if excerpt is not None:
        updates["excerpt"] = excerpt
    if new_slug is not None:
        updates["slug"] = new_slug
    if cover_image is not None:
        updates["cover_image"] = cover_image or None
    if category:
        categories = [_require_category(repository, ref) for ref in category]
        updates["categories"] = repository.snapshot_categories(c.id for c in categories)

    with _report_write_failure():
        repository.update_post(post.model_copy(update=updates))
        console.print(f"[green]Updated post {escape(post.slug)}[/green]")


def _set_status(slug: str, status: PostStatus) -> None:
    repository = _open_repository()
    post = _require_post(repository, slug)
    with _report_write_failure():
        repository.update_post(post.model_copy(update={"status": status}))
        console.print(f"[green]Post {escape(post.slug)} is now {status.value}[/green]")


@posts_app.command("publish")
def publish_post(slug: str = typer.Argument(..., help="Post slug or id")):
    """Mark a post as published."""
    _set_status(slug, PostStatus.PUBLISHED)


@posts_app.command("unpublish")
def unpublish_post(slug: str = typer.Argument(..., help="Post slug or id")):
    """Move a post back to draft."""
    _set_status(slug, PostStatus.DRAFT)


@posts_app.command("delete")
def delete_post(slug: str = typer.Argument(..., help="Post slug or id")):
    """Delete a post."""
    repository = _open_repository()
    post = _require_post(repository, slug)
    with _report_write_failure():
        repository.delete_post(post.id)
        console.print(f"[green]Deleted post {escape(post.slug)}[/green]")


# --- Categories ---


@categories_app.command("list")
def list_categories():
    """List categories with their published post counts."""
    repository = _open_repository()
    categories = repository.list_categories()
    if not categories:
        console.print("[dim]No categories found[/dim]")
        return

    table = Table(title="Categories", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="green")
    table.add_column("Slug")
    table.add_column("Description")
    table.add_column("Posts", justify="right")
    for category in categories:
        table.add_row(
            escape(category.name),
            escape(category.slug),
            escape(category.description or ""),
            str(len(repository.list_published_by_category(category.id))),
        )
    console.print(table)


@categories_app.command("show")
def show_category(ref: str = typer.Argument(..., help="Category slug or id")):
    """Show a category and its published posts."""
    repository = _open_repository()
    category = _require_category(repository, ref)

    console.print(f"[bold]{escape(category.name)}[/bold]")
    console.print(f"  ID: {category.id}")
    console.print(f"  Slug: {escape(category.slug)}")
    if category.description:
        console.print(f"  Description: {escape(category.description)}")
    _display_posts(repository.list_published_by_category(category.id), f"Posts in {escape(category.name)}")


@categories_app.command("add")
def add_category(
    name: str = typer.Argument(..., help="Category name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description"),
):
    """Create a category."""
    if not name.strip():
        console.print("[red]Category name is required[/red]")
        raise typer.Exit(1)

    repository = _open_repository()
    with _report_write_failure():
        category_id = repository.create_category(CategoryDraft(name=name, description=description))
        console.print(f"[green]Created category {category_id}[/green]")


@categories_app.command("update")
def update_category(
    ref: str = typer.Argument(..., help="Category slug or id"),
    name: Optional[str] = typer.Option(None, "--name", help="New name (slug is unchanged)"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
):
    """Rename or re-describe a category."""
    repository = _open_repository()
    category = _require_category(repository, ref)

    updates: dict = {}
    if name is not None:
        if not name.strip():
            console.print("[red]Category name is required[/red]")
            raise typer.Exit(1)
        updates["name"] = name
    if description is not None:
        updates["description"] = description or None

    with _report_write_failure():
        repository.update_category(category.model_copy(update=updates))
        console.print(f"[green]Updated category {escape(category.slug)}[/green]")


@categories_app.command("delete")
def delete_category(ref: str = typer.Argument(..., help="Category slug or id")):
    """Delete a category that no post uses."""
    repository = _open_repository()
    category = _require_category(repository, ref)

    with _report_write_failure():
        in_use = repository.delete_category(category.id)
        if in_use is not None:
            console.print(f"[red]{in_use.message}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]Deleted category {escape(category.slug)}[/green]")


# --- Entry Point ---


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
