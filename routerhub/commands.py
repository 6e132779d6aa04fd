"""
Flask CLI commands

- flask import-blogs <dir>   Markdown files in <dir> → posts (existing slugs skipped)
- flask import-docs <dir>    <dir>/<locale>/*.md → docs (existing slug+locale updated)
"""

import click
from flask.cli import with_appcontext
from .utils.content_import import import_blogs, import_docs


def _report(label, summary):
    click.echo(f"{label}: {summary.imported} imported, {summary.updated} updated, "
               f"{summary.skipped} skipped, {len(summary.errors)} failed of {summary.total} files")
    for name in summary.errors:
        click.echo(f"  failed: {name}", err=True)
    if summary.errors:
        raise click.exceptions.Exit(1)


@click.command('import-blogs')
@click.argument('directory', type=click.Path(exists=True, file_okay=False))
@with_appcontext
def import_blogs_command(directory):
    """Import blog posts from a directory of Markdown files."""
    _report('Blog import', import_blogs(directory))


@click.command('import-docs')
@click.argument('directory', type=click.Path(exists=True, file_okay=False))
@with_appcontext
def import_docs_command(directory):
    """Import docs from per-locale sub-directories of Markdown files."""
    _report('Docs import', import_docs(directory))


def register_commands(app):
    app.cli.add_command(import_blogs_command)
    app.cli.add_command(import_docs_command)
