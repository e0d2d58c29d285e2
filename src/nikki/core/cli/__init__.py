"""Nikki CLI — entry point for adding, listing and searching entries."""

import click

from nikki import __version__

from .common import DEFAULT_CONFIG_PATH


@click.group()
@click.version_option(version=__version__, package_name="nikki")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=str(DEFAULT_CONFIG_PATH),
    show_default=True,
    help="YAML or JSON config file.",
)
@click.option("--data-dir", type=click.Path(file_okay=False), default=None, help="Override paths.data_dir.")
@click.pass_context
def main(ctx: click.Context, config_file: str, data_dir: str | None) -> None:
    """Nikki — a local journal with fuzzy search."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["data_dir"] = data_dir


from .entries_cmd import add, delete, list_entries, search, show

main.add_command(add)
main.add_command(show)
main.add_command(list_entries)
main.add_command(search)
main.add_command(delete)
