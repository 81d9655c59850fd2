from pathlib import Path

import typer
from rich.markup import escape

from brewcook import __version__
from brewcook.config import load_config, load_manifest, resolve_stop_on_error
from brewcook.constants import MANIFEST_FILE
from brewcook.errors import CookError
from brewcook.executor import ActionExecutor
from brewcook.output import error, plain
from brewcook.plan import compute_plan, manifest_listing
from brewcook.snapshot import load_snapshot

COMMANDS = ['execute', 'list']

app = typer.Typer(
    name='brewcook',
    help='Install and uninstall Homebrew packages until the system matches a manifest',
    context_settings={
        'help_option_names': ['--help', '-h'],
    },
    add_completion=False,
)


def version_callback(value: bool):
    if value:
        typer.echo(f'brewcook {__version__}')
        raise typer.Exit()


def looks_like_path(word: str) -> bool:
    """A word with a slash or a YAML suffix, or an existing file."""
    return '/' in word or word.endswith(('.yaml', '.yml')) or Path(word).is_file()


def split_positionals(command: str, manifest: Path | None) -> tuple[str, Path | None]:
    """`brewcook MANIFEST` is short for `brewcook execute MANIFEST`."""
    if manifest is None and command not in COMMANDS and looks_like_path(command):
        return 'execute', Path(command)
    return command, manifest


@app.command()
def cook(
    command: str = typer.Argument('execute', help='execute (default) or list'),
    manifest: Path = typer.Argument(None, help=f'Manifest file (default: {MANIFEST_FILE})'),
    yes: bool = typer.Option(False, '--yes', '-y', help='Actually run the plan'),
    dry_run: bool = typer.Option(False, '--dry-run', '-n', help='Only print the plan (default)'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Dump every computed set'),
    debug: bool = typer.Option(False, '--debug', help='Run brew with HOMEBREW_DEBUG=1'),
    stop_on_error: bool | None = typer.Option(
        None, '--stop-on-error/--keep-going', help='Abort the plan on the first failed command'
    ),
    version: bool = typer.Option(
        False, '--version', callback=version_callback, is_eager=True, help='Show version'
    ),
):
    """Cook the system: converge installed formulae, casks and taps to MANIFEST."""
    command, manifest = split_positionals(command, manifest)
    if command not in COMMANDS:
        error(f'Unknown command: {escape(command)}')
        raise typer.Exit(1)

    noop = dry_run or not yes

    try:
        settings = load_config()
        wanted = load_manifest(manifest)
        executable = settings['brew']
        snapshot = load_snapshot(wanted.formula_names, executable, debug)

        if command == 'list':
            for name in manifest_listing(wanted, snapshot):
                plain(name)
            return

        plan = compute_plan(wanted, snapshot)
        executor = ActionExecutor(
            dry_run=noop,
            verbose=verbose,
            debug=debug,
            stop_on_error=resolve_stop_on_error(settings, stop_on_error),
            executable=executable,
        )
        executor.execute(plan)
    except CookError as e:
        error(escape(str(e)))
        raise typer.Exit(1)


def main():
    app()


if __name__ == '__main__':
    main()
