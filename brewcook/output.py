import io
from contextlib import ExitStack, contextmanager, redirect_stderr, redirect_stdout
from dataclasses import dataclass

from rich.console import Console

# Both consoles resolve sys.stdout / sys.stderr on every write.
console = Console()
err_console = Console(stderr=True)


def info(msg: str):
    console.print(msg)


def success(msg: str):
    console.print(f'[green]✓[/green] {msg}')


def warning(msg: str):
    console.print(f'[yellow]![/yellow] {msg}')


def error(msg: str):
    err_console.print(f'[red]✗[/red] {msg}')


def added(msg: str):
    console.print(f'[green]  + {msg}[/green]')


def removed(msg: str):
    console.print(f'[red]  - {msg}[/red]')


def header(msg: str):
    console.print(f'\n[bold]{msg}[/bold]')


def plain(msg: str):
    """Print text verbatim: no markup, no highlighting, no wrapping."""
    console.print(msg, markup=False, highlight=False, soft_wrap=True)


@dataclass
class Captured:
    stdout: str = ''
    stderr: str = ''


@contextmanager
def capture_io():
    """Swallow everything written to stdout/stderr inside the block.

    The original streams are restored on every exit path.
    """
    captured = Captured()
    out, err = io.StringIO(), io.StringIO()
    try:
        with ExitStack() as stack:
            stack.enter_context(redirect_stdout(out))
            stack.enter_context(redirect_stderr(err))
            yield captured
    finally:
        captured.stdout = out.getvalue()
        captured.stderr = err.getvalue()
