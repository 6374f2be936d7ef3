import os

from rich.console import Console
from rich.markup import escape
from rich.text import Text

err_console = Console(stderr=True)


def _is_minimal() -> bool:
    # STACKCC_MINIMAL_UI=1 switches to plain, uncoloured one-liners
    env = os.environ.get('STACKCC_MINIMAL_UI')
    if env is not None:
        return env.strip().lower() in ('1', 'true', 'yes', 'on')
    return False


def print_stage(step: int, total: int, message: str):
    """Print a staged progress line (e.g. [1/4] Parsing...)"""
    if _is_minimal():
        err_console.print(f"[{step}/{total}] {message}", markup=False, highlight=False)
    else:
        err_console.print(f"[cyan]●[/cyan] [bold]{step}/{total}[/bold] {escape(message)}")


def print_info(message: str):
    if _is_minimal():
        return
    err_console.print(f"[yellow]Info:[/yellow] {escape(message)}")


def print_error(message: str):
    if _is_minimal():
        err_console.print(f"[ERROR] {message}", markup=False, highlight=False, soft_wrap=True)
        return
    err_console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)


def print_success(message: str):
    if _is_minimal():
        err_console.print(f"[OK] {message}", markup=False, highlight=False)
        return
    err_console.print(f"[green]Success:[/green] {escape(message)}")


def print_diagnostic(error):
    """Render a CompileError as location, message, source line and caret."""
    if _is_minimal():
        err_console.print(error.render(with_colors=False), markup=False, highlight=False, soft_wrap=True)
        return

    text = Text()
    location = error.location
    if location is not None:
        text.append(f"{location}: ", style="bold")
    text.append("error: ", style="bold red")
    text.append(error.message)
    if location is not None and location.raw_line:
        text.append(f"\n  {location.raw_line}")
        text.append(f"\n  {location.caret_padding()}")
        text.append("^", style="bold green")
    for note in error.notes:
        text.append("\nnote: ", style="bold cyan")
        text.append(note)
    err_console.print(text, highlight=False, soft_wrap=True)
