"""
Terminal UI for AI Playground.

Renders streamed completions with rich: a spinner while waiting for the
first token, then live Markdown that is redrawn as text arrives.
"""

from typing import Optional

from rich.box import ROUNDED
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .catalog import ModelInfo
from .streaming import CallbackSet


class StreamingResponseHandler:
    """Context manager that shows a stream with a spinner then live Markdown.

    Usage:
        with ui.streaming_response("GPT-4") as handler:
            normalize_stream(frames, handler.callbacks)
        # handler.streamed_text holds the full response
    """

    def __init__(self, console: Console, speaker: str = "AI"):
        self._console = console
        self._speaker = speaker
        self._buffer = ""
        self._spinner: Optional[Progress] = None
        self._live: Optional[Live] = None

    def __enter__(self):
        self._spinner = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            console=self._console,
            transient=True
        )
        self._spinner.__enter__()
        self._spinner.add_task("Thinking...", total=None)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._live is not None:
            self._live.__exit__(exc_type, exc_val, exc_tb)
            self._console.print()
        # Spinner is still up when nothing was streamed
        elif self._spinner is not None:
            self._spinner.__exit__(exc_type, exc_val, exc_tb)
        return False

    def start(self) -> None:
        """Swap the spinner for the live Markdown view."""
        if self._live is not None:
            return
        if self._spinner is not None:
            self._spinner.__exit__(None, None, None)
        self._console.print()
        self._console.print(f"[bold green]{self._speaker}:[/bold green]")
        self._live = Live(
            Markdown(""),
            console=self._console,
            refresh_per_second=12,
            transient=False
        )
        self._live.__enter__()

    def update_text(self, text: str) -> None:
        """Show the cumulative text received so far."""
        if self._live is None:
            self.start()
        self._buffer = text
        self._live.update(Markdown(self._buffer))

    @property
    def callbacks(self) -> CallbackSet:
        return CallbackSet(on_start=self.start, on_token=self.update_text, on_final=self.update_text)

    @property
    def streamed_text(self) -> str:
        """Return the accumulated streamed text."""
        return self._buffer


class TerminalUI:
    """Rich terminal output for the command-line client."""

    def __init__(self, console: Optional[Console] = None, show_technical: bool = False):
        self.console = console or Console()
        self.show_technical = show_technical

    def streaming_response(self, speaker: str = "AI") -> StreamingResponseHandler:
        return StreamingResponseHandler(self.console, speaker)

    def print_error(self, message: str, technical_details: Optional[str] = None) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")
        if technical_details and self.show_technical:
            self.console.print(f"[dim]{technical_details}[/dim]")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[blue]ℹ[/blue] {message}")

    def print_models(self, provider_name: str, models: list[ModelInfo]) -> None:
        """Print the models a provider offers."""
        if not models:
            self.print_info(f"{provider_name} has no models")
            return

        table = Table(title=provider_name, box=ROUNDED)
        table.add_column("Model", style="bold")
        table.add_column("Name")
        table.add_column("Type", style="dim")
        table.add_column("Prompt", style="dim")
        for model in models:
            table.add_row(model.id, model.full_name, model.model_type, model.prompt_type)
        self.console.print(table)
