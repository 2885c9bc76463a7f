"""
Generation Renderer - terminal output for the GenForge CLI

Features:
- Live progress bar driven by job lifecycle events
- Summary tables for generated files and the review report
- Error panels
"""

from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn
from rich.table import Table

from genforge.modules.orchestrator.event_bus import EventType, ProgressEvent


STEP_ICONS = {
    "running": "[yellow]⟳[/yellow]",
    "completed": "[green]✓[/green]",
    "failed": "[red]✗[/red]",
}


class GenerationRenderer:
    """Renders one job's progress and final result"""

    def __init__(self, console: Console, verbose: bool = False):
        self.console = console
        self.verbose = verbose
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            console=console,
            transient=False,
        )
        self._task: Optional[TaskID] = None

    # ========== Live progress ==========

    def __enter__(self) -> "GenerationRenderer":
        self.progress.start()
        self._task = self.progress.add_task("Queued", total=100)
        return self

    def __exit__(self, *exc_info) -> None:
        self.progress.stop()

    def on_event(self, event: ProgressEvent) -> None:
        """Broadcaster handler"""
        running = [s["name"] for s in event.steps if s.get("status") == "running"]
        if event.type == EventType.JOB_COMPLETED:
            description = f"[bold]{event.status}[/bold]"
        elif running:
            description = f"Running [cyan]{running[-1]}[/cyan]"
        else:
            description = event.status.capitalize()

        if self._task is not None:
            self.progress.update(self._task, completed=event.progress, description=description)

        if self.verbose:
            self.progress.console.print(
                f"[dim]{event.timestamp.strftime('%H:%M:%S')} {event.type.value} "
                f"{event.progress}% {running or ''}[/dim]"
            )

    # ========== Results ==========

    def render_steps(self, steps: List[Dict[str, Any]]) -> None:
        table = Table(title="Steps", show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", width=4)
        table.add_column("Step")
        table.add_column("Status", justify="center", width=8)

        for i, step in enumerate(steps, 1):
            table.add_row(str(i), step["name"], STEP_ICONS.get(step["status"], step["status"]))

        self.console.print(table)

    def render_files(self, files: Dict[str, str]) -> None:
        if not files:
            return

        table = Table(title="📁 Generated Files", show_header=True, header_style="bold cyan")
        table.add_column("Path", style="green")
        table.add_column("Lines", justify="right")

        for path, content in files.items():
            table.add_row(path, str(content.count("\n")))

        self.console.print(table)

    def render_review(self, report: Dict[str, Any]) -> None:
        score = report.get("score", 0)
        color = "green" if score >= 80 else "yellow" if score >= 50 else "red"
        lines = [f"[bold {color}]Score: {score}/100[/bold {color}]"]
        lines += [f"[red]• {issue}[/red]" for issue in report.get("issues", [])]
        lines += [f"[yellow]• {item}[/yellow]" for item in report.get("improvements", [])]
        self.console.print(Panel("\n".join(lines), title="Review", border_style=color))

    def render_blueprint(self, result: Dict[str, Any]) -> None:
        blueprint = result.get("blueprint", {})
        table = Table(show_header=False, box=None)
        table.add_column("Field", style="dim")
        table.add_column("Value")

        table.add_row("Domain", str(result.get("domain", blueprint.get("projectType", ""))))
        table.add_row("Prompt", str(result.get("promptId", "-")))
        if "quality" in result:
            table.add_row("Quality", f"{result['quality']:.1f}/10")
        if result.get("fromCache"):
            table.add_row("Cache", "hit")
        table.add_row("Pages", ", ".join(blueprint.get("pages", [])))
        table.add_row("Components", ", ".join(blueprint.get("components", [])))

        self.console.print(Panel(table, title="Blueprint", border_style="cyan"))

    def render_result(self, payload: Dict[str, Any]) -> None:
        result = payload.get("result") or {}
        self.render_blueprint(result)
        if result.get("mode") != "blueprint":
            self.render_files(result.get("files", {}))
            if result.get("reviewReport"):
                self.render_review(result["reviewReport"])

        duration = payload.get("duration")
        if duration is not None:
            self.console.print(f"[dim]✓ Completed in {duration:.2f}s[/dim]")

    def render_error(self, message: str, details: Optional[str] = None) -> None:
        error_panel = Panel(
            f"[bold red]{message}[/bold red]" +
            (f"\n\n[dim]{details}[/dim]" if details else ""),
            title="[red]Error[/red]",
            border_style="red"
        )
        self.console.print(error_panel)
