"""Console views for ModelWhiz CLI."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from modelwhiz.core.assets import asset_url
from modelwhiz.jobs.models import EvaluationJob, JobStatus
from modelwhiz.metrics.compare import TIE, ModelComparison
from modelwhiz.metrics.models import (
    Model,
    TaskType,
    metric_keys,
    metric_label,
    to_float,
)
from modelwhiz.metrics.summary import HistorySummary, Trend
from modelwhiz.ui.printer import Printer

UNKNOWN_FAILURE_MESSAGE = "An unknown error occurred."

STATUS_COLORS = {
    JobStatus.COMPLETED: "green",
    JobStatus.PROCESSING: "blue",
    JobStatus.PENDING: "yellow",
    JobStatus.FAILED: "red",
}


def format_metric(value: Any, digits: int = 3) -> str:
    number = to_float(value)
    if number is None:
        return "N/A" if value is None else str(value)
    return f"{number:.{digits}f}"


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M:%S")


def format_trend(trend: Trend | None) -> str:
    if trend is None:
        return "[dim]-[/dim]"
    if trend.improved is None:
        return f"[dim]{trend.format()}[/dim]"
    color = "green" if trend.improved else "red"
    arrow = "↑" if trend.change_pct > 0 else "↓"
    return f"[{color}]{arrow} {trend.format()}[/{color}]"


def status_badge(status: JobStatus) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.value}[/{color}]"


def plot_title(task_type: TaskType) -> str:
    if task_type == TaskType.REGRESSION:
        return "Predicted vs. Actual Plot"
    return "Confusion Matrix"


class InteractiveInterface:
    """Console facade: formats content; delegates printing to Printer."""

    def __init__(self, console: Console | None = None):
        self._printer = Printer(console)

    @property
    def printer(self) -> Printer:
        return self._printer

    # System and misc helpers using Printer
    def show_system_error(self, message: str) -> None:
        self._printer.show_message(f"❌ {message}", style="red")

    def show_system_success(self, message: str) -> None:
        self._printer.show_message(f"✓ {message}")

    def show_warning(self, message: str) -> None:
        self._printer.show_message(f"⚠️ {message}", style="yellow")

    def show_info(self, message: str) -> None:
        self._printer.show_message(message)

    def confirm(self, message: str, default: bool = False) -> bool:
        """Confirmation prompt with configurable default.

        Returns:
            True if user confirms, False otherwise (including on abort)
        """
        try:
            return click.confirm(f"🤔 {message}", default=default)
        except click.Abort:
            return False

    def show_table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        table = Table(title=title, box=box.SIMPLE_HEAVY)
        for col in columns:
            table.add_column(col)

        if not rows:
            table.add_row(*(["-"] * len(columns)))
        else:
            for row in rows:
                table.add_row(*row)

        with self._printer.section(color="blue") as p:
            p.print(table)

    def show_key_values(self, title: str, pairs: Sequence[Sequence[str]]) -> None:
        table = Table(title=title, box=box.SIMPLE)
        table.add_column("Field", style="bold")
        table.add_column("Value")

        for pair in pairs:
            if len(pair) >= 2:
                table.add_row(pair[0], pair[1])

        with self._printer.section(color="blue") as p:
            p.print(table)

    def show_config(self, pairs: list[tuple[str, str]]) -> None:
        """Display configuration in minimal format without panel borders."""
        with self._printer.section(shape="◇") as p:
            p.print("Configuration")
            for key, value in pairs:
                p.print(f"{key:<18} [cyan]{escape(value)}[/cyan]")

    # Models
    def show_models(self, models: list[Model]) -> None:
        """Dashboard view: one row per model with its latest metrics."""
        if not models:
            with self._printer.section(color="yellow") as p:
                p.print("No models yet")
                p.print("[dim]Upload one with `modelwhiz models upload`.[/dim]")
            return

        rows = []
        for model in models:
            latest = (
                ", ".join(
                    f"{metric_label(k)}: {format_metric(v)}"
                    for k, v in model.latest_metrics.as_dict().items()
                )
                if model.latest_metrics
                else "N/A"
            )
            rows.append(
                [
                    str(model.id),
                    escape(model.name),
                    model.version or "-",
                    model.task_type.value,
                    format_timestamp(model.upload_time),
                    latest,
                ]
            )
        self.show_table(
            "Models",
            ["ID", "Name", "Version", "Task", "Uploaded", "Latest metrics"],
            rows,
        )

    def show_model_not_found(self, model_id: Any) -> None:
        self.show_warning(f"Model not found: {model_id}")

    def show_model_details(self, model: Model, summary: HistorySummary) -> None:
        """Details view: latest metrics, history table, best values, trends."""
        keys = metric_keys(summary.task_type)
        pairs = [
            ["Name", escape(model.name)],
            ["Version", model.version or "-"],
            ["Task", summary.task_type.value],
            ["Uploaded", format_timestamp(model.upload_time)],
            ["File", escape(model.filename or "-")],
        ]
        for key in keys:
            pairs.append([metric_label(key), format_metric(model.metric(key))])
        self.show_key_values(f"Model {model.id}", pairs)

        if not summary.rows:
            self.show_info("No metric history yet.")
            return

        table = Table(
            title=f"Metric history ({summary.total_evaluations} evaluations)",
            box=box.SIMPLE_HEAVY,
        )
        table.add_column("Timestamp")
        for key in keys:
            table.add_column(metric_label(key), justify="right")
        for row in summary.rows:
            table.add_row(
                format_timestamp(row.get("timestamp")),
                *(format_metric(row.get(key)) for key in keys),
            )
        table.add_section()
        table.add_row(
            "[bold]Best[/bold]", *(format_metric(summary.best.get(k)) for k in keys)
        )
        if summary.trends:
            table.add_row(
                "[bold]Trend[/bold]",
                *(format_trend(summary.trends.get(k)) for k in keys),
            )

        with self._printer.section(color="blue") as p:
            p.print(table)
            p.print(f"[dim]Last evaluated {format_timestamp(summary.latest_timestamp)}[/dim]")

    def show_insights(self, model: Model | None, insights: list[str]) -> None:
        title = f"Insights for {escape(model.name)}" if model else "Insights"
        with self._printer.section(shape="💡", color="yellow") as p:
            p.print(title)
            if not insights:
                p.print("[dim]No insights available.[/dim]")
            for insight in insights:
                p.print(f"  • {escape(insight)}")

    def show_comparison(self, comparison: ModelComparison) -> None:
        a, b = comparison.model_a, comparison.model_b
        table = Table(
            title=f"{escape(a.name)} vs {escape(b.name)}", box=box.SIMPLE_HEAVY
        )
        table.add_column("Metric")
        table.add_column(escape(a.name), justify="right")
        table.add_column(escape(b.name), justify="right")
        table.add_column("Change", justify="right")
        table.add_column("Winner")

        for m in comparison.metrics:
            winner = "[dim]Tie[/dim]" if m.winner == TIE else escape(m.winner)
            table.add_row(
                metric_label(m.key),
                format_metric(m.value_a),
                format_metric(m.value_b),
                f"{m.abs_change:.3f} ({m.percent_change:.1f}%)",
                winner,
            )

        with self._printer.section(color="blue") as p:
            p.print(table)
            if comparison.overall_winner == TIE:
                p.print("Overall: [bold]Tie[/bold]")
            else:
                p.print(
                    f"Overall winner: [bold green]"
                    f"{escape(comparison.overall_winner)}[/bold green]"
                )

    # Evaluation jobs
    def job_progress_message(self, job: EvaluationJob | None) -> str:
        if job is None:
            return "Submitting evaluation..."
        name = f" for {escape(job.model_name)}" if job.model_name else ""
        return (
            f"Evaluation in progress{name} "
            f"[{STATUS_COLORS[job.status]}]({job.status.value})[/]"
        )

    def show_job_result(self, job: EvaluationJob, asset_origin: str) -> None:
        """Terminal view of one evaluation job."""
        if job.status == JobStatus.FAILED:
            with self._printer.section(color="red") as p:
                p.print("[bold red]Evaluation Failed[/bold red]")
                p.print(escape(job.error_message or UNKNOWN_FAILURE_MESSAGE))
            return

        if job.status != JobStatus.COMPLETED:
            with self._printer.section(color="yellow") as p:
                p.print(f"Evaluation {job.job_id} is {status_badge(job.status)}")
            return

        title = "Evaluation Results"
        if job.model_name:
            title += f": {escape(job.model_name)}"
        table = Table(title="Performance Metrics", box=box.SIMPLE_HEAVY)
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        for key, value in job.metric_items():
            table.add_row(key.replace("_", " ").upper(), format_metric(value, 4))

        with self._printer.section(color="green") as p:
            p.print(f"[bold]{title}[/bold]")
            p.print(table)
            if job.plot_url:
                url = asset_url(asset_origin, job.plot_url)
                p.print(f"{plot_title(job.task_type)}: [link={url}]{url}[/link]")

        if job.insights:
            with self._printer.section(shape="💡", color="yellow") as p:
                p.print("Automated Insights")
                for insight in job.insights:
                    p.print(f"  • {escape(insight)}")

    def show_connection_error(self, job: EvaluationJob | None, message: str) -> None:
        with self._printer.section(color="red") as p:
            p.print(f"[red]{escape(message)}[/red]")
            if job is not None:
                p.print(
                    f"[dim]Last known status of job {job.job_id}: "
                    f"{job.status.value}[/dim]"
                )

    def show_job_not_found(self, job_id: Any) -> None:
        self.show_warning(f"Evaluation job not found: {job_id}")

    def show_jobs(self, jobs: list[EvaluationJob]) -> None:
        """Evaluation history view with status badges."""
        if not jobs:
            with self._printer.section(color="yellow") as p:
                p.print("No Evaluations Found")
                p.print(
                    "[dim]Run your first evaluation with `modelwhiz evaluate start`."
                    "[/dim]"
                )
            return

        rows = [
            [
                str(job.job_id),
                escape(job.model_name or "-"),
                status_badge(job.status),
                format_timestamp(job.created_at),
            ]
            for job in jobs
        ]
        self.show_table(
            "Evaluation history", ["Job", "Model Name", "Status", "Date Created"], rows
        )
