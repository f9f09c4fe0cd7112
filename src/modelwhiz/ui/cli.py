"""Command-line interface for ModelWhiz CLI."""

import asyncio
import logging
import signal
import sys
from collections.abc import Coroutine
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Any

import click
import httpx
from dotenv import load_dotenv
from rich.logging import RichHandler

from modelwhiz.core import ApiClient, AuthProvider, SessionStore, SettingsManager
from modelwhiz.core.assets import download_model
from modelwhiz.error_handling import ApiError, AuthError
from modelwhiz.jobs import EvaluationRequest
from modelwhiz.jobs.poller import (
    CONNECTION_ERROR_MESSAGE,
    CancelToken,
    EvaluationPoller,
    PollerState,
    PollingCancelled,
    SleepFunc,
)
from modelwhiz.metrics import compare_models, summarize_history
from modelwhiz.services import ModelCatalog, ServiceContainer
from modelwhiz.ui.console import InteractiveInterface
from modelwhiz.utils import ValidationError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class AppContext:
    """Per-invocation state shared by every command."""

    def __init__(
        self,
        settings: SettingsManager | None = None,
        ui: InteractiveInterface | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        auth_transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc | None = None,
    ):
        self.settings = settings or SettingsManager()
        self.ui = ui or InteractiveInterface()
        self.transport = transport
        self.auth_transport = auth_transport
        self.sleep = sleep
        self.user_id: str | None = None

    def session_store(self) -> SessionStore:
        return SessionStore(self.settings.session_file)

    def notify_error(self, error: ApiError) -> None:
        self.ui.show_system_error(f"An Error Occurred: {error.message}")

    @asynccontextmanager
    async def services(self):
        client = ApiClient(
            self.settings.get_api_base(),
            timeout=self.settings.get_request_timeout(),
            on_error=self.notify_error,
            transport=self.transport,
        )
        services = ServiceContainer(
            client,
            session_store=self.session_store(),
            user_id=self.user_id or self.settings.get_user_id(),
        )
        try:
            yield services
        finally:
            await services.aclose()

    def auth_provider(self) -> AuthProvider:
        auth_url = self.settings.get_auth_url()
        auth_key = self.settings.get_auth_key()
        if not auth_url or not auth_key:
            raise ValidationError(
                "Sign-in is not configured. Set MODELWHIZ_AUTH_URL and "
                "MODELWHIZ_AUTH_KEY, or use `modelwhiz config --set authURL ...`."
            )
        return AuthProvider(
            auth_url,
            auth_key,
            self.session_store(),
            transport=self.auth_transport,
        )


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    logging.getLogger("modelwhiz").setLevel(level)
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


def _run(
    app: AppContext, coro: Coroutine[Any, Any, Any], failure: str | None = None
) -> Any:
    """Run one command coroutine and map errors to notifications and exit codes.

    ApiErrors have already been announced by the global notifier; ``failure``
    adds the command's own failure notification on top.
    """
    try:
        return asyncio.run(coro)
    except ValidationError as e:
        app.ui.show_warning(str(e))
        sys.exit(1)
    except ApiError as e:
        logger.debug(f"Command failed: {e.message}")
        if failure:
            app.ui.show_system_error(f"{failure}: {e.message}")
        sys.exit(1)
    except AuthError as e:
        app.ui.show_system_error(e.get_user_message())
        sys.exit(1)


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--user-id",
    default=None,
    help="Act as this user id (or set MODELWHIZ_USER_ID env var)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, user_id: str | None):
    """ModelWhiz CLI - upload, evaluate and compare ML models."""
    app = ctx.ensure_object(AppContext)
    app.user_id = user_id
    _configure_logging(verbose or app.settings.get_verbose_mode())


# Auth


@cli.command()
@click.option("--email", prompt=True, help="Account email")
@click.option("--password", prompt=True, hide_input=True, help="Account password")
@click.pass_obj
def login(app: AppContext, email: str, password: str):
    """Sign in with email and password."""

    async def _login():
        async with app.auth_provider() as auth:
            return await auth.sign_in(email.strip(), password)

    session = _run(app, _login())
    app.ui.show_system_success(f"Signed in as {session.email or email}")


@cli.command()
@click.option("--email", prompt=True, help="Account email")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Account password",
)
@click.pass_obj
def signup(app: AppContext, email: str, password: str):
    """Create an account."""

    async def _signup():
        async with app.auth_provider() as auth:
            return await auth.sign_up(email.strip(), password)

    result = _run(app, _signup())
    if result.needs_confirmation:
        app.ui.show_system_success("Check your email to confirm your account.")
    else:
        app.ui.show_system_success(f"Account created. Signed in as {result.email}")


@cli.command()
@click.pass_obj
def logout(app: AppContext):
    """Sign out and forget the stored session."""
    store = app.session_store()
    if store.current() is None:
        app.ui.show_info("Not signed in.")
        return

    if not app.settings.get_auth_url() or not app.settings.get_auth_key():
        store.clear()
    else:

        async def _logout():
            async with app.auth_provider() as auth:
                await auth.sign_out()

        _run(app, _logout())
    app.ui.show_system_success("Signed out")


@cli.command()
@click.pass_obj
def whoami(app: AppContext):
    """Show the signed-in user."""
    session = app.session_store().current()
    if session is None:
        app.ui.show_info("Not signed in.")
        return
    app.ui.show_key_values(
        "Session",
        [["Email", session.email or "-"], ["User id", session.user_id]],
    )


# Models


@cli.group()
def models():
    """Manage uploaded models."""
    pass


@models.command("list")
@click.option("--mine", is_flag=True, help="Only list the signed-in user's models")
@click.pass_obj
def list_models(app: AppContext, mine: bool):
    """List models with their latest metrics."""

    async def _list():
        async with app.services() as services:
            catalog = services.catalog(scoped=mine)
            try:
                await catalog.refresh()
            except ApiError:
                # Already announced; fall back to the empty view
                return []
            return catalog.models

    app.ui.show_models(_run(app, _list()))


@models.command("show")
@click.argument("model_id", type=int)
@click.pass_obj
def show_model(app: AppContext, model_id: int):
    """Show a model's metrics, history, best values and trends."""

    async def _show():
        async with app.services() as services:
            catalog = services.catalog()
            await catalog.refresh()
            return catalog.find(model_id)

    model = _run(app, _show())
    if model is None:
        app.ui.show_model_not_found(model_id)
        sys.exit(1)

    summary = summarize_history(
        [snapshot.as_row() for snapshot in model.metrics_history], model.task_type
    )
    app.ui.show_model_details(model, summary)


@models.command("upload")
@click.argument("file", type=click.Path(path_type=Path), required=False)
@click.option("-n", "--name", default=None, help="Display name for the model")
@click.option(
    "-t",
    "--test-file",
    type=click.Path(path_type=Path),
    default=None,
    help="CSV test set to evaluate on upload",
)
@click.pass_obj
def upload_model(
    app: AppContext, file: Path | None, name: str | None, test_file: Path | None
):
    """Upload a model file."""

    async def _upload():
        async with app.services() as services:
            catalog = ModelCatalog(services.models, services.user_id)
            await catalog.upload(file, name, test_file)
            return catalog.models

    models_after = _run(app, _upload(), failure="Upload failed")
    app.ui.show_system_success("Model uploaded successfully!")
    app.ui.show_models(models_after)


@models.command("evaluate")
@click.argument("model_id", type=int)
@click.argument("test_file", type=click.Path(path_type=Path), required=False)
@click.pass_obj
def evaluate_model(app: AppContext, model_id: int, test_file: Path | None):
    """Evaluate an uploaded model against a CSV test set."""

    async def _evaluate():
        async with app.services() as services:
            catalog = services.catalog()
            result = await catalog.evaluate(model_id, test_file)
            return result, catalog.find(model_id)

    result, model = _run(app, _evaluate(), failure="Evaluation failed")
    app.ui.show_system_success("Evaluation complete")
    if isinstance(result, dict):
        pairs = [[key, str(value)] for key, value in result.items() if key != "insights"]
        if pairs:
            app.ui.show_key_values(f"Model {model_id}", pairs)
    elif model is not None:
        summary = summarize_history(
            [snapshot.as_row() for snapshot in model.metrics_history], model.task_type
        )
        app.ui.show_model_details(model, summary)


@models.command("delete")
@click.argument("model_id", type=int)
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_obj
def delete_model(app: AppContext, model_id: int, yes: bool):
    """Delete a model."""
    if not yes and not app.ui.confirm(f"Delete model {model_id}?"):
        app.ui.show_info("Cancelled.")
        return

    async def _delete():
        async with app.services() as services:
            catalog = services.catalog()
            return await catalog.delete(model_id)

    remaining = _run(app, _delete(), failure="Delete failed")
    app.ui.show_system_success("Model deleted")
    app.ui.show_models(remaining)


def _metric_options(func):
    for flag, help_text in reversed(
        [
            ("--accuracy", "Accuracy in [0, 1]"),
            ("--f1-score", "F1 score in [0, 1]"),
            ("--auc", "AUC in [0, 1]"),
        ]
    ):
        func = click.option(flag, type=float, default=None, help=help_text)(func)
    return func


@models.command("set-metrics")
@click.argument("model_id", type=int)
@_metric_options
@click.pass_obj
def set_metrics(
    app: AppContext,
    model_id: int,
    accuracy: float | None,
    f1_score: float | None,
    auc: float | None,
):
    """Set a model's latest metrics by hand."""

    async def _set():
        async with app.services() as services:
            await services.catalog().update_metrics(model_id, accuracy, f1_score, auc)

    _run(app, _set(), failure="Metrics update failed")
    app.ui.show_system_success("Metrics updated")


@models.command("log-metrics")
@click.argument("model_id", type=int)
@_metric_options
@click.pass_obj
def log_metrics(
    app: AppContext,
    model_id: int,
    accuracy: float | None,
    f1_score: float | None,
    auc: float | None,
):
    """Append an entry to a model's metric history."""

    async def _log():
        async with app.services() as services:
            await services.catalog().log_metrics(model_id, accuracy, f1_score, auc)

    _run(app, _log(), failure="Metrics logging failed")
    app.ui.show_system_success("Metrics logged")


@models.command("insights")
@click.argument("model_id", type=int)
@click.pass_obj
def model_insights(app: AppContext, model_id: int):
    """Show automated insights for a model."""

    async def _insights():
        async with app.services() as services:
            return await services.models.get_insights(model_id)

    app.ui.show_insights(None, _run(app, _insights()))


@models.command("download")
@click.argument("model_id", type=int)
@click.option(
    "-d",
    "--dest",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help="Directory to save the model file in",
)
@click.pass_obj
def download(app: AppContext, model_id: int, dest: Path):
    """Download a model's uploaded file."""

    async def _download():
        async with app.services() as services:
            catalog = services.catalog()
            await catalog.refresh()
            model = catalog.find(model_id)
            if model is None:
                return None, None
            if not model.filename:
                raise ValidationError(f"Model {model_id} has no uploaded file")
            path = await download_model(
                services.client, app.settings.get_asset_origin(), model.filename, dest
            )
            return model, path

    model, path = _run(app, _download(), failure="Download failed")
    if model is None:
        app.ui.show_model_not_found(model_id)
        sys.exit(1)
    app.ui.show_system_success(f"Saved {model.name} to {path}")


# Compare


@cli.command()
@click.argument("model_a", type=int)
@click.argument("model_b", type=int)
@click.pass_obj
def compare(app: AppContext, model_a: int, model_b: int):
    """Compare the latest metrics of two models."""

    async def _load():
        async with app.services() as services:
            catalog = services.catalog()
            await catalog.refresh()
            return catalog.find(model_a), catalog.find(model_b)

    a, b = _run(app, _load())
    for model_id, model in ((model_a, a), (model_b, b)):
        if model is None:
            app.ui.show_model_not_found(model_id)
            sys.exit(1)

    try:
        comparison = compare_models(a, b)
    except ValueError as e:
        app.ui.show_warning(str(e))
        sys.exit(1)
    app.ui.show_comparison(comparison)


# Evaluations


@cli.group("evaluate")
def evaluate_group():
    """Run and inspect evaluation jobs."""
    pass


async def _watch_job(
    app: AppContext,
    services: ServiceContainer,
    job_id: int | str | None = None,
    request: EvaluationRequest | None = None,
) -> tuple[EvaluationPoller, bool]:
    """Submit and/or poll one job with a live status line.

    Ctrl-C cancels the token; the server-side job is left running.

    Returns:
        The finished poller and whether watching was cancelled
    """
    poller = EvaluationPoller(
        services.evaluations,
        interval=app.settings.get_poll_interval(),
        sleep=app.sleep,
    )
    token = CancelToken()
    loop = asyncio.get_running_loop()
    with suppress(NotImplementedError, RuntimeError, ValueError):
        loop.add_signal_handler(signal.SIGINT, token.cancel)

    try:
        with app.ui.printer.status(app.ui.job_progress_message(None)) as status:

            def on_change(state: PollerState, job) -> None:
                if state in (PollerState.SUBMITTING, PollerState.POLLING):
                    status.update(app.ui.job_progress_message(job))

            poller.add_listener(on_change)
            if request is not None:
                job_id = await poller.submit(request)
            await poller.watch(job_id, token)
    except PollingCancelled:
        logger.debug(f"Watch of job {poller.job_id} cancelled by user")
        return poller, True
    finally:
        with suppress(NotImplementedError, RuntimeError, ValueError):
            loop.remove_signal_handler(signal.SIGINT)
    return poller, False


def _render_watch(app: AppContext, poller: EvaluationPoller, cancelled: bool) -> None:
    if cancelled:
        app.ui.show_info(
            f"Stopped watching job {poller.job_id}. "
            "The evaluation keeps running on the server."
        )
        return

    if poller.state == PollerState.CONNECTION_ERROR:
        if poller.error is not None and poller.error.status_code == 404:
            app.ui.show_job_not_found(poller.job_id)
        else:
            app.ui.show_connection_error(poller.job, CONNECTION_ERROR_MESSAGE)
        sys.exit(1)
    app.ui.show_job_result(poller.job, app.settings.get_asset_origin())
    if poller.state == PollerState.FAILED:
        sys.exit(1)


@evaluate_group.command("start")
@click.option("-m", "--model-file", type=click.Path(path_type=Path), default=None)
@click.option("-d", "--dataset", type=click.Path(path_type=Path), default=None)
@click.option("-n", "--name", default=None, help="Model name")
@click.option("-t", "--target-column", default=None, help="Target column in the CSV")
@click.option(
    "-p",
    "--preprocessor-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Pickled preprocessing pipeline",
)
@click.option(
    "--needs-preprocessor",
    is_flag=True,
    help="Require --preprocessor-file to be given",
)
@click.pass_obj
def start_evaluation(
    app: AppContext,
    model_file: Path | None,
    dataset: Path | None,
    name: str | None,
    target_column: str | None,
    preprocessor_file: Path | None,
    needs_preprocessor: bool,
):
    """Start an evaluation job and watch it until it finishes."""

    async def _start():
        async with app.services() as services:
            request = EvaluationRequest(
                model_file=model_file,
                dataset_file=dataset,
                model_name=name,
                target_column=target_column,
                user_id=services.user_id,
                preprocessor_file=preprocessor_file,
                needs_preprocessor=needs_preprocessor,
            )
            return await _watch_job(app, services, request=request)

    poller, cancelled = _run(app, _start(), failure="Evaluation could not be started")
    _render_watch(app, poller, cancelled)


@evaluate_group.command("watch")
@click.argument("job_id")
@click.pass_obj
def watch_evaluation(app: AppContext, job_id: str):
    """Watch an existing evaluation job until it finishes."""

    async def _watch():
        async with app.services() as services:
            return await _watch_job(app, services, job_id=job_id)

    poller, cancelled = _run(app, _watch())
    _render_watch(app, poller, cancelled)


@evaluate_group.command("list")
@click.pass_obj
def list_evaluations(app: AppContext):
    """List the signed-in user's evaluation jobs."""

    async def _list():
        async with app.services() as services:
            user_id = services.user_id
            if not user_id:
                raise ValidationError(
                    "Missing required fields: user id. "
                    "Run `modelwhiz login` or pass --user-id."
                )
            try:
                return await services.evaluations.list_jobs(user_id)
            except ApiError:
                # Already announced; fall back to the empty view
                return []

    app.ui.show_jobs(_run(app, _list()))


# Config


@cli.command()
@click.option(
    "--set",
    "setting",
    nargs=2,
    default=None,
    metavar="KEY VALUE",
    help="Save a setting to ~/.modelwhiz/user-settings.json",
)
@click.pass_obj
def config(app: AppContext, setting: tuple[str, str] | None):
    """Show or change configuration."""
    if setting:
        key, value = setting
        try:
            app.settings.update_user_setting(key, value)
        except ValidationError as e:
            app.ui.show_warning(str(e))
            sys.exit(1)
        app.ui.show_system_success(f"Saved {key} to {app.settings.settings_file}")
    app.ui.show_config(app.settings.describe())


if __name__ == "__main__":
    cli()
