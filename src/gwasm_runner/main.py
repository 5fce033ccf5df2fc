"""CLI entrypoint for gwasm-runner."""

import logging
from pathlib import Path

import rich_click as click

from gwasm_runner import __version__
from gwasm_runner.controllers import (
    CommandResult,
    GwasmCliController,
    RunCommand,
    StageCommand,
)
from gwasm_runner.errors import GwasmError
from gwasm_runner.models import Net

click.rich_click.USE_MARKDOWN = True
CONTROLLER = GwasmCliController()

_stage_options = [
    click.option(
        "--js",
        "js_path",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        required=True,
        help="Emscripten JavaScript loader.",
    ),
    click.option(
        "--wasm",
        "wasm_path",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        required=True,
        help="Compiled Wasm module.",
    ),
    click.option(
        "--input",
        "input_paths",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        multiple=True,
        help="Subtask input file. Repeat once per subtask.",
    ),
    click.option(
        "--workspace",
        type=click.Path(file_okay=False, path_type=Path),
        required=True,
        help="Directory where in/ and out/ are staged.",
    ),
    click.option("--name", default=None, help="Task name."),
    click.option("--bid", type=click.FloatRange(min=0, min_open=True), default=None),
    click.option("--timeout", default=None, help="Task timeout, HH:MM:SS."),
    click.option("--subtask-timeout", default=None, help="Subtask timeout, HH:MM:SS."),
]


def stage_options(func):
    for option in reversed(_stage_options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="gwasm-runner")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def gwasm_runner(log_level: str) -> None:
    """Run gWasm tasks on a Golem node."""

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@gwasm_runner.command("manifest")
@stage_options
def manifest(  # noqa: PLR0913
    js_path: Path,
    wasm_path: Path,
    input_paths: tuple[Path, ...],
    workspace: Path,
    name: str | None,
    bid: float | None,
    timeout: str | None,
    subtask_timeout: str | None,
) -> None:
    """Stage a task in the workspace and print its manifest."""

    _emit(
        _guarded(
            lambda: CONTROLLER.manifest(
                StageCommand(
                    js_path=js_path,
                    wasm_path=wasm_path,
                    input_paths=input_paths,
                    workspace=workspace,
                    name=name,
                    bid=bid,
                    timeout=timeout,
                    subtask_timeout=subtask_timeout,
                ),
            ),
        ),
    )


@gwasm_runner.command("run")
@stage_options
@click.option("--data-dir", type=click.Path(path_type=Path), default=None, help="Golem data dir.")
@click.option("--net", type=click.Choice([net.value for net in Net]), default=None)
@click.option("--address", default=None, help="Node RPC address.")
@click.option("--port", type=click.IntRange(min=1, max=65535), default=None)
@click.option(
    "--poll-interval",
    "poll_interval_seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between status queries.",
)
def run(  # noqa: PLR0913
    js_path: Path,
    wasm_path: Path,
    input_paths: tuple[Path, ...],
    workspace: Path,
    name: str | None,
    bid: float | None,
    timeout: str | None,
    subtask_timeout: str | None,
    data_dir: Path | None,
    net: str | None,
    address: str | None,
    port: int | None,
    poll_interval_seconds: float | None,
) -> None:
    """Stage a task, compute it on the node and list its outputs."""

    _emit(
        _guarded(
            lambda: CONTROLLER.run(
                RunCommand(
                    stage=StageCommand(
                        js_path=js_path,
                        wasm_path=wasm_path,
                        input_paths=input_paths,
                        workspace=workspace,
                        name=name,
                        bid=bid,
                        timeout=timeout,
                        subtask_timeout=subtask_timeout,
                    ),
                    data_dir=data_dir,
                    net=net,
                    address=address,
                    port=port,
                    poll_interval_seconds=poll_interval_seconds,
                ),
            ),
        ),
    )


def _guarded(action) -> CommandResult:
    try:
        return action()
    except GwasmError as error:
        raise click.ClickException(str(error)) from error
    except FileExistsError as error:
        raise click.ClickException(f"Workspace already staged: {error.filename}") from error


def _emit(result: CommandResult) -> None:
    for line in result.lines:
        click.echo(line)
    if result.exit_code:
        raise SystemExit(result.exit_code)


if __name__ == "__main__":  # pragma: no cover
    gwasm_runner()
