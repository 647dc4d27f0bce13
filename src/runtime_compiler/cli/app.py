# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Command line entry point: compile the sources, then serve commands."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..artifact import ArtifactHolder
from ..commands import CommandResponse, CommandRouter, run_command_loop
from ..compiler import compile_sources
from ..config import Config, ConfigError
from ..config_loader import load_config
from ..errors import ToolchainError
from ..invocation import Rejected, RuntimeFailure
from ..paths import display_relative_path
from ..references import resolve_references
from ..sources import validate_sources
from .options import (
    COLOR_OPTION,
    DEBUG_OPTION,
    EMOJI_OPTION,
    GENERATE_OPTION,
    INPUT_OPTION,
    OUTPUT_OPTION,
    REFERENCES_OPTION,
    ROOT_OPTION,
    SUFFIX_OPTION,
    build_run_options,
)
from .shared import CLIError, CLILogger, build_cli_logger

PACKAGE_LOGGER = logging.getLogger("runtime_compiler")

app = typer.Typer(
    name="runtime-compiler",
    help=(
        "Compile source files and introspect the result from a line-oriented prompt. "
        "Module bodies run in this process during every compile, including --generate."
    ),
    add_completion=False,
)


def _configure_logging(debug: bool) -> None:
    """Route package log records through Rich on stderr."""

    if not getattr(PACKAGE_LOGGER, "_runtime_compiler_configured", False):
        handler = RichHandler(
            console=Console(stderr=True, highlight=False, soft_wrap=True),
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        PACKAGE_LOGGER.addHandler(handler)
        PACKAGE_LOGGER.propagate = False
        setattr(PACKAGE_LOGGER, "_runtime_compiler_configured", True)
    PACKAGE_LOGGER.setLevel(logging.DEBUG if debug else logging.WARNING)


def _emit_response(logger: CLILogger, response: CommandResponse) -> None:
    if response.is_hint:
        logger.warn(response.lines[0])
        return
    outcome = response.outcome
    if isinstance(outcome, Rejected):
        logger.warn(outcome.describe())
        return
    if isinstance(outcome, RuntimeFailure):
        logger.fail(outcome.describe())
        if outcome.traceback:
            logger.debug(outcome.traceback.rstrip())
        return
    logger.output(response.lines)


def run(config: Config, logger: CLILogger, lines: Iterable[str]) -> int:
    """Execute the compile and, for in-memory output, the command loop.

    Args:
        config: Fully resolved configuration.
        logger: Console logger honouring the presentation settings.
        lines: Command lines served after an in-memory compile.

    Returns:
        int: Process exit status.

    Raises:
        CLIError: If the toolchain could not run.
    """

    durable = config.compile.generate
    if durable:
        logger.info("An executable archive will be generated.")
    logger.info(f"Loading source files ({len(config.compile.inputs)}) ...")
    sources = validate_sources(
        config.compile.inputs,
        on_invalid=lambda path: logger.warn(f"Source file {path} is not a readable file, skipping."),
    )
    references = resolve_references(config.references.directory, suffixes=tuple(config.references.suffixes))
    logger.info(f"Referencing {len(references)} module(s).")
    logger.debug(
        f"sources={len(sources)} rejected={len(sources.rejected)} "
        f"references={len(references)} directory={display_relative_path(config.references.directory)}",
    )

    logger.info("Compiling ...")
    try:
        result = compile_sources(sources.valid, references, config.compile_options())
    except ToolchainError as exc:
        raise CLIError(f"Toolchain failure: {exc}") from exc

    artifact = result.artifact
    if artifact is None:
        logger.fail(f"The compiler has generated {len(result.errors)} error(s).")
        logger.section("Compiler diagnostics")
        logger.diagnostics(result.diagnostics)
        if durable:
            return 1
        holder = ArtifactHolder()
    else:
        if result.warnings:
            logger.section("Compiler warnings")
            logger.diagnostics(result.warnings)
        if durable:
            logger.info(f"The compiled archive is located at {artifact.location}")
            logger.ok("Compilation was successful.")
            return 0
        holder = ArtifactHolder(artifact)
        logger.ok(
            f"Loaded {len(artifact.types)} type(s) into memory. "
            "Use commands to interact with them; CMDS lists every command.",
        )

    router = CommandRouter(holder)
    handled = run_command_loop(router, lines, lambda response: _emit_response(logger, response))
    logger.debug(f"commands={handled}")
    return 0


@app.command()
def main(
    ctx: typer.Context,
    inputs: INPUT_OPTION = None,
    output: OUTPUT_OPTION = None,
    generate: GENERATE_OPTION = False,
    debug: DEBUG_OPTION = True,
    references: REFERENCES_OPTION = None,
    suffixes: SUFFIX_OPTION = None,
    root: ROOT_OPTION = None,
    emoji: EMOJI_OPTION = True,
    color: COLOR_OPTION = True,
) -> None:
    """Compile the given sources, then serve CMDS, LIST and EXECUTE from stdin."""

    options = build_run_options(
        ctx,
        root=root,
        inputs=inputs,
        output=output,
        generate=generate,
        references=references,
        suffixes=suffixes,
        debug=debug,
        emoji=emoji,
        color=color,
    )
    try:
        config = load_config(options.root, overrides=options.overrides())
    except ConfigError as exc:
        build_cli_logger(emoji=emoji, color=color).fail(f"Invalid configuration: {exc}")
        raise typer.Exit(code=2) from exc

    logger = build_cli_logger(
        emoji=config.output.emoji,
        debug=config.output.debug,
        color=config.output.color,
    )
    _configure_logging(config.output.debug)
    logger.info("Loading runtime compiler ...")
    try:
        exit_code = run(config, logger, sys.stdin)
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    logger.info("Exiting ...")
    raise typer.Exit(code=exit_code)


__all__ = ["app", "main", "run"]
