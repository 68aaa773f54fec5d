# arch_plan/cli.py
import logging
import os
from pathlib import Path
from typing import Optional

import typer

from arch_plan import core
from arch_plan.config.models import RawInstallConfig
from arch_plan.config.sample import sample_config
from arch_plan.plan.assembler import PlanAssembler
from arch_plan.plan.diagnostics import Diagnostics
from arch_plan.plan.model import ZONEINFO_DIR, InstallPlan
from arch_plan.plan.validator import build_plan
from arch_plan.utils.exceptions import ConfigurationError
from arch_plan.utils.logger import initialize_app_logger

app = typer.Typer(
    help="Compile a declarative Arch Linux installation into an unattended shell script.",
    no_args_is_help=True,
)


@app.callback()
def setup(
    log_dir: str = typer.Option("logs", "--log-dir", help="Directory for the log file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug messages on the console."),
):
    """
    Create the application logger shared by all commands.
    """
    core.app_logger = initialize_app_logger(
        app_name="arch_plan",
        log_directory=log_dir,
        console_log_level=logging.DEBUG if verbose else logging.INFO,
    )


def _load_plan(config: Path, zoneinfo: str) -> InstallPlan:
    """Loads and validates a configuration file, logging every warning."""
    logger = core.app_logger

    with logger.execution_step(f"Loading configuration from {config}"):
        raw = RawInstallConfig.load_config_from_file(config)

    diagnostics = Diagnostics()
    with logger.execution_step("Validating configuration"):
        plan = build_plan(raw, diagnostics, zoneinfo_dir=zoneinfo)

    count = logger.report_diagnostics(diagnostics)
    logger.debug(f"Validation finished with {count} warning(s)")
    return plan


@app.command()
def generate(
    config: Path = typer.Argument(..., help="TOML configuration file."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the script here instead of stdout."),
    zoneinfo: str = typer.Option(ZONEINFO_DIR, "--zoneinfo", help="Timezone database used for validation."),
):
    """
    Generate the installation script for CONFIG.
    """
    logger = core.app_logger
    logger.section("Compiling installation plan")

    try:
        plan = _load_plan(config, zoneinfo)
        with logger.execution_step("Generating installation script"):
            script = PlanAssembler(plan).generate_script()
    except ConfigurationError as e:
        logger.critical(f"Generation aborted: {e}")
        raise typer.Exit(code=1)

    if output is None:
        typer.echo(script, nl=False)
        return

    output.write_text(script, encoding="utf-8")
    os.chmod(output, 0o755)
    logger.info(f"Installation script written to {output}")


@app.command()
def check(
    config: Path = typer.Argument(..., help="TOML configuration file."),
    zoneinfo: str = typer.Option(ZONEINFO_DIR, "--zoneinfo", help="Timezone database used for validation."),
):
    """
    Validate CONFIG and show a summary of the resulting plan.
    """
    logger = core.app_logger
    logger.section("Checking configuration")

    try:
        plan = _load_plan(config, zoneinfo)
        assembler = PlanAssembler(plan)
        # compiling surfaces bootloader layout errors too
        assembler.generate_script()
        packages = assembler.packages()
    except ConfigurationError as e:
        logger.critical(f"Configuration rejected: {e}")
        raise typer.Exit(code=1)

    typer.echo(plan.display_summary())
    typer.echo(f"Packages: {' '.join(packages)}")


@app.command()
def sample(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the sample here instead of stdout."),
):
    """
    Print a commented sample configuration.
    """
    if output is None:
        typer.echo(sample_config(), nl=False)
        return

    output.write_text(sample_config(), encoding="utf-8")
    core.app_logger.info(f"Sample configuration written to {output}")
