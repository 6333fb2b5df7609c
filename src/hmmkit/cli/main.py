"""
Main CLI application for hmmkit.

Provides commands to create, learn, sample, inspect and draw models stored
as joblib files.
"""

import sys
from pathlib import Path
from typing import Optional

import click
import numpy as np
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import load_config_file
from ..draw import HmmDrawerDot, InputHmmDrawerDot
from ..hmm import Hmm, InputHmm
from ..io import format_sequence, write_hmm
from ..logger import enable_file_logging, set_log_level
from ..toolbox import InputMarkovGenerator, MarkovGenerator
from .errors import EXIT_CODES, handle_cli_error
from .utils import OpdfKind, build_opdf_factory, load_model, load_sequences, parse_inputs, reader_for_model

console = Console()

app = typer.Typer(
    name="hmmkit",
    help="Hidden Markov Model toolkit: create, learn, sample and draw HMMs",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True
)

from .learn import learn_app

app.add_typer(learn_app, name="learn")


@app.command("create")
def create_model(
    output: Path = typer.Argument(..., help="Output model file"),
    n_states: int = typer.Option(..., "--states", "-s", help="Number of hidden states"),
    opdf: OpdfKind = typer.Option(OpdfKind.integer, "--opdf", help="Emission distribution kind"),
    entries: Optional[int] = typer.Option(None, "--entries", "-r", help="Number of integer values"),
    dimension: Optional[int] = typer.Option(None, "--dimension", "-d", help="Vector dimension"),
    inputs: Optional[str] = typer.Option(None, "--inputs", help="Comma-separated input values"),
    emission_per_input: bool = typer.Option(
        False, "--emission-per-input", help="One emission distribution per state and input"
    )
):
    """Create a model with uniform initial and transition probabilities."""
    try:
        factory = build_opdf_factory(opdf, entries, dimension)
        input_values = parse_inputs(inputs)

        if input_values is not None:
            hmm = InputHmm.from_factory(n_states, input_values, factory, emission_per_input)
        else:
            hmm = Hmm.from_factory(n_states, factory)

        with open(output, 'wb') as f:
            write_hmm(f, hmm)

        console.print(f"[green]Created {escape(repr(hmm))} in {output}[/green]")

    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "create")


@app.command("generate")
def generate_sequences(
    model_file: Path = typer.Argument(..., help="Model file"),
    n_sequences: int = typer.Option(1, "--sequences", "-n", help="Number of sequences"),
    length: int = typer.Option(10, "--length", "-l", help="Observations per sequence"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: stdout)")
):
    """
    Sample observation sequences from a model.

    Input-driven models draw each step's input uniformly among their inputs.
    """
    try:
        hmm = load_model(model_file)

        if isinstance(hmm, InputHmm):
            generator = InputMarkovGenerator(hmm, seed)
            rng = np.random.default_rng(seed)
            sequences = []
            for _ in range(n_sequences):
                inputs = [hmm.inputs[k] for k in rng.integers(hmm.n_inputs, size=length)]
                sequences.append(generator.observation_sequence(inputs))
        else:
            generator = MarkovGenerator(hmm, seed)
            sequences = [generator.observation_sequence(length) for _ in range(n_sequences)]

        lines = [format_sequence(sequence) for sequence in sequences]
        if output is None:
            for line in lines:
                typer.echo(line)
        else:
            with open(output, 'w', encoding='utf-8') as f:
                f.write("\n".join(lines) + "\n")
            console.print(f"[green]Wrote {n_sequences} sequences to {output}[/green]")

    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "generate")


@app.command("print")
def print_model(
    model_file: Path = typer.Argument(..., help="Model file"),
    decimals: int = typer.Option(2, "--decimals", help="Printed decimals")
):
    """Print the parameters of a model."""
    try:
        hmm = load_model(model_file)
        console.print(Panel(escape(hmm.to_string(decimals)), title=escape(repr(hmm)), border_style="blue"))

    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "print")


@app.command("likelihood")
def sequence_likelihood(
    model_file: Path = typer.Argument(..., help="Model file"),
    sequences_file: Path = typer.Argument(..., help="Observation sequence file")
):
    """Log-likelihood of each sequence under a model."""
    try:
        hmm = load_model(model_file)
        sequences = load_sequences(sequences_file, reader_for_model(hmm))

        table = Table(title="Sequence Log-Likelihoods")
        table.add_column("Sequence", style="cyan")
        table.add_column("Length")
        table.add_column("ln P(O | model)", style="green")

        for idx, sequence in enumerate(sequences):
            table.add_row(str(idx), str(len(sequence)), f"{hmm.ln_probability(sequence):.4f}")

        console.print(table)

    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "likelihood")


@app.command("draw")
def draw_model(
    model_file: Path = typer.Argument(..., help="Model file"),
    output: Path = typer.Argument(..., help="Output dot file"),
    minimum_aij: Optional[float] = typer.Option(None, "--min-aij", help="Smallest transition drawn"),
    minimum_pi: Optional[float] = typer.Option(None, "--min-pi", help="Smallest pi marking an initial state")
):
    """Export a model as a Graphviz dot graph."""
    try:
        hmm = load_model(model_file)
        drawer_class = InputHmmDrawerDot if isinstance(hmm, InputHmm) else HmmDrawerDot
        drawer_class(minimum_aij=minimum_aij, minimum_pi=minimum_pi).write_file(hmm, output)

        console.print(f"[green]Dot graph written to {output}[/green]")
        console.print(f"[dim]Render with: dot -Tpng -o {output.with_suffix('.png')} {output}[/dim]")

    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "draw")


@app.command("version")
def show_version():
    """Show hmmkit version information."""
    from .. import __version__

    console.print(Panel.fit(
        f"[bold]hmmkit Version {__version__}[/bold]\n"
        f"Hidden Markov Model toolkit\n"
        f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        border_style="blue"
    ))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress all output except errors"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode with detailed error traces"),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to JSON configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file")
):
    """
    hmmkit: Hidden Markov Model toolkit

    \b
    Quick Start:
    1. Cluster data:     hmmkit learn kmeans data.seq init.pkl --states 2 --opdf gaussian
    2. Train:            hmmkit learn baum-welch init.pkl data.seq model.pkl
    3. Inspect:          hmmkit print model.pkl
    4. Draw:             hmmkit draw model.pkl model.dot
    """
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        ctx.meta["debug"] = debug

    if quiet:
        set_log_level('ERROR')
    elif verbose or debug:
        set_log_level('DEBUG')

    if config_file:
        try:
            load_config_file(str(config_file))
        except Exception as e:
            handle_cli_error(e, "--config", debug)

    if log_file:
        enable_file_logging(str(log_file))


def cli_main():
    """Main entry point for CLI with error handling."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(EXIT_CODES["general_error"])


if __name__ == "__main__":
    cli_main()
