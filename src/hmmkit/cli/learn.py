"""
Learning CLI commands.

K-Means initialization and Baum-Welch training of models stored on disk.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..hmm import InputHmm
from ..io import write_hmm, reader_for_opdf, InputObservationTupleReader
from ..learn import BaumWelchLearner, ConvergencePolicy, InputBaumWelchLearner, KMeansLearner
from ..logger import get_logger
from .errors import handle_cli_error
from .utils import OpdfKind, build_opdf_factory, load_model, load_sequences, parse_inputs, reader_for_model

console = Console()
logger = get_logger(__name__)

learn_app = typer.Typer(
    name="learn",
    help="Model learning commands"
)


@learn_app.command("kmeans")
def learn_kmeans(
    sequences_file: Path = typer.Argument(..., help="Observation sequence file"),
    output: Path = typer.Argument(..., help="Output model file"),
    n_states: int = typer.Option(..., "--states", "-s", help="Number of hidden states"),
    opdf: OpdfKind = typer.Option(OpdfKind.integer, "--opdf", help="Emission distribution kind"),
    entries: Optional[int] = typer.Option(None, "--entries", "-r", help="Number of integer values"),
    dimension: Optional[int] = typer.Option(None, "--dimension", "-d", help="Vector dimension"),
    inputs: Optional[str] = typer.Option(
        None, "--inputs", help="Comma-separated input values; sequences then hold input:observation pairs"
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for cluster seeding")
):
    """
    Build an initial model by K-Means clustering of the observations.

    With --inputs, clustering ignores the inputs and the resulting model is
    lifted to an input-driven one.
    """
    try:
        factory = build_opdf_factory(opdf, entries, dimension)
        input_values = parse_inputs(inputs)

        reader = reader_for_opdf(factory.factor())
        if input_values is not None:
            reader = InputObservationTupleReader(reader, input_values)
        sequences = load_sequences(sequences_file, reader)

        observation_sequences = sequences
        if input_values is not None:
            observation_sequences = [[item.observation for item in sequence] for sequence in sequences]

        hmm = KMeansLearner(n_states, factory, observation_sequences, seed=seed).learn()
        if input_values is not None:
            hmm = InputHmm.from_hmm(hmm, input_values)

        with open(output, 'wb') as f:
            write_hmm(f, hmm)

        console.print(f"[green]K-Means model with {n_states} states written to {output}[/green]")

    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "learn kmeans")


@learn_app.command("baum-welch")
def learn_baum_welch(
    model_file: Path = typer.Argument(..., help="Initial model file"),
    sequences_file: Path = typer.Argument(..., help="Observation sequence file"),
    output: Path = typer.Argument(..., help="Output model file"),
    max_iterations: Optional[int] = typer.Option(None, "--max-iter", "-i", help="Maximum iterations"),
    tolerance: Optional[float] = typer.Option(
        None, "--tolerance", "-t", help="Stop when the log-likelihood improves by less than this"
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Wall-clock limit in seconds"),
    n_jobs: Optional[int] = typer.Option(None, "--jobs", "-j", help="Parallel workers for the per-sequence pass")
):
    """
    Train a model with the Baum-Welch algorithm.

    The learner variant follows the model: input-driven models get the
    input-driven learner.
    """
    try:
        hmm = load_model(model_file)
        sequences = load_sequences(sequences_file, reader_for_model(hmm))

        policy = ConvergencePolicy(max_iterations=max_iterations, tolerance=tolerance, timeout_sec=timeout)
        learner_class = InputBaumWelchLearner if isinstance(hmm, InputHmm) else BaumWelchLearner
        learner = learner_class(policy=policy, n_jobs=n_jobs)

        console.print(Panel.fit(
            f"[bold]Baum-Welch Training[/bold]\n"
            f"Model: {model_file} ({hmm.n_states} states)\n"
            f"Sequences: {len(sequences)}\n"
            f"Max Iterations: {policy.max_iterations}",
            border_style="blue"
        ))

        learned = learner.learn(hmm, sequences)

        with open(output, 'wb') as f:
            write_hmm(f, learned)

        stats = learner.training_stats
        table = Table(title="Training Results")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Iterations", str(stats['iterations']))
        table.add_row("Stop reason", stats['stop_reason'])
        final = stats['final_log_likelihood']
        table.add_row("Log-likelihood", f"{final:.4f}" if final is not None else "n/a")
        table.add_row("Training time", f"{stats['training_time']:.2f}s")
        console.print(table)

        console.print(f"[green]Model written to {output}[/green]")

    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "learn baum-welch")
