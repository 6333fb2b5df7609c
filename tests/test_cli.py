"""
Integration tests for the CLI commands.

Tests create, generate, learn, likelihood, print, draw and the error exit codes.
"""

import pytest
from typer.testing import CliRunner

from hmmkit.cli.errors import EXIT_CODES
from hmmkit.cli.main import app
from hmmkit.hmm import Hmm, InputHmm
from hmmkit.io import read_hmm, write_hmm
from hmmkit.logger import disable_file_logging


@pytest.fixture
def cli_runner():
    """Create CLI runner for testing."""
    return CliRunner()


@pytest.fixture
def sequence_file(tmp_path):
    path = tmp_path / "data.seq"
    path.write_text(
        "0; 0; 1; 1; 1; 0;\n"
        "1; 1; 1; 0; 0;\n"
        "# held out\n"
        "0; 1; 1; 0; 0; 0; 1;\n"
    )
    return path


@pytest.fixture
def model_file(tmp_path, integer_hmm):
    path = tmp_path / "model.pkl"
    with open(path, 'wb') as f:
        write_hmm(f, integer_hmm)
    return path


def sequence_lines(output):
    return [line for line in output.splitlines() if line.strip().endswith(";")]


class TestCreateCommand:

    def test_create_integer_model(self, cli_runner, tmp_path):
        output = tmp_path / "new.pkl"

        result = cli_runner.invoke(app, ["create", str(output), "--states", "3", "--opdf", "integer", "--entries", "4"])

        assert result.exit_code == 0
        with open(output, 'rb') as f:
            hmm = read_hmm(f)
        assert isinstance(hmm, Hmm)
        assert hmm.n_states == 3
        assert hmm.get_opdf(0).n_entries == 4

    def test_create_input_model(self, cli_runner, tmp_path):
        output = tmp_path / "input.pkl"

        result = cli_runner.invoke(app, [
            "create", str(output), "--states", "2", "--opdf", "gaussian", "--inputs", "left, right"
        ])

        assert result.exit_code == 0
        with open(output, 'rb') as f:
            hmm = read_hmm(f)
        assert isinstance(hmm, InputHmm)
        assert hmm.inputs == ('left', 'right')

    def test_integer_model_needs_entries(self, cli_runner, tmp_path):
        output = tmp_path / "new.pkl"

        result = cli_runner.invoke(app, ["create", str(output), "--states", "2"])

        assert result.exit_code == EXIT_CODES["invalid_argument"]
        assert not output.exists()


class TestGenerateCommand:

    def test_generate_to_stdout(self, cli_runner, model_file):
        result = cli_runner.invoke(app, ["generate", str(model_file), "-n", "3", "-l", "5", "--seed", "1"])

        assert result.exit_code == 0
        lines = sequence_lines(result.output)
        assert len(lines) == 3
        assert all(line.count(";") == 5 for line in lines)

    def test_generate_to_file(self, cli_runner, model_file, tmp_path):
        output = tmp_path / "out.seq"

        result = cli_runner.invoke(app, ["generate", str(model_file), "-n", "2", "-l", "4", "-o", str(output)])

        assert result.exit_code == 0
        assert len(output.read_text().strip().splitlines()) == 2

    def test_generate_input_pairs(self, cli_runner, tmp_path, input_hmm):
        path = tmp_path / "input.pkl"
        with open(path, 'wb') as f:
            write_hmm(f, input_hmm)

        result = cli_runner.invoke(app, ["generate", str(path), "-l", "4", "--seed", "2"])

        assert result.exit_code == 0
        line = sequence_lines(result.output)[0]
        assert line.count(":") == 4


class TestLearnCommands:

    def test_kmeans_then_baum_welch(self, cli_runner, sequence_file, tmp_path):
        initial = tmp_path / "init.pkl"
        trained = tmp_path / "trained.pkl"

        result = cli_runner.invoke(app, [
            "learn", "kmeans", str(sequence_file), str(initial),
            "--states", "2", "--opdf", "integer", "--entries", "2", "--seed", "0"
        ])
        assert result.exit_code == 0
        assert initial.exists()

        result = cli_runner.invoke(app, [
            "learn", "baum-welch", str(initial), str(sequence_file), str(trained), "--max-iter", "3"
        ])
        assert result.exit_code == 0
        assert "Training Results" in result.output

        with open(trained, 'rb') as f:
            hmm = read_hmm(f)
        assert hmm.validate_stochastic_matrices()

    def test_kmeans_input_model(self, cli_runner, tmp_path):
        sequences = tmp_path / "pairs.seq"
        sequences.write_text("a:0; b:1; a:1; b:0;\nb:1; a:1; a:0;\n")
        initial = tmp_path / "init.pkl"

        result = cli_runner.invoke(app, [
            "learn", "kmeans", str(sequences), str(initial),
            "--states", "2", "--entries", "2", "--inputs", "a,b", "--seed", "0"
        ])

        assert result.exit_code == 0
        with open(initial, 'rb') as f:
            assert isinstance(read_hmm(f), InputHmm)

    def test_malformed_sequences(self, cli_runner, model_file, tmp_path):
        bad = tmp_path / "bad.seq"
        bad.write_text("0; 1;\n0, 1;\n")

        result = cli_runner.invoke(app, ["learn", "baum-welch", str(model_file), str(bad), str(tmp_path / "o.pkl")])

        assert result.exit_code == EXIT_CODES["file_format"]

    def test_empty_sequence_file(self, cli_runner, model_file, tmp_path):
        empty = tmp_path / "empty.seq"
        empty.write_text("# nothing\n")

        result = cli_runner.invoke(app, ["learn", "baum-welch", str(model_file), str(empty), str(tmp_path / "o.pkl")])

        assert result.exit_code == EXIT_CODES["invalid_argument"]


class TestInspectionCommands:

    def test_likelihood(self, cli_runner, model_file, sequence_file):
        result = cli_runner.invoke(app, ["likelihood", str(model_file), str(sequence_file)])

        assert result.exit_code == 0
        assert "Sequence Log-Likelihoods" in result.output

    def test_print(self, cli_runner, model_file):
        result = cli_runner.invoke(app, ["print", str(model_file)])

        assert result.exit_code == 0
        assert "Integer distribution" in result.output

    def test_draw(self, cli_runner, model_file, tmp_path):
        output = tmp_path / "model.dot"

        result = cli_runner.invoke(app, ["draw", str(model_file), str(output), "--min-aij", "0.5"])

        assert result.exit_code == 0
        dot = output.read_text()
        assert dot.startswith("digraph {")
        assert "0 -> 1" not in dot

    def test_version(self, cli_runner):
        result = cli_runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "hmmkit Version" in result.output


class TestErrorHandling:

    def test_missing_model_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(app, ["print", str(tmp_path / "absent.pkl")])

        assert result.exit_code == EXIT_CODES["invalid_argument"]

    def test_not_a_model_file(self, cli_runner, tmp_path):
        path = tmp_path / "junk.pkl"
        path.write_bytes(b"junk")

        result = cli_runner.invoke(app, ["print", str(path)])

        assert result.exit_code == EXIT_CODES["model_error"]

    def test_invalid_config_file(self, cli_runner, tmp_path, model_file):
        config = tmp_path / "config.json"
        config.write_text("{ broken")

        result = cli_runner.invoke(app, ["--config", str(config), "print", str(model_file)])

        assert result.exit_code == EXIT_CODES["general_error"]


class TestGlobalOptions:

    def test_log_file(self, cli_runner, model_file, tmp_path):
        log_path = tmp_path / "hmmkit.log"
        try:
            result = cli_runner.invoke(app, [
                "--log-file", str(log_path), "draw", str(model_file), str(tmp_path / "model.dot")
            ])
        finally:
            disable_file_logging()

        assert result.exit_code == 0
        assert "Wrote dot graph" in log_path.read_text()
