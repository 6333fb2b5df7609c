"""
Graphviz ``dot`` export of Hidden Markov Models.

``dot -Tpng -o model.png model.dot`` renders the output.
"""

from pathlib import Path
from typing import List, Optional, TextIO, Union

from ..config import get_config
from ..hmm import Hmm, HmmBase, InputHmm
from ..logger import get_logger

logger = get_logger(__name__)


class HmmDrawerDot:
    """
    Converts an ``Hmm`` to a dot digraph.

    Transitions below ``minimum_aij`` are omitted. States whose initial
    probability reaches ``minimum_pi`` are drawn as double circles with their
    pi value.
    """

    def __init__(self,
                 minimum_aij: Optional[float] = None,
                 minimum_pi: Optional[float] = None,
                 decimals: Optional[int] = None):
        self.minimum_aij = minimum_aij if minimum_aij is not None else get_config('draw', 'minimum_aij')
        self.minimum_pi = minimum_pi if minimum_pi is not None else get_config('draw', 'minimum_pi')
        self.decimals = decimals if decimals is not None else get_config('draw', 'decimals')

    def format_probability(self, p: float) -> str:
        return f"{p:.{self.decimals}f}"

    def transitions(self, hmm: Hmm) -> List[str]:
        lines = []
        for i in range(hmm.n_states):
            for j in range(hmm.n_states):
                aij = hmm.get_aij(i, j)
                if aij >= self.minimum_aij:
                    lines.append(f"\t{i} -> {j} [label={self.format_probability(aij)}];")
        return lines

    def opdf_label(self, hmm: HmmBase, state: int) -> str:
        return f"[ {hmm.get_opdf(state).to_string(self.decimals)} ]"

    def states(self, hmm: HmmBase) -> List[str]:
        lines = []
        for i in range(hmm.n_states):
            pi = hmm.get_pi(i)
            if pi >= self.minimum_pi:
                label = f"{i} - Pi= {self.format_probability(pi)} - {self.opdf_label(hmm, i)}"
                lines.append(f"\t{i} [shape=doublecircle, label=\"{label}\"];")
            else:
                lines.append(f"\t{i} [shape=circle, label=\"{i} - {self.opdf_label(hmm, i)}\"];")
        return lines

    def to_dot(self, hmm: HmmBase) -> str:
        lines = ["digraph {"]
        lines.extend(self.transitions(hmm))
        lines.extend(self.states(hmm))
        lines.append("}")
        return "\n".join(lines) + "\n"

    def write(self, hmm: HmmBase, stream: TextIO) -> None:
        stream.write(self.to_dot(hmm))

    def write_file(self, hmm: HmmBase, path: Union[str, Path]) -> None:
        with open(path, 'w', encoding='utf-8') as f:
            self.write(hmm, f)
        logger.info(f"Wrote dot graph to {path}")


class InputHmmDrawerDot(HmmDrawerDot):
    """Dot export of an ``InputHmm``; one edge per (transition, input) above threshold."""

    def transitions(self, hmm: InputHmm) -> List[str]:
        lines = []
        for i in range(hmm.n_states):
            for k, value in enumerate(hmm.inputs):
                for j in range(hmm.n_states):
                    aixj = float(hmm.A[i, k, j])
                    if aixj >= self.minimum_aij:
                        label = f"{value}: {self.format_probability(aixj)}"
                        lines.append(f"\t{i} -> {j} [label=\"{label}\"];")
        return lines

    def opdf_label(self, hmm: InputHmm, state: int) -> str:
        if not hmm.emission_per_input:
            return super().opdf_label(hmm, state)
        parts = [f"{value}: {hmm.opdfs[state][k].to_string(self.decimals)}" for k, value in enumerate(hmm.inputs)]
        return "[ " + " | ".join(parts) + " ]"
