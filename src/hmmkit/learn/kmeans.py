"""
K-Means clustering and K-Means based HMM initialization.

Observations of all training sequences are pooled and split into one
cluster per state with Lloyd's algorithm, using incremental centroid
updates. Seeds are chosen by farthest-point selection from a random first
seed and every cluster starts with its seed.

Empty clusters: an observation is never moved out of a cluster it is the
last member of, so no cluster ever becomes empty. Asking for more clusters
than there are observations is an InvalidArgumentError.
"""

from typing import List, Optional, Sequence

import numpy as np

from ..config import get_config
from ..hmm import Hmm
from ..opdf import OpdfFactory
from ..observations import Centroid
from ..exceptions import InvalidArgumentError
from ..logger import get_logger

logger = get_logger(__name__)


class KMeansCalculator:
    """
    Partition observations into ``k`` clusters.

    Observations must provide ``factor()`` returning a Centroid.
    """

    def __init__(self,
                 k: int,
                 observations: Sequence,
                 seed: Optional[int] = None,
                 max_iterations: Optional[int] = None):
        """
        Args:
            k: Number of clusters
            observations: Observations to cluster
            seed: Random seed for the first cluster seed (default: config 'kmeans.random_seed')
            max_iterations: Reassignment pass cap for ``run`` (default: config 'kmeans.max_iterations')

        Raises:
            InvalidArgumentError: If k is not positive or exceeds the number of observations
        """
        observations = list(observations)
        if k <= 0:
            raise InvalidArgumentError("Number of clusters must be strictly positive")
        if len(observations) < k:
            raise InvalidArgumentError(
                f"Cannot build {k} clusters from {len(observations)} observations"
            )

        if seed is None:
            seed = get_config('kmeans', 'random_seed')
        if max_iterations is None:
            max_iterations = get_config('kmeans', 'max_iterations')

        self.k = k
        self.max_iterations = max_iterations
        self.iterations = 0
        self.converged = False
        self._observations = observations
        self._rng = np.random.default_rng(seed)

        self._initialize()

    def _distances(self, observation) -> np.ndarray:
        return np.array([centroid.distance(observation) for centroid in self._centroids])

    def _initialize(self) -> None:
        n = len(self._observations)
        seeds = [int(self._rng.integers(n))]
        self._centroids: List[Centroid] = [self._observations[seeds[0]].factor()]

        nearest = np.array([self._centroids[0].distance(o) for o in self._observations])
        while len(seeds) < self.k:
            candidates = nearest.copy()
            candidates[seeds] = -1.0
            seed = int(np.argmax(candidates))
            seeds.append(seed)

            centroid = self._observations[seed].factor()
            self._centroids.append(centroid)
            nearest = np.minimum(nearest, [centroid.distance(o) for o in self._observations])

        self._labels = np.full(n, -1, dtype=int)
        self._clusters: List[List[int]] = [[seed] for seed in seeds]
        for c, seed in enumerate(seeds):
            self._labels[seed] = c

        for idx, observation in enumerate(self._observations):
            if self._labels[idx] >= 0:
                continue
            c = int(np.argmin(self._distances(observation)))
            self._centroids[c].reevaluate_add(observation, self._clusters[c])
            self._clusters[c].append(idx)
            self._labels[idx] = c

    def iterate(self) -> int:
        """
        One reassignment pass.

        Returns:
            Number of observations that changed cluster
        """
        moved = 0
        for idx, observation in enumerate(self._observations):
            current = self._labels[idx]
            distances = self._distances(observation)
            best = int(np.argmin(distances))

            if best == current or distances[best] >= distances[current]:
                continue
            if len(self._clusters[current]) <= 1:
                continue  # never empty a cluster

            self._centroids[current].reevaluate_remove(observation, self._clusters[current])
            self._clusters[current].remove(idx)
            self._centroids[best].reevaluate_add(observation, self._clusters[best])
            self._clusters[best].append(idx)
            self._labels[idx] = best
            moved += 1

        self.iterations += 1
        return moved

    def run(self) -> 'KMeansCalculator':
        """Iterate until no observation moves or ``max_iterations`` passes are done."""
        while self.iterations < self.max_iterations:
            moved = self.iterate()
            logger.debug(f"K-Means pass {self.iterations}: {moved} observations moved")
            if moved == 0:
                self.converged = True
                break

        if not self.converged:
            logger.warning(f"K-Means stopped after {self.iterations} passes without stabilizing")

        return self

    def labels(self) -> np.ndarray:
        """Cluster number of each observation, in input order."""
        return self._labels.copy()

    def cluster(self, index: int) -> List:
        return [self._observations[idx] for idx in self._clusters[index]]

    def clusters(self) -> List[List]:
        return [self.cluster(c) for c in range(self.k)]

    def centroids(self) -> List[Centroid]:
        return list(self._centroids)


class KMeansLearner:
    """
    Build an initial Hmm from K-Means clusters.

    Each cluster becomes a state: its Opdf is fit on the cluster members, the
    initial probabilities are the frequencies of the clusters of first
    observations, and transitions are the empirical cluster-to-cluster
    frequencies along the sequences. A state that is never left gets a uniform
    transition row.
    """

    def __init__(self,
                 n_states: int,
                 opdf_factory: OpdfFactory,
                 sequences: Sequence[Sequence],
                 seed: Optional[int] = None,
                 max_iterations: Optional[int] = None):
        sequences = [list(sequence) for sequence in sequences]
        if not sequences or any(len(sequence) == 0 for sequence in sequences):
            raise InvalidArgumentError("K-Means needs non-empty observation sequences")

        self.n_states = n_states
        self.opdf_factory = opdf_factory
        self._lengths = [len(sequence) for sequence in sequences]
        flat = [o for sequence in sequences for o in sequence]
        self.calculator = KMeansCalculator(n_states, flat, seed=seed, max_iterations=max_iterations)

    def iterate(self) -> Hmm:
        """One K-Means pass, then the corresponding model."""
        self.calculator.iterate()
        return self.build_hmm()

    def learn(self) -> Hmm:
        """Run K-Means until clusters are stable, then build the model."""
        self.calculator.run()
        logger.info(f"K-Means finished after {self.calculator.iterations} passes "
                    f"(converged={self.calculator.converged})")
        return self.build_hmm()

    def build_hmm(self) -> Hmm:
        n = self.n_states
        labels = self.calculator.labels()

        opdfs = []
        for c in range(n):
            opdf = self.opdf_factory.factor()
            opdf.fit(self.calculator.cluster(c))
            opdfs.append(opdf)

        pi = np.zeros(n)
        counts = np.zeros((n, n))
        start = 0
        for length in self._lengths:
            state_sequence = labels[start:start + length]
            pi[state_sequence[0]] += 1
            np.add.at(counts, (state_sequence[:-1], state_sequence[1:]), 1)
            start += length

        pi /= pi.sum()
        row_sums = counts.sum(axis=1, keepdims=True)
        A = np.where(row_sums > 0, counts / np.where(row_sums > 0, row_sums, 1), 1.0 / n)

        return Hmm(pi, A, opdfs)
