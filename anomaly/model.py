"""
Outlier Model Strategy

Pluggable trainer/scorer behind a two-method interface so that detection
policy (thresholds, retrain cadence, features) is independent of the
algorithm.

DESIGN RULES:
- fit() returns a new fitted model, never mutates a previous one
- score() is pure; more negative means more anomalous
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

import numpy as np
from sklearn.ensemble import IsolationForest

from anomaly.features import FEATURE_COUNT


class OutlierModel(ABC):
    """
    Abstract outlier scoring strategy.

    Implementations:
    - IsolationForestModel (default)
    """

    @abstractmethod
    def fit(self, vectors: Sequence[Sequence[float]]) -> Any:
        """Train on feature vectors and return the fitted model."""
        pass

    @abstractmethod
    def score(self, fitted: Any, vector: Sequence[float]) -> float:
        """Score one feature vector against a fitted model."""
        pass


class IsolationForestModel(OutlierModel):
    """
    scikit-learn isolation forest.

    The score is IsolationForest.score_samples: the negated isolation score,
    in [-1, 0]. Values near -1 are isolated in very few splits.
    """

    def __init__(
        self,
        tree_count: int = 100,
        sample_size: int = 256,
        contamination: float = 0.1,
        random_state: Optional[int] = None,
    ):
        self.tree_count = tree_count
        self.sample_size = sample_size
        self.contamination = contamination
        self.random_state = random_state

    def fit(self, vectors: Sequence[Sequence[float]]) -> IsolationForest:
        data = _as_matrix(vectors)
        forest = IsolationForest(
            n_estimators=self.tree_count,
            max_samples=min(self.sample_size, data.shape[0]),
            contamination=self.contamination,
            random_state=self.random_state,
        )
        forest.fit(data)
        return forest

    def score(self, fitted: IsolationForest, vector: Sequence[float]) -> float:
        data = _as_matrix([vector])
        return float(fitted.score_samples(data)[0])


def _as_matrix(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    data = np.asarray(vectors, dtype=float)
    if data.ndim != 2 or data.shape[1] != FEATURE_COUNT:
        raise ValueError(
            f"expected feature vectors of length {FEATURE_COUNT}, got shape {data.shape}"
        )
    if data.shape[0] == 0:
        raise ValueError("no feature vectors")
    if not np.all(np.isfinite(data)):
        raise ValueError("feature vectors contain non-finite values")
    return data
