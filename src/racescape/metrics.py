"""Information-theoretic diversity and segregation measures (base-2 logarithms)."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from racescape.errors import InvalidParameter


@dataclass(frozen=True)
class InformationMetrics:
    """Entropy-based statistics of a joint distribution, in bits."""

    ent: float
    joinent: float
    condent: float
    mutinf: float

    def as_dict(self) -> dict[str, float]:
        return {
            "ent": self.ent,
            "joinent": self.joinent,
            "condent": self.condent,
            "mutinf": self.mutinf,
        }


def _as_joint(table: np.ndarray) -> np.ndarray:
    """Validate a joint table and normalize it to sum to one."""
    joint = np.asarray(table, dtype=np.float64)
    if joint.ndim != 2:
        raise InvalidParameter("Joint distribution must be a 2-D table.")
    if np.any(np.isnan(joint)) or np.any(joint < 0):
        raise InvalidParameter("Joint distribution must be non-negative.")
    total = joint.sum()
    if total <= 0:
        raise InvalidParameter("Joint distribution must have positive mass.")
    return joint / total


def entropy(p: np.ndarray) -> float:
    """Shannon entropy ``-sum p log2 p`` with ``0 log 0 = 0``."""
    probabilities = np.asarray(p, dtype=np.float64).ravel()
    probabilities = probabilities[probabilities > 0]
    if probabilities.size == 0:
        return 0.0
    return max(0.0, float(-np.sum(probabilities * np.log2(probabilities))))


def joint_entropy(table: np.ndarray) -> float:
    return entropy(_as_joint(table))


def conditional_entropy(table: np.ndarray) -> float:
    """H(row | column) = H(row, column) - H(column)."""
    joint = _as_joint(table)
    return max(0.0, entropy(joint) - entropy(joint.sum(axis=0)))


def mutual_information(table: np.ndarray) -> float:
    return information_metrics(table).mutinf


def information_metrics(table: np.ndarray) -> InformationMetrics:
    """Compute ent, joinent, condent and mutinf of a joint table.

    Rows are the realized category and columns the neighbourhood class. Float
    noise is clamped so that ``0 <= mutinf <= ent``; ``mutinf`` is 0 when the
    extent holds a single category.
    """
    joint = _as_joint(table)
    ent = entropy(joint.sum(axis=1))
    joinent = entropy(joint)
    condent = min(ent, max(0.0, joinent - entropy(joint.sum(axis=0))))
    mutinf = 0.0 if ent == 0.0 else max(0.0, ent - condent)
    return InformationMetrics(ent=ent, joinent=joinent, condent=condent, mutinf=mutinf)
