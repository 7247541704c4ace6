"""
Named 2-D affine matrix.

Uses the PDF / PyMuPDF row-vector convention::

    x' = a*x + c*y + e
    y' = b*x + d*y + f
"""

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from core.exceptions import TransformError


@dataclass(frozen=True)
class AffineMatrix:
    """Six-parameter affine transform ``[a, b, c, d, e, f]``."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def identity(cls) -> "AffineMatrix":
        return cls()

    @classmethod
    def from_sequence(cls, values: Iterable[float]) -> "AffineMatrix":
        """
        Build a matrix from any 6-element sequence (list, tuple,
        ``fitz.Matrix``).

        Raises:
            TransformError: If the sequence does not hold exactly six
                numbers.
        """
        try:
            items = [float(v) for v in values]
        except (TypeError, ValueError) as e:
            raise TransformError(f"Matrix entries must be numbers: {e}") from e
        if len(items) != 6:
            raise TransformError(f"Affine matrix needs 6 entries, got {len(items)}")
        return cls(*items)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "AffineMatrix":
        """Build a matrix from a 3x3 row-vector homogeneous array."""
        return cls(
            float(arr[0, 0]),
            float(arr[0, 1]),
            float(arr[1, 0]),
            float(arr[1, 1]),
            float(arr[2, 0]),
            float(arr[2, 1]),
        )

    def as_array(self) -> np.ndarray:
        return np.array(
            [
                [self.a, self.b, 0.0],
                [self.c, self.d, 0.0],
                [self.e, self.f, 1.0],
            ],
            dtype=float,
        )

    def as_tuple(self) -> Tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.as_tuple())))

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    @property
    def is_invertible(self) -> bool:
        return self.is_finite and self.determinant != 0.0

    @property
    def translation(self) -> Tuple[float, float]:
        return (self.e, self.f)

    @property
    def first_column_norm(self) -> float:
        """
        Length of ``(a, b)``.  Rotation-invariant, so it recovers the
        scalar size of a scaled + rotated run.  Ignores shear.
        """
        return math.hypot(self.a, self.b)

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def compose(self, inner: "AffineMatrix") -> "AffineMatrix":
        """
        Return ``self ∘ inner``: the matrix that applies *inner* first,
        then *self*.
        """
        return AffineMatrix.from_array(inner.as_array() @ self.as_array())

    def inverse(self) -> "AffineMatrix":
        """
        Raises:
            TransformError: If the matrix is non-finite or singular.
        """
        if not self.is_finite:
            raise TransformError(f"Cannot invert non-finite matrix {self}")
        if self.determinant == 0.0:
            raise TransformError(f"Cannot invert singular matrix {self}")
        return AffineMatrix.from_array(np.linalg.inv(self.as_array()))

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        """Map the point ``(x, y)``."""
        return (
            self.a * x + self.c * y + self.e,
            self.b * x + self.d * y + self.f,
        )

    def __repr__(self) -> str:
        return "AffineMatrix([%s])" % ", ".join(f"{v:g}" for v in self.as_tuple())
