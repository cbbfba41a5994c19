"""
Vector Degrees of Freedom
=========================

Explicit (index, sign) representation of oriented dof references.

Dof providers that speak the compact integer encoding (a negative value v
stands for dof -1-v with its sign flipped) are decoded once, at the point
where a list enters the assembly layer, into a VdofList.
"""

import numpy as np
from typing import Iterable, Union


class VdofList:
    """
    Ordered list of global dof references with orientation signs.

    Attributes:
        indices: shape (n,), non-negative global dof indices
        signs: shape (n,), +1.0 or -1.0
    """

    __slots__ = ("indices", "signs")

    def __init__(self, indices: Iterable[int], signs: Iterable[float] = None):
        self.indices = np.asarray(indices, dtype=np.int64).ravel()
        if signs is None:
            self.signs = np.ones(len(self.indices))
        else:
            self.signs = np.asarray(signs, dtype=np.float64).ravel()

        if len(self.signs) != len(self.indices):
            raise ValueError(f"got {len(self.indices)} indices but {len(self.signs)} signs")
        if np.any(self.indices < 0):
            raise ValueError("vdof indices must be non-negative; use from_encoded "
                             "for sign-encoded lists")
        if not np.all(np.abs(self.signs) == 1.0):
            raise ValueError("vdof signs must be +1 or -1")

    @classmethod
    def from_encoded(cls, encoded: Iterable[int]) -> 'VdofList':
        """Decode the compact form: v >= 0 is (v, +1), v < 0 is (-1-v, -1)."""
        encoded = np.asarray(encoded, dtype=np.int64).ravel()
        negative = encoded < 0
        indices = np.where(negative, -1 - encoded, encoded)
        signs = np.where(negative, -1.0, 1.0)
        return cls(indices, signs)

    def encoded(self) -> np.ndarray:
        """Compact integer form of this list."""
        return np.where(self.signs < 0, -1 - self.indices, self.indices)

    @property
    def has_flips(self) -> bool:
        return bool(np.any(self.signs < 0))

    def concatenate(self, other: 'VdofList') -> 'VdofList':
        return VdofList(np.concatenate([self.indices, other.indices]),
                        np.concatenate([self.signs, other.signs]))

    def __len__(self) -> int:
        return len(self.indices)

    def __eq__(self, other) -> bool:
        if not isinstance(other, VdofList):
            return NotImplemented
        return (np.array_equal(self.indices, other.indices)
                and np.array_equal(self.signs, other.signs))

    def __repr__(self) -> str:
        return f"VdofList({self.encoded().tolist()})"


def decode_vdofs(vdofs: Union[VdofList, Iterable[int]]) -> VdofList:
    """Return vdofs as a VdofList, decoding the compact integer form if needed."""
    if isinstance(vdofs, VdofList):
        return vdofs
    return VdofList.from_encoded(vdofs)
