"""Operators and states on truncated Fock and two-level spaces.

Operators and kets are immutable values over an ordered tuple of bases.
Composite objects are ordered left to right in the order their factors are
passed to :func:`tensor` (mode ⊗ atom for the cavity models).
"""

from dataclasses import dataclass
from functools import reduce
from numbers import Number
from typing import Iterable, Tuple, Union

import numpy as np

from .errors import CompositionError, ShapeError


@dataclass(frozen=True)
class Basis:
    """A finite-dimensional Hilbert space identified by label and dimension."""
    label: str
    dim: int

    def __post_init__(self):
        if int(self.dim) < 1:
            raise ShapeError(f"basis '{self.label}' must have positive dimension", actual=(self.dim,))


def fock_basis(N: int) -> Basis:
    """Fock space truncated at photon number N (dimension N+1)."""
    return Basis("fock", int(N) + 1)


def spin_basis() -> Basis:
    """Two-level space; index 0 is the excited (up) state, index 1 the ground (down) state."""
    return Basis("spin-1/2", 2)


BasisTuple = Tuple[Basis, ...]


def _as_bases(bases) -> BasisTuple:
    if isinstance(bases, Basis):
        return (bases,)
    bases = tuple(bases)
    if not bases or not all(isinstance(b, Basis) for b in bases):
        raise CompositionError("an operator needs at least one Basis")
    return bases


def _total_dim(bases: BasisTuple) -> int:
    return int(np.prod([b.dim for b in bases]))


def _check_compatible(left: BasisTuple, right: BasisTuple, what: str) -> None:
    if left == right:
        return
    if _total_dim(left) != _total_dim(right):
        raise ShapeError(f"dimension mismatch in {what}",
                         expected=tuple(b.dim for b in left),
                         actual=tuple(b.dim for b in right))
    raise CompositionError(
        f"basis order mismatch in {what}: "
        f"{[b.label for b in left]} vs {[b.label for b in right]}")


def _frozen(data: np.ndarray) -> np.ndarray:
    data.flags.writeable = False
    return data


class Operator:
    """Square complex matrix tagged with an ordered tuple of bases."""

    __slots__ = ("bases", "data")
    __array_ufunc__ = None

    def __init__(self, bases, data):
        bases = _as_bases(bases)
        data = np.array(data, dtype=np.complex128)
        dim = _total_dim(bases)
        if data.shape != (dim, dim):
            raise ShapeError("operator matrix does not match its bases",
                             expected=(dim, dim), actual=data.shape)
        self.bases = bases
        self.data = _frozen(data)

    @classmethod
    def _wrap(cls, bases: BasisTuple, data: np.ndarray) -> "Operator":
        # Trusted construction from an array that is already validated and owned.
        op = cls.__new__(cls)
        op.bases = bases
        op.data = _frozen(data)
        return op

    @property
    def dims(self) -> Tuple[int, ...]:
        return tuple(b.dim for b in self.bases)

    @property
    def dim(self) -> int:
        return self.data.shape[0]

    def dag(self) -> "Operator":
        """Conjugate transpose."""
        return Operator._wrap(self.bases, self.data.conj().T.copy())

    def trace(self) -> complex:
        return complex(np.trace(self.data))

    def tensor(self, other: "Operator") -> "Operator":
        return tensor(self, other)

    def expect(self, state: Union["Ket", "Operator"]) -> complex:
        return expect(self, state)

    def __add__(self, other):
        if not isinstance(other, Operator):
            return NotImplemented
        _check_compatible(self.bases, other.bases, "operator sum")
        return Operator._wrap(self.bases, self.data + other.data)

    def __sub__(self, other):
        if not isinstance(other, Operator):
            return NotImplemented
        _check_compatible(self.bases, other.bases, "operator difference")
        return Operator._wrap(self.bases, self.data - other.data)

    def __neg__(self):
        return Operator._wrap(self.bases, -self.data)

    def __mul__(self, other):
        if isinstance(other, Number):
            return Operator._wrap(self.bases, self.data * complex(other))
        return self.__matmul__(other)

    def __rmul__(self, other):
        if isinstance(other, Number):
            return Operator._wrap(self.bases, complex(other) * self.data)
        return NotImplemented

    def __truediv__(self, other):
        if isinstance(other, Number):
            return Operator._wrap(self.bases, self.data / complex(other))
        return NotImplemented

    def __matmul__(self, other):
        if isinstance(other, Operator):
            _check_compatible(self.bases, other.bases, "operator product")
            return Operator._wrap(self.bases, self.data @ other.data)
        if isinstance(other, Ket):
            _check_compatible(self.bases, other.bases, "operator application")
            return Ket._wrap(self.bases, self.data @ other.data)
        return NotImplemented

    def __repr__(self):
        labels = " ⊗ ".join(f"{b.label}[{b.dim}]" for b in self.bases)
        return f"Operator({labels})"


class Ket:
    """State vector over an ordered tuple of bases."""

    __slots__ = ("bases", "data")
    __array_ufunc__ = None

    def __init__(self, bases, data):
        bases = _as_bases(bases)
        data = np.array(data, dtype=np.complex128).reshape(-1)
        dim = _total_dim(bases)
        if data.shape != (dim,):
            raise ShapeError("ket does not match its bases", expected=(dim,), actual=data.shape)
        self.bases = bases
        self.data = _frozen(data)

    @classmethod
    def _wrap(cls, bases: BasisTuple, data: np.ndarray) -> "Ket":
        ket = cls.__new__(cls)
        ket.bases = bases
        ket.data = _frozen(data)
        return ket

    @property
    def dims(self) -> Tuple[int, ...]:
        return tuple(b.dim for b in self.bases)

    def norm(self) -> float:
        return float(np.linalg.norm(self.data))

    def to_density(self) -> Operator:
        """Projector |ψ⟩⟨ψ|."""
        return Operator._wrap(self.bases, np.outer(self.data, self.data.conj()))

    def tensor(self, other: "Ket") -> "Ket":
        return tensor(self, other)

    def __repr__(self):
        labels = " ⊗ ".join(f"{b.label}[{b.dim}]" for b in self.bases)
        return f"Ket({labels})"


def tensor(*items: Union[Operator, Ket]) -> Union[Operator, Ket]:
    """Tensor product of operators (or of kets), ordered left to right."""
    if len(items) == 1 and isinstance(items[0], (list, tuple)):
        items = tuple(items[0])
    if not items:
        raise CompositionError("tensor product of nothing")
    kind = type(items[0])
    if kind not in (Operator, Ket) or any(type(x) is not kind for x in items):
        raise CompositionError("tensor product mixes kets and operators")
    bases = tuple(b for x in items for b in x.bases)
    data = reduce(np.kron, (x.data for x in items))
    return kind._wrap(bases, data)


def expect(op: Operator, state: Union[Ket, Operator]) -> complex:
    """⟨ψ|O|ψ⟩ for a ket, Tr(Oρ) for a density operator."""
    if isinstance(state, Ket):
        _check_compatible(op.bases, state.bases, "expectation value")
        return complex(np.vdot(state.data, op.data @ state.data))
    if isinstance(state, Operator):
        _check_compatible(op.bases, state.bases, "expectation value")
        # Tr(AB) without forming the product
        return complex(np.sum(op.data * state.data.T))
    raise TypeError(f"cannot take an expectation value in {type(state).__name__}")


def density(state: Union[Ket, Operator]) -> Operator:
    """Promote a ket to a density operator; density operators pass through."""
    if isinstance(state, Ket):
        return state.to_density()
    if isinstance(state, Operator):
        return state
    raise TypeError(f"not a quantum state: {type(state).__name__}")


# -- single-space operators --------------------------------------------------

def identity(basis: Basis) -> Operator:
    return Operator._wrap((basis,), np.eye(basis.dim, dtype=np.complex128))


def destroy(basis: Basis) -> Operator:
    """Truncated annihilation operator, a|n⟩ = √n |n-1⟩."""
    data = np.diag(np.sqrt(np.arange(1, basis.dim, dtype=np.float64)), k=1)
    return Operator._wrap((basis,), data.astype(np.complex128))


def create(basis: Basis) -> Operator:
    return destroy(basis).dag()


def number(basis: Basis) -> Operator:
    return Operator._wrap((basis,), np.diag(np.arange(basis.dim, dtype=np.complex128)))


def _require_two_level(basis: Basis) -> None:
    if basis.dim != 2:
        raise ShapeError(f"'{basis.label}' is not a two-level space", expected=(2,), actual=(basis.dim,))


def sigma_minus(basis: Basis) -> Operator:
    """Lowering operator |down⟩⟨up|."""
    _require_two_level(basis)
    data = np.zeros((2, 2), dtype=np.complex128)
    data[1, 0] = 1.0
    return Operator._wrap((basis,), data)


def sigma_plus(basis: Basis) -> Operator:
    return sigma_minus(basis).dag()


def sigma_z(basis: Basis) -> Operator:
    _require_two_level(basis)
    return Operator._wrap((basis,), np.diag([1.0, -1.0]).astype(np.complex128))


def commutator_residual(basis: Basis) -> Operator:
    """a a† − a† a − I on the truncated space.

    Zero everywhere except the last diagonal entry, which equals −(N+1):
    the truncation removes the |N+1⟩ component that a† would create.
    """
    a = destroy(basis)
    ad = create(basis)
    return a @ ad - ad @ a - identity(basis)


# -- states ------------------------------------------------------------------

def basis_state(basis: Basis, index: int) -> Ket:
    if not 0 <= index < basis.dim:
        raise ShapeError(f"index {index} outside '{basis.label}'", expected=(basis.dim,), actual=(index,))
    data = np.zeros(basis.dim, dtype=np.complex128)
    data[index] = 1.0
    return Ket._wrap((basis,), data)


def fock_state(basis: Basis, n: int) -> Ket:
    return basis_state(basis, n)


def spin_up(basis: Basis) -> Ket:
    _require_two_level(basis)
    return basis_state(basis, 0)


def spin_down(basis: Basis) -> Ket:
    _require_two_level(basis)
    return basis_state(basis, 1)


def as_matrices(ops: Iterable[Operator], bases: BasisTuple) -> Tuple[np.ndarray, ...]:
    """Raw matrices of `ops`, checking each lives on `bases`."""
    out = []
    for op in ops:
        _check_compatible(bases, op.bases, "generator")
        out.append(op.data)
    return tuple(out)
