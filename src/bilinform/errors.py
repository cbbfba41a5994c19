"""
Errors
======

Exceptions raised for fatal precondition violations during assembly.

Expected-absent conditions (a face without a transformation, a boundary
face that is shared by two elements) are not errors and never raise.
"""


class AssemblyError(ValueError):
    """A precondition of an assembly or elimination operation was violated."""


class SparsityPatternError(AssemblyError):
    """An entry was scattered outside a fixed, precomputed sparsity pattern."""


class OrderingError(AssemblyError):
    """A dof space uses an ordering the requested operation does not support."""
