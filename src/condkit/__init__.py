"""condkit: visual boolean condition builder."""

from .builder import ConditionsBuilder, FieldCatalog, TreeModel, collect, materialize  # noqa: F401

__version__ = "0.1.0"

__all__ = ["ConditionsBuilder", "FieldCatalog", "TreeModel", "collect", "materialize", "__version__"]
