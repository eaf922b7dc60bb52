"""Condition tree model, materializer, collector and edit operations."""

from .catalog import Choice, FieldCatalog, FieldDef, FieldType, OperatorDef, load_catalog  # noqa: F401
from .collector import collect  # noqa: F401
from .materializer import Materializer, materialize  # noqa: F401
from .model import Group, GroupOperator, Rule, TreeModel  # noqa: F401
from .presentation import NodeKind, PresentationTree  # noqa: F401
from .session import ConditionsBuilder  # noqa: F401

__all__ = [
    "Choice",
    "ConditionsBuilder",
    "FieldCatalog",
    "FieldDef",
    "FieldType",
    "Group",
    "GroupOperator",
    "Materializer",
    "NodeKind",
    "OperatorDef",
    "PresentationTree",
    "Rule",
    "TreeModel",
    "collect",
    "load_catalog",
    "materialize",
]
