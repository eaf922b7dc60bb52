from __future__ import annotations

from typing import Callable, Optional, Sequence, Tuple

from .catalog import Choice, FieldType, OperatorDef
from .model import NULL_SENTINEL, Rule
from .presentation import BooleanRadios, RangeInputs, RuleRow, ValueInput

__all__ = [
    "DateHook",
    "apply_value_shape",
    "restore_value",
    "extract_value",
    "radio_group_name",
    "is_present",
]

# Called with the row token and the roles of the date inputs just installed.
DateHook = Callable[[str, Tuple[str, ...]], None]

_SCALAR_SHAPES = (FieldType.NONE, FieldType.TEXT, FieldType.DATE, FieldType.SELECT)


def radio_group_name(row: RuleRow) -> str:
    return f"ruleBuilderBooleanRadio-{row.token}"


def is_present(text: Optional[str]) -> bool:
    """True for a usable range end; empty and the ``"null"`` placeholder are absent."""
    return text is not None and text != "" and text != NULL_SENTINEL


def apply_value_shape(
    row: RuleRow,
    op: Optional[OperatorDef],
    choices: Sequence[Choice] = (),
    on_dates: Optional[DateHook] = None,
) -> Optional[FieldType]:
    """Tear down the row's value slots and install the one ``op`` declares.

    Returns the installed shape, or None when nothing was installed (no
    operator, or an undeclared type).
    """
    row.clear_value_slots()
    shape = op.field_type if op is not None else None
    if shape is None:
        return None

    if shape in _SCALAR_SHAPES:
        row.value_input = ValueInput(shape=shape, choices=list(choices) if shape is FieldType.SELECT else [])
        if shape is FieldType.SELECT and row.value_input.choices:
            row.value_input.value = row.value_input.choices[0].name
        if shape is FieldType.DATE and on_dates is not None:
            on_dates(row.token, ("value",))
    elif shape is FieldType.RANGE:
        row.range_inputs = RangeInputs(dated=False)
    elif shape is FieldType.DATE_RANGE:
        row.range_inputs = RangeInputs(dated=True)
        if on_dates is not None:
            on_dates(row.token, ("start", "end"))
    elif shape is FieldType.BOOLEAN:
        row.radios = BooleanRadios(group_name=radio_group_name(row))
    return shape


def restore_value(row: RuleRow, rule: Rule) -> None:
    """Load a stored rule value into whichever slot the row currently has."""
    if row.radios is not None:
        # Unset and anything but "true" leave the false radio checked.
        row.radios.select(rule.value == "true")
        return
    if row.range_inputs is not None:
        if is_present(rule.start) and is_present(rule.end):
            row.range_inputs.start = rule.start
            row.range_inputs.end = rule.end
        return
    if row.value_input is not None:
        if row.value_input.shape is FieldType.NONE:
            return
        if rule.value is not None:
            row.value_input.set(rule.value)


def extract_value(row: RuleRow) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Read ``(value, start, end)`` from a row.

    Precedence: true radio, false radio, a complete range, the scalar
    input, then no value.
    """
    radios = row.radios
    if radios is not None and radios.true_checked:
        return "true", None, None
    if radios is not None and radios.false_checked:
        return "false", None, None
    ranged = row.range_inputs
    if ranged is not None and is_present(ranged.start) and is_present(ranged.end):
        return None, ranged.start, ranged.end
    if row.value_input is not None and row.value_input.shape is not FieldType.NONE:
        return row.value_input.value, None, None
    return None, None, None
