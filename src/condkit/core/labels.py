from __future__ import annotations

import enum
from typing import Dict, Mapping, Optional


class MessageKey(str, enum.Enum):
    """Identifiers of every user-facing string the editor shows.

    Presentation nodes only carry these keys; the text is looked up by the
    renderer through a :class:`LabelProvider`.
    """

    SUB_CONDITION = "subCondition"
    ENTIRE_CONDITION = "entireCondition"
    BOOLEAN_TRUE = "booleanTrue"
    BOOLEAN_FALSE = "booleanFalse"
    ADD_OR = "addOrCondition"
    ADD_AND = "addAndCondition"
    AND_DIVIDER = "andDivider"
    MATCH = "match"
    OF = "of"
    OF_THE_FOLLOWING = "ofTheFollowing"
    RANGE_AND = "rangeAnd"
    MATCH_ALL = "matchAll"
    MATCH_ANY = "matchAny"
    MATCH_NONE = "matchNone"
    REMOVE_ROW = "removeRow"


DEFAULT_MESSAGES: Dict[str, str] = {
    MessageKey.SUB_CONDITION.value: "Add Sub-Condition",
    MessageKey.ENTIRE_CONDITION.value: "Remove Entire Condition",
    MessageKey.BOOLEAN_TRUE.value: "True",
    MessageKey.BOOLEAN_FALSE.value: "False",
    MessageKey.ADD_OR.value: "Add Or Condition",
    MessageKey.ADD_AND.value: "Add And Condition",
    MessageKey.AND_DIVIDER.value: "AND",
    MessageKey.MATCH.value: "Match",
    MessageKey.OF.value: "of",
    MessageKey.OF_THE_FOLLOWING.value: "of the following rules:",
    MessageKey.RANGE_AND.value: "and",
    MessageKey.MATCH_ALL.value: "All",
    MessageKey.MATCH_ANY.value: "Any",
    MessageKey.MATCH_NONE.value: "None",
    MessageKey.REMOVE_ROW.value: "Remove",
}


class LabelProvider:
    """String table lookup with built-in English fallbacks."""

    def __init__(self, table: Optional[Mapping[str, str]] = None) -> None:
        self._table: Dict[str, str] = dict(DEFAULT_MESSAGES)
        if table:
            self._table.update({str(k): str(v) for k, v in table.items() if v is not None})

    def get(self, key: MessageKey | str) -> str:
        ident = key.value if isinstance(key, MessageKey) else str(key)
        return self._table.get(ident, ident)

    def __call__(self, key: MessageKey | str) -> str:
        return self.get(key)

    def override(self, key: MessageKey | str, text: str) -> None:
        ident = key.value if isinstance(key, MessageKey) else str(key)
        self._table[ident] = text
