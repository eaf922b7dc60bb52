from __future__ import annotations

from typing import Any, Dict, Optional

from PySide6.QtCore import QDate, Qt, Signal  # type: ignore[import-not-found]
from PySide6.QtWidgets import (  # type: ignore[import-not-found]
    QButtonGroup,
    QComboBox,
    QDateEdit,
    QDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QRadioButton,
    QVBoxLayout,
    QWidget,
)

from ..builder.catalog import FieldType
from ..builder.presentation import MATCH_VALUES, NodeKind, PresentationNode, RuleRow
from ..builder.session import ConditionsBuilder
from ..core.events import CONDITIONS_CHANGED
from ..core.labels import MessageKey

_DATE_FORMAT = "yyyy-MM-dd"

# Actions after which the widget tree is rebuilt; plain value edits are not
# in here so the focused input survives typing.
_STRUCTURAL_ACTIONS = {
    "add_nested_condition",
    "add_alternative_rule",
    "add_top_level_group",
    "remove_node",
    "change_field",
    "change_operator",
    "reload",
}


class ConditionsBuilderWidget(QWidget):
    """Qt projection of a :class:`ConditionsBuilder` presentation tree.

    The widget owns no state of its own: it renders the session's tree and
    forwards every user action to the session, then re-renders when the
    session reports a structural change.
    """

    conditionsChanged = Signal()

    def __init__(self, builder: ConditionsBuilder, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._builder = builder
        self._labels = builder.labels
        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(0, 0, 0, 0)

        self.error_label = QLabel("")
        self.error_label.setObjectName("errorLabel")
        self.error_label.setStyleSheet("color:#c66;font-size:11px;")
        self.error_label.setVisible(builder.error is not None)
        if builder.error is not None:
            self.error_label.setText(str(builder.error))
        self._layout.addWidget(self.error_label)

        self._body: Optional[QWidget] = None
        self._retired: list = []
        bus = self._builder.event_bus
        handler = self._on_conditions_changed
        bus.subscribe(CONDITIONS_CHANGED, handler)
        # Must not touch self: the C++ side is already gone when this fires.
        self.destroyed.connect(lambda *_: bus.unsubscribe(CONDITIONS_CHANGED, handler))
        self.rebuild()

    @property
    def builder(self) -> ConditionsBuilder:
        return self._builder

    def collected(self) -> Dict[str, Any]:
        return self._builder.to_dict()

    def detach(self) -> None:
        """Stop following the session's change events."""
        self._builder.event_bus.unsubscribe(CONDITIONS_CHANGED, self._on_conditions_changed)

    def closeEvent(self, event) -> None:  # pragma: no cover - GUI interaction
        self.detach()
        super().closeEvent(event)

    # --- rendering ---------------------------------------------------------
    def rebuild(self) -> None:
        if self._body is not None:
            # Usually called from a signal of a widget inside the old body, so
            # the old body is kept referenced until Qt deletes it later.
            retired = self._body
            self._layout.removeWidget(retired)
            retired.hide()
            retired.setParent(None)
            retired.deleteLater()
            self._retired = [retired]
        body = QWidget()
        body_layout = QVBoxLayout(body)
        body_layout.setContentsMargins(0, 0, 0, 0)
        tree = self._builder.tree
        for child in tree.children_of(tree.root):
            body_layout.addWidget(self._render(child))
        body_layout.addStretch(1)
        self._body = body
        self._layout.addWidget(body, stretch=1)

    def _render(self, node: PresentationNode) -> QWidget:
        if node.kind is NodeKind.CONDITIONAL:
            return self._render_frame(node)
        if node.kind is NodeKind.RULE:
            return self._render_rule(node)
        if node.kind is NodeKind.AND_DIVIDER:
            divider = QLabel(self._labels.get(MessageKey.AND_DIVIDER))
            divider.setObjectName("andDivider")
            divider.setAlignment(Qt.AlignmentFlag.AlignCenter)
            return divider
        if node.kind is NodeKind.ADD_AND:
            button = QPushButton(self._labels.get(MessageKey.ADD_AND))
            button.setObjectName("addAndButton")
            button.clicked.connect(lambda: self._builder.add_top_level_group())
            return button
        if node.kind is NodeKind.ADD_OR:
            parent_key = node.parent
            button = QPushButton(self._labels.get(MessageKey.ADD_OR))
            button.setObjectName("addOrButton")
            button.clicked.connect(lambda: self._builder.add_alternative_rule(parent_key))
            return button
        return QWidget()

    def _render_frame(self, node: PresentationNode) -> QWidget:
        frame_state = node.frame
        box = QFrame()
        box.setObjectName("conditionalFrame")
        box.setFrameShape(QFrame.Shape.StyledPanel)
        layout = QVBoxLayout(box)

        header = QHBoxLayout()
        header.addWidget(QLabel(self._labels.get(MessageKey.MATCH)))
        if frame_state is not None and frame_state.quantity is not None:
            qty_edit = QLineEdit(frame_state.quantity)
            qty_edit.setObjectName("quantityEdit")
            qty_edit.setMaximumWidth(48)
            qty_edit.textEdited.connect(lambda text, key=node.key: self._builder.set_quantity(key, text))
            header.addWidget(qty_edit)
            header.addWidget(QLabel(self._labels.get(MessageKey.OF)))
        match_combo = QComboBox()
        match_combo.setObjectName("matchSelect")
        for value, label_key in MATCH_VALUES:
            match_combo.addItem(self._labels.get(label_key), value)
        if frame_state is not None:
            idx = match_combo.findData(frame_state.match)
            if idx != -1:
                match_combo.setCurrentIndex(idx)
        match_combo.currentIndexChanged.connect(
            lambda _i, key=node.key, combo=match_combo: self._builder.set_match(key, combo.currentData())
        )
        header.addWidget(match_combo)
        header.addWidget(QLabel(self._labels.get(MessageKey.OF_THE_FOLLOWING)))
        header.addStretch(1)

        sub_btn = QPushButton(self._labels.get(MessageKey.SUB_CONDITION))
        sub_btn.setObjectName("subConditionButton")
        sub_btn.clicked.connect(lambda: self._builder.add_nested_condition(node.key))
        header.addWidget(sub_btn)
        if frame_state is not None and frame_state.removable:
            remove_btn = QPushButton(self._labels.get(MessageKey.ENTIRE_CONDITION))
            remove_btn.setObjectName("removeConditionButton")
            remove_btn.clicked.connect(lambda: self._builder.remove_node(node.key))
            header.addWidget(remove_btn)
        layout.addLayout(header)

        for child in self._builder.tree.children_of(node.key):
            layout.addWidget(self._render(child))
        return box

    def _render_rule(self, node: PresentationNode) -> QWidget:
        row = node.row or RuleRow()
        key = node.key
        container = QWidget()
        container.setObjectName("ruleRow")
        layout = QHBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)

        field_combo = QComboBox()
        field_combo.setObjectName("fieldSelect")
        for name, label in row.field_options:
            field_combo.addItem(label, name)
        idx = field_combo.findData(row.field)
        if idx != -1:
            field_combo.setCurrentIndex(idx)
        field_combo.currentIndexChanged.connect(
            lambda _i, combo=field_combo: self._builder.change_field(key, combo.currentData())
        )
        layout.addWidget(field_combo)

        op_combo = QComboBox()
        op_combo.setObjectName("operatorSelect")
        for name, label, _shape in row.operator_options:
            op_combo.addItem(label, name)
        idx = op_combo.findData(row.operator)
        if idx != -1:
            op_combo.setCurrentIndex(idx)
        op_combo.currentIndexChanged.connect(
            lambda _i, combo=op_combo: self._builder.change_operator(key, combo.currentData())
        )
        layout.addWidget(op_combo)

        value_widget = self._render_value(key, row)
        if value_widget is not None:
            layout.addWidget(value_widget, stretch=1)
        else:
            layout.addStretch(1)

        remove_btn = QPushButton(self._labels.get(MessageKey.REMOVE_ROW))
        remove_btn.setObjectName("removeRowButton")
        remove_btn.clicked.connect(lambda: self._builder.remove_node(key))
        layout.addWidget(remove_btn)
        return container

    def _render_value(self, key: int, row: RuleRow) -> Optional[QWidget]:
        if row.radios is not None:
            return self._render_radios(key, row)
        if row.range_inputs is not None:
            return self._render_range(key, row)
        value_input = row.value_input
        if value_input is None or value_input.shape is FieldType.NONE:
            return None
        if value_input.shape is FieldType.SELECT:
            combo = QComboBox()
            combo.setObjectName("valueSelect")
            for choice in value_input.choices:
                combo.addItem(choice.display, choice.name)
            idx = combo.findData(value_input.value)
            if idx != -1:
                combo.setCurrentIndex(idx)
            combo.currentIndexChanged.connect(lambda _i: self._builder.set_value(key, combo.currentData()))
            return combo
        if value_input.shape is FieldType.DATE:
            return self._date_edit(value_input.value, lambda text: self._builder.set_value(key, text), "valueDate")
        edit = QLineEdit(value_input.value or "")
        edit.setObjectName("valueEdit")
        edit.textEdited.connect(lambda text: self._builder.set_value(key, text))
        return edit

    def _render_range(self, key: int, row: RuleRow) -> QWidget:
        ranged = row.range_inputs
        holder = QWidget()
        layout = QHBoxLayout(holder)
        layout.setContentsMargins(0, 0, 0, 0)

        def push_start(text: str) -> None:
            self._builder.set_range(key, text, ranged.end)

        def push_end(text: str) -> None:
            self._builder.set_range(key, ranged.start, text)

        if ranged.dated:
            start = self._date_edit(ranged.start, push_start, "rangeStart")
            end = self._date_edit(ranged.end, push_end, "rangeEnd")
        else:
            start = QLineEdit(ranged.start or "")
            start.setObjectName("rangeStart")
            start.textEdited.connect(push_start)
            end = QLineEdit(ranged.end or "")
            end.setObjectName("rangeEnd")
            end.textEdited.connect(push_end)
        layout.addWidget(start)
        layout.addWidget(QLabel(self._labels.get(MessageKey.RANGE_AND)))
        layout.addWidget(end)
        return holder

    def _render_radios(self, key: int, row: RuleRow) -> QWidget:
        radios = row.radios
        holder = QWidget()
        holder.setObjectName(radios.group_name)
        layout = QHBoxLayout(holder)
        layout.setContentsMargins(0, 0, 0, 0)
        group = QButtonGroup(holder)
        group.setExclusive(True)
        true_btn = QRadioButton(self._labels.get(MessageKey.BOOLEAN_TRUE))
        true_btn.setObjectName("booleanTrue")
        false_btn = QRadioButton(self._labels.get(MessageKey.BOOLEAN_FALSE))
        false_btn.setObjectName("booleanFalse")
        group.addButton(true_btn)
        group.addButton(false_btn)
        true_btn.setChecked(radios.true_checked)
        false_btn.setChecked(radios.false_checked)
        true_btn.toggled.connect(lambda checked: checked and self._builder.set_boolean(key, True))
        false_btn.toggled.connect(lambda checked: checked and self._builder.set_boolean(key, False))
        layout.addWidget(true_btn)
        layout.addWidget(false_btn)
        layout.addStretch(1)
        return holder

    def _date_edit(self, value: Optional[str], on_change, name: str) -> QDateEdit:
        edit = QDateEdit()
        edit.setObjectName(name)
        edit.setCalendarPopup(True)
        edit.setDisplayFormat(_DATE_FORMAT)
        parsed = QDate.fromString(value or "", _DATE_FORMAT)
        edit.setDate(parsed if parsed.isValid() else QDate.currentDate())
        edit.dateChanged.connect(lambda date: on_change(date.toString(_DATE_FORMAT)))
        if not parsed.isValid():
            # The shown fallback date becomes the row's value.
            on_change(edit.date().toString(_DATE_FORMAT))
        return edit

    # --- events ------------------------------------------------------------
    def _on_conditions_changed(self, _event: str, data: Dict[str, Any]) -> None:
        if data.get("action") in _STRUCTURAL_ACTIONS:
            self.rebuild()
        self.conditionsChanged.emit()


class ConditionsBuilderDialog(QDialog):
    """Modal editor around :class:`ConditionsBuilderWidget` with OK / Cancel."""

    def __init__(self, builder: ConditionsBuilder, parent: Optional[QWidget] = None, title: str = "Conditions") -> None:
        super().__init__(parent)
        self.setWindowTitle(title)
        self.resize(820, 520)
        layout = QVBoxLayout(self)
        self.editor = ConditionsBuilderWidget(builder, self)
        layout.addWidget(self.editor, stretch=1)

        actions = QHBoxLayout()
        actions.addStretch(1)
        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.clicked.connect(self.reject)
        actions.addWidget(self.cancel_btn)
        self.ok_btn = QPushButton("OK")
        self.ok_btn.clicked.connect(self.accept)
        actions.addWidget(self.ok_btn)
        layout.addLayout(actions)

    def done(self, result: int) -> None:
        self.editor.detach()
        super().done(result)

    def result_data(self) -> Dict[str, Any]:
        return self.editor.collected()
