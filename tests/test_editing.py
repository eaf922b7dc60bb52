from condkit.builder import editing
from condkit.builder.catalog import FieldType
from condkit.builder.collector import collect
from condkit.builder.materializer import Materializer, materialize
from condkit.builder.model import Group, GroupOperator, Rule
from condkit.builder.presentation import NodeKind


def setup(catalog, data):
    materializer = Materializer(catalog)
    return materialize(data, catalog, materializer=materializer), materializer


def kinds(tree, key=None):
    return [child.kind for child in tree.children_of(tree.root if key is None else key)]


def test_add_nested_condition(catalog, simple_data):
    tree, materializer = setup(catalog, simple_data)
    frame = tree.top_level()[0]
    new_key = editing.add_nested_condition(tree, materializer, frame.key)
    assert kinds(tree, frame.key) == [NodeKind.RULE, NodeKind.CONDITIONAL, NodeKind.ADD_OR]
    nested = tree.node(new_key)
    assert nested.frame.match == "all"
    assert nested.frame.quantity is None
    assert kinds(tree, new_key) == [NodeKind.RULE, NodeKind.ADD_OR]

    (group,) = collect(tree).data
    assert group.children == [
        Rule("age", "equals", "21"),
        Group(operator=GroupOperator.AND, children=[Rule("age", "equals", None)]),
    ]


def test_add_alternative_rule_stays_in_scope(catalog, simple_data):
    tree, materializer = setup(catalog, simple_data)
    frame = tree.top_level()[0]
    add_or = tree.find_child(frame.key, NodeKind.ADD_OR)
    first = editing.add_alternative_rule(tree, materializer, frame.key)
    second = editing.add_alternative_rule(tree, materializer, add_or.key)
    assert kinds(tree, frame.key) == [NodeKind.RULE, NodeKind.RULE, NodeKind.RULE, NodeKind.ADD_OR]
    assert tree.node(frame.key).children[1:3] == [first, second]
    assert kinds(tree) == [NodeKind.CONDITIONAL]


def test_add_operations_reject_non_frames(catalog, simple_data):
    tree, materializer = setup(catalog, simple_data)
    rule_key = tree.rule_rows()[0].key
    assert editing.add_alternative_rule(tree, materializer, rule_key) is None
    assert editing.add_nested_condition(tree, materializer, 9999) is None
    assert editing.change_field(tree, materializer, tree.top_level()[0].key, "status") is False


def test_add_top_level_group_only_in_quantitative_mode(catalog, simple_data, quantitative_data):
    tree, materializer = setup(catalog, simple_data)
    assert editing.add_top_level_group(tree, materializer) is None
    assert kinds(tree) == [NodeKind.CONDITIONAL]

    tree, materializer = setup(catalog, quantitative_data)
    new_key = editing.add_top_level_group(tree, materializer)
    assert kinds(tree) == [
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.ADD_AND,
    ]
    added = tree.node(new_key)
    assert added.frame.quantity == "1"
    assert added.frame.removable
    assert kinds(tree, new_key) == [NodeKind.RULE, NodeKind.ADD_OR]

    editing.add_top_level_group(tree, materializer)
    assert kinds(tree).count(NodeKind.ADD_AND) == 1
    data = collect(tree).data
    assert len(data) == 4
    assert data[-1] == Group(operator=GroupOperator.AND, children=[Rule("age", "equals", None)], quantity=1)


def test_removing_only_rule_removes_frame_and_divider(catalog, quantitative_data):
    tree, _materializer = setup(catalog, quantitative_data)
    first, second = tree.top_level()
    editing.add_top_level_group(tree, _materializer)
    third = tree.top_level()[2]
    assert editing.remove_node(tree, tree.rule_rows(third.key)[0].key)
    assert kinds(tree) == [
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.ADD_AND,
    ]
    assert third.key not in tree
    assert [node.key for node in tree.top_level()] == [first.key, second.key]


def test_removing_one_of_two_rules_keeps_frame(catalog, quantitative_data):
    tree, _materializer = setup(catalog, quantitative_data)
    second = tree.top_level()[1]
    rows = tree.rule_rows(second.key)
    assert editing.remove_node(tree, rows[0].key)
    assert second.key in tree
    assert [node.key for node in tree.rule_rows(second.key)] == [rows[1].key]
    assert collect(tree).data[1].children == [Rule("age", "equals", "40")]


def test_removing_first_group_promotes_the_next(catalog, quantitative_data):
    tree, _materializer = setup(catalog, quantitative_data)
    first, second = tree.top_level()
    editing.remove_node(tree, tree.rule_rows(first.key)[0].key)
    assert kinds(tree) == [NodeKind.CONDITIONAL, NodeKind.AND_DIVIDER, NodeKind.ADD_AND]
    assert tree.top_level()[0].key == second.key
    assert second.frame.removable is False


def test_removing_alternative_group_as_a_whole(catalog, quantitative_data):
    tree, _materializer = setup(catalog, quantitative_data)
    first, second = tree.top_level()
    assert editing.remove_node(tree, second.key)
    assert kinds(tree) == [NodeKind.CONDITIONAL, NodeKind.AND_DIVIDER, NodeKind.ADD_AND]
    assert first.key in tree


def test_removing_top_level_rule_takes_its_divider(catalog, quantitative_data):
    data = quantitative_data + [{"name": "age", "operator": "equals", "value": "7"}]
    tree, _materializer = setup(catalog, data)
    bare = tree.top_level()[2]
    assert bare.kind is NodeKind.RULE
    assert kinds(tree) == [
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.RULE,
        NodeKind.AND_DIVIDER,
        NodeKind.ADD_AND,
    ]
    assert editing.remove_node(tree, bare.key)
    assert kinds(tree) == [
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.ADD_AND,
    ]


def test_removing_nested_rule_collapses_nested_frame(catalog, simple_data):
    tree, materializer = setup(catalog, simple_data)
    frame = tree.top_level()[0]
    nested_key = editing.add_nested_condition(tree, materializer, frame.key)
    nested_rule = tree.rule_rows(nested_key)[0]
    assert editing.remove_node(tree, nested_rule.key)
    assert nested_key not in tree
    assert kinds(tree, frame.key) == [NodeKind.RULE, NodeKind.ADD_OR]


def test_remove_ignores_affordances_and_unknown_keys(catalog, quantitative_data):
    tree, _materializer = setup(catalog, quantitative_data)
    add_and = tree.find_child(tree.root, NodeKind.ADD_AND)
    assert editing.remove_node(tree, add_and.key) is False
    assert editing.remove_node(tree, tree.root) is False
    assert editing.remove_node(tree, 4242) is False


def test_change_field_resets_operator_and_shape(catalog):
    tree, materializer = setup(catalog, [{"name": "age", "operator": "equals", "value": "3"}])
    node = tree.top_level()[0]
    assert editing.change_field(tree, materializer, node.key, "status")
    row = node.row
    assert row.field == "status"
    assert row.operator == "is"
    assert [name for name, _label, _shape in row.operator_options] == ["is", "active", "between"]
    assert row.value_input.shape is FieldType.SELECT
    assert row.value_input.value == "open"


def test_change_field_keeps_operator_when_still_valid(catalog):
    tree, materializer = setup(catalog, [{"name": "age", "operator": "between", "start": "1", "end": "2"}])
    node = tree.top_level()[0]
    editing.change_field(tree, materializer, node.key, "status")
    assert node.row.operator == "between"
    assert node.row.range_inputs is not None
    assert node.row.range_inputs.start is None


def test_value_setters(catalog):
    data = [
        {
            "groupOperator": "AND",
            "groups": [
                {"name": "age", "operator": "equals", "value": "1"},
                {"name": "age", "operator": "between", "start": "1", "end": "2"},
                {"name": "status", "operator": "active", "value": "false"},
                {"name": "status", "operator": "is", "value": "open"},
            ],
        }
    ]
    tree, _materializer = setup(catalog, data)
    text, ranged, flag, select = (node.key for node in tree.rule_rows())
    assert editing.set_value(tree, text, "99")
    assert editing.set_range(tree, ranged, "5", "10")
    assert editing.set_boolean(tree, flag, True)
    assert editing.set_value(tree, select, "nope")
    assert editing.set_value(tree, ranged, "x") is False
    assert editing.set_boolean(tree, text, True) is False
    frame_key = tree.top_level()[0].key
    assert editing.set_quantity(tree, frame_key, "3") is False
    assert editing.set_match(tree, frame_key, "none")

    (group,) = collect(tree).data
    assert group.operator is GroupOperator.NOT
    assert group.children == [
        Rule("age", "equals", "99"),
        Rule("age", "between", start="5", end="10"),
        Rule("status", "active", "true"),
        Rule("status", "is", "open"),
    ]
