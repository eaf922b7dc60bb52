from __future__ import annotations

import copy

import pytest

from condkit.builder.catalog import FieldCatalog

CATALOG_CONFIG = {
    "fields": [
        {"name": "age", "label": "Age", "operators": "numberOps"},
        {"name": "status", "label": "Status", "operators": "statusOps", "options": "statusOptions"},
        {
            "name": "created",
            "label": "Created",
            "operators": [
                {"name": "on", "label": "On", "fieldType": "DATE"},
                {"name": "during", "label": "During", "fieldType": "DATE_RANGE"},
            ],
        },
        {
            "name": "priority",
            "operators": [
                {
                    "name": "level",
                    "fieldType": "SELECT",
                    "choices": [{"name": "low", "label": "Low"}, {"name": "high", "label": "High"}],
                }
            ],
        },
    ],
    "operatorSets": {
        "numberOps": [
            {"name": "equals", "label": "Equals", "fieldType": "TEXT"},
            {"name": "between", "label": "Between", "fieldType": "RANGE"},
            {"name": "exists", "fieldType": "NONE"},
        ],
        "statusOps": [
            {"name": "is", "label": "Is", "fieldType": "SELECT"},
            {"name": "active", "label": "Active", "fieldType": "BOOLEAN"},
            {"name": "between", "label": "Between", "fieldType": "RANGE"},
        ],
    },
    "optionSets": {
        "statusOptions": [{"name": "open", "label": "Open"}, {"name": "closed", "label": "Closed"}],
    },
}


@pytest.fixture()
def catalog_config():
    return copy.deepcopy(CATALOG_CONFIG)


@pytest.fixture()
def catalog() -> FieldCatalog:
    return FieldCatalog.from_config(CATALOG_CONFIG)


@pytest.fixture()
def simple_data():
    return [
        {
            "groupOperator": "AND",
            "quantity": None,
            "id": None,
            "groups": [{"name": "age", "operator": "equals", "value": "21"}],
        }
    ]


@pytest.fixture()
def quantitative_data():
    return [
        {
            "groupOperator": "AND",
            "quantity": 2,
            "id": "item-1",
            "groups": [{"name": "age", "operator": "equals", "value": "30"}],
        },
        {
            "groupOperator": "OR",
            "quantity": 1,
            "id": None,
            "groups": [
                {"name": "status", "operator": "is", "value": "closed"},
                {"name": "age", "operator": "equals", "value": "40"},
            ],
        },
    ]
