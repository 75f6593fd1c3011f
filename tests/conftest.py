"""Shared fixtures for the engine tests."""

import os
import sys

import pytest

# Ensure project root is importable when running pytest from repository root
_THIS_DIR = os.path.dirname(os.path.abspath(__file__))
_REPO_ROOT = os.path.dirname(_THIS_DIR)
for _path in (_REPO_ROOT, _THIS_DIR):
    if _path not in sys.path:
        sys.path.insert(0, _path)

from formbuilder.core.ids import CodeSequence, SequentialIdGenerator
from builders import clinical, column, field, make_node, page, question, questionnaire, table
from formbuilder.core.models import Condition, NodeType, Option, Visibility


@pytest.fixture
def ids():
    return SequentialIdGenerator(start=1000)


@pytest.fixture
def codes():
    return CodeSequence()


@pytest.fixture
def sample_doc():
    """Two pages; the first holds a question, a field and a table."""
    return questionnaire(
        page(
            "p1",
            "P1",
            [
                question("q1", "Smoker?", "smoker", ["Yes", "No"], data_type="radio"),
                field(
                    "f1",
                    "Cigarettes per day",
                    "cigs",
                    data_type="",
                    visibility=Visibility(conditions=(Condition("smoker", "Yes"),)),
                ),
                table("t1", "Medications", "meds", [column("c1", "Name"), column("c2", "Since", data_type="date")]),
            ],
        ),
        page("p2", "P2", [make_node("i1", NodeType.INFORMATION, label="Thank you")]),
    )


@pytest.fixture
def clinical_doc():
    return clinical(
        make_node(
            "g1",
            NodeType.CF_GROUP,
            [
                make_node("tb1", NodeType.CF_TEXTBOX, label="Complaint", code="1", record_key="complaint"),
                make_node(
                    "lb1",
                    NodeType.CF_LISTBOX,
                    label="Severity",
                    code="2",
                    options=(Option("Mild", "3"), Option("Severe", "4")),
                ),
            ],
            label="History",
            tag="pmh",
        ),
        make_node(
            "ct1",
            NodeType.CF_TABLE,
            [make_node("ctf1", NodeType.CF_TABLE_FIELD, label="Dose", code="6", data_type="textbox")],
            label="Drugs",
            code="5",
        ),
    )
