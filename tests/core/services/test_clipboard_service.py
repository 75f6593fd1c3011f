import pytest

from formbuilder.core.exceptions import ClipboardRejection
from formbuilder.core.models import NodeType
from formbuilder.core.services.clipboard_service import (
    ClipboardMode,
    ClipboardService,
    normalize_selection,
)

from builders import field, page, questionnaire


@pytest.fixture
def service(ids):
    return ClipboardService(ids)


def test_normalize_selection_drops_nested_and_unknown(sample_doc):
    assert normalize_selection(sample_doc, ["c1", "t1", "ghost", "p2"]) == ("t1", "p2")


def test_normalize_selection_uses_document_order(sample_doc):
    assert normalize_selection(sample_doc, ["i1", "q1", "f1"]) == ("q1", "f1", "i1")


def test_copy_leaves_document_untouched(service, sample_doc):
    result = service.copy(sample_doc, ["p1"])
    assert result.success is True
    assert result.document is sample_doc
    assert service.clipboard.mode is ClipboardMode.COPY


def test_copy_with_empty_selection_fails(service, sample_doc):
    assert service.copy(sample_doc, ["ghost"]).success is False
    assert service.has_items() is False


def test_copy_paste_twice_mints_distinct_ids(service, sample_doc):
    service.copy(sample_doc, ["p1"])
    first = service.paste(sample_doc)
    second = service.paste(first.document)

    doc = second.document
    assert [r.label for r in doc.roots] == ["P1", "P2", "P1", "P1"]
    ids = doc.ids()
    assert len(ids) == len(set(ids))
    original = set(sample_doc.find("p1").ids())
    assert original.isdisjoint(doc.find(first.selection[0]).ids())
    assert original.isdisjoint(doc.find(second.selection[0]).ids())
    # Copy clipboard is reusable
    assert service.has_items()


def test_cut_then_paste_restores_ids(service, sample_doc):
    cut = service.cut(sample_doc, ["p1"])
    assert cut.success is True
    assert not cut.document.contains("p1")
    assert service.clipboard.mode is ClipboardMode.CUT

    pasted = service.paste(cut.document)
    assert pasted.selection == ("p1",)
    assert set(pasted.document.ids()) == set(sample_doc.ids())
    # Consumed by the paste
    assert service.has_items() is False


def test_cut_item_already_present_is_pasted_as_clone(service, sample_doc):
    service.cut(sample_doc, ["p2"])
    # Paste into the original document, as after undoing the cut
    pasted = service.paste(sample_doc)
    assert pasted.selection != ("p2",)
    assert sample_doc.contains("p2")
    ids = pasted.document.ids()
    assert len(ids) == len(set(ids))


def test_root_paste_requires_every_item_root_valid(service, sample_doc):
    service.copy(sample_doc, ["p2", "c1"])
    with pytest.raises(ClipboardRejection) as excinfo:
        service.paste(sample_doc)
    assert excinfo.value.skipped == 2


def test_paste_into_container_skips_rejected_items(service, sample_doc):
    service.copy(sample_doc, ["f1", "c1"])
    result = service.paste(sample_doc, "p2")

    assert result.pasted == 1
    assert result.skipped == 1
    pasted = result.document.find(result.selection[0])
    assert pasted.type is NodeType.FIELD
    assert result.document.find("p2").children[-1] is pasted


def test_paste_on_leaf_inserts_after_focus(service, sample_doc):
    service.copy(sample_doc, ["i1"])
    result = service.paste(sample_doc, "q1")
    children = [c.id for c in result.document.find("p1").children]
    assert children[0] == "q1"
    assert children[1] == result.selection[0]


def test_paste_column_next_to_column(service, sample_doc):
    service.copy(sample_doc, ["c2"])
    result = service.paste(sample_doc, "c1")
    table = result.document.find("t1")
    assert [c.label for c in table.children] == ["Name", "Since", "Since"]


def test_paste_with_no_accepted_items_raises(service, sample_doc):
    service.copy(sample_doc, ["p2"])
    with pytest.raises(ClipboardRejection) as excinfo:
        service.paste(sample_doc, "c1")
    assert excinfo.value.skipped == 1


def test_paste_empty_clipboard_raises(service, sample_doc):
    with pytest.raises(ClipboardRejection):
        service.paste(sample_doc)


def test_unknown_focus_falls_back_to_root(service, sample_doc):
    service.copy(sample_doc, ["p2"])
    result = service.paste(sample_doc, "ghost")
    assert result.document.roots[-1].id == result.selection[0]


def test_multi_item_paste_keeps_order(service):
    doc = questionnaire(page("p1", "P1", [field("a", "A"), field("b", "B")]), page("p2", "P2"))
    service.copy(doc, ["b", "a"])
    result = service.paste(doc, "p2")
    assert [c.label for c in result.document.find("p2").children] == ["A", "B"]


def test_cut_clinical_table_field_paste_into_group(service, clinical_doc):
    cut = service.cut(clinical_doc, ["ctf1"])
    assert cut.document.find("ct1").children == ()

    result = service.paste(cut.document, "g1")
    assert result.document.find("g1").children[-1].id == "ctf1"
    assert result.document.find("ctf1").type is NodeType.CF_TABLE_FIELD
