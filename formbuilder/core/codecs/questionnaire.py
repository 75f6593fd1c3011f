from __future__ import annotations

"""Questionnaire dialect codec.

Wire layout::

    <Questionnaire xmlns="QuestionnaireSchema.xsd" name="...">
      <Pages>
        <Page title="...">
          <Question record="k" required="false" datatype="radio">
            <Text record="k">Label</Text>
            <Answers><Answer>A</Answer></Answers>
            <Visibility><Any><Condition record="k2" answer="Yes"/></Any></Visibility>
          </Question>
          <Field record="k" required="false" datatype="date">Label</Field>
          <Information>Text</Information>
          <Table required="false">
            <Text record="k">Label</Text>
            <Column header="c" required="false" datatype="date"/>
          </Table>
        </Page>
      </Pages>
    </Questionnaire>

Empty ``data_type`` stands for the dialect default (list box for questions,
plain text for fields and columns) and is never written.
"""

from typing import Callable, Dict, List, Optional

from lxml import etree as ET  # type: ignore

from formbuilder.core.codecs.base import (
    DialectCodec,
    attr_of,
    bool_attr,
    child_elements,
    local_name,
    serialize,
    set_attr,
    text_of,
)
from formbuilder.core.ids import IdGenerator
from formbuilder.core.models import (
    Combinator,
    Condition,
    Dialect,
    Document,
    Node,
    NodeAttributes,
    NodeType,
    Option,
    Visibility,
)
from formbuilder.core.models.vocabulary import COLUMN_DATA_TYPES as _COLUMN_TYPES
from formbuilder.core.models.vocabulary import FIELD_DATA_TYPES as _FIELD_TYPES
from formbuilder.core.models.vocabulary import QUESTION_DATA_TYPES as _QUESTION_TYPES

__all__ = ["QuestionnaireCodec", "NAMESPACE"]

NAMESPACE = "QuestionnaireSchema.xsd"


def _q(tag: str) -> str:
    return f"{{{NAMESPACE}}}{tag}"


def _flag(value: bool) -> str:
    return "true" if value else "false"


class QuestionnaireCodec(DialectCodec):
    """Encode/decode ``<Questionnaire>`` documents."""

    dialect = Dialect.QUESTIONNAIRE
    root_tag = "Questionnaire"
    encoding_label = "utf-16"

    def __init__(self, indent: int = 2) -> None:
        super().__init__(indent)
        self._encoders: Dict[NodeType, Callable[[ET._Element, Node], ET._Element]] = {
            NodeType.PAGE: self._encode_page,
            NodeType.QUESTION: self._encode_question,
            NodeType.FIELD: self._encode_field,
            NodeType.INFORMATION: self._encode_information,
            NodeType.TABLE: self._encode_table,
            NodeType.TABLE_FIELD: self._encode_column,
        }
        self._page_decoders: Dict[str, Callable[[ET._Element, IdGenerator], Node]] = {
            "Question": self._decode_question,
            "Field": self._decode_field,
            "Information": self._decode_information,
            "Table": self._decode_table,
        }

    # ------------------------------------------------------------------ encode

    def encode(self, document: Document) -> str:
        root = ET.Element(_q("Questionnaire"), nsmap={None: NAMESPACE})
        set_attr(root, "name", document.name)
        pages = ET.SubElement(root, _q("Pages"))
        for node in document.roots:
            self._encode_node(pages, node)
        return serialize(root, self.encoding_label, self.indent)

    def _encode_node(self, parent: ET._Element, node: Node) -> None:
        encoder = self._encoders.get(node.type)
        if encoder is None:
            self._logger.warning("Cannot encode %s in a questionnaire, skipped", node.type.value)
            return
        encoder(parent, node)

    def _encode_children(self, element: ET._Element, node: Node) -> None:
        for child in node.children:
            self._encode_node(element, child)

    def _encode_page(self, parent: ET._Element, node: Node) -> ET._Element:
        el = ET.SubElement(parent, _q("Page"))
        el.set("title", node.attributes.label)
        self._encode_children(el, node)
        self._encode_visibility(el, node.visibility)
        return el

    def _encode_question(self, parent: ET._Element, node: Node) -> ET._Element:
        attrs = node.attributes
        el = ET.SubElement(parent, _q("Question"))
        el.set("record", attrs.record_key)
        el.set("required", _flag(attrs.required))
        set_attr(el, "datatype", _QUESTION_TYPES.get(attrs.data_type, ""))
        text = ET.SubElement(el, _q("Text"))
        text.set("record", attrs.record_key)
        text.text = attrs.label
        if attrs.options:
            answers = ET.SubElement(el, _q("Answers"))
            for option in attrs.options:
                answer = ET.SubElement(answers, _q("Answer"))
                set_attr(answer, "value", option.value)
                answer.text = option.text
        self._encode_visibility(el, node.visibility)
        return el

    def _encode_field(self, parent: ET._Element, node: Node) -> ET._Element:
        attrs = node.attributes
        el = ET.SubElement(parent, _q("Field"))
        el.set("record", attrs.record_key)
        el.set("required", _flag(attrs.required))
        set_attr(el, "datatype", _FIELD_TYPES.get(attrs.data_type, ""))
        el.text = attrs.label
        self._encode_visibility(el, node.visibility)
        return el

    def _encode_information(self, parent: ET._Element, node: Node) -> ET._Element:
        el = ET.SubElement(parent, _q("Information"))
        el.text = node.attributes.label
        self._encode_visibility(el, node.visibility)
        return el

    def _encode_table(self, parent: ET._Element, node: Node) -> ET._Element:
        attrs = node.attributes
        el = ET.SubElement(parent, _q("Table"))
        el.set("required", _flag(attrs.required))
        text = ET.SubElement(el, _q("Text"))
        text.set("record", attrs.record_key)
        text.text = attrs.label
        self._encode_children(el, node)
        self._encode_visibility(el, node.visibility)
        return el

    def _encode_column(self, parent: ET._Element, node: Node) -> ET._Element:
        attrs = node.attributes
        el = ET.SubElement(parent, _q("Column"))
        el.set("header", attrs.label)
        el.set("required", _flag(attrs.required))
        set_attr(el, "datatype", _COLUMN_TYPES.get(attrs.data_type, ""))
        self._encode_visibility(el, node.visibility)
        return el

    def _encode_visibility(self, parent: ET._Element, visibility: Optional[Visibility]) -> None:
        if visibility is None:
            return
        block = ET.SubElement(parent, _q("Visibility"))
        combinator = ET.SubElement(block, _q(Combinator(visibility.combinator).value))
        for condition in visibility.conditions:
            cond = ET.SubElement(combinator, _q("Condition"))
            cond.set("record", condition.record_key)
            cond.set("answer", condition.expected_answer)

    # ------------------------------------------------------------------ decode

    def decode(self, root: ET._Element, ids: IdGenerator) -> Document:
        roots: List[Node] = []
        for child in child_elements(root):
            if local_name(child) != "Pages":
                self._skip(child, "Questionnaire")
                continue
            for page in child_elements(child):
                if local_name(page) != "Page":
                    self._skip(page, "Pages")
                    continue
                roots.append(self._decode_page(page, ids))
        return Document(
            dialect=self.dialect,
            roots=tuple(roots),
            name=attr_of(root, "name"),
        )

    def _decode_page(self, el: ET._Element, ids: IdGenerator) -> Node:
        children: List[Node] = []
        visibility = None
        for child in child_elements(el):
            name = local_name(child)
            if name == "Visibility":
                visibility = self._decode_visibility(child)
                continue
            decoder = self._page_decoders.get(name)
            if decoder is None:
                self._skip(child, "Page")
                continue
            children.append(decoder(child, ids))
        return Node(
            id=ids.new_id(NodeType.PAGE.value),
            type=NodeType.PAGE,
            attributes=NodeAttributes(label=attr_of(el, "title")),
            visibility=visibility,
            children=tuple(children),
        )

    def _decode_question(self, el: ET._Element, ids: IdGenerator) -> Node:
        text_el = None
        options: List[Option] = []
        visibility = None
        for child in child_elements(el):
            name = local_name(child)
            if name == "Text":
                text_el = child
            elif name == "Answers":
                options.extend(
                    Option(text_of(a), attr_of(a, "value"))
                    for a in child_elements(child)
                    if local_name(a) == "Answer"
                )
            elif name == "Visibility":
                visibility = self._decode_visibility(child)
            else:
                self._skip(child, "Question")
        record = el.get("record")
        if record is None and text_el is not None:
            record = text_el.get("record")
        data_type = (el.get("datatype") or "").strip().lower()
        return Node(
            id=ids.new_id(NodeType.QUESTION.value),
            type=NodeType.QUESTION,
            attributes=NodeAttributes(
                label=text_of(text_el),
                record_key=record or "",
                required=bool_attr(el, "required"),
                data_type=_QUESTION_TYPES.get(data_type, ""),
                options=tuple(options),
            ),
            visibility=visibility,
        )

    def _decode_field(self, el: ET._Element, ids: IdGenerator) -> Node:
        visibility = self._find_visibility(el, "Field")
        data_type = (el.get("datatype") or "").strip().lower()
        return Node(
            id=ids.new_id(NodeType.FIELD.value),
            type=NodeType.FIELD,
            attributes=NodeAttributes(
                label=text_of(el),
                record_key=attr_of(el, "record"),
                required=bool_attr(el, "required"),
                data_type=_FIELD_TYPES.get(data_type, ""),
            ),
            visibility=visibility,
        )

    def _decode_information(self, el: ET._Element, ids: IdGenerator) -> Node:
        return Node(
            id=ids.new_id(NodeType.INFORMATION.value),
            type=NodeType.INFORMATION,
            attributes=NodeAttributes(label=text_of(el)),
            visibility=self._find_visibility(el, "Information"),
        )

    def _decode_table(self, el: ET._Element, ids: IdGenerator) -> Node:
        text_el = None
        columns: List[Node] = []
        visibility = None
        for child in child_elements(el):
            name = local_name(child)
            if name == "Text":
                text_el = child
            elif name == "Column":
                columns.append(self._decode_column(child, ids))
            elif name == "Visibility":
                visibility = self._decode_visibility(child)
            else:
                self._skip(child, "Table")
        record = text_el.get("record") if text_el is not None else el.get("record")
        return Node(
            id=ids.new_id(NodeType.TABLE.value),
            type=NodeType.TABLE,
            attributes=NodeAttributes(
                label=text_of(text_el),
                record_key=record or "",
                required=bool_attr(el, "required"),
            ),
            visibility=visibility,
            children=tuple(columns),
        )

    def _decode_column(self, el: ET._Element, ids: IdGenerator) -> Node:
        data_type = (el.get("datatype") or "").strip().lower()
        return Node(
            id=ids.new_id(NodeType.TABLE_FIELD.value),
            type=NodeType.TABLE_FIELD,
            attributes=NodeAttributes(
                label=attr_of(el, "header"),
                required=bool_attr(el, "required"),
                data_type=_COLUMN_TYPES.get(data_type, ""),
            ),
            visibility=self._find_visibility(el, "Column"),
        )

    def _find_visibility(self, el: ET._Element, where: str) -> Optional[Visibility]:
        visibility = None
        for child in child_elements(el):
            if local_name(child) == "Visibility":
                visibility = self._decode_visibility(child)
            else:
                self._skip(child, where)
        return visibility

    def _decode_visibility(self, el: ET._Element) -> Visibility:
        for child in child_elements(el):
            name = local_name(child)
            if name not in ("Any", "All"):
                self._skip(child, "Visibility")
                continue
            conditions = tuple(
                Condition(
                    attr_of(c, "record"),
                    attr_of(c, "answer"),
                )
                for c in child_elements(child)
                if local_name(c) == "Condition"
            )
            return Visibility(Combinator(name), conditions)
        return Visibility()
