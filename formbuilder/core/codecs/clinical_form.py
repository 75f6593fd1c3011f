from __future__ import annotations

"""Clinical form dialect codec.

Components sit directly under ``<form tag="...">``; groups and panels nest
other components and ``<table>`` holds field elements that decode to
``cf-table-field`` nodes whose ``data_type`` is the element name.

Categories (``tag``) and button actions are held as their XML codes by the
model itself (see :func:`formbuilder.core.models.normalize_attributes`), so
the encoder writes them unchanged.
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
from formbuilder.core.models import Dialect, Document, Node, NodeAttributes, NodeType, Option
from formbuilder.core.models.vocabulary import CLINICAL_ELEMENT_ALIASES as _FIELD_ALIASES
from formbuilder.core.models.vocabulary import CLINICAL_TABLE_FIELD_ELEMENTS as _TABLE_FIELD_ELEMENTS

__all__ = ["ClinicalFormCodec"]

# Leaf components sharing the field attribute set.
_FIELD_ELEMENTS: Dict[NodeType, str] = {
    NodeType.CF_TEXTBOX: "textbox",
    NodeType.CF_NOTES: "notes",
    NodeType.CF_NOTES_HISTORY: "notes_with_history",
    NodeType.CF_DATE: "date",
    NodeType.CF_FUTURE_DATE: "future_date",
    NodeType.CF_CHECKBOX: "checkbox",
    NodeType.CF_LISTBOX: "list",
    NodeType.CF_RADIO: "radio",
    NodeType.CF_SNOMED_TEXTBOX: "snomedsubtextbox",
}
_ELEMENT_TYPES: Dict[str, NodeType] = {name: t for t, name in _FIELD_ELEMENTS.items()}

_CHOICE_ELEMENTS = frozenset({"list", "radio"})


class ClinicalFormCodec(DialectCodec):
    """Encode/decode ``<form>`` clinical documents."""

    dialect = Dialect.CLINICAL
    root_tag = "form"
    encoding_label = "utf-8"

    def __init__(self, indent: int = 2) -> None:
        super().__init__(indent)
        self._encoders: Dict[NodeType, Callable[[ET._Element, Node], ET._Element]] = {
            NodeType.CF_GROUP: self._encode_group,
            NodeType.CF_PANEL: self._encode_panel,
            NodeType.CF_TABLE: self._encode_table,
            NodeType.CF_TABLE_FIELD: self._encode_table_field,
            NodeType.CF_BUTTON: self._encode_button,
            NodeType.CF_INFO: self._encode_info,
            NodeType.CF_PATIENT_DATA: self._encode_patient_data,
            NodeType.CF_PATIENT_DATA_ALL: self._encode_patient_data_all,
            NodeType.CF_PRESCRIPTION: lambda parent, node: ET.SubElement(parent, "prescriptions"),
            NodeType.CF_PROVIDED_SERVICES: lambda parent, node: ET.SubElement(parent, "services"),
        }
        for node_type in _FIELD_ELEMENTS:
            self._encoders[node_type] = self._encode_component
        self._decoders: Dict[str, Callable[[ET._Element, IdGenerator], Node]] = {
            "group": self._decode_group,
            "panel": self._decode_panel,
            "table": self._decode_table,
            "button": self._decode_button,
            "form_button": self._decode_form_button,
            "info": self._decode_info,
            "metafield": self._decode_patient_data,
            "metafields": self._decode_patient_data_all,
            "prescriptions": self._bare(NodeType.CF_PRESCRIPTION),
            "services": self._bare(NodeType.CF_PROVIDED_SERVICES),
        }
        for name in list(_ELEMENT_TYPES) + list(_FIELD_ALIASES):
            self._decoders[name] = self._decode_component

    # ------------------------------------------------------------------ encode

    def encode(self, document: Document) -> str:
        root = ET.Element("form")
        set_attr(root, "tag", document.tag)
        for node in document.roots:
            self._encode_node(root, node)
        return serialize(root, self.encoding_label, self.indent)

    def _encode_node(self, parent: ET._Element, node: Node) -> None:
        encoder = self._encoders.get(node.type)
        if encoder is None:
            self._logger.warning("Cannot encode %s in a clinical form, skipped", node.type.value)
            return
        if node.visibility is not None:
            self._logger.warning("Clinical forms carry no visibility rules; dropped for %s", node.id)
        encoder(parent, node)

    def _encode_children(self, element: ET._Element, node: Node) -> None:
        for child in node.children:
            self._encode_node(element, child)

    def _encode_group(self, parent: ET._Element, node: Node) -> ET._Element:
        el = ET.SubElement(parent, "group")
        el.set("label", node.attributes.label)
        set_attr(el, "tag", node.attributes.tag)
        self._encode_children(el, node)
        return el

    def _encode_panel(self, parent: ET._Element, node: Node) -> ET._Element:
        attrs = node.attributes
        el = ET.SubElement(parent, "panel")
        el.set("class", "ClinicalFormColumn")
        el.set("label", attrs.label)
        set_attr(el, "tag", attrs.tag)
        set_attr(el, "width", attrs.width)
        self._encode_children(el, node)
        return el

    def _encode_table(self, parent: ET._Element, node: Node) -> ET._Element:
        attrs = node.attributes
        el = ET.SubElement(parent, "table")
        set_attr(el, "code", attrs.code)
        set_attr(el, "key", attrs.record_key)
        el.set("label", attrs.label)
        set_attr(el, "required", "true" if attrs.required else "")
        set_attr(el, "tag", attrs.tag)
        set_attr(el, "global", "true" if attrs.is_global else "")
        self._encode_children(el, node)
        return el

    def _encode_component(self, parent: ET._Element, node: Node) -> ET._Element:
        return self._encode_field(parent, _FIELD_ELEMENTS[node.type], node)

    def _encode_table_field(self, parent: ET._Element, node: Node) -> ET._Element:
        name = _FIELD_ALIASES.get(node.attributes.data_type, node.attributes.data_type)
        if name not in _TABLE_FIELD_ELEMENTS:
            name = "textbox"
        return self._encode_field(parent, name, node)

    def _encode_field(self, parent: ET._Element, name: str, node: Node) -> ET._Element:
        attrs = node.attributes
        el = ET.SubElement(parent, name)
        set_attr(el, "code", attrs.code)
        set_attr(el, "key", attrs.record_key)
        el.set("label", attrs.label)
        set_attr(el, "required", "true" if attrs.required else "")
        set_attr(el, "tag", attrs.tag)
        set_attr(el, "global", "true" if attrs.is_global else "")
        if name == "snomedsubtextbox":
            set_attr(el, "snomedsub", attrs.subset)
        set_attr(el, "width", attrs.width)
        if name in _CHOICE_ELEMENTS:
            for option in attrs.options:
                item = ET.SubElement(el, "item")
                set_attr(item, "code", option.value)
                item.text = option.text
        return el

    def _encode_button(self, parent: ET._Element, node: Node) -> ET._Element:
        attrs = node.attributes
        el = ET.SubElement(parent, "button")
        set_attr(el, "action", attrs.action)
        el.set("required", "true" if attrs.required else "false")
        el.set("label", attrs.label)
        set_attr(el, "parameters", attrs.parameters)
        return el

    def _encode_info(self, parent: ET._Element, node: Node) -> ET._Element:
        el = ET.SubElement(parent, "info")
        el.text = node.attributes.label
        return el

    def _encode_patient_data(self, parent: ET._Element, node: Node) -> ET._Element:
        attrs = node.attributes
        el = ET.SubElement(parent, "metafield")
        el.set("label", attrs.label)
        set_attr(el, "field", attrs.field_name)
        set_attr(el, "required", "true" if attrs.required else "")
        return el

    def _encode_patient_data_all(self, parent: ET._Element, node: Node) -> ET._Element:
        el = ET.SubElement(parent, "metafields")
        el.set("label", node.attributes.label)
        return el

    # ------------------------------------------------------------------ decode

    def decode(self, root: ET._Element, ids: IdGenerator) -> Document:
        return Document(
            dialect=self.dialect,
            roots=tuple(self._decode_components(root, ids, "form")),
            tag=attr_of(root, "tag"),
        )

    def _decode_components(self, parent: ET._Element, ids: IdGenerator, where: str) -> List[Node]:
        nodes: List[Node] = []
        for child in child_elements(parent):
            decoder = self._decoders.get(local_name(child))
            if decoder is None:
                self._skip(child, where)
                continue
            nodes.append(decoder(child, ids))
        return nodes

    def _node(self, ids: IdGenerator, node_type: NodeType, children=(), **attrs) -> Node:
        return Node(
            id=ids.new_id(node_type.value),
            type=node_type,
            attributes=NodeAttributes(**attrs),
            children=tuple(children),
        )

    def _decode_group(self, el: ET._Element, ids: IdGenerator) -> Node:
        return self._node(
            ids, NodeType.CF_GROUP, self._decode_components(el, ids, "group"),
            label=attr_of(el, "label"), tag=attr_of(el, "tag"),
        )

    def _decode_panel(self, el: ET._Element, ids: IdGenerator) -> Node:
        return self._node(
            ids, NodeType.CF_PANEL, self._decode_components(el, ids, "panel"),
            label=attr_of(el, "label"), tag=attr_of(el, "tag"), width=attr_of(el, "width"),
        )

    def _decode_table(self, el: ET._Element, ids: IdGenerator) -> Node:
        fields: List[Node] = []
        for child in child_elements(el):
            name = local_name(child)
            name = _FIELD_ALIASES.get(name, name)
            if name not in _TABLE_FIELD_ELEMENTS:
                self._skip(child, "table")
                continue
            fields.append(self._node(ids, NodeType.CF_TABLE_FIELD, data_type=name, **_field_attrs(child, name)))
        return self._node(
            ids, NodeType.CF_TABLE, fields,
            code=attr_of(el, "code"),
            record_key=attr_of(el, "key"),
            label=attr_of(el, "label"),
            required=bool_attr(el, "required"),
            tag=attr_of(el, "tag"),
            is_global=bool_attr(el, "global"),
        )

    def _decode_component(self, el: ET._Element, ids: IdGenerator) -> Node:
        name = local_name(el)
        name = _FIELD_ALIASES.get(name, name)
        return self._node(ids, _ELEMENT_TYPES[name], **_field_attrs(el, name))

    def _decode_button(self, el: ET._Element, ids: IdGenerator) -> Node:
        return self._node(
            ids, NodeType.CF_BUTTON,
            action=attr_of(el, "action"),
            required=bool_attr(el, "required"),
            label=attr_of(el, "label"),
            parameters=attr_of(el, "parameters"),
        )

    def _decode_form_button(self, el: ET._Element, ids: IdGenerator) -> Node:
        return self._node(
            ids, NodeType.CF_BUTTON,
            action="Custom",
            required=bool_attr(el, "required"),
            label=attr_of(el, "label") or attr_of(el, "text"),
        )

    def _decode_info(self, el: ET._Element, ids: IdGenerator) -> Node:
        return self._node(ids, NodeType.CF_INFO, label=text_of(el))

    def _decode_patient_data(self, el: ET._Element, ids: IdGenerator) -> Node:
        return self._node(
            ids, NodeType.CF_PATIENT_DATA,
            label=attr_of(el, "label"), field_name=attr_of(el, "field"), required=bool_attr(el, "required"),
        )

    def _decode_patient_data_all(self, el: ET._Element, ids: IdGenerator) -> Node:
        return self._node(ids, NodeType.CF_PATIENT_DATA_ALL, label=attr_of(el, "label"))

    def _bare(self, node_type: NodeType) -> Callable[[ET._Element, IdGenerator], Node]:
        return lambda el, ids: self._node(ids, node_type)


def _field_attrs(el: ET._Element, name: Optional[str] = None) -> Dict[str, object]:
    """Attributes shared by field-like components and table fields."""
    attrs: Dict[str, object] = dict(
        code=attr_of(el, "code"),
        record_key=attr_of(el, "key"),
        label=attr_of(el, "label"),
        required=bool_attr(el, "required"),
        tag=attr_of(el, "tag"),
        is_global=bool_attr(el, "global"),
        width=attr_of(el, "width"),
    )
    if name == "snomedsubtextbox":
        attrs["subset"] = attr_of(el, "snomedsub")
    if name in _CHOICE_ELEMENTS:
        attrs["options"] = tuple(
            Option(text_of(item), attr_of(item, "code"))
            for item in child_elements(el)
            if local_name(item) == "item"
        )
    return attrs
