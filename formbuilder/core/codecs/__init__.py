from __future__ import annotations

"""XML codecs for the questionnaire and clinical form dialects.

``decode`` sniffs the dialect from the root element, ``encode`` dispatches on
``document.dialect``. Both are pure: equal documents encode to identical
text.
"""

from dataclasses import dataclass
import logging
from typing import Dict, Optional, Tuple

from lxml import etree as ET  # type: ignore

from formbuilder.core.codecs.base import DialectCodec, local_name, parse_xml
from formbuilder.core.codecs.clinical_form import ClinicalFormCodec
from formbuilder.core.codecs.questionnaire import QuestionnaireCodec
from formbuilder.core.codecs.unsupported import UnsupportedConstruct, find_unsupported
from formbuilder.core.exceptions import ParseError
from formbuilder.core.ids import IdGenerator, SequentialIdGenerator
from formbuilder.core.models import Dialect, Document

__all__ = [
    "DecodedDocument",
    "DialectCodec",
    "QuestionnaireCodec",
    "ClinicalFormCodec",
    "UnsupportedConstruct",
    "decode",
    "encode",
    "sniff_dialect",
    "find_unsupported",
    "get_codec",
]

logger = logging.getLogger(__name__)

_ROOTS: Dict[str, Dialect] = {
    QuestionnaireCodec.root_tag: Dialect.QUESTIONNAIRE,
    ClinicalFormCodec.root_tag: Dialect.CLINICAL,
}


@dataclass(frozen=True)
class DecodedDocument:
    """Result of :func:`decode`.

    Attributes
    ----------
    document
        The decoded document.
    dialect
        Dialect detected from the root element.
    unsupported
        Elements and attributes that were skipped while decoding.
    mode_switched
        True when the detected dialect differs from the caller's hint.
    """

    document: Document
    dialect: Dialect
    unsupported: Tuple[UnsupportedConstruct, ...] = ()
    mode_switched: bool = False


def get_codec(dialect: Dialect, indent: int = 2) -> DialectCodec:
    if Dialect(dialect) is Dialect.QUESTIONNAIRE:
        return QuestionnaireCodec(indent)
    return ClinicalFormCodec(indent)


def _dialect_of(root: ET._Element) -> Dialect:
    name = local_name(root)
    try:
        return _ROOTS[name]
    except KeyError:
        raise ParseError(
            f"Unrecognised root element <{name}>; expected <Questionnaire> or <form>."
        ) from None


def sniff_dialect(xml_text: str) -> Dialect:
    """Return the dialect of *xml_text*; raises ParseError when unknown."""
    return _dialect_of(parse_xml(xml_text))


def decode(
    xml_text: str,
    id_generator: Optional[IdGenerator] = None,
    dialect_hint: Optional[Dialect] = None,
) -> DecodedDocument:
    """Parse *xml_text* into a document of whichever dialect its root names.

    Parameters
    ----------
    xml_text
        Raw XML text, with or without declaration.
    id_generator
        Generator for node ids; a fresh sequential one when omitted.
    dialect_hint
        Dialect the caller expects. A different detected dialect wins.

    Raises
    ------
    ParseError
        For empty text, malformed XML or an unrecognised root. Nothing is
        produced in that case.
    """
    root = parse_xml(xml_text)
    dialect = _dialect_of(root)
    switched = dialect_hint is not None and Dialect(dialect_hint) is not dialect
    if switched:
        logger.info("Mode switch: %s XML loaded while in %s mode", dialect.value, Dialect(dialect_hint).value)

    ids = id_generator if id_generator is not None else SequentialIdGenerator()
    document = get_codec(dialect).decode(root, ids)
    unsupported = tuple(find_unsupported(root, dialect))
    if unsupported:
        logger.warning("Decoded %s document with %d unsupported construct(s)", dialect.value, len(unsupported))
    return DecodedDocument(document, dialect, unsupported, switched)


def encode(document: Document, indent: int = 2) -> str:
    """Serialize *document* with the codec of its dialect."""
    return get_codec(document.dialect, indent).encode(document)
