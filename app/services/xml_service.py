"""XML → dict conversion for feed strategies.

Elements become dicts keyed by their local tag name. Attributes are stored as
'@_<name>' keys and mixed text as '#text'. An element with neither attributes
nor children collapses to its stripped text (or '' when empty). Repeated
sibling tags become lists, in document order. Namespaces are dropped.
"""
import re
from typing import Any, Dict

from lxml import etree

from app.core.exceptions import ParsingError
from app.services.mapper_service import strip_bom

_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")

_PARSER_OPTIONS = dict(
    resolve_entities=False,
    no_network=True,
    remove_comments=True,
    remove_pis=True,
    huge_tree=False,
    recover=False,
)


def _local(tag: str) -> str:
    if "}" in tag:
        tag = tag.rsplit("}", 1)[1]
    if ":" in tag:
        tag = tag.rsplit(":", 1)[1]
    return tag


def element_to_value(element: etree._Element) -> Any:
    children = [child for child in element if isinstance(child.tag, str)]
    text = (element.text or "").strip()

    if not children and not element.attrib:
        return text

    node: Dict[str, Any] = {}
    for name, value in element.attrib.items():
        node[f"@_{_local(name)}"] = value

    for child in children:
        key = _local(child.tag)
        value = element_to_value(child)
        if key in node:
            existing = node[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[key] = [existing, value]
        else:
            node[key] = value

    if text:
        node["#text"] = text
    return node


def xml_to_dict(content: str) -> Dict[str, Any]:
    """Parse an XML document into {root_tag: value}.

    Raises ParsingError for malformed documents.
    """
    parser = etree.XMLParser(**_PARSER_OPTIONS)
    # lxml refuses str input that still carries an encoding declaration
    data = _DECLARATION.sub("", strip_bom(content).strip(), count=1)
    try:
        root = etree.fromstring(data, parser=parser)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise ParsingError("Malformed XML document", detail=str(e))
    if root is None:
        raise ParsingError("Empty XML document")
    return {_local(root.tag): element_to_value(root)}


def looks_like_xml(content: str) -> bool:
    return strip_bom(content).lstrip().startswith("<")
