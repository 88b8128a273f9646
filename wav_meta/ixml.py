from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Any, Dict

from . import meta_keys
from .models import CorruptChunk, SerializationError, StructuredMetadata

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
# Characters outside the XML 1.0 Char production.
INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")

_FIELD_BY_KEY = meta_keys.IXML_FIELDS


def parse_ixml(text: str) -> StructuredMetadata:
    """Split an iXML document into known fields and an untouched remainder."""
    try:
        root = ET.fromstring(text.strip())
    except (ET.ParseError, ValueError) as exc:
        raise CorruptChunk(f"iXML chunk is not well-formed: {exc}") from exc
    meta = StructuredMetadata(root_tag=root.tag)
    for key, value in root.attrib.items():
        meta.extra[f"@{key}"] = value
    for child in root:
        field_name = _FIELD_BY_KEY.get(child.tag)
        if field_name and len(child) == 0 and getattr(meta, field_name) is None:
            setattr(meta, field_name, child.text or "")
            continue
        _store(meta.extra, child.tag, _element_value(child))
    return meta


def build_ixml(meta: StructuredMetadata) -> str:
    try:
        root = ET.Element(meta.root_tag or meta_keys.IXML_ROOT)
        for key, field_name in _FIELD_BY_KEY.items():
            value = getattr(meta, field_name)
            if value is None:
                continue
            ET.SubElement(root, key).text = _checked(str(value))
        for key, value in meta.extra.items():
            if key.startswith("@"):
                root.set(key[1:], _checked(str(value)))
                continue
            _append_value(root, key, value)
        body = ET.tostring(root, encoding="unicode")
    except SerializationError:
        raise
    except Exception as exc:
        raise SerializationError(f"Failed to serialize iXML: {exc}") from exc
    return f"{XML_DECLARATION}{body}"


def _element_value(element: ET.Element) -> Any:
    children = list(element)
    if not children and not element.attrib:
        return element.text or ""
    value: Dict[str, Any] = {f"@{key}": item for key, item in element.attrib.items()}
    text = (element.text or "").strip()
    if text:
        value["#text"] = text
    for child in children:
        _store(value, child.tag, _element_value(child))
    return value


def _store(container: Dict[str, Any], key: str, value: Any) -> None:
    if key not in container:
        container[key] = value
        return
    existing = container[key]
    if isinstance(existing, list):
        existing.append(value)
    else:
        container[key] = [existing, value]


def _append_value(parent: ET.Element, tag: str, value: Any) -> None:
    if isinstance(value, list):
        for item in value:
            _append_value(parent, tag, item)
        return
    element = ET.SubElement(parent, tag)
    if isinstance(value, dict):
        for key, item in value.items():
            if key.startswith("@"):
                element.set(key[1:], _checked(str(item)))
            elif key == "#text":
                element.text = _checked(str(item))
            else:
                _append_value(element, key, item)
    elif value is not None:
        element.text = _checked(str(value))


def _checked(value: str) -> str:
    match = INVALID_XML_CHARS.search(value)
    if match:
        raise SerializationError(
            f"Value contains a character not allowed in XML: {match.group()!r}"
        )
    return value
