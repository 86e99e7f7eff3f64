"""XLSX adapter rebuilding each worksheet as comma-delimited rows."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import posixpath
import re

from lxml import etree

from docsift.ingestion.container import ZIP_MAGIC, OfficeContainer
from docsift.ingestion.errors import FormatError
from docsift.ingestion.normalization import parse_xml_part

logger = logging.getLogger(__name__)

WORKBOOK_PART = "xl/workbook.xml"
WORKBOOK_RELS_PART = "xl/_rels/workbook.xml.rels"
SHARED_STRINGS_PART = "xl/sharedStrings.xml"
CELL_DELIMITER = ","

_WORKSHEET_PATH_RE = re.compile(r"^xl/worksheets/sheet(\d*)\.xml$")
_CELL_REF_RE = re.compile(r"^([A-Za-z]+)")


@dataclass(frozen=True, slots=True)
class SheetRef:
    name: str
    path: str


def column_label_to_index(label: str) -> int:
    """Convert a column label such as ``"AA"`` to a zero-based index."""

    index = 0
    for char in label.upper():
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def _local_name(node: etree._Element) -> str:
    if not isinstance(node.tag, str):
        return ""
    return etree.QName(node).localname


def _children(node: etree._Element, name: str) -> list[etree._Element]:
    return [child for child in node if _local_name(child) == name]


def _first_child(node: etree._Element, name: str) -> etree._Element | None:
    for child in node:
        if _local_name(child) == name:
            return child
    return None


def _rich_text(node: etree._Element) -> str:
    """Concatenate plain and formatted runs, skipping phonetic hints."""

    parts: list[str] = []
    for child in node:
        name = _local_name(child)
        if name == "t":
            parts.append(child.text or "")
        elif name == "r":
            parts.extend(run.text or "" for run in _children(child, "t"))
    return "".join(parts)


def parse_shared_strings(xml_bytes: bytes) -> list[str]:
    root = parse_xml_part(xml_bytes)
    if root is None:
        return []
    return [_rich_text(item).strip() for item in _children(root, "si")]


def _resolve_cell(cell: etree._Element, shared_strings: list[str]) -> str:
    value_node = _first_child(cell, "v")
    raw_value = (value_node.text or "") if value_node is not None else ""

    if cell.get("t") == "s":
        try:
            shared_index = int(raw_value.strip())
        except ValueError:
            return ""
        if 0 <= shared_index < len(shared_strings):
            return shared_strings[shared_index]
        return ""

    inline_node = _first_child(cell, "is")
    if inline_node is not None:
        return _rich_text(inline_node).strip()

    return raw_value.strip()


def parse_worksheet(xml_bytes: bytes, shared_strings: list[str]) -> str:
    """Render worksheet rows as delimited lines, keeping column alignment."""

    root = parse_xml_part(xml_bytes)
    if root is None:
        return ""

    lines: list[str] = []
    for row in root.iter():
        if _local_name(row) != "row":
            continue

        cells: dict[int, str] = {}
        column = -1
        for cell in _children(row, "c"):
            match = _CELL_REF_RE.match(cell.get("r", ""))
            column = column_label_to_index(match.group(1)) if match else column + 1
            cells[column] = _resolve_cell(cell, shared_strings)

        width = max(cells) + 1 if cells else 0
        lines.append(CELL_DELIMITER.join(cells.get(index, "") for index in range(width)))

    return "\n".join(lines)


def _resolve_target(target: str) -> str:
    if target.startswith("/"):
        return target.lstrip("/")
    return posixpath.normpath(posixpath.join("xl", target))


def _relationship_targets(container: OfficeContainer) -> dict[str, str]:
    try:
        payload = container.read(WORKBOOK_RELS_PART)
    except FormatError as exc:
        logger.warning("Workbook relationships unreadable: %s", exc)
        return {}
    if payload is None:
        return {}

    root = parse_xml_part(payload)
    if root is None:
        return {}

    targets: dict[str, str] = {}
    for relation in _children(root, "Relationship"):
        rel_id = relation.get("Id")
        target = relation.get("Target")
        if rel_id and target:
            targets[rel_id] = _resolve_target(target)
    return targets


def _relationship_id(sheet: etree._Element) -> str | None:
    for key, value in sheet.attrib.items():
        if key.startswith("{") and key.endswith("}id"):
            return value
    return None


def _sheets_from_manifest(container: OfficeContainer) -> list[SheetRef]:
    try:
        payload = container.read(WORKBOOK_PART)
    except FormatError as exc:
        logger.warning("Workbook manifest unreadable: %s", exc)
        return []
    if payload is None:
        return []

    root = parse_xml_part(payload)
    if root is None:
        return []

    targets = _relationship_targets(container)
    sheets: list[SheetRef] = []
    for sheet in root.iter():
        if _local_name(sheet) != "sheet":
            continue
        name = sheet.get("name")
        if not name:
            continue

        rel_id = _relationship_id(sheet)
        path = targets.get(rel_id) if rel_id else None
        if path is None:
            sheet_id = sheet.get("sheetId")
            if not sheet_id:
                continue
            path = f"xl/worksheets/sheet{sheet_id}.xml"
        sheets.append(SheetRef(name=name, path=path))
    return sheets


def _discover_sheets(container: OfficeContainer) -> list[SheetRef]:
    discovered: list[tuple[int, SheetRef]] = []
    for name in container.names():
        match = _WORKSHEET_PATH_RE.match(name)
        if match is None:
            continue
        ordinal = int(match.group(1)) if match.group(1) else 0
        label = posixpath.basename(name)[: -len(".xml")]
        discovered.append((ordinal, SheetRef(name=label, path=name)))
    return [sheet for _ordinal, sheet in sorted(discovered, key=lambda item: item[0])]


def list_sheets(container: OfficeContainer) -> list[SheetRef]:
    """Return sheet name/path pairs from the manifest or by filename discovery."""

    return _sheets_from_manifest(container) or _discover_sheets(container)


class XLSXAdapter:
    """Extract every worksheet as a titled block of delimited rows."""

    format_name = "xlsx"

    def supports(self, raw: bytes) -> bool:
        if not raw.startswith(ZIP_MAGIC):
            return False
        try:
            container = OfficeContainer(raw)
        except FormatError:
            return False
        return container.has(WORKBOOK_PART) or any(
            _WORKSHEET_PATH_RE.match(name) for name in container.names()
        )

    def extract(self, raw: bytes) -> str:
        container = OfficeContainer(raw)
        shared_strings = self._load_shared_strings(container)

        sheets = list_sheets(container)
        if not sheets:
            return ""

        blocks = [self._render_sheet(container, sheet, shared_strings) for sheet in sheets]
        return "\n\n".join(blocks)

    def _load_shared_strings(self, container: OfficeContainer) -> list[str]:
        try:
            payload = container.read(SHARED_STRINGS_PART)
        except FormatError as exc:
            logger.warning("Shared string table unreadable: %s", exc)
            return []
        return parse_shared_strings(payload) if payload is not None else []

    def _render_sheet(self, container: OfficeContainer, sheet: SheetRef, shared_strings: list[str]) -> str:
        header = f"Sheet: {sheet.name}"
        try:
            payload = container.read(sheet.path)
        except FormatError as exc:
            logger.warning("Skipping unreadable worksheet %s: %s", sheet.path, exc)
            return header
        if payload is None:
            return header

        rows = parse_worksheet(payload, shared_strings)
        return f"{header}\n{rows}".strip()
