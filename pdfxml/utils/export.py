"""
Export module for document reconstruction.

Provides:
- XML serialization (lxml)
- Markdown export
- JSON export
"""

import logging
import re
from pathlib import Path
from typing import Dict, Any, Optional, List, Union

from lxml import etree

from ..config import XML_ENCODING
from .io import save_json
from .layout import BlockType
from .scanner import Block, block_type_of

logger = logging.getLogger(__name__)

# Characters XML 1.0 does not allow in text or attribute values
_XML_INVALID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


# ============================================================================
# XML Serializer
# ============================================================================

class XmlSerializer:
    """
    Render a Document as an XML string.

    Every node kind maps to its own tag; kinds without a mapping are written
    with the generic ``node`` tag.
    """

    TAG_NAMES = {
        "document": "document",
        "metadata": "metadata",
        "created_at": "createdAt",
        "page_count": "pages",
        "pages": "pages",
        "page": "page",
        "content": "content",
        "paragraph": "paragraph",
        "table": "table",
        "header": "header",
        "row": "row",
        "cell": "cell",
        "list": "list",
        "item": "item",
    }
    FALLBACK_TAG = "node"

    def __init__(self, pretty_print: bool = True, encoding: str = XML_ENCODING):
        self.pretty_print = pretty_print
        self.encoding = encoding

    def tag_for(self, kind: str) -> str:
        return self.TAG_NAMES.get(kind, self.FALLBACK_TAG)

    def build_tree(self, document: Any) -> etree._Element:
        """Build the element tree for a document."""
        root = etree.Element(self.tag_for("document"), name=self._clean(document.name))

        metadata = self._sub(root, "metadata")
        self._sub(metadata, "created_at", text=document.created_at)
        self._sub(metadata, "page_count", text=str(document.page_count))

        pages = self._sub(root, "pages")
        for page in document.pages:
            self._add_page(pages, page)

        return root

    def to_string(self, document: Any) -> str:
        """Serialize a document, prefixed with the XML declaration."""
        root = self.build_tree(document)
        data = etree.tostring(
            root,
            pretty_print=self.pretty_print,
            xml_declaration=True,
            encoding=self.encoding
        )
        return data.decode(self.encoding)

    def export(self, document: Any, output_path: Union[str, Path]) -> Path:
        """
        Export document to an XML file.

        Args:
            document: Document object
            output_path: Output file path

        Returns:
            Path to the generated XML file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding=self.encoding.lower()) as f:
            f.write(self.to_string(document))

        logger.info(f"Exported XML to: {output_path}")
        return output_path

    def _add_page(self, parent: etree._Element, page: Any) -> None:
        page_elem = self._sub(parent, "page", number=str(page.page_number))
        if page.status != "success":
            page_elem.set("status", page.status)
            if page.error:
                page_elem.set("error", self._clean(page.error))

        content = self._sub(page_elem, "content")
        for block in page.blocks:
            self._add_block(content, block)

    def _add_block(self, parent: etree._Element, block: Block) -> None:
        block_type = block_type_of(block)

        if block_type == BlockType.PARAGRAPH:
            self._sub(parent, "paragraph", text=block.text)

        elif block_type == BlockType.TABLE:
            table = self._sub(
                parent, "table",
                rows=str(block.row_count),
                columns=str(block.column_count)
            )
            header = self._sub(table, "header")
            for cell in block.header:
                self._sub(header, "cell", text=cell)
            for index, row in enumerate(block.rows):
                row_elem = self._sub(table, "row", index=str(index))
                if block.is_filler(index):
                    row_elem.set("filler", "true")
                for cell in row:
                    self._sub(row_elem, "cell", text=cell)

        elif block_type == BlockType.LIST:
            list_elem = self._sub(parent, "list", type=block.list_type)
            for item in block.items:
                self._sub(list_elem, "item", text=item)

        else:
            self._sub(
                parent, "unknown",
                text=str(getattr(block, "text", "")),
                kind=type(block).__name__
            )

    def _sub(
        self,
        parent: etree._Element,
        kind: str,
        text: Optional[str] = None,
        **attributes: str
    ) -> etree._Element:
        element = etree.SubElement(parent, self.tag_for(kind))
        for key, value in attributes.items():
            element.set(key, self._clean(value))
        if text is not None:
            element.text = self._clean(text)
        return element

    def _clean(self, text: str) -> str:
        return _XML_INVALID_CHARS.sub("", text)


def to_xml(document: Any, pretty_print: bool = True) -> str:
    """Serialize a document to an XML string."""
    return XmlSerializer(pretty_print=pretty_print).to_string(document)


# ============================================================================
# Markdown Exporter
# ============================================================================

class MarkdownExporter:
    """Export document to Markdown format."""

    def __init__(self, include_page_breaks: bool = True):
        self.include_page_breaks = include_page_breaks

    def export(
        self,
        document: Any,
        output_path: Union[str, Path]
    ) -> Path:
        """
        Export document to Markdown file.

        Args:
            document: Document object
            output_path: Output file path

        Returns:
            Path to the generated Markdown file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8', errors='replace') as f:
            f.write(self.to_markdown(document))

        logger.info(f"Exported Markdown to: {output_path}")
        return output_path

    def to_markdown(self, document: Any) -> str:
        """Generate Markdown from document structure."""
        lines = [f"# {document.name}", ""]

        for page in document.pages:
            if self.include_page_breaks and document.page_count > 1:
                lines.append("---")
                lines.append(f"*Page {page.page_number}*")
                lines.append("")

            if page.failed:
                lines.append(f"> Page {page.page_number} could not be processed: {page.error}")
                lines.append("")
                continue

            for block in page.blocks:
                md = block.to_markdown() if hasattr(block, "to_markdown") else ""
                if md:
                    lines.append(md)
                    lines.append("")

        return "\n".join(lines)


# ============================================================================
# Multi-format Export
# ============================================================================

class DocumentExporter:
    """Convenience class for exporting to multiple formats."""

    FORMATS = ["xml", "json", "markdown"]

    def __init__(
        self,
        output_dir: Union[str, Path],
        base_name: str = "document"
    ):
        self.output_dir = Path(output_dir)
        self.base_name = base_name

        self.xml_serializer = XmlSerializer()
        self.markdown_exporter = MarkdownExporter()

    def export(
        self,
        document: Any,
        formats: List[str] = None
    ) -> Dict[str, Path]:
        """
        Export document to multiple formats.

        Args:
            document: Document object
            formats: List of formats ('xml', 'json', 'markdown', 'all')

        Returns:
            Dictionary mapping format to output path
        """
        if formats is None:
            formats = ["xml"]

        if "all" in formats:
            formats = list(self.FORMATS)

        self.output_dir.mkdir(parents=True, exist_ok=True)

        results = {}

        if "xml" in formats:
            path = self.output_dir / f"{self.base_name}.xml"
            results["xml"] = self.xml_serializer.export(document, path)

        if "json" in formats:
            path = self.output_dir / f"{self.base_name}.json"
            results["json"] = save_json(document.to_dict(), path)

        if "markdown" in formats:
            path = self.output_dir / f"{self.base_name}.md"
            results["markdown"] = self.markdown_exporter.export(document, path)

        return results
