"""Loading of converted (HTML) debate documents."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Union

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = (".html", ".htm")

_PARAGRAPH_RE = re.compile(r"<p[\s>]", re.IGNORECASE)


class DocumentLoadError(Exception):
    """Raised when a document can't be read."""
    pass


@dataclass(frozen=True)
class LoadedDocument:
    file_path: str
    file_name: str
    html_content: str
    raw_text: str
    parsed_at: str


def load_html(html: str, file_path: str = "<memory>") -> LoadedDocument:
    soup = BeautifulSoup(html, "lxml")
    for tag in soup.find_all(["script", "style"]):
        tag.decompose()
    return LoadedDocument(
        file_path=file_path,
        file_name=Path(file_path).name,
        html_content=html,
        raw_text=soup.get_text("\n", strip=True),
        parsed_at=datetime.now(timezone.utc).isoformat(),
    )


def load_document(path: Union[str, Path]) -> LoadedDocument:
    """
    Read a converted document from disk.

    Word files must be converted to HTML upstream (with the Heading/Tag/Cite
    style mapping applied) before they reach this loader.

    Raises:
        DocumentLoadError: Unsupported extension or unreadable file
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_FORMATS:
        raise DocumentLoadError(f"Unsupported file format: {suffix or '(none)'}")

    try:
        html = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise DocumentLoadError(f"Failed to load document: {e}")

    logger.debug(f"Loaded {path} ({len(html)} chars)")
    return load_html(html, str(path))


def get_document_stats(document: LoadedDocument) -> Dict[str, Any]:
    return {
        "file_name": document.file_name,
        "total_characters": len(document.raw_text),
        "total_words": len(document.raw_text.split()),
        "total_paragraphs": len(_PARAGRAPH_RE.findall(document.html_content)),
        "parsed_at": document.parsed_at,
    }
