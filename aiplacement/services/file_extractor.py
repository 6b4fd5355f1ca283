# Text extraction for uploaded and course files (PDF via PyMuPDF, DOCX via python-docx, plus DOC/RTF/TXT)
# aiplacement/services/file_extractor.py
import base64
import binascii
import os
import re
import tempfile

from docx import Document
from langchain_community.document_loaders import PyMuPDFLoader

from aiplacement.utils.config import settings
from aiplacement.utils.logger import logger

SUPPORTED_TYPES = ("pdf", "docx", "doc", "txt", "text", "rtf")


def get_extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lstrip(".").lower()


def is_supported(filename: str) -> bool:
    return get_extension(filename) in SUPPORTED_TYPES


def clean_text(text: str, max_length: int | None = None) -> str:
    """Normalizes whitespace and caps the length, appending '...' when cut."""
    max_length = max_length or settings.max_extracted_length
    text = text.replace("\0", "")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = text.strip()
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text


def extract_pdf(filepath: str) -> str:
    loader = PyMuPDFLoader(filepath)
    documents = loader.load()
    logger.debug(f"Loaded {len(documents)} pages from PDF {filepath}")
    return clean_text("\n".join(doc.page_content for doc in documents))


def extract_docx(filepath: str) -> str:
    document = Document(filepath)
    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    return clean_text("\n".join(paragraphs))


def _printable_only(raw: bytes) -> str:
    # Legacy binary formats: keep runs of printable latin-1 and collapse the rest.
    text = raw.decode("latin-1")
    text = re.sub(r"[^\x20-\x7E\x0A\x0D\xC0-\xFF]", " ", text)
    return re.sub(r"\s+", " ", text)


def extract_doc(filepath: str) -> str:
    with open(filepath, "rb") as f:
        return clean_text(_printable_only(f.read()))


def extract_rtf(filepath: str) -> str:
    with open(filepath, "r", encoding="utf-8", errors="ignore") as f:
        content = f.read()
    text = re.sub(r"\\[a-z]+-?\d* ?", "", content, flags=re.IGNORECASE)
    text = re.sub(r"\\[^a-z]", "", text, flags=re.IGNORECASE)
    text = text.replace("{", "").replace("}", "")
    text = re.sub(r"\s+", " ", text)
    return clean_text(text)


def extract_plain(filepath: str) -> str:
    with open(filepath, "r", encoding="utf-8", errors="replace") as f:
        return clean_text(f.read())


_EXTRACTORS = {
    "pdf": extract_pdf,
    "docx": extract_docx,
    "doc": extract_doc,
    "txt": extract_plain,
    "text": extract_plain,
    "rtf": extract_rtf,
}


def extract_text(filepath: str, filename: str) -> str:
    """Extracts text by the extension of `filename`; unsupported types give ''."""
    extractor = _EXTRACTORS.get(get_extension(filename))
    if extractor is None:
        logger.info(f"No extractor for file type of '{filename}'.")
        return ""
    return extractor(filepath)


def extract_from_bytes(content: bytes, filename: str) -> str:
    """Writes the content to a temporary file and extracts its text."""
    suffix = "_" + os.path.basename(filename)
    fd, temp_path = tempfile.mkstemp(prefix="extract_", suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        return extract_text(temp_path, filename)
    finally:
        os.unlink(temp_path)


def extract_from_base64(base64_content: str, filename: str) -> str:
    try:
        content = base64.b64decode(base64_content, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 content for '{filename}'") from e
    return extract_from_bytes(content, filename)
