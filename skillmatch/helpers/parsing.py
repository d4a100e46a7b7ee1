import io
import re
from pathlib import Path

from pdfminer.high_level import extract_text as pdf_extract
from docx import Document

from skillmatch.config import MAX_UPLOAD_BYTES
from skillmatch.utils.exceptions import ValidationError

ALLOWED_EXTENSIONS = {".pdf", ".docx", ".txt"}
ALLOWED_MIME_TYPES = {
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
}


def read_txt(data: bytes) -> str:
    return data.decode("utf-8", errors="ignore")


def read_docx(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join([p.text for p in doc.paragraphs])


def read_pdf(data: bytes) -> str:
    return pdf_extract(io.BytesIO(data))


def clean_text(x: str) -> str:
    x = re.sub(r'\s+', ' ', x).strip()
    return x


def validate_upload(filename: str, content_type: str, size: int) -> None:
    ext = Path(filename or "").suffix.lower()
    generic = content_type in (None, "", "application/octet-stream")
    if ext not in ALLOWED_EXTENSIONS or not (generic or content_type in ALLOWED_MIME_TYPES):
        raise ValidationError(
            "Invalid file type. Only PDF, DOCX, and TXT files are allowed.",
            field="file", value=filename,
        )
    if size > MAX_UPLOAD_BYTES:
        raise ValidationError(
            f"File size exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit", field="file"
        )
    if size == 0:
        raise ValidationError("Uploaded file is empty", field="file")


def extract_text(data: bytes, filename: str) -> str:
    ext = Path(filename).suffix.lower()
    try:
        if ext == ".pdf":
            text = read_pdf(data)
        elif ext == ".docx":
            text = read_docx(data)
        else:
            text = read_txt(data)
    except Exception as e:
        raise ValidationError(f"Could not read {ext} file: {e}", field="file", cause=e) from e
    return clean_text(text)
