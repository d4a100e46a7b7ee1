import pytest

from skillmatch.helpers.parsing import clean_text, extract_text, validate_upload
from skillmatch.utils.exceptions import ValidationError


class TestUploadValidation:

    @pytest.mark.parametrize("filename,content_type", [
        ("cv.pdf", "application/pdf"),
        ("cv.DOCX", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("cv.txt", "text/plain"),
        ("cv.txt", "application/octet-stream"),
        ("cv.pdf", None),
    ])
    def test_accepted(self, filename, content_type):
        validate_upload(filename, content_type, 1024)

    @pytest.mark.parametrize("filename,content_type,size", [
        ("cv.png", "image/png", 1024),
        ("cv.pdf", "image/png", 1024),
        ("cv", "text/plain", 1024),
        ("cv.pdf", "application/pdf", 10 * 1024 * 1024 + 1),
        ("cv.txt", "text/plain", 0),
    ])
    def test_rejected(self, filename, content_type, size):
        with pytest.raises(ValidationError):
            validate_upload(filename, content_type, size)


def test_extract_text_from_txt():
    assert extract_text(b"  Python \n\n Django\t", "cv.txt") == "Python Django"


def test_unreadable_document_is_a_validation_error():
    with pytest.raises(ValidationError):
        extract_text(b"not really a docx", "cv.docx")


def test_clean_text():
    assert clean_text("a\n\n b  c ") == "a b c"
