"""
Unit tests for personalisation normalization.
"""

import pytest

from notify_gateway.notifications.exceptions import BadRequestError
from notify_gateway.notifications.models import FileAttachmentValue, SendingMethod, TextValue
from notify_gateway.rendering.personalisation import (
    decode_attachment, normalize_personalisation, split_personalisation, string_personalisation
)


class TestNormalizePersonalisation:
    """Test raw value tagging."""

    def test_scalars_become_text(self):
        result = normalize_personalisation({"name": "Ann", "age": 30, "ratio": 1.5, "vip": True})

        assert result == {
            "name": TextValue("Ann"),
            "age": TextValue("30"),
            "ratio": TextValue("1.5"),
            "vip": TextValue("true"),
        }

    def test_empty(self):
        assert normalize_personalisation(None) == {}

    def test_file_attachment(self):
        result = normalize_personalisation({
            "doc": {"file": "aGk=", "filename": "a.txt", "sending_method": "link"},
        })
        assert result["doc"] == FileAttachmentValue(file="aGk=", filename="a.txt", sending_method=SendingMethod.LINK)

    def test_invalid_sending_method(self):
        with pytest.raises(BadRequestError, match="invalid sending_method"):
            normalize_personalisation({"doc": {"file": "aGk=", "filename": "a.txt", "sending_method": "fax"}})

    def test_unsupported_shape(self):
        with pytest.raises(BadRequestError, match="must be a string or a file attachment"):
            normalize_personalisation({"items": ["a", "b"]})


class TestSplitPersonalisation:
    """Test separation of strings and files."""

    def test_split(self):
        strings, attachments = split_personalisation({
            "name": TextValue("Ann"),
            "doc": FileAttachmentValue(file="aGk=", filename="a.txt"),
        })

        assert strings == {"name": "Ann"}
        assert [a.filename for a in attachments] == ["a.txt"]
        assert attachments[0].content == b"hi"

    def test_invalid_base64(self):
        with pytest.raises(BadRequestError, match="not valid base64"):
            decode_attachment("doc", "***")

    def test_sms_rejects_files(self):
        with pytest.raises(BadRequestError):
            string_personalisation({"doc": FileAttachmentValue(file="aGk=", filename="a.txt")})

        assert string_personalisation({"name": TextValue("Ann")}) == {"name": "Ann"}
