"""
Personalisation normalization and attachment extraction.

Callers send personalisation as plain JSON: string values feed the template
engine, while objects shaped like ``{"file", "filename", "sending_method"}``
are file attachments and never reach variable substitution.
"""

import base64
import binascii
from typing import Any, Dict, List, Mapping, Optional, Tuple

from notify_gateway.notifications.exceptions import BadRequestError
from notify_gateway.notifications.models import (
    Attachment, FileAttachmentValue, PersonalisationValue, SendingMethod, TextValue
)


ATTACHMENT_KEYS = ("file", "filename", "sending_method")


def is_file_attachment(value: Any) -> bool:
    """Check whether a raw value has the file attachment shape."""
    return isinstance(value, Mapping) and all(key in value for key in ATTACHMENT_KEYS)


def normalize_personalisation(
    raw: Optional[Mapping[str, Any]]
) -> Dict[str, PersonalisationValue]:
    """
    Convert raw personalisation into tagged values.

    Args:
        raw: Mapping of variable name to a string, number, boolean or
            file attachment object

    Returns:
        Mapping of variable name to TextValue or FileAttachmentValue

    Raises:
        BadRequestError: If a value has an unsupported shape
    """
    if not raw:
        return {}

    result: Dict[str, PersonalisationValue] = {}
    for key, value in raw.items():
        if isinstance(value, (TextValue, FileAttachmentValue)):
            result[key] = value
        elif isinstance(value, str):
            result[key] = TextValue(value)
        elif isinstance(value, bool):
            result[key] = TextValue("true" if value else "false")
        elif isinstance(value, (int, float)):
            result[key] = TextValue(str(value))
        elif is_file_attachment(value):
            try:
                method = SendingMethod(value["sending_method"])
            except ValueError:
                raise BadRequestError(
                    f"Personalisation '{key}' has invalid sending_method: {value['sending_method']}"
                )
            result[key] = FileAttachmentValue(
                file=str(value["file"]),
                filename=str(value["filename"]),
                sending_method=method,
            )
        else:
            raise BadRequestError(
                f"Personalisation '{key}' must be a string or a file attachment object"
            )
    return result


def split_personalisation(
    values: Mapping[str, PersonalisationValue]
) -> Tuple[Dict[str, str], List[Attachment]]:
    """
    Separate string variables from file attachments.

    Args:
        values: Normalized personalisation

    Returns:
        Tuple of (string variables, decoded attachments)
    """
    strings: Dict[str, str] = {}
    attachments: List[Attachment] = []

    for key, value in values.items():
        if isinstance(value, FileAttachmentValue):
            attachments.append(Attachment(
                filename=value.filename,
                content=decode_attachment(key, value.file),
                sending_method=value.sending_method,
            ))
        else:
            strings[key] = value.value

    return strings, attachments


def decode_attachment(key: str, payload: str) -> bytes:
    """Decode a base64 attachment payload."""
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise BadRequestError(f"Personalisation '{key}' file is not valid base64")


def string_personalisation(values: Mapping[str, PersonalisationValue]) -> Dict[str, str]:
    """
    Return the string subset of personalisation for SMS rendering.

    Raises:
        BadRequestError: If any value is a file attachment
    """
    strings: Dict[str, str] = {}
    for key, value in values.items():
        if isinstance(value, FileAttachmentValue):
            raise BadRequestError(f"SMS personalisation '{key}' cannot be a file attachment")
        strings[key] = value.value
    return strings
