"""
Payload validation for the upload and relay endpoints.

Every rule is evaluated, so callers get the complete list of problems in one
response. Validation is purely local and never performs network calls.
"""

import datetime
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
FILENAME_PATTERN = re.compile(r"^[a-zA-Z0-9\-_]+\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)
UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE
)

UPLOAD_REQUIRED_FIELDS = ("branch", "date", "filename")
RELAY_REQUIRED_FIELDS = ("public_url", "filename", "branch", "date", "metadataId")


def is_http_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        # e.g. an unterminated IPv6 host such as "http://[bad/x.png"
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _is_calendar_date(value: str) -> bool:
    try:
        datetime.date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _check_date(value: Any, pattern_message: str) -> list[str]:
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return [pattern_message]
    if not _is_calendar_date(value):
        return ["Date must be a valid calendar date"]
    return []


def _check_required(payload: Mapping, fields: tuple[str, ...], missing: str) -> list[str]:
    errors = []
    for name in fields:
        value = payload.get(name)
        if not value:
            errors.append(missing.format(name=name))
        elif not isinstance(value, str):
            errors.append(f"{name} must be a string")
    return errors


def _check_filename(value: Any, message: str) -> list[str]:
    if not isinstance(value, str) or not FILENAME_PATTERN.match(value):
        return [message]
    return []


def validate_upload_payload(payload: Any) -> list[str]:
    if not isinstance(payload, Mapping):
        return ["Request body must be an object"]

    errors = _check_required(payload, UPLOAD_REQUIRED_FIELDS, "{name} is required")

    if payload.get("date"):
        errors.extend(_check_date(payload["date"], "Date must be in YYYY-MM-DD format"))

    if payload.get("filename"):
        errors.extend(
            _check_filename(
                payload["filename"],
                "Filename format invalid. Only alphanumeric characters, dashes, and underscores "
                "allowed with valid image extensions (jpg, jpeg, png, gif, webp).",
            )
        )

    if payload.get("imageUrl") is not None and not is_http_url(payload.get("imageUrl")):
        errors.append("imageUrl must be an absolute http(s) URL")

    return errors


def validate_relay_payload(payload: Any, storage_hint: str | None = None) -> list[str]:
    """
    Validate the webhook payload that triggers a relay.

    ``storage_hint`` is the host of our public storage URL; ``public_url`` must
    contain it (or the substring ``storage``) to be accepted as one of ours.
    """
    if not isinstance(payload, Mapping):
        return ["Payload must be a valid object"]

    errors = _check_required(payload, RELAY_REQUIRED_FIELDS, "Missing required field: {name}")

    public_url = payload.get("public_url")
    if public_url:
        if not is_http_url(public_url):
            errors.append("public_url must be a valid URL")
        elif not (storage_hint and storage_hint in public_url) and "storage" not in public_url:
            errors.append("public_url must be a valid storage URL")

    if payload.get("date"):
        errors.extend(_check_date(payload["date"], "date must be in YYYY-MM-DD format"))

    if payload.get("filename"):
        errors.extend(
            _check_filename(
                payload["filename"], "filename must be alphanumeric with valid image extension"
            )
        )

    metadata_id = payload.get("metadataId")
    if metadata_id and (not isinstance(metadata_id, str) or not UUID4_PATTERN.match(metadata_id)):
        errors.append("metadataId must be a valid UUID")

    return errors
