"""
Multipart Form Infrastructure
=============================

In-memory ``multipart/form-data`` construction using httpx's encoder.

The form is never sent anywhere; it is encoded so callers can inspect the
headers and exact body length a real upload would carry.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx

from core import ValidationException

# Requests need a URL; nothing is ever sent to it.
FORM_TARGET_URL = "http://localhost/upload"


def to_field_value(value: Any) -> str:
    """Render a field value the way browsers and form encoders do."""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


class MultipartForm:
    """
    Ordered collection of form fields encoded as multipart/form-data.

    Usage:
        form = MultipartForm()
        form.append("text_field", "Test text data")
        form.get_headers()   # {"content-type": "multipart/form-data; boundary=..."}
        form.get_length()    # exact encoded body size in bytes
    """

    def __init__(self) -> None:
        self._fields: List[Tuple[str, str]] = []
        self._request: Optional[httpx.Request] = None

    def append(self, name: str, value: Any) -> None:
        self._fields.append((name, to_field_value(value)))
        self._request = None

    @property
    def fields(self) -> List[str]:
        return [name for name, _ in self._fields]

    def build(self) -> httpx.Request:
        """
        Encode the form, reusing the previous encoding until a field is added.

        Returns:
            httpx.Request carrying the multipart body and its headers
        """
        if not self._fields:
            raise ValidationException("Cannot encode a form without fields")
        if self._request is None:
            # A None filename encodes each part as a plain field.
            files = [(name, (None, value)) for name, value in self._fields]
            self._request = httpx.Request("POST", FORM_TARGET_URL, files=files)
        return self._request

    def get_headers(self) -> Dict[str, str]:
        return {"content-type": self.build().headers["Content-Type"]}

    def get_length(self) -> int:
        return int(self.build().headers["Content-Length"])

    def get_body(self) -> bytes:
        return self.build().read()

    def __len__(self) -> int:
        return len(self._fields)
