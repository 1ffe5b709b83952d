"""Inline document payloads — base64 data URLs submitted by the onboarding wizard."""

import base64


def decode_data_url(url: str) -> tuple[str, bytes]:
    """Split ``data:<media>;base64,<payload>`` into (media_type, raw bytes).

    Raises ValueError for anything that is not a base64 data URL and
    binascii.Error for a corrupt payload.
    """
    if not url.startswith("data:") or ";base64," not in url:
        raise ValueError("Not a base64 data URL")
    media_type, payload = url[len("data:"):].split(";base64,", 1)
    return media_type, base64.b64decode(payload, validate=True)
