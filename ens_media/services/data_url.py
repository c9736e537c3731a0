import base64
import binascii
import hashlib

from ens_media.errors import HashingError, InvalidDataURLError


def data_url_to_bytes(data_url: str) -> tuple[str, bytes]:
    """
    Split a ``data:<mime>;base64,<payload>`` URL into its MIME type and raw bytes.
    """
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:"):
        raise InvalidDataURLError("Invalid data URL")
    params = header[len("data:"):].split(";")
    mime = params[0].strip()
    if not mime or "base64" not in params[1:]:
        raise InvalidDataURLError("Invalid data URL")
    payload = payload.strip()
    payload += "=" * (-len(payload) % 4)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidDataURLError("Invalid data URL") from exc
    return mime, data


def sha256_hex(data: bytes) -> str:
    """0x-prefixed hex SHA-256 digest, the form signed into upload claims."""
    try:
        return "0x" + hashlib.sha256(data).hexdigest()
    except (TypeError, ValueError) as exc:
        raise HashingError("Failed to hash image") from exc
