"""
Authenticated upload pipeline.

Gates run in a fixed order and the first failure wins; nothing is written to the
store until every gate has passed:

    decode -> hash -> type -> normalization -> signature -> size
           -> ownership (or parent ownership for available subnames) -> expiry
           -> placement -> placement check

The expiry gate runs after ownership, so an expired request from a non-owner
is reported as an ownership failure.
"""
import logging
import time
from dataclasses import dataclass

from ens_normalize import DisallowedSequence, ens_normalize

from ens_media.errors import (
    ForbiddenError,
    InvalidSignatureError,
    NameNotFoundError,
    NameNotNormalizedError,
    PayloadTooLargeError,
    SignatureExpiredError,
    UnsupportedMediaTypeError,
    UploadMismatchError,
)
from ens_media.schemas.media import MediaUploadRequest
from ens_media.services.data_url import data_url_to_bytes, sha256_hex
from ens_media.services.keys import MediaSlot, provisional_key, registered_key
from ens_media.services.ownership import is_subname, parent_name
from ens_media.services.signature import UploadClaim
from ens_media.services.storage import MediaStore
from ens_media.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaPolicy:
    mime_type: str
    max_bytes: int

    @classmethod
    def from_settings(cls) -> "MediaPolicy":
        return cls(mime_type=settings.MEDIA_MIME_TYPE, max_bytes=settings.MEDIA_MAX_BYTES)


def is_normalized(name: str) -> bool:
    try:
        return ens_normalize(name) == name
    except DisallowedSequence:
        return False


def _now_ms() -> int:
    return int(time.time() * 1000)


async def upload_media(
    network,
    slot: MediaSlot,
    name: str,
    payload: MediaUploadRequest,
    store: MediaStore,
    oracle,
    verifier,
    policy: MediaPolicy | None = None,
    now_ms: int | None = None,
) -> str:
    """
    Validate a signed upload and place it at the registered or provisional key.
    Returns the key written; raises a MediaError subclass on rejection.
    """
    policy = policy or MediaPolicy.from_settings()

    mime, data = data_url_to_bytes(payload.data_url)
    content_hash = sha256_hex(data)

    if mime != policy.mime_type:
        raise UnsupportedMediaTypeError(f"File must be of type {policy.mime_type}")

    if not is_normalized(name):
        raise NameNotNormalizedError("Name must be in normalized form")

    verified_address = await verifier.verify(
        UploadClaim(
            slot=slot.value,
            expiry=payload.expiry,
            name=name,
            hash=content_hash,
            signature=payload.sig,
            claimed_address=payload.unverified_address,
        )
    )
    if not verified_address:
        raise InvalidSignatureError("Invalid signature")

    if len(data) > policy.max_bytes:
        raise PayloadTooLargeError("Image is too large")

    ownership = await oracle.get_owner_and_available(name)
    if not ownership.available:
        if not ownership.owner:
            raise NameNotFoundError("Name not found")
        if ownership.owner.lower() != verified_address.lower():
            raise ForbiddenError(f"Address {verified_address} is not the owner of {name}")
    elif is_subname(name) and not await oracle.is_parent_owner(name, verified_address):
        raise ForbiddenError(
            f"Address {verified_address} is not the owner of {parent_name(name)}"
        )

    now_ms = _now_ms() if now_ms is None else now_ms
    if int(payload.expiry) < now_ms:
        raise SignatureExpiredError("Signature expired")

    key = (
        provisional_key(network, name, verified_address)
        if ownership.available
        else registered_key(network, name)
    )
    uploaded = await store.put(key, data, policy.mime_type)
    if uploaded.key != key:
        logger.error(f"Store reported {uploaded.key} for upload to {key}")
        raise UploadMismatchError(f"{name} not uploaded")

    if ownership.available:
        stale_key = registered_key(network, name)
        if await store.head(stale_key) is not None:
            await store.delete([stale_key])
            logger.info(f"Removed stale registered {slot.value} for {name}")

    logger.info(f"Uploaded {slot.value} for {name} to {key}")
    return key
