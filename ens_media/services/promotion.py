"""
Promotion of provisional uploads once a claimant becomes the registered owner,
and read resolution built on top of it.
"""
import logging
from dataclasses import dataclass
from typing import Iterable

from ens_media.services.keys import (
    MediaSlot,
    provisional_key,
    provisional_prefix,
    registered_key,
)
from ens_media.services.storage import MediaStore, StoredMedia
from ens_media.services.streams import tee
from ens_media.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class ResolvedMedia:
    file: StoredMedia
    body: Iterable[bytes]


async def purge_provisional_media(store: MediaStore, network, name: str) -> int:
    """
    Delete every provisional upload for a name, page by page.
    An empty page ends the sweep even if the store claims more results.
    """
    prefix = provisional_prefix(network, name)
    cursor: str | None = None
    deleted = 0
    while True:
        page = await store.list_prefix(prefix, cursor=cursor)
        if not page.keys:
            break
        await store.delete(page.keys)
        deleted += len(page.keys)
        if page.truncated and page.cursor:
            cursor = page.cursor
        else:
            break
    return deleted


async def find_and_promote_provisional_media(
    network,
    slot: MediaSlot,
    name: str,
    store: MediaStore,
    oracle,
) -> ResolvedMedia | None:
    """
    Promote the confirmed owner's provisional upload to the registered key.

    1. Ask the oracle for {owner, available}; nothing to do if the name is
       available or unowned (no store access in that case).
    2. Fetch the owner's provisional upload; nothing to do if it is absent.
    3. Tee the body: one branch is written to the registered key with the
       original content type, the other is handed back for the response.
    4. Purge all provisional uploads for the name, the owner's included.

    Returns None when nothing was promoted.
    """
    ownership = await oracle.get_owner_and_available(name)
    if ownership.available or not ownership.owner:
        return None

    provisional = await store.get(provisional_key(network, name, ownership.owner))
    if provisional is None:
        return None

    upload_branch, replay_branch = tee(
        provisional.body, spool_max_bytes=settings.MEDIA_SPOOL_MAX_BYTES
    )
    await store.put(
        registered_key(network, name), upload_branch, provisional.content_type
    )
    deleted = await purge_provisional_media(store, network, name)
    logger.info(
        f"Promoted {slot.value} for {name} on {getattr(network, 'value', network)} "
        f"from {ownership.owner}; removed {deleted} provisional upload(s)"
    )
    return ResolvedMedia(file=provisional, body=replay_branch)


def _is_servable(media: StoredMedia, mime_type: str) -> bool:
    return media.content_type is None or media.content_type == mime_type


async def resolve_media(
    network,
    slot: MediaSlot,
    name: str,
    store: MediaStore,
    oracle,
    mime_type: str | None = None,
) -> ResolvedMedia | None:
    """
    Registered media first; otherwise promote a pending upload from the confirmed owner.
    """
    mime_type = mime_type or settings.MEDIA_MIME_TYPE
    registered = await store.get(registered_key(network, name))
    if registered is not None:
        if _is_servable(registered, mime_type):
            return ResolvedMedia(file=registered, body=registered.body)
        close = getattr(registered.body, "close", None)
        if close is not None:
            close()
    return await find_and_promote_provisional_media(network, slot, name, store, oracle)
