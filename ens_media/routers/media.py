"""
Public media routes.

    GET|HEAD|PUT /{name}                 avatar on the default network
    GET|HEAD|PUT /{name}/h               header on the default network
    GET|HEAD|PUT /{network}/{name}       avatar
    GET|HEAD|PUT /{network}/{name}/h     header

Registration order matters: ``/{name}/h`` has to be tried before
``/{network}/{name}``.
"""
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse, StreamingResponse

from ens_media.dependencies.network import (
    get_network,
    get_ownership_oracle,
    get_signature_verifier,
)
from ens_media.networks import Network
from ens_media.schemas.media import MediaUploadRequest, MediaUploadResponse
from ens_media.services.keys import MediaSlot
from ens_media.services.promotion import resolve_media
from ens_media.services.storage import MediaStorage, get_media_storage
from ens_media.services.upload import upload_media
from ens_media.settings import settings

router = APIRouter(tags=["media"])

_CHUNK_SIZE = 64 * 1024


def _iter_body(body):
    if hasattr(body, "iter_chunks"):
        return body.iter_chunks(_CHUNK_SIZE)
    return iter(body)


def _close_body(body) -> None:
    close = getattr(body, "close", None)
    if close is not None:
        close()


def _image_headers(size: int) -> dict[str, str]:
    headers = {
        "Content-Type": settings.MEDIA_MIME_TYPE,
        "Content-Length": str(size),
    }
    if settings.MEDIA_CACHE_CONTROL:
        headers["Cache-Control"] = settings.MEDIA_CACHE_CONTROL
    return headers


def _make_read_endpoint(slot: MediaSlot):
    async def read_media(
        request: Request,
        name: str,
        network: Network = Depends(get_network),
        storage: MediaStorage = Depends(get_media_storage),
        oracle=Depends(get_ownership_oracle),
    ):
        media = await resolve_media(
            network, slot, name, storage.for_slot(slot), oracle
        )
        if media is None:
            return PlainTextResponse(f"{name} not found on {network.value}", status_code=404)

        headers = _image_headers(media.file.size)
        if request.method == "HEAD":
            _close_body(media.body)
            return Response(headers=headers, media_type=settings.MEDIA_MIME_TYPE)
        return StreamingResponse(
            _iter_body(media.body),
            headers=headers,
            media_type=settings.MEDIA_MIME_TYPE,
        )

    read_media.__name__ = f"read_{slot.value}"
    return read_media


def _make_upload_endpoint(slot: MediaSlot):
    async def upload(
        name: str,
        payload: MediaUploadRequest,
        network: Network = Depends(get_network),
        storage: MediaStorage = Depends(get_media_storage),
        oracle=Depends(get_ownership_oracle),
        verifier=Depends(get_signature_verifier),
    ):
        await upload_media(
            network,
            slot,
            name,
            payload,
            store=storage.for_slot(slot),
            oracle=oracle,
            verifier=verifier,
        )
        return MediaUploadResponse()

    upload.__name__ = f"upload_{slot.value}"
    return upload


_SLOT_SUFFIXES = ((MediaSlot.AVATAR, ""), (MediaSlot.HEADER, "/h"))

for _prefix in ("", "/{network}"):
    for _slot, _suffix in _SLOT_SUFFIXES:
        _path = f"{_prefix}/{{name}}{_suffix}"
        router.add_api_route(
            _path, _make_read_endpoint(_slot), methods=["GET", "HEAD"]
        )
        router.add_api_route(
            _path,
            _make_upload_endpoint(_slot),
            methods=["PUT"],
            response_model=MediaUploadResponse,
        )
