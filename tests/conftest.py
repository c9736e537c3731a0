"""
Pytest configuration to ensure the project root is on sys.path.
"""
import sys
from pathlib import Path

# Add project root to path BEFORE any app imports
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import base64
import io
import time

import boto3
import pytest
import pytest_asyncio
from eth_account import Account
from eth_account.messages import encode_typed_data
from httpx import ASGITransport, AsyncClient
from moto import mock_aws
from PIL import Image

from ens_media.dependencies.network import get_ownership_oracle, get_signature_verifier
from ens_media.main import app
from ens_media.services.ownership import Ownership, parent_name
from ens_media.services.signature import (
    TypedDataDomain,
    UploadClaim,
    UploadSignatureVerifier,
    build_typed_data,
)
from ens_media.services.storage import build_media_storage, get_media_storage
from ens_media.settings import settings

# Well-known development keys (accounts #0 and #1 of the "test test ... junk" mnemonic).
TEST_ACCOUNT = Account.from_key(
    "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcb78c7c2db8bb7a1"
)
OTHER_ACCOUNT = Account.from_key(
    "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
)

TEST_NAME = "test.eth"


class FakeOwnershipOracle:
    """
    In-memory stand-in for the chain lookups.
    ``owners`` maps names to owners for parent-ownership checks.
    """

    def __init__(self, owner=None, available=True, owners=None):
        self.owner = owner
        self.available = available
        self.owners = dict(owners or {})
        self.calls = []

    def set(self, owner, available):
        self.owner = owner
        self.available = available

    async def get_owner_and_available(self, name):
        self.calls.append(name)
        return Ownership(owner=self.owner, available=self.available)

    async def get_owner(self, name):
        return self.owners.get(name)

    async def is_parent_owner(self, name, address):
        owner = self.owners.get(parent_name(name))
        return owner is not None and owner.lower() == address.lower()


def future_expiry(ms: int = 3_600_000) -> str:
    return str(int(time.time() * 1000) + ms)


def sign_upload(slot, name, content_hash, expiry=None, account=TEST_ACCOUNT) -> dict:
    """Signed upload fields for the request body, minus the dataURL."""
    expiry = expiry or future_expiry()
    claim = UploadClaim(
        slot=slot,
        expiry=expiry,
        name=name,
        hash=content_hash,
        signature="",
        claimed_address=account.address,
    )
    signable = encode_typed_data(
        full_message=build_typed_data(TypedDataDomain.from_settings(), claim)
    )
    signed = account.sign_message(signable)
    return {
        "expiry": expiry,
        "sig": "0x" + bytes(signed.signature).hex(),
        "unverifiedAddress": account.address,
    }


def make_jpeg(size=(32, 32), color="green") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=color).save(buf, format="JPEG")
    return buf.getvalue()


def to_data_url(data: bytes, mime: str = "image/jpeg") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode()}"


def read_object(s3, bucket, key):
    obj = s3.get_object(Bucket=bucket, Key=key)
    return obj["Body"].read(), obj.get("ContentType")


def object_exists(s3, bucket, key) -> bool:
    resp = s3.list_objects_v2(Bucket=bucket, Prefix=key)
    return any(o["Key"] == key for o in resp.get("Contents", []))


@pytest.fixture
def s3(monkeypatch):
    """Mocked S3 with both media buckets created."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setattr(settings, "S3_MEDIA_REGION", "us-east-1")
    monkeypatch.setattr(settings, "S3_ENDPOINT_URL", None)
    monkeypatch.setattr(settings, "AVATAR_BUCKET", "avatar-bucket")
    monkeypatch.setattr(settings, "HEADER_BUCKET", "header-bucket")
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(settings, "DEFAULT_NETWORK", "mainnet")

    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=settings.AVATAR_BUCKET)
        client.create_bucket(Bucket=settings.HEADER_BUCKET)
        yield client


@pytest.fixture
def storage(s3):
    return build_media_storage(s3)


@pytest.fixture
def oracle():
    return FakeOwnershipOracle()


@pytest_asyncio.fixture
async def async_client(storage, oracle):
    """HTTP client with the store, oracle and verifier wired to test doubles."""

    async def override_get_media_storage():
        return storage

    async def override_get_ownership_oracle():
        return oracle

    async def override_get_signature_verifier():
        return UploadSignatureVerifier()

    app.dependency_overrides.update(
        {
            get_media_storage: override_get_media_storage,
            get_ownership_oracle: override_get_ownership_oracle,
            get_signature_verifier: override_get_signature_verifier,
        }
    )
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
