import re

from eth_utils import is_address
from pydantic import BaseModel, ConfigDict, Field, field_validator

_DIGITS = re.compile(r"^\d+$")
_HEX = re.compile(r"^(?:0[hx])?[0-9a-f]+$", re.IGNORECASE)


class MediaUploadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    expiry: str
    data_url: str = Field(alias="dataURL")
    sig: str
    unverified_address: str = Field(alias="unverifiedAddress")

    @field_validator("expiry")
    def validate_expiry(cls, v: str) -> str:
        if not _DIGITS.match(v):
            raise ValueError("expiry value is not number")
        return v

    @field_validator("sig")
    def validate_sig(cls, v: str) -> str:
        if not _HEX.match(v):
            raise ValueError("sig value is not hex")
        return v

    @field_validator("unverified_address")
    def validate_unverified_address(cls, v: str) -> str:
        if not _HEX.match(v):
            raise ValueError("unverifiedAddress value is not hex")
        if not is_address(v):
            raise ValueError("unverifiedAddress value is not address")
        return v


class MediaUploadResponse(BaseModel):
    message: str = "uploaded"
