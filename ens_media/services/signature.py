"""
EIP-712 upload signatures.

A claim binds the slot being written, an expiry, the name and the content hash
to the uploader's key. The recovered signer must equal the claimed address.
"""
import logging
from dataclasses import dataclass

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import decode_hex, keccak, to_checksum_address

from ens_media.settings import settings

logger = logging.getLogger(__name__)

UPLOAD_TYPES = [
    {"name": "upload", "type": "string"},
    {"name": "expiry", "type": "string"},
    {"name": "name", "type": "string"},
    {"name": "hash", "type": "string"},
]

ERC1271_MAGIC_VALUE = bytes.fromhex("1626ba7e")
ERC1271_ABI = [
    {
        "name": "isValidSignature",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "hash", "type": "bytes32"},
            {"name": "signature", "type": "bytes"},
        ],
        "outputs": [{"name": "magicValue", "type": "bytes4"}],
    }
]


@dataclass(frozen=True)
class TypedDataDomain:
    name: str
    version: str

    @classmethod
    def from_settings(cls) -> "TypedDataDomain":
        return cls(
            name=settings.TYPED_DATA_DOMAIN_NAME,
            version=settings.TYPED_DATA_DOMAIN_VERSION,
        )


@dataclass(frozen=True)
class UploadClaim:
    slot: str
    expiry: str
    name: str
    hash: str
    signature: str
    claimed_address: str


def build_typed_data(domain: TypedDataDomain, claim: UploadClaim) -> dict:
    return {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
            ],
            "Upload": UPLOAD_TYPES,
        },
        "primaryType": "Upload",
        "domain": {"name": domain.name, "version": domain.version},
        "message": {
            "upload": claim.slot,
            "expiry": claim.expiry,
            "name": claim.name,
            "hash": claim.hash,
        },
    }


class UploadSignatureVerifier:
    """
    Recovers the signer of an upload claim.

    With a web3 client, contract accounts are checked through ERC-1271.
    """

    def __init__(self, domain: TypedDataDomain | None = None, w3=None):
        self.domain = domain or TypedDataDomain.from_settings()
        self.w3 = w3

    async def verify(self, claim: UploadClaim) -> str | None:
        try:
            address = to_checksum_address(claim.claimed_address)
            signable = encode_typed_data(full_message=build_typed_data(self.domain, claim))
            signature = decode_hex(claim.signature)
            try:
                recovered = Account.recover_message(signable, signature=signature)
            except Exception as exc:
                # Not an EOA signature; a contract wallet may still accept it.
                logger.debug(f"ECDSA recovery failed for {address}: {exc}")
                recovered = None
            if recovered is not None and to_checksum_address(recovered) == address:
                return address
            if self.w3 is not None and await self._is_valid_contract_signature(
                address, signable, signature
            ):
                return address
            logger.warning(f"Upload signature for {claim.name} does not match {address}")
            return None
        except Exception as exc:
            logger.warning(f"Error while verifying typed data for {claim.name}: {exc}")
            return None

    async def _is_valid_contract_signature(self, address: str, signable, signature: bytes) -> bool:
        code = await self.w3.eth.get_code(address)
        if not code:
            return False
        digest = keccak(b"\x19" + signable.version + signable.header + signable.body)
        contract = self.w3.eth.contract(address=address, abi=ERC1271_ABI)
        result = await contract.functions.isValidSignature(digest, signature).call()
        return bytes(result) == ERC1271_MAGIC_VALUE
