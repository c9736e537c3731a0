"""
Ownership and availability of ENS names, read from chain.

Nothing here is cached: every read and write asks the chain again.
"""
import asyncio
import logging
from dataclasses import dataclass

from ens.utils import label_to_hash, normal_name_to_hash
from eth_utils import to_checksum_address
from web3 import AsyncHTTPProvider, AsyncWeb3

from ens_media.errors import OwnershipLookupError
from ens_media.networks import EnsDeployment

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40

REGISTRY_ABI = [
    {
        "name": "owner",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "node", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "address"}],
    }
]
NAME_WRAPPER_ABI = [
    {
        "name": "ownerOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "id", "type": "uint256"}],
        "outputs": [{"name": "owner", "type": "address"}],
    }
]
BASE_REGISTRAR_ABI = [
    {
        "name": "available",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "id", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    }
]


@dataclass(frozen=True)
class Ownership:
    owner: str | None
    available: bool


def is_subname(name: str) -> bool:
    return len(name.split(".")) > 2


def parent_name(name: str) -> str:
    return ".".join(name.split(".")[1:])


def is_eth_2ld(name: str) -> bool:
    labels = name.split(".")
    return len(labels) == 2 and labels[-1] == "eth"


def _as_owner(address: str | None) -> str | None:
    if not address or address.lower() == ZERO_ADDRESS:
        return None
    return to_checksum_address(address)


def build_web3(deployment: EnsDeployment) -> AsyncWeb3:
    return AsyncWeb3(AsyncHTTPProvider(deployment.rpc_url))


class EnsOwnershipOracle:
    """
    Resolves {owner, available} for a name against one ENS deployment.

    Owner is the registry owner (the manager) for every name, never the registrar
    token holder. 2LD .eth names take availability from the registrar; other
    names are available when unowned.
    Wrapped names resolve to the NameWrapper token owner.
    """

    def __init__(self, w3: AsyncWeb3, deployment: EnsDeployment):
        self.w3 = w3
        self.deployment = deployment
        self._registry = w3.eth.contract(
            address=to_checksum_address(deployment.registry), abi=REGISTRY_ABI
        )
        self._name_wrapper = (
            w3.eth.contract(
                address=to_checksum_address(deployment.name_wrapper),
                abi=NAME_WRAPPER_ABI,
            )
            if deployment.name_wrapper
            else None
        )
        self._registrar = (
            w3.eth.contract(
                address=to_checksum_address(deployment.base_registrar),
                abi=BASE_REGISTRAR_ABI,
            )
            if deployment.base_registrar
            else None
        )

    async def _unwrap(self, owner: str | None, node: bytes) -> str | None:
        if (
            owner
            and self._name_wrapper is not None
            and owner.lower() == self._name_wrapper.address.lower()
        ):
            return await self._name_wrapper.functions.ownerOf(
                int.from_bytes(node, "big")
            ).call()
        return owner

    async def _lookup_owner(self, name: str) -> str | None:
        node = bytes(normal_name_to_hash(name))
        owner = await self._registry.functions.owner(node).call()
        return _as_owner(await self._unwrap(owner, node))

    async def _lookup_available(self, name: str) -> bool:
        token_id = int.from_bytes(label_to_hash(name.split(".")[0]), "big")
        return await self._registrar.functions.available(token_id).call()

    async def get_owner(self, name: str) -> str | None:
        try:
            return await self._lookup_owner(name)
        except Exception as exc:
            logger.error(f"Failed to resolve owner of {name}: {exc}", exc_info=True)
            raise OwnershipLookupError(f"Failed to resolve owner of {name}") from exc

    async def get_owner_and_available(self, name: str) -> Ownership:
        try:
            if is_eth_2ld(name) and self._registrar is not None:
                owner, available = await asyncio.gather(
                    self._lookup_owner(name), self._lookup_available(name)
                )
            else:
                owner = await self._lookup_owner(name)
                available = owner is None
        except Exception as exc:
            logger.error(f"Failed to resolve ownership of {name}: {exc}", exc_info=True)
            raise OwnershipLookupError(f"Failed to resolve ownership of {name}") from exc
        return Ownership(owner=owner, available=bool(available))

    async def is_parent_owner(self, name: str, address: str) -> bool:
        parent_owner = await self.get_owner(parent_name(name))
        return parent_owner is not None and parent_owner.lower() == address.lower()
