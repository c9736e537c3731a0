"""
Naming-system deployments the service can resolve names on.
"""
from dataclasses import dataclass
from enum import Enum

from ens_media.errors import UnsupportedNetworkError
from ens_media.settings import settings


class Network(str, Enum):
    MAINNET = "mainnet"
    SEPOLIA = "sepolia"
    HOLESKY = "holesky"
    LOCALHOST = "localhost"


@dataclass(frozen=True)
class EnsDeployment:
    rpc_url: str
    registry: str
    name_wrapper: str | None = None
    base_registrar: str | None = None


ENS_REGISTRY = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"
BASE_REGISTRAR = "0x57f1887a8BF19b14fC0dF6Fd9B2acc9Af147eA85"

DEPLOYMENTS: dict[Network, EnsDeployment] = {
    Network.MAINNET: EnsDeployment(
        rpc_url="https://ethereum-rpc.publicnode.com",
        registry=ENS_REGISTRY,
        name_wrapper="0xD4416b13d2b3a9aBae7AcD5D6C2BbDBE25686401",
        base_registrar=BASE_REGISTRAR,
    ),
    Network.SEPOLIA: EnsDeployment(
        rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
        registry=ENS_REGISTRY,
        name_wrapper="0x0635513f179D50A207757E05759CbD106d7dFcE8",
        base_registrar=BASE_REGISTRAR,
    ),
    Network.HOLESKY: EnsDeployment(
        rpc_url="https://ethereum-holesky-rpc.publicnode.com",
        registry=ENS_REGISTRY,
        name_wrapper="0xab50971078225D365994dc1Edcb9b7FD72Bb4862",
        base_registrar=BASE_REGISTRAR,
    ),
}

LOCALHOST_RPC_URL = "http://127.0.0.1:8545"


def is_dev() -> bool:
    return settings.ENVIRONMENT == "dev"


def resolve_network(raw: str | None) -> Network:
    """
    Map the optional path segment to a Network, falling back to DEFAULT_NETWORK.
    Raises UnsupportedNetworkError for unknown networks and for localhost outside dev.
    """
    value = (raw or settings.DEFAULT_NETWORK).lower()
    if value == Network.LOCALHOST.value and not is_dev():
        raise UnsupportedNetworkError(
            "Network middleware error: localhost is only available in development mode"
        )
    try:
        return Network(value)
    except ValueError:
        raise UnsupportedNetworkError("Network is not supported")


def _localhost_deployment() -> EnsDeployment:
    required = {
        "LOCALHOST_ENS_REGISTRY": settings.LOCALHOST_ENS_REGISTRY,
        "LOCALHOST_ENS_NAME_WRAPPER": settings.LOCALHOST_ENS_NAME_WRAPPER,
        "LOCALHOST_ENS_BASE_REGISTRAR_IMPLEMENTATION": settings.LOCALHOST_ENS_BASE_REGISTRAR_IMPLEMENTATION,
    }
    missing = [key for key, address in required.items() if not address]
    if missing:
        raise UnsupportedNetworkError(
            "Network middleware error: Missing required localhost ENS contract "
            f"addresses: {', '.join(missing)}"
        )
    return EnsDeployment(
        rpc_url=LOCALHOST_RPC_URL,
        registry=settings.LOCALHOST_ENS_REGISTRY,
        name_wrapper=settings.LOCALHOST_ENS_NAME_WRAPPER,
        base_registrar=settings.LOCALHOST_ENS_BASE_REGISTRAR_IMPLEMENTATION,
    )


def get_deployment(network: Network) -> EnsDeployment:
    """Contract addresses and RPC endpoint for a network; WEB3_ENDPOINT_MAP overrides the URL."""
    if network is Network.LOCALHOST:
        deployment = _localhost_deployment()
    else:
        deployment = DEPLOYMENTS[network]
    override = settings.WEB3_ENDPOINT_MAP.get(network.value)
    if override:
        deployment = EnsDeployment(
            rpc_url=override,
            registry=deployment.registry,
            name_wrapper=deployment.name_wrapper,
            base_registrar=deployment.base_registrar,
        )
    return deployment
