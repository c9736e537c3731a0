"""
Per-request network selection and the chain-backed collaborators built from it.
"""
from fastapi import Depends, Request

from ens_media.networks import Network, get_deployment, resolve_network
from ens_media.services.ownership import EnsOwnershipOracle, build_web3
from ens_media.services.signature import UploadSignatureVerifier


async def get_network(request: Request) -> Network:
    """
    Network from the optional ``{network}`` path segment.
    Raises UnsupportedNetworkError (400) for unknown or disallowed networks.
    """
    return resolve_network(request.path_params.get("network"))


async def get_web3(network: Network = Depends(get_network)):
    return build_web3(get_deployment(network))


async def get_ownership_oracle(
    network: Network = Depends(get_network), w3=Depends(get_web3)
) -> EnsOwnershipOracle:
    return EnsOwnershipOracle(w3, get_deployment(network))


async def get_signature_verifier(w3=Depends(get_web3)) -> UploadSignatureVerifier:
    return UploadSignatureVerifier(w3=w3)
