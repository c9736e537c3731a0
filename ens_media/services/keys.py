"""
Object-store key layout.

Registered:   {network}/registered/{name}
Provisional:  {network}/unregistered/{name}/{claimant}
"""
from enum import Enum


class MediaSlot(str, Enum):
    AVATAR = "avatar"
    HEADER = "header"


def _network_value(network) -> str:
    return getattr(network, "value", network)


def registered_key(network, name: str) -> str:
    return f"{_network_value(network)}/registered/{name}"


def provisional_prefix(network, name: str) -> str:
    return f"{_network_value(network)}/unregistered/{name}/"


def provisional_key(network, name: str, claimant: str) -> str:
    return f"{provisional_prefix(network, name)}{claimant}"
