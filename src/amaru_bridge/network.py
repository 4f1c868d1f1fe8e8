from enum import Enum
from typing import Dict, List, Union


class NetworkName(str, Enum):
    MAINNET = "mainnet"
    PREPROD = "preprod"
    PREVIEW = "preview"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Union[str, "NetworkName"]) -> Union["NetworkName", str]:
        """
        Resolves a network identity case-insensitively ("PreProd" -> PREPROD).
        Identities that are not one of the named networks are returned as-is.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            return value


_UPSTREAM_PEERS: Dict[NetworkName, List[str]] = {
    NetworkName.MAINNET: [
        "relays.cardano-mainnet.iohk.io:3001",
    ],
    NetworkName.PREPROD: [
        "preprod-node.play.dev.cardano.org:3001",
    ],
    NetworkName.PREVIEW: [
        "preview-node.play.dev.cardano.org:3001",
        "relays.cardano-preview.iohkdev.io:3001",
    ],
}


def peers_for_network(network: Union[str, NetworkName]) -> List[str]:
    """
    Returns the upstream peers (`host:port`) for a network identity. Unknown
    networks get an empty list and leave peer discovery to the engine.
    """
    return list(_UPSTREAM_PEERS.get(NetworkName.parse(network), []))
