"""Read-only vault access over JSON-RPC."""
from __future__ import annotations

from web3 import Web3

# Minimal ERC-4626-style surface; sharePrice is not part of the standard and may revert.
VAULT_ABI = [
    {"inputs": [], "name": "totalAssets", "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [], "name": "totalSupply", "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [], "name": "sharePrice", "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [], "name": "decimals", "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}], "stateMutability": "view", "type": "function"},
]


class ChainReader:
    """Thin wrapper around a web3 HTTP provider for block metadata and vault view calls."""

    def __init__(self, rpc_url: str, timeout: float = 20.0):
        if not rpc_url:
            raise ValueError("RPC URL not configured")
        self.rpc_url = rpc_url
        self.web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self._contracts = {}

    def _vault(self, address: str):
        checksum = Web3.to_checksum_address(address)
        contract = self._contracts.get(checksum)
        if contract is None:
            contract = self.web3.eth.contract(address=checksum, abi=VAULT_ABI)
            self._contracts[checksum] = contract
        return contract

    def network_id(self) -> int:
        return int(self.web3.eth.chain_id)

    def current_block(self) -> int:
        return int(self.web3.eth.block_number)

    def block_timestamp(self, block_number: int) -> int | None:
        block = self.web3.eth.get_block(block_number)
        timestamp = block.get("timestamp") if block else None
        return int(timestamp) if timestamp else None

    def call_view(self, address: str, function_name: str) -> int:
        fn = getattr(self._vault(address).functions, function_name)
        return int(fn().call())
