"""Contract ABI fragments used for margin deposits."""

from typing import Any

ERC20_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "allowance",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    # OpenZeppelin ERC-6093 errors
    {
        "type": "error",
        "name": "ERC20InsufficientAllowance",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "allowance", "type": "uint256"},
            {"name": "needed", "type": "uint256"},
        ],
    },
    {
        "type": "error",
        "name": "ERC20InsufficientBalance",
        "inputs": [
            {"name": "sender", "type": "address"},
            {"name": "balance", "type": "uint256"},
            {"name": "needed", "type": "uint256"},
        ],
    },
    {
        "type": "error",
        "name": "ERC20InvalidSpender",
        "inputs": [{"name": "spender", "type": "address"}],
    },
]

VAULT_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "deposit",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "account", "type": "address"},
            {"name": "subAccountId", "type": "uint8"},
            {"name": "quantity", "type": "uint256"},
            {"name": "asset", "type": "address"},
        ],
        "outputs": [],
    },
]


def error_signatures(abi: list[dict[str, Any]]) -> dict[str, str]:
    """Map each custom error's canonical signature to its name."""
    return {
        f"{entry['name']}({','.join(i['type'] for i in entry['inputs'])})": entry["name"]
        for entry in abi
        if entry.get("type") == "error"
    }
