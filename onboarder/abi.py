"""Minimal ABIs for the contracts driven during onboarding.

These are small subsets of the full interfaces, focused on:
- ERC-20 balance reads and approvals
- strategy underlying-token lookup
- deposits into strategies (StrategyManager)
- operator registration and share reads (DelegationManager)
- operator-set registration and membership (AllocationManager)
- allowlist insertion on the dependent service (ServiceManager)
"""

ERC20_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]

ISTRATEGY_ABI = [
    {
        "type": "function",
        "name": "underlyingToken",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]

ISTRATEGY_MANAGER_ABI = [
    {
        "type": "function",
        "name": "depositIntoStrategy",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "strategy", "type": "address"},
            {"name": "token", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "depositShares", "type": "uint256"}],
    },
]

IDELEGATION_MANAGER_ABI = [
    {
        "type": "function",
        "name": "isOperator",
        "stateMutability": "view",
        "inputs": [{"name": "operator", "type": "address"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "registerAsOperator",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "initDelegationApprover", "type": "address"},
            {"name": "allocationDelay", "type": "uint32"},
            {"name": "metadataURI", "type": "string"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "operatorShares",
        "stateMutability": "view",
        "inputs": [
            {"name": "operator", "type": "address"},
            {"name": "strategy", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

_OPERATOR_SET_TUPLE = {
    "name": "operatorSet",
    "type": "tuple",
    "components": [
        {"name": "avs", "type": "address"},
        {"name": "id", "type": "uint32"},
    ],
}

IALLOCATION_MANAGER_ABI = [
    {
        "type": "function",
        "name": "registerForOperatorSets",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "operator", "type": "address"},
            {
                "name": "params",
                "type": "tuple",
                "components": [
                    {"name": "avs", "type": "address"},
                    {"name": "operatorSetIds", "type": "uint32[]"},
                    {"name": "data", "type": "bytes"},
                ],
            },
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "isMemberOfOperatorSet",
        "stateMutability": "view",
        "inputs": [
            {"name": "operator", "type": "address"},
            _OPERATOR_SET_TUPLE,
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]

SERVICE_ALLOWLIST_ABI = [
    {
        "type": "function",
        "name": name,
        "stateMutability": "nonpayable",
        "inputs": [{"name": "operator", "type": "address"}],
        "outputs": [],
    }
    for name in ("addValidatorToAllowlist", "addBspToAllowlist", "addMspToAllowlist")
]
