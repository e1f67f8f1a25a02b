"""
ABI of the EventTicket contract (ERC-721 with per-token ticket records).
"""

TICKET_INFO_COMPONENTS = [
    {"name": "eventId", "type": "uint256"},
    {"name": "seat", "type": "string"},
    {"name": "sector", "type": "string"},
    {"name": "eventDate", "type": "uint256"},
    {"name": "checkedIn", "type": "bool"}
]

EVENT_TICKET_ABI = [
    {
        "inputs": [
            {"name": "recipient", "type": "address"},
            {"name": "eventId", "type": "uint256"},
            {"name": "seat", "type": "string"},
            {"name": "sector", "type": "string"},
            {"name": "eventDate", "type": "uint256"},
            {"name": "tokenURI", "type": "string"}
        ],
        "name": "mintTicket",
        "outputs": [{"name": "tokenId", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "getTicketInfo",
        "outputs": [{"name": "ticket", "type": "tuple", "components": TICKET_INFO_COMPONENTS}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "getCompleteTicketInfo",
        "outputs": [
            {"name": "ticket", "type": "tuple", "components": TICKET_INFO_COMPONENTS},
            {"name": "uri", "type": "string"},
            {"name": "owner", "type": "address"}
        ],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "checkIn",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "isTicketValid",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "isTicketCheckedIn",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "tokenURI",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "ownerOf",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "tokenId", "type": "uint256"}
        ],
        "name": "safeTransferFrom",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "from", "type": "address"},
            {"indexed": True, "name": "to", "type": "address"},
            {"indexed": True, "name": "tokenId", "type": "uint256"}
        ],
        "name": "Transfer",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "tokenId", "type": "uint256"},
            {"indexed": True, "name": "owner", "type": "address"},
            {"indexed": True, "name": "eventId", "type": "uint256"},
            {"indexed": False, "name": "seat", "type": "string"},
            {"indexed": False, "name": "eventDate", "type": "uint256"}
        ],
        "name": "TicketMinted",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "tokenId", "type": "uint256"},
            {"indexed": False, "name": "timestamp", "type": "uint256"}
        ],
        "name": "TicketCheckedIn",
        "type": "event"
    }
]
