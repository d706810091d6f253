from solders.pubkey import Pubkey

# ============================================
# MINTS
# ============================================
WSOL_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")
WSOL_MINT_STR = str(WSOL_MINT)

LAMPORTS_PER_SOL = 1_000_000_000

# ============================================
# CHAIN / DEX IDENTIFIERS
# ============================================
TARGET_CHAIN_ID = "solana"
TARGET_DEX_ID = "raydium"
COINGECKO_NATIVE_ID = "solana"

# ============================================
# ENDPOINTS
# ============================================
DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEXSCREENER_API_BASE = "https://api.dexscreener.com"
RUGCHECK_API_BASE = "https://api.rugcheck.xyz/v1"
COINGECKO_API_BASE = "https://api.coingecko.com/api/v3"
RAYDIUM_SWAP_HOST = "https://transaction-v1.raydium.io"
RAYDIUM_BASE_HOST = "https://api-v3.raydium.io"
RAYDIUM_PRIORITY_FEE_PATH = "/main/auto-fee"

# Raydium txVersion values
TX_VERSION_V0 = "V0"
TX_VERSION_LEGACY = "LEGACY"
