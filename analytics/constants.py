"""Constants for the Monad analytics backend."""

# Refresh cadences (seconds)
NETWORK_REFRESH_INTERVAL = 10  # Network stats: every 10 seconds
TRANSACTION_REFRESH_INTERVAL = 5  # Transaction batches: every 5 seconds
VALIDATOR_REFRESH_INTERVAL = 300  # Validator set: every 5 minutes
DAPP_REFRESH_INTERVAL = 120  # Dapp set: every 2 minutes
PURGE_INTERVAL = 60  # Retention purge: every minute

# Retention windows (seconds)
NETWORK_RETENTION = 604_800  # Keep 7 days of network snapshots
TRANSACTION_RETENTION = 86_400  # Keep 24 hours of transactions

# Ingestion batch sizes
TRANSACTION_BATCH_SIZE = 10
VALIDATOR_SET_SIZE = 8

# Storage
DATABASE_URL = "sqlite+aiosqlite:///./analytics.db"

# Read cache
CACHE_TTL = 30  # Default TTL: 30 seconds
CACHE_MAX_SIZE = 1000  # Maximum number of cached query shapes

# Read API defaults
DEFAULT_HISTORY_HOURS = 24
DEFAULT_TRANSACTION_LIMIT = 20
DASHBOARD_TRANSACTION_LIMIT = 10
DASHBOARD_TOP_N = 5

# Upstream explorer feed
EXPLORER_API_URL = "https://api.etherscan.io/api"
EXPLORER_TIMEOUT = 10  # seconds
WEI_PER_ETHER = 10 ** 18
WEI_PER_GWEI = 10 ** 9
