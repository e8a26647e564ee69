"""
Static constants configuration.

Operational defaults that environment variables in env.py may override,
plus fixed business rules that never vary by environment.
"""

# =============================================================================
# DATABASE
# =============================================================================

DEFAULT_POOL_SIZE = 10
DEFAULT_MAX_OVERFLOW = 20
DEFAULT_POOL_TIMEOUT = 30  # seconds
DEFAULT_POOL_RECYCLE = 3600  # seconds

# =============================================================================
# SESSIONS AND PASSWORDS
# =============================================================================

DEFAULT_SESSION_EXPIRY_DAYS = 7
DEFAULT_BCRYPT_ROUNDS = 12

# =============================================================================
# PAYMENT PROVIDER
# =============================================================================

# Pinned so subscription objects still carry current_period_end
DEFAULT_STRIPE_API_VERSION = "2024-11-20.acacia"

# =============================================================================
# BILLING AND USAGE
# =============================================================================

DEFAULT_INVOICE_DUE_DAYS = 7
DEFAULT_USAGE_WINDOW_DAYS = 30

# Admin list views
ADMIN_DEFAULT_PAGE_SIZE = 50
ADMIN_MAX_PAGE_SIZE = 100
ADMIN_RECENT_ROWS = 10
