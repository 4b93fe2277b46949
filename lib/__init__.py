# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Supabase client factory for storage and table access
# - utils.py: Shared utilities (error base class, pixel rounding)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClientError, create_supabase_client
from lib.utils import ApplicationError, round_half_up

__all__ = [
    # Supabase
    "SupabaseClientError",
    "create_supabase_client",
    # Utils
    "ApplicationError",
    "round_half_up",
]
