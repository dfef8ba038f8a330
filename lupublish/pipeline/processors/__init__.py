"""
Publish processors for lupublish.

One processor per publish stage:
- ResourceLocatorProcessor: declared resources → files to compile
- CompilerProcessor: files → compiled application map
- AccountResolverProcessor: application map → prediction account
- AssignmentProcessor: account + applications → per-app outcomes
"""

from .accounts import (
    AccountResolverProcessor,
    credential_error_from,
    default_account_name,
    find_account,
    is_token_expiry,
)
from .assignment import AssignmentProcessor, application_ids
from .compiler import (
    CompilerProcessor,
    LuBuilder,
    bot_path,
    is_using_adaptive_runtime,
    read_compiled_applications,
)
from .resources import ResourceLocatorProcessor, locate, locate_resources

__all__ = [
    # Resource Locator
    "ResourceLocatorProcessor",
    "locate",
    "locate_resources",
    # Compiler Adapter
    "CompilerProcessor",
    "LuBuilder",
    "bot_path",
    "is_using_adaptive_runtime",
    "read_compiled_applications",
    # Account Resolver
    "AccountResolverProcessor",
    "credential_error_from",
    "default_account_name",
    "find_account",
    "is_token_expiry",
    # Assignment Orchestrator
    "AssignmentProcessor",
    "application_ids",
]
