"""Token acquisition through an ordered chain of MSAL auth flows.

Public API:
- TokenFetcher (lock + auth flow chain + cache clearing)
- AuthSettings, Alias, load_alias() (settings)
- AuthMode (enabled strategies, platform aware)
- AuthFlowExecutor, create_auth_flows() (strategy chain)
- AccountResolver (cached account disambiguation)
- ProcessLock (cross-process prompt lock)
- TokenResult, AuthFlowResult, AuthType (results)
- AuthFlowCredential (azure.core TokenCredential adapter)
"""

from .accounts import AccountResolution, AccountResolver, CachedAccount, Resolution
from .config import Alias, AuthSettings, load_alias
from .credential import AuthFlowCredential
from .fetcher import TokenFetcher
from .flows import AuthFlowExecutor, create_auth_flows
from .lock import ProcessLock, lock_key
from .mode import AuthMode
from .token import AuthFlowResult, AuthType, TokenResult

__all__ = [
    "AccountResolution",
    "AccountResolver",
    "Alias",
    "AuthFlowCredential",
    "AuthFlowExecutor",
    "AuthFlowResult",
    "AuthMode",
    "AuthSettings",
    "AuthType",
    "CachedAccount",
    "ProcessLock",
    "Resolution",
    "TokenFetcher",
    "TokenResult",
    "create_auth_flows",
    "load_alias",
    "lock_key",
]
