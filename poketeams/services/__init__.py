"""
PokeTeams services.

Business logic for the catalog, mystery boxes, purchases, teams and accounts.
"""

from poketeams.services.catalog_client import CatalogSource, PokeApiClient
from poketeams.services.email import EmailService, get_email_service
from poketeams.services.identity import (
    LoginResult,
    NewUserData,
    TokenClaims,
    authenticate_user,
    create_or_promote_admin,
    decode_token,
    hash_password,
    invalidate_all_sessions,
    is_user_admin,
    issue_token,
    register_user,
    resolve_principal,
    verify_password,
)
from poketeams.services.mystery_box import MysteryBoxAllocator, draw, select_tier
from poketeams.services.pricing import price_of
from poketeams.services.purchase_ledger import (
    list_collection,
    normalize_item_name,
    purchase_item,
    purchase_mystery_box,
)
from poketeams.services.rarity_cache import RarityCache, RarityCacheSnapshot
from poketeams.services.team_composition import (
    add_members,
    allowed_types,
    create_team,
    find_incompatible,
    is_compatible,
)

__all__ = [
    # Catalog
    "CatalogSource",
    "PokeApiClient",
    "RarityCache",
    "RarityCacheSnapshot",
    # Mystery box
    "MysteryBoxAllocator",
    "draw",
    "select_tier",
    # Purchases
    "list_collection",
    "normalize_item_name",
    "price_of",
    "purchase_item",
    "purchase_mystery_box",
    # Teams
    "add_members",
    "allowed_types",
    "create_team",
    "find_incompatible",
    "is_compatible",
    # Accounts
    "EmailService",
    "LoginResult",
    "NewUserData",
    "TokenClaims",
    "authenticate_user",
    "create_or_promote_admin",
    "decode_token",
    "get_email_service",
    "hash_password",
    "invalidate_all_sessions",
    "is_user_admin",
    "issue_token",
    "register_user",
    "resolve_principal",
    "verify_password",
]
