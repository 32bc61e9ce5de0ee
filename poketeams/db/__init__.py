from poketeams.db.database import close_db, get_session, init_db
from poketeams.db.errors import ConcurrentWriteError, ConstraintViolationError
from poketeams.db.operations import (
    add_team_members,
    bump_token_version,
    create_purchase,
    create_team,
    create_user,
    get_purchase_by_owner_and_name,
    get_purchases_by_ids,
    get_team_with_members,
    get_user,
    get_user_by_email,
    list_purchases_for_user,
    list_users,
    set_user_role,
)

__all__ = [
    "ConcurrentWriteError",
    "ConstraintViolationError",
    "add_team_members",
    "close_db",
    "bump_token_version",
    "create_purchase",
    "create_team",
    "create_user",
    "get_purchase_by_owner_and_name",
    "get_purchases_by_ids",
    "get_session",
    "get_team_with_members",
    "get_user",
    "get_user_by_email",
    "init_db",
    "list_purchases_for_user",
    "list_users",
    "set_user_role",
]
