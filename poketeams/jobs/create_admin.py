"""
Bootstrap an admin account.

The admin endpoint itself requires an admin, so the first one is created
from the command line:

    python -m poketeams.jobs.create_admin --email a@b.c --password ... \
        --name Ada --last-name Lovelace

An existing account with the same e-mail is promoted instead.
"""

import argparse
import asyncio
import logging

from poketeams.db.database import async_session_factory, close_db, init_db
from poketeams.models.db import UserDB
from poketeams.services.identity import NewUserData, create_or_promote_admin

logger = logging.getLogger(__name__)


async def run_create_admin(data: NewUserData) -> UserDB:
    """Create or promote the admin in its own transaction."""
    await init_db()
    try:
        async with async_session_factory() as session:
            user = await create_or_promote_admin(session, data)
            await session.commit()
    finally:
        await close_db()

    logger.info("Admin account ready: %s (id %d)", user.email, user.id)
    return user


def parse_args(argv: list[str] | None = None) -> NewUserData:
    parser = argparse.ArgumentParser(description="Create or promote a PokeTeams admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", required=True)
    parser.add_argument("--last-name", required=True, dest="last_name")
    args = parser.parse_args(argv)
    return NewUserData(
        name=args.name,
        last_name=args.last_name,
        email=args.email,
        password=args.password,
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for creating an admin."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_create_admin(parse_args(argv)))


if __name__ == "__main__":
    main()
