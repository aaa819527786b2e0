"""
Walkthrough: declaring a resource, migrating it and creating records.

Run with a reachable PostgreSQL (see examples/db_setup.py):

    python -m examples.zoo
"""

import asyncio
import sys
from datetime import UTC, datetime

from examples.db_setup import close_connections, setup_database
from examples.models import Zoo, ZooRepository
from ormtour import auto_migrate, setup_logger, transactional

# Logging has to be configured before connecting if the connection and every
# SQL statement should show up. Accepted levels: off, fatal, error, warn,
# info, debug.
setup_logger(sys.stdout, "debug")

# The resource itself lives in examples/models.py:
#
#   class Zoo(Resource):
#       id: Serial = None           # auto-generated integer key
#       name: String = None         # VARCHAR(50)
#       description: Text = None    # TEXT
#       inception: DateTime = None  # TIMESTAMP WITH TIME ZONE
#       open: Boolean = False       # BOOLEAN DEFAULT FALSE
#
# The table name is derived from the class name: Zoo -> zoos.

zoos = ZooRepository()


@transactional()
async def walkthrough():
    # create() builds a resource and stores it in one go.
    zoo = await zoos.create(name="The Glue Factory", inception=datetime.now(UTC))

    # If storing worked, the returned resource is saved and carries the key the
    # database generated. If it did not, the same resource comes back unsaved,
    # initialized with the given attributes and the declared defaults, and its
    # errors say why. Check saved to tell the two apart.
    if zoo.saved:
        print(f"zoo saved {zoo!r}")
    else:
        print(f"zoo NOT saved {zoo!r} {zoo.errors}")

    # first_or_create() looks for the first zoo matching the conditions and
    # only creates one when nothing matches. The zoo above matches, so no new
    # row is written here.
    zoo = await zoos.first_or_create({"name": "The Glue Factory"})
    print(f"zoo.saved = {zoo.saved}")
    print(f"zoo = {zoo!r}")

    # When the attributes for a new record differ from the lookup conditions,
    # pass them as a second mapping. Both are merged for the new record, so the
    # conditions do not need repeating.
    zoo = await zoos.first_or_create(
        {"name": "The Glue Factory"}, {"inception": datetime.now(UTC)}
    )
    print(f"zoo.saved = {zoo.saved}")
    print(f"zoo = {zoo!r}")

    # On overlap the second mapping wins: this looks for 'The Chocolat Factory'
    # but, finding none, creates a zoo named 'Brooklyn Zoo'.
    zoo = await zoos.first_or_create(
        {"name": "The Chocolat Factory"},
        {"name": "Brooklyn Zoo", "inception": datetime.now(UTC)},
    )
    print(f"zoo.saved = {zoo.saved}")
    print(f"zoo = {zoo!r}")


async def main():
    await setup_database()
    try:
        # auto_migrate drops the table if it exists and creates it again from
        # the declared properties: afterwards it is empty and matches Zoo.
        # auto_upgrade would only create missing tables and add missing
        # columns, keeping the data.
        await auto_migrate(Zoo)
        await walkthrough()
    finally:
        await close_connections()


if __name__ == "__main__":
    asyncio.run(main())
