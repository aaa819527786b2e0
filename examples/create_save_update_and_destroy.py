"""
Walkthrough: the full life of a record, from creation to destruction.

    python -m examples.create_save_update_and_destroy
"""

import asyncio
import sys
from datetime import UTC, datetime

from examples.db_setup import close_connections, setup_database
from examples.models import Zoo, ZooRepository, ZooUpdate
from ormtour import (
    DatabaseManager,
    UpdateConflictError,
    auto_migrate,
    setup_logger,
    transactional,
)

setup_logger(sys.stdout, "debug")

zoos = ZooRepository()


def show(zoo: Zoo):
    print(f"zoo.saved = {zoo.saved}")
    print(f"zoo = {zoo!r}")


async def create():
    zoo = await zoos.create(name="The Glue Factory", inception=datetime.now(UTC))
    if zoo.saved:
        print(f"zoo saved {zoo!r}")
    else:
        print(f"zoo NOT saved {zoo!r} {zoo.errors}")

    # Finds the zoo created above instead of creating a second one
    show(await zoos.first_or_create({"name": "The Glue Factory"}))

    # Lookup conditions first, extra attributes for a new record second
    show(
        await zoos.first_or_create(
            {"name": "The Glue Factory"}, {"inception": datetime.now(UTC)}
        )
    )

    # Nothing named 'The Chocolat Factory' exists; the new zoo is 'Brooklyn Zoo'
    # because the second mapping overrides the conditions
    show(
        await zoos.first_or_create(
            {"name": "The Chocolat Factory"},
            {"name": "Brooklyn Zoo", "inception": datetime.now(UTC)},
        )
    )


async def save() -> Zoo:
    # A resource can also be built first, filled in, and saved later. save()
    # returns True when the record was stored and False otherwise.
    zoo = zoos.new()
    zoo.set_attributes(name="The Paper Factory", inception=datetime.now(UTC))
    await zoos.save(zoo)
    show(zoo)

    # Three ways of setting properties before a save:
    zoo = zoos.new(name="Awesome Town Zoo")  # keyword arguments to new()
    zoo.set_attributes(name="No Fun Zoo", open=False)  # several at once
    zoo.name = "Dodgy Town Zoo"  # one property
    await zoos.save(zoo)
    show(zoo)

    # first_or_new() is to new() what first_or_create() is to create(): the
    # same lookup, but a record that was not found comes back unsaved.
    missing = await zoos.first_or_new({"name": "Nowhere Zoo"})
    print(f"first_or_new: new = {missing.new}, saved = {missing.saved}")
    return zoo


async def update(zoo: Zoo):
    # update() assigns and saves in one call and returns what save() would
    zoo_updated = await zoos.update(zoo, ZooUpdate(name="Funky Town Municipal Zoo"))
    print(f"update returned {zoo_updated}")
    show(zoo)

    # update() refuses to run on a resource that already holds unsaved changes,
    # so those changes are never stored as a side effect.
    zoo.name = "Brooklyn Zoo"
    print(f"zoo.dirty = {zoo.dirty}")
    try:
        await zoos.update(zoo, ZooUpdate(name="Funky Town Municipal Zoo"))
    except UpdateConflictError as e:
        print(f"Error while updating zoo: {e}")
    await zoos.reload(zoo)

    # update_all() is the mass version: one UPDATE for every zoo matched by the
    # repository's query, which here has no conditions, so every row changes.
    # Scoped versions work too: zoos.where("open", False).update_all(...)
    count = await zoos.update_all(ZooUpdate(name="Funky Town Municipal Zoo"))
    print(f"{count} zoos renamed")

    # The table now reads something like:
    #   1 | Funky Town Municipal Zoo | | 2026-10-18 12:44:50+00 | f
    #   2 | Funky Town Municipal Zoo | | 2026-10-18 12:44:50+00 | f
    #   3 | Funky Town Municipal Zoo | | 2026-10-18 12:44:50+00 | f
    #   4 | Funky Town Municipal Zoo | |                        | f
    for record in await zoos.all():
        print(repr(record))


async def destroy():
    # destroy() deletes one record and reports whether a row went away
    zoo = await zoos.find_by_id(2)
    print(f"Destroying {zoo!r}")
    if zoo is not None and await zoos.destroy(zoo):
        print("Destroyed")

    # destroy_all() removes every record matched by the query; without
    # conditions that is the whole table. zoos.where(...).destroy_all()
    # limits it to the matching rows.
    print("Destroying all!")
    await zoos.destroy_all()
    print(f"zoos.length = {len(await zoos.all())}")


async def talk_to_the_database():
    # Statements the repository does not cover can go straight to the
    # database. Inside a transaction they use its connection.
    await DatabaseManager.execute("INSERT INTO zoos (id, name) VALUES (1, 'Lion')")
    await DatabaseManager.execute("INSERT INTO zoos (id, name) VALUES ($1, $2)", 2, "Elephant")

    # Several rows in one statement work as well in PostgreSQL:
    #   INSERT INTO zoos (id, name) VALUES (3, 'dog'), (4, 'cat')
    for record in await zoos.all():
        print(repr(record))


@transactional()
async def walkthrough():
    await create()
    zoo = await save()
    await update(zoo)
    await destroy()
    await talk_to_the_database()


async def main():
    await setup_database()
    try:
        await auto_migrate(Zoo)
        await walkthrough()
    finally:
        await close_connections()


if __name__ == "__main__":
    asyncio.run(main())
