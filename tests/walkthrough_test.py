"""The walkthroughs in examples/ run against the test database"""

import pytest
import pytest_asyncio

from examples import associations, create_save_update_and_destroy, zoo
from ormtour import DatabaseManager


@pytest_asyncio.fixture
async def default_pool(test_db_pool):
    """The walkthroughs use the 'default' pool"""
    await DatabaseManager.add_pool("default", test_db_pool)
    yield test_db_pool
    await DatabaseManager.remove_pool("default")


@pytest.mark.asyncio
async def test_zoo_walkthrough(default_pool, capsys):
    await zoo.walkthrough()

    output = capsys.readouterr().out
    assert "zoo saved Zoo(" in output
    assert output.count("zoo.saved = True") == 3
    assert "name='Brooklyn Zoo'" in output


@pytest.mark.asyncio
async def test_life_of_a_record(default_pool, capsys):
    await create_save_update_and_destroy.walkthrough()

    output = capsys.readouterr().out
    assert "first_or_new: new = True, saved = False" in output
    assert "update returned True" in output
    assert "zoo.dirty = True" in output
    assert "Error while updating zoo: Zoo#update cannot be called on a dirty resource" in output
    assert "4 zoos renamed" in output
    assert "Destroyed" in output
    assert "zoos.length = 0" in output
    assert "name='Elephant'" in output


@pytest.mark.asyncio
async def test_associations_walkthrough(default_pool, capsys):
    await associations.walkthrough()

    output = capsys.readouterr().out
    assert "post has 3 comments" in output
    assert "popular comments: 2" in output
    assert "orphan.saved = False, errors = ['Post must not be blank']" in output
    assert "trackback.saved = True" in output
