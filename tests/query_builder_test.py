"""
Tests for the SQL the QueryBuilder renders: SELECT, mass UPDATE and mass DELETE.
"""

import pytest

from examples.models import CommentSchema
from ormtour.query_builder import QueryBuilder, shift_placeholders


class TestSelect:
    def test_basic_select_all(self):
        query, params = QueryBuilder("zoos").build()

        assert query == "SELECT * FROM zoos"
        assert params == []

    def test_select_specific_fields(self):
        query, _ = QueryBuilder("zoos").select("id", "name").build()
        assert query == "SELECT id, name FROM zoos"

    def test_where_conditions_are_joined_with_and(self):
        query, params = (
            QueryBuilder("zoos").where("name", "Brooklyn Zoo").where("open", False).build()
        )

        assert query == "SELECT * FROM zoos WHERE name = $1 AND open = $2"
        assert params == ["Brooklyn Zoo", False]

    def test_none_becomes_is_null(self):
        query, params = (
            QueryBuilder("zoos").where("description", None).where("inception", "!=", None).build()
        )

        assert query == "SELECT * FROM zoos WHERE description IS NULL AND inception IS NOT NULL"
        assert params == []

    def test_explicit_operator_and_or_where(self):
        query, params = (
            QueryBuilder("comments").where("rating", ">", 3).or_where("rating", "<", 1).build()
        )

        assert query == "SELECT * FROM comments WHERE rating > $1 OR rating < $2"
        assert params == [3, 1]

    def test_alphabetic_operators_are_uppercased(self):
        query, _ = QueryBuilder("zoos").where("name", "like", "%Zoo").build()
        assert query == "SELECT * FROM zoos WHERE name LIKE $1"

    def test_where_rejects_wrong_arity(self):
        with pytest.raises(TypeError):
            QueryBuilder("zoos").where("name")

    def test_grouped_condition_renumbers_placeholders(self):
        query, params = (
            QueryBuilder("comments")
            .where("post_id", 7)
            .where(lambda q: q.where("rating", ">", 3).or_where("rating", None))
            .build()
        )

        assert query == (
            "SELECT * FROM comments WHERE post_id = $1 AND (rating > $2 OR rating IS NULL)"
        )
        assert params == [7, 3]

    def test_empty_group_is_ignored(self):
        builder = QueryBuilder("comments").where("post_id", 1)
        assert builder.where(lambda q: q) is builder

    def test_where_in_and_not_in(self):
        query, params = (
            QueryBuilder("zoos").where_in("id", [1, 2]).where_not_in("name", ["Lion"]).build()
        )

        assert query == "SELECT * FROM zoos WHERE id IN ($1, $2) AND name NOT IN ($3)"
        assert params == [1, 2, "Lion"]

    def test_empty_in_list_matches_nothing(self):
        query, params = QueryBuilder("zoos").where_in("id", []).build()

        assert query == "SELECT * FROM zoos WHERE FALSE"
        assert params == []

    def test_typed_field_conditions(self):
        query, params = (
            QueryBuilder("comments").where_any(CommentSchema.rating.gt(3)).build()
        )

        assert query == "SELECT * FROM comments WHERE rating > $1"
        assert params == [3]

    def test_where_any_with_list(self):
        query, params = (
            QueryBuilder("comments")
            .where_any([CommentSchema.rating.gte(2), CommentSchema.post_id.eq(5)])
            .build()
        )

        assert query == "SELECT * FROM comments WHERE rating >= $1 AND post_id = $2"
        assert params == [2, 5]

    def test_order_limit_offset(self):
        query, _ = (
            QueryBuilder("zoos").order_by("name").order_by_desc("id").limit(5).offset(10).build()
        )
        assert query == "SELECT * FROM zoos ORDER BY name, id DESC LIMIT 5 OFFSET 10"

    def test_paginate(self):
        query, _ = QueryBuilder("zoos").paginate(3, per_page=5).build()
        assert query == "SELECT * FROM zoos LIMIT 5 OFFSET 10"

    @pytest.mark.parametrize("page, per_page", [(0, 10), (1, 0)])
    def test_paginate_rejects_invalid_values(self, page, per_page):
        with pytest.raises(ValueError):
            QueryBuilder("zoos").paginate(page, per_page)

    def test_count(self):
        query, params = QueryBuilder("zoos").where("open", True).build_count()

        assert query == "SELECT COUNT(*) FROM zoos WHERE open = $1"
        assert params == [True]

    def test_fluent_interface_immutability(self):
        builder1 = QueryBuilder("zoos")
        builder2 = builder1.where("name", "Lion")

        assert builder1 is not builder2
        assert builder1.build() == ("SELECT * FROM zoos", [])
        assert builder2.build() == ("SELECT * FROM zoos WHERE name = $1", ["Lion"])


class TestMassStatements:
    def test_update_without_conditions_touches_every_row(self):
        query, params = QueryBuilder("zoos").build_update(
            {"name": "Funky Town Municipal Zoo"}
        )

        assert query == "UPDATE zoos SET name = $1"
        assert params == ["Funky Town Municipal Zoo"]

    def test_update_places_where_params_after_set_values(self):
        query, params = (
            QueryBuilder("zoos")
            .where("open", False)
            .where_in("id", [1, 3])
            .build_update({"name": "Closed", "description": "gone"}, returning=True)
        )

        assert query == (
            "UPDATE zoos SET name = $1, description = $2 "
            "WHERE open = $3 AND id IN ($4, $5) RETURNING *"
        )
        assert params == ["Closed", "gone", False, 1, 3]

    def test_update_needs_values(self):
        with pytest.raises(ValueError):
            QueryBuilder("zoos").build_update({})

    def test_delete(self):
        assert QueryBuilder("zoos").build_delete() == ("DELETE FROM zoos", [])

        query, params = QueryBuilder("zoos").where("id", 2).build_delete()
        assert query == "DELETE FROM zoos WHERE id = $1"
        assert params == [2]


def test_shift_placeholders():
    assert shift_placeholders("a = $1 AND b = $12", 3) == "a = $4 AND b = $15"
    assert shift_placeholders("a = $1", 0) == "a = $1"
