from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from examples.models import Comment, Post, Trackback, Zoo
from ormtour import Resource, Serial
from ormtour.entities import resource_class


class TestResourceState:
    def test_new_resource(self):
        zoo = Zoo(name="Awesome Town Zoo")

        assert zoo.new is True
        assert zoo.saved is False
        assert zoo.key is None
        assert zoo.open is False

    def test_new_resource_is_dirty_with_assigned_attributes(self):
        assert Zoo().dirty is False

        zoo = Zoo(name="Awesome Town Zoo")
        assert zoo.dirty is True
        assert zoo.dirty_attributes == {"name": "Awesome Town Zoo"}

    def test_saved_resource_tracks_changes(self):
        zoo = Zoo(id=1, name="The Glue Factory")
        zoo.mark_saved()

        assert zoo.saved is True
        assert zoo.clean is True

        zoo.name = "Brooklyn Zoo"
        assert zoo.dirty is True
        assert zoo.dirty_attributes == {"name": "Brooklyn Zoo"}

        zoo.name = "The Glue Factory"
        assert zoo.dirty is False

    def test_mark_new_forgets_persisted_state(self):
        zoo = Zoo(id=2, name="Lion")
        zoo.mark_saved()
        zoo.mark_new()

        assert zoo.new is True
        assert zoo.key == 2

    def test_destroyed_until_saved_again(self):
        zoo = Zoo(id=2, name="Lion")
        zoo.mark_saved()
        zoo.mark_destroyed()

        assert zoo.new is True
        assert zoo.destroyed is True
        assert zoo.key == 2

        zoo.mark_saved()
        assert zoo.destroyed is False

    def test_set_attributes(self):
        inception = datetime(2012, 10, 7, 12, 44, 50, tzinfo=UTC)
        zoo = Zoo(name="Awesome Town Zoo")
        zoo.set_attributes(name="No Fun Zoo", open=True, inception=inception)

        assert zoo.attributes == {
            "id": None,
            "name": "No Fun Zoo",
            "description": None,
            "inception": inception,
            "open": True,
        }

    def test_set_attributes_rejects_unknown_properties(self):
        zoo = Zoo()
        with pytest.raises(AttributeError, match="Zoo has no property 'colour'"):
            zoo.set_attributes(name="Lion", colour="yellow")
        # nothing was assigned
        assert zoo.name is None

    def test_assignment_is_validated(self):
        zoo = Zoo()
        with pytest.raises(ValidationError):
            zoo.open = "not a boolean"


class TestDeclarations:
    def test_table_names(self):
        assert Zoo.table_name() == "zoos"
        assert Post.table_name() == "posts"
        assert Comment.table_name() == "comments"

    def test_key_name(self):
        assert Zoo.key_name() == "id"

    def test_registry(self):
        assert resource_class("Comment") is Comment
        with pytest.raises(LookupError):
            resource_class("Giraffe")

    def test_resource_names_are_unique(self):
        taken = "Resource name 'Zoo' is already taken by examples.models.Zoo"
        with pytest.raises(TypeError, match=taken):

            class Zoo(Resource):
                id: Serial = None

        assert resource_class("Zoo").__module__ == "examples.models"

    def test_unregistered_resource_may_reuse_a_name(self):
        class Zoo(Resource):
            registered = False

            id: Serial = None

        assert resource_class("Zoo") is not Zoo

    def test_has_many(self):
        association = Post.children()["comments"]

        assert association.foreign_key == "post_id"
        assert association.resolve() is Comment

    def test_belongs_to(self):
        field_name, belongs_to = Comment.parents()["post"]

        assert field_name == "post_id"
        assert belongs_to.required is True
        assert belongs_to.resolve() is Post
        assert Trackback.parents()["post"][1].required is False


class TestValidation:
    def test_required_parent_must_be_present(self):
        assert Comment(rating=5).validation_errors() == ["Post must not be blank"]
        assert Comment(rating=5, post_id=1).validation_errors() == []

    def test_optional_parent(self):
        assert Trackback(url="https://example.com").validation_errors() == []

    def test_errors_are_recorded(self):
        comment = Comment(rating=5)
        comment.record_errors(comment.validation_errors())

        assert comment.errors == ["Post must not be blank"]

        comment.mark_saved()
        assert comment.errors == []
