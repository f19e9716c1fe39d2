"""
Unit tests for the Django ORM store, using the auth User model.
"""

import uuid

import pytest
from django.core.management import call_command

from rail_mutations.core.descriptors import FieldSpec, TypeDescriptor
from rail_mutations.core.exceptions import PersistenceError
from rail_mutations.core.identifiers import Identifier, decode_id, encode_id
from rail_mutations.core.settings import MutationSettings
from rail_mutations.generators.pipeline import PipelineBuilder
from rail_mutations.generators.pipeline.factories import (
    create_mutation_factory,
    update_mutation_factory,
)
from rail_mutations.hooks import HookRegistry
from rail_mutations.storage import DjangoModelStore

pytestmark = pytest.mark.unit


@pytest.fixture(scope="module", autouse=True)
def migrated_db():
    call_command("migrate", verbosity=0, interactive=False)


@pytest.fixture
def store():
    return DjangoModelStore({"User": "auth.User", "Group": "auth.Group"})


@pytest.fixture
def user_type():
    return TypeDescriptor(
        "User",
        fields=(
            FieldSpec("username", "String", required=True, unique=True),
            FieldSpec("email", "String"),
            FieldSpec("is_active", "Boolean"),
            FieldSpec("groups", "Group", many=True),
        ),
    )


def _username():
    return f"user-{uuid.uuid4().hex[:8]}"


class TestDjangoModelStore:
    def test_create_and_fetch(self, store, run):
        name = _username()

        record = run(store.create("User", {"username": name, "email": "a@example.com"}))
        fetched = run(store.get_by_id("User", decode_id(record["id"])))

        assert decode_id(record["id"]).type_name == "User"
        assert fetched["username"] == name
        assert fetched["email"] == "a@example.com"
        assert fetched["groups"] == []

    def test_missing_and_malformed_keys_return_none(self, store, run):
        assert run(store.get_by_id("User", Identifier("User", "999999"))) is None
        assert run(store.get_by_id("User", Identifier("User", "not-a-number"))) is None

    def test_update_patches_only_given_fields(self, store, run):
        record = run(store.create("User", {"username": _username(), "email": "a@example.com"}))

        updated = run(store.update("User", decode_id(record["id"]), {"is_active": False}))

        assert updated["is_active"] is False
        assert updated["email"] == "a@example.com"

    def test_relations_are_exposed_as_global_ids(self, store, run):
        group = run(store.create("Group", {"name": f"group-{uuid.uuid4().hex[:8]}"}))
        record = run(store.create("User", {"username": _username(), "groups": [group["id"]]}))

        assert record["groups"] == [group["id"]]

    def test_replace_resets_omitted_fields(self, store, run):
        record = run(store.create("User", {"username": _username(), "email": "a@example.com"}))

        replaced = run(
            store.replace("User", decode_id(record["id"]), {"username": record["username"]})
        )

        assert replaced["id"] == record["id"]
        assert replaced["email"] == ""

    def test_integrity_error_becomes_persistence_error(self, store, run):
        name = _username()
        run(store.create("User", {"username": name}))

        with pytest.raises(PersistenceError):
            run(store.create("User", {"username": name}))

    def test_delete(self, store, run):
        record = run(store.create("User", {"username": _username()}))
        identifier = decode_id(record["id"])

        removed = run(store.delete("User", identifier))

        assert removed["id"] == record["id"]
        assert run(store.get_by_id("User", identifier)) is None

    def test_find_by_field(self, store, run):
        name = _username()
        run(store.create("User", {"username": name}))

        found = run(store.find_by_field("User", "username", name))

        assert [r["username"] for r in found] == [name]

    def test_unknown_type_is_rejected(self, store, run):
        with pytest.raises(PersistenceError):
            run(store.get_by_id("Invoice", Identifier("Invoice", "1")))


class TestPipelineOverDjango:
    def test_update_pipeline_writes_through_orm(self, store, user_type, run):
        builder = PipelineBuilder(MutationSettings(), store=store, hooks=HookRegistry())
        created = run(
            create_mutation_factory(user_type, builder)({"User": {"username": _username()}})
        )
        user_id = created["User"]["id"]

        result = run(
            update_mutation_factory(user_type, builder)(
                {"id": user_id, "client_mutation_id": "u1", "User": {"email": "b@example.com"}}
            )
        )

        assert result["client_mutation_id"] == "u1"
        assert result["User"]["email"] == "b@example.com"
        stored = run(store.get_by_id("User", decode_id(user_id)))
        assert stored["email"] == "b@example.com"

    def test_duplicate_username_is_a_validation_error(self, store, user_type, run):
        from rail_mutations.core.exceptions import ValidationError

        builder = PipelineBuilder(MutationSettings(), store=store, hooks=HookRegistry())
        create = create_mutation_factory(user_type, builder)
        name = _username()
        run(create({"User": {"username": name}}))

        with pytest.raises(ValidationError) as exc_info:
            run(create({"User": {"username": name}}))

        assert exc_info.value.violations[0].code == "unique"

    def test_group_reference_must_exist(self, store, user_type, run):
        from rail_mutations.core.exceptions import ValidationError

        builder = PipelineBuilder(MutationSettings(), store=store, hooks=HookRegistry())

        with pytest.raises(ValidationError):
            run(
                create_mutation_factory(user_type, builder)(
                    {"User": {"username": _username(), "groups": [encode_id("Group", "424242")]}}
                )
            )
