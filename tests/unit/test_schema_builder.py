"""
End-to-end tests: declared types to an executable graphene schema.
"""

import pytest

from rail_mutations.core.descriptors import FieldSpec, TypeDescriptor, TypeRegistry
from rail_mutations.core.exceptions import SchemaError
from rail_mutations.core.identifiers import encode_id
from rail_mutations.core.settings import MutationSettings
from rail_mutations.generators.pipeline import PipelineBuilder
from rail_mutations.hooks import HookRegistry
from rail_mutations.permissions import PermissionGate, require_authenticated
from rail_mutations.schema import MutationSchemaBuilder
from rail_mutations.validation import Validator

pytestmark = pytest.mark.unit

CREATE_TODO = """
mutation Create($input: _CreateTodoInput!) {
  createTodo(input: $input) {
    clientMutationId
    Todo { id title done }
  }
}
"""

UPDATE_TODO = """
mutation Update($input: _UpdateTodoInput!) {
  updateTodo(input: $input) {
    clientMutationId
    Todo { id title done updatedAt }
  }
}
"""

DELETE_TODO = """
mutation Delete($input: _DeleteTodoInput!) {
  deleteTodo(input: $input) {
    Todo { id title }
  }
}
"""


@pytest.fixture
def registry(todo_type):
    registry = TypeRegistry()
    registry.register(TypeDescriptor("User", fields=(FieldSpec("username", "String"),)))
    registry.register(todo_type)
    return registry


@pytest.fixture
def pipeline_builder(memory_store):
    return PipelineBuilder(
        MutationSettings(),
        store=memory_store,
        hooks=HookRegistry(),
        permission_gate=PermissionGate(),
        validator=Validator(),
    )


@pytest.fixture
def schema(registry, pipeline_builder):
    return MutationSchemaBuilder(registry, pipeline_builder=pipeline_builder).build()


def _create(schema, run, title="a"):
    result = run(schema.execute_async(CREATE_TODO, variable_values={"input": {"title": title}}))
    assert result.errors is None
    return result.data["createTodo"]["Todo"]


class TestSchemaShape:
    def test_mutation_root_lists_every_operation(self, schema):
        mutation_fields = set(schema.graphql_schema.mutation_type.fields)

        assert {"createTodo", "updateTodo", "replaceTodo", "deleteTodo"} <= mutation_fields

    def test_disabled_operations_are_not_generated(self, registry, memory_store):
        settings = MutationSettings(generate_delete=False, generate_replace=False)
        builder = PipelineBuilder(settings, store=memory_store, hooks=HookRegistry())

        schema = MutationSchemaBuilder(registry, pipeline_builder=builder).build()

        mutation_fields = set(schema.graphql_schema.mutation_type.fields)
        assert "deleteTodo" not in mutation_fields
        assert "replaceTodo" not in mutation_fields

    def test_update_input_has_optional_fields_and_required_id(self, schema):
        fields = schema.graphql_schema.get_type("_UpdateTodoInput").fields

        assert str(fields["title"].type) == "String"
        assert str(fields["id"].type) == "ID!"
        assert str(fields["clientMutationId"].type) == "String"

    def test_unknown_reference_fails_at_build_time(self, pipeline_builder):
        registry = TypeRegistry()
        registry.register(TypeDescriptor("Todo", fields=(FieldSpec("owner", "Ghost"),)))

        with pytest.raises(SchemaError):
            MutationSchemaBuilder(registry, pipeline_builder=pipeline_builder).build()


class TestMutationExecution:
    def test_update_round_trip(self, schema, run):
        todo = _create(schema, run)

        result = run(
            schema.execute_async(
                UPDATE_TODO,
                variable_values={
                    "input": {"id": todo["id"], "done": True, "clientMutationId": "req-1"}
                },
            )
        )

        assert result.errors is None
        payload = result.data["updateTodo"]
        assert payload["clientMutationId"] == "req-1"
        assert payload["Todo"]["id"] == todo["id"]
        assert payload["Todo"]["title"] == "a"
        assert payload["Todo"]["done"] is True

    def test_not_found_is_reported_with_code(self, schema, run):
        result = run(
            schema.execute_async(
                UPDATE_TODO,
                variable_values={"input": {"id": encode_id("Todo", "missing"), "done": True}},
            )
        )

        error = result.errors[0]
        assert error.extensions["code"] == "NOT_FOUND"
        assert error.extensions["field"] == "id"
        assert "Todo:missing" in error.message

    def test_wrong_type_id_is_reported(self, schema, run):
        result = run(
            schema.execute_async(
                UPDATE_TODO,
                variable_values={"input": {"id": encode_id("User", "1"), "done": True}},
            )
        )

        assert result.errors[0].extensions["code"] == "INVALID_ID"

    def test_validation_error_lists_violations(self, schema, run):
        todo = _create(schema, run)

        result = run(
            schema.execute_async(
                UPDATE_TODO, variable_values={"input": {"id": todo["id"], "title": None}}
            )
        )

        extensions = result.errors[0].extensions
        assert extensions["code"] == "VALIDATION_ERROR"
        assert extensions["violations"][0]["field"] == "title"

    def test_permission_uses_execution_context(self, registry, memory_store, run):
        gate = PermissionGate()
        gate.register("Todo", "create", require_authenticated)
        builder = PipelineBuilder(
            MutationSettings(), store=memory_store, hooks=HookRegistry(), permission_gate=gate
        )
        schema = MutationSchemaBuilder(registry, pipeline_builder=builder).build()

        result = run(
            schema.execute_async(
                CREATE_TODO, variable_values={"input": {"title": "a"}}, context_value={}
            )
        )

        assert result.errors[0].extensions["code"] == "PERMISSION_DENIED"
        assert run(memory_store.find_by_field("Todo", "title", "a")) == []

    def test_delete_then_lookup_returns_null(self, schema, run):
        todo = _create(schema, run)

        deleted = run(
            schema.execute_async(DELETE_TODO, variable_values={"input": {"id": todo["id"]}})
        )
        lookup = run(
            schema.execute_async(
                "query Get($id: ID!) { getTodo(id: $id) { id } }", variable_values={"id": todo["id"]}
            )
        )

        assert deleted.data["deleteTodo"]["Todo"]["title"] == "a"
        assert lookup.data["getTodo"] is None


class TestConfiguredArgumentNames:
    @pytest.fixture
    def renamed_schema(self, registry, memory_store):
        settings = MutationSettings(
            id_field_name="todoId", correlation_field_name="clientMutationId"
        )
        builder = PipelineBuilder(
            settings,
            store=memory_store,
            hooks=HookRegistry(),
            permission_gate=PermissionGate(),
            validator=Validator(),
        )
        return MutationSchemaBuilder(registry, pipeline_builder=builder).build()

    def test_renamed_token_and_id_are_unpacked(self, renamed_schema, memory_store, run):
        todo = run(memory_store.create("Todo", {"title": "a", "done": False}))

        result = run(
            renamed_schema.execute_async(
                """
                mutation Update($input: _UpdateTodoInput!) {
                  updateTodo(input: $input) {
                    clientMutationId
                    Todo { id title done }
                  }
                }
                """,
                variable_values={
                    "input": {"todoId": todo["id"], "done": True, "clientMutationId": "r1"}
                },
            )
        )

        assert result.errors is None
        payload = result.data["updateTodo"]
        assert payload["clientMutationId"] == "r1"
        assert payload["Todo"] == {"id": todo["id"], "title": "a", "done": True}
