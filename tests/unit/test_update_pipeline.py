"""
Unit tests for the update mutation pipeline.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from rail_mutations.core.exceptions import (
    InvalidIdentifier,
    NotFound,
    PermissionDenied,
    PersistenceError,
    ValidationError,
    FieldViolation,
)
from rail_mutations.core.identifiers import Identifier, encode_id, is_valid_id
from rail_mutations.core.settings import MutationSettings
from rail_mutations.generators.pipeline import PipelineBuilder
from rail_mutations.generators.pipeline.factories import update_mutation_factory
from rail_mutations.generators.pipeline.steps import merge_candidate
from rail_mutations.hooks import HookRegistry

pytestmark = pytest.mark.unit

TODO_ID = encode_id("Todo", "1")
EXISTING = {"id": TODO_ID, "title": "a", "done": False}


def _store(existing=EXISTING):
    store = MagicMock()
    store.is_valid_id.side_effect = is_valid_id
    store.get_by_id = AsyncMock(return_value=dict(existing) if existing is not None else None)

    async def _update(type_name, identifier, patch_fields, **kwargs):
        return {**existing, **patch_fields}

    store.update = AsyncMock(side_effect=_update)
    return store


def _allow_gate():
    gate = MagicMock()
    gate.check = AsyncMock(return_value=None)
    return gate


def _validator():
    validator = MagicMock()
    validator.validate = AsyncMock(return_value=None)
    return validator


def _operation(todo_type, store, gate=None, validator=None, hooks=None):
    builder = PipelineBuilder(
        MutationSettings(),
        store=store,
        hooks=hooks if hooks is not None else HookRegistry(),
        permission_gate=gate or _allow_gate(),
        validator=validator or _validator(),
    )
    return update_mutation_factory(todo_type, builder)


class TestUpdateScenario:
    def test_update_sends_only_input_fields_and_returns_stored_record(self, todo_type, run):
        store = _store()
        operation = _operation(todo_type, store)

        result = run(operation({"id": TODO_ID, "Todo": {"done": True}}))

        store.update.assert_awaited_once_with(
            "Todo",
            Identifier("Todo", "1"),
            {"done": True},
            expected_version=None,
            version_field=None,
        )
        assert result == {
            "client_mutation_id": None,
            "Todo": {"id": TODO_ID, "title": "a", "done": True},
        }

    def test_correlation_token_is_echoed(self, todo_type, run):
        operation = _operation(todo_type, _store())

        result = run(
            operation({"id": TODO_ID, "client_mutation_id": "req-9", "Todo": {"done": True}})
        )

        assert result["client_mutation_id"] == "req-9"

    def test_id_and_token_inside_input_are_not_sent_to_store(self, todo_type, run):
        store = _store()
        operation = _operation(todo_type, store)

        run(
            operation(
                {
                    "id": TODO_ID,
                    "Todo": {"id": TODO_ID, "client_mutation_id": "x", "title": "b"},
                }
            )
        )

        assert store.update.await_args.args[2] == {"title": "b"}

    def test_result_is_store_record_not_candidate(self, todo_type, run):
        store = _store()
        store.update = AsyncMock(
            return_value={"id": TODO_ID, "title": "A", "done": True, "updated_at": "now"}
        )
        operation = _operation(todo_type, store)

        result = run(operation({"id": TODO_ID, "Todo": {"done": True}}))

        assert result["Todo"]["title"] == "A"
        assert result["Todo"]["updated_at"] == "now"


class TestIdentifierFailures:
    def test_id_of_another_type_fails_before_any_store_call(self, todo_type, run):
        store = _store()
        operation = _operation(todo_type, store)

        with pytest.raises(InvalidIdentifier) as exc_info:
            run(operation({"id": encode_id("User", "1"), "Todo": {"done": True}}))

        assert exc_info.value.field == "id"
        store.get_by_id.assert_not_awaited()
        store.update.assert_not_awaited()

    def test_malformed_id_fails_without_fetch(self, todo_type, run):
        store = _store()
        operation = _operation(todo_type, store)

        with pytest.raises(InvalidIdentifier):
            run(operation({"id": "%%%", "Todo": {"done": True}}))

        store.get_by_id.assert_not_awaited()

    def test_missing_id_fails(self, todo_type, run):
        operation = _operation(todo_type, _store())

        with pytest.raises(InvalidIdentifier):
            run(operation({"Todo": {"done": True}}))

    def test_unknown_record_raises_not_found_and_never_writes(self, todo_type, run):
        store = _store(existing=None)
        operation = _operation(todo_type, store)

        with pytest.raises(NotFound) as exc_info:
            run(operation({"id": TODO_ID, "Todo": {"done": True}}))

        assert "Todo:1" in str(exc_info.value)
        assert exc_info.value.field == "id"
        store.get_by_id.assert_awaited_once()
        store.update.assert_not_awaited()


class TestOrdering:
    def test_step_order_is_fixed(self, todo_type):
        operation = _operation(todo_type, _store())

        assert operation.pipeline.get_step_names() == [
            "decode_id",
            "instance_lookup",
            "candidate_merge",
            "permission",
            "validation",
            "persist",
            "format_result",
            "hook_notification",
        ]

    def test_permission_sees_merged_candidate(self, todo_type, run):
        gate = _allow_gate()
        operation = _operation(todo_type, _store(), gate=gate)

        run(operation({"id": TODO_ID, "Todo": {"done": True}}, {"user": "ada"}))

        type_name, op, candidate, context = gate.check.await_args.args
        assert (type_name, op) == ("Todo", "update")
        assert candidate == {"id": TODO_ID, "title": "a", "done": True}
        assert context == {"user": "ada"}

    def test_denied_permission_prevents_validation_and_write(self, todo_type, run):
        store = _store()
        gate = MagicMock()
        gate.check = AsyncMock(side_effect=PermissionDenied("Todo", "update"))
        validator = _validator()
        operation = _operation(todo_type, store, gate=gate, validator=validator)

        with pytest.raises(PermissionDenied):
            run(operation({"id": TODO_ID, "Todo": {"done": True}}))

        validator.validate.assert_not_awaited()
        store.update.assert_not_awaited()

    def test_falsy_gate_result_denies(self, todo_type, run):
        store = _store()
        gate = MagicMock()
        gate.check = MagicMock(return_value=False)
        operation = _operation(todo_type, store, gate=gate)

        with pytest.raises(PermissionDenied):
            run(operation({"id": TODO_ID, "Todo": {"done": True}}))

        store.update.assert_not_awaited()

    def test_validator_receives_candidate_and_existing(self, todo_type, run):
        validator = _validator()
        operation = _operation(todo_type, _store(), validator=validator)

        run(operation({"id": TODO_ID, "Todo": {"title": "b"}}))

        _, _, descriptor, candidate, existing, interfaces = validator.validate.await_args.args
        assert descriptor is todo_type
        assert candidate == {"id": TODO_ID, "title": "b", "done": False}
        assert existing == EXISTING
        assert "Node" in interfaces

    def test_validation_error_prevents_write(self, todo_type, run):
        store = _store()
        validator = _validator()
        validator.validate.side_effect = ValidationError([FieldViolation("title", "bad")])
        operation = _operation(todo_type, store, validator=validator)

        with pytest.raises(ValidationError) as exc_info:
            run(operation({"id": TODO_ID, "Todo": {"title": ""}}))

        assert exc_info.value.violations[0].field == "title"
        store.update.assert_not_awaited()


class TestPersistenceAndHooks:
    def test_store_failure_surfaces_as_persistence_error(self, todo_type, run):
        store = _store()
        store.update = AsyncMock(side_effect=RuntimeError("disk full"))
        operation = _operation(todo_type, store)

        with pytest.raises(PersistenceError) as exc_info:
            run(operation({"id": TODO_ID, "Todo": {"done": True}}))

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_hook_receives_persisted_result(self, todo_type, run):
        store = _store()
        hooks = MagicMock()
        operation = _operation(todo_type, store, hooks=hooks)

        with patch("rail_mutations.generators.pipeline.steps.hooks.enqueue_hooks") as enqueue:
            result = run(operation({"id": TODO_ID, "Todo": {"done": True}}))

        enqueue.assert_called_once_with(store, hooks, "Todo", "afterUpdate", result)

    def test_hook_failure_does_not_affect_result(self, todo_type, run):
        operation = _operation(todo_type, _store())

        with patch(
            "rail_mutations.generators.pipeline.steps.hooks.enqueue_hooks",
            side_effect=RuntimeError("hook runtime down"),
        ):
            result = run(operation({"id": TODO_ID, "Todo": {"done": True}}))

        assert result == {
            "client_mutation_id": None,
            "Todo": {"id": TODO_ID, "title": "a", "done": True},
        }

    def test_hooks_not_enqueued_when_write_fails(self, todo_type, run):
        store = _store()
        store.update = AsyncMock(side_effect=PersistenceError("nope"))
        operation = _operation(todo_type, store)

        with patch("rail_mutations.generators.pipeline.steps.hooks.enqueue_hooks") as enqueue:
            with pytest.raises(PersistenceError):
                run(operation({"id": TODO_ID, "Todo": {"done": True}}))

        enqueue.assert_not_called()


@pytest.mark.parametrize(
    "existing, submitted",
    [
        ({"id": "x", "a": 1, "b": 2}, {"b": 3}),
        ({"id": "x", "a": 1}, {"c": None}),
        ({}, {"a": 1}),
        ({"id": "x", "a": [1]}, {}),
    ],
)
def test_merge_candidate_overlays_input(existing, submitted):
    original = dict(existing)

    candidate = merge_candidate(existing, submitted)

    for name, value in submitted.items():
        assert candidate[name] == value
    for name, value in existing.items():
        if name not in submitted:
            assert candidate[name] == value
    assert existing == original
    assert candidate is not existing
