import pytest

from openapi_enrich import ConfigurationError
from openapi_enrich.core.operations import apply_operations
from openapi_enrich.schemas.operation import AlterOperation, RemoveAllOperation, RemoveOperation
from openapi_enrich.schemas.rule import RequiredRule, StringLengthRule


def _rules():
    return [
        RequiredRule(property_path="name", message="Is required"),
        StringLengthRule(property_path="name", message="Must be between 1 and 10 characters", min_length=1, max_length=10),
    ]


def test_alter_changes_only_the_message():
    rules = _rules()
    apply_operations(rules, [AlterOperation(old_message="Is required", new_message="Name is mandatory")])
    assert [r.message for r in rules] == ["Name is mandatory", "Must be between 1 and 10 characters"]
    assert isinstance(rules[0], RequiredRule)


def test_remove_deletes_the_matching_rule():
    rules = _rules()
    apply_operations(rules, [RemoveOperation(message="Is required")])
    assert len(rules) == 1
    assert isinstance(rules[0], StringLengthRule)


def test_remove_all_empties_the_list():
    rules = _rules()
    apply_operations(rules, [RemoveAllOperation()])
    assert rules == []


def test_operations_apply_in_order():
    rules = _rules()
    apply_operations(
        rules,
        [
            AlterOperation(old_message="Is required", new_message="Needed"),
            RemoveOperation(message="Needed"),
        ],
    )
    assert [r.message for r in rules] == ["Must be between 1 and 10 characters"]


def test_unknown_message_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="No validation rule exists with message: 'Nope'"):
        apply_operations(_rules(), [RemoveOperation(message="Nope")], property_path="User.name")


def test_ambiguous_message_is_a_configuration_error():
    rules = _rules() + [RequiredRule(property_path="name", message="Is required")]
    with pytest.raises(ConfigurationError, match="2 validation rules"):
        apply_operations(rules, [AlterOperation(old_message="Is required", new_message="x")])


def test_remove_all_on_empty_list_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="No validation rules exist to remove"):
        apply_operations([], [RemoveAllOperation()])


def test_blank_messages_are_rejected():
    with pytest.raises(ConfigurationError):
        RemoveOperation(message=" ")
    with pytest.raises(ConfigurationError):
        AlterOperation(old_message="a", new_message="")
