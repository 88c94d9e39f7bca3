from typing import Sequence

from openapi_enrich.core.errors import ConfigurationError
from openapi_enrich.schemas.operation import AlterOperation, RemoveAllOperation, RemoveOperation, RuleOperation
from openapi_enrich.schemas.rule import ValidationRule


def _single_match(rules: list[ValidationRule], message: str, *, property_path: str | None) -> int:
    where = f" on '{property_path}'" if property_path else ""
    matches = [i for i, rule in enumerate(rules) if rule.message == message]
    if not matches:
        raise ConfigurationError(f"No validation rule exists with message: '{message}'{where}")
    if len(matches) > 1:
        raise ConfigurationError(f"{len(matches)} validation rules share the message '{message}'{where}")
    return matches[0]


def apply_operations(
    rules: list[ValidationRule],
    operations: Sequence[RuleOperation],
    *,
    property_path: str | None = None,
) -> None:
    """
    Apply operations to `rules` in place, in declaration order.

    Every operation must hit something: Alter/Remove need exactly one rule
    with the given message, RemoveAll needs a non-empty list.
    """
    for op in operations:
        if isinstance(op, AlterOperation):
            index = _single_match(rules, op.old_message, property_path=property_path)
            rules[index] = rules[index].with_message(op.new_message)
        elif isinstance(op, RemoveOperation):
            index = _single_match(rules, op.message, property_path=property_path)
            del rules[index]
        elif isinstance(op, RemoveAllOperation):
            if not rules:
                where = f" on '{property_path}'" if property_path else ""
                raise ConfigurationError(f"No validation rules exist to remove{where}.")
            rules.clear()
        else:
            raise ConfigurationError(f"Unknown rule operation: {op!r}")
