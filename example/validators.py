"""
Rule declarations for the example app: fluent validators and builder
configurations, registered on one OpenApiValidation by `register`.
"""
from datetime import date

from openapi_enrich import OpenApiValidation, Validator
from openapi_enrich.sources.builder import ValidationBuilder
from example.schemas.showcase import BuilderShowcase, FluentShowcase, Role
from example.schemas.todo import Priority, TodoPatch, TodoUpdate


def _not_in_past(value: date) -> bool:
    return value >= date.today()


class TodoPatchValidator(Validator):
    model = TodoPatch

    def __init__(self):
        super().__init__()
        self.rule_for("title").min_length(1).max_length(200)
        self.rule_for("description").max_length(1000)
        self.rule_for("priority").is_in_enum(Priority)
        self.rule_for("estimate_hours").inclusive_between(0, 1000)
        self.rule_for("due_date").must(_not_in_past, "Must not be in the past")


class FluentShowcaseValidator(Validator):
    model = FluentShowcase

    def __init__(self):
        super().__init__()
        self.rule_for("name").not_empty().length(2, 50)
        self.rule_for("age").inclusive_between(0, 130)
        self.rule_for("email").email_address()
        self.rule_for("homepage").url()
        self.rule_for("role").is_enum_name(Role)
        self.rule_for("level").is_in_enum(Priority)
        self.rule_for("score").greater_than(0.0).less_than_or_equal_to(10.0).with_message("Score must be at most 10")


def configure_todo_update(b: ValidationBuilder) -> None:
    b.property("title").alter("Must be between 1 and 200 characters", "Must be 1 to 200 characters")
    b.property("description").remove("Must be 1000 characters or fewer")
    b.property("priority").enum(Priority)
    b.property("is_complete").description("Set once the work is done")


def configure_builder_showcase(b: ValidationBuilder) -> None:
    b.property("code").pattern(r"^[A-Z]{3}-\d{3}$", "Must look like ABC-123").description("Stock keeping code")
    b.property("quantity").between(1, 100)
    b.property("address.postcode").custom("Must be a postcode the carrier serves")
    b.property("tags[*]").max_length(20)
    b.property("notes").max_length(500).append_rules_to_property_description(False)


todo_patch_validator = TodoPatchValidator()
fluent_showcase_validator = FluentShowcaseValidator()


def register(validation: OpenApiValidation) -> OpenApiValidation:
    validation.add_validator(todo_patch_validator)
    validation.add_validator(fluent_showcase_validator)
    validation.with_validation(TodoUpdate, configure_todo_update)
    validation.with_validation(BuilderShowcase, configure_builder_showcase)
    return validation
