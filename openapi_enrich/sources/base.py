from openapi_enrich.schemas.descriptor import TypeDescriptor


class RuleSource:
    """
    One way of declaring rules for a model.

    Only `emit_rules` is mandatory. Paths in every returned map are wire
    paths (`customer.email`, `tags[*]`).
    """

    name = "rules"

    def emit_rules(self, descriptor: TypeDescriptor) -> dict[str, list]:
        raise NotImplementedError

    def operations(self, descriptor: TypeDescriptor) -> dict[str, list]:
        return {}

    def append_overrides(self, descriptor: TypeDescriptor) -> dict[str, bool]:
        return {}

    def type_append_default(self, descriptor: TypeDescriptor) -> bool | None:
        return None
