from __future__ import annotations

import logging
import threading
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field

from openapi_enrich.core.errors import ConfigurationError
from openapi_enrich.core.operations import apply_operations
from openapi_enrich.schemas.descriptor import TypeDescriptor, describe_model, is_model
from openapi_enrich.sources.base import RuleSource

logger = logging.getLogger(__name__)


class TypeRules(BaseModel):
    """Final rules for one model, after every source and operation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    model: Any
    descriptor: TypeDescriptor | None = None
    rules: dict[str, tuple[Any, ...]] = Field(default_factory=dict)
    append_default: bool | None = None
    append_overrides: dict[str, bool] = Field(default_factory=dict)

    @property
    def component_names(self) -> list[str]:
        return self.descriptor.component_names if self.descriptor else []


class RuleAggregator:
    """
    Collects rules per model from the registered sources, in source order.

    Results are cached for the life of the aggregator. The first caller for
    a model computes it under the lock; later readers never take the lock.
    """

    def __init__(self, sources: Iterable[RuleSource]):
        self.sources = list(sources)
        self._cache: dict[Any, TypeRules] = {}
        self._lock = threading.Lock()

    def aggregate(self, model: Any) -> TypeRules:
        cached = self._cache.get(model)
        if cached is not None:
            return cached
        with self._lock:
            cached = self._cache.get(model)
            if cached is None:
                self._collect(model, set())
                cached = self._cache[model]
        return cached

    def cached(self) -> dict[Any, TypeRules]:
        return dict(self._cache)

    def closure(self, models: Iterable[Any]) -> list[TypeRules]:
        """Aggregate `models` and every model reachable from their properties."""
        out: list[TypeRules] = []
        seen: set[Any] = set()
        pending = list(models)
        while pending:
            model = pending.pop(0)
            if model in seen:
                continue
            seen.add(model)
            type_rules = self.aggregate(model)
            out.append(type_rules)
            if type_rules.descriptor is not None:
                pending.extend(type_rules.descriptor.related_types)
        return out

    def _collect(self, model: Any, in_progress: set[Any]) -> None:
        if model in self._cache or model in in_progress:
            return
        in_progress.add(model)

        try:
            descriptor = describe_model(model) if is_model(model) else None
        except Exception:
            logger.warning("Could not describe %r, no rules collected", model, exc_info=True)
            descriptor = None

        if descriptor is None:
            self._cache[model] = TypeRules(model=model)
            return

        for nested in descriptor.related_types:
            self._collect(nested, in_progress)

        self._cache[model] = self._build(model, descriptor)
        logger.debug("Cached rules for %s (%d properties)", descriptor.name, len(self._cache[model].rules))

    def _build(self, model: Any, descriptor: TypeDescriptor) -> TypeRules:
        rules: dict[str, list] = {}
        operations: dict[str, list] = {}
        overrides: dict[str, bool] = {}
        append_default = None

        for source in self.sources:
            try:
                emitted = source.emit_rules(descriptor)
                source_operations = source.operations(descriptor)
                source_overrides = source.append_overrides(descriptor)
                source_default = source.type_append_default(descriptor)
            except ConfigurationError:
                raise
            except Exception:
                logger.warning(
                    "Rule source %r failed for %s, skipping it for this type",
                    source.name,
                    descriptor.name,
                    exc_info=True,
                )
                continue

            for path, path_rules in emitted.items():
                rules.setdefault(path, []).extend(path_rules)
            for path, path_operations in source_operations.items():
                operations.setdefault(path, []).extend(path_operations)
            overrides.update(source_overrides)
            if source_default is not None:
                append_default = source_default

        for path, path_operations in operations.items():
            apply_operations(rules.setdefault(path, []), path_operations, property_path=f"{descriptor.name}.{path}")

        return TypeRules(
            model=model,
            descriptor=descriptor,
            rules={path: tuple(path_rules) for path, path_rules in rules.items() if path_rules},
            append_default=append_default,
            append_overrides=overrides,
        )
