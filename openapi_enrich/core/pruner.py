import logging
from typing import Any, Iterable, Iterator

from openapi_enrich.core.schema_helpers import child_nodes
from openapi_enrich.schemas.document import Document, MediaType
from openapi_enrich.schemas.schema_node import Reference

logger = logging.getLogger(__name__)


def _media_schemas(document: Document, content: dict[str, MediaType] | None) -> Iterator[Any]:
    for media in (content or {}).values():
        if media.schema_ is not None:
            yield media.schema_
        for encoding in (media.encoding or {}).values():
            yield from _header_schemas(document, encoding.headers)


def _header_schemas(document: Document, headers: dict[str, Any] | None) -> Iterator[Any]:
    for header in (headers or {}).values():
        header = document.resolve(header, "headers")
        if header is not None and header.schema_ is not None:
            yield header.schema_


def _parameter_schemas(document: Document, parameters: Iterable[Any] | None) -> Iterator[Any]:
    for parameter in parameters or []:
        parameter = document.resolve(parameter, "parameters")
        if parameter is None:
            continue
        if parameter.schema_ is not None:
            yield parameter.schema_
        yield from _media_schemas(document, parameter.content)


def root_schemas(document: Document) -> Iterator[Any]:
    """Every schema node an operation uses directly."""
    for item in document.paths.values():
        yield from _parameter_schemas(document, item.parameters)
        for _, operation in item.operations():
            yield from _parameter_schemas(document, operation.parameters)

            body = document.resolve(operation.request_body, "requestBodies")
            if body is not None:
                yield from _media_schemas(document, body.content)

            for response in (operation.responses or {}).values():
                response = document.resolve(response, "responses")
                if response is None:
                    continue
                yield from _media_schemas(document, response.content)
                yield from _header_schemas(document, response.headers)


def live_schema_names(document: Document) -> set[str]:
    """Names of component schemas reachable from any operation."""
    schemas = document.components.schemas if document.components and document.components.schemas else {}
    live: set[str] = set()
    stack = list(root_schemas(document))

    while stack:
        node = stack.pop()
        if isinstance(node, Reference):
            name = node.schema_name
            if name is None or name in live:
                continue
            live.add(name)
            target = schemas.get(name)
            if target is not None:
                stack.append(target)
        else:
            stack.extend(child_nodes(node))
    return live


def prune(document: Document) -> list[str]:
    """Delete component schemas no operation can reach; returns the removed names."""
    if document.components is None or not document.components.schemas:
        return []

    live = live_schema_names(document)
    schemas = document.components.schemas
    removed = [name for name in schemas if name not in live]
    for name in removed:
        del schemas[name]

    if removed:
        logger.debug("Pruned %d unreachable schemas: %s", len(removed), ", ".join(removed))
    return removed
