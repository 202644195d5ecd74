"""Expansion of manifest templates into resource lists."""

from collections.abc import Mapping
from string import Template
from typing import Any, Union

import yaml

from .errors import TemplateError
from .resource import Resource


def _flatten(documents: list[Any]) -> list[Any]:
    manifests: list[Any] = []
    for document in documents:
        if document is None:
            continue
        if isinstance(document, list):
            manifests.extend(document)
        elif isinstance(document, dict) and document.get("kind") == "List" and "items" in document:
            manifests.extend(document["items"] or [])
        else:
            manifests.append(document)
    return manifests


def process_template_array(
    data: Mapping[str, Any],
    template: Union[Template, str],
    resource_cls: type[Resource] = Resource,
) -> list[Resource]:
    """
    Render a template and parse the result into an ordered list of resources.

    The rendered text is YAML: a stream of documents, a list of manifests,
    or a ``kind: List`` object with ``items``. Empty documents are skipped.

    Args:
        data: Substitution values (``$name`` / ``${name}`` placeholders)
        template: Template or template text
        resource_cls: Resource class to build

    Returns:
        Resources in document order

    Raises:
        TemplateError: If rendering or parsing fails, or an item is not a valid manifest
    """
    if isinstance(template, str):
        template = Template(template)

    try:
        rendered = template.substitute(data)
    except (KeyError, ValueError) as e:
        raise TemplateError(f"Unable to render template: {e!r}") from e

    try:
        documents = list(yaml.safe_load_all(rendered))
    except yaml.YAMLError as e:
        raise TemplateError(f"Rendered template is not valid YAML: {e}") from e

    resources = []
    for index, manifest in enumerate(_flatten(documents)):
        if not isinstance(manifest, dict):
            raise TemplateError(f"Template item {index} is not an object")
        try:
            resources.append(resource_cls(manifest))
        except ValueError as e:
            raise TemplateError(f"Template item {index}: {e}") from e
    return resources
