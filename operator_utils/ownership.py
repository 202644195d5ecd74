"""Controller owner reference stamping."""

from typing import Any, Optional

from .errors import AlreadyOwnedError, OwnershipError
from .resource import ManagedObject, split_api_version


def _refers_to_same_object(a: dict[str, Any], b: dict[str, Any]) -> bool:
    # Version is ignored, an owner keeps its identity across API versions
    group_a = split_api_version(a.get("apiVersion", ""))[0]
    group_b = split_api_version(b.get("apiVersion", ""))[0]
    return group_a == group_b and a.get("kind") == b.get("kind") and a.get("name") == b.get("name")


def controller_reference(owner: ManagedObject) -> dict[str, Any]:
    """
    Build a controller owner reference pointing at ``owner``.

    Args:
        owner: Owning object

    Returns:
        Owner reference in wire form
    """
    return {
        "apiVersion": owner.api_version,
        "kind": owner.kind,
        "name": owner.name,
        "uid": owner.uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }


def set_controller_reference(
    owner: ManagedObject, obj: ManagedObject, namespace: Optional[str] = None
) -> None:
    """
    Make ``owner`` the managing controller of ``obj``.

    An existing reference to the same owner is replaced. Garbage collection
    follows controller references, so the owner must be persisted (have a
    uid) and live in the same namespace as the object, or be cluster-scoped.

    Args:
        owner: Owning object
        obj: Owned object, modified in place
        namespace: Namespace the object will be stored in, if not its own

    Raises:
        OwnershipError: If the owner has no uid or the namespaces are incompatible
        AlreadyOwnedError: If another controller already owns the object
    """
    if not owner.uid:
        raise OwnershipError(f"Owner {owner} has no uid, it must be persisted first")

    target_namespace = namespace or obj.namespace
    if owner.namespace:
        if not target_namespace:
            raise OwnershipError(
                f"Cluster-scoped {obj} cannot have namespace-scoped owner {owner}"
            )
        if target_namespace != owner.namespace:
            raise OwnershipError(
                f"Cross-namespace owner references are disallowed: "
                f"owner {owner}, object {obj}"
            )

    reference = controller_reference(owner)
    references = obj.owner_references

    for existing in references:
        if existing.get("controller") and not _refers_to_same_object(existing, reference):
            raise AlreadyOwnedError(str(obj), existing)

    for index, existing in enumerate(references):
        if _refers_to_same_object(existing, reference):
            references[index] = reference
            break
    else:
        references.append(reference)

    obj.owner_references = references
