"""Dependency resolution for derived fields."""

from __future__ import annotations

import heapq
import re
from collections import defaultdict
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from derivedforms.exceptions import (
    CyclicDependencyError,
    DanglingReferenceError,
    DuplicateVariableNameError,
    InvalidParentError,
    SchemaResolutionError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable, Mapping

    from derivedforms.typing.models import FieldValue, FormField

T = TypeVar("T", bound=Hashable)

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


def variable_name(label: str) -> str:
    """Return the formula variable name derived from a field label.

    Args:
        label (str): Field label, e.g. `Birth Date`.

    Returns:
        str: Label stripped of non-alphanumeric characters and lowercased, e.g. `birthdate`.
    """
    return _NON_ALPHANUMERIC.sub("", label).lower()


def bound_names(parent: FormField) -> list[str]:
    """Return the names under which a parent field is visible to formulas.

    Args:
        parent (FormField): Parent field.

    Returns:
        list[str]: Normalized label name (when not empty) followed by the raw id.
    """
    names = [parent.id]
    label_name = variable_name(parent.label)
    if label_name and label_name != parent.id:
        names.insert(0, label_name)
    return names


def build_environment(
    derived: FormField,
    fields_by_id: Mapping[str, FormField],
    values: Mapping[str, FieldValue],
) -> dict[str, FieldValue]:
    """Bind the parent values of a derived field for formula evaluation.

    Args:
        derived (FormField): Derived field.
        fields_by_id (Mapping[str, FormField]): Schema fields by id.
        values (Mapping[str, FieldValue]): Current working values.

    Returns:
        dict[str, FieldValue]: Variable bindings.
    """
    environment: dict[str, FieldValue] = {}
    for parent_id in derived.parent_field_ids:
        parent = fields_by_id.get(parent_id)
        if parent is None:
            continue
        value = values.get(parent_id)
        for name in bound_names(parent):
            environment[name] = value
    return environment


def topological_sort(
    nodes: Iterable[T],
    successors: Mapping[T, Collection[T]],
    *,
    key: Callable[[T], object],
) -> tuple[list[T], set[T]]:
    """Sort nodes so that each node comes after the nodes it depends on.

    Among nodes that are ready at the same time the smallest `key` goes first,
    so the order is reproducible.

    Args:
        nodes: All nodes of the graph.
        successors: Mapping from node to the nodes that depend on it.
            An edge (a -> b) means "b depends on a".
        key: Tie-breaking sort key.

    Returns:
        Ordered nodes and the nodes left unordered because they lie on or behind a cycle.

    Example:
        >>> topological_sort(["c", "b", "a"], {"a": ["b"], "b": ["c"]}, key=str)
        (['a', 'b', 'c'], set())

    """
    node_list = list(nodes)
    indegree: dict[T, int] = dict.fromkeys(node_list, 0)
    for node in node_list:
        for successor in successors.get(node, ()):
            if successor in indegree:
                indegree[successor] += 1

    ready = [(key(node), index, node) for index, node in enumerate(node_list) if indegree[node] == 0]
    heapq.heapify(ready)
    position = {node: index for index, node in enumerate(node_list)}
    order: list[T] = []

    while ready:
        _, _, node = heapq.heappop(ready)
        order.append(node)
        for successor in successors.get(node, ()):
            if successor not in indegree:
                continue
            indegree[successor] -= 1
            if indegree[successor] == 0:
                heapq.heappush(ready, (key(successor), position[successor], successor))

    return order, set(node_list) - set(order)


def _reachable(start: T, successors: Mapping[T, Collection[T]], within: set[T]) -> set[T]:
    visited: set[T] = set()
    stack = [node for node in successors.get(start, ()) if node in within]
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        stack.extend(node for node in successors.get(current, ()) if node in within)
    return visited


@dataclass(frozen=True, slots=True)
class DependencyResolution:
    """Evaluation order of derived fields and the fields that cannot be evaluated.

    Attributes:
        order: Derived field ids safe to compute left to right.
        errors: Resolution error per derived field id excluded from `order`.

    """

    order: list[str] = field(default_factory=list)
    errors: dict[str, SchemaResolutionError] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        """Check if every derived field can be evaluated."""
        return not self.errors


class DependencyResolver:
    """Build and order the derived-field dependency graph of one schema."""

    def __init__(self, fields: list[FormField], *, allow_derived_parents: bool = False) -> None:
        self._fields_by_id = {item.id: item for item in fields}
        self._derived = {item.id: item for item in fields if item.is_derived}
        self._allow_derived_parents = allow_derived_parents
        self._successors: defaultdict[str, set[str]] = defaultdict(set)
        for derived in self._derived.values():
            for parent_id in derived.parent_field_ids:
                if parent_id in self._derived:
                    self._successors[parent_id].add(derived.id)

    def _sort_key(self, field_id: str) -> tuple[int, str]:
        return self._fields_by_id[field_id].order, field_id

    def resolve(self) -> DependencyResolution:
        """Resolve the evaluation order.

        Returns:
            DependencyResolution: Order of resolvable fields and per-field errors.
        """
        errors: dict[str, SchemaResolutionError] = {}
        cycles = self._find_cycles()

        for field_id, derived in sorted(self._derived.items(), key=lambda item: self._sort_key(item[0])):
            error = (
                self._check_dangling(derived)
                or cycles.get(field_id)
                or self._check_derived_parents(derived)
                or self._check_duplicate_names(derived)
            )
            if error is not None:
                errors[field_id] = error

        acyclic = [field_id for field_id in self._derived if field_id not in cycles]
        order, _ = topological_sort(acyclic, self._successors, key=self._sort_key)

        # A field reading a derived parent that failed cannot be computed either.
        for field_id in order:
            if field_id in errors:
                continue
            failed = [parent for parent in self._derived[field_id].parent_field_ids if parent in errors]
            if failed:
                errors[field_id] = InvalidParentError(
                    field_id,
                    f"Depends on unresolved field(s): {', '.join(failed)}",
                    tuple(failed),
                )

        return DependencyResolution(
            order=[field_id for field_id in order if field_id not in errors],
            errors=errors,
        )

    def _find_cycles(self) -> dict[str, CyclicDependencyError]:
        _, remaining = topological_sort(self._derived, self._successors, key=self._sort_key)
        reach = {node: _reachable(node, self._successors, remaining) for node in remaining}
        cycles: dict[str, CyclicDependencyError] = {}
        for node in remaining:
            if node not in reach[node]:
                continue
            members = sorted(
                (other for other in remaining if other in reach[node] and node in reach[other]),
                key=self._sort_key,
            )
            cycles[node] = CyclicDependencyError(
                node,
                f"Cyclic dependency between fields: {', '.join(members)}",
                tuple(members),
            )
        return cycles

    def _check_dangling(self, derived: FormField) -> SchemaResolutionError | None:
        missing = [parent for parent in derived.parent_field_ids if parent not in self._fields_by_id]
        if not missing:
            return None
        return DanglingReferenceError(
            derived.id,
            f"Parent field(s) not found in schema: {', '.join(missing)}",
            tuple(missing),
        )

    def _check_derived_parents(self, derived: FormField) -> SchemaResolutionError | None:
        if self._allow_derived_parents:
            return None
        invalid = [parent for parent in derived.parent_field_ids if parent in self._derived]
        if not invalid:
            return None
        return InvalidParentError(
            derived.id,
            f"Derived field(s) cannot be used as parents: {', '.join(invalid)}",
            tuple(invalid),
        )

    def _check_duplicate_names(self, derived: FormField) -> SchemaResolutionError | None:
        owners: dict[str, str] = {}
        for parent_id in derived.parent_field_ids:
            for name in bound_names(self._fields_by_id[parent_id]):
                owner = owners.setdefault(name, parent_id)
                if owner != parent_id:
                    return DuplicateVariableNameError(
                        derived.id,
                        f"Parents '{owner}' and '{parent_id}' both bind the variable '{name}'",
                        (owner, parent_id),
                    )
        return None


def resolve_dependencies(fields: list[FormField], *, allow_derived_parents: bool = False) -> DependencyResolution:
    """Order derived fields for evaluation.

    Args:
        fields (list[FormField]): All schema fields.
        allow_derived_parents (bool): Whether derived fields may read other derived fields.

    Returns:
        DependencyResolution: Evaluation order and per-field resolution errors.
    """
    return DependencyResolver(fields, allow_derived_parents=allow_derived_parents).resolve()


def ensure_resolvable(fields: list[FormField], *, allow_derived_parents: bool = False) -> list[str]:
    """Return the evaluation order, raising on the first unresolvable field.

    Args:
        fields (list[FormField]): All schema fields.
        allow_derived_parents (bool): Whether derived fields may read other derived fields.

    Raises:
        SchemaResolutionError: If any derived field cannot be evaluated.

    Returns:
        list[str]: Derived field ids in evaluation order.
    """
    resolution = resolve_dependencies(fields, allow_derived_parents=allow_derived_parents)
    if resolution.errors:
        raise next(iter(resolution.errors.values()))
    return resolution.order
