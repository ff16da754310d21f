"""
forge.services.dependency_service — Mod dependency resolution
===============================================================

A :class:`Dependency` says "mod version (or add-on version) A needs mod B
matching constraint C".  Resolution stores every version of B that
satisfies C as a :class:`ResolvedDependency` row; consumers usually only
want the newest of those per mod, which :func:`latest_resolved_dependencies`
and the dependency trees provide.

When several trees are requested together, :func:`deduplicate_dependencies`
merges mods that appear more than once: the newest version satisfying
every collected constraint wins, otherwise all competing versions are kept
and flagged as conflicting.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from forge.database.models import (
    Addon,
    AddonVersion,
    Dependency,
    Mod,
    ModVersion,
    ResolvedDependency,
    SptVersion,
)
from forge.engine.constraints import Constraint, parse_constraint
from forge.engine.version import latest
from forge.errors import InvalidConstraint, NotFound
from forge.services.version_service import sort_latest_first

logger = logging.getLogger(__name__)

DependencyOwner = ModVersion | AddonVersion


def _describe(owner: DependencyOwner) -> str:
    kind = "Add-on version" if isinstance(owner, AddonVersion) else "Mod version"
    return f"{kind} {owner.id}"


def _owner_columns(owner: DependencyOwner) -> dict[str, int]:
    if isinstance(owner, AddonVersion):
        return {"addon_version_id": owner.id}
    return {"mod_version_id": owner.id}


# ---------------------------------------------------------------------------
# "identifier:version" pairs (e.g. ``?mods=com.author.mod:1.2.0,15:3.0.0``)
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class VersionPair:
    identifier: str
    version: str

    @property
    def is_numeric_id(self) -> bool:
        """Positive integers are row ids, anything else a GUID or slug."""
        return self.identifier.isdigit() and int(self.identifier) > 0


class ModVersionPair(VersionPair):
    """``mod id or GUID : version``."""
    __slots__ = ()

    @property
    def is_mod_id(self) -> bool:
        return self.is_numeric_id


class AddonVersionPair(VersionPair):
    """``add-on id or slug : version``."""
    __slots__ = ()

    @property
    def is_addon_id(self) -> bool:
        return self.is_numeric_id


def _parse_pairs(text: str, pair_type: type[VersionPair]) -> list:
    pairs = []
    seen: set[str] = set()
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk or chunk in seen:
            continue
        seen.add(chunk)

        parts = chunk.split(":")
        if len(parts) != 2:
            continue
        identifier, version = parts[0].strip(), parts[1].strip()
        if not identifier or not version:
            continue
        pairs.append(pair_type(identifier, version))
    return pairs


def parse_mod_version_pairs(text: str) -> list[ModVersionPair]:
    """Parse a comma separated list of ``identifier:version`` pairs.

    Blank entries, duplicates and anything without exactly one ``:`` are
    dropped silently.
    """
    return _parse_pairs(text, ModVersionPair)


def parse_addon_version_pairs(text: str) -> list[AddonVersionPair]:
    """Same as :func:`parse_mod_version_pairs`, for add-on ids and slugs."""
    return _parse_pairs(text, AddonVersionPair)


def resolve_mod_version_ids(session: Session, pairs: list[ModVersionPair]) -> list[int]:
    """Ids of the publicly visible mod versions named by *pairs*.

    Pairs that match nothing are skipped.
    """
    ids: list[int] = []
    for pair in pairs:
        query = (
            select(ModVersion.id)
            .join(Mod, ModVersion.mod_id == Mod.id)
            .where(
                ModVersion.version == pair.version,
                ModVersion.publicly_visible(),
                Mod.publicly_visible(),
            )
        )
        if pair.is_mod_id:
            query = query.where(Mod.id == int(pair.identifier))
        else:
            query = query.where(Mod.guid == pair.identifier)

        version_id = session.scalar(query.limit(1))
        if version_id is not None:
            ids.append(version_id)
    return ids


def resolve_addon_version_ids(session: Session, pairs: list[AddonVersionPair]) -> list[int]:
    """Ids of the publicly visible add-on versions named by *pairs*."""
    ids: list[int] = []
    for pair in pairs:
        query = (
            select(AddonVersion.id)
            .join(Addon, AddonVersion.addon_id == Addon.id)
            .where(
                AddonVersion.version == pair.version,
                AddonVersion.publicly_visible(),
                Addon.publicly_visible(),
            )
        )
        if pair.is_addon_id:
            query = query.where(Addon.id == int(pair.identifier))
        else:
            query = query.where(Addon.slug == pair.identifier)

        version_id = session.scalar(query.limit(1))
        if version_id is not None:
            ids.append(version_id)
    return ids


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------
def resolve_dependencies(session: Session, owner: DependencyOwner) -> int:
    """Rebuild the resolved dependency rows of a mod or add-on version.

    Every version of the dependent mod is considered, published or not;
    visibility is applied when reading.  Dependencies whose constraint does
    not parse are logged and left unresolved.

    Returns the number of rows written.
    """
    for stale in list(owner.resolved_dependencies):
        session.delete(stale)
    session.flush()
    session.expire(owner, ["resolved_dependencies"])

    written = 0
    for dependency in owner.dependencies:
        try:
            constraint = parse_constraint(dependency.constraint)
        except InvalidConstraint:
            logger.warning(
                "%s: cannot parse dependency constraint %r for mod %s",
                _describe(owner), dependency.constraint, dependency.dependent_mod_id,
            )
            continue

        candidates = session.scalars(
            select(ModVersion).where(ModVersion.mod_id == dependency.dependent_mod_id)
        ).all()
        for candidate in candidates:
            if constraint.matches(candidate.semantic_version):
                session.add(ResolvedDependency(
                    **_owner_columns(owner),
                    dependency_id=dependency.id,
                    resolved_mod_version_id=candidate.id,
                ))
                written += 1

    session.flush()
    session.expire(owner, ["resolved_dependencies"])
    logger.info("%s: %d resolved dependencies", _describe(owner), written)
    return written


def resolve_dependents(session: Session, mod_id: int) -> int:
    """Re-resolve every mod version and add-on version that depends on *mod_id*.

    Call after a version of *mod_id* is added or its version string changes.
    """
    owners: list[DependencyOwner] = [
        *session.scalars(
            select(ModVersion)
            .join(Dependency, Dependency.mod_version_id == ModVersion.id)
            .where(Dependency.dependent_mod_id == mod_id)
            .distinct()
        ).all(),
        *session.scalars(
            select(AddonVersion)
            .join(Dependency, Dependency.addon_version_id == AddonVersion.id)
            .where(Dependency.dependent_mod_id == mod_id)
            .distinct()
        ).all(),
    ]
    return sum(resolve_dependencies(session, owner) for owner in owners)


def latest_resolved_dependencies(
    owner: DependencyOwner, *, include_unpublished: bool = False
) -> list[ModVersion]:
    """The newest resolved version of each dependency, ordered by mod id."""
    by_mod: dict[int, list[ModVersion]] = defaultdict(list)
    for row in owner.resolved_dependencies:
        resolved = row.resolved_mod_version
        if include_unpublished or (resolved.is_publicly_visible and resolved.mod.is_publicly_visible):
            by_mod[resolved.mod_id].append(resolved)
    return [sort_latest_first(versions)[0] for _, versions in sorted(by_mod.items())]


def find_satisfying_version(
    session: Session, mod_id: int, constraint: str | Constraint, spt_version: str
) -> ModVersion | None:
    """Newest visible version of *mod_id* meeting *constraint* that supports *spt_version*.

    Only published SPT releases count.  Raises :class:`InvalidConstraint`
    for a malformed *constraint*.
    """
    if isinstance(constraint, str):
        constraint = parse_constraint(constraint)

    candidates = session.scalars(
        select(ModVersion)
        .join(Mod, ModVersion.mod_id == Mod.id)
        .where(
            ModVersion.mod_id == mod_id,
            ModVersion.publicly_visible(),
            Mod.publicly_visible(),
            ModVersion.spt_versions.any(
                (SptVersion.version == spt_version) & SptVersion.published()
            ),
        )
        .order_by(*ModVersion.version_ordering())
    ).all()
    return next((mv for mv in candidates if constraint.matches(mv.semantic_version)), None)


# ---------------------------------------------------------------------------
# Dependency trees
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class DependencyNode:
    """One dependency edge: the mod needed, why, and what satisfies it."""

    mod: Mod
    constraint: str
    latest_version: ModVersion | None
    dependencies: list[DependencyNode] = field(default_factory=list)
    circular: bool = False
    conflict: bool = False


def _dependency_nodes(owner: DependencyOwner, path: frozenset[int]) -> list[DependencyNode]:
    latest_by_mod = {mv.mod_id: mv for mv in latest_resolved_dependencies(owner)}

    nodes: list[DependencyNode] = []
    for dependency in sorted(owner.dependencies, key=lambda d: d.dependent_mod_id):
        if not dependency.dependent_mod.is_publicly_visible:
            continue
        latest_version = latest_by_mod.get(dependency.dependent_mod_id)
        node = DependencyNode(
            mod=dependency.dependent_mod,
            constraint=dependency.constraint,
            latest_version=latest_version,
        )
        if latest_version is not None:
            if latest_version.id in path:
                node.circular = True
            else:
                node.dependencies = _dependency_nodes(
                    latest_version, path | {latest_version.id}
                )
        nodes.append(node)
    return nodes


def build_dependency_tree(session: Session, mod_version_id: int) -> list[DependencyNode]:
    """Recursively expand the dependencies of *mod_version_id*.

    Each node follows the newest publicly visible resolved version; mods
    that are not publicly visible are left out.  A version already on the
    current path is reported with ``circular=True`` and not expanded again.

    Raises
    ------
    NotFound
        If *mod_version_id* does not exist.
    """
    mod_version = session.get(ModVersion, mod_version_id)
    if mod_version is None:
        raise NotFound("mod version", mod_version_id)
    return _dependency_nodes(mod_version, frozenset({mod_version.id}))


def build_addon_dependency_tree(session: Session, addon_version_id: int) -> list[DependencyNode]:
    """:func:`build_dependency_tree` rooted at an add-on version."""
    addon_version = session.get(AddonVersion, addon_version_id)
    if addon_version is None:
        raise NotFound("addon version", addon_version_id)
    return _dependency_nodes(addon_version, frozenset())


# ---------------------------------------------------------------------------
# Merging several trees
# ---------------------------------------------------------------------------
def collect_constraints(
    nodes: list[DependencyNode],
    constraints_by_mod: dict[int, list[str]] | None = None,
) -> dict[int, list[str]]:
    """Every constraint placed on each mod anywhere in *nodes*, keyed by mod id."""
    if constraints_by_mod is None:
        constraints_by_mod = defaultdict(list)
    for node in nodes:
        constraints_by_mod[node.mod.id].append(node.constraint)
        collect_constraints(node.dependencies, constraints_by_mod)
    return constraints_by_mod


def _meets_all(node: DependencyNode, constraints: list[str]) -> bool:
    if node.latest_version is None:
        return False
    version = node.latest_version.semantic_version
    for text in constraints:
        try:
            if not parse_constraint(text).matches(version):
                return False
        except InvalidConstraint:
            logger.debug("Ignoring unparseable constraint %r on mod %s", text, node.mod.id)
    return True


def deduplicate_dependencies(
    nodes: list[DependencyNode], constraints_by_mod: dict[int, list[str]]
) -> list[DependencyNode]:
    """Collapse nodes that name the same mod, at every level of the tree.

    For a mod listed more than once, the node with the newest version that
    satisfies all of ``constraints_by_mod[mod_id]`` is kept with
    ``conflict=False``.  When none does, every node for that mod is kept
    and marked ``conflict=True``.
    """
    groups: dict[int, list[DependencyNode]] = {}
    for node in nodes:
        node.dependencies = deduplicate_dependencies(node.dependencies, constraints_by_mod)
        groups.setdefault(node.mod.id, []).append(node)

    merged: list[DependencyNode] = []
    for mod_id, group in groups.items():
        if len(group) == 1:
            group[0].conflict = False
            merged.extend(group)
            continue

        constraints = constraints_by_mod.get(mod_id, [])
        satisfying = [node for node in group if _meets_all(node, constraints)]
        if satisfying:
            best = latest(satisfying, key=lambda n: n.latest_version.semantic_version)
            best.conflict = False
            merged.append(best)
        else:
            for node in group:
                node.conflict = True
            merged.extend(group)
    return merged


def resolve_shared_dependencies(
    session: Session,
    mod_version_ids: Iterable[int],
    addon_version_ids: Iterable[int] = (),
) -> list[DependencyNode]:
    """Dependency trees of several roots, merged with :func:`deduplicate_dependencies`."""
    nodes: list[DependencyNode] = []
    for mod_version_id in mod_version_ids:
        nodes.extend(build_dependency_tree(session, mod_version_id))
    for addon_version_id in addon_version_ids:
        nodes.extend(build_addon_dependency_tree(session, addon_version_id))
    return deduplicate_dependencies(nodes, collect_constraints(nodes))
