"""Action registry: names and aliases resolved to bound handler operations.

Manifesto:
    Handler groups are authored independently (file actions, plugin
    actions, scheduler actions). Each one hands the registry an explicit
    table of ``(canonical name, aliases, parameter shape, operation)`` rows
    at startup; nothing is discovered by scanning. A name, canonical or
    alias, belongs to exactly one action, and a clash is a startup error
    rather than a surprise at call time.

Tags:
    rtk-core, framework, registry, action-discovery, lookup

Doc-Types:
    api-reference
"""

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from rtk.core.errors import ActionNotFoundError, NameCollisionError
from rtk.core.logging import get_logger
from rtk.core.result import Result, from_optional
from rtk.framework.params import ParamType, describe_shape

logger = get_logger(__name__)


@dataclass(frozen=True)
class ActionDescriptor:
    """One invokable action and every name it answers to."""

    canonical_name: str
    invoke: Callable[..., Any]
    parameter_shape: tuple[ParamType, ...] = ()
    aliases: frozenset[str] = field(default_factory=frozenset)
    description: str = ""

    def __post_init__(self) -> None:
        # Handler tables often repeat the canonical name among the aliases.
        object.__setattr__(self, "aliases", frozenset(self.aliases) - {self.canonical_name})
        object.__setattr__(self, "parameter_shape", tuple(self.parameter_shape))

    @property
    def names(self) -> frozenset[str]:
        """Canonical name plus aliases."""
        return self.aliases | {self.canonical_name}

    @property
    def arity(self) -> int:
        return len(self.parameter_shape)

    def signature(self) -> str:
        return f"{self.canonical_name}{describe_shape(self.parameter_shape)}"


def action(
    canonical_name: str,
    invoke: Callable[..., Any],
    *shape: ParamType,
    aliases: Sequence[str] = (),
    description: str = "",
) -> ActionDescriptor:
    """Shorthand used by handler groups to build their registration tables."""
    if not description and invoke.__doc__:
        description = invoke.__doc__.strip().splitlines()[0]
    return ActionDescriptor(
        canonical_name=canonical_name,
        invoke=invoke,
        parameter_shape=tuple(shape),
        aliases=frozenset(aliases),
        description=description,
    )


class ActionRegistry:
    """Mapping from every action name (canonical or alias) to its descriptor.

    Registration happens once at startup, before any dispatch traffic;
    lookups afterwards are read-only.

    Example:
        >>> registry = ActionRegistry([
        ...     action("copyFile", files.copy_file, ParamType.STRING, ParamType.STRING),
        ...     action("createDirectory", files.create_directory, ParamType.STRING,
        ...            aliases=["createDir"]),
        ... ])
        >>> registry.resolve("createDir").unwrap().canonical_name
        'createDirectory'
    """

    def __init__(self, descriptors: Iterable[ActionDescriptor] = ()) -> None:
        self._by_name: dict[str, ActionDescriptor] = {}
        self.register_all(descriptors)

    def register(self, descriptor: ActionDescriptor) -> ActionDescriptor:
        """Insert the canonical name and every alias of ``descriptor``.

        Raises:
            NameCollisionError: if any name is already taken. The registry
                is left unchanged.
        """
        for name in sorted(descriptor.names):
            existing = self._by_name.get(name)
            if existing is not None:
                raise NameCollisionError(name, existing.canonical_name, descriptor.canonical_name)

        for name in descriptor.names:
            self._by_name[name] = descriptor

        logger.debug(
            "action.registered",
            action=descriptor.canonical_name,
            aliases=sorted(descriptor.aliases),
            shape=describe_shape(descriptor.parameter_shape),
        )
        return descriptor

    def register_all(self, descriptors: Iterable[ActionDescriptor]) -> None:
        """Register a handler group's table.

        Names are checked against the registry and against each other
        before anything is inserted, so a colliding table leaves the
        registry unchanged.
        """
        descriptors = list(descriptors)
        claimed: dict[str, str] = {}
        for descriptor in descriptors:
            for name in sorted(descriptor.names):
                existing = self._by_name.get(name)
                if existing is not None:
                    raise NameCollisionError(name, existing.canonical_name, descriptor.canonical_name)
                if name in claimed:
                    raise NameCollisionError(name, claimed[name], descriptor.canonical_name)
                claimed[name] = descriptor.canonical_name

        for descriptor in descriptors:
            self.register(descriptor)

    def resolve(self, name: str) -> Result[ActionDescriptor]:
        """Look up ``name`` exactly (case-sensitive, no fuzzy matching)."""
        return from_optional(self._by_name.get(name), ActionNotFoundError(name))

    def get(self, name: str) -> ActionDescriptor | None:
        return self._by_name.get(name)

    def descriptors(self) -> list[ActionDescriptor]:
        """Distinct descriptors, sorted by canonical name."""
        unique = {d.canonical_name: d for d in self._by_name.values()}
        return [unique[name] for name in sorted(unique)]

    def names(self) -> list[str]:
        """Every registered name, canonical and alias."""
        return sorted(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self.descriptors())

    def __iter__(self) -> Iterator[ActionDescriptor]:
        return iter(self.descriptors())
