"""Entry-point discovery shared by detectors and agents."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Mapping, Sequence, Set, Type, TypeVar

from .errors import ConfigError
from .logging import get_logger

T = TypeVar("T")

logger = get_logger("plugins")


def load_plugins(
    group: str,
    builtins: Mapping[str, Callable[[], T]],
    base: Type[T],
    *,
    id_attr: str,
    enabled: Sequence[str] | None = None,
) -> List[T]:
    """Instantiate the built-ins in order, then the plugins installed under *group*.

    A plugin that fails to import, or does not produce a *base* instance, is
    logged and skipped so one broken distribution cannot stop the others.
    Names in *enabled* that match neither a built-in nor a plugin raise
    :class:`ConfigError`.
    """
    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}
    kind = base.__name__.lower()

    instances: List[T] = []
    seen: Set[str] = set()

    def _wanted(name: str) -> bool:
        key = name.lower()
        if key in seen:
            return False
        return enabled_set is None or key in enabled_set

    def _add(name: str, instance: T) -> None:
        key = name.lower()
        if not getattr(instance, id_attr, ""):
            setattr(instance, id_attr, key)
        instances.append(instance)
        seen.add(key)

    for name, factory in builtins.items():
        if _wanted(name):
            _add(name, factory())

    for entry in _iter_entry_points(group):
        if not _wanted(entry.name):
            continue
        try:
            instance = _coerce(entry.load(), base)
        except Exception as exc:
            logger.warning("Skipping %s plugin '%s': %s", kind, entry.name, exc)
            seen.add(entry.name.lower())
            continue
        _add(entry.name, instance)

    if enabled_set:
        missing = enabled_set - seen
        if missing:
            raise ConfigError(f"Unknown {kind}s requested: {', '.join(sorted(missing))}")

    return instances


def _coerce(obj: object, base: Type[T]) -> T:
    if isinstance(obj, base):
        return obj
    if callable(obj):
        instance = obj()
        if isinstance(instance, base):
            return instance
    raise TypeError(f"entry point must be a {base.__name__} subclass or factory")


def _iter_entry_points(group: str) -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=group)


__all__ = ["load_plugins"]
