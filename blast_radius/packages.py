"""Helpers for module-relative package paths.

Packages are plain import-path strings with forward-slash segments, for
example ``github.com/acme/shop/shared/models``. Two packages are related only
through the exact-or-ancestor predicate below; substring containment is never
a match (``shared/a`` is not an ancestor of ``shared/ab``).
"""

from __future__ import annotations

from typing import Iterable, List


def normalize_path(path: str) -> str:
    """Trim whitespace, leading ``./`` and surrounding slashes from a path."""
    path = path.strip().replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.strip("/")


def is_path_ancestor(ancestor: str, path: str) -> bool:
    """Return True if ``ancestor`` equals ``path`` or is a parent directory of it."""
    if not ancestor:
        return False
    return path == ancestor or path.startswith(ancestor + "/")


def any_descendant(ancestor: str, paths: Iterable[str]) -> bool:
    return any(is_path_ancestor(ancestor, p) for p in paths)


def qualify(module_root: str, path: str) -> str:
    """Turn a module-relative directory into a fully-qualified import path.

    Paths that are already qualified are returned unchanged.
    """
    path = normalize_path(path)
    if not module_root:
        return path
    if is_path_ancestor(module_root, path):
        return path
    if not path:
        return module_root
    return f"{module_root}/{path}"


def short_name(module_root: str, package: str) -> str:
    """Strip the module root from a qualified package for display."""
    if module_root and package.startswith(module_root + "/"):
        return package[len(module_root) + 1:]
    return package


def split_list(value: str | Iterable[str] | None) -> List[str]:
    """Split a comma-separated string (or flatten a list of them) into clean items."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    items: List[str] = []
    for chunk in value:
        for item in str(chunk).split(","):
            item = normalize_path(item)
            if item and item not in items:
                items.append(item)
    return items
