"""Template registry — entry templates as plain functions returning markup.

Templates live under ``<frontend>/<templates>/`` as Python modules::

    templates/index.py       -> index       -> .bundle/index.html
    templates/blog/post.py   -> blog/post   -> .bundle/blog/post.html

Each module exports a ``default`` callable (or ``render``) returning the
page's HTML.  Modules are imported in isolation once, at discovery; the build
then calls the registered functions directly.  Templates can also be
registered in code with :meth:`TemplateRegistry.template`.
"""

import importlib.util
import sys
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

from tinybundler._errors import TemplateError

# Export names looked up on a template module, in order
_RENDER_NAMES: tuple[str, ...] = ("default", "render")

type RenderFunc = Callable[[], str | None]


def _empty() -> str:
    return ""


@dataclass(frozen=True, slots=True)
class TemplateEntry:
    """A registered entry template.

    Attributes:
        name: Output name without extension (``index``, ``blog/post``).
        render: Zero-argument callable returning markup; ``None`` counts as empty.
        source: Originating module file, if discovered from disk.

    """

    name: str
    render: RenderFunc
    source: Path | None = None


@dataclass(frozen=True, slots=True)
class TemplateFailure:
    """A template module that could not be imported."""

    name: str
    source: Path
    reason: str


class TemplateRegistry:
    """Name -> TemplateEntry mapping, iterated in name order."""

    __slots__ = ("_entries", "failures")

    def __init__(self) -> None:
        self._entries: dict[str, TemplateEntry] = {}
        self.failures: list[TemplateFailure] = []

    def register(
        self,
        name: str,
        render: RenderFunc,
        source: Path | None = None,
    ) -> TemplateEntry:
        """Register *render* under *name*.

        Raises:
            TemplateError: If *name* is already registered.

        """
        if name in self._entries:
            existing = self._entries[name].source or "<code>"
            msg = f"Duplicate template {name!r}: already registered from {existing}"
            raise TemplateError(msg)
        entry = TemplateEntry(name=name, render=render, source=source)
        self._entries[name] = entry
        return entry

    def template(self, name: str) -> Callable[[RenderFunc], RenderFunc]:
        """Decorator form of :meth:`register`."""

        def decorator(func: RenderFunc) -> RenderFunc:
            self.register(name, func)
            return func

        return decorator

    def get(self, name: str) -> TemplateEntry | None:
        return self._entries.get(name)

    def __iter__(self) -> Iterator[TemplateEntry]:
        return iter(sorted(self._entries.values(), key=lambda e: e.name))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries


def discover_templates(template_dir: Path) -> TemplateRegistry:
    """Import every template module under *template_dir* into a new registry.

    Skips ``__pycache__`` and files starting with ``_``.  A module that fails
    to import is recorded in ``registry.failures`` and left out; a module
    without a render function registers one that yields empty markup.
    """
    registry = TemplateRegistry()
    if not template_dir.is_dir():
        return registry

    for py_file in sorted(template_dir.rglob("*.py")):
        if py_file.name.startswith("_") or "__pycache__" in py_file.parts:
            continue

        name = py_file.relative_to(template_dir).with_suffix("").as_posix()
        try:
            module = _load_module(py_file, name)
        except Exception as exc:  # noqa: BLE001 - any import-time failure skips the template
            registry.failures.append(TemplateFailure(name, py_file, f"{type(exc).__name__}: {exc}"))
            continue

        registry.register(name, _find_render(module), source=py_file)

    return registry


def _load_module(py_file: Path, name: str) -> object:
    """Import a Python file as a module without touching ``sys.path``."""
    module_name = "tinybundler_templates." + name.replace("/", ".")
    spec = importlib.util.spec_from_file_location(module_name, py_file)
    if spec is None or spec.loader is None:
        msg = f"cannot create import spec for {py_file}"
        raise TemplateError(msg)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


def _find_render(module: object) -> RenderFunc:
    for attr in _RENDER_NAMES:
        func = getattr(module, attr, None)
        if func is not None and callable(func):
            return func
    return _empty
