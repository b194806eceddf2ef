"""Script bundling via the esbuild CLI.

esbuild has no Python plugin API, so the source hook runs ahead of it.  The
frontend tree is copied into scratch space and a first esbuild pass writes a
metafile listing the modules the entries actually import.  Only those sources
go through the hook before esbuild bundles the staged copy.  A generated
``tsconfig.json`` maps the alias so ``import "@/utils/html"`` keeps resolving.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from tinybundler._errors import CollaboratorError
from tinybundler.collaborators.base import ScriptBundle

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tinybundler._types import SourceHook
    from tinybundler.config import BundlerConfig

SCRIPT_SUFFIXES: frozenset[str] = frozenset({".js", ".mjs", ".jsx", ".ts", ".mts", ".tsx"})

# Not copied into the staging tree
_SKIP_PARTS: frozenset[str] = frozenset({"__pycache__", "node_modules"})


class EsbuildBundler:
    """ScriptBundler backed by the ``esbuild`` executable.

    Args:
        config: Project configuration (frontend tree, alias, scratch space).
        executable: esbuild binary name or path.

    """

    def __init__(self, config: BundlerConfig, executable: str = "esbuild") -> None:
        self._config = config
        self._executable = executable
        self._counter = itertools.count()

    async def bundle(
        self,
        entries: Sequence[Path],
        *,
        hook: SourceHook | None,
        out_dir: Path,
        inline: bool = False,
    ) -> ScriptBundle:
        if inline and len(entries) != 1:
            msg = f"inline bundling takes exactly one entry, got {len(entries)}"
            raise CollaboratorError("esbuild", msg)

        run = next(self._counter)
        stage = self._config.temp_path / f"stage-{run}"
        self._stage(stage)
        try:
            staged = {
                (stage / entry.relative_to(self._config.frontend_path)).resolve(): entry
                for entry in entries
            }
        except ValueError as exc:
            msg = f"entry outside {self._config.frontend_path}: {exc}"
            raise CollaboratorError("esbuild", msg) from exc

        args = [
            *(str(p) for p in staged),
            "--bundle",
            "--format=esm",
            f"--tsconfig={stage / 'tsconfig.json'}",
            "--log-level=warning",
        ]

        if hook is not None:
            graph_dir = self._config.temp_path / f"graph-{run}"
            for source in await self._module_graph(args, stage, graph_dir):
                code = await hook(source.read_text(encoding="utf-8"), str(source))
                staged_copy = stage / source.relative_to(self._config.frontend_path)
                staged_copy.write_text(code, encoding="utf-8")

        if inline:
            stdout = await self._run(args)
            return ScriptBundle(code=stdout)

        meta_path = stage / "meta.json"
        out_dir.mkdir(parents=True, exist_ok=True)
        args += [
            "--splitting",
            "--minify",
            "--sourcemap",
            f"--outdir={out_dir}",
            "--entry-names=[name].[hash]",
            "--chunk-names=[name].[hash]",
            f"--metafile={meta_path}",
        ]
        await self._run(args)
        return ScriptBundle(outputs=self._read_entry_outputs(meta_path, staged))

    def _stage(self, stage: Path) -> None:
        """Copy the frontend tree into *stage* and write the alias tsconfig."""
        frontend = self._config.frontend_path
        for src in sorted(frontend.rglob("*")):
            if not src.is_file() or _SKIP_PARTS.intersection(src.parts):
                continue
            dest = stage / src.relative_to(frontend)
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dest)

        alias = self._config.frontend_alias
        tsconfig = {"compilerOptions": {"baseUrl": ".", "paths": {f"{alias}/*": ["./*"]}}}
        (stage / "tsconfig.json").write_text(json.dumps(tsconfig), encoding="utf-8")

    async def _run(self, args: list[str]) -> str:
        """Run esbuild and return its stdout."""
        try:
            proc = await asyncio.create_subprocess_exec(
                self._executable,
                *args,
                cwd=self._config.root,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            msg = f"{self._executable!r} not found on PATH"
            raise CollaboratorError("esbuild", msg) from exc

        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            msg = f"exited with status {proc.returncode}: {detail}"
            raise CollaboratorError("esbuild", msg)
        return stdout.decode("utf-8")

    async def _module_graph(self, args: list[str], stage: Path, graph_dir: Path) -> list[Path]:
        """Frontend scripts the staged entries import, entries included.

        esbuild runs once without splitting or minification just for its
        metafile.  Inputs under *stage* are mapped back to the frontend tree;
        anything else (packages, virtual modules) is not a frontend source.
        """
        graph_dir.mkdir(parents=True, exist_ok=True)
        meta_path = graph_dir / "meta.json"
        await self._run([*args, f"--outdir={graph_dir}", f"--metafile={meta_path}"])
        meta = _load_metafile(meta_path)

        root = self._config.root
        staged_root = stage.resolve()
        sources: list[Path] = []
        for input_path in meta.get("inputs", {}):
            try:
                relative = (root / input_path).resolve().relative_to(staged_root)
            except ValueError:
                continue
            source = self._config.frontend_path / relative
            if source.suffix.lower() in SCRIPT_SUFFIXES and source.is_file():
                sources.append(source)
        return sorted(sources)

    def _read_entry_outputs(
        self,
        meta_path: Path,
        staged: dict[Path, Path],
    ) -> dict[Path, Path]:
        """Map each original entry to its written chunk using esbuild's metafile."""
        meta = _load_metafile(meta_path)

        root = self._config.root
        outputs: dict[Path, Path] = {}
        for output_path, info in meta.get("outputs", {}).items():
            if output_path.endswith(".map"):
                continue
            entry_point = info.get("entryPoint")
            if not entry_point:
                continue
            original = staged.get((root / entry_point).resolve())
            if original is not None:
                outputs[original] = root / output_path
        return outputs


def _load_metafile(meta_path: Path) -> dict:
    try:
        meta = json.loads(meta_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        msg = f"unreadable metafile {meta_path}: {exc}"
        raise CollaboratorError("esbuild", msg) from exc
    if not isinstance(meta, dict):
        msg = f"metafile {meta_path} is not a JSON object"
        raise CollaboratorError("esbuild", msg)
    return meta
