# --- Directory scanning convenience -----------------------------------------
import logging
import os
from concurrent.futures import ProcessPoolExecutor
from itertools import repeat
from typing import Optional

from hook_finder.src.hook_finder.catalog import HookCatalog
from hook_finder.src.hook_finder.config import SOURCE_EXTENSIONS
from hook_finder.src.hook_finder.errors import InputNotFound, NoModulesFound
from hook_finder.src.hook_finder.indexer import HookIndexer
from hook_finder.src.hook_finder.models.hook_models import ModuleHooks

logger = logging.getLogger(__name__)


def read_text(path: str) -> str:
    # utf-8-sig drops the BOM decompilers like to emit
    with open(path, "r", encoding="utf-8-sig", errors="replace") as f:
        return f.read()


def find_modules(root: str) -> list[str]:
    """
    Decompiled modules under `root`, sorted by path so the processing order
    (and with it the catalog order) is stable. A single file is its own list.
    """
    if os.path.isfile(root):
        return [root]
    if not os.path.isdir(root):
        raise InputNotFound(f"Folder not found: {root}")
    modules = []
    for dirpath, _, filenames in os.walk(root):
        for fn in filenames:
            if fn.endswith(SOURCE_EXTENSIONS):
                modules.append(os.path.join(dirpath, fn))
    return sorted(modules)


def _index_module(indexer: HookIndexer, path: str) -> tuple[str, Optional[ModuleHooks], Optional[str]]:
    try:
        return path, indexer.index_source(read_text(path), path), None
    except Exception as e:
        return path, None, f"{type(e).__name__}: {e}"


def _index_module_in_worker(path: str, framework_types: dict):
    # Parsers don't pickle, so every worker task builds its own indexer
    return _index_module(HookIndexer(framework_types), path)


def index_modules(indexer: HookIndexer, paths: list[str], jobs: int = 1) -> list[ModuleHooks]:
    """
    Indexes each module on its own. A module that fails is reported and
    skipped; the others are unaffected. Results keep the order of `paths`.
    """
    if jobs > 1 and len(paths) > 1:
        with ProcessPoolExecutor(max_workers=jobs) as pool:
            outcomes = list(pool.map(_index_module_in_worker, paths, repeat(indexer.framework_types)))
    else:
        outcomes = [_index_module(indexer, path) for path in paths]

    results = []
    for path, module_hooks, error in outcomes:
        if error is not None:
            logger.warning("Failed to index %s: %s", path, error)
            continue
        results.append(module_hooks)
    return results


def index_directory(indexer: HookIndexer, root_dir: str, jobs: int = 1) -> HookCatalog:
    """
    Recursively index all .cs files in a directory (or one .cs file) and merge
    the per-module results into a catalog.
    """
    paths = find_modules(root_dir)
    if not paths:
        raise NoModulesFound(f"No {'/'.join(SOURCE_EXTENSIONS)} files found in folder: {root_dir}")
    return HookCatalog.from_modules(index_modules(indexer, paths, jobs))
