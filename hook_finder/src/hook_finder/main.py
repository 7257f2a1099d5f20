#!/usr/bin/env python3
"""
Oxide Hook Finder (Python)
--------------------------
Scans decompiled C# plugin/framework modules and collects every hook
dispatch call site:
- the hook name and its parameters (`OnPlayerInit(BasePlayer player)`)
- the class and method the call lives in, with the method's source
- the line of the call inside that method

USAGE EXAMPLES
--------------
# 1) Run against an in-code sample (no files needed):
hook-finder

# 2) Run against a folder of decompiled .cs files (recursive):
hook-finder --input /path/to/decompiled --output /path/to/rust-template

DEPENDENCIES
------------
    pip install tree-sitter tree-sitter-c-sharp

Decompile the assemblies first, e.g. `ilspycmd Oxide.Rust.dll -o decompiled/`.
"""

import argparse
import logging
import os
import sys
from typing import Optional

from hook_finder.src.hook_finder.catalog import HookCatalog
from hook_finder.src.hook_finder.config import load_framework_types
from hook_finder.src.hook_finder.errors import HookFinderError, OutputDirectoryMissing
from hook_finder.src.hook_finder.indexer import HookIndexer
from hook_finder.src.hook_finder.inputs.directory_scanning import index_directory
from hook_finder.src.hook_finder.outputs.output import print_summary, to_json, write_outputs

logger = logging.getLogger(__name__)

MODE_FULL = "full"
MODE_UPDATE_ONLY = "update-only"

# --- Demo main ---------------------------------------------------------------

SAMPLE_CSHARP = r"""
using System.Collections.Generic;
using Oxide.Core;
using Oxide.Core.Plugins;

namespace Oxide.Plugins
{
    public class Kits : RustPlugin
    {
        private readonly Dictionary<ulong, string> lastKit = new Dictionary<ulong, string>();

        [PluginReference]
        private Plugin Economics;

        private object CanRedeemKit(BasePlayer player, string kit)
        {
            object result = Interface.CallHook("CanRedeemKit", player, kit);
            if (result != null)
            {
                return result;
            }
            return Economics.Call("Balance", player.UserIDString);
        }

        private void GiveKit(BasePlayer player, string kit)
        {
            lastKit[player.userID] = kit;
            Interface.Oxide.CallHook("OnKitRedeemed", new object[] { player, kit });

            void Notify(int amount)
            {
                CallHook("OnKitNotify", player.displayName, amount);
            }

            Notify(1);
        }
    }
}
"""


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hook-finder",
        description="Collect hook call sites from decompiled Oxide/uMod modules.",
    )
    parser.add_argument("--input", help="Folder with decompiled .cs files (or a single .cs file)")
    parser.add_argument("--output", default=os.path.join(os.getcwd(), "output"),
                        help="Folder to save results in (default: ./output)")
    parser.add_argument("--mode", choices=(MODE_FULL, MODE_UPDATE_ONLY), default=MODE_FULL,
                        help="update-only requires the output folder to exist already")
    parser.add_argument("--types", help="JSON file with extra framework types")
    parser.add_argument("--jobs", type=int, default=1, help="Modules to index in parallel")
    parser.add_argument("--json", action="store_true", help="Also print the hooks as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def run(args: argparse.Namespace) -> HookCatalog:
    """Indexes the input and writes the results; returns the catalog."""
    if args.mode == MODE_UPDATE_ONLY and not os.path.isdir(args.output):
        raise OutputDirectoryMissing(
            f"Target directory not found: {args.output}. Use {MODE_FULL} mode to create it."
        )

    indexer = HookIndexer(load_framework_types(args.types))
    catalog = index_directory(indexer, args.input, jobs=args.jobs)

    hooks_path = write_outputs(catalog, args.output)
    logger.info("Results saved in: %s", hooks_path)
    return catalog


def run_sample(args: argparse.Namespace) -> HookCatalog:
    indexer = HookIndexer(load_framework_types(args.types))
    return HookCatalog.from_modules([indexer.index_source(SAMPLE_CSHARP, "<sample>")])


def main(argv: Optional[list[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
    )

    try:
        # No input folder: index SAMPLE_CSHARP and show everything
        catalog = run_sample(args) if not args.input else run(args)
    except (HookFinderError, OSError, ValueError) as e:
        logger.error("%s", e)
        return 1

    print_summary(catalog)
    if not args.input:
        print("\n=== JSON ===")
        print(to_json(catalog))
    elif args.json:
        print(to_json(catalog))
    return 0


if __name__ == "__main__":
    sys.exit(main())
