import logging

import pytest

from hook_finder.src.hook_finder.errors import InputNotFound, NoModulesFound
from hook_finder.src.hook_finder.inputs.directory_scanning import find_modules, index_directory, read_text

MODULE = """
using Oxide.Core;

namespace Oxide.Plugins
{
    public class Kits : RustPlugin
    {
        void Give(BasePlayer player)
        {
            Interface.CallHook("OnKitRedeemed", player);
        }
    }
}
"""

OTHER = MODULE.replace("Kits", "Shop").replace("OnKitRedeemed", "OnItemBought")


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_find_modules_sorted_and_filtered(tmp_path):
    write(tmp_path / "b.cs", MODULE)
    write(tmp_path / "a" / "c.cs", MODULE)
    write(tmp_path / "notes.txt", "not code")
    assert find_modules(str(tmp_path)) == [
        str(tmp_path / "a" / "c.cs"),
        str(tmp_path / "b.cs"),
    ]


def test_single_file_is_a_module(tmp_path):
    write(tmp_path / "one.cs", MODULE)
    assert find_modules(str(tmp_path / "one.cs")) == [str(tmp_path / "one.cs")]


def test_missing_input(tmp_path):
    with pytest.raises(InputNotFound):
        find_modules(str(tmp_path / "missing"))


def test_empty_directory(indexer, tmp_path):
    with pytest.raises(NoModulesFound):
        index_directory(indexer, str(tmp_path))


def test_read_text_strips_bom(tmp_path):
    (tmp_path / "bom.cs").write_bytes(b"\xef\xbb\xbfclass A { }")
    assert read_text(str(tmp_path / "bom.cs")) == "class A { }"


def test_identical_modules_collapse(indexer, tmp_path):
    write(tmp_path / "a.cs", MODULE)
    write(tmp_path / "b.cs", MODULE)
    write(tmp_path / "c.cs", OTHER)
    catalog = index_directory(indexer, str(tmp_path))
    assert [r.hook_name for r in catalog] == ["OnKitRedeemed", "OnItemBought"]


def test_failing_module_is_skipped_with_a_warning(indexer, tmp_path, monkeypatch, caplog):
    write(tmp_path / "a.cs", MODULE)
    write(tmp_path / "bad.cs", MODULE)
    write(tmp_path / "c.cs", OTHER)

    original = indexer.index_source

    def flaky(source, module="<source>"):
        if module.endswith("bad.cs"):
            raise RuntimeError("boom")
        return original(source, module)

    monkeypatch.setattr(indexer, "index_source", flaky)
    with caplog.at_level(logging.WARNING):
        catalog = index_directory(indexer, str(tmp_path))

    assert [r.hook_name for r in catalog] == ["OnKitRedeemed", "OnItemBought"]
    assert "bad.cs" in caplog.text
    assert "boom" in caplog.text


def test_parallel_scan_keeps_module_order(indexer, tmp_path, caplog):
    write(tmp_path / "a.cs", MODULE)
    write(tmp_path / "b.cs", MODULE)
    # Dangling link: listed as a module, unreadable when indexed
    (tmp_path / "bad.cs").symlink_to(tmp_path / "gone.cs")
    write(tmp_path / "c.cs", OTHER)

    with caplog.at_level(logging.WARNING):
        catalog = index_directory(indexer, str(tmp_path), jobs=2)

    assert [r.hook_name for r in catalog] == ["OnKitRedeemed", "OnItemBought"]
    assert [r.method_class_name for r in catalog] == ["Kits", "Shop"]
    assert "bad.cs" in caplog.text
    assert "FileNotFoundError" in caplog.text
