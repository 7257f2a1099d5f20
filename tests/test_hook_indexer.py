import pytest

PLUGIN = """
using Oxide.Core;
using Oxide.Core.Plugins;

namespace Oxide.Plugins
{
    public class Sample : RustPlugin
    {
        private Plugin other;
        private object cached = Interface.CallHook("OnFieldInit");

        void Foo() { CallHook("OnTest", 1, "a"); }

        void Arrays(BasePlayer player, Item item)
        {
            Interface.Oxide.CallHook("OnArray", new object[] { player, null, item });
            Interface.CallHook("OnNull", null, player);
        }

        void Receivers(BasePlayer player)
        {
            other.Call("OnOther", player);
            plugins.Call("OnLibrary", player);
            Interface.CallHook("OnSelf", this);
            Interface.CallHook("OnSelfArray", new object[] { this, player });
            Interface.CallHook("OnOuter", Interface.CallHook("OnInner"));
        }

        void First(BasePlayer player)
        {
            Interface.CallHook("OnDup", player);
        }

        void Second(BasePlayer player)
        {
            Interface.CallHook("OnDup", player);
            Interface.CallHook("OnDup", 5);
        }

        void Outer(BasePlayer player)
        {
            void Inner(int amount, string reason)
            {

                Interface.CallHook("OnLocal", amount);
            }
            Inner(1, "x");
        }
    }
}
"""

REJECTED = """
using Oxide.Core;

namespace Oxide.Plugins
{
    public class Helper
    {
        void Run()
        {
            CallHook("OnHelper");
            new Helper().CallHook("OnHelperInstance");
        }
    }

    public class Picky : RustPlugin
    {
        void Run(string dynamicName)
        {
            Interface.CallDeprecatedHook("OnOld", 1);
            Interface.Oxide.NextTick("OnNotAHook");
            Interface.CallHook(dynamicName);
            Interface.CallHook("");
            unknown.CallHook("OnUnknownReceiver");
        }
    }
}
"""


@pytest.fixture
def records(index):
    return {r.hook_name: r for r in index(PLUGIN)}


def test_first_statement_is_line_one(records):
    record = records["OnTest"]
    assert record.hook_line_invoke == 1
    assert record.hook_signature == 'OnTest(int 1, string "a")'
    assert record.method_name == "Foo"
    assert record.method_class_name == "Sample"


def test_line_is_relative_to_the_method(records):
    assert records["OnArray"].hook_line_invoke == 3
    assert records["OnNull"].hook_line_invoke == 4


def test_array_arguments_are_flattened_and_nulls_dropped(records):
    assert records["OnArray"].hook_signature == "OnArray(BasePlayer player, Item item)"
    assert records["OnNull"].hook_signature == "OnNull(BasePlayer player)"


def test_method_parameters_and_source(records):
    record = records["OnArray"]
    assert [(p.type, p.name) for p in record.method_parameters] == [
        ("BasePlayer", "player"),
        ("Item", "item"),
    ]
    assert record.method_source_code.startswith("void Arrays(BasePlayer player, Item item)")
    assert record.method_source_code.endswith("}")
    assert record.method_signature == "Arrays(BasePlayer player, Item item)"


def test_receivers_through_framework_types(records):
    assert records["OnOther"].hook_signature == "OnOther(BasePlayer player)"
    assert records["OnLibrary"].hook_signature == "OnLibrary(BasePlayer player)"


def test_this_argument_is_named_after_its_class(records):
    assert records["OnSelf"].hook_signature == "OnSelf(Oxide.Plugins.Sample oxide.Plugins.Sample)"


def test_this_inside_an_argument_array_is_kept(records):
    assert records["OnSelfArray"].hook_signature == (
        "OnSelfArray(Oxide.Plugins.Sample oxide.Plugins.Sample, BasePlayer player)"
    )


def test_nested_hook_calls_are_both_found(index):
    names = [r.hook_name for r in index(PLUGIN)]
    assert names.index("OnOuter") + 1 == names.index("OnInner")
    outer = {r.hook_name: r for r in index(PLUGIN)}["OnOuter"]
    assert outer.hook_signature == "OnOuter(unknown callHook)"


def test_field_initializer_calls_are_not_attributed(records):
    assert "OnFieldInit" not in records


def test_same_signature_keeps_the_first_call(index):
    dups = [r for r in index(PLUGIN) if r.hook_name == "OnDup"]
    assert [(r.hook_signature, r.method_name) for r in dups] == [
        ("OnDup(BasePlayer player)", "First"),
        ("OnDup(int 5)", "Second"),
    ]


def test_local_function_context(records):
    record = records["OnLocal"]
    assert record.method_name == "Outer.Inner"
    assert record.hook_line_invoke == 4
    assert [(p.type, p.name) for p in record.method_parameters] == [
        ("int", "amount"),
        ("string", "reason"),
    ]
    assert record.method_source_code.startswith("void Inner(int amount, string reason)")


def test_rejected_calls_produce_nothing(index):
    assert index(REJECTED) == []


def test_document_order(index):
    names = [r.hook_name for r in index(PLUGIN)]
    assert names[:3] == ["OnTest", "OnArray", "OnNull"]


def test_verbatim_hook_name_and_generic_alias(index):
    source = """
    using Oxide.Core;
    class Plain : Oxide.Plugins.CSharpPlugin
    {
        void Run()
        {
            Call<object>(@"OnVerbatim");
        }
    }
    """
    [record] = index(source)
    assert record.hook_signature == "OnVerbatim()"
    assert record.method_class_name == "Plain"


def test_class_outside_any_namespace_uses_framework_name(index):
    source = """
    class Plain
    {
        void Run()
        {
            Oxide.Core.Interface.CallHook("OnQualified", 1);
        }
    }
    """
    [record] = index(source)
    assert record.hook_signature == "OnQualified(int 1)"


def test_named_and_ref_arguments_keep_their_value(index):
    source = """
    using Oxide.Core;
    namespace Oxide.Plugins
    {
        public class Sample : RustPlugin
        {
            void Run(BasePlayer player)
            {
                Interface.CallHook("OnNamed", obj: this);
                Interface.CallHook("OnRef", ref player);
            }
        }
    }
    """
    records = {r.hook_name: r for r in index(source)}
    assert records["OnNamed"].hook_signature == "OnNamed(Oxide.Plugins.Sample oxide.Plugins.Sample)"
    assert records["OnRef"].hook_signature == "OnRef(BasePlayer player)"


LONG_CONCAT = " + ".join(['"a"'] * 500)

DEEP = """
using Oxide.Core;
namespace Oxide.Plugins
{
    public class Sample : RustPlugin
    {
        void Good(BasePlayer player)
        {
            Interface.CallHook("OnGood", player);
        }

        void Long()
        {
            var s = %s;
            Interface.CallHook("OnLong", s);
        }

        void After(BasePlayer player)
        {
            Interface.CallHook("OnAfter", player);
        }
    }
}
""" % LONG_CONCAT


def test_long_concatenation_is_typed(index):
    records = {r.hook_name: r for r in index(DEEP)}
    assert records["OnLong"].hook_signature == "OnLong(string s)"
    assert list(records) == ["OnGood", "OnLong", "OnAfter"]


def test_failing_call_site_does_not_drop_the_module(indexer, index, monkeypatch):
    original = indexer.detector.match

    def flaky(invocation, binder):
        if b"OnLong" in binder.source_bytes[invocation.start_byte:invocation.end_byte]:
            raise RecursionError("maximum recursion depth exceeded")
        return original(invocation, binder)

    monkeypatch.setattr(indexer.detector, "match", flaky)
    assert [r.hook_name for r in index(DEEP)] == ["OnGood", "OnAfter"]
