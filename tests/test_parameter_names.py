from hook_finder.src.hook_finder.arguments import normalize_parameter_name


def test_this_uses_the_type_name():
    assert normalize_parameter_name("this", "Player") == "player"


def test_this_lowers_the_first_character_of_a_qualified_type():
    assert normalize_parameter_name("this", "Oxide.Plugins.Kits") == "oxide.Plugins.Kits"


def test_this_without_a_type_is_left_alone():
    assert normalize_parameter_name("this", "unknown") == "this"
    assert normalize_parameter_name("this") == "this"


def test_call_collapses_to_the_method_name():
    assert normalize_parameter_name("obj.GetTarget()") == "getTarget"
    assert normalize_parameter_name("GetTarget()") == "getTarget"


def test_call_with_arguments_and_chained_receiver():
    assert normalize_parameter_name("player.GetItems(1, 2)") == "getItems"
    assert normalize_parameter_name("a.B(x).C()") == "c"
    assert normalize_parameter_name("GetItems<Item>()") == "getItems"


def test_nested_calls_collapse_innermost_first():
    assert normalize_parameter_name("Foo(a.Bar())") == "foo"


def test_dots_become_camel_case():
    assert normalize_parameter_name("a.b") == "aB"
    assert normalize_parameter_name("player.net.connection") == "playerNetConnection"


def test_to_string_is_removed():
    assert normalize_parameter_name("item.ToString") == "item"


def test_plain_identifier_is_kept():
    assert normalize_parameter_name("player") == "player"


def test_casts_are_not_collapsed():
    assert normalize_parameter_name("(object)player") == "(object)player"


def test_empty_text_falls_back_to_param():
    assert normalize_parameter_name("") == "param"
    assert normalize_parameter_name("ToString") == "param"
