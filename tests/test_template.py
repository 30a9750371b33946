import re

import pytest

import luaconf_gen

EXPECTED_FULL = """\
//! Module for configuration based on luaconf.h
//!
//! Generated by luaconf-gen; do not edit.

#![allow(non_camel_case_types)]

extern crate libc;

#[link(name = "lua")]
extern "C" {}

/// Human-readable major version string
pub const LUA_VERSION: &'static str = "Lua 5.1";
/// Human-readable release version string
pub const LUA_RELEASE: &'static str = "Lua 5.1.5";
/// Machine-readable Lua version number
pub const LUA_VERSION_NUM: libc::c_int = 501;

/// The integral type used by lua_pushinteger/lua_tointeger.
pub type LUA_INTEGER = i64;
/// The type of numbers in Lua.
pub type LUA_NUMBER = f64;

/// LUA_QL describes how error messages quote program elements.
pub const LUA_QL: &'static str = "'{}'";

/// The buffer size used by the lauxlib buffer system.
pub const LUAL_BUFFERSIZE: libc::size_t = 8192;

/// The maximum size for the description of the source of a function in debug information.
pub const LUA_IDSIZE: libc::size_t = 60;

/// The minimum Lua stack available to a C function.
pub const LUA_MINSTACK: libc::size_t = 20;
"""

EXPECTED_LEGACY = """\
//! Module for configuration based on luaconf.h
//!
//! Generated by luaconf-gen; do not edit.

use std::libc;

/// The integral type used by lua_pushinteger/lua_tointeger.
pub type LUA_INTEGER = i64;
/// The type of numbers in Lua.
pub type LUA_NUMBER = f64;

/// LUA_QL describes how error messages quote program elements.
pub static LUA_QL: &'static str = "'{}'";

/// The buffer size used by the lauxlib buffer system.
pub static LUAL_BUFFERSIZE: libc::size_t = 8192;
"""


def test_render_full_variant_matches_expected_module(
    lua51_config: luaconf_gen.LuaConfig,
) -> None:
    text = luaconf_gen.render_config_module(lua51_config, luaconf_gen.VARIANTS["full"])

    assert text == EXPECTED_FULL


def test_render_legacy_variant_matches_expected_module(
    lua51_config: luaconf_gen.LuaConfig,
) -> None:
    text = luaconf_gen.render_config_module(
        lua51_config, luaconf_gen.VARIANTS["legacy"]
    )

    assert text == EXPECTED_LEGACY


def test_render_crate_variant_is_full_without_linkage(
    lua51_config: luaconf_gen.LuaConfig,
) -> None:
    text = luaconf_gen.render_config_module(
        lua51_config, luaconf_gen.VARIANTS["crate"]
    )

    assert "#[link" not in text
    assert 'extern "C"' not in text
    assert text == EXPECTED_FULL.replace(
        '#[link(name = "lua")]\nextern "C" {}\n\n', ""
    )


@pytest.mark.parametrize("variant", sorted(luaconf_gen.VARIANTS))
def test_render_is_deterministic_and_complete(
    lua51_config: luaconf_gen.LuaConfig, variant: str
) -> None:
    options = luaconf_gen.VARIANTS[variant]

    first = luaconf_gen.render_config_module(lua51_config, options, "lua")
    second = luaconf_gen.render_config_module(lua51_config, options, "lua")

    assert first == second
    assert first.endswith(";\n")
    assert not first.endswith("\n\n")
    assert "\n\n\n" not in first


def test_render_embeds_library_override_verbatim(
    lua51_config: luaconf_gen.LuaConfig,
) -> None:
    text = luaconf_gen.render_config_module(
        lua51_config, luaconf_gen.VARIANTS["full"], "lua5.1 {weird}$name"
    )

    assert '#[link(name = "lua5.1 {weird}$name")]' in text


@pytest.mark.parametrize(
    ("field", "value", "line"),
    [
        ("buffer_size", 1024, "pub const LUAL_BUFFERSIZE: libc::size_t = 1024;"),
        ("id_size", 255, "pub const LUA_IDSIZE: libc::size_t = 255;"),
        ("min_stack", 0, "pub const LUA_MINSTACK: libc::size_t = 0;"),
        ("version_num", 504, "pub const LUA_VERSION_NUM: libc::c_int = 504;"),
    ],
)
def test_numeric_constants_are_plain_decimal(
    lua51_values: dict[str, object], field: str, value: int, line: str
) -> None:
    macro = {f.attr: f.macro for f in luaconf_gen.MACRO_FIELDS}[field]
    lua51_values[macro] = value
    config = luaconf_gen.LuaConfig.from_mapping(lua51_values)

    text = luaconf_gen.render_config_module(config, luaconf_gen.VARIANTS["full"])

    assert line in text.splitlines()


@pytest.mark.parametrize(
    ("integer_size", "number_size", "integer_type", "number_type"),
    [(4, 4, "i32", "f32"), (8, 8, "i64", "f64"), (2, 8, "i16", "f64")],
)
def test_type_aliases_follow_configured_widths(
    lua51_values: dict[str, object],
    integer_size: int,
    number_size: int,
    integer_type: str,
    number_type: str,
) -> None:
    lua51_values["LUA_INTEGER_SIZE"] = integer_size
    lua51_values["LUA_NUMBER_SIZE"] = number_size
    config = luaconf_gen.LuaConfig.from_mapping(lua51_values)

    text = luaconf_gen.render_config_module(config, luaconf_gen.VARIANTS["full"])

    assert f"pub type LUA_INTEGER = {integer_type};" in text
    assert f"pub type LUA_NUMBER = {number_type};" in text


@pytest.mark.parametrize("size", [0, 3, 32])
def test_rust_integer_type_rejects_unknown_width(size: int) -> None:
    with pytest.raises(ValueError, match=f"{size} bytes"):
        luaconf_gen.rust_integer_type(size)


def test_rust_float_type_rejects_long_double() -> None:
    with pytest.raises(ValueError, match="16 bytes"):
        luaconf_gen.rust_float_type(16)


@pytest.mark.parametrize(
    ("quote_format", "expected"),
    [("'%s'", "'{}'"), ("`%s'", "`{}'"), ("%s", "{}"), ("<<%s>>", "<<{}>>")],
)
def test_render_quote_template_substitutes_single_placeholder(
    quote_format: str, expected: str
) -> None:
    rendered = luaconf_gen.render_quote_template(quote_format)

    assert rendered == expected
    assert "%s" not in rendered


@pytest.mark.parametrize("quote_format", ["''", "'%s' or '%s'"])
def test_render_quote_template_requires_exactly_one_placeholder(
    quote_format: str,
) -> None:
    with pytest.raises(ValueError, match="exactly one"):
        luaconf_gen.render_quote_template(quote_format)


def test_string_values_are_escaped_for_rust(lua51_values: dict[str, object]) -> None:
    lua51_values["LUA_RELEASE"] = 'Lua "5.1"\\patched\n'
    lua51_values["LUA_QL"] = '"%s"'
    config = luaconf_gen.LuaConfig.from_mapping(lua51_values)

    text = luaconf_gen.render_config_module(config, luaconf_gen.VARIANTS["full"])

    assert 'LUA_RELEASE: &\'static str = "Lua \\"5.1\\"\\\\patched\\n";' in text
    assert 'LUA_QL: &\'static str = "\\"{}\\"";' in text


def test_escape_rust_str_uses_unicode_escape_for_other_controls() -> None:
    assert luaconf_gen.escape_rust_str("a\x01b\x7f") == "a\\u{1}b\\u{7f}"
    assert luaconf_gen.escape_rust_str("plain 'text' {}") == "plain 'text' {}"


def test_build_template_only_references_known_placeholders() -> None:
    for options in luaconf_gen.VARIANTS.values():
        template = luaconf_gen.build_template(options)
        names = {s.name for s in template if isinstance(s, luaconf_gen.Placeholder)}

        assert names <= set(luaconf_gen.TEMPLATE_FIELDS)


def test_build_template_values_cover_template_fields(
    lua51_config: luaconf_gen.LuaConfig,
) -> None:
    values = luaconf_gen.build_template_values(lua51_config, "lua")

    assert set(values) == set(luaconf_gen.TEMPLATE_FIELDS)


def test_render_template_missing_value_raises() -> None:
    template = (
        luaconf_gen.Literal("x = "),
        luaconf_gen.Placeholder("min_stack"),
        luaconf_gen.Literal(";\n"),
    )

    assert luaconf_gen.render_template(template, {"min_stack": "20"}) == "x = 20;\n"
    with pytest.raises(ValueError, match="min_stack"):
        luaconf_gen.render_template(template, {})


def test_every_declaration_line_is_well_formed(
    lua51_config: luaconf_gen.LuaConfig,
) -> None:
    text = luaconf_gen.render_config_module(lua51_config, luaconf_gen.VARIANTS["full"])
    declaration = re.compile(
        r"^pub (const|static|type) [A-Z_]+(: [^=]+)? = .+;$"
    )

    for line in text.splitlines():
        if line.startswith("pub "):
            assert declaration.match(line), line
