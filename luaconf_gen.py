"""Lua configuration bindings generator for Rust.

Resolves the compile-time configuration of a Lua installation (luaconf.h,
lua.h) and emits a Rust module declaring the matching constants, type
aliases and linkage block. The build script captures stdout (or --output)
and includes the result as the binding crate's `config` module.

Usage:
    python luaconf_gen.py [library] --include-dir /usr/include/lua5.1
"""

import os
import argparse
import json
import re
import subprocess
import sys
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import NamedTuple

DEFAULT_LIBRARY = "lua"
DEFAULT_CC = os.environ.get("CC") or "cc"
DEFAULT_INCLUDE_DIRS: tuple[Path, ...] = tuple(
    Path(entry)
    for entry in os.environ.get("LUA_INCLUDE_DIR", "").split(os.pathsep)
    if entry
)
PROBE_HEADERS: tuple[str, ...] = ("luaconf.h", "lua.h")


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class ProbeConfig:
    cc: str
    include_dirs: tuple[Path, ...]
    cflags: tuple[str, ...]


@dataclass(frozen=True)
class GenerateConfig:
    library: str
    variant: str
    options: "EmitOptions"
    probe: ProbeConfig
    values_file: Path | None
    defines: tuple[tuple[str, str], ...]
    output: Path | None
    print_values: bool
    summary: bool


VALID_ERROR_CODES = {
    "INVALID_LIBRARY_NAME",
    "INVALID_DEFINE",
    "UNKNOWN_DEFINE",
    "PATH_NOT_FOUND",
    "CONFLICT_VALUES_PROBE",
    "CONFLICT_LINK_LIBRARY",
}
_DEFINE_RE = re.compile(r"^([A-Z_][A-Z0-9_]*)=(.*)$", re.DOTALL)
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


class ProbeError(RuntimeError):
    """The C probe could not be built, run, or understood."""

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.detail = detail


def validate_library_name(name: str) -> str:
    # Embedded verbatim inside #[link(name = "...")], so only reject what
    # would terminate or corrupt the string literal.
    if name and '"' not in name and "\\" not in name and not _CONTROL_RE.search(name):
        return name
    raise ConfigError(
        "INVALID_LIBRARY_NAME",
        f"Invalid library name: {name!r}",
        "Library names must be non-empty and contain no quotes, backslashes "
        "or control characters.",
    )


def parse_define(raw: str) -> tuple[str, str]:
    match = _DEFINE_RE.match(raw)
    if not match:
        raise ConfigError(
            "INVALID_DEFINE",
            f"Invalid --define value: {raw!r}",
            "Use --define NAME=VALUE, for example --define LUAL_BUFFERSIZE=8192.",
        )
    name, value = match.group(1), match.group(2)
    if name not in MACRO_NAMES:
        raise ConfigError(
            "UNKNOWN_DEFINE",
            f"Unknown macro in --define: {name}",
            f"Known macros: {', '.join(MACRO_NAMES)}.",
        )
    return name, value


def validate_path_exists(path: Path, flag: str) -> Path:
    if path.exists():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Path for {flag} does not exist: {path}",
        "Provide an existing path for this flag.",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate the Rust config module from Lua's luaconf.h"
    )

    parser.add_argument("library", nargs="?", default=None)
    parser.add_argument(
        "--variant", choices=tuple(VARIANTS), default=DEFAULT_VARIANT
    )
    parser.add_argument("--no-link", action="store_true", default=False)

    parser.add_argument("--cc", type=str, default=None)
    parser.add_argument("--include-dir", type=Path, action="append", default=None)
    parser.add_argument(
        "--cflag",
        type=str,
        action="append",
        default=None,
        metavar="FLAG",
        help="extra probe compiler flag, written as --cflag=-DLUA_COMPAT_ALL",
    )

    parser.add_argument("--values", type=Path, default=None)
    parser.add_argument("--define", type=str, action="append", default=None)

    parser.add_argument("--output", type=Path, default=None)
    parser.add_argument("--print-values", action="store_true", default=False)
    parser.add_argument("--summary", action="store_true", default=False)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig:
    options = VARIANTS[args.variant]
    if args.no_link:
        options = options.with_linkage(False)

    if args.library is not None and not options.linkage:
        raise ConfigError(
            "CONFLICT_LINK_LIBRARY",
            f"Library {args.library!r} given but variant {args.variant!r} "
            "emits no linkage directive.",
            "Use --variant full without --no-link, or drop the library argument.",
        )
    library = validate_library_name(
        DEFAULT_LIBRARY if args.library is None else args.library
    )

    has_probe_flags = bool(args.include_dir or args.cc or args.cflag)
    values_file: Path | None = None
    if args.values is not None:
        if has_probe_flags:
            raise ConfigError(
                "CONFLICT_VALUES_PROBE",
                "--values cannot be combined with --cc, --include-dir or --cflag.",
                "Either read pre-resolved values or probe the headers, not both.",
            )
        values_file = validate_path_exists(args.values, "--values")

    if args.include_dir:
        include_dirs = tuple(args.include_dir)
        include_source = "--include-dir"
    else:
        include_dirs = DEFAULT_INCLUDE_DIRS
        include_source = "$LUA_INCLUDE_DIR"
    if values_file is None:
        for include_dir in include_dirs:
            validate_path_exists(include_dir, include_source)

    probe = ProbeConfig(
        cc=args.cc or DEFAULT_CC,
        include_dirs=include_dirs,
        cflags=tuple(args.cflag or ()),
    )
    defines = tuple(parse_define(raw) for raw in args.define or ())

    return GenerateConfig(
        library=library,
        variant=args.variant,
        options=options,
        probe=probe,
        values_file=values_file,
        defines=defines,
        output=args.output,
        print_values=args.print_values,
        summary=args.summary,
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig:
    return validate_config(parse_args(argv))


# ===--- Emit variants ---=== #


@dataclass(frozen=True)
class EmitOptions:
    """Which optional parts of the config module to emit.

    Each historical revision of the generator is one combination of these
    flags; see VARIANTS.

    Attributes:
        crate_attributes: Emit `#![allow(non_camel_case_types)]`.
        libc_import: The statement that brings `libc` into scope.
        binding_keyword: "const" or "static" for every value binding.
        version_block: Emit LUA_VERSION, LUA_RELEASE and LUA_VERSION_NUM.
        linkage: Emit the `#[link(name = ...)]` block.
        debug_limits: Emit LUA_IDSIZE and LUA_MINSTACK.
    """

    crate_attributes: bool
    libc_import: str
    binding_keyword: str
    version_block: bool
    linkage: bool
    debug_limits: bool

    def with_linkage(self, linkage: bool) -> "EmitOptions":
        return replace(self, linkage=linkage)


VARIANTS: dict[str, EmitOptions] = {
    "legacy": EmitOptions(
        crate_attributes=False,
        libc_import="use std::libc;",
        binding_keyword="static",
        version_block=False,
        linkage=False,
        debug_limits=False,
    ),
    "crate": EmitOptions(
        crate_attributes=True,
        libc_import="extern crate libc;",
        binding_keyword="const",
        version_block=True,
        linkage=False,
        debug_limits=True,
    ),
    "full": EmitOptions(
        crate_attributes=True,
        libc_import="extern crate libc;",
        binding_keyword="const",
        version_block=True,
        linkage=True,
        debug_limits=True,
    ),
}
DEFAULT_VARIANT = "full"


# ===--- Lua configuration values ---=== #


class MacroField(NamedTuple):
    macro: str
    attr: str
    kind: type


MACRO_FIELDS: tuple[MacroField, ...] = (
    MacroField("LUA_VERSION", "version", str),
    MacroField("LUA_RELEASE", "release", str),
    MacroField("LUA_VERSION_NUM", "version_num", int),
    MacroField("LUA_INTEGER", "integer_c_type", str),
    MacroField("LUA_INTEGER_SIZE", "integer_size", int),
    MacroField("LUA_NUMBER", "number_c_type", str),
    MacroField("LUA_NUMBER_SIZE", "number_size", int),
    MacroField("LUA_QL", "quote_format", str),
    MacroField("LUAL_BUFFERSIZE", "buffer_size", int),
    MacroField("LUA_IDSIZE", "id_size", int),
    MacroField("LUA_MINSTACK", "min_stack", int),
)
MACRO_NAMES: tuple[str, ...] = tuple(f.macro for f in MACRO_FIELDS)
_NON_NEGATIVE = {"integer_size", "number_size", "buffer_size", "id_size", "min_stack"}


def _coerce_int(macro: str, value: object) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{macro} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
        return int(value)
    raise ValueError(f"{macro} must be an integer, got {value!r}")


@dataclass(frozen=True)
class LuaConfig:
    """Resolved values of the Lua configuration macros.

    `quote_format` is LUA_QL applied to "%s", e.g. "'%s'" for Lua 5.1.
    The *_c_type fields keep the C spelling of LUA_INTEGER / LUA_NUMBER for
    reporting; the emitted aliases are chosen from the *_size fields.
    """

    version: str
    release: str
    version_num: int
    integer_c_type: str
    integer_size: int
    number_c_type: str
    number_size: int
    quote_format: str
    buffer_size: int
    id_size: int
    min_stack: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object]) -> "LuaConfig":
        missing = [f.macro for f in MACRO_FIELDS if f.macro not in raw]
        if missing:
            raise ValueError(f"Missing Lua config values: {', '.join(missing)}")

        kwargs: dict[str, object] = {}
        for field in MACRO_FIELDS:
            value = raw[field.macro]
            if field.kind is int:
                number = _coerce_int(field.macro, value)
                if field.attr in _NON_NEGATIVE and number < 0:
                    raise ValueError(f"{field.macro} must not be negative, got {number}")
                kwargs[field.attr] = number
            elif isinstance(value, str):
                kwargs[field.attr] = value
            else:
                raise ValueError(f"{field.macro} must be a string, got {value!r}")
        return cls(**kwargs)

    def to_mapping(self) -> dict[str, object]:
        return {f.macro: getattr(self, f.attr) for f in MACRO_FIELDS}


def apply_defines(
    raw: Mapping[str, object], defines: tuple[tuple[str, str], ...]
) -> dict[str, object]:
    merged = dict(raw)
    for name, value in defines:
        merged[name] = value
    return merged


def load_values_file(path: Path) -> dict[str, object]:
    """Read a JSON object of pre-resolved macro values."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object, got {type(data).__name__}")
    return data


def format_values_json(luaconf: LuaConfig) -> str:
    return json.dumps(luaconf.to_mapping(), indent=2, sort_keys=True) + "\n"


# ===--- Probe ---=== #


def generate_probe_source(headers: tuple[str, ...] = PROBE_HEADERS) -> str:
    """Return the C source of the configuration probe.

    The probe prints one NAME=VALUE line per entry of MACRO_FIELDS. LUA_QL
    was dropped from the default luaconf.h after 5.2, so the probe falls
    back to the 5.1 definition when the headers do not provide it.
    """
    lines = ["#include <stdio.h>"]
    lines.extend(f"#include <{header}>" for header in headers)
    lines += [
        "",
        "#define STRINGIFY(s) #s",
        "#define STR(s) STRINGIFY(s)",
        "#ifndef LUA_QL",
        "#define LUA_QL(x) \"'\" x \"'\"",
        "#endif",
        "",
        "int main(void) {",
        '\tprintf("LUA_VERSION=%s\\n", LUA_VERSION);',
        '\tprintf("LUA_RELEASE=%s\\n", LUA_RELEASE);',
        '\tprintf("LUA_VERSION_NUM=%d\\n", (int)LUA_VERSION_NUM);',
        '\tprintf("LUA_INTEGER=%s\\n", STR(LUA_INTEGER));',
        '\tprintf("LUA_INTEGER_SIZE=%d\\n", (int)sizeof(LUA_INTEGER));',
        '\tprintf("LUA_NUMBER=%s\\n", STR(LUA_NUMBER));',
        '\tprintf("LUA_NUMBER_SIZE=%d\\n", (int)sizeof(LUA_NUMBER));',
        '\tprintf("LUA_QL=%s\\n", LUA_QL("%s"));',
        '\tprintf("LUAL_BUFFERSIZE=%d\\n", (int)(LUAL_BUFFERSIZE));',
        '\tprintf("LUA_IDSIZE=%d\\n", (int)(LUA_IDSIZE));',
        '\tprintf("LUA_MINSTACK=%d\\n", (int)(LUA_MINSTACK));',
        "\treturn 0;",
        "}",
    ]
    return "\n".join(lines) + "\n"


def parse_probe_output(text: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for line_no, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        name, sep, value = line.partition("=")
        if not sep or not name:
            raise ProbeError(f"Malformed probe output on line {line_no}: {line!r}")
        values[name] = value
    return values


def probe_luaconf(probe: ProbeConfig) -> dict[str, str]:
    """Compile and run the configuration probe against the Lua headers.

    Args:
        probe: Compiler, include directories and extra flags.

    Returns:
        Raw NAME -> VALUE strings, suitable for LuaConfig.from_mapping.

    Raises:
        ProbeError: The compiler is missing, compilation fails (compiler
            stderr in .detail), or the probe exits non-zero.
    """
    with tempfile.TemporaryDirectory(prefix="luaconf-probe-") as tmp:
        c_file = Path(tmp) / "probe.c"
        out_file = Path(tmp) / "probe"
        c_file.write_text(generate_probe_source(), encoding="utf-8")

        compile_cmd = [
            probe.cc,
            "-o",
            str(out_file),
            str(c_file),
            *(f"-I{include_dir}" for include_dir in probe.include_dirs),
            *probe.cflags,
        ]
        try:
            subprocess.run(compile_cmd, check=True, capture_output=True, text=True)
        except FileNotFoundError as err:
            raise ProbeError(f"C compiler not found: {probe.cc}") from err
        except subprocess.CalledProcessError as err:
            raise ProbeError(
                "Failed to compile the luaconf probe (are the Lua headers on the "
                "include path?)",
                err.stderr or "",
            ) from err

        try:
            result = subprocess.run(
                [str(out_file)], check=True, capture_output=True, text=True
            )
        except (OSError, subprocess.CalledProcessError) as err:
            raise ProbeError(f"Failed to run the luaconf probe: {err}") from err

    return parse_probe_output(result.stdout)


def resolve_luaconf(config: GenerateConfig) -> tuple[LuaConfig, str]:
    """Resolve values from the configured source and apply --define overrides.

    Returns the LuaConfig and a short label naming the source.
    """
    if config.values_file is not None:
        raw: Mapping[str, object] = load_values_file(config.values_file)
        source = f"values file {config.values_file}"
    else:
        raw = probe_luaconf(config.probe)
        source = f"probe ({config.probe.cc})"
    if config.defines:
        raw = apply_defines(raw, config.defines)
        source += f" + {len(config.defines)} define(s)"
    return LuaConfig.from_mapping(raw), source


# ===--- Host type mapping ---=== #

RUST_INTEGER_TYPES = {1: "i8", 2: "i16", 4: "i32", 8: "i64", 16: "i128"}
RUST_FLOAT_TYPES = {4: "f32", 8: "f64"}


def rust_integer_type(size: int) -> str:
    try:
        return RUST_INTEGER_TYPES[size]
    except KeyError:
        raise ValueError(f"No Rust integer type is {size} bytes wide") from None


def rust_float_type(size: int) -> str:
    try:
        return RUST_FLOAT_TYPES[size]
    except KeyError:
        raise ValueError(f"No Rust float type is {size} bytes wide") from None


_RUST_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def escape_rust_str(text: str) -> str:
    out: list[str] = []
    for ch in text:
        if ch in _RUST_ESCAPES:
            out.append(_RUST_ESCAPES[ch])
        elif _CONTROL_RE.match(ch):
            out.append(f"\\u{{{ord(ch):x}}}")
        else:
            out.append(ch)
    return "".join(out)


QUOTE_PLACEHOLDER = "%s"
QUOTE_TOKEN = "{}"


def render_quote_template(quote_format: str) -> str:
    """Substitute the Rust format token into LUA_QL's single placeholder."""
    count = quote_format.count(QUOTE_PLACEHOLDER)
    if count != 1:
        raise ValueError(
            f"LUA_QL must contain exactly one {QUOTE_PLACEHOLDER!r} placeholder, "
            f"found {count} in {quote_format!r}"
        )
    return quote_format.replace(QUOTE_PLACEHOLDER, QUOTE_TOKEN)


# ===--- Template ---=== #


class Literal(NamedTuple):
    text: str


class Placeholder(NamedTuple):
    name: str


Segment = Literal | Placeholder

TEMPLATE_FIELDS: tuple[str, ...] = (
    "library",
    "version",
    "release",
    "version_num",
    "integer_type",
    "number_type",
    "quote_template",
    "buffer_size",
    "id_size",
    "min_stack",
)


def _line(*parts: str | Placeholder) -> list[Segment]:
    segments: list[Segment] = [
        Literal(part) if isinstance(part, str) else part for part in parts
    ]
    segments.append(Literal("\n"))
    return segments


def build_template(options: EmitOptions) -> tuple[Segment, ...]:
    """Build the ordered segment list for the config module.

    Blocks are separated by one blank line; which blocks are present is
    decided by `options`. Literal text depends only on `options`, so the
    same options always give the same template.
    """
    kw = options.binding_keyword
    blocks: list[list[Segment]] = []

    blocks.append(
        _line("//! Module for configuration based on luaconf.h")
        + _line("//!")
        + _line("//! Generated by luaconf-gen; do not edit.")
    )
    if options.crate_attributes:
        blocks.append(_line("#![allow(non_camel_case_types)]"))
    blocks.append(_line(options.libc_import))

    if options.linkage:
        blocks.append(
            _line('#[link(name = "', Placeholder("library"), '")]')
            + _line('extern "C" {}')
        )

    if options.version_block:
        blocks.append(
            _line("/// Human-readable major version string")
            + _line(f"pub {kw} LUA_VERSION: &'static str = \"", Placeholder("version"), '";')
            + _line("/// Human-readable release version string")
            + _line(f"pub {kw} LUA_RELEASE: &'static str = \"", Placeholder("release"), '";')
            + _line("/// Machine-readable Lua version number")
            + _line(f"pub {kw} LUA_VERSION_NUM: libc::c_int = ", Placeholder("version_num"), ";")
        )

    blocks.append(
        _line("/// The integral type used by lua_pushinteger/lua_tointeger.")
        + _line("pub type LUA_INTEGER = ", Placeholder("integer_type"), ";")
        + _line("/// The type of numbers in Lua.")
        + _line("pub type LUA_NUMBER = ", Placeholder("number_type"), ";")
    )
    blocks.append(
        _line("/// LUA_QL describes how error messages quote program elements.")
        + _line(f"pub {kw} LUA_QL: &'static str = \"", Placeholder("quote_template"), '";')
    )
    blocks.append(
        _line("/// The buffer size used by the lauxlib buffer system.")
        + _line(f"pub {kw} LUAL_BUFFERSIZE: libc::size_t = ", Placeholder("buffer_size"), ";")
    )

    if options.debug_limits:
        blocks.append(
            _line(
                "/// The maximum size for the description of the source of a "
                "function in debug information."
            )
            + _line(f"pub {kw} LUA_IDSIZE: libc::size_t = ", Placeholder("id_size"), ";")
        )
        blocks.append(
            _line("/// The minimum Lua stack available to a C function.")
            + _line(f"pub {kw} LUA_MINSTACK: libc::size_t = ", Placeholder("min_stack"), ";")
        )

    template: list[Segment] = []
    for index, block in enumerate(blocks):
        if index:
            template.append(Literal("\n"))
        template.extend(block)
    return tuple(template)


def build_template_values(luaconf: LuaConfig, library: str) -> dict[str, str]:
    """Render every placeholder value as the text it contributes to the module.

    Raises:
        ValueError: Unsupported integer/float width or malformed LUA_QL.
    """
    return {
        "library": library,
        "version": escape_rust_str(luaconf.version),
        "release": escape_rust_str(luaconf.release),
        "version_num": str(luaconf.version_num),
        "integer_type": rust_integer_type(luaconf.integer_size),
        "number_type": rust_float_type(luaconf.number_size),
        "quote_template": escape_rust_str(render_quote_template(luaconf.quote_format)),
        "buffer_size": str(luaconf.buffer_size),
        "id_size": str(luaconf.id_size),
        "min_stack": str(luaconf.min_stack),
    }


def render_template(template: tuple[Segment, ...], values: Mapping[str, str]) -> str:
    parts: list[str] = []
    for segment in template:
        if isinstance(segment, Literal):
            parts.append(segment.text)
            continue
        if segment.name not in values:
            raise ValueError(f"No value for template placeholder {segment.name!r}")
        parts.append(values[segment.name])
    return "".join(parts)


def render_config_module(
    luaconf: LuaConfig, options: EmitOptions, library: str = DEFAULT_LIBRARY
) -> str:
    template = build_template(options)
    return render_template(template, build_template_values(luaconf, library))


# ===--- Writer ---=== #


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing the generated module to disk.

    Attributes:
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    path: Path
    line_count: int
    byte_count: int


def write_output(path: Path, content: str) -> FileWriteResult:
    """Write generated content to `path`, creating parent directories.

    Raises:
        OSError: Propagated directly if the filesystem write fails.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    resolved = path.resolve()
    return FileWriteResult(
        path=resolved,
        line_count=content.count("\n"),
        byte_count=len(resolved.read_bytes()),
    )


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class GenerationSummary:
    """Data for the post-generation report printed to stderr.

    Attributes:
        release: LUA_RELEASE of the resolved configuration.
        source_label: Where values came from, e.g. "probe (cc)".
        variant: Variant name selected with --variant.
        library: Linked library name, or None when no linkage was emitted.
        integer_alias: "LUA_INTEGER = i64 (ptrdiff_t, 8 bytes)" style row.
        number_alias: Same for LUA_NUMBER.
        output_label: Output path, or "<stdout>".
        line_count: Lines in the generated output.
    """

    release: str
    source_label: str
    variant: str
    library: str | None
    integer_alias: str
    number_alias: str
    output_label: str
    line_count: int


def build_generation_summary(
    config: GenerateConfig,
    luaconf: LuaConfig,
    source_label: str,
    content: str,
    write_result: FileWriteResult | None,
) -> GenerationSummary:
    return GenerationSummary(
        release=luaconf.release,
        source_label=source_label,
        variant=config.variant,
        library=config.library if config.options.linkage else None,
        integer_alias=(
            f"{rust_integer_type(luaconf.integer_size)} "
            f"({luaconf.integer_c_type}, {luaconf.integer_size} bytes)"
        ),
        number_alias=(
            f"{rust_float_type(luaconf.number_size)} "
            f"({luaconf.number_c_type}, {luaconf.number_size} bytes)"
        ),
        output_label=str(write_result.path) if write_result else "<stdout>",
        line_count=content.count("\n"),
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    lines = [
        f"{summary.release} config generated:",
        "",
        f"  Source:      {summary.source_label}",
        f"  Variant:     {summary.variant}",
        f"  Library:     {summary.library if summary.library else '(not linked)'}",
        f"  LUA_INTEGER: {summary.integer_alias}",
        f"  LUA_NUMBER:  {summary.number_alias}",
        f"  Output:      {summary.output_label} ({summary.line_count:,} lines)",
        "",
    ]
    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    print(format_generation_summary(summary), end="", file=sys.stderr)


# ===--- Main generation ---=== #


def run_generate(config: GenerateConfig) -> str:
    """Resolve values, render the module (or values JSON) and write it.

    Everything is rendered in memory before the first write, so a failure
    never leaves partial output behind.

    Returns:
        The generated text.

    Raises:
        ProbeError: The header probe failed.
        OSError: Values file unreadable or output write failure.
        ValueError: Invalid values, unsupported widths or malformed LUA_QL.
    """
    luaconf, source_label = resolve_luaconf(config)

    if config.print_values:
        content = format_values_json(luaconf)
    else:
        content = render_config_module(luaconf, config.options, config.library)

    write_result: FileWriteResult | None = None
    if config.output is not None:
        write_result = write_output(config.output, content)
    else:
        # Same bytes as --output regardless of the locale encoding.
        sys.stdout.flush()
        sys.stdout.buffer.write(content.encode("utf-8"))
        sys.stdout.buffer.flush()

    if config.summary:
        summary = build_generation_summary(
            config, luaconf, source_label, content, write_result
        )
        print_generation_summary(summary)

    return content


def main(argv: list[str] | None = None) -> None:
    try:
        config = build_config(argv)
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}", file=sys.stderr)
        if err.suggestion:
            print(f"Hint: {err.suggestion}", file=sys.stderr)
        raise SystemExit(1) from err

    try:
        run_generate(config)
    except ProbeError as err:
        print(f"Probe error: {err}", file=sys.stderr)
        if err.detail:
            print(err.detail.rstrip(), file=sys.stderr)
        raise SystemExit(1) from err
    except (OSError, json.JSONDecodeError) as err:
        print(f"Error: {err}", file=sys.stderr)
        raise SystemExit(1) from err
    except ValueError as err:
        print(f"Invalid value: {err}", file=sys.stderr)
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
