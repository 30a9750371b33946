import argparse
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

PROJECT_DIR = Path(__file__).resolve().parent.parent
if str(PROJECT_DIR) not in sys.path:
    sys.path.insert(0, str(PROJECT_DIR))

import luaconf_gen  # noqa: E402

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def lua51_values() -> dict[str, object]:
    return {
        "LUA_VERSION": "Lua 5.1",
        "LUA_RELEASE": "Lua 5.1.5",
        "LUA_VERSION_NUM": 501,
        "LUA_INTEGER": "ptrdiff_t",
        "LUA_INTEGER_SIZE": 8,
        "LUA_NUMBER": "double",
        "LUA_NUMBER_SIZE": 8,
        "LUA_QL": "'%s'",
        "LUAL_BUFFERSIZE": 8192,
        "LUA_IDSIZE": 60,
        "LUA_MINSTACK": 20,
    }


@pytest.fixture
def lua51_config(lua51_values: dict[str, object]) -> luaconf_gen.LuaConfig:
    return luaconf_gen.LuaConfig.from_mapping(lua51_values)


@pytest.fixture
def values_file(tmp_path: Path) -> Path:
    path = tmp_path / "values.json"
    path.write_text((FIXTURES_DIR / "values_lua51.json").read_text(), encoding="utf-8")
    return path


@pytest.fixture
def make_args() -> Callable[..., argparse.Namespace]:
    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "library": None,
            "variant": "full",
            "no_link": False,
            "cc": None,
            "include_dir": None,
            "cflag": None,
            "values": None,
            "define": None,
            "output": None,
            "print_values": False,
            "summary": False,
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args
