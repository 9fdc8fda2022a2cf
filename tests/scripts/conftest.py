"""Script-specific test fixtures."""

import importlib.util
import sys
from pathlib import Path

import pytest

SCRIPTS_DIR = Path(__file__).parent.parent.parent / "scripts"

# Track dynamically loaded script modules for cleanup
_loaded_script_modules: set[str] = set()


def load_script_module(script_name: str):
    """Load a script as a module and track it for cleanup.

    Args:
        script_name: Name of script file (e.g., "jar_monitor.py")

    Returns:
        Loaded module object
    """
    script_path = SCRIPTS_DIR / script_name
    module_name = script_name.replace(".py", "")

    spec = importlib.util.spec_from_file_location(module_name, script_path)
    assert spec is not None, f"Could not load spec for {script_path}"
    assert spec.loader is not None, f"No loader for {script_path}"

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    _loaded_script_modules.add(module_name)

    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def cleanup_script_modules():
    """Drop loaded script modules so state cannot leak between tests."""
    _loaded_script_modules.clear()
    yield
    for module_name in _loaded_script_modules:
        sys.modules.pop(module_name, None)


@pytest.fixture
def jar_monitor():
    return load_script_module("jar_monitor.py")
