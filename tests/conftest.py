"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from commentcheck.config import CONFIG_ENV_VAR
from commentcheck.rules import ModuleAttributeCommentsRule
from commentcheck.runner import ModuleRunner


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def no_config_env(monkeypatch):
    """Keep a developer's COMMENTCHECK_CONFIG out of the tests."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


@pytest.fixture
def basic_config():
    """One attribute with a message, explicit shape."""
    return {
        "enabled": True,
        "attribute": [
            {"name": "instance_type", "message": "Must explain override."},
        ],
    }


# =============================================================================
# SOURCE FIXTURES
# =============================================================================

COMMENTED_MODULE = '''
module "example" {
  source = "./modules/example"
  # This is a comment for instance_type
  instance_type = "t2.micro"
}'''

UNCOMMENTED_MODULE = '''
module "example" {
  source = "./modules/example"
  instance_type = "t2.micro"
}'''


@pytest.fixture
def commented_module():
    return COMMENTED_MODULE


@pytest.fixture
def uncommented_module():
    return UNCOMMENTED_MODULE


# =============================================================================
# HELPERS
# =============================================================================

@pytest.fixture
def run_rule():
    """Run module_attribute_comments over in-memory sources; returns the runner."""
    def _run(sources, payload, sink=None):
        if isinstance(sources, str):
            sources = {"resource.tf": sources}
        runner = ModuleRunner.from_sources(sources, sink=sink)
        rule = ModuleAttributeCommentsRule()
        rule.apply_config(payload)
        rule.check(runner)
        return runner
    return _run
