"""Test package version and basic imports."""

import deploy_helper


def test_version():
    """Verify package version is set."""
    assert deploy_helper.__version__ == "1.0.3"
