"""Basic smoke tests for the SiteKeeper package."""

import importlib


def test_package_imports() -> None:
    pkg = importlib.import_module("sitekeeper")
    assert pkg.__version__ == "0.2.0"
    assert pkg.SCHEMA_VERSION == 1


def test_public_api_is_exported() -> None:
    pkg = importlib.import_module("sitekeeper")
    for name in pkg.__all__:
        assert hasattr(pkg, name), name
