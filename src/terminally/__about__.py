"""Metadata for terminally."""

from __future__ import annotations

__title__ = "terminally"
__package_name__ = "terminally"
__version__ = "0.3.0"
__description__ = "Interactive tmux shells behind a JSON-RPC tool API"
__email__ = "maintainers@terminally.dev"
__author__ = "terminally contributors"
__github__ = "https://github.com/terminally/terminally"
__docs__ = "https://github.com/terminally/terminally#readme"
__tracker__ = "https://github.com/terminally/terminally/issues"
__pypi__ = "https://pypi.org/project/terminally/"
__license__ = "MIT"
__copyright__ = "Copyright 2025- terminally contributors"
