# site_auditor/__init__.py
"""
SiteAuditor package initializer.
Defines package version and exposes the engine and CLI entry point.
"""
__version__ = "0.1.0"

from site_auditor.engine import Engine
# под другим именем, чтобы не заслонять подмодуль site_auditor.cli
from site_auditor.cli import cli as main_cli
