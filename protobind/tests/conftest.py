"""Unit tests configuration file."""

from hypothesis import HealthCheck, settings

# Rendering goes through jinja2, which is slow on first use
settings.register_profile(
    "protobind", deadline=None, suppress_health_check=[HealthCheck.too_slow]
)
settings.load_profile("protobind")


def pytest_configure(config):
    """Hide file paths in the terminal report."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False
