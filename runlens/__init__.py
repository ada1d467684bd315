"""Test run reporting: JSON run reports and aggregated HTML dashboards."""

__version__ = "0.1.0"
