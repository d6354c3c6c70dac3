"""
BlueCarbon Registry - API Package
===================================
REST API del registro.
"""

from blue_carbon.api.rest_api import create_app

__all__ = [
    "create_app",
]
