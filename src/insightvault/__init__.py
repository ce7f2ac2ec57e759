"""
InsightVault - personal data records behind token authentication.

Users register, sign in with a bearer token and manage their own labeled
numeric observations. Every record belongs to exactly one owner.
"""

__version__ = "0.1.0"
__author__ = "InsightVault Team"
__email__ = "team@insightvault.dev"

from insightvault.core.config import settings

__all__ = ["settings", "__version__"]
