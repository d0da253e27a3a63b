"""Schemas module for the public extension API.

Provides Pydantic models for:
- Extension info (remote and installed extensions)
"""

from .extension_info import ExtensionInfo

__all__ = ["ExtensionInfo"]
