"""Utility modules."""

from .key_manager import KeyManager
from .locators import build_locator, build_xpath, escape_xpath_literal

__all__ = ['KeyManager', 'build_locator', 'build_xpath', 'escape_xpath_literal']
