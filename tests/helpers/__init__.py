"""Test helper modules for the ssg-helper test suite.

- ssr_server: throwaway SSR servers written into a project's dist directory
- timeouts: configurable timeouts and polling helpers
"""
from __future__ import annotations
