#!/usr/bin/env python3
"""
ZeekScope - Setup Script

This setup.py exists for backwards compatibility with older pip versions
and editable installs. Configuration is in pyproject.toml.

Version is managed by setuptools_scm from git tags:
    git tag v0.1.0

The version is auto-generated to src/zeekscope/_version.py on install.
"""

from setuptools import setup

if __name__ == "__main__":
    setup()
