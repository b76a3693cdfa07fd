#!/usr/bin/env python
"""
Thin wrapper script to invoke the vc_patch_helper CLI.

Running ``python vcpatch.py`` is equivalent to running the ``vcpatch``
console script installed via ``pyproject.toml``.
"""

from vc_patch_helper.cli import main


if __name__ == "__main__":
    main(prog_name="vcpatch")
