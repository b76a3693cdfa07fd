"""
Configuration loading for vc_patch_helper.

See :mod:`vc_patch_helper.config.loader` for the file format.
"""

from .loader import ConfigError, PatchConfig, load_config  # noqa: F401
