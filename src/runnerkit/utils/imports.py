"""Safe import utilities for optional dependencies."""

import logging

logger = logging.getLogger(__name__)


def safe_import(module_name: str, package_name: str = None):
    """
    Safely import a module, returning None if unavailable.

    Use this for optional vendor libraries (e.g. NVML bindings) that may not
    be installed on every host.

    Args:
        module_name: The module to import (e.g., "pynvml")
        package_name: Distribution name used in the debug message (optional)

    Returns:
        The imported module, or None if import fails

    Examples:
        >>> pynvml = safe_import("pynvml", "nvidia-ml-py")
        >>> if pynvml:
        ...     pynvml.nvmlInit()
    """
    try:
        return __import__(module_name, fromlist=[''])
    except ImportError:
        logger.debug(f"Optional module {module_name} unavailable (install {package_name or module_name})")
        return None
