"""Selective merging of OpenAPI 3 documents."""

import os
from importlib.metadata import PackageNotFoundError, version

# Try to get version from package metadata
try:
    __version__ = version("oas-merge")
except PackageNotFoundError:
    # Running in development or from source
    __version__ = "0.0.0-dev"

# Allow environment variable override for container builds
__version__ = os.environ.get("OAS_MERGE_VERSION", __version__)
