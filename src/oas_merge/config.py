"""Configuration module for oas-merge.

This module centralizes all environment variable handling so that defaults
for output, HTTP fetching and fan-out are easily reusable across modules.
"""

import os

# Output written by `oas-merge run` when neither --output nor the config file names one
OAS_MERGE_DEFAULT_OUTPUT = os.getenv("OAS_MERGE_DEFAULT_OUTPUT") or "./merged-api.yaml"

# HTTP fetching of upstream documents
OAS_MERGE_HTTP_TIMEOUT_SECONDS = float(os.getenv("OAS_MERGE_HTTP_TIMEOUT_SECONDS") or 30)
OAS_MERGE_PROXY_URL = os.getenv("OAS_MERGE_PROXY_URL") or None  # Optional proxy URL for fetching specs

# Maximum number of sources processed at once, 0 disables the limit
OAS_MERGE_MAX_CONCURRENCY = int(os.getenv("OAS_MERGE_MAX_CONCURRENCY") or 8)

# Upper bound for a single source resolution, 0 waits forever
OAS_MERGE_RESOLVE_TIMEOUT_SECONDS = float(os.getenv("OAS_MERGE_RESOLVE_TIMEOUT_SECONDS") or 0)
