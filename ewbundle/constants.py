# Required archive members
MAINJS_FILENAME = "main.js"
MANIFEST_FILENAME = "bundle.json"
REQUIRED_FILENAMES = (MAINJS_FILENAME, MANIFEST_FILENAME)

# Manifest keys
TARBALL_VERSION_KEY = "edgeworker-version"
BUNDLE_FORMAT_VERSION_KEY = "bundle-version"
JSAPI_VERSION_KEY = "api-version"

# Cache layout: <cache_root>/edgeworkers-cli/edgeworkers/<ew_id>/
CLI_HOME_DIRNAME = "edgeworkers-cli"
BUNDLES_DIRNAME = "edgeworkers"

TARBALL_PREFIX = "ew_"
TARBALL_SUFFIX = ".tgz"
PARTIAL_SUFFIX = ".partial"

# Normalised ("portable") tar metadata
PORTABLE_FILE_MODE = 0o644

# Environment
ENV_CACHE_PATH = "AKAMAI_CLI_CACHE_PATH"
ENV_EDGERC = "AKAMAI_EDGERC"
ENV_EDGERC_SECTION = "AKAMAI_EDGERC_SECTION"
ENV_DEBUG = "AKAMAI_EDGEWORKERS_DEBUG"

DEFAULT_CACHE_ROOT = "~/.akamai-cli/cache"
DEFAULT_EDGERC = "~/.edgerc"
DEFAULT_SECTION = "default"

# EdgeGrid
DEFAULT_MAX_BODY = 131072  # 128 KiB
