"""
ewbundle: packaging and pre-upload checks for EdgeWorkers code bundles.

- Build a flat, portable ``ew_<version>_<epochMillis>.tgz`` from a directory
  holding ``main.js`` and ``bundle.json``, cached per bundle identifier.
- Validate the ``bundle.json`` manifest (edgeworker-version, bundle-version,
  api-version).
- Inspect a supplied archive for exactly one ``main.js`` and one
  ``bundle.json`` at its root.
- SHA-256 checksums for comparing against the value reported after upload.
- ``.edgerc`` profile resolution and EdgeGrid request signing.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "config",
    "manifest",
    "writer",
    "reader",
    "storage",
    "edgerc",
    "signing",
]

# Importable programmatic API is available via ewbundle.writer/ewbundle.reader and
# the CLI functions in ewbundle.cli (cmd_build/cmd_validate) which take normal parameters.
