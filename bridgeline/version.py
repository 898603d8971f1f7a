"""
Bridgeline version constants.

The recording file and the envelope are fixed formats; only the library
itself carries a version.
"""

# Library version (matches pyproject.toml)
BRIDGELINE_VERSION = "0.1.0"
