"""Package version."""

HELPER_VERSION = "0.1.0"
