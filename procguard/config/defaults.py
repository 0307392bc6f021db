"""Default configuration values for procguard."""

from typing import Any


def get_default_config() -> dict[str, Any]:
    """Return the default configuration dictionary."""
    return {
        "process": {
            # Seconds between the polite terminate and the hard kill
            "terminate_grace_period": 3.0,
            # POSIX only: own process group so the whole tree can be signalled
            "new_session": True,
        },
        "registry": {
            "hook_release_timeout": 20.0,
        },
        "shutdown": {
            "handle_sigterm": False,
        },
        "environment": {
            "direct_query": True,
            # None = the platform adapter decides
            "probe_encoding": None,
        },
        # Logging Configuration
        "log_level": "INFO",
        "log_format": "pretty",
        "log_colors": True,
    }
