"""Hard-coded constants not meant to be user-configurable."""

ENV_PREFIX = "PROCGUARD_"
CONFIG_FILE_NAME = "config.json"

SHUTDOWN_HOOK_NAME = "ProcessDestroyer Shutdown Hook"
