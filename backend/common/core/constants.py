from enum import Enum


class Environment(str, Enum):
    """Environment profiles."""

    LOCAL = "local"
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class NotificationProviderType(str, Enum):
    """Notification delivery backends."""

    QUEUE = "queue"
    LOG = "log"
