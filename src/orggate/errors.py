class OrgGateError(Exception):
    """Base class for errors raised by orggate."""


class ConfigError(OrgGateError):
    """The configuration file is missing, unreadable or invalid."""


class LookupFailed(OrgGateError):
    """Registration data for an address could not be obtained or parsed.

    Network errors, malformed payloads and "no record" all end up here.
    """


class ConfigNotFound(ConfigError):
    """The configuration file does not exist."""
