class ConfigurationError(Exception):
    """A module configuration that must never produce a build step."""


class MultipleSystemModulesError(ConfigurationError):
    pass


class MissingToolchainComponentError(ConfigurationError):
    pass


class InvalidRuleArgumentsError(ConfigurationError):
    pass
