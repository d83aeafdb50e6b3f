class EcoSignalError(Exception):
    """Base class for errors raised by the simulation core."""

class InvalidConfigurationError(EcoSignalError):
    """A configuration value was rejected; the previous value stays in effect."""

class AgentError(EcoSignalError):
    """A call into the learning agent failed."""

class AgentDisposedError(AgentError):
    """The agent was used after shutdown()."""
