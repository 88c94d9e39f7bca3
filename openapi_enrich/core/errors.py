class ConfigurationError(Exception):
    """
    Declared rules or operations are inconsistent.

    Must stay outside the ValueError hierarchy: pydantic validators re-raise
    it unwrapped.
    """


class BuildCancelled(RuntimeError):
    """Document build stopped between phases by the caller."""
