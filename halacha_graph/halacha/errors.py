"""Exceptions raised by the rule layer."""


class PatternError(Exception):
    """A pattern could not be evaluated."""


class UnknownStepError(PatternError):
    """A path pattern names a step keyword the matcher does not know."""


class UnknownConditionError(PatternError):
    """A state or temporal condition the matcher does not know."""


class UnsupportedPatternError(PatternError):
    """A pattern kind the matcher does not know."""


class RegistryError(ValueError):
    """Authored registry data is malformed."""
