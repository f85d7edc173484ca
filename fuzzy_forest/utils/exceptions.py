"""
Custom exception hierarchy for the fuzzy forest pipeline.
"""


class FuzzyForestException(Exception):
    """Base exception for all system errors."""
    pass


class ConfigurationError(FuzzyForestException):
    """Configuration or tuning parameter validation failed."""
    pass


class PartitionError(FuzzyForestException):
    """Module membership does not partition the feature set."""
    pass


class DataValidationError(FuzzyForestException):
    """Input data validation failed."""
    pass


class OracleFailure(FuzzyForestException):
    """
    The importance oracle could not score a feature pool.

    Carries the stage ('screening', 'selection', 'final_fit') and, for
    screening, the module whose elimination run failed.
    """

    def __init__(self, message: str, stage: str = None, module=None):
        super().__init__(message)
        self.stage = stage
        self.module = module

    def __reduce__(self):
        # Keep stage/module when the error crosses a worker process boundary
        return (self.__class__, (self.args[0], self.stage, self.module))


class EmptyResultWarning(UserWarning):
    """Selection stage had nothing to eliminate (number_selected >= pool size)."""
    pass
