class JobError(Exception):
    """Base for conditions that abort an import job."""


class ConfigurationError(JobError):
    pass


class MissingDependencyError(JobError):
    def __init__(self, key: str):
        super().__init__(f"'{key}' was never promoted by an earlier step")
        self.key = key


class PromotionError(JobError):
    pass


class RemoteTimeoutError(JobError):
    def __init__(self, operation: str, timeout: float):
        super().__init__(f"{operation} did not complete within {timeout:g}s")
        self.operation = operation
        self.timeout = timeout


class AmbiguousMatchError(JobError):
    def __init__(self, resource: str, natural_key: str, matches: int):
        super().__init__(f"{matches} {resource} share the natural key '{natural_key}'")
        self.resource = resource
        self.natural_key = natural_key
        self.matches = matches
