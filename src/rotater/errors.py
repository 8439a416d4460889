class RotaterError(Exception):
    pass


class ClimateDataError(RotaterError):
    """NASA POWER returned an error or an unusable payload."""


class GeoResolutionError(RotaterError):
    pass


class UnknownTaskError(RotaterError, ValueError):
    def __init__(self, task):
        super().__init__("Unknown task")
        self.task = task
