# observatory/exceptions.py

class ObservatoryError(Exception):
    pass


class TelemetryParseError(ObservatoryError):
    pass


class MappingError(ObservatoryError):
    pass


class PipelineClosedError(ObservatoryError):
    pass
