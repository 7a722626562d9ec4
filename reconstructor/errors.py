# reconstructor/errors.py


class ReconstructionError(Exception):
    pass


class InputMissingError(ReconstructionError):
    """The required main transcript was not supplied. The run never starts."""


class ReadError(ReconstructionError):
    """A selected file could not be read. Aborts the run."""


class FilterError(ReconstructionError):
    """The rule index could not be parsed for pre-filtering. Non-fatal."""


class RemoteCallError(ReconstructionError):
    """The generation endpoint failed, either after exhausting retries or with a non-retryable error."""


class ResponseParseError(ReconstructionError):
    """The generated text is not valid JSON. The run completes in a degraded state."""


class RunInProgressError(ReconstructionError):
    pass
