class GBAnisotropyError(Exception):
    """Base class for all errors raised by the GB anisotropy engine."""


class ConfigurationError(GBAnisotropyError):
    """Invalid parameters or an unsupported parameter combination."""


class GBDataError(ConfigurationError):
    """The anisotropic GB data file is missing, unreadable or malformed."""


class CalibrationError(GBAnisotropyError):
    """
    The fixed-point calibration of a grain pair failed.

    pair:          (m, n) with m < n
    last_estimate: last value of the shape parameter a*
    iterations:    number of iterations performed
    """

    def __init__(self, message, pair=None, last_estimate=None, iterations=0):
        super().__init__(message)
        self.pair = pair
        self.last_estimate = last_estimate
        self.iterations = iterations
