class FSRSError(Exception):
    """Base exception for simulation and optimal-retention errors."""

    pass


class InvalidParameters(FSRSError, ValueError):
    """Raised when a parameter vector is neither empty nor 17 values long."""

    def __init__(self, n_params: int):
        super().__init__(f"Expected 0 or 17 parameters, got {n_params}")
        self.n_params = n_params


class Interrupted(FSRSError):
    """Raised when the progress callback asks to stop."""

    pass


class OptimalNotFound(FSRSError):
    """Raised when the retention search does not converge inside its bounds."""

    pass
