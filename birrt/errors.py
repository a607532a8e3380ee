"""Exceptions raised by the planner and its collaborators."""


class BiRRTError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(BiRRTError, ValueError):
    """Planner settings, start or goal are missing or invalid."""


class DegenerateStepError(BiRRTError, ArithmeticError):
    """Steering was asked to move from a state toward the same state."""


class PlannerStateError(BiRRTError, RuntimeError):
    """A planner was used outside the allowed lifecycle (e.g. run twice)."""


class PlanningFailure(BiRRTError):
    """No connection between the trees was found within the budget.

    Raised only on request (``PlanResult.require_path``, exporters); ``run()``
    reports failure as a result value.
    """

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result
