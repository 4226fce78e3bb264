"""
Domain errors for the growth module.

All errors subclass ValueError so callers that only know about invalid
input keep working.
"""


class GrowthError(ValueError):
    """Base class for growth-module failures."""


class IndicatorNotFoundError(GrowthError):
    """Raised when an indicator name is not tracked by the stage."""

    def __init__(self, name: str):
        super().__init__(f"Indicator not found: {name}")
        self.name = name


class NotReadyToAdvanceError(GrowthError):
    """Raised when a stage is advanced below the readiness threshold."""

    def __init__(self, progress: float, threshold: float):
        super().__init__(
            f"Not ready to advance: progress {progress:.1f}% is below {threshold:.1f}%"
        )
        self.progress = progress
        self.threshold = threshold


class FinalStageError(GrowthError):
    """Raised when advancing past the last stage."""

    def __init__(self):
        super().__init__("Already at the final stage")


class StageNotInitializedError(GrowthError):
    """Raised when no growth stage has been stored yet."""

    def __init__(self):
        super().__init__("No growth stage has been initialized")


class OpportunityNotFoundError(GrowthError):
    """Raised when an expansion opportunity id is unknown."""

    def __init__(self, opportunity_id: str):
        super().__init__(f"Expansion opportunity {opportunity_id} not found")
        self.opportunity_id = opportunity_id
