class EngineError(Exception):
    """Base class for every failure raised inside the engine."""


class MissingScheduleData(EngineError):
    """A matchday has no matches yet. Treated as "not eligible"."""

    def __init__(self, virtual_order):
        self.virtual_order = virtual_order
        super().__init__(f"No matches scheduled for matchday {virtual_order}")


class InconsistentCompletionState(EngineError):
    """Tournament is marked completed while matches in its range are undecided."""

    def __init__(self, tournament_id, undecided_count):
        self.tournament_id = tournament_id
        self.undecided_count = undecided_count
        super().__init__(
            f"Tournament {tournament_id} is completed but {undecided_count} "
            f"match(es) in its range are still undecided"
        )


class InsufficientEstimationData(EngineError):
    """Fewer than two dated matchdays are available to extrapolate from."""


class ComputationTimeout(EngineError):
    """A single tournament exceeded its wall-clock budget."""

    def __init__(self, tournament_id, budget):
        self.tournament_id = tournament_id
        self.budget = budget
        super().__init__(f"Tournament {tournament_id} exceeded its {budget}s budget")
