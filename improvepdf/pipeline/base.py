from abc import ABC, abstractmethod

from improvepdf.pipeline.context import StepContext, StepResult


class StepHandler(ABC):
    """The external work of one pipeline step.

    Handlers write their own artifacts and return the references to record;
    step status transitions belong to the orchestrator.
    """

    @abstractmethod
    async def run(self, context: StepContext) -> StepResult:
        raise NotImplementedError
