from improvepdf.config.settings import Settings
from improvepdf.images.searcher import ImageSearcher
from improvepdf.jobs.manifest_store import JobManifestStore
from improvepdf.pdf.factory import PdfExtractorFactory
from improvepdf.pipeline.orchestrator import StepOrchestrator
from improvepdf.pipeline.registry import build_step_registry
from improvepdf.pipeline.steps import ExtractStep, ImagesStep, NormalizeStep, RenderStep, RewriteStep
from improvepdf.pipeline.triggers import BaseStepTrigger, HttpStepTrigger, InlineStepTrigger
from improvepdf.render.pdf_renderer import PdfRenderer
from improvepdf.rewrite.factory import RewriterFactory


class StepTriggerFactory:
    """Creates the trigger selected by TRIGGER_MODE."""

    MODES = ("http", "inline")

    @classmethod
    def create(cls, settings: Settings) -> BaseStepTrigger:
        mode = settings.trigger_mode.lower()
        if mode == "http":
            return HttpStepTrigger(
                base_url=settings.public_base_url,
                timeout_seconds=settings.trigger_timeout_seconds,
            )
        if mode == "inline":
            return InlineStepTrigger()
        raise ValueError(f"Unknown trigger mode '{mode}'. Choose from: {list(cls.MODES)}")


def build_orchestrator(
    settings: Settings,
    manifests: JobManifestStore,
    trigger: BaseStepTrigger,
    searcher: ImageSearcher,
) -> StepOrchestrator:
    """Build the step orchestrator with every step handler wired from settings."""
    registry = build_step_registry(
        {
            "extract": ExtractStep(PdfExtractorFactory.create(settings)),
            "normalize": NormalizeStep(),
            "rewrite": RewriteStep(lambda: RewriterFactory.create(settings)),
            "images": ImagesStep(searcher),
            "render": RenderStep(
                PdfRenderer(), image_timeout_seconds=settings.images_timeout_seconds
            ),
        }
    )
    orchestrator = StepOrchestrator(manifests, registry, trigger)
    if isinstance(trigger, InlineStepTrigger):
        trigger.bind(orchestrator.run_step)
    return orchestrator
