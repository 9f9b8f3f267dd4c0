"""Batch rendering of one template against many contexts."""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .engine import TemplateEngine


@dataclass
class BatchRenderResult:
    """Result of a batch rendering operation."""

    outputs: List[str]
    success_count: int
    error_count: int
    errors: List[Tuple[int, str]] = field(default_factory=list)
    warnings: List[Tuple[int, str]] = field(default_factory=list)
    render_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Calculate success rate percentage."""
        total = self.success_count + self.error_count
        return (self.success_count / total * 100) if total > 0 else 0.0


class BatchRenderer:
    """Render a template for many contexts, sequentially or in threads.

    Rendering is pure, so worker threads share one engine. Register any
    custom filters before starting a batch.
    """

    def __init__(
        self,
        engine: Optional[TemplateEngine] = None,
        max_workers: int = 4,
        parallel_threshold: int = 100,
    ) -> None:
        """Initialize the batch renderer.

        Args:
            engine: Template engine to use (creates new if None)
            max_workers: Maximum worker threads for parallel processing
            parallel_threshold: Minimum batch size rendered in parallel
        """
        self.engine = engine if engine is not None else TemplateEngine()
        self.max_workers = max_workers
        self.parallel_threshold = parallel_threshold

    def render(
        self,
        template: str,
        contexts: Sequence[Mapping[str, Any]],
        progress_callback: Optional[Callable[[int], None]] = None,
        parallel: bool = True,
    ) -> BatchRenderResult:
        """Render template with multiple contexts.

        Args:
            template: The template to render
            contexts: Sequence of context mappings
            progress_callback: Called with the number of contexts finished
            parallel: Use worker threads for large batches

        Returns:
            BatchRenderResult with one output per context, in order
        """
        start_time = time.time()
        n_contexts = len(contexts)
        use_threads = parallel and n_contexts >= self.parallel_threshold

        if use_threads:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                rendered = list(
                    executor.map(lambda ctx: self._render_one(template, ctx), contexts)
                )
        else:
            rendered = [self._render_one(template, ctx) for ctx in contexts]

        if progress_callback and n_contexts:
            progress_callback(n_contexts)

        outputs: List[str] = []
        errors: List[Tuple[int, str]] = []
        warnings: List[Tuple[int, str]] = []

        for i, (output, error, context_warnings) in enumerate(rendered):
            outputs.append(output)
            if error is not None:
                errors.append((i, error))
            warnings.extend((i, warning) for warning in context_warnings)

        render_time = time.time() - start_time

        return BatchRenderResult(
            outputs=outputs,
            success_count=n_contexts - len(errors),
            error_count=len(errors),
            errors=errors,
            warnings=warnings,
            render_time=render_time,
            metadata={
                "total_contexts": n_contexts,
                "parallel": use_threads,
                "avg_time_per_render": (
                    render_time / n_contexts if n_contexts > 0 else 0
                ),
            },
        )

    def _render_one(
        self, template: str, context: Mapping[str, Any]
    ) -> Tuple[str, Optional[str], List[str]]:
        try:
            result = self.engine.render_with_diagnostics(template, context)
        except TypeError as e:
            return "", str(e), []
        return result.output, None, result.warnings
