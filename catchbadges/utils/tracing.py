import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Span currently open in this context
current_span: ContextVar[Optional['TraceSpan']] = ContextVar(
    'badge_trace_span', default=None
)

logger = logging.getLogger(__name__)


@dataclass
class TraceSpan:
    '''A timed section of a badge pass.'''

    name: str
    start_time: float = field(default_factory=time.perf_counter)
    end_time: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    parent: Optional['TraceSpan'] = None
    children: list['TraceSpan'] = field(default_factory=list)

    @property
    def duration(self) -> Optional[float]:
        return self.end_time - self.start_time if self.end_time else None

    def finish(self) -> None:
        self.end_time = time.perf_counter()

        duration_ms = (self.duration or 0) * 1000
        metadata_str = ', '.join(f'{k}={v}' for k, v in self.metadata.items())

        # Nested spans are noisy (one per badge), keep them at debug
        if self.parent:
            logger.debug(
                f'{self.name}: {duration_ms:.2f}ms '
                f'(parent: {self.parent.name}) [{metadata_str}]'
            )
        else:
            logger.info(f'{self.name}: {duration_ms:.2f}ms [{metadata_str}]')


@contextmanager
def trace_span(name: str, metadata: Optional[Dict[str, Any]] = None):
    '''Time a block and log it when it closes.

    Example:
        with trace_span('badges.sync', {'user_id': 7}):
            manager.sync(7)
    '''
    parent = current_span.get()
    span = TraceSpan(name=name, metadata=dict(metadata or {}), parent=parent)
    if parent:
        parent.children.append(span)

    token = current_span.set(span)
    try:
        yield span
    finally:
        span.finish()
        current_span.reset(token)


def add_span_metadata(key: str, value: Any) -> None:
    '''Attach a value to the innermost open span, if any.'''
    span = current_span.get()
    if span:
        span.metadata[key] = value
