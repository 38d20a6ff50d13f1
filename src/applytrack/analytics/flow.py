"""Reconstruct the application funnel from current statuses.

Only the current status and two hints (interview history, offer on file) are
stored per application, so each path through the pipeline is inferred by
walking back from the current status to ``Applied``. The result approximates
history; it is not an event log.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from applytrack.models import (
    ApplicationStatus,
    FlowEdge,
    FlowGraph,
    JobApplication,
    PipelineStage,
)

_A = PipelineStage.APPLIED
_I = PipelineStage.INTERVIEWING
_O = PipelineStage.OFFER_RECEIVED

# Emission order of edges in the resulting graph.
_EDGE_ORDER: tuple[tuple[PipelineStage, PipelineStage], ...] = (
    (_A, _I),
    (_A, PipelineStage.REJECTED),
    (_A, PipelineStage.WITHDRAWN),
    (_I, _O),
    (_I, PipelineStage.REJECTED),
    (_I, PipelineStage.WITHDRAWN),
    (_O, PipelineStage.ACCEPTED),
    (_O, PipelineStage.REJECTED),
    (_O, PipelineStage.WITHDRAWN),
    (_A, PipelineStage.PENDING),
)

_FIXED_PATHS: dict[ApplicationStatus, tuple[PipelineStage, ...]] = {
    ApplicationStatus.INTERVIEWING: (_A, _I),
    ApplicationStatus.OFFER_RECEIVED: (_A, _I, _O),
    ApplicationStatus.ACCEPTED: (_A, _I, _O, PipelineStage.ACCEPTED),
}

_TERMINAL: dict[ApplicationStatus, PipelineStage] = {
    ApplicationStatus.REJECTED: PipelineStage.REJECTED,
    ApplicationStatus.WITHDRAWN: PipelineStage.WITHDRAWN,
}


def infer_path(application: JobApplication) -> tuple[PipelineStage, ...]:
    """Return the stages *application* is assumed to have passed through.

    ``Applied`` yields ``(Applied,)``; ``Not Applied`` yields an empty path.
    Raises :class:`InvalidStatusError` for unknown statuses.
    """
    status = ApplicationStatus.parse(application.status)

    if status is ApplicationStatus.NOT_APPLIED:
        return ()
    if status is ApplicationStatus.APPLIED:
        return (_A,)
    if status in _FIXED_PATHS:
        return _FIXED_PATHS[status]

    terminal = _TERMINAL[status]
    if application.has_offer:
        return (_A, _I, _O, terminal)
    if application.has_interview_history:
        return (_A, _I, terminal)
    return (_A, terminal)


def reconstruct_flow(applications: Iterable[JobApplication]) -> FlowGraph:
    """Build the funnel graph for *applications*.

    Zero-count edges are omitted. Empty input, or input where nothing has
    moved past ``Applied``, yields a graph without transition edges.
    """
    counts: Counter[tuple[PipelineStage, PipelineStage]] = Counter()
    pending = 0

    for application in applications:
        path = infer_path(application)
        if path == (_A,):
            pending += 1
            continue
        for step in zip(path, path[1:]):
            counts[step] += 1

    if pending:
        counts[(_A, PipelineStage.PENDING)] = pending

    edges = tuple(
        FlowEdge(source=src, target=dst, count=counts[(src, dst)])
        for src, dst in _EDGE_ORDER
        if counts[(src, dst)] > 0
    )
    nodes = frozenset(stage for edge in edges for stage in (edge.source, edge.target))
    return FlowGraph(nodes=nodes, edges=edges)
