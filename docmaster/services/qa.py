from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class QASource:
    document_id: int
    title: str
    relevance: float


@dataclass(frozen=True)
class QAAnswer:
    answer: str
    sources: tuple[QASource, ...]


# Canned citations returned for every query; no retrieval happens.
_SIMULATED_SOURCES: tuple[QASource, ...] = (
    QASource(document_id=1, title="Annual Report 2023.pdf", relevance=0.92),
    QASource(document_id=3, title="Q1 Financial Summary.xlsx", relevance=0.78),
)


def answer_query(query: str) -> QAAnswer:
    return QAAnswer(
        answer=f"This is a simulated response to your query: {query}",
        sources=_SIMULATED_SOURCES,
    )
