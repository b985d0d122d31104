"""Citation extraction from Gemini GroundingMetadata.

Handles the pipeline: GenerateContentResponse -> answer text,
grounding chunks/supports -> Citation objects. Safe against ``None`` at
every level, since the provider omits empty fields.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from filesearch.models import Citation, GroundingChunk, GroundingSupport

UNKNOWN_TITLE = "Unknown"

_COMPARISON_PREFIXES = (">=", "<=", "!=", ">", "<")


def first_candidate(response: Any) -> Any | None:
    candidates = getattr(response, "candidates", None) or []
    return candidates[0] if candidates else None


def extract_text(response: Any) -> str:
    """Text of the first candidate's first content part, or ``""``."""
    candidate = first_candidate(response)
    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return ""
    return getattr(parts[0], "text", None) or ""


def extract_grounding_chunks(grounding_metadata: Any | None) -> list[GroundingChunk]:
    """Keep every chunk, web or retrieved context, in provider order."""
    if grounding_metadata is None:
        return []

    result: list[GroundingChunk] = []
    for chunk in getattr(grounding_metadata, "grounding_chunks", None) or []:
        ctx = getattr(chunk, "retrieved_context", None)
        web = getattr(chunk, "web", None)
        if ctx is not None:
            result.append(
                GroundingChunk(
                    kind="retrieved_context",
                    uri=getattr(ctx, "uri", None),
                    title=getattr(ctx, "title", None),
                    text=getattr(ctx, "text", None),
                )
            )
        elif web is not None:
            result.append(
                GroundingChunk(
                    kind="web",
                    uri=getattr(web, "uri", None),
                    title=getattr(web, "title", None),
                )
            )
        else:
            result.append(GroundingChunk(kind="unknown"))
    return result


def extract_grounding_supports(grounding_metadata: Any | None) -> list[GroundingSupport]:
    if grounding_metadata is None:
        return []

    result: list[GroundingSupport] = []
    for support in getattr(grounding_metadata, "grounding_supports", None) or []:
        segment = getattr(support, "segment", None)
        result.append(
            GroundingSupport(
                segment_text=getattr(segment, "text", None),
                start_index=getattr(segment, "start_index", None),
                end_index=getattr(segment, "end_index", None),
                grounding_chunk_indices=tuple(
                    getattr(support, "grounding_chunk_indices", None) or ()
                ),
                confidence_scores=tuple(getattr(support, "confidence_scores", None) or ()),
            )
        )
    return result


def citations_from_grounding(
    chunks: list[GroundingChunk], supports: list[GroundingSupport]
) -> list[Citation]:
    """Build the citation list view over retrieved-context chunks.

    Web chunks are skipped here; they remain available in *chunks*.
    Confidence is the mean of all support scores pointing at a chunk.
    """
    chunk_scores: dict[int, list[float]] = defaultdict(list)
    for support in supports:
        for idx, score in zip(support.grounding_chunk_indices, support.confidence_scores):
            chunk_scores[idx].append(score)

    citations: list[Citation] = []
    for i, chunk in enumerate(chunks):
        if not chunk.is_retrieved_context:
            continue
        scores = chunk_scores.get(i, [])
        citations.append(
            Citation(
                index=i + 1,
                title=chunk.title or UNKNOWN_TITLE,
                uri=chunk.uri or "",
                text=chunk.text or "",
                confidence=sum(scores) / len(scores) if scores else 0.0,
            )
        )
    return citations


def extract_citations(grounding_metadata: Any | None) -> list[Citation]:
    """Extract structured citations from Gemini grounding metadata.

    Args:
        grounding_metadata: ``response.candidates[0].grounding_metadata``
            or None.

    Returns:
        Citation list; empty if there is no metadata or no retrieved
        context chunk.
    """
    return citations_from_grounding(
        extract_grounding_chunks(grounding_metadata),
        extract_grounding_supports(grounding_metadata),
    )


def build_metadata_filter(filters: list[str]) -> str | None:
    """Convert ``key:value`` pairs to an AIP-160 filter string.

    Supports:
      - ``key:value`` -> ``key="value"`` (string) or ``key=value`` (numeric)
      - ``key:>value``, ``key:>=value``, ``key:<value``, ``key:<=value``,
        ``key:!=value`` -> comparison as written

    Multiple filters are joined with `` AND ``. Entries missing a key or
    value are skipped.

    Args:
        filters: List of ``"key:value"`` strings.

    Returns:
        AIP-160 filter string, or None if nothing usable was given.
    """
    if not filters:
        return None

    parts: list[str] = []
    for f in filters:
        key, _, value = f.partition(":")
        key = key.strip()
        if not key or not value:
            continue

        if value.startswith(_COMPARISON_PREFIXES):
            parts.append(f"{key}{value}")
            continue

        try:
            float(value)
            parts.append(f"{key}={value}")
        except ValueError:
            escaped = value.replace('"', '\\"')
            parts.append(f'{key}="{escaped}"')

    return " AND ".join(parts) if parts else None
