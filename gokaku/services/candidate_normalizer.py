"""
Candidate correction: recompute strokes and five grades for generated names.

The generator's numbers are never trusted. For each candidate the name and
reading are script-normalized, the name is segmented against the input
surname, every character is resolved (dictionary first) and the five grades are
recomputed. Qualitative fields (copy, story, luck, note, ...) are kept as-is.
"""

from __future__ import annotations

import copy
from collections import abc
from typing import Any, Dict, Iterable, List, Optional

from gokaku.api.naming.schemas import Candidate
from gokaku.config.logger import app_logger
from gokaku.services.five_grades import GRADE_FIELDS, compute_five_grades
from gokaku.services.name_segmenter import segment_name
from gokaku.services.script_normalizer import normalize_script
from gokaku.services.stroke_resolver import RESOLVE_MISSING, StrokeResolver


def _breakdown_entries(candidate: abc.Mapping) -> List[Any]:
    strokes = candidate.get("strokes")
    if not isinstance(strokes, abc.Mapping):
        return []
    entries: List[Any] = []
    for part in ("surname", "given"):
        portion = strokes.get(part)
        if isinstance(portion, abc.Mapping) and isinstance(portion.get("breakdown"), list):
            entries.extend(portion["breakdown"])
    # Flat layout: strokes.breakdown = [["河", 8], ...]
    if isinstance(strokes.get("breakdown"), list):
        entries.extend(strokes["breakdown"])
    return entries


def upstream_stroke_hints(candidate: abc.Mapping) -> Dict[str, int]:
    """Collect the generator's own per-character stroke guesses.

    Accepts ``["字", n]`` pairs and ``{"char": "字", "count": n}`` objects.
    Characters are script-normalized so they match the normalized name.
    """
    hints: Dict[str, int] = {}
    for entry in _breakdown_entries(candidate):
        if isinstance(entry, (list, tuple)) and len(entry) >= 2:
            char, count = entry[0], entry[1]
        elif isinstance(entry, abc.Mapping):
            char, count = entry.get("char"), entry.get("count")
        else:
            continue
        if not isinstance(char, str) or len(char) != 1:
            continue
        if isinstance(count, int) and not isinstance(count, bool) and count > 0:
            hints[normalize_script(char)] = count
    return hints


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def candidate_characters(candidates: Iterable[Any], input_surname: str) -> List[str]:
    """Return every character of every candidate (after normalization), deduplicated in first-seen order."""
    surname = normalize_script(input_surname)
    seen: Dict[str, None] = {}
    for candidate in candidates:
        if not isinstance(candidate, abc.Mapping):
            continue
        segmentation = segment_name(surname, normalize_script(_text(candidate.get("name"))))
        for char in segmentation.surname_chars + segmentation.given_chars:
            seen.setdefault(char, None)
    return list(seen)


def _merge_fortune(upstream: Any, fortune_fields: Dict[str, int]) -> Dict[str, Any]:
    fortune: Dict[str, Any] = dict(upstream) if isinstance(upstream, abc.Mapping) else {}
    labels: Dict[str, Any] = {}
    for key in GRADE_FIELDS:
        previous = fortune.get(key)
        # {"value": n, "grade": "吉"}: keep the qualitative grade label
        if isinstance(previous, abc.Mapping) and previous.get("grade") is not None:
            labels[key] = previous["grade"]
    if labels:
        existing = fortune.get("grade_labels")
        fortune["grade_labels"] = {**(existing if isinstance(existing, abc.Mapping) else {}), **labels}
    fortune.update(fortune_fields)
    return fortune


def normalize_candidate(
    candidate: abc.Mapping,
    input_surname: str,
    resolver: StrokeResolver,
    trust_hints: bool = False,
) -> Candidate:
    """Correct one candidate against a resolver whose cache is already warmed.

    The input is deep-copied first, so later changes to it never reach the returned Candidate.
    """
    candidate = copy.deepcopy(dict(candidate))
    name = normalize_script(_text(candidate.get("name")))
    reading = normalize_script(_text(candidate.get("reading")))
    surname = normalize_script(input_surname)

    segmentation = segment_name(surname, name)
    if segmentation.kind == "surname_mismatch":
        app_logger.warning(
            f"Candidate '{name}' does not start with surname '{surname}'; treating it as a given name"
        )

    hints = upstream_stroke_hints(candidate) if trust_hints else None
    surname_breakdown = resolver.resolve(segmentation.surname_chars, hints=hints)
    given_breakdown = resolver.resolve(segmentation.given_chars, hints=hints)
    grades = compute_five_grades(surname_breakdown, given_breakdown)

    record: Dict[str, Any] = {
        **candidate,
        "name": name,
        "reading": reading,
        "strokes": {
            "surname": {"total": surname_breakdown.total, "breakdown": surname_breakdown.as_pairs()},
            "given": {"total": given_breakdown.total, "breakdown": given_breakdown.as_pairs()},
            "total": grades.total,
        },
        "fortune": _merge_fortune(candidate.get("fortune"), grades.as_fortune_fields()),
        "fully_resolved": surname_breakdown.fully_resolved and given_breakdown.fully_resolved,
        "segmentation": segmentation.kind,
    }
    return Candidate.model_validate(record)


def normalize_candidates(
    candidates: Iterable[Any],
    input_surname: str,
    resolver: StrokeResolver,
    trust_hints: bool = False,
) -> List[Candidate]:
    """Correct a batch in input order. Entries that are not objects are skipped."""
    normalized: List[Candidate] = []
    for index, candidate in enumerate(candidates):
        if not isinstance(candidate, abc.Mapping):
            app_logger.warning(f"Skipping candidate #{index}: expected an object, got {type(candidate).__name__}")
            continue
        normalized.append(normalize_candidate(candidate, input_surname, resolver, trust_hints=trust_hints))
    return normalized


async def correct_candidates(
    candidates: Optional[Iterable[Any]],
    input_surname: str,
    resolver: StrokeResolver,
    mode: str = RESOLVE_MISSING,
    trust_hints: bool = False,
) -> tuple[List[Candidate], Dict[str, int]]:
    """Warm the resolver once for the whole batch, then correct every candidate.

    Returns the corrected candidates and the counts resolved externally for this batch.
    """
    batch = list(candidates or [])
    resolved = await resolver.ensure_resolved(candidate_characters(batch, input_surname), mode=mode)
    corrected = normalize_candidates(batch, input_surname, resolver, trust_hints=trust_hints)
    app_logger.info(
        f"Corrected {len(corrected)} candidates for surname '{input_surname}' "
        f"({len(resolved)} characters resolved externally)"
    )
    return corrected, resolved
