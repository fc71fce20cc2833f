"""Name suggestion and five-grade correction endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from gokaku.api.naming.schemas import (
    CharacterStrokeOut,
    GenerateNamesRequest,
    GenerateNamesResponse,
    NormalizeCandidatesRequest,
    NormalizeCandidatesResponse,
    StrokeLookupResponse,
)
from gokaku.config.logger import app_logger
from gokaku.config.settings import settings
from gokaku.services.candidate_normalizer import correct_candidates
from gokaku.services.name_generation import (
    NameGenerationError,
    debug_candidates,
    generate_raw_candidates,
)
from gokaku.services.name_segmenter import strip_whitespace
from gokaku.services.script_normalizer import normalize_script
from gokaku.services.stroke_resolver import StrokeResolver
from gokaku.utils.dependencies import get_stroke_resolver
from gokaku.utils.responses import SuccessResponse, success_response

router = APIRouter(prefix="/v1/naming", tags=["naming"])


@router.post("/generate", response_model=GenerateNamesResponse)
async def generate_names(
    request: GenerateNamesRequest,
    debug: bool = Query(default=False, description="Use fixed candidates instead of calling the model."),
    resolver: StrokeResolver = Depends(get_stroke_resolver),
):
    """Generate name candidates and return them with dictionary-corrected strokes and five grades.

    Luck labels, copy and story come from the model; every number is recomputed.
    """
    app_logger.info(
        f"Generate request: surname='{request.surname}' gender='{request.gender}' debug={debug}"
    )

    try:
        if debug:
            raw = debug_candidates(request.surname)
        else:
            raw = await generate_raw_candidates(request.surname, request.gender, request.concept)
    except NameGenerationError as e:
        app_logger.error(f"Name generation failed: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))

    candidates, _ = await correct_candidates(
        raw["candidates"],
        request.surname,
        resolver,
        mode=request.stroke_mode,
        trust_hints=settings.TRUST_UPSTREAM_STROKE_HINTS,
    )
    return GenerateNamesResponse(candidates=candidates, policy=raw["policy"])


@router.post("/normalize", response_model=NormalizeCandidatesResponse)
async def normalize_names(
    request: NormalizeCandidatesRequest,
    resolver: StrokeResolver = Depends(get_stroke_resolver),
):
    """Correct candidates produced by any upstream source."""
    candidates, resolved = await correct_candidates(
        request.candidates,
        request.surname,
        resolver,
        mode=request.stroke_mode,
        trust_hints=settings.TRUST_UPSTREAM_STROKE_HINTS,
    )
    return NormalizeCandidatesResponse(candidates=candidates, resolved_externally=resolved)


@router.get("/strokes", response_model=SuccessResponse[StrokeLookupResponse])
async def lookup_strokes(
    text: str = Query(..., min_length=1, max_length=64, description="Characters to resolve."),
    resolver: StrokeResolver = Depends(get_stroke_resolver),
):
    """Resolve the stroke count of each character in ``text``."""
    chars = list(strip_whitespace(normalize_script(text)))
    if not chars:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="text must contain at least one non-space character",
        )

    await resolver.ensure_resolved(chars)
    breakdown = resolver.resolve(chars)

    data = StrokeLookupResponse(
        text="".join(chars),
        breakdown=[
            CharacterStrokeOut(char=s.char, count=s.count, source=s.source)
            for s in breakdown.strokes
        ],
        total=breakdown.total,
        fully_resolved=breakdown.fully_resolved,
    )
    return success_response(data=data, message="Strokes resolved")
