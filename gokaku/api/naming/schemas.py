"""Request and response schemas for name generation and five-grade correction."""

from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

StrokeMode = Literal["missing", "all"]
SegmentationKind = Literal["segmented", "surname_mismatch"]

# Bounds the characters one request can send to the auxiliary lookup
MAX_CANDIDATES_PER_REQUEST = 20

DEFAULT_POLICY: Dict[str, str] = {
    "ryuha": "五格法（新字体・霊数なし）",
    "notes": "現代的で読みやすい表記を優先",
}


class GenerateNamesRequest(BaseModel):
    """Request schema for POST /v1/naming/generate."""

    surname: str = Field(..., min_length=1, description="Family name every candidate must start with.")
    gender: str = Field(default="unknown", description="Gender hint for the generator (unknown = neutral).")
    concept: str = Field(..., min_length=1, description="Desired image or concept for the given name.")
    stroke_mode: StrokeMode = Field(
        default="missing",
        description="'missing' looks up only unknown characters; 'all' re-resolves every non-dictionary character.",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "surname": "山田",
                "gender": "male",
                "concept": "大きな志を抱いて進む人",
                "stroke_mode": "missing",
            }
        }
    }


class NormalizeCandidatesRequest(BaseModel):
    """Request schema for POST /v1/naming/normalize."""

    surname: str = Field(..., min_length=1, description="Input surname the candidates were generated for.")
    candidates: List[Any] = Field(
        default_factory=list,
        max_length=MAX_CANDIDATES_PER_REQUEST,
        description="Raw candidate records from any source.",
    )
    stroke_mode: StrokeMode = Field(default="missing")


class StrokePortion(BaseModel):
    """Stroke total and per-character breakdown for the surname or given name."""

    total: int = Field(..., ge=0)
    breakdown: List[Tuple[str, Optional[int]]] = Field(
        default_factory=list,
        description="[[character, strokes|null], ...] in reading order.",
    )

    model_config = {"frozen": True}


class CandidateStrokes(BaseModel):
    surname: StrokePortion
    given: StrokePortion
    total: int = Field(..., ge=0)

    model_config = {"frozen": True}


class Fortune(BaseModel):
    """Recomputed five grades; qualitative fields (luck, note, ...) pass through as extras."""

    tenkaku: int = Field(..., ge=0, description="天格: surname total.")
    jinkaku: int = Field(..., ge=0, description="人格: last surname character + first given character.")
    chikaku: int = Field(..., ge=0, description="地格: given-name total.")
    gaikaku: int = Field(..., ge=0, description="外格: total minus jinkaku, floored at zero.")
    soukaku: int = Field(..., ge=0, description="総格: tenkaku + chikaku.")

    model_config = {"extra": "allow", "frozen": True}


class Candidate(BaseModel):
    """A normalized candidate. Unknown upstream fields (copy, story, ...) are preserved."""

    name: str
    reading: str = ""
    strokes: CandidateStrokes
    fortune: Fortune
    fully_resolved: bool = Field(
        ..., description="False when any character's stroke count is unknown and was counted as zero."
    )
    segmentation: SegmentationKind = Field(
        ..., description="surname_mismatch when the name did not start with the input surname."
    )

    model_config = {
        "extra": "allow",
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "name": "山田 太志",
                "reading": "たいし",
                "copy": "大きな志を抱いて",
                "story": "…",
                "strokes": {
                    "surname": {"total": 8, "breakdown": [["山", 3], ["田", 5]]},
                    "given": {"total": 11, "breakdown": [["太", 4], ["志", 7]]},
                    "total": 19,
                },
                "fortune": {
                    "tenkaku": 8,
                    "jinkaku": 9,
                    "chikaku": 11,
                    "gaikaku": 10,
                    "soukaku": 19,
                    "luck": {"overall": "吉", "work": "大吉", "love": "中吉", "health": "吉"},
                },
                "fully_resolved": True,
                "segmentation": "segmented",
            }
        },
    }


class GenerateNamesResponse(BaseModel):
    """Response schema for POST /v1/naming/generate."""

    candidates: List[Candidate]
    policy: Dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_POLICY))


class NormalizeCandidatesResponse(BaseModel):
    """Response schema for POST /v1/naming/normalize."""

    candidates: List[Candidate]
    resolved_externally: Dict[str, int] = Field(
        default_factory=dict,
        description="Characters resolved by the auxiliary lookup during this request.",
    )


class CharacterStrokeOut(BaseModel):
    char: str
    count: Optional[int] = None
    source: str


class StrokeLookupResponse(BaseModel):
    """Response schema for GET /v1/naming/strokes."""

    text: str
    breakdown: List[CharacterStrokeOut]
    total: int
    fully_resolved: bool
