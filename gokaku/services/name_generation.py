"""Name candidate generation with OpenAI.

The model proposes names, copy, stories and luck labels. Its stroke counts and
five-grade values are returned as-is here and corrected afterwards by
``candidate_normalizer``.
"""

from __future__ import annotations

import json
import re
import time
from typing import Any, Dict, List

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from gokaku.api.naming.schemas import DEFAULT_POLICY
from gokaku.config.logger import app_logger, log_performance
from gokaku.config.settings import settings

_openai_client: AsyncOpenAI | None = None

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class NameGenerationError(RuntimeError):
    """Raised when candidates could not be generated. Carries the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 500, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


def get_openai_client() -> AsyncOpenAI:
    """Return a singleton async OpenAI client."""
    global _openai_client
    if _openai_client is None:
        if not settings.OPENAI_API_KEY:
            raise NameGenerationError("Missing OPENAI_API_KEY", status_code=500)
        _openai_client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        app_logger.info("OpenAI client initialized")
    return _openai_client


def build_system_prompt(candidate_count: int = 3) -> str:
    return f"""
You are a Japanese naming & seimei-handan expert.
Respond only in json. The output must be a single valid JSON object.
Do not add any explanations, prose, markdown, or code fences outside the json.

必須ルール:
- 流派/計算方式は「五格法（新字体・霊数なし）」を用いる（天格/人格/地格/外格/総格）。
- 候補は{candidate_count}つ。苗字（入力値）を必ず name の先頭に付ける。
- 名前と読みにカタカナは使わない（ひらがな・漢字のみ）。
- strokes.breakdown は姓→名の順ですべての漢字を必ず列挙（["漢字", 画数]）。
- strokes.surname.total / strokes.given.total / strokes.total は必ず整数。
- fortune の天格/人格/地格/外格/総格も必ず整数（推定可・空欄禁止）。
- luck は日本語（大吉/中吉/吉/小吉/凶/大凶 など）。
- story は日本語で 3〜5 文、合計 200〜350 文字目安。改行を想定して自然な段落になじむ文体にする。
- JSON 以外の出力は禁止。

返却形式の例:
{{
  "candidates":[
    {{
      "name":"山田 太志",
      "reading":"たいし",
      "copy":"大きな志を抱いて",
      "story":"200〜350字程度の日本語文（3〜5文）",
      "strokes":{{
        "surname":{{"total":8,"breakdown":[["山",3],["田",5]]}},
        "given":{{"total":11,"breakdown":[["太",4],["志",7]]}},
        "total":19
      }},
      "fortune":{{
        "tenkaku":8,"jinkaku":9,"chikaku":11,"gaikaku":10,"soukaku":19,
        "luck":{{"overall":"吉","work":"大吉","love":"中吉","health":"吉"}},
        "note":"補足（任意）"
      }}
    }}
  ],
  "policy":{{"ryuha":"{DEFAULT_POLICY['ryuha']}","notes":"{DEFAULT_POLICY['notes']}"}}
}}
""".strip()


def build_user_prompt(surname: str, gender: str, concept: str) -> str:
    return f"苗字: {surname}\n性別: {gender or 'unknown'}\n希望イメージ: {concept}".strip()


def parse_model_json(content: str) -> Dict[str, Any]:
    """Parse the model's reply, recovering the outermost {...} block when extra text surrounds it."""
    try:
        raw = json.loads(content or "{}")
    except json.JSONDecodeError:
        match = _JSON_OBJECT_RE.search(content or "")
        if not match:
            app_logger.warning("Model reply contained no JSON object")
            return {}
        try:
            raw = json.loads(match.group(0))
        except json.JSONDecodeError:
            app_logger.warning("Model reply JSON could not be recovered")
            return {}
    return raw if isinstance(raw, dict) else {}


def extract_candidates(raw: Dict[str, Any], limit: int) -> List[Any]:
    candidates = raw.get("candidates")
    if not isinstance(candidates, list):
        return []
    return candidates[:limit]


def extract_policy(raw: Dict[str, Any]) -> Dict[str, Any]:
    policy = raw.get("policy")
    return dict(policy) if isinstance(policy, dict) and policy else dict(DEFAULT_POLICY)


async def generate_raw_candidates(surname: str, gender: str, concept: str) -> Dict[str, Any]:
    """Ask the model for candidates. Returns ``{"candidates": [...], "policy": {...}}`` uncorrected."""
    client = get_openai_client()
    start = time.perf_counter()

    try:
        completion = await client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            response_format={"type": "json_object"},
            temperature=settings.OPENAI_TEMPERATURE,
            messages=[
                {"role": "system", "content": build_system_prompt(settings.CANDIDATE_COUNT)},
                {"role": "user", "content": build_user_prompt(surname, gender, concept)},
            ],
        )
    except APIStatusError as exc:
        app_logger.error(f"[openai-error] {exc.status_code} {exc.message}")
        raise NameGenerationError(exc.message or "OpenAI error", status_code=exc.status_code, detail=exc.body) from exc
    except APIConnectionError as exc:
        app_logger.error(f"[openai-error] connection failed: {exc}")
        raise NameGenerationError("OpenAI connection failed", status_code=502) from exc

    log_performance("name_generation", time.perf_counter() - start, model=settings.OPENAI_MODEL)

    content = completion.choices[0].message.content or ""
    raw = parse_model_json(content)
    candidates = extract_candidates(raw, settings.CANDIDATE_COUNT)
    app_logger.info(f"Model returned {len(candidates)} candidates for surname '{surname}'")
    return {"candidates": candidates, "policy": extract_policy(raw)}


def debug_candidates(surname: str) -> Dict[str, Any]:
    """Fixed candidates for exercising the correction pipeline without calling the model.

    Their numbers are deliberately wrong; the response shows the corrected values.
    """
    return {
        "candidates": [
            {
                "name": f"{surname} 未来志", "reading": "みらいし",
                "copy": "未来へ進む意志を込めて。",
                "story": "新しい道を切り開き、周囲に希望を灯す人を描きます。穏やかな語り口で人の心をほぐし、迷いの先に光を示す存在です。日々の小さな積み重ねを大切にし、周囲と歩調をそろえながら前へと進みます。",
                "strokes": {
                    "surname": {"total": 8, "breakdown": [["山", 3], ["田", 5]]},
                    "given": {"total": 8, "breakdown": [["未", 5], ["志", 3]]},
                    "total": 16,
                },
                "fortune": {
                    "tenkaku": 8, "jinkaku": 8, "chikaku": 8, "gaikaku": 8, "soukaku": 16,
                    "luck": {"overall": "吉", "work": "吉", "love": "中吉", "health": "吉"},
                    "note": "debug fallback",
                },
            },
            {
                "name": f"{surname} 未来翔", "reading": "ミライショウ",
                "copy": "未来へ翔ける力強さ。",
                "story": "挑戦を恐れず、高く遠くまで視野を伸ばすタイプ。仲間の背中を押しながら、困難を学びに変え、次のチャンスに結びつけます。軽やかな風のように、周囲に前向きな流れを生み出します。",
                "strokes": {
                    "surname": {"total": 8, "breakdown": [["山", 3], ["田", 5]]},
                    "given": {"total": 12, "breakdown": [["未", 5], ["翔", 7]]},
                    "total": 20,
                },
                "fortune": {
                    "tenkaku": 8, "jinkaku": 10, "chikaku": 12, "gaikaku": 10, "soukaku": 20,
                    "luck": {"overall": "吉", "work": "大吉", "love": "中吉", "health": "吉"},
                    "note": "debug fallback",
                },
            },
            {
                "name": f"{surname} 未来光", "reading": "みらいこう",
                "copy": "未来を照らす光。",
                "story": "周囲にやさしい明るさをもたらし、人の長所を見つけるのが得意。静かな芯の強さを持ち、困難な時にも落ち着いて選択します。気づけば皆の目印となり、安心感を広げていきます。",
                "strokes": {
                    "surname": {"total": 8, "breakdown": [["山", 3], ["田", 5]]},
                    "given": {"total": 8, "breakdown": [["未", 5], ["光", 3]]},
                    "total": 16,
                },
                "fortune": {
                    "tenkaku": 8, "jinkaku": 8, "chikaku": 8, "gaikaku": 8, "soukaku": 16,
                    "luck": {"overall": "中吉", "work": "吉", "love": "吉", "health": "吉"},
                    "note": "debug fallback",
                },
            },
        ],
        "policy": dict(DEFAULT_POLICY),
    }
