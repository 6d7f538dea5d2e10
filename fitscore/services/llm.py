import json
from typing import Dict, Any, List

try:
    from openai import AsyncOpenAI
except ImportError:
    AsyncOpenAI = None  # type: ignore

import structlog

from ..config import settings
from .classifier import FitCategory
from .evaluator import SizeEvaluation


logger = structlog.get_logger("fitscore.llm")


def _keys_with(evaluation: SizeEvaluation, category: FitCategory) -> List[str]:
    return [c.key for c in evaluation.comparisons if c.verdict.category is category]


def _preview(size: str) -> List[str]:
    return [
        f"Analyzing fit for size {size}...",
        "Checking measurements against your profile...",
        "Preparing your personalized fit report...",
    ]


def rule_based_feedback(evaluation: SizeEvaluation) -> Dict[str, Any]:
    parts = []
    tight = _keys_with(evaluation, FitCategory.TIGHT)
    loose = _keys_with(evaluation, FitCategory.LOOSE)
    if tight:
        parts.append(f"Areas likely tight: {', '.join(tight)}.")
    if loose:
        parts.append(f"Areas with generous ease: {', '.join(loose)}.")
    if not tight and not loose and evaluation.comparisons:
        parts.append("All measured areas sit within the fabric's comfort range.")
    parts.append(f"Overall fit for size {evaluation.size}: {evaluation.overall_confidence}.")
    if tight:
        parts.append("Consider sizing up or a more stretchy fabric.")
    elif loose:
        parts.append("Consider sizing down or minor take-in alterations.")
    return {"preview": _preview(evaluation.size), "final": " ".join(parts)}


class TailorLLM:
    def __init__(self) -> None:
        self.api_key = settings.openai_api_key
        self.client = AsyncOpenAI(api_key=self.api_key) if (self.api_key and AsyncOpenAI) else None

    async def generate_feedback(self, evaluation: SizeEvaluation, fabric_type: str, tone: str | None = None) -> Dict[str, Any]:
        # Without a client, produce deterministic rule-based feedback
        if not self.client:
            return rule_based_feedback(evaluation)

        prompt = (
            "You are an expert clothing tailor. Given per-measurement fit verdicts for one garment size "
            "(difference = garment - body in cm, with a fabric-aware category), "
            "provide your feedback in a JSON object with two keys:\n"
            "1. 'preview': A list of exactly 3 short, distinct sentences (max 15 words each) to be displayed while the user waits.\n"
            "2. 'final': A single paragraph (max 60 words) summarizing the fit. Include what fits well, what is tight/loose, "
            "and one specific alteration suggestion. Do not contradict the overall fit label.\n"
            "Do not include markdown formatting, just the raw JSON."
        )
        if tone:
            prompt += f"\n\nTone/Style: {tone}"

        content = {
            "size": evaluation.size,
            "fabric_type": fabric_type,
            "overall_fit": evaluation.overall_confidence,
            "differences_cm": {c.key: c.verdict.difference for c in evaluation.comparisons},
            "categories": {c.key: c.verdict.category.value for c in evaluation.comparisons},
        }
        try:
            resp = await self.client.chat.completions.create(
                model="gpt-4o-mini",
                messages=[
                    {"role": "system", "content": prompt},
                    {"role": "user", "content": json.dumps(content)},
                ],
                temperature=0.3,
                max_tokens=250,
                response_format={"type": "json_object"},
            )
            raw_content = (resp.choices[0].message.content or "").strip()
            data = json.loads(raw_content)
            if not isinstance(data, dict) or "final" not in data:
                raise ValueError("feedback JSON missing 'final'")
            return data
        except Exception as e:
            logger.warning("tailor_feedback_fallback", size=evaluation.size, error=str(e))
            return rule_based_feedback(evaluation)
