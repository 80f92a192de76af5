"""
Heuristic token counting used when an upstream provider does not report usage.

CJK ideographs are dense: a run of them counts as half its length (rounded up).
Everything else is split on whitespace and each word counts as one token.
"""

import math
import re

from app.usage.schemas import UsageCounts

CJK_RUN = re.compile(r"[\u4e00-\u9fff\u3400-\u4dbf\uf900-\ufaff]+")


def estimate_tokens(text: str | None) -> int:
    if not text or not text.strip():
        return 0

    tokens = 0
    for run in CJK_RUN.findall(text):
        tokens += math.ceil(len(run) / 2)

    remainder = CJK_RUN.sub(" ", text)
    tokens += len(remainder.split())
    return tokens


def estimate_usage(prompt_text: str | None, completion_text: str | None) -> UsageCounts:
    prompt_tokens = estimate_tokens(prompt_text)
    completion_tokens = estimate_tokens(completion_text)
    return UsageCounts(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
        is_estimated=True,
    )
