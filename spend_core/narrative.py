"""AI narrative for the loaded sheet.

A single best-effort chat completion: no retry, and any failure degrades to a
fixed placeholder so the rest of the dashboard keeps working.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Sequence

from openai import OpenAI

from spend_core.config import DEFAULT_CONFIG
from spend_core.models import Record
from spend_core.settings import settings

logger = logging.getLogger(__name__)

EMPTY_RESULT = "분석 결과가 생성되지 않았습니다."
FAILURE_RESULT = "분석 생성 중 오류가 발생했습니다. 다시 시도해 주세요."

PROMPT_TEMPLATE = """다음은 구글 시트('total' 시트)에서 가져온 데이터 분석 요청입니다.
제공된 데이터는 상위 {sample_rows}개 행의 샘플입니다.

데이터 요약:
{summary}

다음 내용을 포함하여 분석을 작성해 주세요 (모든 답변은 한국어로 작성):
1. 데이터의 목적에 대한 간결한 개요.
2. 관찰된 주요 트렌드 또는 이상 징후.
3. 수치를 기반으로 한 3가지 실행 가능한 권장 사항.
4. 주요 수치 컬럼에 대한 간단한 통계 요약.

분석은 전문적인 느낌의 마크다운 형식을 사용하고 명확한 헤더를 포함해 주세요.
"""


def build_prompt(records: Sequence[Record], sample_rows: int = DEFAULT_CONFIG.narrative_sample_rows) -> str:
    summary = "\n".join(json.dumps(row, ensure_ascii=False) for row in list(records)[:sample_rows])
    return PROMPT_TEMPLATE.format(sample_rows=sample_rows, summary=summary)


class NarrativeService:
    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        temperature: float = 0.4,
        max_tokens: int = 2048,
        sample_rows: int = DEFAULT_CONFIG.narrative_sample_rows,
    ) -> None:
        self._client = client
        self.model = model or settings.OPENAI_MODEL
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.sample_rows = sample_rows

    @property
    def client(self) -> Any:
        if self._client is None:
            kwargs: dict = {"api_key": settings.OPENAI_API_KEY}
            if settings.OPENAI_BASE_URL:
                kwargs["base_url"] = settings.OPENAI_BASE_URL
            self._client = OpenAI(**kwargs)
            logger.info("OpenAI client initialized (model=%s)", self.model)
        return self._client

    def analyze(self, records: List[Record]) -> str:
        prompt = build_prompt(records, self.sample_rows)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            text = response.choices[0].message.content
        except Exception:
            logger.exception("Narrative generation failed")
            return FAILURE_RESULT
        return text.strip() if text and text.strip() else EMPTY_RESULT


def analyze_records(records: List[Record], service: Optional[NarrativeService] = None) -> str:
    return (service or NarrativeService()).analyze(records)
