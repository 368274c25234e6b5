"""Load failures surfaced to the dashboard as structured, human-readable errors."""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence


class SheetLoadError(Exception):
    """Base class for every failure that aborts a sheet load."""

    def __init__(self, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "type": type(self).__name__, "detail": self.detail}


class SheetAccessError(SheetLoadError):
    def __init__(self, status_code: int, detail: Optional[str] = None) -> None:
        self.status_code = status_code
        super().__init__(
            f"시트에 접근할 수 없습니다. (HTTP {status_code})\n"
            "공유 설정에서 '링크가 있는 모든 사용자'가 '뷰어' 이상인지 확인해 주세요.",
            detail,
        )


class SheetPermissionError(SheetLoadError):
    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(
            "권한 오류: 구글 시트가 공개되어 있지 않습니다.\n"
            "[공유] 버튼 -> [링크가 있는 모든 사용자]로 변경해 주세요.",
            detail,
        )


class EmptySheetError(SheetLoadError):
    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__("시트에서 데이터를 찾을 수 없습니다. 내용이 비어있는지 확인해 주세요.", detail)


class MissingColumnsError(SheetLoadError):
    def __init__(self, headers: Sequence[str], required: Sequence[str]) -> None:
        self.headers = list(headers)
        self.required = list(required)
        super().__init__(
            f"필수 데이터 열을 식별할 수 없습니다. 시트의 제목행({', '.join(self.required)} 등)을 확인해 주세요.",
            f"headers={self.headers}",
        )
