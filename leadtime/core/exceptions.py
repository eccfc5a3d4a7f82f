"""
리드타임 추적 오류 분류

모든 오류는 실패한 작업(operation)과 관련 식별자(branch, commit, id)를 가진다.
"""


class LeadTimeError(Exception):
    """리드타임 추적 기본 오류"""

    status_code = 500

    def __init__(self, message: str, operation: str = None, identifier=None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.identifier = identifier

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class ValidationError(LeadTimeError):
    """잘못된 입력 또는 라이프사이클 순서 위반 (예: 커밋 없는 push)"""

    status_code = 422


class NotFound(LeadTimeError):
    """참조한 작업/브랜치/머지 커밋/태스크가 없음 (대부분 이벤트 순서 문제)"""

    status_code = 404


class DivisionUndefined(LeadTimeError):
    """집계 대상이 0건이라 평균을 정의할 수 없음"""

    status_code = 409


class StorageError(LeadTimeError):
    """저장소 오류 (SQLAlchemy 예외 래핑)"""

    status_code = 503
