"""
core/exceptions.py - 통합 예외 계층 구조

인벤토리 엔진 전체에서 사용되는 예외 클래스들을 정의합니다.
모든 실패는 Orchestrator에서 잡혀 상태(message, lastFailedTime)와
재시도 간격으로 변환되며, 프로세스를 종료시키지 않습니다.

예외 계층 구조:
    InventoryError (베이스)
    ├── SessionError (자격 증명/세션 획득 실패)
    ├── ScanError (리소스 종류별 수집 실패)
    │   └── ScanTimeoutError (수집 제한 시간 초과)
    ├── StoreError (인벤토리/리포트 객체 읽기·쓰기 실패)
    └── InventoryConfigError (잘못된 mode, 누락된 spec 섹션)

Usage:
    from core.exceptions import ScanError

    try:
        records = descriptor.fetch(session, tag_filter, settings)
    except ClientError as e:
        raise ScanError("EC2", "describe_instances 실패", cause=e) from e
"""

from typing import Any, Dict, Optional

# =============================================================================
# 베이스 예외
# =============================================================================


class InventoryError(Exception):
    """인벤토리 엔진 기본 예외 클래스

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 세션 관련 예외
# =============================================================================


class SessionError(InventoryError):
    """프로바이더 세션 생성 실패

    패스 전체를 종료시키며, 같은 패스 안에서 재시도하지 않습니다.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"세션 오류 [{provider}]: {message}"
        super().__init__(full_message, cause)
        self.provider = provider
        self.details["provider"] = provider


# =============================================================================
# 수집 관련 예외
# =============================================================================


class ScanError(InventoryError):
    """리소스 종류별 수집 실패

    첫 번째 ScanError가 발생하면 남은 리소스 종류 수집을 중단합니다.
    """

    def __init__(
        self,
        kind: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"수집 오류 [{kind}]: {message}"
        super().__init__(full_message, cause)
        self.kind = kind
        self.details["kind"] = kind

    @classmethod
    def from_client_error(cls, kind: str, operation: str, client_error: Exception) -> "ScanError":
        """botocore.exceptions.ClientError로부터 생성

        Args:
            kind: 리소스 종류 이름
            operation: API 작업 이름
            client_error: ClientError 예외

        Returns:
            ScanError 인스턴스
        """
        message = f"{operation} 실패"
        code = get_error_code(client_error)
        if code:
            message = f"{message} ({code})"

        reason = ""
        if is_access_denied(client_error):
            reason = "access_denied"
            message = f"{message}: 권한이 없습니다"
        elif is_throttling(client_error):
            reason = "throttling"
            message = f"{message}: API 요청 제한 초과"

        error = cls(kind, message, cause=client_error)
        error.details["operation"] = operation
        error.details["error_code"] = code
        error.details["reason"] = reason
        return error


class ScanTimeoutError(ScanError):
    """수집 제한 시간 초과"""

    def __init__(self, kind: str, timeout: float):
        super().__init__(kind, f"{timeout:.0f}초 안에 수집을 끝내지 못했습니다")
        self.timeout = timeout
        self.details["timeout"] = timeout


# =============================================================================
# 저장소 관련 예외
# =============================================================================


class StoreError(InventoryError):
    """인벤토리/리포트 객체 읽기·쓰기 실패"""

    def __init__(
        self,
        operation: str,
        name: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"저장소 오류 [{operation}] {name}"
        super().__init__(full_message, cause)
        self.operation = operation
        self.name = name
        self.details.update({"operation": operation, "name": name})


# =============================================================================
# 설정 관련 예외
# =============================================================================


class InventoryConfigError(InventoryError):
    """인벤토리 spec 설정 오류 (지원하지 않는 mode, 누락된 섹션 등)"""

    def __init__(
        self,
        key: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"설정 오류 [{key}]: {message}"
        super().__init__(full_message, cause)
        self.config_key = key
        self.details["config_key"] = key


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================


def get_error_code(error: Exception) -> str:
    """botocore ClientError에서 에러 코드 추출 (없으면 빈 문자열)"""
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        code: str = response.get("Error", {}).get("Code", "")
        return code
    return ""


def is_access_denied(error: Exception) -> bool:
    """액세스 거부 오류인지 확인

    Args:
        error: 확인할 예외

    Returns:
        액세스 거부 오류이면 True
    """
    return get_error_code(error) in (
        "AccessDenied",
        "AccessDeniedException",
        "UnauthorizedAccess",
        "UnauthorizedOperation",
    )


def is_throttling(error: Exception) -> bool:
    """스로틀링 오류인지 확인"""
    return get_error_code(error) in {
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "RateExceeded",
        "SlowDown",
    }


def is_not_found(error: Exception) -> bool:
    """리소스(또는 하위 설정)를 찾을 수 없는 오류인지 확인

    S3 버킷의 PublicAccessBlock/태그 설정이 없는 경우도 포함합니다.

    Args:
        error: 확인할 예외

    Returns:
        리소스 없음 오류이면 True
    """
    return get_error_code(error) in {
        "ResourceNotFoundException",
        "NotFoundException",
        "NoSuchEntity",
        "NoSuchBucket",
        "NoSuchTagSet",
        "NoSuchTagSetError",
        "NoSuchPublicAccessBlockConfiguration",
        "RepositoryNotFoundException",
    }


def format_error_for_user(error: Exception) -> str:
    """상태 message에 기록할 에러 메시지 포맷팅

    Args:
        error: 예외

    Returns:
        사람이 읽을 수 있는 한 줄 메시지
    """
    if isinstance(error, InventoryError):
        return str(error)

    code = get_error_code(error)
    if code:
        message = error.response.get("Error", {}).get("Message", str(error))  # type: ignore[attr-defined]
        return f"{code}: {message}"

    return str(error) or error.__class__.__name__
