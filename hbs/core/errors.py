"""
HBS 오류 분류.

─── 오류 종류 ──────────────────────────────────────────────────────────────
  ConfigurationError   : 요약 백엔드(프로바이더·API 키·모델)가 설정되지 않음.
                          재시도해도 해결되지 않는다. 설정을 고친 뒤 다시 호출.
  TransportError       : 백엔드 호출 실패 또는 타임아웃.
  EmptyResultError     : 백엔드가 빈 응답을 반환함.
  InvalidArgumentError : chunk_size / live_window_size 등 설정값이 잘못됨.
                          ValueError를 함께 상속하므로 기존 ValueError 처리 코드와 호환.
  BuildInProgressError : 같은 대화에서 빌드가 이미 진행 중. API 계층에서만 사용한다.

─── 전파 규칙 ──────────────────────────────────────────────────────────────
  BucketManager의 빌드/머지는 오류를 즉시 호출자에게 올린다.
  rebuild_all()은 추가로 state를 재빌드 이전 스냅샷으로 완전히 복원한 뒤 raise한다.
  오류를 삼키는 곳은 HBSService.prepare_prompt() (생성 직전 인터셉터) 한 곳뿐이다.
"""

from hbs.core.config import settings


class HBSError(Exception):
    """HBS 오류의 공통 베이스."""


class ConfigurationError(HBSError):
    """요약 백엔드가 선택되지 않았거나 자격 증명이 없음."""


class TransportError(HBSError):
    """백엔드 호출 실패 또는 타임아웃."""


class EmptyResultError(HBSError):
    """백엔드가 빈 요약을 반환함."""


class InvalidArgumentError(HBSError, ValueError):
    """양수가 아닌 chunk_size / live_window_size 등 잘못된 설정값."""


class BuildInProgressError(HBSError):
    """같은 대화에서 다른 빌드가 진행 중이라 요청이 건너뛰어짐."""


def error_payload(exc: Exception) -> dict:
    """
    예외를 API 응답·로그용 dict로 변환한다.
    메시지 원문은 DEV_MODE에서만 노출한다 (백엔드 URL 등이 섞일 수 있음).
    """
    payload = {"type": type(exc).__name__}
    if settings.DEV_MODE:
        payload["message"] = str(exc)[:500]
    return payload
