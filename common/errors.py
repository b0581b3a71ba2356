# errors.py
"""
공통 에러 타입 정의
핸들러는 아래 예외만 던지고, 상태 코드 변환은 FastAPI가 담당
"""
from typing import Optional

from fastapi import HTTPException, status

class NotAuthenticatedException(HTTPException):
    """401 에러 - 인증 실패 (AuthenticationRequired)"""
    def __init__(self, detail: str = "Você precisa estar logado para continuar."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class InvalidTokenException(NotAuthenticatedException):
    """401 에러 - 토큰 검증 실패"""
    def __init__(self, detail: str = "Token inválido ou expirado."):
        super().__init__(detail=detail)

class PermissionDeniedException(HTTPException):
    """403 에러 - 역할(role) 검사 실패 (AuthorizationDenied)"""
    def __init__(self, detail: str = "Not authorized"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

class ValidationException(HTTPException):
    """400 에러 - 필수 필드 누락 등 (ValidationError)"""
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class NotFoundException(HTTPException):
    """404 에러 - 항목 없음"""
    def __init__(self, name: str = "Registro"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{name} não encontrado.")

class OrderStateConflictException(HTTPException):
    """409 에러 - 주문 상태가 요청 시점과 달라짐"""
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class UpstreamFailureException(HTTPException):
    """500 에러 - DB/외부 API 호출 실패 (UpstreamFailure)"""
    def __init__(self, detail: str, error: Optional[Exception] = None):
        message = f"{detail}: {error}" if error is not None else detail
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)
