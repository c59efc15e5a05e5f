# -------------------------------------------------------
# errors.py — 도메인 예외 정의 (main.py에서 HTTP 응답으로 변환)
# -------------------------------------------------------


class DomainError(Exception):
    code: str = "domain_error"
    status: int = 400

    def __init__(self, message: str = "", *, code: str | None = None, status: int | None = None):
        super().__init__(message or self.__class__.__name__)
        if code:
            self.code = code
        if status:
            self.status = status


class NotFoundError(DomainError):
    # 사용자/영상/검색어 등 요청한 엔티티가 없음
    code = "not_found"
    status = 404


class AlreadyExistsError(DomainError):
    # 이미 존재하는 id로 생성 시도
    code = "already_exists"
    status = 409


class IllegalArgumentError(DomainError):
    # 잘못된 검색 옵션/범위("from/to") 형식 등
    code = "illegal_argument"
    status = 400


class ProcessingFailedError(DomainError):
    # 미디어 처리 서비스가 false를 응답했거나 시간 초과
    code = "processing_failed"
    status = 502


class StorageError(DomainError):
    # 오브젝트 스토리지 통신 실패
    code = "storage_error"
    status = 503
