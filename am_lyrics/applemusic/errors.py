class AppleMusicError(RuntimeError):
    pass


class TokenNotFound(AppleMusicError):
    pass


class NotSubscribed(AppleMusicError):
    pass


class LyricsUnavailable(AppleMusicError):
    pass


class ApiRequestFailed(AppleMusicError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
