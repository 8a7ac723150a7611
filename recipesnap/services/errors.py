class ServiceError(Exception):
    pass


class InvalidInputError(ServiceError):
    pass


class InvalidURLError(InvalidInputError):
    pass


class UnsupportedPlatformError(InvalidURLError):
    pass


class NoContentError(ServiceError):
    pass


class FetchFailedError(ServiceError):
    pass


class ScrapeFailedError(FetchFailedError):
    pass


class SocialExtractionError(FetchFailedError):
    pass


class ExtractorTimeoutError(SocialExtractionError):
    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(f"Social extractor timed out after {timeout_seconds}s: {url}")
        self.url = url
        self.timeout_seconds = timeout_seconds


class NetworkTimeoutError(FetchFailedError):
    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(f"Network timeout after {timeout_seconds}s: {url}")
        self.url = url
        self.timeout_seconds = timeout_seconds


class ImageConversionError(ServiceError):
    pass


class CompletionServiceError(ServiceError):
    pass


class RateLimitedError(CompletionServiceError):
    pass


class CompletionParseError(ServiceError):
    pass


class EmptyCompletionError(CompletionParseError):
    pass


class MalformedCompletionError(CompletionParseError):
    def __init__(self, message: str, raw_reply: str | None = None):
        super().__init__(message)
        self.raw_reply = raw_reply


class StorageUnavailableError(ServiceError):
    pass
