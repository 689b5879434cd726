class GenerationError(RuntimeError):
    pass


class BackendUnavailable(GenerationError):
    pass


class AuthorizationFailed(GenerationError):
    pass


class QuotaExceeded(GenerationError):
    pass


class InvalidAudio(GenerationError):
    pass


class EmptyResponse(GenerationError):
    pass
