class StudyAssistantError(RuntimeError):
    """Base class for errors raised by the study assistant"""


class ConfigurationError(StudyAssistantError):
    """Required backend settings (URL, keys) are missing"""


class CompletionError(StudyAssistantError):
    """The completion service failed or returned an error payload"""


class SessionStoreError(StudyAssistantError):
    """The session store rejected a request or could not be reached"""
