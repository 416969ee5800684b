class FormDataError(ValueError):
    """Base error class for our form writer."""


class FormFinishedError(FormDataError):
    """This exception is raised when a part is appended to, or the closing
    delimiter is written for, a form that has already been ended.
    """
