class LottoPdfError(Exception):
    pass


class UnknownGameError(LottoPdfError, KeyError):
    def __str__(self):
        return str(self.args[0]) if self.args else ""


class SourceError(LottoPdfError):
    """The bulletin could not be fetched, discovered or is not a PDF."""


class NoRowsError(LottoPdfError):
    """No draw rows were recovered from a whole document.

    Usually means the bulletin layout changed. ``trace`` holds the classified
    token table and per-page reports for offline inspection.
    """

    def __init__(self, message, trace=None):
        super().__init__(message)
        self.trace = trace
