class TtmlParseError(ValueError):
    pass


class TtmlTokenizeError(TtmlParseError):
    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.line = line
        self.column = column


class TimestampParseError(TtmlParseError):
    pass


class TtmlStructureError(TtmlParseError):
    pass
