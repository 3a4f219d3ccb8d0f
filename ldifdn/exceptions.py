class DecodingError(Exception):
    pass


class MalformedDistinguishedName(DecodingError):
    """The given string is no valid distinguished name.

    Raised by the DN parser. The parse is aborted as a whole, no partially
    constructed DistinguishedName is ever returned.
    """
    def __init__(self, dn: str, reason: str) -> None:
        super().__init__()
        self.dn = dn
        self.reason = reason

    def __str__(self) -> str:
        return f"Malformed distinguished name {self.dn!r}: {self.reason}"


class LDIFSyntaxError(DecodingError):
    def __init__(self, line_number: int, description: str) -> None:
        super().__init__()
        self.line_number = line_number
        self.description = description

    def __str__(self) -> str:
        return f"Line {self.line_number}: {self.description}"
