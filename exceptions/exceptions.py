"""Errors raised for malformed detector input or configuration.

Codes:
- BAD_TIMESTAMP: timestamp not finite or not > 0
- BAD_SIZE: non-positive or malformed image dimensions / ratio
- MISSING_BUFFER: depth or color buffer absent
- BAD_INTRINSICS: non-positive or malformed intrinsics
- BUFFER_LENGTH: buffer length does not match the declared size
- BAD_CONFIG: invalid configuration value
"""


class PreconditionViolation(Exception):
    def __init__(self, code: str, message: str, context: str = ""):
        super().__init__(message)
        self.code = code
        self.context = context

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self), "context": self.context}
