from services.protocol.schema_validation import (
    VISUALIZATION_ANSWER_SCHEMA,
    VISUALIZATION_SPEC_SCHEMA,
    ProtocolValidationError,
    ProtocolValidator,
)

__all__ = [
    "VISUALIZATION_ANSWER_SCHEMA",
    "VISUALIZATION_SPEC_SCHEMA",
    "ProtocolValidationError",
    "ProtocolValidator",
]
