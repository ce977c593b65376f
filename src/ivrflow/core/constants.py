"""Core constants and enums."""

from enum import Enum, IntFlag

# Hard ceiling enforced by the contact-flow runtime
MAX_ACTIONS = 250

# Flow language version written to every document
FLOW_LANGUAGE_VERSION = "2019-10-30"


class ActionKind(str, Enum):
    """Kinds of action nodes; values are the runtime's ``Type`` strings."""

    PROMPT = "MessageParticipant"
    INPUT = "GetParticipantInput"
    SPEECH_INPUT = "ConnectParticipantWithLexBot"
    BRANCH = "Compare"
    CHECK_HOURS = "CheckHoursOfOperation"
    INVOKE = "InvokeLambdaFunction"
    SET_ATTRIBUTES = "UpdateContactAttributes"
    SET_QUEUE = "UpdateContactTargetQueue"
    SET_VOICE = "UpdateContactTextToSpeechVoice"
    TRANSFER = "TransferContactToQueue"
    TRANSFER_TO_FLOW = "TransferToFlow"
    DISCONNECT = "DisconnectParticipant"


class ComparisonOperator(str, Enum):
    """Operators available on condition edges."""

    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"
    GREATER_THAN = "GreaterThan"
    LESS_THAN = "LessThan"
    GREATER_THAN_OR_EQUALS = "GreaterThanOrEquals"
    LESS_THAN_OR_EQUALS = "LessThanOrEquals"
    CONTAINS = "Contains"
    STARTS_WITH = "StartsWith"
    ENDS_WITH = "EndsWith"


class ErrorKind(str, Enum):
    """Error transitions understood by the runtime."""

    TIMEOUT = "InputTimeLimitExceeded"
    NO_MATCH = "NoMatchingCondition"
    LOW_CONFIDENCE = "LowConfidence"
    INVALID_INPUT = "InvalidInput"
    ERROR = "NoMatchingError"
    MAX_RETRIES_EXCEEDED = "MaxRetriesExceeded"
    QUEUE_AT_CAPACITY = "QueueAtCapacity"


class FallbackTrigger(IntFlag):
    """Speech outcomes that hand the caller over to the keypad node."""

    NONE = 0
    TIMEOUT = 1
    NO_MATCH = 2
    LOW_CONFIDENCE = 4
    INVALID_INPUT = 8
    ERROR = 16
    MAX_RETRIES_EXCEEDED = 32

    DEFAULT = TIMEOUT | NO_MATCH | ERROR
    ALL = TIMEOUT | NO_MATCH | LOW_CONFIDENCE | INVALID_INPUT | ERROR | MAX_RETRIES_EXCEEDED


# Bit order defines the order of the generated error edges
FALLBACK_ERROR_KINDS: tuple[tuple[FallbackTrigger, ErrorKind], ...] = (
    (FallbackTrigger.TIMEOUT, ErrorKind.TIMEOUT),
    (FallbackTrigger.NO_MATCH, ErrorKind.NO_MATCH),
    (FallbackTrigger.LOW_CONFIDENCE, ErrorKind.LOW_CONFIDENCE),
    (FallbackTrigger.INVALID_INPUT, ErrorKind.INVALID_INPUT),
    (FallbackTrigger.ERROR, ErrorKind.ERROR),
    (FallbackTrigger.MAX_RETRIES_EXCEEDED, ErrorKind.MAX_RETRIES_EXCEEDED),
)


class EdgeSlot(str, Enum):
    """Which transition of a node a pending edge refers to."""

    NEXT = "next"
    CONDITION = "condition"
