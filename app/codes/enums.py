from enum import StrEnum


class CodeType(StrEnum):
    INVITE = "invite"
    ACCESS = "access"
