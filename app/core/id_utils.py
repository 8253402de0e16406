import secrets

import shortuuid


def generate_shortuuid() -> str:
    return shortuuid.uuid()


def generate_short_token(length: int = 12) -> str:
    return shortuuid.ShortUUID().random(length=length)


def generate_invite_code() -> str:
    # 16 random bytes -> 32 hex characters
    return secrets.token_hex(16)
