"""비밀번호 해싱 및 검증 유틸리티 모듈.

Password hashing and verification utility module.
Uses bcrypt directly with a fixed cost factor (``BCRYPT_ROUNDS``).
Passwords are never stored in plain text. bcrypt rejects inputs longer
than 72 bytes, so schemas cap new passwords at ``MAX_PASSWORD_BYTES``.
"""

import bcrypt

from cloudarc.config import settings

# bcrypt 입력 상한 (bcrypt input limit in bytes)
MAX_PASSWORD_BYTES: int = 72


def hash_password(password: str, rounds: int | None = None) -> str:
    """평문 비밀번호를 bcrypt 해시로 변환합니다.

    Hash a plain text password using bcrypt at the configured cost.
    The resulting hash includes a random salt, making each hash unique
    even for identical passwords.

    Args:
        password: 평문 비밀번호 (Plain text password, at most 72 bytes in UTF-8)
        rounds: 비용 계수 재정의 (Cost factor override, defaults to BCRYPT_ROUNDS)

    Returns:
        str: bcrypt 해시 문자열 (Bcrypt hash string, ~60 chars)

    Raises:
        ValueError: 72바이트 초과 (Password longer than 72 bytes)
    """
    salt: bytes = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """평문 비밀번호와 bcrypt 해시를 비교 검증합니다.

    Verify a plain text password against a bcrypt hash.
    Uses constant-time comparison to prevent timing attacks. An input
    longer than 72 bytes can never match a stored hash; it is still
    compared once (truncated) so the response time does not change.

    Args:
        plain_password: 검증할 평문 비밀번호 (Plain text password to verify)
        hashed_password: 저장된 bcrypt 해시 (Stored bcrypt hash to compare against)

    Returns:
        bool: 일치하면 True, 불일치하면 False (True if password matches hash)
    """
    encoded: bytes = plain_password.encode("utf-8")
    matched: bool = bcrypt.checkpw(encoded[:MAX_PASSWORD_BYTES], hashed_password.encode("utf-8"))
    return matched and len(encoded) <= MAX_PASSWORD_BYTES


# 존재하지 않는 이메일로 로그인할 때 비교 대상으로 쓰는 더미 해시.
# 실제 해시와 같은 비용 계수로 만들어 응답 시간이 사용자 존재 여부와 무관하게 유지됨.
# Dummy hash compared against when the login email is unknown; same cost as real hashes.
DUMMY_PASSWORD_HASH: str = hash_password("cloudarc-dummy-password")
