import logging
import bcrypt
from passlib.context import CryptContext
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from jose import jwt, JWTError
from app.core import config
from app.core.errors import ServerMisconfigured, Unauthenticated

logger = logging.getLogger(__name__)

# passlib is kept for verifying hashes produced by other bcrypt wrappers;
# new hashes go through bcrypt directly
try:
    pwd_context = CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
    )
    logger.debug("Password context initialized")
except Exception as e:
    logger.warning(f"Failed to initialize passlib context: {e}, using bcrypt directly")
    pwd_context = None

BCRYPT_MAX_BYTES = 72
BCRYPT_ROUNDS = config.BCRYPT_ROUNDS


def _truncate_password(password: str) -> bytes:
    """Encode a password, cutting it at the bcrypt limit on a UTF-8 boundary."""
    password_bytes = password.encode('utf-8')
    if len(password_bytes) <= BCRYPT_MAX_BYTES:
        return password_bytes

    logger.warning("Password exceeds 72 bytes, truncating before hashing")
    truncated = password_bytes[:BCRYPT_MAX_BYTES]
    # UTF-8 char is max 4 bytes
    for i in range(0, 4):
        try:
            return truncated[:len(truncated) - i].decode('utf-8').encode('utf-8')
        except UnicodeDecodeError:
            continue
    return truncated


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Passwords longer than 72 bytes are truncated before hashing (bcrypt hard limit).

    Raises:
        ValueError: If the password cannot be hashed
    """
    try:
        password_bytes = _truncate_password(password)
        return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode('utf-8')
    except Exception as e:
        logger.error(f"Password hashing failed: {e}", exc_info=True)
        raise ValueError("Invalid password") from e


def verify_password(password: str, hashed: str) -> bool:
    """
    Verify a password against its hash.

    Returns:
        True if password matches hash, False otherwise
    """
    try:
        password_bytes = _truncate_password(password)
        hashed_bytes = hashed.encode('utf-8')
        try:
            return bcrypt.checkpw(password_bytes, hashed_bytes)
        except (ValueError, TypeError):
            if pwd_context:
                return pwd_context.verify(password, hashed)
            return False
    except Exception as e:
        logger.error(f"Password verification failed: {e}", exc_info=True)
        return False


def require_signing_secret() -> str:
    """
    Return the JWT signing secret.

    Raises:
        ServerMisconfigured: If JWT_SECRET is not configured
    """
    secret = config.JWT_SECRET
    if not secret:
        logger.error("JWT_SECRET environment variable is not set")
        raise ServerMisconfigured()
    return secret


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a JWT carrying the given claims.

    Raises:
        ServerMisconfigured: If JWT_SECRET is not configured
    """
    secret = require_signing_secret()
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(days=config.TOKEN_EXPIRE_DAYS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=config.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry of a JWT and return its claims.

    Raises:
        ServerMisconfigured: If JWT_SECRET is not configured
        Unauthenticated: If the token is malformed, tampered with or expired
    """
    secret = require_signing_secret()
    try:
        return jwt.decode(token, secret, algorithms=[config.ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token rejected: {e}")
        raise Unauthenticated("Invalid or expired token") from e
