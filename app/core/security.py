"""
Security utilities for authentication and authorization
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from app.core.config import settings

logger = logging.getLogger(__name__)

# Hash with argon2 when available, bcrypt otherwise; passlib is only used to verify legacy hashes.
argon2_available = False
bcrypt_available = False

try:
    import argon2
    hasher = argon2.PasswordHasher()
    if hasher.verify(hasher.hash("test"), "test"):
        argon2_available = True
except Exception as e:
    logger.warning("Argon2 backend not available: %s", e)

try:
    import bcrypt
    if bcrypt.checkpw(b"test", bcrypt.hashpw(b"test", bcrypt.gensalt())):
        bcrypt_available = True
except Exception as e:
    logger.warning("Bcrypt backend not available: %s", e)

if not argon2_available and not bcrypt_available:
    error_msg = "No password hashing backends available. Please install argon2-cffi or bcrypt."
    logger.critical(error_msg)
    raise RuntimeError(error_msg)

logger.debug("Available backends - Argon2: %s, Bcrypt: %s", argon2_available, bcrypt_available)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password using available backend (argon2 preferred, bcrypt fallback)"""
    if argon2_available:
        try:
            import argon2
            return argon2.PasswordHasher().hash(password)
        except Exception as e:
            logger.warning("Argon2 hashing failed, falling back to bcrypt: %s", e)

    if bcrypt_available:
        import bcrypt
        # bcrypt only looks at the first 72 bytes
        password_bytes = password.encode("utf-8")[:72]
        return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")

    raise RuntimeError("No hashing backends available")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    if argon2_available and hashed_password.startswith("$argon2"):
        try:
            import argon2
            return argon2.PasswordHasher().verify(hashed_password, plain_password)
        except Exception:
            return False

    if bcrypt_available:
        try:
            import bcrypt
            return bcrypt.checkpw(
                plain_password.encode("utf-8")[:72],
                hashed_password.encode("utf-8")
            )
        except ValueError:
            pass

    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception:
        return False


def create_access_token(data: Dict, expires_minutes: Optional[int] = None) -> str:
    """Create a JWT access token"""
    to_encode = data.copy()

    if expires_minutes is None:
        expires_minutes = settings.JWT_EXPIRE_MINUTES

    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def decode_token(token: str) -> Dict:
    """Decode and verify a JWT token"""
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise ValueError("Invalid token")
