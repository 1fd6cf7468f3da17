from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import jwt
from passlib.context import CryptContext
from clinic.core.config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash"""
    return pwd_context.hash(password)


def create_access_token(subject: str, data: Optional[Dict[str, Any]] = None) -> str:
    """Create JWT access token.

    ``data`` carries the identity claims the API reads back
    (``userId``, ``email``, ``role``).
    """
    to_encode = dict(data or {})
    expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "sub": str(subject),
        "token_type": "access"
    })
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def create_user_token(user) -> str:
    """Access token for a user record"""
    return create_access_token(
        subject=user.id,
        data={"userId": str(user.id), "email": user.email, "role": user.role.value},
    )


def decode_token(token: str) -> Dict[str, Any]:
    """Decode a JWT, raising ``jwt.ExpiredSignatureError`` or ``jwt.PyJWTError``"""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


    return payload
