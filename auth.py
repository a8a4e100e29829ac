"""
=============================================================================
AUTH.PY — Identidad y permisos en GoHabit
=============================================================================
Tres piezas:
  - Contraseñas: solo se guarda su hash bcrypt (User.password_hash)
  - Tokens: JWT HS256 firmado con SECRET_KEY, válido ACCESS_TOKEN_EXPIRE_DAYS
  - Dependencias de FastAPI:
      get_current_user → el User dueño del token ("Authorization: Bearer ...")
      require_admin    → lo mismo, pero solo si su rol es ADMIN (si no, 403)

Los tokens no se guardan en la BD: "cerrar sesión" es que el cliente
descarte su token.
"""

import os
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from database import get_db
from errors import Forbidden
from models import User, UserId

# ─────────────────────────────────────────────────────────────────────────────
# CONFIGURACIÓN
# ─────────────────────────────────────────────────────────────────────────────

SECRET_KEY = os.getenv("SECRET_KEY", "gohabit-dev-secret-key-cambiar-en-produccion")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))

# Emails que reciben rol ADMIN al registrarse (separados por comas)
ADMIN_EMAILS = {
    e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()
}


def is_admin_email(email: str) -> bool:
    return email.lower() in ADMIN_EMAILS


# ─────────────────────────────────────────────────────────────────────────────
# CONTRASEÑAS
# ─────────────────────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    """Hash bcrypt (con su sal) listo para User.password_hash"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


# ─────────────────────────────────────────────────────────────────────────────
# TOKENS
# ─────────────────────────────────────────────────────────────────────────────

def create_access_token(user_id: UserId, email: str) -> str:
    """
    Token de sesión de un usuario de GoHabit.

    Payload: {"sub": "<id del usuario>", "email": ..., "exp": ...}
    El rol NO va en el token: se lee de la BD en cada petición, así un
    cambio de rol tiene efecto inmediato.
    """
    payload = {
        "sub": str(user_id),
        "email": email,
        "exp": datetime.utcnow() + timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Payload del token, o None si la firma no cuadra o ya caducó"""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


# ─────────────────────────────────────────────────────────────────────────────
# DEPENDENCIAS
# ─────────────────────────────────────────────────────────────────────────────

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Usuario autenticado de la petición.

    401 → token ilegible, caducado o sin id numérico en "sub"
    404 → el token es válido pero la cuenta ya se borró
    """
    payload = decode_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido o expirado",
            headers={"WWW-Authenticate": "Bearer"}
        )

    sub = payload.get("sub")
    if sub is None or not sub.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token sin identificador de usuario"
        )

    user = db.get(User, int(sub))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Usuario no encontrado"
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Como get_current_user, pero solo deja pasar a administradores"""
    if not user.is_admin:
        raise Forbidden("Se necesitan permisos de administrador")
    return user
