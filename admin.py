"""
=============================================================================
ADMIN.PY — Administración
=============================================================================
Solo lo usan los endpoints /admin/*, protegidos con auth.require_admin.

  - Listado paginado de usuarios (con metadatos para el frontend)
  - Cambio de rol (USER ↔ ADMIN)
  - Estadísticas globales
  - CRUD del catálogo de accesorios
"""

import logging
import math

from sqlalchemy import func
from sqlalchemy.orm import Session

from errors import Conflict, InvalidValue, ReferenceNotFound
from gamification import RARITY_PRICES
from models import (
    User, Habit, HabitLog, Task, Accessory, UserAccessory,
    UserRole, AccessoryRarity, UserId, AccessoryId
)

logger = logging.getLogger("gohabit.admin")


# =============================================================================
# ===================== USUARIOS ==============================================
# =============================================================================

def list_users(db: Session, page: int = 1, limit: int = 20) -> dict:
    """
    Usuarios de una página (más recientes primero) + metadatos.

    Retorna:
      {"users": [...], "meta": {"page": 1, "limit": 20, "total": 45, "total_pages": 3}}
    """
    total = db.query(func.count(User.id)).scalar()
    users = db.query(User).order_by(
        User.created_at.desc(), User.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()

    return {
        "users": users,
        "meta": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


def update_user_role(db: Session, user_id: UserId, role: UserRole) -> User:
    """Cambia el rol de un usuario (hace commit)"""
    user = db.get(User, user_id)
    if user is None:
        raise ReferenceNotFound("Usuario", user_id)

    user.role = role
    db.commit()
    db.refresh(user)

    logger.info(f"🔑 {user.username} ahora es {user.role}")
    return user


def get_stats(db: Session) -> dict:
    return {
        "total_users": db.query(func.count(User.id)).scalar(),
        "total_habits": db.query(func.count(Habit.id)).scalar(),
        "total_tasks": db.query(func.count(Task.id)).scalar(),
        "total_completions": db.query(func.count(HabitLog.id)).scalar(),
    }


# =============================================================================
# ===================== CATÁLOGO DE ACCESORIOS ================================
# =============================================================================

def _get_accessory(db: Session, accessory_id: AccessoryId) -> Accessory:
    accessory = db.get(Accessory, accessory_id)
    if accessory is None:
        raise ReferenceNotFound("Accesorio", accessory_id)
    return accessory


def _check_name_free(db: Session, name: str, exclude_id=None):
    query = db.query(Accessory).filter(Accessory.name == name)
    if exclude_id is not None:
        query = query.filter(Accessory.id != exclude_id)
    if query.first() is not None:
        raise Conflict(f"Ya existe un accesorio llamado '{name}'")


def create_accessory(db: Session, data: dict) -> Accessory:
    """
    Añade un accesorio al catálogo (hace commit).
    Si no se indica precio se usa el de su rareza.
    """
    _check_name_free(db, data["name"])

    rarity = AccessoryRarity(data.get("rarity") or AccessoryRarity.COMMON)
    price = data.get("price")
    accessory = Accessory(
        name=data["name"],
        rarity=rarity,
        image_url=data.get("image_url"),
        price=RARITY_PRICES[rarity] if price is None else price
    )
    db.add(accessory)
    db.commit()
    db.refresh(accessory)

    logger.info(f"➕ Accesorio creado: {accessory.name} ({accessory.price} monedas)")
    return accessory


def update_accessory(db: Session, accessory_id: AccessoryId, data: dict) -> Accessory:
    """Actualiza solo los campos recibidos (hace commit)"""
    accessory = _get_accessory(db, accessory_id)
    if data.get("name") is not None:
        _check_name_free(db, data["name"], exclude_id=accessory.id)

    for key, value in data.items():
        if value is None and key in ("name", "rarity", "price"):
            raise InvalidValue(key, value)
        setattr(accessory, key, value)

    db.commit()
    db.refresh(accessory)
    return accessory


def delete_accessory(db: Session, accessory_id: AccessoryId):
    """
    Quita un accesorio del catálogo (hace commit).
    Si algún usuario ya lo compró → Conflict: no se le quita a nadie.
    """
    accessory = _get_accessory(db, accessory_id)
    owners = db.query(func.count(UserAccessory.id)).filter(
        UserAccessory.accessory_id == accessory.id
    ).scalar()
    if owners:
        raise Conflict(f"'{accessory.name}' ya lo tienen {owners} usuario(s)")

    db.delete(accessory)
    db.commit()
    logger.info(f"🗑️ Accesorio eliminado: {accessory.name}")
