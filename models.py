"""
=============================================================================
MODELS.PY — Todos los Modelos (Tablas) de la Base de Datos
=============================================================================
Cada clase aquí = una tabla en la base de datos.
Cada atributo de la clase = una columna en esa tabla.

RELACIONES:
  USER
  ├── habits[] ──→ logs[] (HabitLog)
  ├── tasks[]
  ├── avatar (1:1)
  ├── accessories[] (UserAccessory) ──→ accessory (catálogo)
  ├── sent_friendships[]     (Friendship donde user_id = yo)
  └── received_friendships[] (Friendship donde friend_id = yo)

Si se borra un usuario, se borra TODO lo que le pertenece (cascade).

Los campos con valores cerrados (frecuencia, estado, etapa, rareza) se
validan al asignarlos: un valor fuera del Enum lanza InvalidValue antes
de llegar a la BD.
"""

import enum
from datetime import datetime
from typing import NewType

from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, ForeignKey,
    UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import relationship, validates

from database import Base
from errors import InvalidValue


# =============================================================================
# ===================== IDENTIFICADORES TIPADOS ===============================
# =============================================================================
# Para no confundir el id de un usuario con el de un hábito en las firmas
# de las funciones. En la BD siguen siendo enteros.

UserId = NewType("UserId", int)
HabitId = NewType("HabitId", int)
HabitLogId = NewType("HabitLogId", int)
TaskId = NewType("TaskId", int)
AvatarId = NewType("AvatarId", int)
AccessoryId = NewType("AccessoryId", int)
UserAccessoryId = NewType("UserAccessoryId", int)
FriendshipId = NewType("FriendshipId", int)


# =============================================================================
# ===================== ENUMS (Tipos predefinidos) ============================
# =============================================================================

class HabitFrequency(str, enum.Enum):
    """Con qué frecuencia se repite el hábito"""
    DAILY = "DAILY"      # Una vez al día
    WEEKLY = "WEEKLY"    # Una vez por semana (ISO, lunes a domingo)


class TaskStatus(str, enum.Enum):
    """Estado de una tarea"""
    PENDING = "PENDING"
    DONE = "DONE"


class AvatarStage(str, enum.Enum):
    """Etapas de crecimiento del avatar, EN ORDEN (de semilla a árbol viejo)"""
    SEED = "SEED"
    SPROUT = "SPROUT"
    SAPLING = "SAPLING"
    TREE = "TREE"
    ANCIENT_TREE = "ANCIENT_TREE"

    @property
    def rank(self) -> int:
        """Posición en la progresión (SEED = 0)"""
        return list(AvatarStage).index(self)


class AccessoryRarity(str, enum.Enum):
    """Rareza de un accesorio del catálogo"""
    COMMON = "COMMON"
    RARE = "RARE"
    EPIC = "EPIC"


class FriendshipStatus(str, enum.Enum):
    """Estado de una amistad. Solo se puede pasar de PENDING a ACCEPTED."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"


class UserRole(str, enum.Enum):
    """Permisos del usuario. ADMIN accede a /admin/*"""
    USER = "USER"
    ADMIN = "ADMIN"


def _coerce_enum(enum_cls, field: str, value):
    """Convierte un string al Enum correspondiente o lanza InvalidValue"""
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidValue(field, value) from None


def _non_negative(field: str, value):
    if value is None or value < 0:
        raise InvalidValue(field, value, f"'{field}' no puede ser negativo")
    return value


# =============================================================================
# ===================== TABLA 1: USERS ========================================
# =============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # ── Datos básicos ──
    username = Column(String(30), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    # password_hash → NUNCA sale en una respuesta de la API
    role = Column(String(20), default=UserRole.USER.value, nullable=False)

    # ── Gamificación ──
    coins = Column(Integer, default=0, nullable=False)
    xp = Column(Integer, default=0, nullable=False)
    level = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    # ── Relaciones ──
    # cascade="all, delete-orphan" → si borras el usuario, se borran todos sus datos
    habits = relationship("Habit", back_populates="user", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="user", cascade="all, delete-orphan")
    avatar = relationship("Avatar", back_populates="user", uselist=False, cascade="all, delete-orphan")
    accessories = relationship("UserAccessory", back_populates="user", cascade="all, delete-orphan")
    sent_friendships = relationship(
        "Friendship", foreign_keys="Friendship.user_id",
        back_populates="user", cascade="all, delete-orphan"
    )
    received_friendships = relationship(
        "Friendship", foreign_keys="Friendship.friend_id",
        back_populates="friend", cascade="all, delete-orphan"
    )

    @validates("coins", "xp")
    def _validate_counter(self, key, value):
        return _non_negative(key, value)

    @validates("level")
    def _validate_level(self, key, value):
        if value is None or value < 1:
            raise InvalidValue(key, value, "El nivel mínimo es 1")
        return value

    @validates("role")
    def _validate_role(self, key, value):
        return _coerce_enum(UserRole, key, value).value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


# =============================================================================
# ===================== TABLA 2: HABITS =======================================
# =============================================================================

class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    frequency = Column(String(20), default=HabitFrequency.DAILY.value, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="habits")
    logs = relationship(
        "HabitLog", back_populates="habit", cascade="all, delete-orphan",
        order_by="HabitLog.completed_at"
    )

    @validates("frequency")
    def _validate_frequency(self, key, value):
        return _coerce_enum(HabitFrequency, key, value).value


# =============================================================================
# ===================== TABLA 3: HABIT_LOGS ===================================
# =============================================================================
# Un registro por cada vez que se completa un hábito.
# streak_day → en qué día de la racha cae esta completion (1, 2, 3...).
# Las completions de un hábito se registran en orden cronológico: si no,
# la racha no tendría sentido (lo comprueba gamification.next_streak_day).

class HabitLog(Base):
    __tablename__ = "habit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    habit_id = Column(Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)

    completed_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    streak_day = Column(Integer, nullable=False, default=0)
    note = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_habit_logs_habit_completed", "habit_id", "completed_at"),
    )

    habit = relationship("Habit", back_populates="logs")

    @validates("streak_day")
    def _validate_streak_day(self, key, value):
        return _non_negative(key, value)


# =============================================================================
# ===================== TABLA 4: TASKS ========================================
# =============================================================================
# Un hábito es algo recurrente. Una tarea es algo puntual (con fecha límite).

class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    status = Column(String(20), default=TaskStatus.PENDING.value, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    # completed_at → la PRIMERA vez que pasó a DONE (las recompensas se dan una sola vez)

    user = relationship("User", back_populates="tasks")

    @validates("status")
    def _validate_status(self, key, value):
        return _coerce_enum(TaskStatus, key, value).value


# =============================================================================
# ===================== TABLA 5: AVATARS ======================================
# =============================================================================
# Cada usuario tiene UN avatar (una plantita) que crece con los días activos.

class Avatar(Base):
    __tablename__ = "avatars"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    # unique=True → relación 1:1 con el usuario

    stage = Column(String(20), default=AvatarStage.SEED.value, nullable=False)
    total_days = Column(Integer, default=0, nullable=False)
    # total_days → días distintos en los que el usuario completó algo

    user = relationship("User", back_populates="avatar")

    @validates("stage")
    def _validate_stage(self, key, value):
        new_stage = _coerce_enum(AvatarStage, key, value)
        if self.stage is not None and AvatarStage(self.stage).rank > new_stage.rank:
            raise InvalidValue(
                key, value,
                f"El avatar no puede retroceder de {self.stage} a {new_stage.value}"
            )
        return new_stage.value

    @validates("total_days")
    def _validate_total_days(self, key, value):
        return _non_negative(key, value)


# =============================================================================
# ===================== TABLA 6: ACCESSORIES ==================================
# =============================================================================
# Catálogo de accesorios DISPONIBLES (los define el sistema, no el usuario)

class Accessory(Base):
    __tablename__ = "accessories"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(100), unique=True, nullable=False)
    rarity = Column(String(20), default=AccessoryRarity.COMMON.value, nullable=False)
    image_url = Column(String(500), nullable=True)
    price = Column(Integer, default=0, nullable=False)
    # price → monedas necesarias para comprarlo

    @validates("rarity")
    def _validate_rarity(self, key, value):
        return _coerce_enum(AccessoryRarity, key, value).value

    @validates("price")
    def _validate_price(self, key, value):
        return _non_negative(key, value)


# =============================================================================
# ===================== TABLA 7: USER_ACCESSORIES =============================
# =============================================================================
# Accesorios comprados por cada usuario. equipped_at = None → guardado en el
# armario, con fecha → lo lleva puesto su avatar.

class UserAccessory(Base):
    __tablename__ = "user_accessories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    accessory_id = Column(Integer, ForeignKey("accessories.id"), nullable=False)

    acquired_at = Column(DateTime, default=datetime.utcnow)
    equipped_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "accessory_id", name="uq_user_accessory"),
    )

    user = relationship("User", back_populates="accessories")
    accessory = relationship("Accessory")


# =============================================================================
# ===================== TABLA 8: FRIENDSHIPS ==================================
# =============================================================================
# user_id → quien envía la solicitud; friend_id → quien la recibe.
# Una vez aceptada, la amistad vale en las dos direcciones.

class Friendship(Base):
    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    friend_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    status = Column(String(20), default=FriendshipStatus.PENDING.value, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friendship"),
        CheckConstraint("user_id <> friend_id", name="ck_friendship_not_self"),
    )

    user = relationship("User", foreign_keys=[user_id], back_populates="sent_friendships")
    friend = relationship("User", foreign_keys=[friend_id], back_populates="received_friendships")

    @validates("user_id", "friend_id")
    def _validate_not_self(self, key, value):
        other = self.friend_id if key == "user_id" else self.user_id
        if value is not None and other is not None and value == other:
            raise InvalidValue(key, value, "Un usuario no puede ser amigo de sí mismo")
        return value

    @validates("status")
    def _validate_status(self, key, value):
        new_status = _coerce_enum(FriendshipStatus, key, value)
        current = self.status
        if current is None:
            # Toda amistad nace como solicitud
            if new_status is not FriendshipStatus.PENDING:
                raise InvalidValue(key, value, "Una amistad empieza siempre en PENDING")
        elif current != new_status.value and not (
            current == FriendshipStatus.PENDING.value
            and new_status is FriendshipStatus.ACCEPTED
        ):
            raise InvalidValue(
                key, value,
                f"Transición no permitida: {current} → {new_status.value}"
            )
        return new_status.value

    def other_user_id(self, user_id: UserId) -> UserId:
        """Devuelve el id del OTRO lado de la amistad"""
        return self.friend_id if self.user_id == user_id else self.user_id
