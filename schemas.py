"""
=============================================================================
SCHEMAS.PY — Esquemas de Validación (Pydantic)
=============================================================================
¿Por qué separar Models y Schemas?
  - Models (SQLAlchemy) → definen las TABLAS de la BD
  - Schemas (Pydantic) → definen qué DATOS acepta/devuelve la API

Un schema de respuesta es una "proyección": solo copia los campos que el
cliente puede ver. Por eso ningún XxxResponse tiene password_hash.

Convención de nombres:
  XxxCreate → para crear algo nuevo (POST)
  XxxUpdate → para actualizar algo (PATCH)
  XxxResponse → lo que devuelve la API (GET)
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from constants import (
    PASSWORD_MIN_LENGTH, USERNAME_MIN_LENGTH, USERNAME_MAX_LENGTH, USERNAME_PATTERN
)
from models import (
    User, HabitFrequency, TaskStatus, AvatarStage, AccessoryRarity, FriendshipStatus, UserRole
)


# =============================================================================
# ===================== AUTH / USERS ==========================================
# =============================================================================

class UserRegister(BaseModel):
    """Datos para registrar un usuario nuevo"""
    email: EmailStr
    username: str = Field(
        min_length=USERNAME_MIN_LENGTH, max_length=USERNAME_MAX_LENGTH,
        pattern=USERNAME_PATTERN
    )
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, description="Mínimo 8 caracteres")


class UserLogin(BaseModel):
    """Datos para iniciar sesión"""
    email: EmailStr
    password: str = Field(min_length=1)


class UserUpdate(BaseModel):
    """Campos actualizables del usuario"""
    username: Optional[str] = Field(
        default=None, min_length=USERNAME_MIN_LENGTH, max_length=USERNAME_MAX_LENGTH,
        pattern=USERNAME_PATTERN
    )
    email: Optional[EmailStr] = None


class UserResponseDTO(BaseModel):
    """
    Vista del usuario para la API (su propio perfil).

    Solo id, username, email y los contadores de gamificación.
    Las credenciales (password_hash) no forman parte del modelo, así que
    es imposible que acaben en el JSON.
    """
    id: int
    username: str
    email: str
    coins: int
    xp: int
    level: int
    model_config = {"from_attributes": True}


def build_user_response(
    user: User,
    coins: Optional[int] = None,
    xp: Optional[int] = None,
    level: Optional[int] = None,
) -> UserResponseDTO:
    """
    Proyecta un User a UserResponseDTO.

    Los contadores los puede calcular otro componente y pasarlos aquí;
    si no se pasan, se usan los guardados en el usuario.
    """
    return UserResponseDTO(
        id=user.id,
        username=user.username,
        email=user.email,
        coins=user.coins if coins is None else coins,
        xp=user.xp if xp is None else xp,
        level=user.level if level is None else level,
    )


class UserPublicProfile(BaseModel):
    """Lo que ven OTROS usuarios: sin email ni monedas"""
    id: int
    username: str
    xp: int
    level: int
    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Respuesta con el token JWT"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponseDTO


class UserProgress(BaseModel):
    xp: int
    coins: int
    level: int
    habits_completed: int
    tasks_completed: int
    current_streak: int


class RewardSummary(BaseModel):
    """Lo que se ganó con una acción (completar hábito o tarea)"""
    xp_earned: int
    coins_earned: int
    leveled_up: bool
    new_level: Optional[int] = None


# =============================================================================
# ===================== HABITS ================================================
# =============================================================================

class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    frequency: HabitFrequency = HabitFrequency.DAILY


class HabitUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    frequency: Optional[HabitFrequency] = None


class HabitResponse(BaseModel):
    id: int
    user_id: int
    name: str
    description: Optional[str]
    frequency: HabitFrequency
    created_at: datetime
    model_config = {"from_attributes": True}


class HabitLogCreate(BaseModel):
    completed_at: Optional[datetime] = None
    # completed_at → si no se envía, "ahora"
    note: Optional[str] = Field(default=None, max_length=500)


class HabitLogResponse(BaseModel):
    id: int
    habit_id: int
    completed_at: datetime
    streak_day: int
    note: Optional[str]
    model_config = {"from_attributes": True}


class HabitCompletionResponse(BaseModel):
    log: HabitLogResponse
    reward: RewardSummary
    avatar: "AvatarResponse"


class HabitDetailResponse(HabitResponse):
    current_streak: int
    recent_logs: list[HabitLogResponse]


# =============================================================================
# ===================== TASKS =================================================
# =============================================================================

class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[date] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[date] = None
    status: Optional[TaskStatus] = None


class TaskResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str]
    due_date: Optional[date]
    status: TaskStatus
    created_at: datetime
    completed_at: Optional[datetime]
    model_config = {"from_attributes": True}


# =============================================================================
# ===================== AVATAR & ACCESSORIES ==================================
# =============================================================================

class AvatarResponse(BaseModel):
    id: int
    user_id: int
    stage: AvatarStage
    total_days: int
    model_config = {"from_attributes": True}


class AccessoryResponse(BaseModel):
    id: int
    name: str
    rarity: AccessoryRarity
    image_url: Optional[str]
    price: int
    model_config = {"from_attributes": True}


class UserAccessoryResponse(BaseModel):
    id: int
    user_id: int
    accessory_id: int
    acquired_at: datetime
    equipped_at: Optional[datetime]
    accessory: AccessoryResponse
    model_config = {"from_attributes": True}


# =============================================================================
# ===================== FRIENDS ===============================================
# =============================================================================

class FriendRequestCreate(BaseModel):
    friend_id: int = Field(gt=0)


class FriendshipResponse(BaseModel):
    id: int
    user_id: int
    friend_id: int
    status: FriendshipStatus
    created_at: datetime
    model_config = {"from_attributes": True}


class FriendProgress(BaseModel):
    profile: UserPublicProfile
    progress: UserProgress


class FriendComparison(BaseModel):
    user: FriendProgress
    friend: FriendProgress



# =============================================================================
# ===================== ADMIN =================================================
# =============================================================================

class AdminUserResponse(BaseModel):
    """Vista de administrador: incluye rol y fecha de alta (nunca el hash)"""
    id: int
    username: str
    email: str
    role: UserRole
    coins: int
    xp: int
    level: int
    created_at: datetime
    model_config = {"from_attributes": True}


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class AdminUserPage(BaseModel):
    users: list[AdminUserResponse]
    meta: PageMeta


class RoleUpdate(BaseModel):
    role: UserRole


class SystemStats(BaseModel):
    total_users: int
    total_habits: int
    total_tasks: int
    total_completions: int


class AccessoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    rarity: AccessoryRarity = AccessoryRarity.COMMON
    image_url: Optional[str] = Field(default=None, max_length=500)
    price: Optional[int] = Field(default=None, ge=0)
    # price → si no se envía, el precio de su rareza


class AccessoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    rarity: Optional[AccessoryRarity] = None
    image_url: Optional[str] = Field(default=None, max_length=500)
    price: Optional[int] = Field(default=None, ge=0)


HabitCompletionResponse.model_rebuild()
