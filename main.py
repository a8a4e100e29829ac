"""
=============================================================================
MAIN.PY — La API de GoHabit
=============================================================================
Este archivo define TODOS los endpoints de la API REST.

Organización por secciones:
  1. AUTH         → Registro, login, perfil propio
  2. USERS        → Perfil público, progreso
  3. HABITS       → CRUD de hábitos y completions
  4. TASKS        → CRUD de tareas y calendario
  5. AVATAR       → Avatar y accesorios (tienda y armario)
  6. FRIENDS      → Solicitudes, amigos, comparación
  7. EXPORT       → Descarga de todos los datos del usuario
  8. ADMIN        → Usuarios, roles, estadísticas y catálogo (solo ADMIN)

Los errores del dominio (errors.py) se convierten en JSON con su código
HTTP en un exception handler, así los endpoints solo tienen que lanzarlos.
"""

import os
import logging
import traceback
from datetime import datetime, date
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, status, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth import (
    hash_password, verify_password, create_access_token, get_current_user,
    require_admin, is_admin_email
)
from constants import MAX_HABITS_PER_USER, MAX_TASKS_PER_USER, ADMIN_PAGE_SIZE, ADMIN_MAX_PAGE_SIZE
from database import get_db, init_db, SessionLocal
from errors import GoHabitError, ReferenceNotFound, InvalidValue, Conflict
from gamification import (
    seed_accessories, complete_habit, complete_task, create_avatar, current_streak,
    get_progress, purchase_accessory, equip_accessory, unequip_accessory
)
from models import (
    User, Habit, HabitLog, Task, Accessory, UserAccessory, Friendship,
    TaskStatus, AccessoryRarity, UserRole, HabitId, TaskId
)
from schemas import (
    UserRegister, UserLogin, UserUpdate, UserResponseDTO, UserPublicProfile,
    TokenResponse, UserProgress, RewardSummary, build_user_response,
    HabitCreate, HabitUpdate, HabitResponse, HabitDetailResponse,
    HabitLogCreate, HabitLogResponse, HabitCompletionResponse,
    TaskCreate, TaskUpdate, TaskResponse,
    AvatarResponse, AccessoryResponse, UserAccessoryResponse,
    FriendRequestCreate, FriendshipResponse, FriendComparison,
    AdminUserPage, AdminUserResponse, RoleUpdate, SystemStats,
    AccessoryCreate, AccessoryUpdate
)
import admin
import social

# ─────────────────────────────────────────────────────────────────────────────
# LOGGING
# ─────────────────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s"
)
logger = logging.getLogger("gohabit.api")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


# ─────────────────────────────────────────────────────────────────────────────
# LIFESPAN (Arranque y apagado)
# ─────────────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Arranque:
      1. Inicializar BD (crear tablas)
      2. Insertar el catálogo de accesorios
    """
    logger.info("🚀 Arrancando GoHabit...")

    init_db()
    logger.info("✅ Base de datos inicializada")

    db = SessionLocal()
    try:
        seed_accessories(db)
    finally:
        db.close()

    logger.info("🎉 GoHabit operativo")

    yield  # ← La aplicación está corriendo

    logger.info("👋 Apagado completo")


# ─────────────────────────────────────────────────────────────────────────────
# APLICACIÓN FASTAPI
# ─────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="GoHabit API",
    description="Hábitos, tareas, avatar y amigos",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─────────────────────────────────────────────────────────────────────────────
# ERROR HANDLERS
# ─────────────────────────────────────────────────────────────────────────────

@app.exception_handler(GoHabitError)
async def gohabit_error_handler(request: Request, exc: GoHabitError):
    """Errores del dominio → su código HTTP"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, **exc.details}
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Una restricción de la BD (unique, foreign key...) ha saltado"""
    logger.warning(f"⚠️ IntegrityError en {request.url}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "El dato choca con otro existente", "code": Conflict.code}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Captura errores no manejados, los registra y devuelve un 500"""
    logger.error(f"❌ Error no manejado en {request.url}: {exc}\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Error interno del servidor",
            "code": "INTERNAL_ERROR",
            "type": type(exc).__name__,
        }
    )


# ─────────────────────────────────────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────────────────────────────────────

def _get_habit(db: Session, user: User, habit_id: HabitId) -> Habit:
    """Hábito del usuario o ReferenceNotFound"""
    habit = db.query(Habit).filter(Habit.id == habit_id, Habit.user_id == user.id).first()
    if not habit:
        raise ReferenceNotFound("Hábito", habit_id)
    return habit


def _get_task(db: Session, user: User, task_id: TaskId) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == user.id).first()
    if not task:
        raise ReferenceNotFound("Tarea", task_id)
    return task


# =============================================================================
# ===================== HEALTH CHECK ==========================================
# =============================================================================

@app.get("/", tags=["Health"])
@app.get("/health", tags=["Health"])
def health_check():
    """Verifica que la API está viva"""
    return {
        "status": "ok",
        "service": "gohabit-backend",
        "timestamp": datetime.utcnow().isoformat()
    }


# =============================================================================
# ===================== SECCIÓN 1: AUTH =======================================
# =============================================================================

@app.post("/auth/register", response_model=TokenResponse, status_code=201, tags=["Auth"])
def register(data: UserRegister, db: Session = Depends(get_db)):
    """
    Registra un usuario nuevo.

    Flujo:
      1. Verificar que el email y el username no existen
      2. Hashear la contraseña
      3. Crear el usuario y su avatar
      4. Generar y devolver token JWT
    """
    existing = db.query(User).filter(
        or_(User.email == data.email, User.username == data.username)
    ).first()
    if existing:
        raise Conflict("Ya existe una cuenta con este email o nombre de usuario")

    user = User(
        email=data.email,
        username=data.username,
        password_hash=hash_password(data.password),
        role=UserRole.ADMIN if is_admin_email(data.email) else UserRole.USER,
        coins=0,
        xp=0,
        level=1
    )
    db.add(user)
    create_avatar(db, user)
    db.commit()
    db.refresh(user)

    token = create_access_token(user.id, user.email)
    logger.info(f"👤 Nuevo usuario registrado: {user.username} ({user.email})")

    return TokenResponse(access_token=token, user=build_user_response(user))


@app.post("/auth/login", response_model=TokenResponse, tags=["Auth"])
def login(data: UserLogin, db: Session = Depends(get_db)):
    """Inicia sesión con email y contraseña"""
    user = db.query(User).filter(User.email == data.email).first()

    # Mismo mensaje en los dos casos: no revelamos si el email existe
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email o contraseña incorrectos"
        )

    token = create_access_token(user.id, user.email)
    return TokenResponse(access_token=token, user=build_user_response(user))


@app.get("/auth/me", response_model=UserResponseDTO, tags=["Auth"])
def get_me(user: User = Depends(get_current_user)):
    """Devuelve los datos del usuario autenticado"""
    return build_user_response(user)


@app.patch("/auth/me", response_model=UserResponseDTO, tags=["Auth"])
def update_me(data: UserUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Cambia username o email (tienen que seguir siendo únicos)"""
    if data.username is not None and data.username != user.username:
        taken = db.query(User).filter(User.username == data.username, User.id != user.id).first()
        if taken:
            raise Conflict("Ese nombre de usuario ya está en uso")
        user.username = data.username

    if data.email is not None and data.email != user.email:
        taken = db.query(User).filter(User.email == data.email, User.id != user.id).first()
        if taken:
            raise Conflict("Ya existe una cuenta con este email")
        user.email = data.email

    db.commit()
    db.refresh(user)
    return build_user_response(user)


@app.delete("/auth/me", tags=["Auth"])
def delete_account(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Borra la cuenta y TODOS los datos del usuario (irreversible)"""
    email = user.email
    db.delete(user)
    db.commit()
    logger.info(f"🗑️ Cuenta borrada: {email}")
    return {"message": "Cuenta y todos los datos eliminados correctamente"}


# =============================================================================
# ===================== SECCIÓN 2: USERS ======================================
# =============================================================================

@app.get("/users/me/progress", response_model=UserProgress, tags=["Users"])
def get_my_progress(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """xp, monedas, nivel, completions y racha actual"""
    return get_progress(db, user)


@app.get("/users/{user_id}", response_model=UserPublicProfile, tags=["Users"])
def get_public_profile(
    user_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Perfil público de cualquier usuario (sin email ni monedas)"""
    other = db.get(User, user_id)
    if other is None:
        raise ReferenceNotFound("Usuario", user_id)
    return other


# =============================================================================
# ===================== SECCIÓN 3: HABITS =====================================
# =============================================================================

@app.post("/habits", response_model=HabitResponse, status_code=201, tags=["Habits"])
def create_habit(data: HabitCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Crea un nuevo hábito"""
    count = db.query(func.count(Habit.id)).filter(Habit.user_id == user.id).scalar()
    if count >= MAX_HABITS_PER_USER:
        raise InvalidValue("habits", count, f"Máximo {MAX_HABITS_PER_USER} hábitos por usuario")

    habit = Habit(
        user_id=user.id,
        name=data.name,
        description=data.description,
        frequency=data.frequency
    )
    db.add(habit)
    db.commit()
    db.refresh(habit)

    logger.info(f"➕ Hábito creado: {habit.name} (user: {user.username})")
    return habit


@app.get("/habits", response_model=list[HabitResponse], tags=["Habits"])
def list_habits(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Lista los hábitos del usuario (más recientes primero)"""
    return db.query(Habit).filter(
        Habit.user_id == user.id
    ).order_by(Habit.created_at.desc(), Habit.id.desc()).all()


@app.get("/habits/{habit_id}", response_model=HabitDetailResponse, tags=["Habits"])
def get_habit(habit_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Obtiene un hábito con su racha actual y las últimas 10 completions"""
    habit = _get_habit(db, user, habit_id)
    recent = db.query(HabitLog).filter(
        HabitLog.habit_id == habit.id
    ).order_by(HabitLog.completed_at.desc()).limit(10).all()

    return HabitDetailResponse(
        **HabitResponse.model_validate(habit).model_dump(),
        current_streak=current_streak(db, habit),
        recent_logs=[HabitLogResponse.model_validate(log) for log in recent]
    )


@app.patch("/habits/{habit_id}", response_model=HabitResponse, tags=["Habits"])
def update_habit(
    habit_id: int, data: HabitUpdate,
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Actualiza un hábito"""
    habit = _get_habit(db, user, habit_id)

    update_data = data.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        if value is None and key in ("name", "frequency"):
            raise InvalidValue(key, value)
        setattr(habit, key, value)

    db.commit()
    db.refresh(habit)
    return habit


@app.delete("/habits/{habit_id}", tags=["Habits"])
def delete_habit(habit_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Elimina un hábito y todo su historial"""
    habit = _get_habit(db, user, habit_id)
    name = habit.name
    db.delete(habit)
    db.commit()
    return {"message": f"Hábito '{name}' eliminado"}


@app.post(
    "/habits/{habit_id}/completions", response_model=HabitCompletionResponse,
    status_code=201, tags=["Habits"]
)
def log_completion(
    habit_id: int,
    data: Optional[HabitLogCreate] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Marca un hábito como completado.

    Además:
      - Calcula el día de racha
      - Otorga xp y monedas
      - Hace crecer el avatar si es el primer logro del día
    """
    habit = _get_habit(db, user, habit_id)
    data = data or HabitLogCreate()

    log, reward, avatar = complete_habit(db, user, habit, data.completed_at, data.note)

    return HabitCompletionResponse(
        log=HabitLogResponse.model_validate(log),
        reward=RewardSummary(**reward),
        avatar=AvatarResponse.model_validate(avatar)
    )


@app.get("/habits/{habit_id}/completions", response_model=list[HabitLogResponse], tags=["Habits"])
def list_completions(
    habit_id: int,
    limit: int = Query(default=30, ge=1, le=365),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Historial de completions de un hábito (más recientes primero)"""
    habit = _get_habit(db, user, habit_id)
    return db.query(HabitLog).filter(
        HabitLog.habit_id == habit.id
    ).order_by(HabitLog.completed_at.desc()).limit(limit).all()


# =============================================================================
# ===================== SECCIÓN 4: TASKS ======================================
# =============================================================================

@app.post("/tasks", response_model=TaskResponse, status_code=201, tags=["Tasks"])
def create_task(data: TaskCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Crea una tarea nueva"""
    count = db.query(func.count(Task.id)).filter(Task.user_id == user.id).scalar()
    if count >= MAX_TASKS_PER_USER:
        raise InvalidValue("tasks", count, f"Máximo {MAX_TASKS_PER_USER} tareas por usuario")

    task = Task(
        user_id=user.id,
        title=data.title,
        description=data.description,
        due_date=data.due_date,
        status=TaskStatus.PENDING
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@app.get("/tasks", response_model=list[TaskResponse], tags=["Tasks"])
def list_tasks(
    status_filter: Optional[TaskStatus] = Query(default=None, alias="status"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Lista tareas: primero por fecha límite, luego las más recientes"""
    query = db.query(Task).filter(Task.user_id == user.id)
    if status_filter is not None:
        query = query.filter(Task.status == status_filter.value)
    return query.order_by(Task.due_date.asc().nullslast(), Task.created_at.desc()).all()


@app.get("/tasks/{task_id}", response_model=TaskResponse, tags=["Tasks"])
def get_task(task_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _get_task(db, user, task_id)


@app.patch("/tasks/{task_id}", response_model=TaskResponse, tags=["Tasks"])
def update_task(
    task_id: int, data: TaskUpdate,
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """
    Actualiza una tarea.
    La PRIMERA vez que pasa a DONE se registra completed_at y se dan xp y monedas.
    """
    task = _get_task(db, user, task_id)

    update_data = data.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        if value is None and key in ("title", "status"):
            raise InvalidValue(key, value)
        setattr(task, key, value)

    if task.status == TaskStatus.DONE.value:
        complete_task(db, user, task)

    db.commit()
    db.refresh(task)
    return task


@app.delete("/tasks/{task_id}", tags=["Tasks"])
def delete_task(task_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Elimina una tarea"""
    task = _get_task(db, user, task_id)
    db.delete(task)
    db.commit()
    return {"message": "Tarea eliminada"}


@app.get("/calendar", response_model=list[TaskResponse], tags=["Tasks"])
def get_calendar(
    start: date,
    end: date,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Tareas con fecha límite dentro del rango [start, end].
    Ejemplo: /calendar?start=2025-03-01&end=2025-03-31
    """
    if end < start:
        raise InvalidValue("end", end.isoformat(), "'end' no puede ser anterior a 'start'")

    return db.query(Task).filter(
        Task.user_id == user.id,
        Task.due_date >= start,
        Task.due_date <= end
    ).order_by(Task.due_date.asc(), Task.id.asc()).all()


# =============================================================================
# ===================== SECCIÓN 5: AVATAR & ACCESORIOS ========================
# =============================================================================

@app.get("/avatar", response_model=AvatarResponse, tags=["Avatar"])
def get_avatar(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """El avatar del usuario (se crea si por algún motivo no existe)"""
    if user.avatar is None:
        create_avatar(db, user)
        db.commit()
    return user.avatar


@app.get("/accessories", response_model=list[AccessoryResponse], tags=["Avatar"])
def list_accessories(rarity: Optional[AccessoryRarity] = None, db: Session = Depends(get_db)):
    """Catálogo de accesorios, de más barato a más caro (no requiere autenticación)"""
    query = db.query(Accessory)
    if rarity is not None:
        query = query.filter(Accessory.rarity == rarity.value)
    return query.order_by(Accessory.price.asc(), Accessory.name.asc()).all()


@app.get("/accessories/mine", response_model=list[UserAccessoryResponse], tags=["Avatar"])
def list_my_accessories(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Accesorios comprados por el usuario (equipados o no)"""
    return db.query(UserAccessory).filter(
        UserAccessory.user_id == user.id
    ).order_by(UserAccessory.acquired_at.asc()).all()


@app.post(
    "/accessories/{accessory_id}/purchase", response_model=UserAccessoryResponse,
    status_code=201, tags=["Avatar"]
)
def buy_accessory(accessory_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Compra un accesorio con monedas"""
    return purchase_accessory(db, user, accessory_id)


@app.post("/accessories/{accessory_id}/equip", response_model=UserAccessoryResponse, tags=["Avatar"])
def put_on_accessory(accessory_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return equip_accessory(db, user, accessory_id)


@app.post("/accessories/{accessory_id}/unequip", response_model=UserAccessoryResponse, tags=["Avatar"])
def take_off_accessory(accessory_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return unequip_accessory(db, user, accessory_id)


# =============================================================================
# ===================== SECCIÓN 6: FRIENDS ====================================
# =============================================================================

@app.get("/friends", response_model=list[UserPublicProfile], tags=["Friends"])
def list_friends(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Amigos aceptados (en cualquier dirección)"""
    return social.list_friends(db, user)


@app.get("/friends/requests", response_model=list[FriendshipResponse], tags=["Friends"])
def list_friend_requests(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Solicitudes pendientes recibidas"""
    return social.list_incoming_requests(db, user)


@app.get("/friends/compare", response_model=FriendComparison, tags=["Friends"])
def compare_with_friend(
    friend_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Compara el progreso con un amigo: /friends/compare?friend_id=3"""
    return social.compare_progress(db, user, friend_id)


@app.post("/friends", response_model=FriendshipResponse, status_code=201, tags=["Friends"])
def send_friend_request(
    data: FriendRequestCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Envía una solicitud de amistad"""
    return social.send_friend_request(db, user, data.friend_id)


@app.post("/friends/{friendship_id}/accept", response_model=FriendshipResponse, tags=["Friends"])
def accept_friend_request(
    friendship_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Acepta una solicitud recibida"""
    return social.accept_friend_request(db, user, friendship_id)


@app.delete("/friends/{friendship_id}", tags=["Friends"])
def remove_friend(
    friendship_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Rechaza/cancela una solicitud o elimina una amistad"""
    social.remove_friendship(db, user, friendship_id)
    return {"message": "Amistad eliminada"}


# =============================================================================
# ===================== SECCIÓN 7: EXPORT =====================================
# =============================================================================

@app.get("/export/data", tags=["Export"])
def export_all_data(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Exporta TODOS los datos del usuario en formato JSON.
    Cumple con GDPR: el usuario tiene derecho a descargar sus datos.
    """
    habits = db.query(Habit).filter(Habit.user_id == user.id).all()
    habit_logs = db.query(HabitLog).join(Habit).filter(Habit.user_id == user.id).all()
    tasks = db.query(Task).filter(Task.user_id == user.id).all()
    accessories = db.query(UserAccessory).filter(UserAccessory.user_id == user.id).all()
    friendships = db.query(Friendship).filter(
        or_(Friendship.user_id == user.id, Friendship.friend_id == user.id)
    ).all()

    return {
        "export_date": datetime.utcnow().isoformat(),
        "user": build_user_response(user).model_dump(),
        "avatar": AvatarResponse.model_validate(user.avatar).model_dump(mode="json") if user.avatar else None,
        "habits": [HabitResponse.model_validate(h).model_dump(mode="json") for h in habits],
        "habit_logs": [HabitLogResponse.model_validate(log).model_dump(mode="json") for log in habit_logs],
        "tasks": [TaskResponse.model_validate(t).model_dump(mode="json") for t in tasks],
        "accessories": [UserAccessoryResponse.model_validate(a).model_dump(mode="json") for a in accessories],
        "friendships": [FriendshipResponse.model_validate(f).model_dump(mode="json") for f in friendships],
    }


# =============================================================================
# ===================== SECCIÓN 8: ADMIN ======================================
# =============================================================================
# Todo lo de aquí usa require_admin: un usuario normal recibe 403.

@app.get("/admin/users", response_model=AdminUserPage, tags=["Admin"])
def admin_list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=ADMIN_PAGE_SIZE, ge=1, le=ADMIN_MAX_PAGE_SIZE),
    _: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Usuarios paginados: /admin/users?page=2&limit=20"""
    return admin.list_users(db, page, limit)


@app.patch("/admin/users/{user_id}/role", response_model=AdminUserResponse, tags=["Admin"])
def admin_update_role(
    user_id: int,
    data: RoleUpdate,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Promueve o degrada a un usuario (USER ↔ ADMIN)"""
    return admin.update_user_role(db, user_id, data.role)


@app.get("/admin/stats", response_model=SystemStats, tags=["Admin"])
def admin_stats(_: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Totales de usuarios, hábitos, tareas y completions"""
    return admin.get_stats(db)


@app.post("/admin/accessories", response_model=AccessoryResponse, status_code=201, tags=["Admin"])
def admin_create_accessory(
    data: AccessoryCreate,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return admin.create_accessory(db, data.model_dump())


@app.patch("/admin/accessories/{accessory_id}", response_model=AccessoryResponse, tags=["Admin"])
def admin_update_accessory(
    accessory_id: int,
    data: AccessoryUpdate,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return admin.update_accessory(db, accessory_id, data.model_dump(exclude_unset=True))


@app.delete("/admin/accessories/{accessory_id}", tags=["Admin"])
def admin_delete_accessory(
    accessory_id: int,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Quita un accesorio del catálogo (si nadie lo ha comprado)"""
    admin.delete_accessory(db, accessory_id)
    return {"message": "Accesorio eliminado"}
