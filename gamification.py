"""
=============================================================================
GAMIFICATION.PY — Sistema de Gamificación
=============================================================================
Gestiona:
  - XP, monedas y niveles
  - Rachas (streak_day de cada HabitLog)
  - Crecimiento del avatar (semilla → árbol)
  - Catálogo y tienda de accesorios

Las funciones que modifican datos NO hacen commit salvo que su docstring
diga "(hace commit)". Las que sí lo hacen (complete_habit, la tienda)
hacen UN solo commit al final, así la completion, las monedas y el avatar
se guardan juntos o no se guarda nada.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from errors import Conflict, InvalidValue, ReferenceNotFound
from models import (
    User, Habit, HabitLog, Task, Avatar, Accessory, UserAccessory,
    HabitFrequency, TaskStatus, AvatarStage, AccessoryRarity,
    UserId, AccessoryId
)

logger = logging.getLogger("gohabit.gamification")


# =============================================================================
# ===================== XP, MONEDAS Y NIVELES =================================
# =============================================================================
# Los puntos (xp) miden el progreso; las monedas se gastan en la tienda.
# Nivel: uno nuevo cada 100 xp → nivel = xp // 100 + 1

XP_REWARDS = {
    "habit_complete": 10,     # Completar un hábito
    "task_complete": 15,      # Completar una tarea
}

COIN_REWARDS = {
    "habit_complete": 5,
    "task_complete": 10,
}

STREAK_BONUS_XP = 5       # xp extra por cada periodo seguido de racha (a partir del 2º)
XP_PER_LEVEL = 100
LEVEL_UP_COINS = 25       # monedas extra por cada nivel que se sube


def calculate_level(total_xp: int) -> int:
    """Calcula el nivel basándose en el XP total acumulado"""
    return total_xp // XP_PER_LEVEL + 1


def award(user: User, action: str, streak_day: int = 0) -> dict:
    """
    Otorga xp y monedas al usuario por una acción.

    Retorna:
      {"xp_earned": 15, "coins_earned": 30, "leveled_up": True, "new_level": 2}
    """
    base_xp = XP_REWARDS.get(action, 0)
    if base_xp == 0:
        return {"xp_earned": 0, "coins_earned": 0, "leveled_up": False, "new_level": None}

    xp_earned = base_xp + STREAK_BONUS_XP * max(streak_day - 1, 0)
    coins_earned = COIN_REWARDS.get(action, 0)

    old_level = user.level
    user.xp += xp_earned
    new_level = calculate_level(user.xp)

    leveled_up = new_level > old_level
    if leveled_up:
        coins_earned += LEVEL_UP_COINS * (new_level - old_level)
        user.level = new_level
        logger.info(f"⬆️ {user.username} sube a nivel {new_level}")

    user.coins += coins_earned

    return {
        "xp_earned": xp_earned,
        "coins_earned": coins_earned,
        "leveled_up": leveled_up,
        "new_level": new_level if leveled_up else None,
    }


# =============================================================================
# ===================== SISTEMA DE RACHAS =====================================
# =============================================================================
# Un hábito DAILY se completa una vez por día; uno WEEKLY una vez por semana
# ISO (lunes a domingo). Si la completion anterior fue en el periodo justo
# anterior, la racha sigue (+1); si hubo un hueco, vuelve a empezar en 1.

FUTURE_TOLERANCE = timedelta(minutes=5)


def to_naive_utc(moment: datetime) -> datetime:
    """Las fechas se guardan en UTC sin zona horaria"""
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def period_start(frequency: str, moment: Union[date, datetime]) -> date:
    """Primer día del periodo (día o semana) en el que cae una fecha"""
    day = moment.date() if isinstance(moment, datetime) else moment
    if HabitFrequency(frequency) is HabitFrequency.WEEKLY:
        return day - timedelta(days=day.weekday())
    return day


def periods_between(frequency: str, earlier: Union[date, datetime], later: Union[date, datetime]) -> int:
    """Cuántos periodos hay entre dos fechas (0 = el mismo periodo)"""
    step = 7 if HabitFrequency(frequency) is HabitFrequency.WEEKLY else 1
    return (period_start(frequency, later) - period_start(frequency, earlier)).days // step


def last_log(db: Session, habit: Habit) -> Optional[HabitLog]:
    """La completion más reciente de un hábito"""
    return db.query(HabitLog).filter(
        HabitLog.habit_id == habit.id
    ).order_by(HabitLog.completed_at.desc(), HabitLog.id.desc()).first()


def next_streak_day(db: Session, habit: Habit, completed_at: datetime) -> int:
    """
    Calcula el streak_day de una nueva completion.

    - Sin completions previas → 1
    - Anterior en el periodo justo anterior → racha anterior + 1
    - Anterior más lejos → 1
    - Anterior en el MISMO periodo → Conflict (ya está completado)
    - Anterior POSTERIOR a completed_at → InvalidValue (las completions van en orden)
    """
    previous = last_log(db, habit)
    if previous is None:
        return 1

    if completed_at < previous.completed_at:
        raise InvalidValue(
            "completed_at", completed_at.isoformat(),
            "La completion no puede ser anterior a la última registrada"
        )

    gap = periods_between(habit.frequency, previous.completed_at, completed_at)
    if gap == 0:
        raise Conflict("El hábito ya está completado en este periodo")
    if gap == 1:
        return previous.streak_day + 1
    return 1


def current_streak(db: Session, habit: Habit, now: Optional[datetime] = None) -> int:
    """Racha viva del hábito: 0 si ya se saltó un periodo"""
    previous = last_log(db, habit)
    if previous is None:
        return 0
    gap = periods_between(habit.frequency, previous.completed_at, now or datetime.utcnow())
    return previous.streak_day if gap <= 1 else 0


def complete_habit(
    db: Session,
    user: User,
    habit: Habit,
    completed_at: Optional[datetime] = None,
    note: Optional[str] = None,
) -> tuple[HabitLog, dict, Avatar]:
    """
    Registra una completion de un hábito (hace commit).

    Flujo:
      1. Calcular el streak_day (valida orden y periodo)
      2. Hacer crecer el avatar si es el primer logro del día
      3. Crear el HabitLog
      4. Dar xp y monedas
    """
    now = datetime.utcnow()
    completed_at = to_naive_utc(completed_at) if completed_at else now
    if completed_at > now + FUTURE_TOLERANCE:
        raise InvalidValue("completed_at", completed_at.isoformat(), "No se puede completar en el futuro")

    streak_day = next_streak_day(db, habit, completed_at)
    avatar = grow_avatar(db, user, completed_at.date())

    log = HabitLog(
        habit_id=habit.id,
        completed_at=completed_at,
        streak_day=streak_day,
        note=note
    )
    db.add(log)

    reward = award(user, "habit_complete", streak_day)

    db.commit()
    db.refresh(log)
    db.refresh(avatar)

    logger.info(f"✅ {user.username} completó '{habit.name}' (racha: {streak_day})")
    return log, reward, avatar


def complete_task(db: Session, user: User, task: Task) -> Optional[dict]:
    """
    Marca la PRIMERA completion de una tarea: completed_at, avatar y
    recompensa. Si ya se había completado antes no hace nada y devuelve None.
    El commit lo hace quien la llama.
    """
    if task.completed_at is not None:
        return None

    now = datetime.utcnow()
    grow_avatar(db, user, now.date())
    task.completed_at = now
    reward = award(user, "task_complete")

    logger.info(f"✅ {user.username} terminó la tarea '{task.title}'")
    return reward


# =============================================================================
# ===================== AVATAR ================================================
# =============================================================================
# El avatar crece con los DÍAS ACTIVOS (días distintos con al menos una
# completion). La etapa nunca retrocede.

AVATAR_STAGE_THRESHOLDS = {
    AvatarStage.SEED: 0,
    AvatarStage.SPROUT: 3,
    AvatarStage.SAPLING: 10,
    AvatarStage.TREE: 30,
    AvatarStage.ANCIENT_TREE: 100,
}


def stage_for_days(total_days: int) -> AvatarStage:
    """Etapa que corresponde a un número de días activos"""
    stage = AvatarStage.SEED
    for candidate, days in sorted(AVATAR_STAGE_THRESHOLDS.items(), key=lambda item: item[1]):
        if total_days >= days:
            stage = candidate
    return stage


def create_avatar(db: Session, user: User) -> Avatar:
    """Crea el avatar del usuario (si no lo tiene ya)"""
    if user.avatar is not None:
        return user.avatar
    avatar = Avatar(stage=AvatarStage.SEED, total_days=0)
    user.avatar = avatar
    db.add(avatar)
    return avatar


def was_active_on(db: Session, user_id: UserId, day: date) -> bool:
    """¿Completó el usuario algún hábito o alguna tarea ese día?"""
    start = datetime.combine(day, datetime.min.time())
    end = start + timedelta(days=1)
    habit_logs = db.query(func.count(HabitLog.id)).join(Habit).filter(
        Habit.user_id == user_id,
        HabitLog.completed_at >= start,
        HabitLog.completed_at < end
    ).scalar()
    if habit_logs:
        return True
    tasks = db.query(func.count(Task.id)).filter(
        Task.user_id == user_id,
        Task.completed_at >= start,
        Task.completed_at < end
    ).scalar()
    return tasks > 0


def grow_avatar(db: Session, user: User, day: date) -> Avatar:
    """
    Suma un día activo al avatar si es la primera completion del usuario
    ese día, y sube de etapa si toca. Hay que llamarla ANTES de guardar
    la completion (HabitLog o Task.completed_at).
    """
    avatar = create_avatar(db, user)
    if was_active_on(db, user.id, day):
        return avatar

    avatar.total_days += 1
    new_stage = stage_for_days(avatar.total_days)
    if new_stage.rank > AvatarStage(avatar.stage).rank:
        avatar.stage = new_stage
        logger.info(f"🌳 El avatar de {user.username} crece a {new_stage.value}")
    return avatar


# =============================================================================
# ===================== PROGRESO ==============================================
# =============================================================================

def get_progress(db: Session, user: User) -> dict:
    """Resumen del progreso del usuario"""
    habits_completed = db.query(func.count(HabitLog.id)).join(Habit).filter(
        Habit.user_id == user.id
    ).scalar()
    tasks_completed = db.query(func.count(Task.id)).filter(
        Task.user_id == user.id,
        Task.status == TaskStatus.DONE.value
    ).scalar()

    habits = db.query(Habit).filter(Habit.user_id == user.id).all()
    streak = max((current_streak(db, h) for h in habits), default=0)

    return {
        "xp": user.xp,
        "coins": user.coins,
        "level": user.level,
        "habits_completed": habits_completed,
        "tasks_completed": tasks_completed,
        "current_streak": streak,
    }


# =============================================================================
# ===================== ACCESORIOS ============================================
# =============================================================================
# Catálogo fijo que se inserta al arrancar. El precio depende de la rareza.

RARITY_PRICES = {
    AccessoryRarity.COMMON: 20,
    AccessoryRarity.RARE: 60,
    AccessoryRarity.EPIC: 150,
}

ACCESSORY_CATALOG = [
    {"name": "Sombrero de paja", "rarity": AccessoryRarity.COMMON, "image_url": "/static/accessories/straw-hat.png"},
    {"name": "Bufanda de lana", "rarity": AccessoryRarity.COMMON, "image_url": "/static/accessories/scarf.png"},
    {"name": "Gafas de sol", "rarity": AccessoryRarity.COMMON, "image_url": "/static/accessories/sunglasses.png"},
    {"name": "Regadera", "rarity": AccessoryRarity.COMMON, "image_url": "/static/accessories/watering-can.png"},
    {"name": "Maceta de barro", "rarity": AccessoryRarity.RARE, "image_url": "/static/accessories/clay-pot.png"},
    {"name": "Mariposa azul", "rarity": AccessoryRarity.RARE, "image_url": "/static/accessories/butterfly.png"},
    {"name": "Farolillo", "rarity": AccessoryRarity.RARE, "image_url": "/static/accessories/lantern.png"},
    {"name": "Corona de flores", "rarity": AccessoryRarity.EPIC, "image_url": "/static/accessories/flower-crown.png"},
    {"name": "Luciérnagas", "rarity": AccessoryRarity.EPIC, "image_url": "/static/accessories/fireflies.png"},
]


def seed_accessories(db: Session):
    """
    Inserta el catálogo de accesorios en la BD si no existen.
    Se ejecuta al arrancar la aplicación (hace commit).
    """
    for item in ACCESSORY_CATALOG:
        existing = db.query(Accessory).filter(Accessory.name == item["name"]).first()
        if not existing:
            db.add(Accessory(
                name=item["name"],
                rarity=item["rarity"],
                image_url=item["image_url"],
                price=RARITY_PRICES[item["rarity"]]
            ))
    db.commit()
    logger.info(f"✅ {len(ACCESSORY_CATALOG)} accesorios verificados en BD")


def _get_owned(db: Session, user: User, accessory_id: AccessoryId) -> UserAccessory:
    owned = db.query(UserAccessory).filter(
        UserAccessory.user_id == user.id,
        UserAccessory.accessory_id == accessory_id
    ).first()
    if owned is None:
        raise ReferenceNotFound("Accesorio del usuario", accessory_id)
    return owned


def purchase_accessory(db: Session, user: User, accessory_id: AccessoryId) -> UserAccessory:
    """
    Compra un accesorio del catálogo (hace commit).

    Errores:
      - ReferenceNotFound si el accesorio no existe
      - Conflict si ya lo tiene
      - InvalidValue si no tiene monedas suficientes
    """
    accessory = db.get(Accessory, accessory_id)
    if accessory is None:
        raise ReferenceNotFound("Accesorio", accessory_id)

    already = db.query(UserAccessory).filter(
        UserAccessory.user_id == user.id,
        UserAccessory.accessory_id == accessory.id
    ).first()
    if already:
        raise Conflict("Ya tienes este accesorio")

    if user.coins < accessory.price:
        raise InvalidValue(
            "coins", user.coins,
            f"Monedas insuficientes: cuesta {accessory.price}, tienes {user.coins}"
        )

    user.coins -= accessory.price
    owned = UserAccessory(user_id=user.id, accessory_id=accessory.id)
    db.add(owned)
    db.commit()
    db.refresh(owned)

    logger.info(f"🛍️ {user.username} compró '{accessory.name}' por {accessory.price} monedas")
    return owned


def equip_accessory(db: Session, user: User, accessory_id: AccessoryId) -> UserAccessory:
    """Pone un accesorio al avatar (hace commit)"""
    owned = _get_owned(db, user, accessory_id)
    if owned.equipped_at is None:
        owned.equipped_at = datetime.utcnow()
        db.commit()
        db.refresh(owned)
    return owned


def unequip_accessory(db: Session, user: User, accessory_id: AccessoryId) -> UserAccessory:
    """Quita un accesorio del avatar (hace commit)"""
    owned = _get_owned(db, user, accessory_id)
    owned.equipped_at = None
    db.commit()
    db.refresh(owned)
    return owned
