"""
=============================================================================
SOCIAL.PY — Amistades y comparación de progreso
=============================================================================
Ciclo de vida de una amistad:
  1. A envía una solicitud a B        → Friendship(user_id=A, friend_id=B, PENDING)
  2. B la acepta                      → ACCEPTED
     (o B la rechaza / A la cancela   → se borra)
  3. Cualquiera de los dos la elimina → se borra

Una vez aceptada, la amistad vale en las DOS direcciones: por eso las
consultas buscan al usuario tanto en user_id como en friend_id.
"""

import logging

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from constants import MAX_FRIENDS
from errors import Conflict, InvalidValue, ReferenceNotFound
from gamification import get_progress
from models import User, Friendship, FriendshipStatus, UserId, FriendshipId

logger = logging.getLogger("gohabit.social")


def _involving(user_id: UserId):
    """Filtro: amistades donde el usuario está en cualquiera de los dos lados"""
    return or_(Friendship.user_id == user_id, Friendship.friend_id == user_id)


def count_friends(db: Session, user_id: UserId) -> int:
    return db.query(Friendship).filter(
        _involving(user_id),
        Friendship.status == FriendshipStatus.ACCEPTED.value
    ).count()


def list_friends(db: Session, user: User) -> list[User]:
    """Devuelve los OTROS usuarios de cada amistad aceptada"""
    friendships = db.query(Friendship).filter(
        _involving(user.id),
        Friendship.status == FriendshipStatus.ACCEPTED.value
    ).order_by(Friendship.created_at).all()

    friend_ids = [f.other_user_id(user.id) for f in friendships]
    if not friend_ids:
        return []
    friends = {u.id: u for u in db.query(User).filter(User.id.in_(friend_ids)).all()}
    return [friends[fid] for fid in friend_ids if fid in friends]


def list_incoming_requests(db: Session, user: User) -> list[Friendship]:
    """Solicitudes PENDING que ha recibido el usuario"""
    return db.query(Friendship).filter(
        Friendship.friend_id == user.id,
        Friendship.status == FriendshipStatus.PENDING.value
    ).order_by(Friendship.created_at.desc()).all()


def find_friendship(db: Session, user_id: UserId, other_id: UserId):
    """Amistad (en cualquier estado) entre dos usuarios, en cualquier dirección"""
    return db.query(Friendship).filter(or_(
        and_(Friendship.user_id == user_id, Friendship.friend_id == other_id),
        and_(Friendship.user_id == other_id, Friendship.friend_id == user_id),
    )).first()


def send_friend_request(db: Session, user: User, friend_id: UserId) -> Friendship:
    """
    Envía una solicitud de amistad (hace commit).

    Errores:
      - InvalidValue si es a uno mismo o ya tiene el máximo de amigos
      - ReferenceNotFound si el otro usuario no existe
      - Conflict si ya hay una solicitud/amistad en cualquier dirección
    """
    if friend_id == user.id:
        raise InvalidValue("friend_id", friend_id, "No puedes enviarte una solicitud a ti mismo")

    if db.get(User, friend_id) is None:
        raise ReferenceNotFound("Usuario", friend_id)

    if find_friendship(db, user.id, friend_id) is not None:
        raise Conflict("Ya existe una solicitud o amistad con este usuario")

    if count_friends(db, user.id) >= MAX_FRIENDS:
        raise InvalidValue("friend_id", friend_id, f"Máximo {MAX_FRIENDS} amigos")

    friendship = Friendship(
        user_id=user.id,
        friend_id=friend_id,
        status=FriendshipStatus.PENDING
    )
    db.add(friendship)
    db.commit()
    db.refresh(friendship)

    logger.info(f"🤝 Solicitud de amistad {user.id} → {friend_id}")
    return friendship


def accept_friend_request(db: Session, user: User, friendship_id: FriendshipId) -> Friendship:
    """Solo el RECEPTOR puede aceptar, y solo solicitudes PENDING (hace commit)"""
    friendship = db.query(Friendship).filter(
        Friendship.id == friendship_id,
        Friendship.friend_id == user.id,
        Friendship.status == FriendshipStatus.PENDING.value
    ).first()
    if friendship is None:
        raise ReferenceNotFound("Solicitud de amistad", friendship_id)

    # El límite vale para los dos lados: el emisor pudo llenarse mientras tanto
    for side in (friendship.friend_id, friendship.user_id):
        if count_friends(db, side) >= MAX_FRIENDS:
            raise InvalidValue(
                "friendship_id", friendship_id,
                f"Máximo {MAX_FRIENDS} amigos (usuario {side})"
            )

    friendship.status = FriendshipStatus.ACCEPTED
    db.commit()
    db.refresh(friendship)

    logger.info(f"🤝 Amistad aceptada: {friendship.user_id} ↔ {friendship.friend_id}")
    return friendship


def remove_friendship(db: Session, user: User, friendship_id: FriendshipId):
    """
    Borra una amistad o solicitud (hace commit).
    Cualquiera de los dos lados puede hacerlo: así se rechaza o cancela
    una solicitud pendiente, o se deja de ser amigos.
    """
    friendship = db.query(Friendship).filter(
        Friendship.id == friendship_id,
        _involving(user.id)
    ).first()
    if friendship is None:
        raise ReferenceNotFound("Amistad", friendship_id)

    db.delete(friendship)
    db.commit()
    logger.info(f"💔 Amistad {friendship_id} eliminada por {user.id}")


def compare_progress(db: Session, user: User, friend_id: UserId) -> dict:
    """
    Compara el progreso del usuario con el de un amigo.
    Solo entre amigos ACEPTADOS.
    """
    friendship = find_friendship(db, user.id, friend_id)
    if friendship is None or friendship.status != FriendshipStatus.ACCEPTED.value:
        raise ReferenceNotFound("Amigo", friend_id)

    friend = db.get(User, friend_id)
    if friend is None:
        raise ReferenceNotFound("Usuario", friend_id)

    return {
        "user": {"profile": user, "progress": get_progress(db, user)},
        "friend": {"profile": friend, "progress": get_progress(db, friend)},
    }
