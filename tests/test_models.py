import pytest
from sqlalchemy.exc import IntegrityError

from errors import InvalidValue
from models import (
    Habit, Task, Avatar, Accessory, UserAccessory, Friendship, User,
    HabitFrequency, TaskStatus, AvatarStage, AccessoryRarity, FriendshipStatus, UserRole
)


class TestEnums:
    def test_habit_frequency_values(self):
        assert {f.value for f in HabitFrequency} == {"DAILY", "WEEKLY"}

    def test_task_status_values(self):
        assert {s.value for s in TaskStatus} == {"PENDING", "DONE"}

    def test_rarity_values(self):
        assert {r.value for r in AccessoryRarity} == {"COMMON", "RARE", "EPIC"}

    def test_avatar_stages_are_ordered(self):
        ranks = [stage.rank for stage in AvatarStage]
        assert ranks == sorted(ranks)
        assert AvatarStage.SEED.rank == 0
        assert AvatarStage.SPROUT.rank < AvatarStage.TREE.rank


class TestEnumFields:
    def test_habit_accepts_enum_and_string(self):
        assert Habit(name="Leer", frequency=HabitFrequency.WEEKLY).frequency == "WEEKLY"
        assert Habit(name="Leer", frequency="DAILY").frequency == "DAILY"

    def test_habit_rejects_unknown_frequency(self):
        with pytest.raises(InvalidValue) as exc:
            Habit(name="Leer", frequency="MONTHLY")
        assert exc.value.field == "frequency"
        assert exc.value.status_code == 400

    def test_task_rejects_unknown_status(self):
        with pytest.raises(InvalidValue):
            Task(title="Comprar pan", status="CANCELLED")

    def test_accessory_rejects_unknown_rarity(self):
        with pytest.raises(InvalidValue):
            Accessory(name="Capa", rarity="LEGENDARY")


class TestUserCounters:
    def test_negative_coins_rejected(self):
        with pytest.raises(InvalidValue):
            User(username="ana", email="ana@x.com", password_hash="x", coins=-1)

    def test_negative_xp_rejected(self):
        user = User(username="ana", email="ana@x.com", password_hash="x", xp=0)
        with pytest.raises(InvalidValue):
            user.xp = -10

    def test_level_starts_at_one(self):
        with pytest.raises(InvalidValue):
            User(username="ana", email="ana@x.com", password_hash="x", level=0)

    def test_role(self):
        user = User(username="ana", email="ana@x.com", password_hash="x", role=UserRole.USER)
        assert not user.is_admin
        user.role = "ADMIN"
        assert user.is_admin
        with pytest.raises(InvalidValue):
            user.role = "SUPERUSER"

    def test_email_is_unique(self, db_session, make_user):
        make_user("ana")
        db_session.add(User(username="otra", email="ana@example.com", password_hash="x"))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestAvatar:
    def test_stage_can_grow(self):
        avatar = Avatar(stage=AvatarStage.SEED, total_days=0)
        avatar.stage = AvatarStage.SPROUT
        avatar.stage = "TREE"
        assert avatar.stage == "TREE"

    def test_stage_never_goes_back(self):
        avatar = Avatar(stage=AvatarStage.TREE, total_days=40)
        with pytest.raises(InvalidValue):
            avatar.stage = AvatarStage.SPROUT
        assert avatar.stage == "TREE"

    def test_total_days_non_negative(self):
        with pytest.raises(InvalidValue):
            Avatar(stage=AvatarStage.SEED, total_days=-1)

    def test_one_avatar_per_user(self, db_session, make_user):
        user = make_user()
        db_session.add(Avatar(user_id=user.id, stage=AvatarStage.SEED, total_days=0))
        db_session.commit()
        db_session.add(Avatar(user_id=user.id, stage=AvatarStage.SEED, total_days=0))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestFriendship:
    def test_self_friendship_rejected(self):
        with pytest.raises(InvalidValue):
            Friendship(user_id=1, friend_id=1)

    def test_self_friendship_rejected_when_reassigned(self):
        friendship = Friendship(user_id=1, friend_id=2)
        with pytest.raises(InvalidValue):
            friendship.friend_id = 1

    def test_starts_pending(self):
        with pytest.raises(InvalidValue):
            Friendship(user_id=1, friend_id=2, status=FriendshipStatus.ACCEPTED)

    def test_pending_to_accepted(self):
        friendship = Friendship(user_id=1, friend_id=2, status=FriendshipStatus.PENDING)
        friendship.status = FriendshipStatus.ACCEPTED
        assert friendship.status == "ACCEPTED"

    def test_accepted_cannot_go_back(self):
        friendship = Friendship(user_id=1, friend_id=2, status=FriendshipStatus.PENDING)
        friendship.status = FriendshipStatus.ACCEPTED
        with pytest.raises(InvalidValue):
            friendship.status = FriendshipStatus.PENDING

    def test_other_user_id(self):
        friendship = Friendship(user_id=1, friend_id=2)
        assert friendship.other_user_id(1) == 2
        assert friendship.other_user_id(2) == 1


class TestCascade:
    def test_deleting_user_deletes_everything(self, db_session, make_user):
        user = make_user()
        other = make_user()
        habit = Habit(user_id=user.id, name="Correr", frequency=HabitFrequency.DAILY)
        accessory = Accessory(name="Gorro", rarity=AccessoryRarity.COMMON, price=0)
        db_session.add_all([
            habit,
            Task(user_id=user.id, title="Llamar", status=TaskStatus.PENDING),
            Avatar(user_id=user.id, stage=AvatarStage.SEED, total_days=0),
            Friendship(user_id=user.id, friend_id=other.id, status=FriendshipStatus.PENDING),
            accessory,
        ])
        db_session.commit()
        db_session.add(UserAccessory(user_id=user.id, accessory_id=accessory.id))
        db_session.commit()

        db_session.delete(user)
        db_session.commit()

        assert db_session.query(Habit).count() == 0
        assert db_session.query(Task).count() == 0
        assert db_session.query(Avatar).count() == 0
        assert db_session.query(UserAccessory).count() == 0
        assert db_session.query(Friendship).count() == 0
        # El catálogo no es del usuario
        assert db_session.query(Accessory).count() == 1
