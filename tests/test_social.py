import pytest

import social
from constants import MAX_FRIENDS
from errors import Conflict, InvalidValue, ReferenceNotFound
from models import Friendship, FriendshipStatus


@pytest.fixture
def ana(make_user):
    return make_user("ana")


@pytest.fixture
def luis(make_user):
    return make_user("luis")


def test_send_request(db_session, ana, luis):
    friendship = social.send_friend_request(db_session, ana, luis.id)
    assert friendship.status == FriendshipStatus.PENDING.value
    assert (friendship.user_id, friendship.friend_id) == (ana.id, luis.id)
    assert social.list_incoming_requests(db_session, luis) == [friendship]
    assert social.list_incoming_requests(db_session, ana) == []


def test_request_to_self(db_session, ana):
    with pytest.raises(InvalidValue):
        social.send_friend_request(db_session, ana, ana.id)


def test_request_to_unknown_user(db_session, ana):
    with pytest.raises(ReferenceNotFound):
        social.send_friend_request(db_session, ana, 9999)


def test_duplicate_request_in_either_direction(db_session, ana, luis):
    social.send_friend_request(db_session, ana, luis.id)
    with pytest.raises(Conflict):
        social.send_friend_request(db_session, ana, luis.id)
    with pytest.raises(Conflict):
        social.send_friend_request(db_session, luis, ana.id)


def test_only_receiver_accepts(db_session, ana, luis):
    friendship = social.send_friend_request(db_session, ana, luis.id)
    with pytest.raises(ReferenceNotFound):
        social.accept_friend_request(db_session, ana, friendship.id)

    accepted = social.accept_friend_request(db_session, luis, friendship.id)
    assert accepted.status == FriendshipStatus.ACCEPTED.value

    # Ya no está pendiente
    with pytest.raises(ReferenceNotFound):
        social.accept_friend_request(db_session, luis, friendship.id)


def test_friends_are_symmetric(db_session, ana, luis):
    friendship = social.send_friend_request(db_session, ana, luis.id)
    assert social.list_friends(db_session, ana) == []
    social.accept_friend_request(db_session, luis, friendship.id)
    assert social.list_friends(db_session, ana) == [luis]
    assert social.list_friends(db_session, luis) == [ana]
    assert social.count_friends(db_session, ana.id) == 1


def test_remove_friendship(db_session, ana, luis, make_user):
    friendship = social.send_friend_request(db_session, ana, luis.id)
    with pytest.raises(ReferenceNotFound):
        social.remove_friendship(db_session, make_user("ajena"), friendship.id)

    social.remove_friendship(db_session, luis, friendship.id)
    assert db_session.query(Friendship).count() == 0


def test_friend_limit(db_session, ana, make_user):
    for _ in range(MAX_FRIENDS):
        other = make_user()
        db_session.add(Friendship(user_id=ana.id, friend_id=other.id, status=FriendshipStatus.PENDING))
    db_session.commit()
    db_session.query(Friendship).update({Friendship.status: FriendshipStatus.ACCEPTED.value})
    db_session.commit()

    with pytest.raises(InvalidValue):
        social.send_friend_request(db_session, ana, make_user().id)


def test_accept_respects_sender_limit(db_session, ana, luis, make_user):
    friendship = social.send_friend_request(db_session, ana, luis.id)

    # Mientras la solicitud espera, ana llena su cupo de amigos
    for _ in range(MAX_FRIENDS):
        other = make_user()
        db_session.add(Friendship(user_id=other.id, friend_id=ana.id, status=FriendshipStatus.PENDING))
    db_session.commit()
    db_session.query(Friendship).filter(Friendship.id != friendship.id).update(
        {Friendship.status: FriendshipStatus.ACCEPTED.value}
    )
    db_session.commit()
    assert social.count_friends(db_session, ana.id) == MAX_FRIENDS

    with pytest.raises(InvalidValue):
        social.accept_friend_request(db_session, luis, friendship.id)

    db_session.refresh(friendship)
    assert friendship.status == FriendshipStatus.PENDING.value
    assert social.count_friends(db_session, ana.id) == MAX_FRIENDS


def test_compare_requires_accepted_friendship(db_session, ana, luis):
    friendship = social.send_friend_request(db_session, ana, luis.id)
    with pytest.raises(ReferenceNotFound):
        social.compare_progress(db_session, ana, luis.id)

    social.accept_friend_request(db_session, luis, friendship.id)
    luis.xp = 120
    db_session.commit()

    comparison = social.compare_progress(db_session, ana, luis.id)
    assert comparison["user"]["profile"] is ana
    assert comparison["friend"]["progress"]["xp"] == 120
    assert comparison["user"]["progress"]["habits_completed"] == 0
