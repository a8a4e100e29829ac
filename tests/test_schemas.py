import pytest
from pydantic import ValidationError

from models import User
from schemas import UserResponseDTO, UserRegister, UserPublicProfile, build_user_response


def make_ana():
    return User(
        id=1, username="ana", email="ana@x.com", password_hash="$2b$12$hash",
        coins=10, xp=50, level=2
    )


def test_response_has_no_credentials():
    dumped = build_user_response(make_ana()).model_dump()
    assert set(dumped) == {"id", "username", "email", "coins", "xp", "level"}
    assert "$2b$12$hash" not in build_user_response(make_ana()).model_dump_json()


def test_projection_copies_fields():
    dto = build_user_response(make_ana())
    assert dto == UserResponseDTO(id=1, username="ana", email="ana@x.com", coins=10, xp=50, level=2)


def test_projection_accepts_external_counters():
    dto = build_user_response(make_ana(), coins=99, xp=300, level=4)
    assert (dto.coins, dto.xp, dto.level) == (99, 300, 4)
    assert dto.username == "ana"


def test_from_attributes_matches_builder():
    assert UserResponseDTO.model_validate(make_ana()) == build_user_response(make_ana())


def test_json_round_trip_keeps_identity():
    dto = build_user_response(make_ana())
    back = UserResponseDTO.model_validate_json(dto.model_dump_json())
    assert (back.id, back.username, back.email) == (1, "ana", "ana@x.com")


def test_public_profile_hides_email_and_coins():
    profile = UserPublicProfile.model_validate(make_ana()).model_dump()
    assert "email" not in profile
    assert "coins" not in profile


@pytest.mark.parametrize("payload", [
    {"email": "no-es-email", "username": "ana", "password": "secreto123"},
    {"email": "ana@x.com", "username": "a", "password": "secreto123"},
    {"email": "ana@x.com", "username": "ana con espacios", "password": "secreto123"},
    {"email": "ana@x.com", "username": "ana", "password": "corta"},
])
def test_register_validation(payload):
    with pytest.raises(ValidationError):
        UserRegister(**payload)
