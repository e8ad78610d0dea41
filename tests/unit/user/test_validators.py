"""Tests for user input validators."""

import pytest

from fitclub.core.modules.user.models import UserRole, UserType, dashboard_url_for_role
from fitclub.core.modules.user.validators import normalize_email, validate_email, validate_password, validate_role
from fitclub.errors import ValidationError


class TestEmail:
    def test_normalize_strips_and_lowercases(self):
        assert normalize_email("  Anna.Smirnova@Email.COM ") == "anna.smirnova@email.com"

    @pytest.mark.parametrize("email", ["a@b.com", "first.last+tag@club.fit.ru"])
    def test_valid(self, email):
        validate_email(email)

    @pytest.mark.parametrize("email", ["", "plain", "a@b", "a b@c.com", "@club.com", "a@b..com", "a@-b-.com", "a@b.com."])
    def test_invalid(self, email):
        with pytest.raises(ValidationError):
            validate_email(email)


class TestPassword:
    def test_valid(self):
        validate_password("NewPass1!")

    def test_too_short(self):
        with pytest.raises(ValidationError, match="at least 6"):
            validate_password("abc12")

    def test_whitespace_rejected(self):
        with pytest.raises(ValidationError, match="whitespace"):
            validate_password("pass word")


class TestRole:
    @pytest.mark.parametrize("role", [UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.MANAGER, UserRole.TRAINER])
    def test_staff_roles(self, role):
        validate_role(UserType.STAFF, role)

    @pytest.mark.parametrize("role", [UserRole.MEMBER, UserRole.CLIENT])
    def test_member_roles(self, role):
        validate_role(UserType.MEMBER, role)

    def test_member_cannot_be_admin(self):
        with pytest.raises(ValidationError):
            validate_role(UserType.MEMBER, UserRole.ADMIN)

    def test_staff_cannot_be_member(self):
        with pytest.raises(ValidationError):
            validate_role(UserType.STAFF, UserRole.MEMBER)


@pytest.mark.parametrize(
    ("role", "url"),
    [
        (UserRole.MEMBER, "/member-dashboard"),
        (UserRole.ADMIN, "/admin"),
        (UserRole.SUPER_ADMIN, "/admin"),
        (UserRole.MANAGER, "/manager-dashboard"),
        (UserRole.TRAINER, "/trainer-dashboard"),
        (UserRole.CLIENT, "/staff-dashboard"),
    ],
)
def test_dashboard_url_for_role(role, url):
    assert dashboard_url_for_role(role) == url
