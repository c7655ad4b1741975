import pytest

from leaveflow.core import security
from leaveflow.core.config import PasswordPolicy, settings
from leaveflow.core.exceptions import InvalidInputError
from leaveflow.services.notification import ViewRefreshNotifier


def test_encryption_round_trip_hides_plaintext():
    token = security.encrypt_data("1029384756")
    assert token != "1029384756"
    assert security.decrypt_data(token) == "1029384756"
    assert security.encrypt_data(None) is None


@pytest.mark.parametrize("email,valid", [
    ("a@b.co", True),
    ("first.last@company.org", True),
    ("no-at-sign.com", False),
    ("two@@signs.com", False),
    ("missing@tld", False),
])
def test_email_pattern(email, valid):
    assert security.is_valid_email(email) is valid


def test_length_only_policy_by_default():
    security.validate_password_strength("alllowercase")
    with pytest.raises(InvalidInputError) as exc:
        security.validate_password_strength("Ab1", field="new_password")
    assert exc.value.field == "new_password"


def test_mixed_policy_when_enabled(monkeypatch):
    monkeypatch.setattr(settings, "passwords", PasswordPolicy(min_length=8, require_mixed=True, bcrypt_rounds=4))
    with pytest.raises(InvalidInputError):
        security.validate_password_strength("alllowercase1")
    security.validate_password_strength("MixedCase1")


def test_temporary_password_satisfies_strict_policy():
    for _ in range(20):
        candidate = security.generate_temporary_password()
        assert len(candidate) >= 12
        assert any(c.isupper() for c in candidate)
        assert any(c.islower() for c in candidate)
        assert any(c.isdigit() for c in candidate)


def test_notifier_isolates_failing_listener():
    notifier = ViewRefreshNotifier()
    seen = []

    def broken(paths):
        raise RuntimeError("listener down")

    notifier.subscribe(broken)
    notifier.subscribe(seen.append)
    notifier.notify(["/dashboard", "/dashboard", "/dashboard/team"])
    assert seen == [["/dashboard", "/dashboard/team"]]

    notifier.unsubscribe(seen.append)
    notifier.notify(["/dashboard"])
    assert len(seen) == 1
