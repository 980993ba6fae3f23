"""Tests for identity module."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import yaml

from drive_workspace_sync.identity import (
    AuthenticationRequiredError,
    ConfigFileCredentialProvider,
    Credential,
    StaticCredentialProvider,
)


class TestCredential:
    """Tests for Credential dataclass."""

    def test_drive_access_requires_both_flags(self) -> None:
        assert Credential(sub="u", is_drive=True, drive_full_access=True).has_drive_access()
        assert not Credential(sub="u", is_drive=True).has_drive_access()
        assert not Credential(sub="u", drive_full_access=True).has_drive_access()

    def test_expired_credential_has_no_access(self) -> None:
        credential = Credential(
            sub="u",
            is_drive=True,
            drive_full_access=True,
            expiry=datetime.now(UTC) - timedelta(minutes=1),
        )

        assert credential.is_expired()
        assert not credential.has_drive_access()

    def test_naive_expiry_is_utc(self) -> None:
        credential = Credential(sub="u", expiry=datetime(2000, 1, 1))

        assert credential.is_expired()

    def test_to_dict_excludes_token(self) -> None:
        """Test serialization never leaks the access token."""
        credential = Credential(sub="u", access_token="secret", is_drive=True)

        data = credential.to_dict()

        assert "access_token" not in data
        assert data["sub"] == "u"
        assert data["is_drive"] is True

    def test_from_dict(self) -> None:
        credential = Credential.from_dict({
            "sub": "u",
            "access_token": "token",
            "is_drive": True,
            "drive_full_access": True,
            "expiry": "2030-01-01T00:00:00+00:00",
        })

        assert credential.expiry == datetime(2030, 1, 1, tzinfo=UTC)
        assert credential.has_drive_access()


class TestStaticCredentialProvider:
    """Tests for StaticCredentialProvider."""

    async def test_get_credential(self) -> None:
        credential = Credential(sub="u")
        provider = StaticCredentialProvider([credential])

        assert await provider.get_credential("u") is credential
        assert await provider.get_credential("other") is None
        assert await provider.get_credential(None) is None

    async def test_authorize_picks_full_access(self) -> None:
        limited = Credential(sub="limited", is_drive=True)
        full = Credential(sub="full", is_drive=True, drive_full_access=True)
        provider = StaticCredentialProvider([limited])
        provider.add(full)

        assert await provider.authorize() is full

    async def test_authorize_without_access_raises(self) -> None:
        provider = StaticCredentialProvider([Credential(sub="u", is_drive=True)])

        with pytest.raises(AuthenticationRequiredError):
            await provider.authorize()


class TestConfigFileCredentialProvider:
    """Tests for ConfigFileCredentialProvider."""

    @pytest.fixture
    def config_path(self, tmp_path: Path) -> Iterator[Path]:
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump({
            "credentials": {
                "1234": {
                    "access_token": "token",
                    "is_drive": True,
                    "drive_full_access": True,
                    "expiry": "2100-01-01T00:00:00+00:00",
                },
                "5678": {"access_token": "other", "is_drive": True},
            },
        }))
        yield path

    async def test_reads_credentials(self, config_path: Path) -> None:
        provider = ConfigFileCredentialProvider(config_path)

        credential = await provider.get_credential("1234")

        assert credential is not None
        assert credential.access_token == "token"
        assert credential.has_drive_access()
        assert await provider.get_credential("unknown") is None

    async def test_authorize(self, config_path: Path) -> None:
        provider = ConfigFileCredentialProvider(config_path)

        credential = await provider.authorize()

        assert credential.sub == "1234"

    async def test_missing_file(self, tmp_path: Path) -> None:
        provider = ConfigFileCredentialProvider(tmp_path / "missing.yaml")

        assert await provider.get_credential("1234") is None
        with pytest.raises(AuthenticationRequiredError):
            await provider.authorize()

    async def test_reload(self, config_path: Path) -> None:
        provider = ConfigFileCredentialProvider(config_path)
        assert await provider.get_credential("9999") is None

        config_path.write_text(yaml.safe_dump({"credentials": {"9999": {"is_drive": True}}}))
        provider.reload()

        assert await provider.get_credential("9999") is not None
