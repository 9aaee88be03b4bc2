"""Tests for password hashing and the account directory."""

import pytest

from storefront_auth.core.errors import (
    AccountExistsError,
    AccountInactiveError,
    IdentityStoreError,
    InvalidCredentialsError,
)
from storefront_auth.services.identity import AccountDirectory, hash_password, verify_password


class TestPasswordHashing:
    """Tests for Argon2 password helpers."""

    def test_hash_and_verify(self):
        password_hash = hash_password("s3cret-pass")

        assert password_hash.startswith("$argon2id$")
        assert verify_password("s3cret-pass", password_hash) is True
        assert verify_password("wrong", password_hash) is False

    def test_same_password_different_hashes(self):
        assert hash_password("same") != hash_password("same")

    def test_malformed_hash(self):
        assert verify_password("anything", "not-a-hash") is False


@pytest.mark.asyncio
class TestAccountDirectory:
    """Tests for AccountDirectory."""

    async def test_create_and_authenticate(self, accounts):
        created = await accounts.create_account("Shopper@Example.com ", "pw-123456", "Shopper")

        identity = await accounts.authenticate("shopper@example.com", "pw-123456")

        assert identity == created
        assert identity.email == "shopper@example.com"
        assert identity.display_name == "Shopper"

    async def test_duplicate_email(self, accounts):
        await accounts.create_account("a@example.com", "pw")
        with pytest.raises(AccountExistsError):
            await accounts.create_account("A@example.com", "pw")

    async def test_wrong_password(self, accounts):
        await accounts.create_account("a@example.com", "pw")
        with pytest.raises(InvalidCredentialsError):
            await accounts.authenticate("a@example.com", "nope")

    async def test_unknown_email(self, accounts):
        with pytest.raises(InvalidCredentialsError):
            await accounts.authenticate("ghost@example.com", "pw")

    async def test_inactive_account(self, accounts):
        identity = await accounts.create_account("a@example.com", "pw")
        assert await accounts.deactivate(identity.id) is True

        with pytest.raises(AccountInactiveError):
            await accounts.authenticate("a@example.com", "pw")

    async def test_find_identity_by_id(self, accounts):
        identity = await accounts.create_account("a@example.com", "pw")

        assert await accounts.find_identity_by_id(identity.id) == identity
        assert await accounts.find_identity_by_id("missing") is None

    async def test_deactivated_identity_does_not_resolve(self, accounts):
        identity = await accounts.create_account("a@example.com", "pw")
        await accounts.deactivate(identity.id)

        assert await accounts.find_identity_by_id(identity.id) is None

    async def test_deactivate_unknown(self, accounts):
        assert await accounts.deactivate("missing") is False

    async def test_database_faults_raise_identity_store_error(self, tmp_path):
        directory = AccountDirectory.from_url(f"sqlite+aiosqlite:///{tmp_path}/empty.db")
        try:
            with pytest.raises(IdentityStoreError):
                await directory.authenticate("a@example.com", "pw")
            with pytest.raises(IdentityStoreError):
                await directory.find_identity_by_id("u1")
            with pytest.raises(IdentityStoreError):
                await directory.create_account("a@example.com", "pw")
            with pytest.raises(IdentityStoreError):
                await directory.deactivate("u1")
        finally:
            await directory.dispose()
