"""Tests for the auth service."""

import pytest

from fold.core.modules.account.models import CREDENTIAL_PROVIDER, OAuthTokens
from fold.core.modules.auth.oauth import OAuthProfile
from fold.errors import AuthenticationError, NotFoundError, ValidationError

PASSWORD = "correct-horse"  # noqa: S105


def google_profile(email="jane@example.com", verified=True, account_id="google-123"):
    return OAuthProfile(
        provider_id="google",
        account_id=account_id,
        email=email,
        name="Jane Google",
        image="https://lh3.googleusercontent.com/a/photo",
        email_verified=verified,
        tokens=OAuthTokens(access_token="access", scope="openid email profile"),
    )


class TestEmailCredentials:
    """Tests for email/password sign-up and sign-in."""

    def test_sign_up_creates_user_account_and_session(self, run_core):
        async def scenario(core):
            context = await core.services.auth.sign_up_email("Jane", "Jane@Example.com", PASSWORD)
            accounts = await core.services.account.list_user_accounts(context.user.id)
            return context, accounts

        context, accounts = run_core(scenario)
        assert context.user.email == "jane@example.com"
        assert [account.provider_id for account in accounts] == [CREDENTIAL_PROVIDER]
        assert accounts[0].password != PASSWORD
        assert context.session.user_id == context.user.id

    def test_duplicate_email_rejected(self, run_core):
        async def scenario(core):
            await core.services.auth.sign_up_email("Jane", "jane@example.com", PASSWORD)
            await core.services.auth.sign_up_email("Jane", "JANE@example.com", PASSWORD)

        with pytest.raises(ValidationError, match="User already exists"):
            run_core(scenario)

    def test_sign_in_with_wrong_password(self, run_core):
        async def scenario(core):
            await core.services.auth.sign_up_email("Jane", "jane@example.com", PASSWORD)
            await core.services.auth.sign_in_email("jane@example.com", "wrong-password")

        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            run_core(scenario)


class TestOAuthSignIn:
    """Tests for provider sign-in and account linking."""

    def test_new_user_created(self, run_core):
        async def scenario(core):
            context = await core.services.auth.sign_in_oauth(google_profile())
            accounts = await core.services.account.list_user_accounts(context.user.id)
            return context, accounts

        context, accounts = run_core(scenario)
        assert context.user.email_verified
        assert context.user.image == "https://lh3.googleusercontent.com/a/photo"
        assert [(a.provider_id, a.account_id) for a in accounts] == [("google", "google-123")]

    def test_verified_email_links_existing_user(self, run_core):
        """Test that a trusted provider with a verified email joins the existing user."""

        async def scenario(core):
            signed_up = await core.services.auth.sign_up_email("Jane", "jane@example.com", PASSWORD)
            context = await core.services.auth.sign_in_oauth(google_profile())
            accounts = await core.services.account.list_user_accounts(signed_up.user.id)
            return signed_up, context, accounts

        signed_up, context, accounts = run_core(scenario)
        assert context.user.id == signed_up.user.id
        assert context.user.email_verified
        assert sorted(a.provider_id for a in accounts) == [CREDENTIAL_PROVIDER, "google"]

    def test_unverified_email_not_linked(self, run_core):
        async def scenario(core):
            await core.services.auth.sign_up_email("Jane", "jane@example.com", PASSWORD)
            await core.services.auth.sign_in_oauth(google_profile(verified=False))

        with pytest.raises(AuthenticationError, match="Account not linked"):
            run_core(scenario)

    def test_repeat_sign_in_reuses_account(self, run_core):
        async def scenario(core):
            first = await core.services.auth.sign_in_oauth(google_profile())
            second = await core.services.auth.sign_in_oauth(google_profile())
            accounts = await core.services.account.list_user_accounts(first.user.id)
            return first, second, accounts

        first, second, accounts = run_core(scenario)
        assert first.user.id == second.user.id
        assert first.session.token != second.session.token
        assert len(accounts) == 1

    def test_unknown_provider(self, run_core):
        async def scenario(core):
            core.services.auth.get_oauth_client("github")

        with pytest.raises(NotFoundError, match="Provider not found: github"):
            run_core(scenario)


class TestPasswordReset:
    """Tests for reset tokens."""

    def test_reset_with_unknown_token(self, run_core):
        async def scenario(core):
            await core.services.auth.reset_password("missing", "new-password-1")

        with pytest.raises(ValidationError, match="Invalid token"):
            run_core(scenario)

    def test_unknown_email_issues_no_token(self, run_core):
        async def scenario(core):
            await core.services.auth.request_password_reset("nobody@example.com")
            return await core.services.verification.find_valid("reset-password:anything")

        assert run_core(scenario) is None
