# account/authentication.py
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, AuthenticationFailed
from rest_framework_simplejwt.tokens import RefreshToken


def issue_tokens(user):
    """Refresh/access pair carrying the tenant claims the API relies on."""
    refresh = RefreshToken.for_user(user)
    refresh["company_id"] = str(user.company_id) if user.company_id else None
    refresh["username"] = user.username
    return {
        "refresh": str(refresh),
        "access": str(refresh.access_token),
    }


class CompanyJWTAuthentication(JWTAuthentication):
    """
    Bearer token authentication that also checks the token was issued for
    the company the user still belongs to.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None
        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        try:
            validated_token = self.get_validated_token(raw_token)
        except InvalidToken as exc:
            raise AuthenticationFailed(str(exc))

        user = self.get_user(validated_token)
        claimed_company = validated_token.get("company_id")
        actual_company = str(user.company_id) if user.company_id else None
        if claimed_company != actual_company:
            raise AuthenticationFailed("Token company does not match user company.")
        return (user, validated_token)
