from evently.core.security import create_access_token


def get_user_authentication_headers(user_id: str = "user_test") -> dict[str, str]:
    """
    Generates a valid JWT token and authentication headers for a test user.
    """
    token = create_access_token(user_id)
    return {"Authorization": f"Bearer {token}"}
