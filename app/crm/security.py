from werkzeug.security import check_password_hash, generate_password_hash


class PasswordEncoder:
    """One-way password hashing backed by werkzeug."""

    def __init__(self, method: str = "pbkdf2:sha256"):
        self.method = method

    def encode(self, raw_password: str) -> str:
        return generate_password_hash(raw_password, method=self.method)

    def matches(self, raw_password: str, password_hash: str) -> bool:
        return check_password_hash(password_hash, raw_password)
