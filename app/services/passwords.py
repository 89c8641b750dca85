from passlib.context import CryptContext

pwd = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

# verified against when the email is unknown so both login failures cost the same
_DUMMY_HASH = pwd.hash("unalone-dummy-password")


def hash_password(password: str) -> str:
    return pwd.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        pwd.verify(password, _DUMMY_HASH)
        return False
    return pwd.verify(password, password_hash)
