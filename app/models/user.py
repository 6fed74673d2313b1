from mongoengine import EmailField, StringField

from app.models.base import BaseDocument
from app.utils.hashing import dummy_verify, hash_password, verify_password


class User(BaseDocument):
    """User document.

    Fields:
    - name (str): Display name
    - email (EmailStr, unique): Login identifier
    - password (str, hashed): Bcrypt hash; plaintext only between assignment and save
    - token_version (str): Incremented on logout-all to invalidate every token
    """
    name = StringField(required=True, null=False, min_length=1)
    password = StringField(required=True, null=False, min_length=1)
    email = EmailField(required=True, null=False, unique=True)
    token_version = StringField(required=True, null=False, default="1")

    PRIVATE_FIELDS = ("password", "token_version")

    meta = {
        "collection": "users",
        "indexes": [
            {"fields": ["email"], "unique": True},
        ],
    }

    def password_needs_hashing(self) -> bool:
        # New documents always carry plaintext; loaded ones only after reassignment
        return self._created or "password" in self._get_changed_fields()

    def save(self, *args, **kwargs):
        if self.password_needs_hashing():
            self.validate()
            self.password = hash_password(self.password)
        return super().save(*args, **kwargs)

    def to_public(self) -> dict:
        return self.to_output(exclude=self.PRIVATE_FIELDS)

    @classmethod
    def find_by_credentials(cls, email: str, password: str) -> "User | None":
        """Return the user only when both email and password match."""
        user = cls.objects(email=email).first()
        if not user:
            # Unknown emails pay the bcrypt cost too
            dummy_verify()
            return None
        if not verify_password(password, user.password):
            return None
        return user
