"""User profile domain model."""

from dataclasses import dataclass
from typing import Dict, Any, Optional


@dataclass
class User:
    """
    Signed-in user profile.

    Attributes:
        id: Identity provider uid (document key in the users table)
        email: Sign-in email address
        name: Display name
        student_id: University student ID used for the discount rule
        id_token: Current identity token; transient, never stored in the profile
    """

    id: str
    email: str = ""
    name: str = ""
    student_id: str = ""
    id_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data.get("id", ""),
            email=data.get("email", ""),
            name=data.get("name", ""),
            student_id=data.get("student_id", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Profile document; the token is left out."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "student_id": self.student_id,
        }
