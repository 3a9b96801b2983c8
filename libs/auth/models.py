from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Claims of an access token issued by the auth module.
    """

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: str = "donors"

    model_config = ConfigDict(populate_by_name=True)

    @property
    def contacts(self) -> list[str]:
        """Identifiers donations may have been recorded under."""
        return [value for value in (self.email, self.phone) if value]
