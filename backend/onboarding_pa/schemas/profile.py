from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    email: EmailStr | None = None
    work_email: EmailStr | None = Field(default=None, alias="workEmail")
    phone_number: str | None = Field(default=None, alias="phoneNumber", min_length=1)

    def changes(self) -> dict[str, str | None]:
        """Submitted fields only, keyed by their API attribute name."""
        return self.model_dump(by_alias=True, exclude_unset=True)
