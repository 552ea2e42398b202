from pydantic import BaseModel, ConfigDict, Field


class SpidLoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_token: str = Field(alias="sessionToken")
    email: str
    family_name: str = Field(alias="familyName")
    fiscal_number: str = Field(alias="fiscalNumber")
    mobile_phone: str = Field(alias="mobilePhone")
    name: str
    spid_level: str = Field(alias="spidLevel")
