"""Request bodies accepted by the HTTP API (camelCase on the wire)"""

from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting camelCase or snake_case keys"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class TermsRequest(CamelModel):
    confirmation: Optional[str] = None


class UploadSignRequest(CamelModel):
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    prefix: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)


class CreateFolderRequest(CamelModel):
    folder_name: Optional[str] = None
    prefix: Optional[str] = None


class CreateUserRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    role: str = "editor"
    permissions: Union[List[str], str, None] = None


class UpdateUserRequest(CamelModel):
    """Partial update; only keys present in the body are applied"""

    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    permissions: Union[List[str], str, None] = None
    regenerate_password: bool = False


class StorageSettingsRequest(CamelModel):
    bucket_name: Optional[str] = None
    region: Optional[str] = None
    access_key: Optional[str] = None
    # Blank keeps the stored secret
    secret_key: Optional[str] = None
    cdn_host: Optional[str] = None


class OnboardingRequest(CamelModel):
    app_host: Optional[str] = None
    admin_name: Optional[str] = None
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None
    bucket_name: Optional[str] = None
    region: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    cdn_host: Optional[str] = None
